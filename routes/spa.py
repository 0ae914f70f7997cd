from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from markupsafe import escape

spa_bp = Blueprint("spa", __name__)

_UPLOAD_PAGE = """<!doctype html><html><head><meta charset="utf-8"/>
<title>Wattly – Upload Bill</title>
<style>
body{{background:#000;color:#fff;font-family:Arial,Helvetica,sans-serif;margin:0}}
.wrap{{max-width:900px;margin:32px auto;padding:0 16px}}
.card{{background:#0b0b0b;border:1px solid #1a1a1a;border-radius:12px;padding:16px;margin-bottom:16px}}
input,button{{font-size:16px}}
label{{color:#bbb}}
.btn{{background:#FFD700;color:#000;border:0;border-radius:10px;padding:10px 14px;font-weight:800;cursor:pointer}}
</style></head><body><div class="wrap">
  <h1>Wattly – Bill Audit</h1>
  <div class="card">
    <form action="/proposal" method="post" enctype="multipart/form-data" target="_blank">
      <label>PDF Bill</label><br>
      <input type="file" name="bill" accept=".pdf" required><br><br>
      <label>Current supply rate ($/unit)</label>
      <input name="rate_current" type="number" step="0.0001" value="{current}">
      <label style="margin-left:10px">Offered supply rate ($/unit)</label>
      <input name="rate_offered" type="number" step="0.0001" value="{offered}">
      <button class="btn" type="submit" style="margin-left:10px">Analyze</button>
      <button class="btn" type="submit" formaction="/proposal.pdf" style="margin-left:6px">PDF</button>
    </form>
    <p style="color:#888;margin-top:8px">Works for gas (therms/ccf) or electric (kWh). Leave the current rate blank to infer it from the bill's supply charges. Annual = monthly × 12.</p>
  </div>
</div></body></html>"""


def _rate_value(value) -> str:
    try:
        return f"{float(value):.4f}"
    except (TypeError, ValueError):
        return ""


@spa_bp.route("/")
def index():
    defaults = current_app.config.get("RATE_FORM_DEFAULTS", {}) or {}
    page = _UPLOAD_PAGE.format(
        current=escape(_rate_value(defaults.get("current"))),
        offered=escape(_rate_value(defaults.get("offered"))),
    )
    return page, 200, {"Content-Type": "text/html; charset=utf-8", "Cache-Control": "no-cache"}


@spa_bp.route("/health")
@spa_bp.route("/healthz")
def health_check():
    """
    Health check endpoint for deployment monitoring.

    Returns immediately; no PDF or SMTP dependency.
    """
    return jsonify({"status": "ok", "service": "bill-audit"}), 200
