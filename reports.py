"""
Proposal report rendering.

Builds the savings proposal as a standalone HTML document from the JSON
shapes of a BillAudit and a SavingsResult. The same HTML backs the browser
report and the PDF proposal.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from markupsafe import escape

DASH = "—"
NOT_ENOUGH_INFO = "Not enough information to calculate savings"

_MISSING_LABELS = {
    "quantity": "monthly usage (kWh, therms or ccf)",
    "currentRate": "current supply rate",
    "offerRate": "offered supply rate",
    "outOfRange": "usage and rates small enough to price to the cent",
}

_STYLE = """
body{background:#000;color:#fff;font-family:Arial,Helvetica,sans-serif;margin:0}
.wrap{max-width:900px;margin:32px auto;padding:0 16px}
.card{background:#0b0b0b;border:1px solid #1a1a1a;border-radius:12px;padding:16px;margin-bottom:16px}
table{width:100%;border-collapse:collapse}
th,td{border-bottom:1px solid #1a1a1a;padding:8px;text-align:left}
th{color:#bfb473}
.grid{display:grid;grid-template-columns:repeat(4,1fr);gap:10px}
.k{background:#101010;border:1px solid #1a1a1a;border-radius:10px;padding:12px}
.big{font-weight:800;font-size:20px;color:#FFD700}
.ok{color:#2ee282}
.bad{color:#ff6b6b}
.warn{border-color:#7a5c00}
.muted{color:#bbb}
pre{white-space:pre-wrap;background:#111;padding:12px;border-radius:8px}
"""

_PRINT_STYLE = """
@page{size:letter;margin:0.5in}
body{background:#fff;color:#000}
.card,.k{background:#fff;border-color:#ccc}
.big{color:#000}
th{color:#555}
"""


def fmt_money(value: Optional[float]) -> str:
    if value is None:
        return DASH
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def fmt_rate(value: Optional[float]) -> str:
    return DASH if value is None else f"${value:.4f}"


def fmt_quantity(value: Optional[float], unit: Optional[str]) -> str:
    if value is None:
        return DASH
    return f"{value:,.0f} {unit or ''}".strip()


def _text(value: Any) -> str:
    return str(escape(value)) if value not in (None, "") else DASH


def _savings_class(value: Optional[float]) -> str:
    return "bad" if value is not None and value < 0 else "ok"


def _bill_table(audit: Dict[str, Any], savings: Dict[str, Any]) -> str:
    period = audit.get("billingPeriod") or {}
    totals = audit.get("totals") or {}
    unit = savings.get("unit")
    period_text = DASH
    if period.get("start") and period.get("end"):
        period_text = f"{escape(period['start'])} to {escape(period['end'])}"

    rows = [
        ("Utility", _text(audit.get("utility"))),
        ("Customer", _text(audit.get("customer"))),
        ("Service Address", _text(audit.get("serviceAddress"))),
        ("Account #", _text(audit.get("accountNumber"))),
        ("Billing Period", period_text),
        ("Due Date", _text(audit.get("dueDate"))),
        ("Commodity", _text(savings.get("commodity"))),
        ("Monthly Usage", fmt_quantity(savings.get("monthlyQuantity"), unit)),
        ("Annual Usage", fmt_quantity(savings.get("annualQuantity"), unit)),
        ("Total Due", fmt_money(totals.get("totalDue"))),
        ("Supply Charges", fmt_money(totals.get("supplyCharges"))),
        ("Delivery Charges", fmt_money(totals.get("deliveryCharges"))),
        ("Taxes", fmt_money(totals.get("taxes"))),
    ]
    body = "".join(
        f'<tr><th style="width:220px">{label}</th><td>{value}</td></tr>' for label, value in rows
    )
    return f'<div class="card"><table>{body}</table></div>'


def _insufficient_block(savings: Dict[str, Any]) -> str:
    missing = [_MISSING_LABELS.get(name, name) for name in savings.get("missing") or []]
    items = "".join(f"<li>{escape(m)}</li>" for m in missing)
    return f"""
  <div class="card warn">
    <h3>{NOT_ENOUGH_INFO}</h3>
    <p class="muted">Missing:</p>
    <ul>{items}</ul>
  </div>"""


def _savings_blocks(savings: Dict[str, Any]) -> str:
    monthly = savings.get("monthlySavings")
    annual = savings.get("annualSavings")
    tiles = f"""
  <div class="grid">
    <div class="k"><div>Current Rate</div><div class="big">{fmt_rate(savings.get("currentRate"))}</div></div>
    <div class="k"><div>Offered Rate</div><div class="big">{fmt_rate(savings.get("offerRate"))}</div></div>
    <div class="k"><div>Monthly Savings</div><div class="big {_savings_class(monthly)}">{fmt_money(monthly)}</div></div>
    <div class="k"><div>Annual Savings</div><div class="big {_savings_class(annual)}">{fmt_money(annual)}</div></div>
  </div>"""

    rate_note = ""
    if savings.get("currentRateSource") == "inferred":
        rate_note = '<p class="muted">Current rate inferred from supply charges ÷ usage.</p>'

    terms = savings.get("termSavings") or {}
    term_rows = "".join(
        f'<tr><td>{escape(term)}</td><td class="{_savings_class(value)}">{fmt_money(value)}</td></tr>'
        for term, value in terms.items()
    )

    comparison = f"""
  <div class="card">
    <table>
      <thead><tr><th></th><th>Rate</th><th>Monthly Cost</th><th>Annual Cost</th></tr></thead>
      <tbody>
        <tr><td>Current Supplier</td><td>{fmt_rate(savings.get("currentRate"))}</td><td>{fmt_money(savings.get("monthlyCostAtCurrent"))}</td><td>{fmt_money(savings.get("annualCostAtCurrent"))}</td></tr>
        <tr><td>Offered Supplier</td><td>{fmt_rate(savings.get("offerRate"))}</td><td>{fmt_money(savings.get("monthlyCostAtOffer"))}</td><td>{fmt_money(savings.get("annualCostAtOffer"))}</td></tr>
        <tr><td><strong>Savings</strong></td><td></td><td class="{_savings_class(monthly)}">{fmt_money(monthly)}</td><td class="{_savings_class(annual)}">{fmt_money(annual)}</td></tr>
      </tbody>
    </table>
    <p class="muted" style="margin-top:8px">Supply-only savings. Annual = monthly × 12.</p>
    {rate_note}
  </div>
  <div class="card">
    <h3>Term Savings</h3>
    <table><thead><tr><th>Term</th><th>Savings</th></tr></thead><tbody>{term_rows}</tbody></table>
  </div>"""
    return tiles + comparison


def build_proposal_html(audit: Dict[str, Any], savings: Dict[str, Any], *, for_print: bool = False) -> str:
    """
    Render the proposal page.

    Args:
        audit: ``BillAudit.to_dict()``
        savings: ``SavingsResult.to_dict()``
        for_print: light theme and page margins for PDF output
    """
    style = _STYLE + (_PRINT_STYLE if for_print else "")
    if savings.get("insufficientData"):
        savings_html = _insufficient_block(savings)
    else:
        savings_html = _savings_blocks(savings)

    parsed_json = escape(json.dumps(audit, indent=2))
    confidence = escape((audit.get("meta") or {}).get("confidence", "low"))

    return f"""<!doctype html><html><head><meta charset="utf-8"/>
<title>Wattly – Proposal</title>
<style>{style}</style></head><body><div class="wrap">
  <h1>Energy Savings Proposal</h1>
  <p class="muted">Figures were read automatically from the bill (confidence: {confidence}). Please verify before relying on them.</p>
  {_bill_table(audit, savings)}
  {savings_html}
  <div class="card">
    <h3>Parsed Details (JSON)</h3>
    <pre>{parsed_json}</pre>
  </div>
</div></body></html>"""
