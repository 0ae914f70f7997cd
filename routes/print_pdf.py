from __future__ import annotations

import io
import logging
from datetime import datetime

from flask import Blueprint, send_file

from reports import build_proposal_html
from routes.proposal_api import READ_FAILED_MESSAGE, UploadError, form_rates, read_bill_upload, run_audit

logger = logging.getLogger(__name__)

print_pdf_bp = Blueprint("print_pdf", __name__)


def render_pdf(html: str) -> bytes:
    """Render HTML to PDF bytes using weasyprint."""
    from weasyprint import HTML

    pdf_buffer = io.BytesIO()
    HTML(string=html).write_pdf(pdf_buffer)
    return pdf_buffer.getvalue()


def proposal_filename(utility: str, account: str | None) -> str:
    safe_utility = "".join(c for c in utility if c.isalnum() or c in " -_").strip() or "Utility"
    safe_account = "".join(c for c in (account or "") if c.isalnum() or c == "-")
    stamp = datetime.now().strftime("%Y-%m-%d")
    parts = ["Proposal", safe_utility] + ([safe_account] if safe_account else []) + [stamp]
    return " - ".join(parts) + ".pdf"


@print_pdf_bp.post("/proposal.pdf")
def proposal_pdf():
    """Same input as /proposal; returns the proposal as a PDF download."""
    try:
        _, text = read_bill_upload()
        current_rate, offer_rate, utility = form_rates()
        audit, savings, _ = run_audit(text, current_rate, offer_rate, utility)

        html = build_proposal_html(audit.to_dict(), savings.to_dict(), for_print=True)
        pdf_bytes = render_pdf(html)
    except UploadError as e:
        return e.message, e.status, {"Content-Type": "text/plain; charset=utf-8"}
    except Exception:
        logger.exception("Error generating proposal PDF")
        return READ_FAILED_MESSAGE, 500, {"Content-Type": "text/plain; charset=utf-8"}

    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=proposal_filename(audit.utility, audit.account_number),
    )
