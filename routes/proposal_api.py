"""Bill audit routes: PDF/text in, JSON or HTML proposal out.

The routes compose the two core steps themselves (extract, then compute
savings); neither step calls the other.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.utils import secure_filename

from bills import NormalizationService, compute_savings, extract_bill_audit
from bills.models import BillAudit, SavingsResult
from reports import build_proposal_html

logger = logging.getLogger(__name__)

proposal_bp = Blueprint("proposal", __name__)

UPLOAD_FIELD = "bill"
READ_FAILED_MESSAGE = "Could not read that PDF. Try another file or send the exact bill you're using."


class UploadError(Exception):
    """Client-side problem with the uploaded bill."""

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.message = message
        self.status = status


def read_bill_upload() -> Tuple[str, str]:
    """
    Pull the PDF from ``request.files`` and return (filename, text).

    Raises:
        UploadError: no file, not a PDF (400) or no extractable text (422)
    """
    try:
        files = request.files
    except RequestEntityTooLarge:
        limit_mb = (current_app.config.get("MAX_CONTENT_LENGTH") or 0) / (1024 * 1024)
        raise UploadError(f"File too large (limit {limit_mb:g} MB)", status=413)

    if UPLOAD_FIELD not in files:
        raise UploadError(f"Upload a PDF in the '{UPLOAD_FIELD}' field.")

    file = files[UPLOAD_FIELD]
    filename = secure_filename(file.filename or "")
    if not filename:
        raise UploadError("No file selected")
    if filename.rsplit(".", 1)[-1].lower() != "pdf":
        raise UploadError("Allowed file types: PDF")

    service = NormalizationService(max_pages=int(current_app.config.get("PDF_MAX_PAGES", 20)))
    result = service.normalize_bytes(file.read())
    if not result.success:
        logger.info(f"[audit] Text extraction failed for {filename}: {result.error}")
        raise UploadError(READ_FAILED_MESSAGE, status=422)

    logger.info(f"[audit] {filename}: {result.metadata.get('char_count')} chars from {result.metadata.get('pages')} pages")
    return filename, result.text


def run_audit(text: str, current_rate: Any, offer_rate: Any, utility: Optional[str] = None) -> Tuple[BillAudit, SavingsResult, Dict[str, Any]]:
    """Extract, compute, and queue the relay email. Returns (audit, savings, payload)."""
    audit = extract_bill_audit(text, utility=utility or None)
    savings = compute_savings(audit, current_rate, offer_rate)
    payload = {
        "audit": audit.to_dict(),
        "rates": {"current": savings.current_rate, "offered": savings.offer_rate},
        "savings": savings.to_dict(),
    }

    relay = current_app.extensions.get("mail_relay")
    if relay is not None:
        relay.notify(payload)
    return audit, savings, payload


def form_rates() -> Tuple[Optional[str], Optional[str], Optional[str]]:
    return (
        request.form.get("rate_current"),
        request.form.get("rate_offered"),
        request.form.get("utility"),
    )


@proposal_bp.post("/api/audit")
def audit_upload():
    """Upload a bill PDF (field ``bill``) with optional rates; returns audit + savings JSON."""
    try:
        _, text = read_bill_upload()
        current_rate, offer_rate, utility = form_rates()
        _, _, payload = run_audit(text, current_rate, offer_rate, utility)
        return jsonify({"success": True, "audit": payload["audit"], "savings": payload["savings"]})
    except UploadError as e:
        return jsonify({"success": False, "error": e.message}), e.status
    except Exception as e:
        logger.exception("Error auditing bill upload")
        return jsonify({"success": False, "error": str(e)}), 500


@proposal_bp.post("/api/audit/text")
def audit_text():
    """Run the extractor on already-extracted text: {"text", "rateCurrent"?, "rateOffered"?, "utility"?}."""
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or not isinstance(body.get("text"), str):
        return jsonify({"success": False, "error": "JSON body with a 'text' string is required"}), 400
    if not body["text"].strip():
        return jsonify({"success": False, "error": "could not extract text"}), 422

    try:
        _, _, payload = run_audit(body["text"], body.get("rateCurrent"), body.get("rateOffered"), body.get("utility"))
        return jsonify({"success": True, "audit": payload["audit"], "savings": payload["savings"]})
    except Exception as e:
        logger.exception("Error auditing bill text")
        return jsonify({"success": False, "error": str(e)}), 500


@proposal_bp.post("/proposal")
def proposal_html():
    """Upload form target: detailed HTML proposal."""
    try:
        _, text = read_bill_upload()
        current_rate, offer_rate, utility = form_rates()
        audit, savings, _ = run_audit(text, current_rate, offer_rate, utility)
    except UploadError as e:
        return e.message, e.status, {"Content-Type": "text/plain; charset=utf-8"}
    except Exception:
        logger.exception("Error building proposal")
        return READ_FAILED_MESSAGE, 500, {"Content-Type": "text/plain; charset=utf-8"}

    html = build_proposal_html(audit.to_dict(), savings.to_dict())
    return html, 200, {"Content-Type": "text/html; charset=utf-8"}
