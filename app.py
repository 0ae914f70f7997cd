"""
Wattly Bill Audit - Flask Backend
=================================

OVERVIEW:
Upload a utility bill PDF, read its text, recover billing facts with regex
heuristics, and compare the bill's supply cost at the current rate against an
offered rate.

API ENDPOINTS:
- GET  /               - Upload form
- POST /api/audit      - PDF upload -> {audit, savings} JSON
- POST /api/audit/text - Raw bill text -> {audit, savings} JSON
- POST /proposal       - PDF upload -> HTML proposal
- POST /proposal.pdf   - PDF upload -> PDF proposal
- GET  /api/config     - Public configuration
- GET  /health, /healthz

KNOWN LIMITATIONS:
- No OCR: scanned bills without a text layer are rejected
- Extraction is best-effort; every result is marked low-confidence
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv
from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from config_loader import get_config
from logging_setup import init_request_logging, setup_logging
from routes.config_api import config_api_bp
from routes.print_pdf import print_pdf_bp
from routes.proposal_api import proposal_bp
from routes.spa import spa_bp
from services.mail_relay import MailRelay

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_MB = 20


def _load_dotenv() -> None:
    # load_dotenv() returns False when no .env is found; nothing to do then.
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path=dotenv_path, override=False)


def create_app(cfg: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Build the Flask app.

    Args:
        cfg: Parsed configuration; defaults to config.yml + env overrides
    """
    if cfg is None:
        _load_dotenv()
        cfg = get_config()

    setup_logging(cfg)

    app = Flask(__name__, static_folder=None)
    app_cfg = cfg.get("app", {}) or {}

    origins = (app_cfg.get("cors", {}) or {}).get("origins") or "*"
    CORS(app, origins=origins)

    max_upload_mb = float(app_cfg.get("max_upload_mb", DEFAULT_MAX_UPLOAD_MB))
    app.config["MAX_CONTENT_LENGTH"] = int(max_upload_mb * 1024 * 1024)
    app.config["RATE_FORM_DEFAULTS"] = (cfg.get("rates", {}) or {}).get("form_defaults", {}) or {}
    app.config["PDF_MAX_PAGES"] = int((cfg.get("pdf", {}) or {}).get("max_pages", 20))
    app.config["APP_CFG"] = cfg

    relay = MailRelay(cfg.get("mail", {}) or {})
    app.extensions["mail_relay"] = relay
    if relay.enabled:
        logger.info("Mail relay enabled; audits go to %s", relay.recipient)

    init_request_logging(app)

    @app.errorhandler(RequestEntityTooLarge)
    def _too_large(_e):
        message = f"File too large (limit {max_upload_mb:g} MB)"
        if request.path.startswith("/api/"):
            return jsonify({"success": False, "error": message}), 413
        return message, 413, {"Content-Type": "text/plain; charset=utf-8"}

    app.register_blueprint(spa_bp)
    app.register_blueprint(config_api_bp)
    app.register_blueprint(proposal_bp)
    app.register_blueprint(print_pdf_bp)

    return app


app = create_app()
