from __future__ import annotations

from flask import Blueprint, current_app, jsonify

config_api_bp = Blueprint("config_api", __name__)


@config_api_bp.get("/api/config")
def get_config():
    """
    Return the public part of the application configuration.
    Used by the frontend to prefill the rate form and size checks.
    """
    defaults = current_app.config.get("RATE_FORM_DEFAULTS", {}) or {}
    relay = current_app.extensions.get("mail_relay")
    max_bytes = current_app.config.get("MAX_CONTENT_LENGTH")

    return jsonify({
        "rateFormDefaults": {"current": defaults.get("current"), "offered": defaults.get("offered")},
        "maxUploadMb": round(max_bytes / (1024 * 1024), 2) if max_bytes else None,
        "mailRelayEnabled": bool(relay is not None and relay.enabled),
    })
