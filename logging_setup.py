"""
Logging for the bill audit service.

stdlib logging configured once via dictConfig. Every record carries a
``request_id`` attribute: the X-Request-Id of the request being served, or
"-" outside a request. Each response gets one ``http`` access-log line.
"""

from __future__ import annotations

import logging
import logging.config
import time
import uuid
from typing import Any, Dict, Optional

from flask import Flask, g, has_request_context, request

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"
REQUEST_ID_HEADER = "X-Request-Id"

# WeasyPrint and fontTools are chatty at INFO while rendering proposals.
NOISY_LOGGERS = ("weasyprint", "fontTools")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        request_id = None
        if has_request_context():
            request_id = getattr(g, "request_id", None)
        record.request_id = request_id or "-"
        return True


def setup_logging(cfg: Optional[Dict[str, Any]] = None) -> None:
    log_cfg = (cfg or {}).get("logging") or {}
    level = str(log_cfg.get("level", "INFO")).upper()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_id": {"()": RequestIdFilter}},
            "formatters": {"default": {"format": str(log_cfg.get("format") or DEFAULT_FORMAT)}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["request_id"],
                }
            },
            "root": {"handlers": ["console"], "level": level},
            "loggers": {name: {"level": "WARNING"} for name in NOISY_LOGGERS},
        }
    )


def init_request_logging(app: Flask) -> None:
    access_log = logging.getLogger("http")

    @app.before_request
    def _tag_request() -> None:
        g.request_started = time.perf_counter()
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

    @app.after_request
    def _access_log(response):  # type: ignore[no-untyped-def]
        started = getattr(g, "request_started", None)
        elapsed_ms = None if started is None else round((time.perf_counter() - started) * 1000, 2)
        access_log.info(
            "%s %s -> %s (%s bytes, %s ms)",
            request.method,
            request.path,
            response.status_code,
            response.content_length,
            elapsed_ms,
        )
        response.headers[REQUEST_ID_HEADER] = getattr(g, "request_id", "")
        return response
