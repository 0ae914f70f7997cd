"""
YAML-backed configuration for the bill audit service.

config.yml holds safe defaults; a fixed set of environment variables
(see ENV_OVERRIDES) replaces deployment-specific values such as the SMTP
relay URL, CORS origins and the upload limit.
"""

from __future__ import annotations

import os
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

DEFAULT_CONFIG_PATH = "config.yml"


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base (override wins)."""
    out: Dict[str, Any] = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _parse_positive_float(value: str) -> Optional[float]:
    try:
        parsed = float(value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def _parse_port(value: str) -> Optional[int]:
    try:
        port = int(value)
    except ValueError:
        return None
    return port if 0 < port < 65536 else None


def _parse_origins(value: str) -> Optional[list]:
    origins = [o.strip() for o in value.split(",") if o.strip()]
    return origins or None


def _parse_text(value: str) -> Optional[str]:
    return value.strip() or None


# env var -> (config key path, parser). A parser returning None leaves YAML alone.
ENV_OVERRIDES: Dict[str, Tuple[Tuple[str, ...], Callable[[str], Any]]] = {
    "CORS_ORIGINS": (("app", "cors", "origins"), _parse_origins),
    "MAX_UPLOAD_MB": (("app", "max_upload_mb"), _parse_positive_float),
    "HOST": (("server", "host"), _parse_text),
    "PORT": (("server", "port"), _parse_port),
    "LOG_LEVEL": (("logging", "level"), _parse_text),
    "SMTP_URL": (("mail", "smtp_url"), _parse_text),
    "MAIL_FROM": (("mail", "from"), _parse_text),
    "MAIL_TO": (("mail", "to"), _parse_text),
}


def _nested(path: Tuple[str, ...], value: Any) -> Dict[str, Any]:
    for key in reversed(path):
        value = {key: value}
    return value


def _env_override_dict() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for env_name, (path, parse) in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None:
            continue
        value = parse(raw)
        if value is not None:
            overrides = _deep_merge(overrides, _nested(path, value))
    return overrides


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Read the YAML file (APP_CONFIG_PATH, else ./config.yml) and apply env overrides.

    A missing file is not an error: callers fall back to their own defaults.
    """
    config_path = path or os.getenv("APP_CONFIG_PATH", DEFAULT_CONFIG_PATH)
    cfg: Dict[str, Any] = {}
    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}

    return _deep_merge(cfg, _env_override_dict())


_CONFIG_CACHE: Optional[Dict[str, Any]] = None


def get_config(path: Optional[str] = None, *, force_reload: bool = False) -> Dict[str, Any]:
    global _CONFIG_CACHE
    if _CONFIG_CACHE is None or force_reload:
        _CONFIG_CACHE = load_config(path)
    return _CONFIG_CACHE
