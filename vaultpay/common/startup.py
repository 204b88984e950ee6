"""Startup-time helpers for safe config logging."""

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from vaultpay.common.config import Settings
from vaultpay.common.logging import logger


SECRET_MARKERS = ("token", "secret", "password", "key")


def _safe_dsn(dsn: str) -> str:
    try:
        return make_url(dsn).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable>"


def redacted_config(settings: Settings) -> dict[str, object]:
    """Return settings as a dict with secret-like values masked."""

    config: dict[str, object] = {}
    for name, value in settings.model_dump().items():
        if any(marker in name for marker in SECRET_MARKERS):
            config[name] = "<redacted>"
        elif name.endswith("_dsn"):
            config[name] = _safe_dsn(value)
        else:
            config[name] = value
    return config


def log_startup_config(settings: Settings) -> None:
    """Log the effective configuration for quick troubleshooting."""

    logger.info("startup_config=%s", redacted_config(settings))
