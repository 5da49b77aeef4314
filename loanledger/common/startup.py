"""Startup-time helpers for safe config logging."""

from loanledger.common.config import CommonSettings
from loanledger.common.logging import logger


SECRET_MARKERS = ("key", "secret", "password", "token", "dsn")


def _safe_value(name: str, value) -> str:
    """Return a printable setting value, redacting secret-like names."""

    if value is None:
        return "<unset>"
    if any(marker in name.lower() for marker in SECRET_MARKERS):
        return "<redacted>"
    return str(value)


def log_startup_config(config: CommonSettings, keys: list[str]) -> dict[str, str]:
    """Log selected settings for quick troubleshooting and return what was logged."""

    snapshot = {"service": config.service_name}
    for key in keys:
        snapshot[key] = _safe_value(key, getattr(config, key, None))
    logger.info("startup_config=%s", snapshot)
    return snapshot
