"""Sentry error tracking configuration and initialization."""

import os

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.utils import BadDsn

from campusbill.core.logging import get_logger

logger = get_logger(__name__)

# Student record fields that must never leave the process
SENSITIVE_KEYS = frozenset(
    {"phone", "email", "address", "scholarship", "amount", "note", "transactions"}
)

# Guard against multiple initializations
_sentry_initialized = False


def init_sentry() -> bool:
    """
    Initialize Sentry SDK if SENTRY_DSN is set to a real DSN.

    No DSN, or a placeholder value, leaves error tracking off. Returns
    whether Sentry is active.
    """
    global _sentry_initialized

    if _sentry_initialized:
        return True

    sentry_dsn = os.getenv("SENTRY_DSN", "").strip()
    if not sentry_dsn:
        logger.info("sentry.disabled", message="Sentry DSN not found, error tracking disabled")
        return False

    if not sentry_dsn.startswith(("https://", "http://")):
        logger.info("sentry.disabled", message="Sentry DSN looks like a placeholder")
        return False

    environment = os.getenv("ENVIRONMENT", "development")

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=environment,
            traces_sample_rate=0.0,
            send_default_pii=False,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                LoggingIntegration(level=None, event_level=None),  # structlog already logs
            ],
            before_send=scrub_event,
        )
    except BadDsn as exc:
        logger.warning("sentry.init_failed", error=str(exc))
        return False

    _sentry_initialized = True
    logger.info("sentry.initialized", environment=environment)
    return True


def _scrub(value):
    if isinstance(value, dict):
        return {
            k: "[scrubbed]" if str(k).lower() in SENSITIVE_KEYS else _scrub(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_scrub(v) for v in value]
    return value


def scrub_event(event: dict, hint: dict) -> dict:
    """Replace student record fields in request bodies and extras."""
    request = event.get("request")
    if isinstance(request, dict) and "data" in request:
        request["data"] = _scrub(request["data"])
    if "extra" in event:
        event["extra"] = _scrub(event["extra"])
    return event
