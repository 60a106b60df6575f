"""Optional Sentry error reporting.

Installed with the ``sentry`` extra (``pip install spmhost[sentry]``).
Upload failures that reach the 500 handler are reported; request bodies
are never attached since they are archives.

Key decisions:
  - `send_default_pii=False`, so client addresses and headers stay local.
  - `before_send` drops request bodies and redacts any header or extra
    field whose key looks like a credential.
  - No-op when SENTRY_DSN is empty or the SDK is not installed.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

_SENSITIVE_KEYS = frozenset({"authorization", "cookie", "secret", "password", "token", "dsn"})


def _scrub_dict(d: dict[str, Any]) -> None:
    """Recursively redact sensitive values in-place."""
    for key in list(d.keys()):
        if any(sensitive in key.lower() for sensitive in _SENSITIVE_KEYS):
            d[key] = "[REDACTED]"
        elif isinstance(d[key], dict):
            _scrub_dict(d[key])


def _scrub_event(event: dict[str, Any], hint: Any) -> dict[str, Any]:
    """Sentry before_send hook."""
    _scrub_dict(event.get("extra", {}))
    request = event.get("request", {})
    request.pop("data", None)
    headers = request.get("headers")
    if isinstance(headers, dict):
        _scrub_dict(headers)
    return event


def init_sentry(dsn: str, environment: str = "development") -> bool:
    """Initialise the Sentry SDK. Returns True when reporting is active."""
    if not dsn or not dsn.strip():
        logger.debug("Sentry DSN not configured, skipping initialisation")
        return False

    try:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration
    except ImportError as exc:
        logger.warning("sentry-sdk not installed; Sentry disabled: %s", exc)
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        integrations=[FastApiIntegration()],
        traces_sample_rate=0.0,
        send_default_pii=False,
        before_send=_scrub_event,
    )
    logger.info("Sentry initialised (environment=%s)", environment)
    return True
