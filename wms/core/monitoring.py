"""Error monitoring through Sentry.

Only failures worth paging on are reported: domain errors below 500
(capacity refusals, missing entities, bad input) are normal API answers and
are dropped before sending.
"""
import logging

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from wms.core.config import settings
from wms.core.exceptions import WmsException

logger = logging.getLogger(__name__)

_initialized = False


def _drop_client_errors(event, hint):
    exc_info = hint.get("exc_info") if hint else None
    if exc_info:
        exc = exc_info[1]
        if isinstance(exc, WmsException) and exc.status_code < 500:
            return None
    return event


def init_monitoring() -> None:
    global _initialized
    if _initialized:
        return
    _initialized = True

    if not settings.SENTRY_DSN:
        logger.debug("SENTRY_DSN not set; error monitoring disabled")
        return
    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            integrations=[
                FastApiIntegration(),
                # warnings (capacity refusals, shortfalls) stay breadcrumbs
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            traces_sample_rate=0.1,
            environment=settings.ENV,
            release=f"wms-backend@{settings.APP_VERSION}",
            before_send=_drop_client_errors,
        )
        logger.info("Sentry initialized for %s", settings.ENV)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to init Sentry: %s", exc)
