"""Sentry error tracking for the scoring worker.

Initialized once per worker process when SENTRY_DSN is set; a no-op otherwise.
"""

import logging

from visibility_engine.core.config import settings

logger = logging.getLogger(__name__)


def init_sentry() -> bool:
    """Initialize Sentry if SENTRY_DSN is configured. Returns whether it was."""
    if not settings.sentry_dsn:
        logger.debug("Sentry DSN not configured, skipping")
        return False

    import sentry_sdk
    from sentry_sdk.integrations.celery import CeleryIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        # One transaction per task
        traces_sample_rate=0.05 if settings.app_env == "production" else 1.0,
        send_default_pii=False,
        integrations=[
            CeleryIntegration(propagate_traces=True),
            SqlalchemyIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
    )
    sentry_sdk.set_tag("component", "scoring-worker")
    logger.info("Sentry initialized (env=%s)", settings.app_env)
    return True
