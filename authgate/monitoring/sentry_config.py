"""Sentry configuration for error tracking"""

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from authgate.config import settings


def init_sentry() -> bool:
    """Initialize Sentry error tracking when a DSN is configured"""
    if not settings.SENTRY_DSN:
        return False

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[
            FastApiIntegration(),
        ],
        traces_sample_rate=0.2,
        environment=settings.APP_ENV,
        send_default_pii=False,
    )
    return True
