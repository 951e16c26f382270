"""Logfire cloud observability initialization and instrumentation."""

import logging

import logfire
from fastapi import FastAPI

from betstreak import __version__
from betstreak.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings, app: FastAPI | None = None) -> bool:
    """
    Initialize Logfire and instrument the tracker's I/O.

    Call once at startup, before any Stake requests are made.

    This function configures Logfire cloud tracking and instruments:
    - HTTPX clients (Stake GraphQL API)
    - The FastAPI app, when one is given
    - Python logging (bridges to Logfire)

    Returns:
        True if Logfire was configured, False if disabled or failed.
    """
    if not settings.logfire_token:
        logger.warning("Logfire token not set - observability disabled")
        return False

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="betstreak",
            service_version=__version__,
            environment=settings.environment,
        )

        logfire.instrument_httpx()

        if app is not None:
            logfire.instrument_fastapi(app)

        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        logger.info("✓ Logfire cloud tracking initialized")
        return True

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
        return False
