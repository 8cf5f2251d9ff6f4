# booking/utils/my_logging.py
"""Logging configuration shared by the API process and the Celery worker"""
import logging
import sys
from booking.config.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers, kept at ERROR outside verbose mode
NOISY_LOGGERS = [
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
    "celery",
    "kombu",
    "twilio.http_client",
    "httpx",
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
]


def setup_logging(verbose=True):
    """
    Configure application logging.

    verbose=True logs at LOG_LEVEL (unknown names fall back to INFO);
    otherwise only warnings from booking.* and errors from NOISY_LOGGERS.
    """
    settings = get_settings()

    if verbose:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    logging.getLogger("booking").setLevel(level)

    if not verbose:
        for name in NOISY_LOGGERS:
            logger = logging.getLogger(name)
            logger.setLevel(logging.ERROR)
            logger.propagate = False
