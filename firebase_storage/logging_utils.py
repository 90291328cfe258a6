"""Logging helpers for applications embedding the storage client."""

import logging

from firebase_storage.const import MAX_LOGGED_URL_LENGTH

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
PACKAGE_LOGGER = "firebase_storage"


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Send the client's log records to stderr at the given level.

    Only the package logger is touched, so the host application's root
    configuration is left alone. Calling this again only changes the level.

    Returns:
        The configured package logger.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    if not any(
        getattr(handler, "_firebase_storage", False)
        for handler in package_logger.handlers
    ):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._firebase_storage = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)
        # Records are already written here; avoid printing them twice
        package_logger.propagate = False
    return package_logger


def shorten_url(url: str) -> str:
    """Truncate long session URLs so log lines stay readable."""
    if len(url) > MAX_LOGGED_URL_LENGTH:
        return url[:MAX_LOGGED_URL_LENGTH] + "..."
    return url
