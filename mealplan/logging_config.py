"""
Logging setup for the mealplan service.

``mealplan.main`` calls `configure_logging()` once on import.  Library modules
only do ``logger = logging.getLogger(__name__)`` and attach context with
``extra={...}``; they never install handlers themselves.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Chatty dependencies kept at WARNING whatever the service level is
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "werkzeug")


def configure_logging(level: str = "INFO") -> None:
    """Send every record to stdout at *level*, replacing existing root handlers."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers = [handler]

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
