# ============================================
#   Watch Party — Central logger
# ============================================

import os
import logging
from logging.handlers import TimedRotatingFileHandler

from watchparty.config import IS_PROD, LOG_FILE

ROOT_LOGGER_NAME = os.getenv("WATCHPARTY_LOGGER_NAME", "watchparty")

LOG_LEVEL = os.getenv("WATCHPARTY_LOG_LEVEL", "INFO").upper()

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _configure_root_logger() -> logging.Logger:
    """
    Configure the root Watch Party logger once (idempotent).

    Records go to a file rotated at midnight (30 days kept); outside
    prod they are mirrored to stderr, where the dev server prints.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if root.handlers:
        return root

    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers = [
        TimedRotatingFileHandler(LOG_FILE, when="midnight", backupCount=30, encoding="utf-8"),
    ]
    if not IS_PROD:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, meant to be bound once at import:

        logger = get_logger(__name__)

    Package modules ("watchparty.coordinator") and bare names ("app")
    both end up under the root: watchparty.coordinator, watchparty.app.
    """
    root = _configure_root_logger()

    if name == "__main__":
        name = "app"
    prefix = ROOT_LOGGER_NAME + "."
    if name.startswith(prefix):
        name = name[len(prefix):]

    return root.getChild(name)
