# app/core/log_config.py

import logging
import sys

from app.core.config import settings

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

logger = logging.getLogger("app")


def setup_logging() -> None:
    """
    Configure application-wide logging.

    - Root level comes from settings.log_level (default: INFO)
    - Logs go to stdout
    - SQLAlchemy engine chatter is kept at WARNING
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # Uvicorn may have configured handlers already
    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
