import logging
import sys
from typing import TextIO

import structlog
from sentinel.core.config import get_settings


def setup_logging(stream: TextIO = None):
    """
    JSON lines to stdout by default. The CLI passes stderr so its own
    stdout stays a clean JSON document.
    """
    settings = get_settings()
    level = logging.getLevelName(settings.log_level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=level,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=settings.service_name)


def get_logger():
    return structlog.get_logger()
