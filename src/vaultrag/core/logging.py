import sys
import logging
from typing import Optional

import structlog
from vaultrag.config import settings

# Embedding backends log every HTTP request / model download at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3", "fastembed")


def setup_logging(level: Optional[str] = None):
    """
    Configures structured logging.
    - JSON for Production (log shipping friendly)
    - Colorful text for Local Dev

    Logs go to stderr so CLI output on stdout stays clean.
    """
    level = (level or settings.LOG_LEVEL).upper()

    # 1. Set the underlying standard logging level
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, logging.getLevelName(level)))

    # 2. Shared processors (logger name, level, timestamp, exceptions)
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    # 3. Renderer depends on environment
    if settings.APP_ENV == "production":
        processors = shared_processors + [
            structlog.processors.JSONRenderer()
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer()
        ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    """Return a logger bound with the module name"""
    return structlog.get_logger(name)


def log_context(**values):
    """
    Bind ``values`` (e.g. the embedding model identity) to every event logged
    inside the ``with`` block, including events from nested calls.
    """
    return structlog.contextvars.bound_contextvars(**values)
