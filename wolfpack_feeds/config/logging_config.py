"""Logging configuration for loguru sinks and stdlib loggers."""
import logging
import sys
from typing import Optional

from loguru import logger

LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
    "{extra[source]: <10} | {message}"
)


def configure_logging(settings=None, level: Optional[str] = None) -> None:
    """
    Configure application logging.

    Replaces loguru's default sink with a stderr sink (and an optional
    rotating file sink), and points stdlib logging at the same level.

    Args:
        settings: Application settings; provides log_level, log_file, debug
        level: Explicit level override
    """
    log_level = level or (settings.log_level if settings is not None else "INFO")
    if settings is not None and settings.debug:
        log_level = "DEBUG"
    log_level = log_level.upper()

    logger.remove()
    logger.configure(extra={"source": "-"})
    logger.add(sys.stderr, level=log_level, format=LOG_FORMAT)

    log_file = settings.log_file if settings is not None else None
    if log_file:
        logger.add(
            log_file,
            level=log_level,
            format=LOG_FORMAT,
            rotation="10 MB",
            retention=5,
        )

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
