"""
Loguru logging configuration.

Development gets colorized console output; every other environment logs
JSON lines. All sinks carry the request correlation ID.
"""

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from core.correlation import get_correlation_id

if TYPE_CHECKING:
    from loguru import Record

LOG_DIR = Path("logs")
LOG_FILE = LOG_DIR / "civictrack.log"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[correlation_id]}</cyan> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def correlation_filter(record: "Record") -> bool:
    """
    Attach the correlation ID to a log record.

    Args:
        record: Loguru log record.

    Returns:
        Always True, records are never dropped.
    """
    record["extra"]["correlation_id"] = get_correlation_id() or "-"
    return True


def configure_logging(environment: str = "development") -> None:
    """
    Configure Loguru sinks for the given environment.

    Args:
        environment: "development" for console output, anything else for JSON.
            "test" skips the file sink.
    """
    logger.remove()
    is_dev = environment == "development"

    if is_dev:
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level="DEBUG",
            filter=correlation_filter,
            colorize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level="INFO",
            filter=correlation_filter,
            serialize=True,
        )

    if environment == "test":
        return

    LOG_DIR.mkdir(exist_ok=True)
    logger.add(
        str(LOG_FILE),
        format=CONSOLE_FORMAT if is_dev else "{message}",
        level="INFO",
        filter=correlation_filter,
        rotation="10 MB",
        retention="7 days",
        serialize=not is_dev,
    )
