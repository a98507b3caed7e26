"""
Logging configuration for the Digital Library API using Loguru.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from digital_library.config import DEBUG, LOG_DIR, LOG_LEVEL


def setup_logging(log_dir: Optional[str] = LOG_DIR):
    """Configure Loguru logging for the application."""

    # Remove default handler
    logger.remove()

    # Console logging
    logger.add(
        sink=sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level="DEBUG" if DEBUG else LOG_LEVEL,
        colorize=True,
        backtrace=True,
        diagnose=DEBUG,
    )

    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)

        # File logging - application logs
        logger.add(
            sink=directory / "app.log",
            rotation="500 MB",
            retention="10 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="DEBUG",
            backtrace=True,
            diagnose=DEBUG,
            enqueue=True,
            compression="zip"
        )

        # File logging - error logs only
        logger.add(
            sink=directory / "error.log",
            rotation="100 MB",
            retention="30 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="ERROR",
            backtrace=True,
            diagnose=False,
            enqueue=True,
            compression="zip"
        )

        # File logging - access logs (HTTP requests)
        logger.add(
            sink=directory / "access.log",
            rotation="200 MB",
            retention="7 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {message}",
            filter=lambda record: record["extra"].get("access_log", False),
            enqueue=True,
            compression="zip"
        )

    logger.info("Logging configuration completed")
    return logger


# Create a separate access logger
access_logger = logger.bind(access_log=True)


def get_access_logger():
    """Get the access logger instance."""
    return access_logger
