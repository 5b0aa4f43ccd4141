"""Logging configuration."""

import re
import sys

from loguru import logger

from settings import LOG_DIR

_SECRET = re.compile(r"(Bearer\s+|apikey['\"]?\s*[:=]\s*['\"]?)([A-Za-z0-9._\-]{8,})")


def _redact(record) -> None:
    """Mask API keys and bearer tokens before any sink sees the message."""
    record["message"] = _SECRET.sub(lambda m: m.group(1) + "***", record["message"])


def setup_logging(level: str = "INFO", to_file: bool = True):
    """Configure stderr output and an optional daily log file."""
    logger.remove()
    logger.configure(patcher=_redact)

    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | <cyan>{name}</cyan> | {message}",
        level=level,
        colorize=True,
    )

    if to_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        logger.add(
            LOG_DIR / "ballot_{time:YYYY-MM-DD}.log",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {name}:{function}:{line} | {message}",
            level="DEBUG",
            rotation="00:00",
            retention="14 days",
            compression="gz",
        )
        logger.info("Logging to {}", LOG_DIR)

    return logger
