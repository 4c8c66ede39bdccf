"""Centralized loguru configuration."""
from __future__ import annotations

import sys
from typing import Optional

from loguru import logger

from .config import load_settings

log_format = " | ".join(
    (
        "<lk>{time:YYYY-MM-DD HH:mm:ss.SSS}</>",
        "<lvl>{level:<8}</>",
        "<c>{name}::{function}:{line}</>",
        "{message}",
    )
)


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Replace loguru's default handler with the project's sinks."""

    settings = load_settings()
    level = (level or settings.log_level).upper()
    log_file = log_file or settings.log_file

    logger.remove()
    logger.add(sys.stderr, format=log_format, level=level)
    if log_file:
        logger.add(
            log_file,
            format=log_format,
            level=level,
            rotation="1 day",
            retention="30 days",
            compression="zip",
            enqueue=True,
        )


__all__ = ["configure_logging", "logger"]
