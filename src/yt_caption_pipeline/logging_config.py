"""
logging_config.py — Loguru setup for the CLI and the API server.

Standard-library loggers (httpx, uvicorn) are routed into loguru so that
everything ends up in one stream with one format.  Library code never
calls setup_logging(); only the entry points do.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from loguru import logger


class InterceptHandler(logging.Handler):
    """Forward standard logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back past the logging module so loguru reports the real caller.
        frame = logging.currentframe()
        depth = 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(verbose: bool = False) -> None:
    """
    Send all log output to stderr through loguru.

    Args:
        verbose: Log at DEBUG instead of INFO, including httpx request lines.
    """
    logging.root.handlers = []
    logging.basicConfig(handlers=[InterceptHandler()], level=0)

    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    # httpx logs every request at INFO; only show that when asked.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)

    def add_defaults(record: dict[str, Any]) -> None:
        record["extra"].setdefault("video_id", "-")
        record["extra"].setdefault("request_id", "N/A")

    logger.remove()
    logger.configure(patcher=add_defaults)
    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<magenta>{extra[video_id]}</magenta> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
            "<level>{message}</level>"
        ),
        level="DEBUG" if verbose else "INFO",
    )
