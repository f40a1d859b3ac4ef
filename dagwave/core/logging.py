"""Loguru setup shared by library users and tests."""

import sys

from loguru import logger

from dagwave.core.config import Settings, get_settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def configure_logging(settings: Settings | None = None) -> None:
    """Configure loguru based on settings.

    Removes the default handler, then installs a console sink and, when
    ``DAGWAVE_LOG_FILE`` is set, a file sink rotated daily.

    Args:
        settings: Optional settings override. Uses default if not provided.
    """
    settings = settings or get_settings()

    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        level=settings.effective_log_level,
        format=LOG_FORMAT,
        colorize=True,
    )

    if settings.dagwave_log_file:
        logger.add(
            settings.dagwave_log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.dagwave_log_level,
            format=LOG_FORMAT,
        )

    logger.debug(f"Logging configured at {settings.effective_log_level}")
