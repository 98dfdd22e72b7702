"""Logging configuration."""

from typing import Optional
import logging

from .settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the root logging configuration, defaulting to LOG_LEVEL."""
    level = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT
    )
    # supabase's HTTP layer is chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
