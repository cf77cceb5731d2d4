"""Logging setup for the encodly command line."""

from __future__ import annotations

import logging
from typing import Optional

from .config import Config


def setup_logging(config: type[Config] = Config, level: Optional[str] = None) -> None:
    """Configure the root logger from configuration.

    Args:
        config: Configuration class providing LOG_LEVEL and LOG_FORMAT.
        level: Optional level name overriding ``config.LOG_LEVEL``.
    """
    level_name = (level or config.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format=config.LOG_FORMAT,
        force=True,
    )

    # Pillow logs every plugin import at DEBUG
    logging.getLogger("PIL").setLevel(logging.INFO)
