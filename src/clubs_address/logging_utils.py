from __future__ import annotations

import logging
import os
from typing import Optional

from .config_loader import AppConfig

LOG_LEVEL_ENV = "CLUBS_ADDRESS_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def level_from_name(level_name: Optional[str], default: int = logging.WARNING) -> int:
    """Numeric level for a name such as ``"debug"`` or ``"10"``; unknown names map to ``default``."""
    candidate = (level_name or "").strip().upper()
    if not candidate:
        return default
    if candidate.isdigit():
        return int(candidate)
    value = logging.getLevelName(candidate)
    return value if isinstance(value, int) else default


def configure_logging(config: AppConfig, level_override: Optional[str] = None) -> int:
    """
    Set the root logger level. The first of these that is set wins:

    1. ``CLUBS_ADDRESS_LOG_LEVEL`` environment variable
    2. ``level_override`` (the ``--log-level`` flag)
    3. ``logging.level`` from the YAML config
    4. ``WARNING``

    Returns the level that was applied.
    """
    level_name = os.getenv(LOG_LEVEL_ENV) or level_override or config.logging.level
    level = level_from_name(level_name)

    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.setLevel(level)
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    return level
