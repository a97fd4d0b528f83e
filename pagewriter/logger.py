"""Logging setup shared by the pagewriter modules.

Each module calls ``get_logger(__name__)``. The first call installs one
stream handler on the root logger unless the host application already set
up logging; ``PAGEWRITER_LOG_LEVEL`` picks its level (default INFO).
"""
from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL_ENV = "PAGEWRITER_LOG_LEVEL"


def _level_from_env() -> int:
    name = os.environ.get(LOG_LEVEL_ENV, "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=_level_from_env(), format=LOG_FORMAT)
    return logging.getLogger(name)
