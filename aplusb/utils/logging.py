from __future__ import annotations

import logging
import os
from typing import Optional

import coloredlogs

from .. import config as _cfg

_LOGGER_CREATED: dict[str, logging.Logger] = {}


def _resolve_level(level_name: Optional[str]) -> int:
    if not level_name:
        return logging.INFO
    name = str(level_name).upper()
    return getattr(logging, name, logging.INFO)


def get_logger(name: str = "aplusb") -> logging.Logger:
    if name in _LOGGER_CREATED:
        return _LOGGER_CREATED[name]
    logger = logging.getLogger(name)
    if not logger.handlers:
        level = _resolve_level(os.environ.get("APLUSB_LOG_LEVEL") or _cfg.get("APLUSB_LOG_LEVEL"))
        logger.setLevel(level)
        fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        coloredlogs.install(level=level, logger=logger, fmt=fmt)
        logger.propagate = False
    _LOGGER_CREATED[name] = logger
    return logger
