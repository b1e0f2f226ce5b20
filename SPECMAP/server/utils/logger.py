from __future__ import annotations

import logging
import os

LOGGER_NAME = "SPECMAP"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_LEVEL_VARIABLE = "SPECMAP_LOG_LEVEL"


# -----------------------------------------------------------------------------
def build_logger(name: str = LOGGER_NAME) -> logging.Logger:
    instance = logging.getLogger(name)
    if not instance.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        instance.addHandler(handler)
    level_name = os.getenv(LOG_LEVEL_VARIABLE, "INFO").strip().upper()
    instance.setLevel(getattr(logging, level_name, logging.INFO))
    instance.propagate = False
    return instance


logger = build_logger()

__all__ = ["build_logger", "logger"]
