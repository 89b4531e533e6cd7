# =============================================
# File: cacheserver/utils/logging.py
# Purpose: Logging configuration (loguru file sink)
# =============================================
from __future__ import annotations
import os

from loguru import logger

_sink_id: int | None = None

def configure_logging(log_file: str | None = None) -> None:
    """Attach the rotating file sink once. An empty LOG_FILE disables it."""
    global _sink_id
    path = log_file if log_file is not None else os.getenv("LOG_FILE", "logs/app.log")
    if _sink_id is not None or not path:
        return
    _sink_id = logger.add(path, rotation="10 MB", level=os.getenv("LOG_LEVEL", "INFO").upper())
