from __future__ import annotations
import logging
import os
from typing import Optional

from ..config import DEFAULT_LOG_LEVEL

_FORMAT = "[%(name)s] %(levelname)s %(message)s"
_configured = False


def configure(level: Optional[str] = None) -> None:
    """Install the package handler once; later calls only change the level."""
    global _configured
    level = (level or os.environ.get("COMICINDEX_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    root = logging.getLogger("comicindex")
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root.propagate = False
        _configured = True
    root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
