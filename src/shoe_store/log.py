"""Logging setup shared by the CLI, the sync layer and the details server."""
import logging
import os
import sys
from typing import Optional

_configured = False

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once. LOG_LEVEL is used when no level is given."""
    global _configured
    if _configured:
        return

    level_name = (level or os.getenv("LOG_LEVEL", "WARNING")).upper()
    log_level = getattr(logging, level_name, logging.WARNING)

    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid duplicate handlers when embedded (uvicorn, pytest)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)
