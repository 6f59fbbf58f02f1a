"""Structured JSON logging shared by every module."""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once with a JSON stream handler."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in root.handlers:
        if getattr(handler, "_crm_engine", False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(_LOG_FORMAT))
    handler._crm_engine = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    # uvicorn installs its own access handler; keep its lines out of ours
    logging.getLogger("uvicorn.access").propagate = False


def get_logger(name: str) -> logging.Logger:
    """Return a named logger; configuration lives on the root logger."""
    return logging.getLogger(name)
