"""Central logging setup for the project."""
from __future__ import annotations
import logging
import os
import sys

def level_from_env(default: int = logging.INFO) -> int:
    """Resolve LOG_LEVEL (name or number) to a logging level."""
    raw = os.getenv("LOG_LEVEL", "").strip()
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default

def setup_logging(level: int | None = None) -> None:
    """
    Configure root logger with sane defaults.

    Upstream request URLs carry the API key as a query parameter, so the
    httpx/httpcore request loggers are held at WARNING.

    Args:
        level: Logging level. Defaults to LOG_LEVEL from the environment.
    """
    if level is None:
        level = level_from_env()
    handler = logging.StreamHandler(sys.stdout)
    fmt = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
