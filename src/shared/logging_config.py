"""
Logging setup for the workspace processes.

Call configure_logging() once at startup (web app, sync server, launcher).
"""
import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _level_from_env(default: int) -> int:
    name = os.environ.get("TEAMSYNC_LOG_LEVEL", "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def configure_logging(level: Optional[int] = None) -> None:
    """Configure root logger; TEAMSYNC_LOG_LEVEL overrides the default level."""
    logging.basicConfig(
        level=level if level is not None else _level_from_env(logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    # Sync polling would otherwise log every request
    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
