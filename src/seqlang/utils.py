from __future__ import annotations

import logging
import os as _os
from typing import Optional

DEFAULT_REPLAY = 100

_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


def debug_py_trace_enabled() -> bool:
    """True when SEQLANG_DEBUG_PY_TRACE asks for Python tracebacks on errors."""
    raw = _os.environ.get("SEQLANG_DEBUG_PY_TRACE", "")
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def default_replay_size() -> int:
    raw = _os.environ.get("SEQLANG_REPLAY")
    if raw is None:
        return DEFAULT_REPLAY

    try:
        return max(0, int(raw.strip()))
    except ValueError:
        return DEFAULT_REPLAY


def log_level_from_env(default: int = logging.WARNING) -> int:
    raw = _os.environ.get("SEQLANG_LOG_LEVEL")
    if not raw:
        return default

    raw = raw.strip()
    if raw.isdigit():
        return int(raw)

    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


def configure_logging(level: Optional[int] = None) -> None:
    """Set up root logging for the command-line entry points."""
    logging.basicConfig(
        level=log_level_from_env() if level is None else level,
        format=_LOG_FORMAT,
    )
