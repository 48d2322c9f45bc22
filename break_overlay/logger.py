"""
Logging setup for the break overlay.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

LOG_DIR = Path(
    os.environ.get(
        "BREAK_OVERLAY_LOG_DIR",
        str(Path.home() / ".local" / "state" / "break-overlay"),
    )
)
DEFAULT_LOG_PATH = LOG_DIR / "break-overlay.log"
CONSOLE_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <7}</level> | {name}:{line} - {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | {process} | {name}:{function}:{line} - {message}"

_log_path: Optional[Path] = None
_console_sink: Optional[int] = None


def configure(log_path: Optional[Path] = None, *, console_level: str = "INFO") -> Path:
    """
    Configure loguru for the application and return the log file path.

    Sinks are only installed once: a console sink (skipped when there is no
    stderr, e.g. under pythonw) and a rotating file sink that always records
    DEBUG, so the grab retry sequence can be reconstructed after the fact.
    Later calls keep the file sink; use `set_console_level` to change
    console verbosity.
    """
    global _log_path
    if _log_path is not None:
        return _log_path

    target = log_path or DEFAULT_LOG_PATH
    target.parent.mkdir(parents=True, exist_ok=True)

    _logger.remove()
    _add_console_sink(console_level)
    _logger.add(
        target,
        level="DEBUG",
        format=FILE_FORMAT,
        rotation="5 MB",
        retention=3,
        encoding="utf-8",
        enqueue=True,
        diagnose=False,
    )
    _log_path = target
    return target


def set_console_level(level: str) -> None:
    configure()
    global _console_sink
    if _console_sink is not None:
        _logger.remove(_console_sink)
        _console_sink = None
    _add_console_sink(level)


def _add_console_sink(level: str) -> None:
    global _console_sink
    if sys.stderr is None:
        return
    _console_sink = _logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, enqueue=True)


def get_logger():
    """Return the shared logger instance."""
    configure()
    return _logger
