"""Process-wide logging setup for the assistant (stdlib only).

Console output goes to stdout at ``LOG_LEVEL`` (default INFO). A daily file
under ``logs/`` records DEBUG and above unless ``JOBAPPLY_LOG_DIR`` is set to
an empty string.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_DEFAULT_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a named logger; configures root handlers on first call."""
    global _configured
    if not _configured:
        _configure()
        _configured = True
    return logging.getLogger(name)


def set_console_level(level_name: str) -> None:
    """Change the console verbosity after startup (CLI ``--log-level``)."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    root = logging.getLogger()
    if root.level > level:
        root.setLevel(level)
    for handler in root.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)


def _log_dir() -> Path | None:
    raw = os.environ.get("JOBAPPLY_LOG_DIR")
    if raw is None:
        return _DEFAULT_LOG_DIR
    raw = raw.strip()
    return Path(raw).expanduser() if raw else None


def _configure() -> None:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(min(level, logging.DEBUG))

    if root.handlers:
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    log_dir = _log_dir()
    if log_dir is None:
        return
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"assistant_{datetime.now().strftime('%Y-%m-%d')}.log"
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        root.addHandler(fh)
    except OSError:
        pass
