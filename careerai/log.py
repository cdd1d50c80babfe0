"""Logging setup shared by the API, the CLI and background discovery runs."""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_DEFAULT_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_FORMAT = "%(asctime)s  %(levelname)-8s  %(threadName)s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"

# HTTP client chatter drowns out pipeline logs at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3", "multipart")

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a named logger; configures root handlers on first call."""
    global _configured
    if not _configured:
        _configure()
        _configured = True
    return logging.getLogger(name)


def _level_from_env() -> int:
    level_name = os.environ.get("LOG_LEVEL", "INFO").strip().upper()
    return getattr(logging, level_name, logging.INFO)


def _file_handler(formatter: logging.Formatter) -> logging.Handler | None:
    log_dir = Path(os.environ.get("LOG_DIR", "").strip() or _DEFAULT_LOG_DIR)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(
            log_dir / f"careerai_{datetime.now().strftime('%Y-%m-%d')}.log", encoding="utf-8"
        )
    except OSError as exc:
        print(f"careerai: file logging disabled ({exc})", file=sys.stderr)
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def _configure() -> None:
    level = _level_from_env()
    root = logging.getLogger()
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    # already configured by the host process (e.g. uvicorn --log-config)
    if root.handlers:
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    fh = _file_handler(formatter)
    if fh is not None:
        root.addHandler(fh)
