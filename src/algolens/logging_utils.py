"""Process-wide logging for the algolens proxy.

``configure_logging`` is called once by the ``serve`` command before uvicorn starts.
Handlers it installs are tagged by name so a second call swaps them out instead of
stacking duplicates.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

__all__ = ["configure_logging", "resolve_log_dir"]

LOG_DIR_ENV = "ALGOLENS_LOG_DIR"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
_HANDLER_PREFIX = "algolens."

# httpx logs every request line at INFO
_QUIET_LOGGERS = ("httpx", "httpcore")


def resolve_log_dir(log_dir: Optional[Path] = None) -> Path:
    if log_dir:
        return Path(log_dir).expanduser()
    env_dir = os.environ.get(LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.cwd() / "logs"


def _level_number(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def _tag(handler: logging.Handler, kind: str) -> logging.Handler:
    handler.set_name(f"{_HANDLER_PREFIX}{kind}")
    return handler


def configure_logging(
    log_name: str,
    *,
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[Path] = None,
    console: bool = True,
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
) -> Path:
    """Send root logging to ``<log_dir>/<log_name>.log`` (rotated) and optionally stderr."""

    numeric = _level_number(level)
    directory = resolve_log_dir(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / f"{log_name}.log"

    root = logging.getLogger()
    for handler in list(root.handlers):
        if (handler.get_name() or "").startswith(_HANDLER_PREFIX):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [
        _tag(
            RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            ),
            "file",
        )
    ]
    if console:
        handlers.append(_tag(logging.StreamHandler(), "console"))

    for handler in handlers:
        handler.setLevel(numeric)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(numeric)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))

    return log_path
