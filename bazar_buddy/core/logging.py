"""Logging setup shared by the API, the scheduler and the CLI."""

import logging
import os
from typing import Optional

from rich.logging import RichHandler

from .config import settings

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

_configured = False


def _coerce_level(value: Optional[str]) -> int:
    if isinstance(value, str):
        return _LEVELS.get(value.upper().strip(), logging.INFO)
    return logging.INFO


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a rich console handler (and LOG_FILE, when set) to the package logger."""
    global _configured
    root = logging.getLogger("bazar_buddy")
    root.setLevel(_coerce_level(level or os.environ.get("LOG_LEVEL") or settings.log_level))
    if _configured:
        return

    console = RichHandler(rich_tracebacks=True, show_path=False)
    console.setFormatter(logging.Formatter("%(name)s: %(message)s", datefmt="[%X]"))
    root.addHandler(console)

    log_file = os.environ.get("LOG_FILE")
    if log_file:
        try:
            fh = logging.FileHandler(log_file, encoding="utf-8")
        except OSError:
            root.warning("LOG_FILE %s could not be opened; continuing without file logging", log_file)
        else:
            fh.setFormatter(logging.Formatter(
                "%(asctime)s [%(name)s] %(levelname)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            ))
            root.addHandler(fh)

    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package namespace."""
    if not name.startswith("bazar_buddy"):
        name = f"bazar_buddy.{name}"
    return logging.getLogger(name)
