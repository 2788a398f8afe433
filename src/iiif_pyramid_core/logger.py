"""Logging for the ``iiif_pyramid`` namespace.

Modules log through :func:`get_logger`; handlers hang only off the namespace
root and are attached by :func:`setup_logging`, which the CLI calls once at
start-up. Console records go to stderr so ``--json`` output on stdout stays
parseable. Nothing touches the filesystem at import time.
"""

from __future__ import annotations

import logging
import re
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

NAMESPACE = "iiif_pyramid"
LOG_FILE_NAME = "iiif-pyramid.log"
_PACKAGES = ("iiif_pyramid_core", "iiif_pyramid_cli")

CONSOLE_FORMAT = logging.Formatter("%(levelname)s | %(name)s | %(message)s")
FILE_FORMAT = logging.Formatter(
    "%(asctime)s [%(levelname)s] [%(name)s.%(funcName)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app_logger = logging.getLogger(NAMESPACE)

_WHITESPACE = re.compile(r"\s+")


def _file_handler() -> logging.FileHandler | None:
    for handler in app_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return handler
    return None


def setup_logging(level: str | None = None, log_dir: Path | None = None) -> Path | None:
    """Attach console and rotating-file handlers to the namespace logger.

    `level` overrides ``settings.logging.level``; `log_dir` overrides
    ``paths.logs_dir``. Repeated calls only adjust the level. Returns the log
    file in use, or None when file logging is off or the folder is not
    writable.
    """
    from .config_manager import get_config_manager

    cm = get_config_manager()
    level_name = str(level or cm.get_setting("logging.level", "INFO") or "INFO").upper()
    effective = getattr(logging, level_name, logging.INFO)
    app_logger.setLevel(effective)

    if app_logger.handlers:
        for handler in app_logger.handlers:
            handler.setLevel(effective)
        current = _file_handler()
        return Path(current.baseFilename) if current else None

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(CONSOLE_FORMAT)
    console.setLevel(effective)
    app_logger.addHandler(console)

    if not cm.get_setting("logging.to_file", True):
        return None

    log_file = (log_dir or cm.get_logs_dir()) / LOG_FILE_NAME
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(log_file, when="midnight", backupCount=30, encoding="utf-8")
    except OSError as exc:
        app_logger.warning("File logging disabled, cannot write %s: %s", log_file, exc)
        return None
    file_handler.setFormatter(FILE_FORMAT)
    file_handler.setLevel(effective)
    app_logger.addHandler(file_handler)

    app_logger.debug("Logging at %s to %s", level_name, log_file)
    return log_file


def preview_body(text: str, limit: int = 200) -> str:
    """One-line preview of a response body, e.g. an HTML error page served as info.json."""
    flat = _WHITESPACE.sub(" ", text or "").strip()
    if len(flat) <= limit:
        return flat
    return f"{flat[:limit]}... ({len(flat)} chars)"


def get_logger(name: str) -> logging.Logger:
    """Logger for module `name`, reparented under ``iiif_pyramid``.

    ``iiif_pyramid_core.resolver`` becomes ``iiif_pyramid.resolver``.
    """
    head, _, tail = name.partition(".")
    if head in _PACKAGES:
        name = tail or head
    if name == NAMESPACE or name.startswith(f"{NAMESPACE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{NAMESPACE}.{name}")
