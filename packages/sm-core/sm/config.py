"""Configuration from environment variables."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from sm.errors import StoreLocationError

# Supported store formats
STORE_FORMATS = ("json", "yaml")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Defaults
DEFAULT_STORE_FORMAT = "json"
DEFAULT_LOG_LEVEL = "WARNING"

_FORMAT_SUFFIXES = {"json": ".json", "yaml": ".yaml"}


def get_store_format() -> str:
    """Return the configured store format.

    Reads ``SM_STORE_FORMAT``; defaults to ``json``.

    Raises:
        ValueError: If the format is not supported.
    """
    fmt = os.environ.get("SM_STORE_FORMAT", "").lower() or DEFAULT_STORE_FORMAT
    if fmt not in STORE_FORMATS:
        raise ValueError(f"Unsupported store format: {fmt!r}. Choose from {STORE_FORMATS}")
    return fmt


def get_log_level() -> str:
    """Return the log level from ``SM_LOG_LEVEL``, or ``WARNING``.

    Raises:
        ValueError: If the level is not a standard logging level name.
    """
    level = os.environ.get("SM_LOG_LEVEL", "").upper() or DEFAULT_LOG_LEVEL
    if level not in LOG_LEVELS:
        raise ValueError(f"Unsupported log level: {level!r}. Choose from {LOG_LEVELS}")
    return level


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for an entry point. Libraries never call this."""
    logging.basicConfig(
        level=level or get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def default_store_path(suffix: str | None = None) -> Path:
    """Return the default checkpoint location for the running program.

    ``SM_STORE_PATH`` wins when set. Otherwise the path is the running
    script with its extension replaced, so ``coin.py`` keeps its
    checkpoint in ``coin.json`` next to it.

    Raises:
        StoreLocationError: If the program has no script path (``python -c``,
            an interactive session, or stdin).
    """
    override = os.environ.get("SM_STORE_PATH")
    if override:
        return Path(override)

    if suffix is None:
        suffix = _FORMAT_SUFFIXES[get_store_format()]

    script = sys.argv[0] if sys.argv else ""
    if script in ("", "-c", "-"):
        raise StoreLocationError(
            "Can't derive a store location: no script path in sys.argv[0]. "
            "Pass a path explicitly or set SM_STORE_PATH."
        )
    path = Path(script).resolve()
    if not path.stem:
        raise StoreLocationError(f"Can't derive a store location from {script!r}")
    return path.with_suffix(suffix)
