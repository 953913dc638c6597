"""Raw checkpoint record I/O, for tools that don't know the machine's steps."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

YAML_SUFFIXES = (".yaml", ".yml")


def format_for_path(path: Path) -> str:
    """Return ``yaml`` for YAML suffixes, ``json`` for anything else."""
    return "yaml" if path.suffix.lower() in YAML_SUFFIXES else "json"


def dumps_record(data: dict[str, Any], fmt: str) -> str:
    """Serialize a record as ``json`` (pretty-printed) or ``yaml``."""
    if fmt == "yaml":
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return json.dumps(data, indent=2, ensure_ascii=False)


def loads_record(text: str, fmt: str) -> Any:
    """Parse a record; raises ``ValueError`` on malformed input."""
    if fmt == "yaml":
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(str(exc)) from exc
    return json.loads(text)


def load_record(path: Path) -> Any | None:
    """Load the record at *path*, or *None* if there is none."""
    if not path.exists():
        return None
    return loads_record(path.read_text(encoding="utf-8"), format_for_path(path))


def save_record(data: dict[str, Any], path: Path) -> None:
    atomic_write_text(path, dumps_record(data, format_for_path(path)))


def atomic_write_text(path: Path, content: str) -> None:
    """Write *content* to *path* atomically.

    Writes a temp file in the same directory, then renames it into place
    with ``os.replace``, so readers never see a partial record.
    """
    directory = path.parent if str(path.parent) else Path(".")
    fd, tmp_path = tempfile.mkstemp(dir=str(directory), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
