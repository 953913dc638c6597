"""Checkpoint stores: load, save and clean the durable record."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol, Union

from sm.config import default_store_path, get_store_format
from sm.errors import PersistenceError
from sm.models.checkpoint import Checkpoint
from sm.runner.codec import StateCodec
from sm.utils.record_io import atomic_write_text, dumps_record, loads_record

logger = logging.getLogger(__name__)


class Store(Protocol):
    """Protocol for checkpoint persistence.

    One store is bound to one location, and one location holds at most one
    checkpoint. ``clean()`` on a location with no record raises
    ``PersistenceError``. The engine only cleans a record it loaded or
    wrote, so a missing one points at a second writer.
    """

    def load(self) -> Checkpoint[Any] | None: ...
    def save(self, checkpoint: Checkpoint[Any]) -> None: ...
    def clean(self) -> None: ...


class InMemoryStore:
    """In-memory store, lost on process exit.

    Records are kept encoded, so a load returns fresh objects and goes
    through the same codec as a file store.
    """

    def __init__(self, state_type: Any) -> None:
        self.codec: StateCodec[Any] = StateCodec(state_type)
        self._record: str | None = None

    @property
    def location(self) -> str:
        return "<memory>"

    def load(self) -> Checkpoint[Any] | None:
        if self._record is None:
            return None
        return self.codec.load_checkpoint(json.loads(self._record))

    def save(self, checkpoint: Checkpoint[Any]) -> None:
        self._record = json.dumps(self.codec.dump_checkpoint(checkpoint))

    def clean(self) -> None:
        if self._record is None:
            raise PersistenceError("can't remove record: store is empty")
        self._record = None


class _FileStore:
    """Base for stores keeping the checkpoint in a single file.

    Writes go to a temp file in the same directory and are moved into place
    with ``os.replace``, so a crash mid-save leaves the previous record.
    """

    format_name = "json"
    default_suffix = ".json"

    def __init__(self, state_type: Any, path: str | Path | None = None):
        self.codec: StateCodec[Any] = StateCodec(state_type)
        self.path = Path(path) if path is not None else default_store_path(self.default_suffix)

    @property
    def location(self) -> str:
        return str(self.path)

    def with_path(self, path: str | Path) -> _FileStore:
        """Point the store at *path* instead of the default location."""
        self.path = Path(path)
        return self

    def load(self) -> Checkpoint[Any] | None:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No checkpoint at %s", self.path)
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"can't read file `{self.path}`") from exc

        try:
            data = loads_record(text, self.format_name)
        except ValueError as exc:
            raise PersistenceError(f"can't decode {self.format_name}: {text}") from exc
        checkpoint = self.codec.load_checkpoint(data)
        logger.debug("Loaded checkpoint from %s", self.path)
        return checkpoint

    def save(self, checkpoint: Checkpoint[Any]) -> None:
        text = dumps_record(self.codec.dump_checkpoint(checkpoint), self.format_name)
        try:
            atomic_write_text(self.path, text)
        except OSError as exc:
            raise PersistenceError(f"can't write file `{self.path}`") from exc
        logger.debug("Saved checkpoint to %s", self.path)

    def clean(self) -> None:
        try:
            self.path.unlink()
        except OSError as exc:
            raise PersistenceError(f"can't remove file `{self.path}`") from exc
        logger.debug("Removed checkpoint %s", self.path)


class JsonStore(_FileStore):
    """File store writing pretty-printed JSON."""

    format_name = "json"
    default_suffix = ".json"


class YamlStore(_FileStore):
    """File store writing YAML."""

    format_name = "yaml"
    default_suffix = ".yaml"


def default_store(state_type: Any, path: str | Path | None = None) -> Union[JsonStore, YamlStore]:
    """Build the store selected by ``SM_STORE_FORMAT`` (JSON unless set)."""
    if get_store_format() == "yaml":
        return YamlStore(state_type, path)
    return JsonStore(state_type, path)

