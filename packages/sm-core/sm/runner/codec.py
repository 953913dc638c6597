"""Codec: encode and decode steps and checkpoints in their tagged form."""

from __future__ import annotations

import json
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from sm.errors import PersistenceError
from sm.models.checkpoint import Checkpoint

StateT = TypeVar("StateT")


class StateCodec(Generic[StateT]):
    """Converts states of one machine to and from plain data.

    *state_type* is the machine's discriminated union (or a single ``Step``
    subclass for one-step machines). Encoded data is checked to decode back
    through it, so a step that returns a foreign state is caught at the next
    save instead of at the next restore.
    """

    def __init__(self, state_type: Any):
        self.state_type = state_type
        self._adapter: TypeAdapter[Any] = TypeAdapter(state_type)

    def encode(self, state: StateT) -> Any:
        """Return the JSON-compatible form of *state*."""
        try:
            if isinstance(state, BaseModel):
                data = state.model_dump(mode="json")
            else:
                data = self._adapter.dump_python(state, mode="json")
            self._adapter.validate_python(data)
            return data
        except (ValidationError, PydanticSerializationError) as exc:
            raise PersistenceError(f"can't encode state: {state!r}") from exc

    def decode(self, data: Any) -> StateT:
        """Build a state back from its JSON-compatible form."""
        try:
            return self._adapter.validate_python(data)
        except ValidationError as exc:
            raise PersistenceError(f"can't decode state: {data!r}") from exc

    def snapshot(self, state: StateT) -> str:
        """Serialize *state* to text, for rolling back a failed attempt."""
        return json.dumps(self.encode(state))

    def restore(self, snapshot: str) -> StateT:
        return self.decode(json.loads(snapshot))

    def dump_checkpoint(self, checkpoint: Checkpoint[StateT]) -> dict[str, Any]:
        return checkpoint.to_dict(self.encode(checkpoint.state))

    def load_checkpoint(self, data: Any) -> Checkpoint[StateT]:
        """Build a checkpoint from a decoded record.

        Raises:
            PersistenceError: If the record is not a ``{state, error}`` mapping
                or the state does not match any variant.
        """
        if not isinstance(data, dict) or "state" not in data:
            raise PersistenceError(f"can't decode checkpoint: {data!r}")
        error = data.get("error")
        if error is not None and not isinstance(error, str):
            raise PersistenceError(f"can't decode checkpoint: error must be a string, got {error!r}")
        return Checkpoint(state=self.decode(data["state"]), error=error)
