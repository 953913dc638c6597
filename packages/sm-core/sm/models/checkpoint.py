"""Checkpoint: the durable record of where a machine stands."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

StateT = TypeVar("StateT")


class Checkpoint(Generic[StateT]):
    """The current state plus an optional pending error.

    ``error`` is only set after a failed transition and until it is
    explicitly dropped. While it is set, ``state`` is the step that failed,
    as it was before the attempt.
    """

    def __init__(self, state: StateT, error: str | None = None):
        self.state = state
        self.error = error

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self, encoded_state: Any) -> dict[str, Any]:
        return {"state": encoded_state, "error": self.error}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Checkpoint):
            return NotImplemented
        return self.state == other.state and self.error == other.error

    def __repr__(self) -> str:
        return f"Checkpoint(state={self.state!r}, error={self.error!r})"
