"""Runner engine: run a machine's steps with a checkpoint after each one."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Generic, TypeVar

from sm.errors import PendingErrorRefused, PersistenceError, StepFailed, format_error_chain
from sm.models.checkpoint import Checkpoint
from sm.runner.codec import StateCodec
from sm.runner.store import Store, default_store

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT")


class EngineStatus(str, Enum):
    fresh = "fresh"
    restored = "restored"
    running = "running"
    completed = "completed"
    failed = "failed"


class Engine(Generic[StateT]):
    """Drives a machine from its current step to completion.

    The engine owns one checkpoint and one store. Every transition attempt
    ends in exactly one durable write. Completion deletes the record, if
    one was loaded or written; a machine that finishes on its first step
    leaves the store untouched. A failed step is rolled back, recorded, and blocks further runs until
    ``drop_error()`` is called.
    """

    def __init__(
        self,
        state_type: Any,
        initial_state: StateT,
        store: Store | None = None,
    ):
        self._codec: StateCodec[StateT] = StateCodec(state_type)
        self._store = store if store is not None else default_store(state_type)
        self._checkpoint: Checkpoint[StateT] = Checkpoint(initial_state)
        self._status = EngineStatus.fresh
        # Whether the store holds a record this engine loaded or wrote
        self._has_record = False

    @property
    def checkpoint(self) -> Checkpoint[StateT]:
        return self._checkpoint

    @property
    def state(self) -> StateT:
        return self._checkpoint.state

    @property
    def error(self) -> str | None:
        return self._checkpoint.error

    @property
    def status(self) -> EngineStatus:
        return self._status

    @property
    def store(self) -> Store:
        return self._store

    def restore(self) -> Engine[StateT]:
        """Replace the in-memory checkpoint with the stored one, if any."""
        checkpoint = self._store.load()
        if checkpoint is not None:
            logger.info("Restored step %r (error: %s)", checkpoint.state, checkpoint.error)
            self._checkpoint = checkpoint
            self._has_record = True
        if self._status is EngineStatus.fresh:
            self._status = EngineStatus.restored
        return self

    def drop_error(self) -> Engine[StateT]:
        """Acknowledge a previous failure so the failed step runs again."""
        if self._checkpoint.error is not None:
            logger.info("Dropping previous error: %s", self._checkpoint.error)
        self._checkpoint.error = None
        self._save()
        return self

    def run(self) -> None:
        """Run all steps to completion.

        Raises:
            PendingErrorRefused: If the checkpoint still holds an error.
            StepFailed: If a step raises. The step is rolled back and the
                error is persisted before this is raised.
            PersistenceError: If the store or codec fails.
        """
        if self._checkpoint.failed:
            self._status = EngineStatus.failed
            raise PendingErrorRefused(self._checkpoint.error, self._checkpoint.state)

        self._status = EngineStatus.running
        try:
            self._run_steps()
        except PersistenceError:
            self._status = EngineStatus.failed
            raise

    def _run_steps(self) -> None:
        while True:
            state = self._checkpoint.state
            logger.info("Running step: %r", state)
            backup = self._codec.snapshot(state)
            try:
                next_state = state.next()
            except Exception as exc:
                self._checkpoint.state = self._codec.restore(backup)
                error = format_error_chain(exc)
                self._checkpoint.error = error
                self._status = EngineStatus.failed
                logger.warning("Step %r failed: %s", self._checkpoint.state, error)
                self._save()
                raise StepFailed(error, self._checkpoint.state) from exc

            if next_state is None:
                logger.info("Finished successfully")
                if self._has_record:
                    self._store.clean()
                    self._has_record = False
                self._status = EngineStatus.completed
                return

            self._checkpoint.state = next_state
            self._save()

    def _save(self) -> None:
        self._store.save(self._checkpoint)
        self._has_record = True


def run_machine(
    state_type: Any,
    initial_state: StateT,
    store: Store | None = None,
    drop_error: bool = False,
) -> Engine[StateT]:
    """Restore a machine, optionally acknowledge its last error, and run it.

    Returns the engine after a successful run. Failures propagate as
    ``StepFailed`` or ``PersistenceError``.
    """
    engine = Engine(state_type, initial_state, store).restore()
    if drop_error:
        engine.drop_error()
    engine.run()
    return engine
