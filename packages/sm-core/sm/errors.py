"""Error types raised by the engine and the stores."""

from __future__ import annotations

from typing import Any


class StepMachineError(Exception):
    """Base class for all step-machine errors."""


class PersistenceError(StepMachineError):
    """A store or codec failure. The durability guarantee may be broken."""


class StoreLocationError(StepMachineError):
    """The default store location cannot be derived."""


class StepFailed(StepMachineError):
    """A step raised during its transition.

    The state is rolled back and the formatted error is recorded in the
    checkpoint. Further runs are refused until the error is dropped.
    """

    def __init__(self, error: str, state: Any = None) -> None:
        super().__init__(error)
        self.error = error
        self.state = state


class PendingErrorRefused(StepFailed):
    """Raised by ``Engine.run()`` when the checkpoint still holds an error."""

    def __init__(self, error: str, state: Any = None) -> None:
        message = f"Previous run resulted in an error: {error} on step: {state!r}"
        super().__init__(message, state)
        self.previous_error = error


def format_error_chain(exc: BaseException) -> str:
    """Format *exc* with its causes, one ``Caused by`` line per cause.

    Explicit causes (``raise ... from``) are followed first, then implicit
    context unless it was suppressed.
    """
    text = _describe(exc)
    causes = list(_iter_causes(exc))
    if causes:
        text += "\nCaused by:"
        for cause in causes:
            text += f"\n\t{_describe(cause)}"
    return text


def _iter_causes(exc: BaseException):
    seen = {id(exc)}
    current = _next_cause(exc)
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = _next_cause(current)


def _next_cause(exc: BaseException) -> BaseException | None:
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__suppress_context__:
        return None
    return exc.__context__


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__
