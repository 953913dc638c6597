"""Shared test fixtures."""

from __future__ import annotations

from typing import Any

import pytest


class ScriptedCoins:
    """Deterministic stand-in for ``coin.toss``.

    Set ``results`` to the sides to return in order. Keeps a count of
    tosses in ``calls`` so tests can check no extra toss happened.
    """

    def __init__(self, *results: Any) -> None:
        self.results = list(results)
        self.calls = 0

    def __call__(self) -> Any:
        self.calls += 1
        return self.results.pop(0)


@pytest.fixture
def scripted_coins(monkeypatch):
    """Patch ``coin.toss`` with a ScriptedCoins and return it."""
    import coin

    coins = ScriptedCoins()
    monkeypatch.setattr(coin, "toss", coins)
    return coins


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's SM_* settings out of the tests."""
    for name in ("SM_STORE_PATH", "SM_STORE_FORMAT", "SM_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
