"""Toss two coins and make sure they landed on the same side.

The first run may fail with "Coins landed differently". Run it again with
``--ack`` to retoss only the second coin; the first one is remembered in
the checkpoint next to this script (``coin.json``).
"""

from __future__ import annotations

import random
from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

import typer
from pydantic import Field

from sm.config import configure_logging
from sm.errors import StepMachineError
from sm.models.state import Step, StepResult
from sm.runner.engine import Engine
from sm.runner.store import JsonStore


class Coin(str, Enum):
    heads = "heads"
    tails = "tails"


def toss() -> Coin:
    return random.choice([Coin.heads, Coin.tails])


class FirstToss(Step):
    kind: Literal["first_toss"] = "first_toss"

    def next(self) -> StepResult:
        first_coin = toss()
        typer.echo(f"First coin: {first_coin.value}")
        return SecondToss(first_coin=first_coin)


class SecondToss(Step):
    kind: Literal["second_toss"] = "second_toss"
    first_coin: Coin

    def next(self) -> StepResult:
        second_coin = toss()
        typer.echo(f"Second coin: {second_coin.value}")
        if second_coin != self.first_coin:
            raise ValueError("Coins landed differently")
        typer.echo("Coins match")
        return None


Machine = Annotated[Union[FirstToss, SecondToss], Field(discriminator="kind")]

app = typer.Typer(name="coin", help="Two coin tosses as a resumable machine")


@app.command()
def main(
    ack: bool = typer.Option(False, "--ack", help="Drop the previous error and retry"),
    store_path: Path = typer.Option(None, "--store", help="Checkpoint file (default: next to this script)"),
) -> None:
    """Toss the coins, resuming where the last run stopped."""
    configure_logging()
    store = JsonStore(Machine, store_path)
    engine = Engine(Machine, FirstToss(), store)
    try:
        engine.restore()
        if ack:
            engine.drop_error()
        engine.run()
    except StepMachineError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
