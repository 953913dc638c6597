"""CLI: inspect and acknowledge checkpoint records."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer

app = typer.Typer(name="sm", help="Step machine checkpoint tool")


@app.command()
def show(
    path: Path = typer.Argument(..., help="Path to checkpoint file"),
    json_output: bool = typer.Option(False, "--json", help="Output raw JSON"),
) -> None:
    """Show the step a machine will resume at and any pending error."""
    data = _load_or_exit(path)
    if data is None:
        typer.echo(f"No checkpoint at {path}")
        return

    if json_output:
        typer.echo(json.dumps(data, indent=2))
        return

    state = dict(data["state"])
    kind = state.pop("kind")
    typer.echo(f"Step: {kind}")
    if state:
        typer.echo(f"Fields: {json.dumps(state, indent=2)}")
    if data.get("error"):
        typer.echo(f"Error: {data['error']}")
        typer.echo("Run `sm drop-error` once the cause is fixed.")
    else:
        typer.echo("Error: none")


@app.command("drop-error")
def drop_error(
    path: Path = typer.Argument(..., help="Path to checkpoint file"),
) -> None:
    """Acknowledge a failed step so the next run retries it."""
    from sm.utils.record_io import save_record

    data = _load_or_exit(path)
    if data is None:
        typer.echo(f"Error: no checkpoint at {path}", err=True)
        raise typer.Exit(1)

    if data.get("error") is None:
        typer.echo("No pending error")
        return

    data["error"] = None
    try:
        save_record(data, path)
    except OSError as exc:
        typer.echo(f"Error: can't write file `{path}`: {exc}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Error dropped; step '{data['state']['kind']}' will run again")


@app.command()
def clean(
    path: Path = typer.Argument(..., help="Path to checkpoint file"),
) -> None:
    """Remove a checkpoint so the machine starts over."""
    try:
        path.unlink()
    except OSError as exc:
        typer.echo(f"Error: can't remove file `{path}`: {exc}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Removed {path}")


@app.command()
def validate(
    path: Path = typer.Argument(..., help="Path to checkpoint file"),
) -> None:
    """Validate a checkpoint record's structure."""
    from sm.utils.jsonschema import validate_checkpoint
    from sm.utils.record_io import load_record

    try:
        data = load_record(path)
    except (OSError, ValueError) as exc:
        typer.echo(f"FAIL: {exc}", err=True)
        raise typer.Exit(1)

    if data is None:
        typer.echo(f"FAIL: no checkpoint at {path}", err=True)
        raise typer.Exit(1)

    errors = validate_checkpoint(data)
    if errors:
        typer.echo("Validation errors:", err=True)
        for e in errors:
            typer.echo(f"  - {e}", err=True)
        raise typer.Exit(1)

    typer.echo("OK")


def _load_or_exit(path: Path) -> dict[str, Any] | None:
    """Load a record and check its envelope, exiting on any problem."""
    from sm.utils.jsonschema import validate_checkpoint
    from sm.utils.record_io import load_record

    try:
        data = load_record(path)
    except (OSError, ValueError) as exc:
        typer.echo(f"Error: can't read checkpoint {path}: {exc}", err=True)
        raise typer.Exit(1)

    if data is None:
        return None

    errors = validate_checkpoint(data)
    if errors:
        typer.echo(f"Error: invalid checkpoint {path}: {'; '.join(errors)}", err=True)
        raise typer.Exit(1)
    return data


if __name__ == "__main__":
    app()
