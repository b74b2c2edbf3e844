"""CLI for inspecting and maintaining the historical 1RM index."""

from __future__ import annotations

import dataclasses
import json
import sys

import click
from pydantic import ValidationError

from .config import STORAGE_BACKENDS, Config
from .demo_data import DemoDataStore
from .kv import build_key_value_store
from .logging import setup_logging
from .models import Best1RmRecord, Historical1RmUpdate


def _record_json(record: Best1RmRecord | None) -> dict | None:
    return None if record is None else record.to_document()


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, sort_keys=True))


@click.group()
@click.option("--storage", type=click.Choice(STORAGE_BACKENDS), help="Override FITTRACK_STORAGE.")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Override FITTRACK_DATA_DIR.")
@click.pass_context
def main(ctx: click.Context, storage: str | None, data_dir: str | None):
    """FitTrack historical 1RM maintenance."""
    try:
        config = Config.from_env()
    except RuntimeError as exc:
        raise click.ClickException(str(exc)) from exc
    if storage:
        config = dataclasses.replace(config, storage_backend=storage)
    if data_dir:
        config = dataclasses.replace(config, data_dir=data_dir)
    setup_logging(config.log_format, config.log_level)

    try:
        kv = build_key_value_store(config)
    except RuntimeError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = DemoDataStore(kv)


@main.command()
@click.pass_obj
def seed(demo: DemoDataStore):
    """Seed demo workouts (if empty) and bootstrap the index."""
    if demo.initialize():
        click.echo("Seeded demo data.")
    else:
        click.echo("Demo data already present; nothing to do.")


@main.command()
@click.pass_obj
def bootstrap(demo: DemoDataStore):
    """Rebuild every record from the logged sets (drops manual overrides)."""
    records = demo.historical_1rm.bootstrap()
    click.echo(f"Rebuilt historical 1RM for {len(records)} exercises.")


@main.command()
@click.pass_obj
def reset(demo: DemoDataStore):
    """Clear the index, then rebuild it."""
    records = demo.historical_1rm.reset()
    click.echo(f"Reset historical 1RM ({len(records)} exercises).")


@main.command()
@click.argument("exercise_id", type=int, required=False)
@click.pass_obj
def show(demo: DemoDataStore, exercise_id: int | None):
    """Print one record, or the whole index."""
    if exercise_id is not None:
        _echo_json(_record_json(demo.historical_1rm.get_record(exercise_id)))
        return
    records = demo.historical_1rm.records()
    _echo_json({str(k): r.to_document() for k, r in sorted(records.items())})


@main.command()
@click.argument("exercise_id", type=int)
@click.pass_obj
def status(demo: DemoDataStore, exercise_id: int):
    """Stored record next to the best computed from current sets."""
    _echo_json(demo.historical_1rm.status(exercise_id).to_dict())


# Negative values reach validation instead of being parsed as options.
@main.command("set-manual", context_settings={"ignore_unknown_options": True})
@click.argument("exercise_id", type=int)
@click.argument("value", type=float)
@click.pass_obj
def set_manual(demo: DemoDataStore, exercise_id: int, value: float):
    """Store a manual override for an exercise."""
    try:
        update = Historical1RmUpdate(mode="manual", historical_1rm=value)
    except ValidationError as exc:
        click.echo(f"Error: {exc.errors()[0]['msg']}", err=True)
        sys.exit(1)
    _echo_json(_record_json(demo.historical_1rm.apply_update(exercise_id, update)))


@main.command()
@click.argument("exercise_id", type=int)
@click.pass_obj
def unset(demo: DemoDataStore, exercise_id: int):
    """Remove an exercise's record."""
    demo.historical_1rm.set_manual(exercise_id, None)
    click.echo(f"Cleared historical 1RM for exercise {exercise_id}.")


@main.command()
@click.argument("exercise_id", type=int)
@click.pass_obj
def recompute(demo: DemoDataStore, exercise_id: int):
    """Replace the record with the best computed from current sets."""
    _echo_json(_record_json(demo.historical_1rm.recompute(exercise_id)))


if __name__ == "__main__":
    main()
