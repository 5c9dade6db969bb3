"""
auction-ingest — operator CLI.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute action.
  5. Report result to stdout.

Install and run::

    pip install -e .
    auction-ingest --help
    auction-ingest init-db
    auction-ingest validate-config
    auction-ingest load-file exports/interval=4/year=2024/month=1/day=15/hour=9/realm.csv
    auction-ingest load-file scan.csv --live
    auction-ingest replay-event event.json --sns
"""

from __future__ import annotations

import json
from functools import partial
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="auction-ingest",
    help="Auction snapshot CSV ingestion — local tooling for the Lambda pipeline.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from auction_ingest.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from auction_ingest.utils.logging import configure_logging
    configure_logging(config.logging)


def _open_database_or_exit(config, db_path: Optional[str]):
    from auction_ingest.db.store import AuctionDatabase
    from auction_ingest.errors import TransportError

    try:
        if db_path:
            return AuctionDatabase.connect(
                db_path,
                wal_mode=config.database.wal_mode,
                busy_timeout_ms=config.database.busy_timeout_ms,
            )
        return AuctionDatabase.from_config(config.database)
    except TransportError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override database path from config (e.g. data/db/test.db).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Initialize the SQLite database and apply the schema.

    Safe to run multiple times — all DDL uses IF NOT EXISTS.
    """
    from auction_ingest.db.schema import ALL_TABLE_NAMES, get_existing_tables

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    database = _open_database_or_exit(config, db_path)
    try:
        tables = get_existing_tables(database.conn)
    finally:
        database.close()

    missing = sorted(set(ALL_TABLE_NAMES) - set(tables))
    if missing:
        typer.echo(f"[ERROR] Tables missing after init: {missing}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration and print the resolved values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:    {config.database.db_path}")
    typer.echo(f"  AWS region:       {config.aws.region}")
    typer.echo(f"  New-item queue:   {config.queue.queue_url or '(not set)'}")
    typer.echo(f"  Queue batch size: {config.queue.batch_size}")
    typer.echo(f"  Live interval:    {config.ingest.live_interval}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("load-file")
def load_file(
    path: Path = typer.Argument(..., help="Local CSV export to load."),
    key: Optional[str] = typer.Option(
        None,
        "--key",
        help=(
            "Object key carrying the interval=/year=/month=/day=/hour= partition. "
            "Defaults to PATH. Ignored with --live."
        ),
    ),
    live: bool = typer.Option(
        False,
        "--live",
        help="File uses the live schema (timestamp column first) instead of history.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Parse and validate every row but do not write to the database.",
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override database path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Map a local CSV export and append it to auction history.

    \b
    History files take their timestamp and interval from the partition
    segments of --key (or PATH). Live files use their own timestamp column;
    with --live the current-auctions snapshot is replaced too. New item ids
    are reported but not queued.
    """
    from auction_ingest.errors import ParseError
    from auction_ingest.ingestion.csv_reader import ParseFailure, read_auction_csv
    from auction_ingest.ingestion.item_differ import find_new_item_ids
    from auction_ingest.ingestion.partition_key import parse_partition_key
    from auction_ingest.ingestion.row_mapper import map_history_row, map_live_row

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if not path.exists():
        typer.echo(f"[ERROR] File not found: {path}", err=True)
        raise typer.Exit(code=1)

    if live:
        map_row = partial(map_live_row, interval=config.ingest.live_interval)
    else:
        partition_source = key or path.as_posix()
        try:
            partition = parse_partition_key(partition_source)
        except ParseError as exc:
            typer.echo(f"[ERROR] {exc}", err=True)
            raise typer.Exit(code=1)
        typer.echo(
            f"Partition: interval={partition.interval} "
            f"snapshot_at={partition.snapshot_at.isoformat()}"
        )
        map_row = partial(map_history_row, partition=partition)

    with open(path, encoding=config.ingest.csv_encoding, newline="") as f:
        outcome = read_auction_csv(f, map_row)

    if isinstance(outcome, ParseFailure):
        typer.echo(f"[ERROR] {path.name} {outcome.describe()}", err=True)
        raise typer.Exit(code=1)

    records = outcome.records
    typer.echo(f"Mapped {len(records)} auction record(s) from {path.name}")
    if dry_run:
        typer.echo("[DRY RUN] No records written.")
        return

    database = _open_database_or_exit(config, db_path)
    try:
        inserted = database.insert_auctions(records)
        typer.echo(f"  History rows inserted: {inserted}")
        if live:
            replaced = database.replace_current_auctions(records)
            typer.echo(f"  Current auctions written: {replaced}")
            new_ids = find_new_item_ids(database.get_item_ids(), outcome.item_ids)
            typer.echo(f"  Unknown item ids: {len(new_ids)}")
    finally:
        database.close()

    typer.echo("[OK] Load complete.")


@app.command("replay-event")
def replay_event(
    event_file: Path = typer.Argument(..., help="Saved Lambda event JSON."),
    sns: bool = typer.Option(
        False,
        "--sns",
        help="Event is an SNS notification (live ingest) rather than a raw S3 event.",
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override database path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Run a saved trigger event through the matching stage against real S3/SQS.

    Useful for re-driving a message pulled off the dead-letter queue.
    """
    from auction_ingest.errors import IngestError
    from auction_ingest.gateways.queue import SqsItemIdPublisher
    from auction_ingest.gateways.storage import S3ObjectStore
    from auction_ingest.pipeline.history_load import HistoryLoadStage
    from auction_ingest.pipeline.live_ingest import LiveIngestStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        with open(event_file, encoding="utf-8") as f:
            event = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        typer.echo(f"[ERROR] Could not read event file: {exc}", err=True)
        raise typer.Exit(code=1)

    storage = S3ObjectStore(region=config.aws.region, encoding=config.ingest.csv_encoding)
    database = _open_database_or_exit(config, db_path)
    try:
        if sns:
            try:
                publisher = SqsItemIdPublisher(
                    queue_url=config.queue.queue_url,
                    region=config.aws.region,
                    batch_size=config.queue.batch_size,
                )
            except ValueError as exc:
                typer.echo(f"[ERROR] {exc}", err=True)
                raise typer.Exit(code=1)
            stage = LiveIngestStage(
                config=config, database=database, storage=storage, publisher=publisher
            )
        else:
            stage = HistoryLoadStage(config=config, database=database, storage=storage)

        try:
            summary = stage.run(event)
        except IngestError as exc:
            typer.echo(f"[ERROR] {exc}", err=True)
            raise typer.Exit(code=1)
    finally:
        database.close()

    typer.echo(json.dumps(summary.model_dump(mode="json"), indent=2))
    typer.echo("[OK] Replay complete.")


if __name__ == "__main__":
    app()
