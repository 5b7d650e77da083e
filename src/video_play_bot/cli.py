from __future__ import annotations

import logging
from pathlib import Path

import click
import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from .config import Settings, load_settings
from .exceptions import ConfigError, PersistenceError, PreflightError, SessionError
from .models import BatchResult
from .utils.logger import enable_file_logging, setup_cli_logging

_logger = logging.getLogger(__name__)

_config_option = click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False), default=None,
    help="Optional YAML file layered over environment settings.",
)


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (repeat for more).")
@click.option("-q", "--quiet", is_flag=True, default=False, help="Suppress all but warnings.")
@click.pass_context
def main(ctx: click.Context, verbose: int, quiet: bool) -> None:
    """video-play-bot CLI"""
    ctx.ensure_object(dict)
    verbosity = -1 if quiet else verbose
    ctx.obj["verbosity"] = verbosity
    setup_cli_logging(verbosity=verbosity)


def _settings(config_path: str | None) -> Settings:
    """Load settings, turning validation problems into a one-line error and exit 1."""
    try:
        cfg = load_settings(config_path)
    except ValidationError as exc:
        for err in exc.errors():
            field = ".".join(str(p) for p in err["loc"]) or "settings"
            click.echo(f"ERROR: {field}: {err['msg']}", err=True)
        raise SystemExit(1)
    except yaml.YAMLError as exc:
        click.echo(f"ERROR: cannot parse {config_path}: {exc}", err=True)
        raise SystemExit(1)
    if cfg.LOG_DIR:
        log_path = enable_file_logging(Path(cfg.LOG_DIR))
        _logger.debug("Writing run log to %s", log_path)
    return cfg


def _open_store(cfg: Settings):
    from .store.queue import QueueStore

    if not cfg.DATABASE_URL:
        click.echo("ERROR: DATABASE_URL environment variable is required", err=True)
        raise SystemExit(1)
    return QueueStore.from_url(cfg.DATABASE_URL, sslmode=cfg.DB_SSLMODE)


def _print_summary(result: BatchResult) -> None:
    click.echo("\n========================================")
    click.echo("Test Summary")
    click.echo("========================================")
    click.echo(f"This batch: {result.passed}/{len(result.results)} passed")
    if result.device is not None:
        d = result.device
        click.echo(f"Device used: {d.device} ({d.os} {d.os_version})")
    if result.stats is not None:
        s = result.stats
        click.echo("\nDatabase Stats:")
        click.echo(f"  Total URLs:    {s.total}")
        click.echo(f"  Total Views:   {s.total_views}")
        click.echo(f"  Errors:        {s.errors}")
        click.echo(f"  Avg Views/URL: {s.avg_views:.2f}")
    for r in result.results:
        if not r.success:
            click.echo(f"  FAILED #{r.id} {r.url}: {r.error}", err=True)


@main.command("run")
@_config_option
@click.option(
    "--batch-size", type=click.IntRange(min=1), default=None,
    help="Override BATCH_SIZE.",
)
@click.option(
    "--devices", "devices_path", type=click.Path(dir_okay=False), default=None,
    help="Override DEVICES_JSON_PATH.",
)
@click.option(
    "--report", "report_path", type=click.Path(dir_okay=False), default=None,
    help="Append per-video results to this JSONL file.",
)
def run_cmd(
    config_path: str | None,
    batch_size: int | None,
    devices_path: str | None,
    report_path: str | None,
) -> None:
    """Play the next batch of queued videos on a remote mobile device."""
    from .run import run_batch
    from .utils.io import append_results

    cfg = _settings(config_path)
    if batch_size is not None:
        cfg.BATCH_SIZE = batch_size
    if devices_path is not None:
        cfg.DEVICES_JSON_PATH = devices_path

    try:
        result = run_batch(cfg)
    except PreflightError as exc:
        for r in exc.results:
            if not r["OK"]:
                click.echo(f"ERROR: {r['DETAIL']}", err=True)
        raise SystemExit(1)
    except (ConfigError, SessionError) as exc:
        click.echo(f"ERROR: {exc}", err=True)
        raise SystemExit(1)
    except Exception:
        _logger.exception("Unexpected error")
        raise SystemExit(1)

    if not result.results:
        click.echo("No videos to test!")
        raise SystemExit(0)

    if report_path:
        append_results(Path(report_path), result.results)

    _print_summary(result)
    raise SystemExit(0 if result.ok else 1)


@main.command("init-db")
@_config_option
def init_db_cmd(config_path: str | None) -> None:
    """Create the video_urls table and its indexes if missing."""
    store = _open_store(_settings(config_path))
    try:
        store.init_schema()
    finally:
        store.close()
    click.echo("Database schema initialized.")


@main.command("import-urls")
@click.argument("jsonl_path", type=click.Path(exists=True, dir_okay=False))
@_config_option
def import_urls_cmd(jsonl_path: str, config_path: str | None) -> None:
    """Queue video URLs from a JSONL file; already queued URLs are skipped."""
    from .utils.io import read_url_records

    records = read_url_records(Path(jsonl_path))
    store = _open_store(_settings(config_path))
    try:
        store.init_schema()
        count = store.bulk_insert_urls(records)
    except PersistenceError as exc:
        click.echo(f"ERROR: {exc}", err=True)
        raise SystemExit(1)
    finally:
        store.close()
    click.echo(f"Submitted {count} URLs.")


@main.command("stats")
@_config_option
def stats_cmd(config_path: str | None) -> None:
    """Print aggregate queue statistics."""
    store = _open_store(_settings(config_path))
    try:
        store.init_schema()
        s = store.get_stats()
    finally:
        store.close()
    click.echo(f"Total URLs:    {s.total}")
    click.echo(f"Total Views:   {s.total_views}")
    click.echo(f"Errors:        {s.errors}")
    click.echo(f"Avg Views/URL: {s.avg_views:.2f}")


@main.command("devices")
@click.option(
    "--devices", "devices_path", type=click.Path(dir_okay=False), default=None,
    help="Catalog path (default: DEVICES_JSON_PATH).",
)
def devices_cmd(devices_path: str | None) -> None:
    """List the real mobile devices a batch may run on."""
    from .devices.catalog import load_mobile_devices

    path = devices_path or _settings(None).DEVICES_JSON_PATH
    for d in load_mobile_devices(path):
        click.echo(f"{d.device}\t{d.os}\t{d.os_version}")


if __name__ == "__main__":
    main()
