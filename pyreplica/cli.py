"""CLI interface for PyReplica."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from . import __version__
from .exceptions import MirrorConfigError, MirrorRootError
from .output import OutputFormatter
from .sync import (
    MirrorEngine,
    MirrorPair,
    MirrorScheduler,
    default_sink_factory,
    load_mirror_pairs_from_json,
)
from .utils import DEFAULT_MAX_WORKERS

logger = logging.getLogger(__name__)

workers_option = click.option(
    "--workers",
    "-w",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_WORKERS,
    envvar="PYREPLICA_WORKERS",
    show_default=True,
    help="Number of parallel workers per pool",
)
log_file_option = click.option(
    "--log-file",
    "-l",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="PYREPLICA_LOG_FILE",
    help="Append change lines to this file (never deleted from the replica)",
)
strict_option = click.option(
    "--strict",
    is_flag=True,
    help="Compare digests of every shared file, even if timestamps did not change",
)
max_cycles_option = click.option(
    "--max-cycles",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many passes per pair (default: run until QUIT)",
)


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output statistics in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: Any, quiet: bool, json: bool, verbose: bool) -> None:
    """PyReplica - Mirror a source folder one-way onto a replica folder."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["verbose"] = verbose

    # Configure logging based on verbose flag
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pyreplica").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.argument("source", type=click.Path(path_type=Path))
@click.argument("replica", type=click.Path(path_type=Path))
@log_file_option
@workers_option
@strict_option
@click.option(
    "--dry-run", is_flag=True, help="Show what would be mirrored without changes"
)
@click.pass_context
def once(
    ctx: Any,
    source: Path,
    replica: Path,
    log_file: Optional[Path],
    workers: int,
    strict: bool,
    dry_run: bool,
) -> None:
    """Run a single mirror pass from SOURCE onto REPLICA.

    Both folders must exist. Exits with status 1 if any item failed.

    Examples:
        pyreplica once ./docs /mnt/backup/docs
        pyreplica once ./docs /mnt/backup/docs -l /var/log/docs.log
        pyreplica once ./docs /mnt/backup/docs --dry-run
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        pair = MirrorPair(source=source, replica=replica, log_file=log_file)
    except MirrorConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return  # Unreachable, but helps type checker

    engine = MirrorEngine(output=out, max_workers=workers, strict=strict)
    sink = default_sink_factory(pair, out)

    try:
        stats = engine.mirror_pair(pair, sink, dry_run=dry_run)
    except (MirrorRootError, MirrorConfigError) as e:
        out.error(str(e))
        ctx.exit(1)
        return

    if out.json_output:
        out.output_json(stats)

    if stats["errors"]:
        ctx.exit(1)


@main.command()
@click.argument("source", type=str)
@click.argument("replica", type=click.Path(path_type=Path), required=False)
@click.option(
    "--interval",
    "-i",
    type=click.IntRange(min=1),
    default=None,
    help="Seconds between two passes (required unless SOURCE is a literal pair)",
)
@log_file_option
@workers_option
@strict_option
@max_cycles_option
@click.pass_context
def run(
    ctx: Any,
    source: str,
    replica: Optional[Path],
    interval: Optional[int],
    log_file: Optional[Path],
    workers: int,
    strict: bool,
    max_cycles: Optional[int],
) -> None:
    """Mirror SOURCE onto REPLICA every INTERVAL seconds until QUIT.

    SOURCE may also be a literal pair <source>;<replica>;<interval>;<logfile>,
    in which case REPLICA is omitted. Type QUIT and press Enter to stop after
    the pass in progress.

    Examples:
        pyreplica run ./docs /mnt/backup/docs -i 30 -l ./mirror.log
        pyreplica run "./docs;/mnt/backup/docs;30;./mirror.log"
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        if replica is None:
            pair = MirrorPair.parse_literal(source)
            if interval is not None:
                pair.interval = interval
            if log_file is not None:
                pair.log_file = log_file
        else:
            if interval is None:
                raise MirrorConfigError("--interval is required")
            pair = MirrorPair(
                source=Path(source),
                replica=replica,
                interval=interval,
                log_file=log_file,
            )
        pair.strict = strict
        pair.validate()
    except (MirrorConfigError, MirrorRootError) as e:
        out.error(str(e))
        ctx.exit(1)
        return

    _run_scheduler(ctx, [pair], workers, max_cycles)


@main.command("run-config")
@click.argument(
    "config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@workers_option
@max_cycles_option
@click.pass_context
def run_config(
    ctx: Any,
    config_file: Path,
    workers: int,
    max_cycles: Optional[int],
) -> None:
    """Mirror every pair listed in a JSON CONFIG_FILE until QUIT.

    The file holds a list of objects with the keys source, replica, interval,
    logFile, alias and strict.
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        pairs = load_mirror_pairs_from_json(config_file)
        for pair in pairs:
            pair.validate()
    except (MirrorConfigError, MirrorRootError) as e:
        out.error(str(e))
        ctx.exit(1)
        return

    _run_scheduler(ctx, pairs, workers, max_cycles)


def _run_scheduler(
    ctx: Any,
    pairs: list[MirrorPair],
    workers: int,
    max_cycles: Optional[int],
) -> None:
    """Run the interval loop for validated pairs until QUIT or Ctrl-C."""
    out: OutputFormatter = ctx.obj["out"]
    engine = MirrorEngine(output=out, max_workers=workers)

    try:
        scheduler = MirrorScheduler(engine, pairs, output=out)
    except MirrorConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    for pair in pairs:
        out.info(
            f"{pair.name}: {pair.source} -> {pair.replica} every {pair.interval}s"
        )
    if max_cycles is None:
        out.info("Type QUIT to stop.")
        scheduler.listen_for_quit()

    try:
        passes = scheduler.run(max_cycles=max_cycles)
    except KeyboardInterrupt:
        out.info("[BACKUP] - Stopping backup process...")
        scheduler.stop()
        return

    logger.debug(f"Ran {passes} pass(es)")


if __name__ == "__main__":
    main()
