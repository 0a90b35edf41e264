"""Click-based CLI for KBSync - Knowledge Base Sync."""

from __future__ import annotations

import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError as ConfigValidationError
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax

from kbsync import __version__
from kbsync.config import (
    KbSyncConfig,
    ensure_config_exists,
    get_config_path,
    load_config,
    validate_config_file,
)
from kbsync.configurer import build_pipe
from kbsync.errors import ErrorBase
from kbsync.logger import SyncLogger
from kbsync.output import create_console
from kbsync.pipe import ContextFileRepository
from kbsync.pipe.pipe import Pipe, SyncResult
from kbsync.utils.runtime import Runtime

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 2

console = Console()
logger = SyncLogger(console)


@click.group()
@click.version_option(version=__version__, prog_name="kbsync")
def cli() -> None:
    """KBSync - one-way knowledge base synchronization.

    Pulls categories, labels and documents from a source, compares them with
    the destination knowledge base and uploads only what changed.

    \b
    Exit codes:
      0  sync completed
      1  sync failed
      2  sync interrupted, run again to resume from the checkpoint
    """
    pass


def _load(config_path: Optional[Path]) -> KbSyncConfig:
    """Load configuration or exit with an error."""
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        logger.error(str(e))
        sys.exit(EXIT_ERROR)
    except ConfigValidationError as e:
        logger.error(f"Invalid configuration: {escape(str(e))}")
        sys.exit(EXIT_ERROR)
    except yaml.YAMLError as e:
        logger.error(f"Invalid YAML syntax: {escape(str(e))}")
        sys.exit(EXIT_ERROR)


def _install_signal_handlers(runtime: Runtime) -> list[signal.Signals]:
    """Turn SIGINT and SIGTERM into a cooperative interrupt."""
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, runtime.interrupt)
            installed.append(sig)
        except (NotImplementedError, RuntimeError, ValueError):
            # not supported on this platform or outside the main thread
            logger.debug(f"Cannot handle {sig.name}, interrupting will not save a checkpoint")
    return installed


async def _run_pipe(pipe: Pipe, config: KbSyncConfig, *, fresh: bool) -> SyncResult:
    if fresh and config.checkpoint.enabled:
        await ContextFileRepository(Path(config.checkpoint.path), pipe.logger).clear()

    installed = _install_signal_handlers(pipe.runtime)
    try:
        return await pipe.start(config)
    finally:
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)


@cli.command()
@click.option("--config", "-c", "config_path", type=click.Path(path_type=Path), help="Configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.option("--fresh", is_flag=True, help="Discard any checkpoint and start over")
@click.option("--kill-after", type=click.IntRange(min=1), help="Interrupt the run after this many seconds")
def sync(config_path: Optional[Path], verbose: bool, fresh: bool, kill_after: Optional[int]) -> None:
    """Synchronize the source into the destination knowledge base.

    An interrupted run (Ctrl-C or --kill-after) saves a checkpoint and the
    next run resumes from it.
    """
    config = _load(config_path)
    if kill_after:
        config.sync.kill_after_long_running_seconds = kill_after

    output = create_console(verbose=verbose or config.output.verbose, colored=config.output.colored)
    sync_logger = output.create_logger()

    sync_logger.info(f"Source:      {config.source.type} {config.source.path}")
    sync_logger.info(f"Destination: {config.destination.type} {config.destination.path}")

    try:
        pipe = build_pipe(config, Pipe(logger=sync_logger))
        result = asyncio.run(_run_pipe(pipe, config, fresh=fresh))
    except ErrorBase as e:
        sync_logger.error(f"Sync failed ({e.code}): {escape(e.message)}")
        sys.exit(EXIT_ERROR)
    except Exception as e:
        sync_logger.error(f"Sync failed: {escape(str(e))}")
        sys.exit(EXIT_ERROR)

    output.print_sync_result(result)

    if result.interrupted:
        sys.exit(EXIT_INTERRUPTED)


@cli.command()
@click.option("--config", "-c", "config_path", type=click.Path(path_type=Path), help="Configuration file")
@click.option("--verbose", "-v", is_flag=True, help="List failed entities")
def status(config_path: Optional[Path], verbose: bool) -> None:
    """Show the checkpoint of an interrupted run."""
    config = _load(config_path)
    output = create_console(verbose=verbose, colored=config.output.colored)

    if not config.checkpoint.enabled:
        logger.info("Checkpoints are disabled in the configuration")
        return

    repository = ContextFileRepository(Path(config.checkpoint.path), output.create_logger())
    context = asyncio.run(repository.load())
    output.print_checkpoint_status(context, config.checkpoint.path)


@cli.command()
@click.option("--config", "-c", "config_path", type=click.Path(path_type=Path), help="Configuration file")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def reset(config_path: Optional[Path], yes: bool) -> None:
    """Delete the checkpoint, the next run starts from scratch."""
    config = _load(config_path)
    checkpoint = Path(config.checkpoint.path)

    if not checkpoint.exists():
        logger.info(f"No checkpoint at {checkpoint}")
        return

    if not yes and not click.confirm(f"Delete checkpoint {checkpoint}?", default=False):
        logger.info("Aborted")
        return

    asyncio.run(ContextFileRepository(checkpoint, logger).clear())
    logger.success(f"Checkpoint {checkpoint} deleted")


# ============================================================================
# Configuration Commands
# ============================================================================


@cli.group()
def config() -> None:
    """Configuration file commands.

    \b
    Default location: ~/.config/kbsync/config.yaml
    Override with --config or the KBSYNC_CONFIG environment variable.
    """
    pass


@config.command("init")
@click.option("--config", "-c", "config_path", type=click.Path(path_type=Path), help="Configuration file")
def config_init(config_path: Optional[Path]) -> None:
    """Create a configuration file with default values."""
    path, created = ensure_config_exists(config_path)
    if created:
        logger.success(f"Created configuration: {path}")
    else:
        logger.info(f"Configuration already exists: {path}")


@config.command("show")
@click.option("--config", "-c", "config_path", type=click.Path(path_type=Path), help="Configuration file")
def config_show(config_path: Optional[Path]) -> None:
    """Show the effective configuration."""
    loaded = _load(config_path)
    output = create_console(colored=loaded.output.colored)

    output.print_config_summary(str(config_path or get_config_path()), loaded)
    rendered = yaml.dump(loaded.model_dump(mode="json"), default_flow_style=False, sort_keys=False)
    console.print(Syntax(rendered, "yaml"))


@config.command("check")
@click.argument("file", type=click.Path(exists=True, path_type=Path))
def config_check(file: Path) -> None:
    """Validate a configuration file.

    \b
    Example:
        kbsync config check ~/.config/kbsync/config.yaml
    """
    ok, errors = validate_config_file(file)

    if ok:
        logger.success(f"Configuration is valid: {file}")
        return

    logger.error(f"Found {len(errors)} problem(s) in {file}:")
    for error in errors:
        console.print(f"  [yellow]{escape(error)}[/yellow]")
    sys.exit(EXIT_ERROR)


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
