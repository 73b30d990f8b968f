"""
simple-include entry point.

Mirrors the source directory into the target directory, expanding include
directives, and optionally keeps the target in sync while watching the
source for changes.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

import click
import structlog
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from simple_include import __version__
from simple_include.config import Config, load_config
from simple_include.engine import IncludeEngine
from simple_include.errors import ConfigurationError, SimpleIncludeError
from simple_include.sync import SyncReport, initial_sync
from simple_include.watcher import FileWatcher

logger = structlog.get_logger(__name__)

console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_info(message: str) -> None:
    """Print an info message to stderr."""
    console.print(f"[bold blue]i[/bold blue] {escape(message)}")


def configure_logging(level: str) -> None:
    """Route structlog output to stderr, filtered at ``level``."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def apply_overrides(
    config: Config,
    watch: bool,
    src: Optional[Path],
    target: Optional[Path],
    include: Optional[str],
    verbose: bool,
    polling: bool,
) -> Config:
    """
    Apply command line options on top of the loaded configuration.

    The merged values are validated again; invalid options raise
    ConfigurationError.
    """
    data = config.to_dict()
    if src is not None:
        data["src"] = src
    if target is not None:
        data["target"] = target
    if include is not None:
        data["include_prefix"] = include
    if verbose:
        data["verbose"] = True
    if watch:
        data["watch"]["enabled"] = True
    if polling:
        data["watch"]["use_polling"] = True

    try:
        return Config(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid command line option: {e}") from e


async def run_watch(watcher: FileWatcher) -> None:
    """Run the watcher until SIGINT or SIGTERM."""
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop_event.set)

    await watcher.start()
    try:
        await stop_event.wait()
        logger.info("Shutdown requested")
    finally:
        await watcher.stop()


def print_report(report: SyncReport) -> None:
    """Print a summary of the initial sync."""
    print_info(f"Processed {report.files} files ({report.includes} includes)")
    if report.errors:
        print_error(f"{report.errors} files could not be processed")


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version", prog_name="simple-include")
@click.option("--watch", "-w", is_flag=True, help="Watch for changes in the source directory")
@click.option(
    "--src",
    "-s",
    type=click.Path(path_type=Path),
    default=None,
    help="Source directory [default: .]",
)
@click.option(
    "--target",
    "-t",
    type=click.Path(path_type=Path),
    default=None,
    help="Target directory [default: target]",
)
@click.option("--include", "-i", default=None, help="Include prefix [default: --include]")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (TOML, YAML or JSON)",
)
@click.option("--polling", is_flag=True, help="Use a polling observer instead of native events")
def cli(
    watch: bool,
    src: Optional[Path],
    target: Optional[Path],
    include: Optional[str],
    verbose: bool,
    config_path: Optional[Path],
    polling: bool,
) -> None:
    """
    A simple tool to include files in other files.

    Looks for lines with a given prefix and replaces them with the contents
    of the file they point to. Can watch for changes in the source directory
    and keep the target directory in sync.
    """
    try:
        config = load_config(config_path=config_path)
        config = apply_overrides(config, watch, src, target, include, verbose, polling)
        configure_logging(config.effective_log_level)
        source_root, target_root = config.resolve_roots()
    except SimpleIncludeError as e:
        print_error(str(e))
        sys.exit(1)

    engine = IncludeEngine(source_root, target_root, config.include_prefix)
    report = initial_sync(engine, watching=config.watch.enabled)
    if config.verbose:
        print_report(report)

    if not config.watch.enabled:
        return

    watcher = FileWatcher(
        engine,
        use_polling=config.watch.use_polling,
        polling_interval=config.watch.polling_interval,
    )
    if config.verbose:
        print_info(f"Watching for changes in {source_root}, writing to {target_root}")
    asyncio.run(run_watch(watcher))


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
