"""
Command-line interface for ncm-tagfix.

This module implements the CLI using Click, restoring missing tags of
audio files decrypted from NCM containers. rich-click is used for the
output colors.

Command:
    ncm-tagfix PATHS...                 Repair files and directories

Options:
    -j, --threads <n>                   Worker pool size
    --timeout <seconds>                 Cover art HTTP timeout
    --no-artwork                        Never fetch or embed cover art
    --dry-run                           Report changes without saving
    --config <file>                     Explicit config.yaml
    --log-dir <dir>                     Write log files to this directory
    -v, --verbose                       Debug output on the console

Usage:
    # Repair every file directly inside a directory
    ncm-tagfix ~/Music/Downloads

    # Repair single files with 4 workers
    ncm-tagfix -j 4 song.flac other.mp3

    # See what would change
    ncm-tagfix --dry-run ~/Music/Downloads

Configuration:
    config.yaml in the current directory is optional. Command line flags
    override the values it sets.

Exit Codes:
    0    The batch ran to the end (individual files may have failed)
    1    A path does not exist, or the configuration is invalid
    130  Interrupted by user
"""

import sys
from dataclasses import replace
from pathlib import Path

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "cli": [
        {
            "name": "Repair Options",
            "options": ["--threads", "--timeout", "--no-artwork", "--dry-run"],
        },
        {
            "name": "Configuration",
            "options": ["--config", "--log-dir", "--verbose"],
        },
        {
            "name": "Info",
            "options": ["--version", "--help"],
        },
    ],
}

from ncm_tagfix import __version__
from ncm_tagfix.batch import RepairStats, run
from ncm_tagfix.core import (
    Config,
    ConfigError,
    PathExpansionError,
    TagFixError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from ncm_tagfix.tagging import CoverArtFetcher

logger = get_logger(__name__)


@click.command()
@click.argument(
    "paths",
    nargs=-1,
    type=click.Path(path_type=Path),
)
@click.option(
    "-j", "--threads",
    type=click.IntRange(min=1),
    default=None,
    metavar="<n>",
    help="Number of files processed in parallel (default: 16)"
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    metavar="<seconds>",
    help="Cover art download timeout (default: 30)"
)
@click.option(
    "--no-artwork",
    is_flag=True,
    help="Never fetch or embed cover art"
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be added without saving"
)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml if present)"
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    metavar="<dir>",
    help="Write full, error and failure logs to this directory"
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Show debug messages"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(
    ctx: click.Context,
    paths: tuple[Path, ...],
    threads: int | None,
    timeout: float | None,
    no_artwork: bool,
    dry_run: bool,
    config_path: Path | None,
    log_dir: Path | None,
    verbose: bool,
    version: bool
) -> None:
    """
    ncm-tagfix: Restore missing tags of decrypted NCM audio files.

    Reads the encrypted metadata comment that NCM decryptors leave in
    FLAC and MP3 files, and fills in the title, album, artists and cover
    art that are missing. Existing tags are never overwritten.

    \b
    BASIC USAGE:
        ncm-tagfix ~/Music/Downloads          # Every file in the directory
        ncm-tagfix song.flac other.mp3        # Single files

    \b
    SKIPPED FILES:
        song.flac is left alone while song.ncm exists next to it.
    """
    # Handle --version
    if version:
        click.echo(f"ncm-tagfix {__version__}")
        ctx.exit(0)

    # No paths - show help
    if not paths:
        click.echo(ctx.get_help())
        ctx.exit(0)

    _run_repair(
        paths=list(paths),
        threads=threads,
        timeout=timeout,
        no_artwork=no_artwork,
        dry_run=dry_run,
        config_path=config_path,
        log_dir=log_dir,
        verbose=verbose,
    )


def _run_repair(
    paths: list[Path],
    threads: int | None,
    timeout: float | None,
    no_artwork: bool,
    dry_run: bool,
    config_path: Path | None,
    log_dir: Path | None,
    verbose: bool
) -> None:
    """
    Execute the repair workflow based on CLI options.

    This is the main orchestration function that:
    1. Loads configuration and applies CLI overrides
    2. Sets up logging
    3. Runs the batch
    4. Reports results

    Raises:
        SystemExit: On fatal errors (with appropriate exit code).
    """
    try:
        config = _apply_overrides(
            load_config(config_path),
            threads=threads,
            timeout=timeout,
            no_artwork=no_artwork,
            log_dir=log_dir,
        )

        setup_logging(config.output.log_directory, verbose=verbose)
        logger.info(f"ncm-tagfix {__version__} starting")
        if dry_run:
            logger.info("Dry run: no file will be modified")

        fetcher = CoverArtFetcher(
            timeout=config.artwork.timeout,
            user_agent=config.artwork.user_agent
        )
        stats = run(
            paths,
            concurrency=config.repair.threads,
            fetcher=fetcher,
            skip_marker_extension=config.repair.skip_marker_extension,
            artwork_enabled=config.artwork.enabled,
            dry_run=dry_run,
            show_progress=sys.stderr.isatty(),
        )
        _print_summary(stats)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except PathExpansionError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(e.message)
        sys.exit(1)

    except TagFixError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(1)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    finally:
        shutdown_logging()


def _apply_overrides(
    config: Config,
    threads: int | None,
    timeout: float | None,
    no_artwork: bool,
    log_dir: Path | None
) -> Config:
    """Return a copy of config with the command line flags applied."""
    repair = config.repair
    if threads is not None:
        repair = replace(repair, threads=threads)

    artwork = config.artwork
    if timeout is not None:
        artwork = replace(artwork, timeout=timeout)
    if no_artwork:
        artwork = replace(artwork, enabled=False)

    output = config.output
    if log_dir is not None:
        output = replace(output, log_directory=log_dir.expanduser())

    return replace(config, repair=repair, artwork=artwork, output=output)


def _print_summary(stats: RepairStats) -> None:
    """Print a one-line result to stdout."""
    click.echo(
        f"Repaired {stats.repaired}, unchanged {stats.unchanged}, "
        f"skipped {stats.skipped}, no data {stats.no_recovery_data}, "
        f"failed {stats.failed} (of {stats.total})"
    )


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `ncm-tagfix` from the command
    line. It invokes the Click command.
    """
    cli()


if __name__ == "__main__":
    main()
