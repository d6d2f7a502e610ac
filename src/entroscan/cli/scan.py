"""Scan CLI commands for Entroscan."""

import random
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from entroscan.cli.output import output
from entroscan.core.config import load_config
from entroscan.core.errors import EntroscanError, handle_error
from entroscan.core.logging import ProgressReporter
from entroscan.core.scanner import FilenameScanDriver, ScanDriver
from entroscan.models.config import MIB, ScanConfig


def scan_options(func: Callable) -> Callable:
    """Options shared by the scan and names commands.

    Every option defaults to None so unset flags fall through to the
    configuration file and then to the model defaults.
    """
    options = [
        click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
                     help="YAML configuration file"),
        click.option("--root", "-r", "root_paths", multiple=True,
                     help="Scan this directory instead of all volumes (repeatable)"),
        click.option("--exclude-drive", "excluded_drive_letters", multiple=True,
                     help="Drive letter to skip, e.g. D (repeatable)"),
        click.option("--exclude-root", "excluded_root_paths", multiple=True,
                     help="Volume root to skip, e.g. \\\\corp\\dfs (repeatable)"),
        click.option("--exclude-ext", "excluded_extensions", multiple=True,
                     help="File extension to skip, e.g. .iso (repeatable)"),
        click.option("--max-size-mb", "max_size_mb", type=float, default=None,
                     help="Skip files larger than this many MiB"),
        click.option("--batch-size", "batch_size_limit", type=int, default=None,
                     help="Matches held in memory before a flush (default: 100)"),
        click.option("--sort-by", type=click.Choice(["entropy", "created"]), default=None,
                     help="Final descending order of the CSV (default: entropy)"),
        click.option("--no-enrich", "no_enrich", is_flag=True, default=False,
                     help="Skip owner, signature, zone and version lookups"),
        click.option("--output", "-o", "output_path", type=click.Path(dir_okay=False, path_type=Path),
                     default=None, help="CSV file to write"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_config(config_path: Path | None, max_size_mb: float | None, no_enrich: bool, **overrides: Any) -> ScanConfig:
    if max_size_mb is not None:
        overrides["max_file_size_bytes"] = int(max_size_mb * MIB)
    if no_enrich:
        overrides["enrich"] = False
    return load_config(config_path, **overrides)


def _progress_reporter(quiet: bool, description: str) -> ProgressReporter | None:
    return None if quiet else ProgressReporter(description=description)


@click.command()
@scan_options
@click.option("--limit", "-l", "entropy_limit", type=float, default=None,
              help="Report files with entropy strictly above this (default: 7.5)")
@click.option("--chunk-size-mb", type=float, default=None,
              help="Read size for true entropy in MiB (default: 5)")
@click.option("--sample-size-mb", type=float, default=None,
              help="Sample window for estimated entropy in MiB (default: 10)")
@click.option("--seed", type=int, default=None,
              help="Seed the sample offsets for repeatable estimates")
@click.pass_context
def scan(
    ctx: click.Context,
    config_path: Path | None,
    output_path: Path | None,
    max_size_mb: float | None,
    no_enrich: bool,
    chunk_size_mb: float | None,
    sample_size_mb: float | None,
    seed: int | None,
    **overrides: Any,
) -> None:
    """Scan volumes for high-entropy files and write them to a CSV.

    \b
    Files smaller than the sample size are read completely ("True
    Entropy"); larger files are scored from one random window
    ("Estimated Entropy"). The CSV is sorted once traversal completes.

    \b
    Examples:
      # Every local volume except D:
      entroscan scan --exclude-drive D -o entropy.csv

      # One directory, stricter limit
      entroscan scan --root /mnt/evidence --limit 7.9
    """
    if chunk_size_mb is not None:
        overrides["chunk_size_bytes"] = int(chunk_size_mb * MIB)
    if sample_size_mb is not None:
        overrides["sample_size_bytes"] = int(sample_size_mb * MIB)

    try:
        config = _build_config(config_path, max_size_mb, no_enrich, **overrides)
        reporter = _progress_reporter((ctx.obj or {}).get("quiet", False), "Scanning")
        driver = ScanDriver(
            config,
            output_path or Path("entropy_scan.csv"),
            progress_callback=reporter.update if reporter else None,
            rng=random.Random(seed) if seed is not None else None,
        )
        summary = driver.run()
        if reporter:
            reporter.finish()
    except EntroscanError as e:
        handle_error(e)

    output(summary)


@click.command()
@scan_options
@click.option("--name-limit", type=float, default=3.5, show_default=True,
              help="Report files whose name entropy is strictly above this")
@click.pass_context
def names(
    ctx: click.Context,
    config_path: Path | None,
    output_path: Path | None,
    max_size_mb: float | None,
    no_enrich: bool,
    name_limit: float,
    **overrides: Any,
) -> None:
    """Scan volumes for files with random-looking names.

    File contents are not read; the character entropy of each file name
    (without extension) is compared against --name-limit.
    """
    try:
        config = _build_config(config_path, max_size_mb, no_enrich, **overrides)
        reporter = _progress_reporter((ctx.obj or {}).get("quiet", False), "Scanning names")
        driver = FilenameScanDriver(
            config,
            output_path or Path("filename_entropy_scan.csv"),
            name_limit=name_limit,
            progress_callback=reporter.update if reporter else None,
        )
        summary = driver.run()
        if reporter:
            reporter.finish()
    except EntroscanError as e:
        handle_error(e)

    output(summary)
