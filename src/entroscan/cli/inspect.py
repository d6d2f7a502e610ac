"""Single-file and volume inspection commands for Entroscan."""

import os
import random
from pathlib import Path

import click

from entroscan.cli.output import output
from entroscan.collectors.volumes import ScanPolicy
from entroscan.core.config import load_config
from entroscan.core.errors import EntroscanError, TargetNotFoundError, handle_error
from entroscan.entropy.classifier import FileClassifier
from entroscan.entropy.reader import whole_file_entropy
from entroscan.models.config import MIB


@click.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--limit", "-l", "entropy_limit", type=float, default=None,
              help="Entropy limit for the match verdict (default: 7.5)")
@click.option("--sample-size-mb", type=float, default=None,
              help="Sample window for estimated entropy in MiB (default: 10)")
@click.option("--exact", is_flag=True, default=False,
              help="Always read the whole file with a single histogram")
@click.option("--seed", type=int, default=None,
              help="Seed the sample offset for a repeatable estimate")
def file(
    paths: tuple[Path, ...],
    entropy_limit: float | None,
    sample_size_mb: float | None,
    exact: bool,
    seed: int | None,
) -> None:
    """Measure the entropy of individual files.

    \b
    Examples:
      entroscan file suspicious.bin
      entroscan --format human file a.dll b.dll --exact
    """
    try:
        config = load_config(
            entropy_limit=entropy_limit,
            sample_size_bytes=int(sample_size_mb * MIB) if sample_size_mb is not None else None,
        )
        classifier = FileClassifier(config, rng=random.Random(seed) if seed is not None else None)

        results = []
        for path in paths:
            if not path.is_file():
                raise TargetNotFoundError(str(path))
            size = os.path.getsize(path)
            if exact:
                result = whole_file_entropy(path)
            else:
                result = classifier.measure(str(path), size)
            results.append({
                "path": str(path),
                "size_bytes": size,
                "entropy": result.rounded,
                "method": result.method.value,
                "bytes_processed": result.bytes_processed,
                "match": classifier.is_match(result),
            })
    except EntroscanError as e:
        handle_error(e)

    output(results)


@click.command()
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="YAML configuration file")
@click.option("--root", "-r", "root_paths", multiple=True,
              help="Consider this directory instead of all volumes (repeatable)")
@click.option("--exclude-drive", "excluded_drive_letters", multiple=True,
              help="Drive letter to skip (repeatable)")
@click.option("--exclude-root", "excluded_root_paths", multiple=True,
              help="Volume root to skip (repeatable)")
def volumes(
    config_path: Path | None,
    root_paths: tuple[str, ...],
    excluded_drive_letters: tuple[str, ...],
    excluded_root_paths: tuple[str, ...],
) -> None:
    """List the volumes a scan would traverse.

    Excluded volumes are listed with excluded=true. The file estimate
    only drives the progress percentage.
    """
    try:
        config = load_config(
            config_path,
            root_paths=root_paths,
            excluded_drive_letters=excluded_drive_letters,
            excluded_root_paths=excluded_root_paths,
        )
        policy = ScanPolicy(config)
        targets = policy.enumerate_targets()
    except EntroscanError as e:
        handle_error(e)

    output({
        "targets": [
            {
                "root_path": t.root_path,
                "excluded": t.is_excluded,
                "fstype": t.fstype,
                "used_bytes": t.used_bytes,
            }
            for t in targets
        ],
        "estimated_total_files": policy.estimate_total_files(targets),
    })
