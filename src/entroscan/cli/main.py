"""Entroscan CLI entry point and global options."""

import sys
from typing import Literal

import click

from entroscan import __version__
from entroscan.cli.inspect import file, volumes
from entroscan.cli.output import OutputFormat, set_output_format
from entroscan.cli.scan import names, scan
from entroscan.core.errors import EXIT_ERROR
from entroscan.core.logging import configure_logging, set_verbose


@click.group()
@click.option(
    "--format",
    "-f",
    type=click.Choice(["json", "human"]),
    default="json",
    help="Output format for results on stdout (default: json)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose logging to stderr",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Suppress progress output",
)
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Log format for stderr (default: text)",
)
@click.version_option(version=__version__, prog_name="entroscan")
@click.pass_context
def cli(
    ctx: click.Context,
    format: OutputFormat,
    verbose: bool,
    quiet: bool,
    log_format: Literal["text", "json"],
) -> None:
    """Entroscan: find high-entropy files during incident response.

    Walks mounted volumes (or chosen roots), measures the Shannon entropy
    of every file and writes the files above a limit to a CSV sorted by
    entropy. Encrypted, packed and compressed content stands out.
    """
    ctx.ensure_object(dict)
    ctx.obj = {
        "format": format,
        "verbose": verbose,
        "quiet": quiet,
        "log_format": log_format,
    }

    set_output_format(format)
    set_verbose(verbose)
    configure_logging(log_format=log_format, quiet=quiet)


cli.add_command(scan)
cli.add_command(names)
cli.add_command(file)
cli.add_command(volumes)


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_ERROR)


if __name__ == "__main__":
    main()
