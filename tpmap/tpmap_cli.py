"""
CLI entry point for the tpmap package.
"""

import logging
from pathlib import Path

import click

from tpmap.commands.tp1d import tp1d
from tpmap.commands.tp2d import tp2d
from tpmap.core.logger import configure_logging

import tpmap

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

LOG_LEVELS = ["debug", "info", "warn"]
LOG_LEVELS_TO_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARN,
}


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(
    version=tpmap.__version__,
    package_name="tpmap",
    message="%(package)s %(version)s",
)
@click.option(
    "-v",
    "--log-level",
    type=click.Choice(LOG_LEVELS, False),
    default="info",
    help="Set the logging level.",
)
@click.option(
    "--log-file",
    type=click.Path(writable=True, path_type=Path),
    required=False,
    help="Write log to this file.",
)
def cli(log_level: str, log_file: Path):
    """
    tpmap - Thermal proteome profiling analysis.

    Score 1D temperature series by melting point shifts and 2D
    concentration x temperature grids by flood fill, with bootstrap p-values.
    """
    configure_logging(LOG_LEVELS_TO_LEVELS[log_level.lower()], log_file)
    logging.captureWarnings(True)


cli.add_command(tp2d)
cli.add_command(tp1d)


def main():
    """
    Main function to run the CLI.
    """
    try:
        cli()
    except SystemExit as e:
        if e.code != 0:
            raise


if __name__ == "__main__":
    main()
