"""Praxis Calc CLI - Staffing demand and privacy-compliant HR KPIs."""

import logging
import os

import click

from praxiscalc import __version__

from .staffing_commands import staffing as staffing_group
from .hr_commands import hr as hr_group
from .config_commands import config as config_group


@click.group()
@click.version_option(version=__version__, prog_name="praxis-calc")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose):
    """Praxis Calc - Staffing demand and HR KPIs for dental practices.

    Configuration is loaded from (in order):

    \b
    1. PRAXIS_CALC_CONFIG_PATH environment variable
    2. ~/.config/praxis-calc/ (XDG default)

    Run 'praxis-calc config show' to see the resolved paths.
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, os.environ.get("LOG_LEVEL", "WARNING").upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


cli.add_command(staffing_group)
cli.add_command(hr_group)
cli.add_command(config_group)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
