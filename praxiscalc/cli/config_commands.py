"""Config CLI commands for Praxis Calc.

Shows the config directory and manages thresholds.yaml.
"""

import json

import click

from praxiscalc.sdk import (
    HrThresholds,
    get_config_dir,
    get_settings_path,
    get_thresholds_path,
    load_settings,
    save_thresholds,
)

from .inputs import resolve_thresholds, use_json


@click.group()
def config():
    """Show configuration and manage thresholds."""
    pass


@config.command("show")
def config_show():
    """Show config paths and current settings."""
    settings_path = get_settings_path()
    thresholds_path = get_thresholds_path()

    click.echo(f"Config directory: {get_config_dir()}")
    click.echo(f"Settings file:    {settings_path} ({'exists' if settings_path.exists() else 'not found'})")
    click.echo(f"Thresholds file:  {thresholds_path} ({'exists' if thresholds_path.exists() else 'defaults'})")
    click.echo()

    current = load_settings()
    if not current:
        click.echo("No settings configured (using defaults).")
        return

    click.echo("Current settings:")
    for key, value in current.items():
        click.echo(f"  {key}: {value}")


@config.command("thresholds")
@click.option("--init", "init_file", is_flag=True, help="Write thresholds.yaml with the default values.")
@click.option("--force", is_flag=True, help="With --init: overwrite an existing file.")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
def config_thresholds(init_file, force, output_json):
    """Show the effective HR thresholds.

    Values come from thresholds.yaml when present, else the defaults.

    Examples:
        praxis-calc config thresholds
        praxis-calc config thresholds --init
    """
    if init_file:
        path = get_thresholds_path()
        if path.exists() and not force:
            raise click.ClickException(f"{path} already exists (use --force to overwrite)")
        save_thresholds(HrThresholds(), path)
        click.echo(f"Wrote default thresholds to {path}")
        return

    thresholds = resolve_thresholds(None)

    if use_json(output_json):
        click.echo(json.dumps(thresholds.model_dump(), indent=2))
        return

    defaults = HrThresholds()
    for key, value in thresholds.model_dump().items():
        marker = "" if value == getattr(defaults, key) else "  (custom)"
        click.echo(f"  {key}: {value}{marker}")
