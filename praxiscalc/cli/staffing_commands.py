"""Staffing CLI commands for Praxis Calc."""

import json

import click
from rich.console import Console

from praxiscalc.sdk import compute_staffing

from .inputs import load_data_file, use_json
from .renderers.staffing_renderer import render_staffing


@click.group()
def staffing():
    """Structural staffing demand (FTE per role)."""
    pass


@staffing.command("compute")
@click.argument("input_file", metavar="INPUT", type=click.Path(exists=True, dir_okay=False))
@click.option("--current", "current_file", type=click.Path(exists=True, dir_okay=False),
              help="YAML/JSON with current (ist) FTE per role for coverage.")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
def staffing_compute(input_file, current_file, output_json):
    """Compute staffing demand for a practice.

    INPUT is a YAML or JSON file with the practice structure, e.g.:

    \b
      dentists_fte: 2.0
      chairs_simultaneous: 2
      patients_per_day: 36
      complexity_level: 0

    Missing or malformed numbers fall back to safe defaults; estimated
    values are reported as notes.

    Examples:
        praxis-calc staffing compute practice.yaml
        praxis-calc staffing compute practice.yaml --current ist.yaml --json
    """
    data = load_data_file(input_file)
    current = load_data_file(current_file) if current_file else None

    result = compute_staffing(data, current)

    if use_json(output_json):
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        render_staffing(Console(), result)
