"""HR KPI CLI commands for Praxis Calc.

Every command fails with a non-zero exit on a compliance violation.
"""

import json

import click
from pydantic import ValidationError
from rich.console import Console

from praxiscalc.sdk import (
    ComplianceError,
    HrPracticeInput,
    assert_no_person_level,
    compute_hr_overview,
    compute_practice_snapshot,
    compute_role_snapshots,
    validate_aggregated_input,
)

from .inputs import format_validation_error, load_practice_data, resolve_thresholds, use_json
from .renderers.hr_renderer import render_alerts, render_snapshots, render_validation, render_warnings


level_option = click.option(
    "--level", type=click.Choice(["practice", "role"]), default="practice", show_default=True,
    help="Aggregation level. Role level falls back to practice when no role is k-anonymous.",
)
thresholds_option = click.option(
    "--thresholds", "thresholds_file", type=click.Path(exists=True, dir_okay=False),
    help="thresholds.yaml to use instead of the configured one.",
)
json_option = click.option("--json", "output_json", is_flag=True, help="Output as JSON.")


def _compliance_failure(e: ComplianceError) -> click.ClickException:
    return click.ClickException(f"Compliance violation: {e}")


@click.group()
def hr():
    """Privacy-compliant HR KPIs and alerts.

    INPUT files hold the period, target FTE and either aggregated
    'groups' or per-person 'staff' records (with optional 'absences'
    and 'overtime'), which are aggregated per role before analysis.
    """
    pass


@hr.command("validate")
@click.argument("input_file", metavar="INPUT", type=click.Path(exists=True, dir_okay=False))
@thresholds_option
@json_option
def hr_validate(input_file, thresholds_file, output_json):
    """Check HR input for compliance without computing KPIs.

    Exits non-zero when the input is rejected.
    """
    data = load_practice_data(input_file)
    thresholds = resolve_thresholds(thresholds_file)

    try:
        assert_no_person_level(data)
        practice = HrPracticeInput.model_validate(data)
    except ComplianceError as e:
        raise _compliance_failure(e)
    except ValidationError as e:
        raise click.ClickException(format_validation_error(e))

    result = validate_aggregated_input(practice.groups, thresholds.k_min)

    if use_json(output_json):
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        render_validation(Console(), result)

    if not result.valid:
        raise click.ClickException("HR input failed compliance validation")


@hr.command("snapshot")
@click.argument("input_file", metavar="INPUT", type=click.Path(exists=True, dir_okay=False))
@level_option
@thresholds_option
@json_option
def hr_snapshot(input_file, level, thresholds_file, output_json):
    """Compute KPI snapshots at practice or role level.

    Examples:
        praxis-calc hr snapshot q1.yaml
        praxis-calc hr snapshot q1.yaml --level role --json
    """
    data = load_practice_data(input_file)
    thresholds = resolve_thresholds(thresholds_file)

    warnings = []
    try:
        if level == "role":
            result = compute_role_snapshots(data, thresholds)
            snapshots = result.snapshots
            # small-group warnings first, then the fallback note
            validation = validate_aggregated_input(data.get("groups", []), thresholds.k_min)
            warnings = validation.warnings + result.warnings
        else:
            snapshots = [compute_practice_snapshot(data, thresholds)]
    except ComplianceError as e:
        raise _compliance_failure(e)
    except ValidationError as e:
        raise click.ClickException(format_validation_error(e))

    if use_json(output_json):
        output = {
            "snapshots": [s.model_dump(mode="json") for s in snapshots],
            "warnings": warnings,
        }
        click.echo(json.dumps(output, indent=2))
    else:
        console = Console()
        render_warnings(console, warnings)
        render_snapshots(console, snapshots)


@hr.command("alerts")
@click.argument("input_file", metavar="INPUT", type=click.Path(exists=True, dir_okay=False))
@level_option
@thresholds_option
@json_option
def hr_alerts(input_file, level, thresholds_file, output_json):
    """Compute snapshots and the organisational alerts for each.

    Examples:
        praxis-calc hr alerts q1.yaml --level role
    """
    data = load_practice_data(input_file)
    thresholds = resolve_thresholds(thresholds_file)

    try:
        overview = compute_hr_overview(data, thresholds, level=level)
    except ComplianceError as e:
        raise _compliance_failure(e)
    except ValidationError as e:
        raise click.ClickException(format_validation_error(e))

    if use_json(output_json):
        click.echo(json.dumps(overview.model_dump(mode="json"), indent=2))
    else:
        console = Console()
        render_warnings(console, overview.warnings)
        render_snapshots(console, overview.snapshots)
        render_alerts(console, overview.alerts_by_snapshot)
