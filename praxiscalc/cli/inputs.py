"""Input file loading shared by the CLI commands.

INPUT files are YAML (.yaml/.yml) or JSON (anything else).
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import click
import yaml
from pydantic import ValidationError

from praxiscalc.sdk import (
    ConfigNotFoundError,
    HrThresholds,
    ThresholdsValidationError,
    aggregate_staff_to_groups,
    get_setting,
    load_thresholds,
)


def load_data_file(path: str) -> Dict[str, Any]:
    """Load a YAML or JSON mapping from disk."""
    file_path = Path(path)
    try:
        with open(file_path, "r") as f:
            if file_path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {file_path}: {e}")
    except yaml.YAMLError as e:
        raise click.ClickException(f"Invalid YAML in {file_path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise click.ClickException(f"Expected a mapping at the top of {file_path}")
    return data


def load_practice_data(path: str) -> Dict[str, Any]:
    """Load HR practice input.

    The file either lists aggregated "groups" directly, or per-person
    "staff" records (with optional "absences" and "overtime") that are
    aggregated into role groups here, before anything else sees them.
    """
    data = load_data_file(path)

    if "staff" in data:
        if "groups" in data:
            raise click.ClickException(f"{path}: give either 'staff' or 'groups', not both")
        groups = aggregate_staff_to_groups(
            data.pop("staff") or [],
            data.pop("absences", None) or [],
            data.pop("overtime", None) or [],
        )
        data["groups"] = [g.model_dump() for g in groups]

    return data


def resolve_thresholds(thresholds_file: Optional[str]) -> HrThresholds:
    """Thresholds from --thresholds, else the configured thresholds.yaml."""
    try:
        return load_thresholds(Path(thresholds_file) if thresholds_file else None)
    except (ConfigNotFoundError, ThresholdsValidationError) as e:
        raise click.ClickException(str(e))


def use_json(output_json: bool) -> bool:
    """--json flag, or default_output_format=json in settings.json."""
    return output_json or get_setting("default_output_format") == "json"


def format_validation_error(error: ValidationError) -> str:
    lines = ["Invalid input:"]
    for err in error.errors():
        location = ".".join(str(p) for p in err["loc"]) or "(root)"
        lines.append(f"  {location}: {err['msg']}")
    return "\n".join(lines)
