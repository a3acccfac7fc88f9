"""Configuration management for Praxis Calc.

Configuration is split into two files:

1. settings.json - Machine-specific tool settings
   - default_output_format: "table" or "json"
   - thresholds: path to a thresholds.yaml (optional, if not colocated)

2. thresholds.yaml - HR KPI thresholds for this practice
   - warn/critical bands, k_min, avg_hourly_rate
   - Any key left out keeps its default

Config directory resolution:
1. PRAXIS_CALC_CONFIG_PATH environment variable (if set)
2. ~/.config/praxis-calc/ (XDG_CONFIG_HOME fallback)

Thresholds resolution:
1. settings.json "thresholds" key (if set)
2. thresholds.yaml in the config directory
3. Built-in defaults
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from .hr.schemas import HrThresholds

logger = logging.getLogger(__name__)


APP_NAME = "praxis-calc"
SETTINGS_FILENAME = "settings.json"
THRESHOLDS_FILENAME = "thresholds.yaml"
OUTPUT_FORMATS = ("table", "json")


class ConfigNotFoundError(Exception):
    """Raised when a required configuration file is missing."""
    pass


class ThresholdsValidationError(Exception):
    """Raised when thresholds.yaml does not describe valid thresholds."""

    def __init__(self, path: Path, error: ValidationError):
        self.path = path
        self.errors = error.errors()
        lines = [f"Invalid thresholds in {path}:"]
        for err in self.errors:
            location = ".".join(str(p) for p in err["loc"]) or "(root)"
            lines.append(f"  {location}: {err['msg']}")
        super().__init__("\n".join(lines))


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. PRAXIS_CALC_CONFIG_PATH environment variable
    2. ~/.config/praxis-calc/ (XDG_CONFIG_HOME)
    """
    env_path = os.environ.get("PRAXIS_CALC_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        return json.load(f)


def save_settings(settings: dict) -> Path:
    """Save settings.json, creating the config directory if needed."""
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    return load_settings().get(key, default)


def set_setting(key: str, value: Any) -> Path:
    """Set one key in settings.json.

    Raises:
        ValueError: default_output_format is not one of OUTPUT_FORMATS
    """
    if key == "default_output_format" and value not in OUTPUT_FORMATS:
        raise ValueError(
            f"Unknown output format: {value} (expected one of {', '.join(OUTPUT_FORMATS)})"
        )
    settings = load_settings()
    settings[key] = value
    return save_settings(settings)


def get_thresholds_path(require_exists: bool = False) -> Path:
    """Get the path to thresholds.yaml.

    Resolution order:
    1. settings.json "thresholds" key (if set)
    2. thresholds.yaml in config directory

    Raises:
        ConfigNotFoundError: If require_exists=True and the file is missing
    """
    custom = get_setting("thresholds")
    path = Path(custom) if custom else get_config_dir() / THRESHOLDS_FILENAME

    if require_exists and not path.exists():
        raise ConfigNotFoundError(
            f"Thresholds file not found: {path}\n\n"
            f"Create one with: praxis-calc config thresholds --init"
        )
    return path


def load_thresholds(path: Optional[Path] = None) -> HrThresholds:
    """Load HR thresholds from YAML, falling back to defaults.

    Args:
        path: Explicit file; must exist. Without it the resolved
            thresholds.yaml is used if present, else the defaults.

    Returns:
        HrThresholds to pass to every HR entry point

    Raises:
        ConfigNotFoundError: explicit path does not exist
        ThresholdsValidationError: file content is not valid thresholds
    """
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise ConfigNotFoundError(f"Thresholds file not found: {path}")
    else:
        path = get_thresholds_path()
        if not path.exists():
            logger.debug(f"No thresholds file at {path}, using defaults")
            return HrThresholds()

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    try:
        thresholds = HrThresholds.model_validate(data)
    except ValidationError as e:
        raise ThresholdsValidationError(path, e) from e

    logger.debug(f"Loaded thresholds from {path}")
    return thresholds


def save_thresholds(thresholds: HrThresholds, path: Optional[Path] = None) -> Path:
    """Write thresholds as YAML (all keys, defaults included)."""
    if path is None:
        path = get_thresholds_path()

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.dump(thresholds.model_dump(), f, default_flow_style=False, sort_keys=False)

    return path
