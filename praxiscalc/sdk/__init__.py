"""Praxis Calc SDK - Staffing demand and privacy-compliant HR KPIs."""

from .numeric import (
    clamp,
    safe_num,
    is_finite_number,
    round_to,
    round_half_up,
    ceil_to_step,
    ceil_div,
    snap,
    normalize_complexity,
)

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    get_thresholds_path,
    load_thresholds,
    save_thresholds,
    ConfigNotFoundError,
    ThresholdsValidationError,
)

from .staffing import (
    StaffingInput,
    CurrentStaffingFte,
    StaffingResult,
    compute_staffing,
    STAFFING_ENGINE_VERSION,
)

from .hr import (
    ComplianceError,
    AggregationLevel,
    HrAggregatedGroupInput,
    HrPracticeInput,
    HrThresholds,
    HrKpiSnapshot,
    HrAlert,
    HrOverview,
    assert_no_person_level,
    validate_aggregated_input,
    compute_practice_snapshot,
    compute_role_snapshots,
    generate_hr_alerts,
    aggregate_staff_to_groups,
    compute_hr_overview,
)

__all__ = [
    # Numeric
    "clamp",
    "safe_num",
    "is_finite_number",
    "round_to",
    "round_half_up",
    "ceil_to_step",
    "ceil_div",
    "snap",
    "normalize_complexity",
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "get_thresholds_path",
    "load_thresholds",
    "save_thresholds",
    "ConfigNotFoundError",
    "ThresholdsValidationError",
    # Staffing
    "StaffingInput",
    "CurrentStaffingFte",
    "StaffingResult",
    "compute_staffing",
    "STAFFING_ENGINE_VERSION",
    # HR
    "ComplianceError",
    "AggregationLevel",
    "HrAggregatedGroupInput",
    "HrPracticeInput",
    "HrThresholds",
    "HrKpiSnapshot",
    "HrAlert",
    "HrOverview",
    "assert_no_person_level",
    "validate_aggregated_input",
    "compute_practice_snapshot",
    "compute_role_snapshots",
    "generate_hr_alerts",
    "aggregate_staff_to_groups",
    "compute_hr_overview",
]
