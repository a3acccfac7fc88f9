"""hr - Privacy-compliant HR KPIs on aggregated personnel data.

Scope:
- Compliance guard: forbidden fields, k-anonymity, group keys, text lint (guard.py)
- KPI snapshots at practice or role level (kpi.py)
- Organisational alerts from snapshots (alerts.py)
- Aggregation of per-person records into role groups (intake.py)
- Overview combining all of the above (overview.py)

Constraints:
- No person level: identifiers anywhere in the input raise ComplianceError
- Groups below k_min are merged or dropped, never reported alone
- Thresholds are passed explicitly to every entry point
- Core modules (guard, kpi, alerts) do no I/O and no logging

Usage:
    from praxiscalc.sdk.hr import HrThresholds, compute_hr_overview

    overview = compute_hr_overview(practice_input, HrThresholds(), level="role")
    for entry in overview.alerts_by_snapshot:
        ...
"""

from .schemas import (
    HR_COMPLIANCE_VERSION,
    DEFAULT_LEGAL_BASIS,
    K_ANONYMITY_ABSOLUTE_MIN,
    K_ANONYMITY_RECOMMENDED_MIN,
    ALLOWED_ROLE_KEYS,
    ComplianceError,
    AggregationLevel,
    AlertCode,
    AbsenceByType,
    HrAggregatedGroupInput,
    HrPracticeInput,
    HrThresholds,
    validate_k_min,
    HrKpiMetrics,
    HrAuditMetadata,
    HrKpiSnapshot,
    HrAlert,
    KAnonymityResult,
    ComplianceValidationResult,
    RoleSnapshotResult,
    SnapshotAlerts,
    ComplianceInfo,
    HrOverview,
)

from .guard import (
    FORBIDDEN_ID_FIELDS,
    FORBIDDEN_IN_HR_ANALYTICS,
    FORBIDDEN_FIELDS,
    FORBIDDEN_PERSONAL_TERMS,
    CONTEXT_SENSITIVE_TERMS,
    assert_no_person_level,
    with_compliance_guard,
    enforce_k_anonymity,
    sanitize_group_key,
    filter_and_aggregate_by_k_anonymity,
    validate_aggregated_input,
    assert_text_compliance,
)

from .kpi import (
    calculate_fte_quote,
    calculate_absence_rate,
    calculate_overtime_rate,
    calculate_labor_cost_ratio,
    determine_overall_status,
    aggregate_groups,
    period_days,
    compute_practice_snapshot,
    compute_role_snapshots,
)

from .alerts import (
    AlertRule,
    ALERT_RULES,
    generate_hr_alerts,
    filter_alerts_by_severity,
    has_critical_alerts,
    get_highest_severity,
    group_alerts_by_code,
)

from .intake import aggregate_staff_to_groups

from .overview import compute_hr_overview

__all__ = [
    # Constants
    "HR_COMPLIANCE_VERSION",
    "DEFAULT_LEGAL_BASIS",
    "K_ANONYMITY_ABSOLUTE_MIN",
    "K_ANONYMITY_RECOMMENDED_MIN",
    "ALLOWED_ROLE_KEYS",
    # Schemas
    "ComplianceError",
    "AggregationLevel",
    "AlertCode",
    "AbsenceByType",
    "HrAggregatedGroupInput",
    "HrPracticeInput",
    "HrThresholds",
    "validate_k_min",
    "HrKpiMetrics",
    "HrAuditMetadata",
    "HrKpiSnapshot",
    "HrAlert",
    "KAnonymityResult",
    "ComplianceValidationResult",
    "RoleSnapshotResult",
    "SnapshotAlerts",
    "ComplianceInfo",
    "HrOverview",
    # Guard
    "FORBIDDEN_ID_FIELDS",
    "FORBIDDEN_IN_HR_ANALYTICS",
    "FORBIDDEN_FIELDS",
    "FORBIDDEN_PERSONAL_TERMS",
    "CONTEXT_SENSITIVE_TERMS",
    "assert_no_person_level",
    "with_compliance_guard",
    "enforce_k_anonymity",
    "sanitize_group_key",
    "filter_and_aggregate_by_k_anonymity",
    "validate_aggregated_input",
    "assert_text_compliance",
    # KPI
    "calculate_fte_quote",
    "calculate_absence_rate",
    "calculate_overtime_rate",
    "calculate_labor_cost_ratio",
    "determine_overall_status",
    "aggregate_groups",
    "period_days",
    "compute_practice_snapshot",
    "compute_role_snapshots",
    # Alerts
    "AlertRule",
    "ALERT_RULES",
    "generate_hr_alerts",
    "filter_alerts_by_severity",
    "has_critical_alerts",
    "get_highest_severity",
    "group_alerts_by_code",
    # Intake / overview
    "aggregate_staff_to_groups",
    "compute_hr_overview",
]
