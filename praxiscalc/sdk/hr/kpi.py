"""HR KPI engine: privacy-compliant KPI snapshots from aggregated groups.

Accepts pre-aggregated data only. Every entry point scans its input with
the compliance guard and validates it before any number is computed
(fail closed). All time arithmetic is done in minutes.

Thresholds are always passed in explicitly; there is no hidden default.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from ..numeric import round_half_up, round_to
from .guard import (
    assert_no_person_level,
    filter_and_aggregate_by_k_anonymity,
    validate_aggregated_input,
)
from .schemas import (
    DEFAULT_LEGAL_BASIS,
    HR_COMPLIANCE_VERSION,
    PRACTICE_GROUP_KEY,
    AbsenceByType,
    AggregationLevel,
    ComplianceError,
    HrAggregatedGroupInput,
    HrAuditMetadata,
    HrKpiMetrics,
    HrKpiSnapshot,
    HrPracticeInput,
    HrThresholds,
    OverallStatus,
    RoleSnapshotResult,
)


MINUTES_PER_HOUR = 60
DAYS_PER_WEEK = 7
WEEKS_PER_YEAR = 52
MONTHS_PER_YEAR = 12

PracticeInputLike = Union[HrPracticeInput, Dict[str, Any]]


# =============================================================================
# Metric Helpers
# =============================================================================


def calculate_fte_quote(current_fte: float, target_fte: float) -> float:
    """current / target rounded to 3 decimals; 0 without a positive target."""
    if target_fte <= 0:
        return 0.0
    return round_to(current_fte / target_fte, 3)


def calculate_absence_rate(total_absence_days: float, headcount: int, workdays_in_period: int) -> float:
    """Absence days as percent of possible workdays (headcount x workdays)."""
    possible_days = headcount * workdays_in_period
    if possible_days <= 0:
        return 0.0
    return round_to(total_absence_days / possible_days * 100, 2)


def calculate_overtime_rate(total_overtime_minutes: float, total_contract_minutes: float) -> float:
    """Overtime as percent of contracted minutes in the period."""
    if total_contract_minutes <= 0:
        return 0.0
    return round_to(total_overtime_minutes / total_contract_minutes * 100, 2)


def calculate_labor_cost_ratio(
    contracted_hours_per_week: float,
    monthly_revenue: Optional[float],
    avg_hourly_rate: float,
) -> Optional[float]:
    """Estimated monthly labor cost as percent of monthly revenue.

    Returns None without a positive revenue.
    """
    if monthly_revenue is None or monthly_revenue <= 0:
        return None
    monthly_hours = contracted_hours_per_week * WEEKS_PER_YEAR / MONTHS_PER_YEAR
    return round_to(monthly_hours * avg_hourly_rate / monthly_revenue * 100, 2)


def determine_overall_status(
    fte_quote: float,
    absence_rate_percent: float,
    overtime_rate_percent: float,
    thresholds: HrThresholds,
    labor_cost_ratio_percent: Optional[float] = None,
) -> OverallStatus:
    """critical if any metric crosses its critical band, else warning, else ok."""
    has_cost = labor_cost_ratio_percent is not None

    if (
        fte_quote < thresholds.fte_gap_critical
        or absence_rate_percent >= thresholds.absence_rate_critical
        or overtime_rate_percent >= thresholds.overtime_rate_critical
        or (has_cost and labor_cost_ratio_percent >= thresholds.labor_cost_ratio_critical)
    ):
        return "critical"

    if (
        fte_quote < thresholds.fte_gap_warn
        or absence_rate_percent >= thresholds.absence_rate_warn
        or overtime_rate_percent >= thresholds.overtime_rate_warn
        or (has_cost and labor_cost_ratio_percent >= thresholds.labor_cost_ratio_warn)
    ):
        return "warning"

    return "ok"


def aggregate_groups(groups: Iterable[HrAggregatedGroupInput]) -> HrAggregatedGroupInput:
    """Sum groups into one practice-level pseudo group."""
    totals = {
        "headcount": 0,
        "total_fte": 0.0,
        "total_contracted_hours_per_week": 0.0,
        "total_overtime_minutes": 0.0,
        "total_absence_days": 0.0,
    }
    absence = {"sick": 0.0, "vacation": 0.0, "training": 0.0, "other": 0.0}

    for group in groups:
        for field in totals:
            totals[field] += getattr(group, field)
        for absence_type in absence:
            absence[absence_type] += getattr(group.absence_by_type, absence_type)

    return HrAggregatedGroupInput(
        group_key=PRACTICE_GROUP_KEY,
        absence_by_type=AbsenceByType(**absence),
        **totals,
    )


def period_days(period_start: date, period_end: date) -> int:
    """Length of the period in whole days, both ends inclusive."""
    return (period_end - period_start).days + 1


# =============================================================================
# Internals
# =============================================================================


def _prepare(practice_input: PracticeInputLike, thresholds: HrThresholds) -> HrPracticeInput:
    """Guard scan, model validation and pre-flight check. Fails closed."""
    assert_no_person_level(practice_input)

    practice = practice_input
    if not isinstance(practice, HrPracticeInput):
        practice = HrPracticeInput.model_validate(practice)

    validation = validate_aggregated_input(practice.groups, thresholds.k_min)
    if not validation.valid:
        raise ComplianceError(
            f"Compliance-Validierung fehlgeschlagen: {'; '.join(validation.errors)}"
        )
    return practice


def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def _build_snapshot(
    practice: HrPracticeInput,
    group: HrAggregatedGroupInput,
    target_fte: float,
    level: AggregationLevel,
    thresholds: HrThresholds,
    created_at: datetime,
    with_labor_cost: bool,
) -> HrKpiSnapshot:
    days = period_days(practice.period_start, practice.period_end)
    weeks = days / DAYS_PER_WEEK
    workdays = round_half_up(weeks * practice.workdays_per_week)
    contract_minutes = group.total_contracted_hours_per_week * MINUTES_PER_HOUR * weeks

    fte_quote = calculate_fte_quote(group.total_fte, target_fte)
    absence_rate = calculate_absence_rate(group.total_absence_days, group.headcount, workdays)
    overtime_rate = calculate_overtime_rate(group.total_overtime_minutes, contract_minutes)
    labor_cost = (
        calculate_labor_cost_ratio(
            group.total_contracted_hours_per_week,
            practice.monthly_revenue,
            thresholds.avg_hourly_rate,
        )
        if with_labor_cost
        else None
    )

    metrics = HrKpiMetrics(
        fte_quote=fte_quote,
        current_fte=round_to(group.total_fte, 2),
        target_fte=round_to(target_fte, 2),
        fte_delta=round_to(group.total_fte - target_fte, 2),
        absence_rate_percent=absence_rate,
        overtime_rate_percent=overtime_rate,
        labor_cost_ratio_percent=labor_cost,
        overall_status=determine_overall_status(
            fte_quote, absence_rate, overtime_rate, thresholds, labor_cost
        ),
    )

    # practice_id stays empty: the caller attaches its own context
    return HrKpiSnapshot(
        id=str(uuid.uuid4()),
        period_start=practice.period_start,
        period_end=practice.period_end,
        aggregation_level=level,
        group_key=group.group_key,
        group_size=group.headcount,
        metrics=metrics,
        audit=HrAuditMetadata(
            aggregation_level=level,
            k_used=thresholds.k_min,
            legal_basis=DEFAULT_LEGAL_BASIS,
            created_at=created_at,
            compliance_version=HR_COMPLIANCE_VERSION,
        ),
    )


# =============================================================================
# Main Entry Points
# =============================================================================


def compute_practice_snapshot(
    practice_input: PracticeInputLike,
    thresholds: HrThresholds,
    now: Optional[datetime] = None,
) -> HrKpiSnapshot:
    """KPI snapshot for the whole practice, the safest aggregation level.

    Args:
        practice_input: HrPracticeInput or an equivalent dict
        thresholds: Explicit thresholds (see config.load_thresholds)
        now: Timestamp for the audit block (defaults to the current UTC time)

    Raises:
        ComplianceError: person-level fields or failed validation
    """
    practice = _prepare(practice_input, thresholds)
    return _build_snapshot(
        practice,
        aggregate_groups(practice.groups),
        practice.target_fte,
        AggregationLevel.PRACTICE,
        thresholds,
        _now(now),
        with_labor_cost=True,
    )


def compute_role_snapshots(
    practice_input: PracticeInputLike,
    thresholds: HrThresholds,
    now: Optional[datetime] = None,
) -> RoleSnapshotResult:
    """KPI snapshots per role, k-anonymity applied first.

    Groups below k_min are merged into "SONSTIGE" (or dropped). If no group
    survives, the result holds a single practice snapshot with
    fallback_to_practice set and a warning saying so. Each role's target
    FTE is its headcount share of the practice target. Labor cost is not
    computed per role.

    Raises:
        ComplianceError: person-level fields or failed validation
    """
    practice = _prepare(practice_input, thresholds)
    created_at = _now(now)

    compliant = filter_and_aggregate_by_k_anonymity(practice.groups, thresholds.k_min)

    if not compliant:
        snapshot = _build_snapshot(
            practice,
            aggregate_groups(practice.groups),
            practice.target_fte,
            AggregationLevel.PRACTICE,
            thresholds,
            created_at,
            with_labor_cost=True,
        )
        return RoleSnapshotResult(
            snapshots=[snapshot],
            fallback_to_practice=True,
            warnings=[
                f"ROLE-Level nicht moeglich wegen k-Anonymitaet (keine Gruppe erreicht "
                f"kMin={thresholds.k_min}), Fallback auf PRACTICE."
            ],
        )

    total_headcount = sum(g.headcount for g in practice.groups)
    snapshots: List[HrKpiSnapshot] = []
    for group in compliant:
        role_target = (
            group.headcount / total_headcount * practice.target_fte if total_headcount > 0 else 0.0
        )
        snapshots.append(_build_snapshot(
            practice,
            group,
            role_target,
            AggregationLevel.ROLE,
            thresholds,
            created_at,
            with_labor_cost=False,
        ))

    return RoleSnapshotResult(snapshots=snapshots)
