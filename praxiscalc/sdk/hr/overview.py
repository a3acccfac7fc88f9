"""HR overview: validation, snapshots and alerts composed into one result."""

import logging
from datetime import datetime
from typing import Optional

from .alerts import generate_hr_alerts
from .guard import assert_no_person_level, validate_aggregated_input
from .kpi import PracticeInputLike, compute_practice_snapshot, compute_role_snapshots
from .schemas import (
    ComplianceError,
    ComplianceInfo,
    HrOverview,
    HrPracticeInput,
    HrThresholds,
    SnapshotAlerts,
)

logger = logging.getLogger(__name__)

AGGREGATION_LEVELS = ("practice", "role")


def compute_hr_overview(
    practice_input: PracticeInputLike,
    thresholds: HrThresholds,
    level: str = "practice",
    now: Optional[datetime] = None,
) -> HrOverview:
    """Compute snapshots for the requested level and the alerts for each.

    Args:
        practice_input: HrPracticeInput or an equivalent dict
        thresholds: Explicit thresholds
        level: "practice" or "role"
        now: Timestamp for the audit blocks

    Returns:
        HrOverview. When role level falls back to practice level,
        aggregation_level is "practice" and the fallback is listed in
        warnings.

    Raises:
        ComplianceError: person-level fields or failed validation
        ValueError: unknown level
    """
    level = level.lower()
    if level not in AGGREGATION_LEVELS:
        raise ValueError(f"Unknown aggregation level: {level} (expected practice or role)")

    assert_no_person_level(practice_input)
    practice = (
        practice_input
        if isinstance(practice_input, HrPracticeInput)
        else HrPracticeInput.model_validate(practice_input)
    )

    validation = validate_aggregated_input(practice.groups, thresholds.k_min)
    if not validation.valid:
        logger.warning(f"HR input rejected: {len(validation.errors)} error(s)")
        raise ComplianceError(
            f"Compliance-Validierung fehlgeschlagen: {'; '.join(validation.errors)}"
        )
    warnings = list(validation.warnings)

    effective_level = level
    if level == "role":
        result = compute_role_snapshots(practice, thresholds, now=now)
        snapshots = result.snapshots
        warnings.extend(result.warnings)
        if result.fallback_to_practice:
            effective_level = "practice"
            logger.warning("Role level not k-anonymous, fell back to practice level")
    else:
        snapshots = [compute_practice_snapshot(practice, thresholds, now=now)]

    alerts_by_snapshot = [
        SnapshotAlerts(
            group_key=snapshot.group_key,
            aggregation_level=snapshot.aggregation_level,
            alerts=generate_hr_alerts(snapshot, thresholds),
        )
        for snapshot in snapshots
    ]
    logger.debug(
        f"HR overview: {len(snapshots)} snapshot(s) at {effective_level} level, "
        f"{len(warnings)} warning(s)"
    )

    return HrOverview(
        period_start=practice.period_start,
        period_end=practice.period_end,
        requested_level=level,
        aggregation_level=effective_level,
        snapshots=snapshots,
        alerts_by_snapshot=alerts_by_snapshot,
        compliance=ComplianceInfo(k_min=thresholds.k_min),
        warnings=warnings,
    )
