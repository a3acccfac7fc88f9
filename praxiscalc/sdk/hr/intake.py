"""Strip per-person staff records into aggregated role groups.

This is the only place in the package that sees individual records. It
drops every identifier and returns HrAggregatedGroupInput values keyed by
whitelisted role, ready for the KPI engine.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .guard import sanitize_group_key
from .schemas import AbsenceByType, HrAggregatedGroupInput

logger = logging.getLogger(__name__)

DEFAULT_STAFF_FTE = 1.0
DEFAULT_WEEKLY_HOURS = 40.0
ABSENCE_TYPES = ("sick", "vacation", "training", "other")


def map_absence_type(absence_type: Optional[str]) -> str:
    """Map a stored absence type onto sick/vacation/training/other."""
    if absence_type in ABSENCE_TYPES:
        return absence_type
    return "other"


def _get(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key; records arrive in snake_case or camelCase."""
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def aggregate_staff_to_groups(
    staff: Iterable[Mapping[str, Any]],
    absences: Iterable[Mapping[str, Any]] = (),
    overtime: Iterable[Mapping[str, Any]] = (),
) -> List[HrAggregatedGroupInput]:
    """Aggregate staff, absence and overtime records per role.

    Args:
        staff: Records with id, role, fte (default 1.0), weekly_hours (default 40)
        absences: Records with staff_id, absence_type, days
        overtime: Records with staff_id, hours

    Returns:
        One group per role present, identifiers removed. Absences and
        overtime of unknown staff ids are skipped.
    """
    role_by_staff: Dict[str, str] = {}
    groups: Dict[str, Dict[str, Any]] = {}

    for record in staff:
        role = sanitize_group_key(str(_get(record, "role", default="")))
        role_by_staff[str(_get(record, "id"))] = role

        group = groups.setdefault(role, {
            "headcount": 0,
            "total_fte": 0.0,
            "total_contracted_hours_per_week": 0.0,
            "total_overtime_minutes": 0.0,
            "absence": dict.fromkeys(ABSENCE_TYPES, 0.0),
        })
        group["headcount"] += 1
        group["total_fte"] += float(_get(record, "fte", default=DEFAULT_STAFF_FTE))
        group["total_contracted_hours_per_week"] += float(
            _get(record, "weekly_hours", "weeklyHours", default=DEFAULT_WEEKLY_HOURS)
        )

    skipped = 0
    for record in absences:
        role = role_by_staff.get(str(_get(record, "staff_id", "staffId")))
        if role is None:
            skipped += 1
            continue
        absence_type = map_absence_type(_get(record, "absence_type", "absenceType"))
        groups[role]["absence"][absence_type] += float(_get(record, "days", default=0))

    for record in overtime:
        role = role_by_staff.get(str(_get(record, "staff_id", "staffId")))
        if role is None:
            skipped += 1
            continue
        groups[role]["total_overtime_minutes"] += float(_get(record, "hours", default=0)) * 60

    if skipped:
        logger.warning(f"Skipped {skipped} absence/overtime records for unknown staff")
    logger.debug(f"Aggregated staff records into {len(groups)} role groups")

    return [
        HrAggregatedGroupInput(
            group_key=role,
            headcount=data["headcount"],
            total_fte=data["total_fte"],
            total_contracted_hours_per_week=data["total_contracted_hours_per_week"],
            total_overtime_minutes=data["total_overtime_minutes"],
            total_absence_days=sum(data["absence"].values()),
            absence_by_type=AbsenceByType(**data["absence"]),
        )
        for role, data in groups.items()
    ]
