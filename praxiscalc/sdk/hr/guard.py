"""Compliance guard for HR analytics (DSGVO / ArbSchG).

Principles:
1. Identifier fields are forbidden at any depth of HR analytics input.
2. Master-data fields (name, email, phone, birth date) are forbidden inside
   HR analytics structures; they belong to staff records, not to KPIs.
3. k-anonymity is configurable (minimum 3, recommended 5).
4. Texts are linted: personal references are rejected, systemic phrasing
   of "stress" or "burnout" is allowed.

Every violation raises ComplianceError. Nothing here logs or mutates input.
"""

import functools
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from pydantic import BaseModel

from .schemas import (
    ALLOWED_ROLE_KEYS,
    CATCH_ALL_GROUP_KEY,
    PRACTICE_GROUP_KEY,
    AbsenceByType,
    AggregationLevel,
    ComplianceError,
    ComplianceValidationResult,
    HrAggregatedGroupInput,
    KAnonymityResult,
    validate_k_min,
)


# =============================================================================
# Forbidden Field and Term Lists
# =============================================================================

# Direct identifiers: forbidden anywhere in HR analytics input
FORBIDDEN_ID_FIELDS = (
    "staffId",
    "employeeId",
    "personId",
    "memberId",
    "workerId",
    "mitarbeiterId",
    "personalnummer",
    "sozialversicherungsnummer",
    "ssn",
)

# Personal master data: normal in a staff record, forbidden in KPI input
FORBIDDEN_IN_HR_ANALYTICS = (
    "name",
    "fullName",
    "firstName",
    "lastName",
    "vorname",
    "nachname",
    "email",
    "phone",
    "telefon",
    "address",
    "adresse",
    "birthDate",
    "geburtsdatum",
    "individual",
    "person",
    "employee",
    "mitarbeiter",
)

FORBIDDEN_FIELDS = FORBIDDEN_ID_FIELDS + FORBIDDEN_IN_HR_ANALYTICS

# Always rejected in alert and explanation texts (case-insensitive substring).
# The trailing space on "Mitarbeiter " keeps "Mitarbeiteranzahl" legal.
FORBIDDEN_PERSONAL_TERMS = (
    "Mitarbeiter ",
    "Mitarbeiterin ",
    "Kollege",
    "Kollegin",
    "Person X",
    "Herr ",
    "Frau ",
    # individual health assessments
    "Risikoprofil",
    "Gesundheitsprofil",
    "ueberfordert",
    "überfordert",
    "Ueberforderung",
    "Überforderung",
    # diagnoses are outside an employer's remit
    "Depression",
    "Angst",
    "psychisch krank",
    "mental krank",
)

# Allowed when systemic ("Stresspraevention"), rejected when addressed to someone
CONTEXT_SENSITIVE_TERMS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("stress", ("hat stress", "leidet unter stress", "sein stress", "ihr stress")),
    ("burnout", ("hat burnout", "burnout bei", "sein burnout", "ihr burnout")),
)

# Free-text role labels mapped onto the whitelist
ROLE_ALIASES = {
    "ZAHNMEDIZINISCHE FACHANGESTELLTE": "ZFA",
    "ZMF": "ZFA",
    "DENTALHYGIENIKERIN": "DH",
    "DENTALHYGIENIKER": "DH",
    "DENTAL HYGIENIST": "DH",
    "PROPHYLAXE": "DH",
    "ZAHNAERZTIN": "ZAHNARZT",
    "ZAHNÄRZTIN": "ZAHNARZT",
    "ARZT": "ZAHNARZT",
    "DR": "ZAHNARZT",
    "DENTIST": "ZAHNARZT",
    "REZEPTION": "EMPFANG",
    "RECEPTION": "EMPFANG",
    "FRONT OFFICE": "EMPFANG",
    "ADMINISTRATION": "VERWALTUNG",
    "ADMIN": "VERWALTUNG",
    "BACKOFFICE": "VERWALTUNG",
    "BACK OFFICE": "VERWALTUNG",
    "AUSZUBILDENDE": "AZUBI",
    "AUSZUBILDENDER": "AZUBI",
    "APPRENTICE": "AZUBI",
    "PRAKTIKANT": "AZUBI",
    "PRAKTIKANTIN": "AZUBI",
}


def _normalize_key(key: Any) -> str:
    """staff_id, staffId and STAFFID all compare equal."""
    return str(key).replace("_", "").lower()


_FORBIDDEN_ID_KEYS = {_normalize_key(f): f for f in FORBIDDEN_ID_FIELDS}
_FORBIDDEN_ANALYTICS_KEYS = {_normalize_key(f): f for f in FORBIDDEN_IN_HR_ANALYTICS}


# =============================================================================
# Field Scan
# =============================================================================


def assert_no_person_level(value: Any, path: str = "root") -> None:
    """Raise ComplianceError if any key in value names a person-level field.

    Walks dicts, lists, tuples and pydantic models (declared fields and
    extras). Primitive leaves are not inspected.

    Raises:
        ComplianceError: with field and path of the first violation found
    """
    if value is None:
        return

    if isinstance(value, BaseModel):
        value = value.model_dump()

    if isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            assert_no_person_level(item, f"{path}[{index}]")
        return

    if not isinstance(value, dict):
        return

    for key, child in value.items():
        normalized = _normalize_key(key)

        if normalized in _FORBIDDEN_ID_KEYS:
            raise ComplianceError(
                f'DSGVO-VERSTOSS: Personenbezogene ID "{key}" in HR-Analytics gefunden ({path}). '
                f"Individual-Analytics sind strikt verboten. "
                f"Aggregieren Sie Daten VOR der Uebergabe an das HR-Modul.",
                field=str(key),
                path=path,
            )

        if normalized in _FORBIDDEN_ANALYTICS_KEYS:
            raise ComplianceError(
                f'DSGVO-VERSTOSS: Feld "{key}" hat in HR-Analytics nichts verloren ({path}). '
                f"Dieses Feld gehoert zu personenbezogenen Stammdaten, nicht zu aggregierten KPIs.",
                field=str(key),
                path=path,
            )

        if isinstance(child, (dict, list, tuple, BaseModel)):
            assert_no_person_level(child, f"{path}.{key}")


F = TypeVar("F", bound=Callable[..., Any])


def with_compliance_guard(func: F) -> F:
    """Decorator: scan the first argument for person-level fields before calling func.

    Only the input is checked; output comes from trusted code.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if args:
            assert_no_person_level(args[0])
        elif kwargs:
            assert_no_person_level(next(iter(kwargs.values())))
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


# =============================================================================
# k-Anonymity
# =============================================================================


def enforce_k_anonymity(group_count: int, k_min: int) -> KAnonymityResult:
    """Check that a group is large enough to be reported on its own.

    Raises:
        ComplianceError: k_min below the absolute floor
    """
    _, warning = validate_k_min(k_min)

    if group_count >= k_min:
        return KAnonymityResult(allowed=True, warning=warning)

    return KAnonymityResult(
        allowed=False,
        fallback_level=AggregationLevel.PRACTICE,
        reason=(
            f"k-Anonymitaet verletzt: Gruppe hat nur {group_count} Person(en), "
            f"Minimum ist {k_min}. Daten werden auf Practice-Level aggregiert um "
            f"Rueckschluesse auf Einzelpersonen zu verhindern."
        ),
        warning=warning,
    )


def sanitize_group_key(group_key: str) -> str:
    """Map a free-text role label onto the whitelist.

    "practice" passes through; known labels and aliases map to their role
    key; everything else becomes "SONSTIGE".
    """
    if group_key.strip().lower() == PRACTICE_GROUP_KEY:
        return PRACTICE_GROUP_KEY

    normalized = group_key.strip().upper()
    if normalized in ROLE_ALIASES:
        return ROLE_ALIASES[normalized]
    if normalized in ALLOWED_ROLE_KEYS:
        return normalized
    return CATCH_ALL_GROUP_KEY


def _as_group(group: Union[HrAggregatedGroupInput, dict]) -> HrAggregatedGroupInput:
    if isinstance(group, HrAggregatedGroupInput):
        return group
    return HrAggregatedGroupInput.model_validate(group)


_TOTAL_FIELDS = (
    "headcount",
    "total_fte",
    "total_contracted_hours_per_week",
    "total_overtime_minutes",
    "total_absence_days",
)
_ABSENCE_TYPES = ("sick", "vacation", "training", "other")


def _empty_totals() -> dict:
    totals = {field: 0 for field in _TOTAL_FIELDS}
    totals.update({absence_type: 0.0 for absence_type in _ABSENCE_TYPES})
    return totals


def _add_totals(totals: dict, group: HrAggregatedGroupInput) -> None:
    for field in _TOTAL_FIELDS:
        totals[field] += getattr(group, field)
    for absence_type in _ABSENCE_TYPES:
        totals[absence_type] += getattr(group.absence_by_type, absence_type)


def _group_from_totals(group_key: str, totals: dict) -> HrAggregatedGroupInput:
    return HrAggregatedGroupInput(
        group_key=group_key,
        absence_by_type=AbsenceByType(**{t: totals[t] for t in _ABSENCE_TYPES}),
        **{field: totals[field] for field in _TOTAL_FIELDS},
    )


def filter_and_aggregate_by_k_anonymity(
    groups: Iterable[Union[HrAggregatedGroupInput, dict]],
    k_min: int,
) -> List[HrAggregatedGroupInput]:
    """Keep k-anonymous groups and merge the rest into one catch-all bucket.

    Large enough groups pass with their key sanitized; groups whose keys
    sanitize to the same role are summed into one. Smaller groups are summed
    into "SONSTIGE". That bucket joins an existing "SONSTIGE" group, or is
    kept on its own only if it reaches k_min; otherwise it is dropped.

    Raises:
        ComplianceError: k_min below the absolute floor
    """
    effective_k, _ = validate_k_min(k_min)

    merged: Dict[str, dict] = {}
    small: Optional[dict] = None

    for group in map(_as_group, groups):
        if enforce_k_anonymity(group.headcount, effective_k).allowed:
            key = sanitize_group_key(group.group_key)
            _add_totals(merged.setdefault(key, _empty_totals()), group)
            continue

        if small is None:
            small = _empty_totals()
        _add_totals(small, group)

    if small is not None:
        if CATCH_ALL_GROUP_KEY in merged:
            for field, value in small.items():
                merged[CATCH_ALL_GROUP_KEY][field] += value
        elif enforce_k_anonymity(small["headcount"], effective_k).allowed:
            merged[CATCH_ALL_GROUP_KEY] = small

    return [_group_from_totals(key, totals) for key, totals in merged.items()]


# =============================================================================
# Validation and Text Lint
# =============================================================================


def validate_aggregated_input(
    groups: Sequence[Union[HrAggregatedGroupInput, dict]],
    k_min: int,
) -> ComplianceValidationResult:
    """Pre-flight report for aggregated groups. Never mutates the input.

    Errors: sub-floor k_min, forbidden fields, headcount <= 0, negative FTE
    or overtime. Warnings: small groups, renamed group keys, k_min below
    the recommended value.
    """
    errors: List[str] = []
    warnings: List[str] = []

    try:
        _, k_warning = validate_k_min(k_min)
    except ComplianceError as e:
        return ComplianceValidationResult(valid=False, errors=[str(e)], warnings=warnings)
    if k_warning:
        warnings.append(k_warning)

    try:
        assert_no_person_level(list(groups))
    except ComplianceError as e:
        errors.append(str(e))

    for group in map(_as_group, groups):
        k_result = enforce_k_anonymity(group.headcount, k_min)
        if not k_result.allowed:
            warnings.append(f'Gruppe "{group.group_key}": {k_result.reason}')

        sanitized = sanitize_group_key(group.group_key)
        if sanitized != group.group_key and sanitized != PRACTICE_GROUP_KEY:
            warnings.append(f'Gruppe "{group.group_key}" wurde zu "{sanitized}" normalisiert.')

        if group.headcount <= 0:
            errors.append(f'Gruppe "{group.group_key}": headcount muss > 0 sein.')
        if group.total_fte < 0:
            errors.append(f'Gruppe "{group.group_key}": totalFte darf nicht negativ sein.')
        if group.total_overtime_minutes < 0:
            errors.append(f'Gruppe "{group.group_key}": Ueberstunden duerfen nicht negativ sein.')

    return ComplianceValidationResult(valid=not errors, errors=errors, warnings=warnings)


def assert_text_compliance(text: str) -> bool:
    """Reject texts that refer to individuals.

    Returns:
        True when the text is compliant

    Raises:
        ComplianceError: a personal term, or "stress"/"burnout" used personally
    """
    lower_text = text.lower()

    for term in FORBIDDEN_PERSONAL_TERMS:
        if term.lower() in lower_text:
            raise ComplianceError(
                f'DSGVO-VERSTOSS: Text enthaelt verbotenen personenbezogenen Begriff "{term}". '
                f"Verwenden Sie neutrale, organisatorische Sprache ohne Bezug auf Einzelpersonen."
            )

    for term, patterns in CONTEXT_SENSITIVE_TERMS:
        for pattern in patterns:
            if pattern in lower_text:
                raise ComplianceError(
                    f'DSGVO-VERSTOSS: "{term}" wird personenbezogen verwendet ("{pattern}"). '
                    f'Erlaubt ist systemische Verwendung wie "{term}praevention".'
                )

    return True
