"""Staffing demand calculation for dental practices.

Maps structural practice inputs (dentists, chairs, prophylaxis chairs,
patient volume, complexity) to the FTE each role needs. Pure and total:
the same input always gives the same output, and malformed numbers are
sanitized to safe defaults instead of raising.

Pipeline:
1. Derive C, N, PPC, TI, CB, SF from the inputs
2. Base FTE per role (no buffer)
3. Final FTE (clinical and admin buffers applied)
4. Rounded FTE (ceiling to the configured step, never down)
5. Ratios and traffic-light flags
6. Headcount hint (heads given the average contract fraction)
7. Coverage (ist / soll) when current FTE is supplied
"""

from typing import Any, Dict, List, Optional, Union

from ..numeric import (
    ceil_div,
    ceil_to_step,
    clamp,
    is_finite_number,
    normalize_complexity,
    round_half_up,
    round_to,
    safe_num,
    snap,
)
from .schemas import (
    CurrentStaffingFte,
    DerivedValues,
    FteByRole,
    HeadcountHint,
    StaffingCoverage,
    StaffingFlag,
    StaffingInput,
    StaffingMeta,
    StaffingRatios,
    StaffingResult,
)


# Rule set version.
# 1.1.0: inactive practice (frontdesk=0), integer fallback for C, meta field
# 1.2.0: treatment_rooms=0 means unknown, C=0 when dentists=0,
#        prophylaxis-only practices are active, total_from_rounded_parts
STAFFING_ENGINE_VERSION = "1.2.0"

DEFAULT_CLINICAL_BUFFER = 0.12
DEFAULT_ADMIN_BUFFER = 0.08
DEFAULT_ROUNDING_STEP = 0.10
DEFAULT_PATIENTS_PER_CHAIR = 18
DEFAULT_AVG_CONTRACT_FRACTION = 0.80
DEFAULT_COMPLEXITY_LEVEL = 0
DEFAULT_PROPHYLAXIS_CHAIRS = 0

STAFFING_DEFAULTS = {
    "clinical_buffer": DEFAULT_CLINICAL_BUFFER,
    "admin_buffer": DEFAULT_ADMIN_BUFFER,
    "rounding_step_fte": DEFAULT_ROUNDING_STEP,
    "default_patients_per_chair": DEFAULT_PATIENTS_PER_CHAIR,
    "avg_contract_fraction": DEFAULT_AVG_CONTRACT_FRACTION,
    "complexity_level": DEFAULT_COMPLEXITY_LEVEL,
    "prophylaxis_chairs": DEFAULT_PROPHYLAXIS_CHAIRS,
}

# Turnover band: 14..22 patients per chair per day maps TI onto 0..1
TURNOVER_FLOOR_PPC = 14
TURNOVER_BAND_WIDTH = 8

# Practice management kicks in on the core team size (without pm)
PM_HALF_THRESHOLD = 10
PM_FULL_THRESHOLD = 15

# Chairside per chair traffic-light bands
CHAIRSIDE_RED_BELOW = 1.20
CHAIRSIDE_YELLOW_BELOW = 1.45
CHAIRSIDE_GREEN_MAX = 1.80
CHAIRSIDE_YELLOW_MAX = 2.00

# Front desk bands
FRONTDESK_MIN_FTE = 0.50
FRONTDESK_HIGH_VOLUME_PATIENTS = 35
FRONTDESK_HIGH_VOLUME_FTE = 0.80

_ROLES = ("chairside", "steri", "zfa_total", "prophy", "frontdesk", "pm", "total")


def _with_default(value: Optional[float], default: float) -> Any:
    """Apply a default only when the field is missing (None)."""
    return default if value is None else value


def _fmt(value: float) -> str:
    """Compact number formatting for warning texts (2.0 -> '2')."""
    return f"{value:g}"


# =============================================================================
# Pipeline Steps
# =============================================================================


def compute_derived_values(inp: StaffingInput) -> DerivedValues:
    """Derive C, N, PPC, TI, CB, SF with the documented fallback order.

    C: explicit chairs_simultaneous > treatment_rooms (only if > 0 and
    dentists > 0) > round(dentists) (only if dentists > 0) > 0.
    A practice without dentists never gets an estimated chair.
    """
    warnings: List[str] = []

    dentists_fte = safe_num(inp.dentists_fte)
    complexity = normalize_complexity(_with_default(inp.complexity_level, DEFAULT_COMPLEXITY_LEVEL))
    patients_per_chair = safe_num(
        _with_default(inp.default_patients_per_chair, DEFAULT_PATIENTS_PER_CHAIR)
    )

    chairs = inp.chairs_simultaneous
    rooms = inp.treatment_rooms

    if is_finite_number(chairs):
        C = max(0, round_half_up(chairs))
    elif is_finite_number(rooms) and rooms > 0:
        if dentists_fte > 0:
            dentists_rounded = max(1, round_half_up(dentists_fte))
            rooms_rounded = round_half_up(rooms)
            C = min(rooms_rounded, dentists_rounded)
            warnings.append(
                f"chairsSimultaneous geschaetzt: C={C} "
                f"(min({rooms_rounded} Raeume, {dentists_rounded} Zahnaerzte))"
            )
        else:
            C = 0
            warnings.append(
                f"chairsSimultaneous=0: keine Zahnaerzte aktiv "
                f"(treatmentRooms={_fmt(rooms)} ignoriert)"
            )
    elif dentists_fte > 0:
        C = max(1, round_half_up(dentists_fte))
        warnings.append(
            f"chairsSimultaneous geschaetzt aus dentistsFte: C={C} "
            f"(keine Behandlungsraeume angegeben)"
        )
    else:
        C = 0

    if is_finite_number(inp.patients_per_day):
        N = max(0.0, float(inp.patients_per_day))
    else:
        N = C * patients_per_chair
        if C > 0:
            warnings.append(
                f"patientsPerDay geschaetzt: N={_fmt(N)} "
                f"({C} Stuehle x {_fmt(patients_per_chair)} Pat/Stuhl)"
            )

    PPC = N / C if C > 0 else 0.0
    TI = clamp((PPC - TURNOVER_FLOOR_PPC) / TURNOVER_BAND_WIDTH, 0.0, 1.0)
    CB = 0.05 * complexity
    SF = 0.15 + 0.25 * TI

    return DerivedValues(
        C=C,
        N=round_to(N, 4),
        PPC=round_to(PPC, 4),
        TI=round_to(TI, 4),
        CB=round_to(CB, 4),
        SF=round_to(SF, 4),
        warnings=warnings,
    )


def compute_base_fte(inp: StaffingInput, derived: DerivedValues) -> FteByRole:
    """Base FTE per role before any buffer."""
    C, N, SF, CB = derived.C, derived.N, derived.SF, derived.CB
    dentists_fte = safe_num(inp.dentists_fte)
    prophylaxis_chairs = safe_num(_with_default(inp.prophylaxis_chairs, DEFAULT_PROPHYLAXIS_CHAIRS))
    complexity = normalize_complexity(_with_default(inp.complexity_level, DEFAULT_COMPLEXITY_LEVEL))

    chairside = round_to(C * (1.00 + SF + CB), 4)
    steri = round_to((C * 0.12) + (N * 0.003) + (prophylaxis_chairs * 0.05), 4)
    zfa_total = round_to(chairside + steri, 4)
    prophy = round_to(prophylaxis_chairs * (0.90 + 0.05 * complexity), 4)

    # Prophylaxis-only practices still need a front desk
    fully_inactive = dentists_fte == 0 and C == 0 and N == 0 and prophylaxis_chairs == 0
    if fully_inactive:
        frontdesk = 0.0
    else:
        frontdesk = round_to(
            0.50 + 0.25 * max(0.0, dentists_fte - 1.0) + 0.01 * max(0.0, N - 20),
            4,
        )

    core_without_pm = zfa_total + prophy + frontdesk
    if core_without_pm < PM_HALF_THRESHOLD:
        pm = 0.0
    elif core_without_pm < PM_FULL_THRESHOLD:
        pm = 0.5
    else:
        pm = 1.0

    return FteByRole(
        chairside=chairside,
        steri=steri,
        zfa_total=zfa_total,
        prophy=prophy,
        frontdesk=frontdesk,
        pm=pm,
        total=round_to(zfa_total + prophy + frontdesk + pm, 4),
    )


def compute_final_fte(base: FteByRole, clinical_buffer: float, admin_buffer: float) -> FteByRole:
    """Apply clinical buffer to chairside/steri/prophy and admin buffer to frontdesk/pm."""
    clinical = 1 + clinical_buffer
    admin = 1 + admin_buffer

    chairside = round_to(base.chairside * clinical, 4)
    steri = round_to(base.steri * clinical, 4)
    zfa_total = round_to(chairside + steri, 4)
    prophy = round_to(base.prophy * clinical, 4)
    frontdesk = round_to(base.frontdesk * admin, 4)
    pm = round_to(base.pm * admin, 4)

    return FteByRole(
        chairside=chairside,
        steri=steri,
        zfa_total=zfa_total,
        prophy=prophy,
        frontdesk=frontdesk,
        pm=pm,
        total=round_to(zfa_total + prophy + frontdesk + pm, 4),
    )


def compute_rounded_fte(final: FteByRole, step: float) -> FteByRole:
    """Ceiling-round each role to the step.

    Every role except zfa_total is ceil_to_step(final, step), with no
    further rounding so that a step finer than 0.01 never rounds down.
    zfa_total is the sum of the rounded chairside and steri so the aggregate
    always matches its parts; it is still a multiple of step and never below
    the ceiling of final.zfa_total, but it can exceed that ceiling by one step.
    """
    chairside = ceil_to_step(final.chairside, step)
    steri = ceil_to_step(final.steri, step)

    return FteByRole(
        chairside=chairside,
        steri=steri,
        zfa_total=snap(chairside + steri),
        prophy=ceil_to_step(final.prophy, step),
        frontdesk=ceil_to_step(final.frontdesk, step),
        pm=ceil_to_step(final.pm, step),
        total=ceil_to_step(final.total, step),
    )


def compute_ratios(rounded: FteByRole, derived: DerivedValues, dentists_fte: float) -> StaffingRatios:
    C = derived.C
    return StaffingRatios(
        chairside_per_chair=round_to(rounded.chairside / C, 2) if C > 0 else 0.0,
        zfa_total_per_chair=round_to(rounded.zfa_total / C, 2) if C > 0 else 0.0,
        frontdesk_per_dentist_fte=(
            round_to(rounded.frontdesk / dentists_fte, 2) if dentists_fte > 0 else 0.0
        ),
    )


def compute_flags(
    ratios: StaffingRatios,
    rounded: FteByRole,
    derived: DerivedValues,
    dentists_fte: float,
) -> List[StaffingFlag]:
    """Traffic-light flags for chairside coverage and front desk."""
    flags: List[StaffingFlag] = []
    C, N = derived.C, derived.N

    if C > 0:
        cpc = ratios.chairside_per_chair
        if cpc < CHAIRSIDE_RED_BELOW:
            flags.append(StaffingFlag(
                id="UNDERSTAFFED_CHAIRSIDE_RED",
                severity="red",
                message=f"Stuhlassistenz kritisch unterbesetzt: {cpc:.2f} FTE/Stuhl (min. 1.20 empfohlen)",
            ))
        elif cpc < CHAIRSIDE_YELLOW_BELOW:
            flags.append(StaffingFlag(
                id="UNDERSTAFFED_CHAIRSIDE_YELLOW",
                severity="yellow",
                message=f"Stuhlassistenz leicht unterbesetzt: {cpc:.2f} FTE/Stuhl (Ziel: 1.45-1.80)",
            ))
        elif cpc <= CHAIRSIDE_GREEN_MAX:
            flags.append(StaffingFlag(
                id="TARGET_CHAIRSIDE_GREEN",
                severity="green",
                message=f"Stuhlassistenz optimal: {cpc:.2f} FTE/Stuhl",
            ))
        elif cpc <= CHAIRSIDE_YELLOW_MAX:
            flags.append(StaffingFlag(
                id="OVERSTAFFED_CHAIRSIDE_YELLOW",
                severity="yellow",
                message=f"Stuhlassistenz leicht ueberbesetzt: {cpc:.2f} FTE/Stuhl (Ziel: 1.45-1.80)",
            ))
        else:
            flags.append(StaffingFlag(
                id="OVERSTAFFED_CHAIRSIDE_RED",
                severity="red",
                message=f"Stuhlassistenz deutlich ueberbesetzt: {cpc:.2f} FTE/Stuhl (max. 2.00 empfohlen)",
            ))

    if (dentists_fte > 0 or N > 0) and rounded.frontdesk < FRONTDESK_MIN_FTE:
        flags.append(StaffingFlag(
            id="FRONTDESK_TOO_LOW_RED",
            severity="red",
            message=f"Empfang unterbesetzt: {rounded.frontdesk:.2f} FTE (min. 0.50 empfohlen)",
        ))
    elif N >= FRONTDESK_HIGH_VOLUME_PATIENTS and rounded.frontdesk < FRONTDESK_HIGH_VOLUME_FTE:
        flags.append(StaffingFlag(
            id="FRONTDESK_LOW_FOR_VOLUME_YELLOW",
            severity="yellow",
            message=(
                f"Empfang bei hohem Patientenaufkommen ({_fmt(N)} Pat/Tag) knapp: "
                f"{rounded.frontdesk:.2f} FTE (0.80 empfohlen)"
            ),
        ))

    return flags


def compute_headcount_hint(rounded: FteByRole, avg_contract_fraction: float) -> HeadcountHint:
    """Heads per role: ceil(rounded FTE / average contract fraction)."""
    factor = avg_contract_fraction if avg_contract_fraction > 0 else DEFAULT_AVG_CONTRACT_FRACTION
    return HeadcountHint(**{role: ceil_div(getattr(rounded, role), factor) for role in _ROLES})


# Maps each role to its field on CurrentStaffingFte
_CURRENT_FIELDS = {
    "chairside": "chairside_assist_fte",
    "steri": "steri_fte",
    "zfa_total": "zfa_total_fte",
    "prophy": "prophy_fte",
    "frontdesk": "frontdesk_fte",
    "pm": "pm_fte",
    "total": "total_fte",
}


def compute_coverage(
    rounded: FteByRole,
    current: Optional[CurrentStaffingFte],
) -> Optional[StaffingCoverage]:
    """Ist/soll per role; only roles with a supplied ist and soll > 0."""
    if current is None:
        return None

    coverage: Dict[str, float] = {}
    for role, field in _CURRENT_FIELDS.items():
        ist = getattr(current, field)
        soll = getattr(rounded, role)
        if is_finite_number(ist) and soll > 0:
            coverage[role] = round_to(ist / soll, 3)

    return StaffingCoverage(**coverage) if coverage else None


# =============================================================================
# Main Entry Point
# =============================================================================


def compute_staffing(
    inp: Union[StaffingInput, Dict[str, Any]],
    current: Optional[Union[CurrentStaffingFte, Dict[str, Any]]] = None,
) -> StaffingResult:
    """Compute the structural staffing demand for a dental practice.

    Args:
        inp: StaffingInput or a dict with the same keys
        current: Optional current (ist) FTE per role for coverage

    Returns:
        StaffingResult with derived values, base/final/rounded FTE,
        ratios, flags, headcount hint, coverage and meta

    Example:
        result = compute_staffing({
            "dentists_fte": 2.0,
            "chairs_simultaneous": 2,
            "patients_per_day": 36,
        })
        result.rounded_fte.zfa_total      # 3.3
        result.flags[0].id                # "TARGET_CHAIRSIDE_GREEN"
    """
    if not isinstance(inp, StaffingInput):
        inp = StaffingInput.model_validate(inp or {})
    if current is not None and not isinstance(current, CurrentStaffingFte):
        current = CurrentStaffingFte.model_validate(current)

    clinical_buffer = safe_num(_with_default(inp.clinical_buffer, DEFAULT_CLINICAL_BUFFER))
    admin_buffer = safe_num(_with_default(inp.admin_buffer, DEFAULT_ADMIN_BUFFER))
    rounding_step = safe_num(_with_default(inp.rounding_step_fte, DEFAULT_ROUNDING_STEP))
    avg_contract_fraction = safe_num(
        _with_default(inp.avg_contract_fraction, DEFAULT_AVG_CONTRACT_FRACTION)
    )
    dentists_fte = safe_num(inp.dentists_fte)
    prophylaxis_chairs = safe_num(_with_default(inp.prophylaxis_chairs, DEFAULT_PROPHYLAXIS_CHAIRS))

    derived = compute_derived_values(inp)
    base_fte = compute_base_fte(inp, derived)
    final_fte = compute_final_fte(base_fte, clinical_buffer, admin_buffer)
    rounded_fte = compute_rounded_fte(final_fte, rounding_step)
    ratios = compute_ratios(rounded_fte, derived, dentists_fte)
    flags = compute_flags(ratios, rounded_fte, derived, dentists_fte)
    headcount_hint = compute_headcount_hint(rounded_fte, avg_contract_fraction)
    coverage = compute_coverage(rounded_fte, current)

    is_practice_active = (
        dentists_fte > 0 or derived.C > 0 or derived.N > 0 or prophylaxis_chairs > 0
    )
    total_from_rounded_parts = snap(
        rounded_fte.zfa_total + rounded_fte.prophy + rounded_fte.frontdesk + rounded_fte.pm
    )

    return StaffingResult(
        derived=derived,
        base_fte=base_fte,
        final_fte=final_fte,
        rounded_fte=rounded_fte,
        ratios=ratios,
        flags=flags,
        headcount_hint=headcount_hint,
        coverage=coverage,
        meta=StaffingMeta(
            engine_version=STAFFING_ENGINE_VERSION,
            is_practice_active=is_practice_active,
            total_from_rounded_parts=total_from_rounded_parts,
        ),
    )


# Alias kept for callers using the calculate_* naming
calculate_staffing = compute_staffing
