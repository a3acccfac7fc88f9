"""staffing - Structural staffing demand for dental practices.

Scope:
- Derive chairs, patient volume and turnover from practice structure (engine.py)
- Base, buffered and ceiling-rounded FTE per role
- Traffic-light flags, headcount hints and ist/soll coverage

Constraints:
- Pure and total: malformed numbers are sanitized, never raised
- zfa_total is always chairside + steri, at every fidelity

Usage:
    from praxiscalc.sdk.staffing import compute_staffing

    result = compute_staffing({"dentists_fte": 2, "chairs_simultaneous": 2, "patients_per_day": 36})
    result.rounded_fte.zfa_total            # 3.3
    result.meta.total_from_rounded_parts    # use this for display totals
"""

from .schemas import (
    StaffingInput,
    CurrentStaffingFte,
    DerivedValues,
    FteByRole,
    StaffingRatios,
    StaffingFlag,
    HeadcountHint,
    StaffingCoverage,
    RoleComposition,
    StaffingMeta,
    StaffingResult,
)

from .engine import (
    compute_staffing,
    calculate_staffing,
    STAFFING_ENGINE_VERSION,
    STAFFING_DEFAULTS,
)

__all__ = [
    "StaffingInput",
    "CurrentStaffingFte",
    "DerivedValues",
    "FteByRole",
    "StaffingRatios",
    "StaffingFlag",
    "HeadcountHint",
    "StaffingCoverage",
    "RoleComposition",
    "StaffingMeta",
    "StaffingResult",
    "compute_staffing",
    "calculate_staffing",
    "STAFFING_ENGINE_VERSION",
    "STAFFING_DEFAULTS",
]
