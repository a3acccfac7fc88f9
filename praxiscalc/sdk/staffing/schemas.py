"""Pydantic schemas for the staffing demand calculation.

Input schemas never reject malformed numbers: anything that is not a number
is stored as None and the engine applies its safe-number policy. Output
schemas use extra='forbid' like the rest of the SDK.
"""

from typing import Any, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# Tolerance for the zfa_total == chairside + steri coherence check.
# Values are stored rounded, so only float representation noise remains.
ZFA_TOLERANCE = 1e-9


def _number_or_none(value: Any) -> Any:
    """Map non-numeric input to None so validation never fails on it."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# =============================================================================
# Input Schemas
# =============================================================================


class StaffingInput(BaseModel):
    """Structural practice inputs for the demand calculation."""

    model_config = ConfigDict(extra="ignore")

    dentists_fte: Optional[float] = Field(
        default=0, description="FTE of treating dentists (>= 0)"
    )
    chairs_simultaneous: Optional[float] = Field(
        default=None, description="Treatment chairs run at the same time"
    )
    treatment_rooms: Optional[float] = Field(
        default=None,
        description="Treatment rooms, fallback for chairs_simultaneous (0 = unknown)",
    )
    prophylaxis_chairs: Optional[float] = Field(default=0, description="Prophylaxis chairs")
    patients_per_day: Optional[float] = Field(
        default=None, description="Patients per day (estimated when missing)"
    )
    complexity_level: Optional[float] = Field(
        default=0, description="-1 simple, 0 normal, 1 elevated, 2 high"
    )
    clinical_buffer: Optional[float] = Field(
        default=None, description="Buffer fraction for clinical roles (default 0.12)"
    )
    admin_buffer: Optional[float] = Field(
        default=None, description="Buffer fraction for admin roles (default 0.08)"
    )
    rounding_step_fte: Optional[float] = Field(
        default=None, description="Ceiling step for rounded FTE (default 0.10)"
    )
    default_patients_per_chair: Optional[float] = Field(
        default=None, description="Patients per chair per day when N is missing (default 18)"
    )
    avg_contract_fraction: Optional[float] = Field(
        default=None, description="Average contract fraction for headcount hints (default 0.80)"
    )

    @field_validator("*", mode="before")
    @classmethod
    def coerce_numbers(cls, v: Any) -> Any:
        """Store malformed numbers as None instead of failing."""
        return _number_or_none(v)


class CurrentStaffingFte(BaseModel):
    """Current (ist) FTE per role, used for coverage."""

    model_config = ConfigDict(extra="ignore")

    chairside_assist_fte: Optional[float] = None
    steri_fte: Optional[float] = None
    zfa_total_fte: Optional[float] = None
    prophy_fte: Optional[float] = None
    frontdesk_fte: Optional[float] = None
    pm_fte: Optional[float] = None
    total_fte: Optional[float] = None

    @field_validator("*", mode="before")
    @classmethod
    def coerce_numbers(cls, v: Any) -> Any:
        """Store malformed numbers as None instead of failing."""
        return _number_or_none(v)


# =============================================================================
# Result Schemas
# =============================================================================


class DerivedValues(BaseModel):
    """Intermediate values derived from the inputs.

    C:   effective simultaneous chairs
    N:   patients per day
    PPC: patients per chair per day
    TI:  turnover index (0..1)
    CB:  complexity bonus
    SF:  support factor
    """

    model_config = ConfigDict(extra="forbid")

    C: float = Field(..., ge=0)
    N: float = Field(..., ge=0)
    PPC: float = Field(..., ge=0)
    TI: float = Field(..., ge=0, le=1)
    CB: float
    SF: float
    warnings: List[str] = Field(default_factory=list)


class FteByRole(BaseModel):
    """FTE per role at one fidelity (base, final or rounded).

    zfa_total is the chairside + steri aggregate, never an extra role.
    """

    model_config = ConfigDict(extra="forbid")

    chairside: float = Field(..., ge=0, description="Chairside assistance")
    steri: float = Field(..., ge=0, description="Sterilization")
    zfa_total: float = Field(..., ge=0, description="chairside + steri")
    prophy: float = Field(..., ge=0, description="Prophylaxis")
    frontdesk: float = Field(..., ge=0, description="Front desk / reception")
    pm: float = Field(..., ge=0, description="Practice management")
    total: float = Field(..., ge=0, description="Total without double counting")

    @model_validator(mode="after")
    def check_zfa_total(self) -> "FteByRole":
        """zfa_total must equal chairside + steri."""
        expected = self.chairside + self.steri
        if abs(self.zfa_total - expected) > ZFA_TOLERANCE:
            raise ValueError(
                f"zfa_total ({self.zfa_total}) != chairside + steri ({expected})"
            )
        return self


class StaffingRatios(BaseModel):
    """Ratios shown next to the demand figures."""

    model_config = ConfigDict(extra="forbid")

    chairside_per_chair: float
    zfa_total_per_chair: float
    frontdesk_per_dentist_fte: float


class StaffingFlag(BaseModel):
    """A single traffic-light (Ampel) flag."""

    model_config = ConfigDict(extra="forbid")

    id: str
    severity: Literal["red", "yellow", "green"]
    message: str


class HeadcountHint(BaseModel):
    """Estimated heads per role given the average contract fraction."""

    model_config = ConfigDict(extra="forbid")

    chairside: int
    steri: int
    zfa_total: int
    prophy: int
    frontdesk: int
    pm: int
    total: int


class StaffingCoverage(BaseModel):
    """Ist/soll ratio per role. Only roles with soll > 0 are present."""

    model_config = ConfigDict(extra="forbid")

    chairside: Optional[float] = None
    steri: Optional[float] = None
    zfa_total: Optional[float] = None
    prophy: Optional[float] = None
    frontdesk: Optional[float] = None
    pm: Optional[float] = None
    total: Optional[float] = None


class RoleComposition(BaseModel):
    """Tells consumers which roles to add up without double counting."""

    model_config = ConfigDict(extra="forbid")

    zfa_total_equals_chairside_plus_steri: Literal[True] = True
    atomic_roles_for_total: Tuple[str, ...] = ("chairside", "steri", "prophy", "frontdesk", "pm")
    aggregated_roles_for_total: Tuple[str, ...] = ("zfa_total", "prophy", "frontdesk", "pm")
    preferred_total_field: Literal["total_from_rounded_parts"] = "total_from_rounded_parts"


class StaffingMeta(BaseModel):
    """Engine metadata and display helpers."""

    model_config = ConfigDict(extra="forbid")

    engine_version: str
    role_composition: RoleComposition = Field(default_factory=RoleComposition)
    is_practice_active: bool = Field(
        ..., description="dentists > 0 or C > 0 or N > 0 or prophylaxis chairs > 0"
    )
    total_from_rounded_parts: float = Field(
        ..., description="rounded zfa_total + prophy + frontdesk + pm; use for display totals"
    )


class StaffingResult(BaseModel):
    """Output of compute_staffing."""

    model_config = ConfigDict(extra="forbid")

    derived: DerivedValues
    base_fte: FteByRole = Field(..., description="Before buffers")
    final_fte: FteByRole = Field(..., description="With buffers")
    rounded_fte: FteByRole = Field(..., description="Ceiling-stepped")
    ratios: StaffingRatios
    flags: List[StaffingFlag] = Field(default_factory=list)
    headcount_hint: HeadcountHint
    coverage: Optional[StaffingCoverage] = None
    meta: StaffingMeta
