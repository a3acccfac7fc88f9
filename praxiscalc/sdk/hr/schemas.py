"""Pydantic schemas for privacy-compliant HR analytics.

Only aggregated data lives here: practice or role level, never a single
person. Input models accept unknown keys (extra='allow') so the compliance
guard can see forbidden fields and reject them itself with a clear error;
everything the engine produces is frozen.

Legal basis: DSGVO Art. 5 (data minimisation), Art. 25 (privacy by design).
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


# Version of the compliance rules stamped into every snapshot audit block
HR_COMPLIANCE_VERSION = "1.0.0"

DEFAULT_LEGAL_BASIS = (
    "DSGVO Art. 6(1)(f) - Berechtigtes Interesse an betrieblicher Ressourcenplanung, "
    "DSGVO Art. 5(1)(c) - Datenminimierung, "
    "ArbSchG - Arbeitsschutzkonformes Monitoring auf aggregierter Ebene"
)

# Below this group size no analysis is allowed at all
K_ANONYMITY_ABSOLUTE_MIN = 3
# Recommended floor; 3 <= k < 5 only for very small practices
K_ANONYMITY_RECOMMENDED_MIN = 5

# Whitelisted group keys. Exotic role names would identify individuals.
ALLOWED_ROLE_KEYS = (
    "ZFA",          # Zahnmedizinische Fachangestellte
    "DH",           # Dentalhygienikerin
    "ZAHNARZT",
    "EMPFANG",      # Rezeption
    "VERWALTUNG",
    "AZUBI",        # Auszubildende
    "SONSTIGE",     # catch-all bucket
)
PRACTICE_GROUP_KEY = "practice"
CATCH_ALL_GROUP_KEY = "SONSTIGE"

Severity = Literal["info", "warn", "critical"]
OverallStatus = Literal["critical", "warning", "ok"]


class ComplianceError(Exception):
    """Raised on any privacy violation in HR analytics input or output.

    Compliance errors are hard rejections: callers must propagate them
    (the CLI exits non-zero, a service would answer 400).
    """

    def __init__(self, message: str, field: Optional[str] = None, path: Optional[str] = None):
        super().__init__(message)
        self.field = field
        self.path = path


class AggregationLevel(str, Enum):
    """Allowed aggregation levels. A person level does not exist."""

    PRACTICE = "PRACTICE"
    ROLE = "ROLE"


class AlertCode(str, Enum):
    """Organisational alert codes. None of them refers to a person."""

    HR_CAPACITY_GAP = "HR_CAPACITY_GAP"
    HR_SYSTEM_OVERLOAD = "HR_SYSTEM_OVERLOAD"
    HR_ABSENCE_ELEVATED = "HR_ABSENCE_ELEVATED"
    HR_OVERTIME_ELEVATED = "HR_OVERTIME_ELEVATED"
    HR_COST_ELEVATED = "HR_COST_ELEVATED"
    HR_ALL_HEALTHY = "HR_ALL_HEALTHY"


# =============================================================================
# Input Schemas
# =============================================================================


class AbsenceByType(BaseModel):
    """Absence days in the period, summed per type."""
    model_config = ConfigDict(extra="allow")

    sick: float = 0
    vacation: float = 0
    training: float = 0
    other: float = 0


class HrAggregatedGroupInput(BaseModel):
    """Pre-aggregated figures for one group (the whole practice or one role).

    Never carries a per-person identifier; the compliance guard enforces it.
    """
    model_config = ConfigDict(extra="allow")

    group_key: str = Field(..., description='"practice" or a role key')
    headcount: int = Field(..., description="People in this group")
    total_fte: float = Field(..., description="Sum of FTE")
    total_contracted_hours_per_week: float = Field(..., description="Sum of contracted weekly hours")
    total_overtime_minutes: float = Field(default=0, description="Overtime in the period (minutes)")
    total_absence_days: float = Field(default=0, description="Absence days in the period")
    absence_by_type: AbsenceByType = Field(default_factory=AbsenceByType)


class HrPracticeInput(BaseModel):
    """Input for one KPI computation run."""
    model_config = ConfigDict(extra="allow")

    period_start: date
    period_end: date
    target_fte: float = Field(..., description="Planned (soll) FTE for the practice")
    workdays_per_week: float = Field(default=5, gt=0, le=7)
    monthly_revenue: Optional[float] = Field(
        default=None, description="Monthly revenue for the labor cost ratio"
    )
    groups: List[HrAggregatedGroupInput] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_period(self) -> "HrPracticeInput":
        """period_end must not be before period_start."""
        if self.period_end < self.period_start:
            raise ValueError(
                f"period_end ({self.period_end}) is before period_start ({self.period_start})"
            )
        return self


# =============================================================================
# Thresholds
# =============================================================================


class HrThresholds(BaseModel):
    """Warn/critical bands for the HR KPIs.

    fte_gap_*: FTE quote below the value (0.95 = 95 % of target)
    *_rate_*: percent values at or above the value
    k_min: minimum group size for k-anonymity (floor 3, recommended 5)
    avg_hourly_rate: EUR per hour used to estimate labor cost
    """
    model_config = ConfigDict(extra="forbid")

    fte_gap_warn: float = Field(default=0.95, ge=0)
    fte_gap_critical: float = Field(default=0.80, ge=0)
    absence_rate_warn: float = Field(default=5, ge=0)
    absence_rate_critical: float = Field(default=10, ge=0)
    overtime_rate_warn: float = Field(default=10, ge=0)
    overtime_rate_critical: float = Field(default=20, ge=0)
    labor_cost_ratio_warn: float = Field(default=35, ge=0)
    labor_cost_ratio_critical: float = Field(default=45, ge=0)
    k_min: int = Field(
        default=K_ANONYMITY_RECOMMENDED_MIN,
        description="Checked by validate_k_min, not here, so sub-floor values fail as compliance errors",
    )
    avg_hourly_rate: float = Field(default=30, gt=0)

    @model_validator(mode="after")
    def check_bands(self) -> "HrThresholds":
        """Warn bands must sit on the healthy side of their critical bands."""
        if self.fte_gap_critical > self.fte_gap_warn:
            raise ValueError("fte_gap_critical must not exceed fte_gap_warn")
        for metric in ("absence_rate", "overtime_rate", "labor_cost_ratio"):
            warn = getattr(self, f"{metric}_warn")
            critical = getattr(self, f"{metric}_critical")
            if warn > critical:
                raise ValueError(f"{metric}_warn ({warn}) exceeds {metric}_critical ({critical})")
        return self


def validate_k_min(k_min: int) -> Tuple[int, Optional[str]]:
    """Check a k-anonymity floor.

    Returns:
        (k_min, warning) where warning is set for 3 <= k_min < 5

    Raises:
        ComplianceError: k_min below the absolute floor of 3
    """
    if k_min < K_ANONYMITY_ABSOLUTE_MIN:
        raise ComplianceError(
            f"k-Anonymitaet: kMin={k_min} ist unter dem absoluten Minimum von "
            f"{K_ANONYMITY_ABSOLUTE_MIN}. Individual-Rueckschluesse waeren moeglich. "
            f"Analyse wird blockiert.",
            field="k_min",
        )
    if k_min < K_ANONYMITY_RECOMMENDED_MIN:
        return k_min, (
            f"k-Anonymitaet: kMin={k_min} liegt unter dem empfohlenen Wert von "
            f"{K_ANONYMITY_RECOMMENDED_MIN}. Dies ist nur fuer Kleinstpraxen mit "
            f"dokumentierter Begruendung zulaessig."
        )
    return k_min, None


# =============================================================================
# Snapshot Schemas
# =============================================================================


class HrKpiMetrics(BaseModel):
    """Aggregated KPI values of one snapshot."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    fte_quote: float = Field(..., description="current_fte / target_fte")
    current_fte: float
    target_fte: float
    fte_delta: float = Field(..., description="Negative means understaffed")
    absence_rate_percent: float
    overtime_rate_percent: float
    labor_cost_ratio_percent: Optional[float] = Field(
        default=None, description="None without revenue or at role level"
    )
    overall_status: OverallStatus


class HrAuditMetadata(BaseModel):
    """Audit trail presented as evidence of compliant processing."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    aggregation_level: AggregationLevel
    k_used: int
    legal_basis: str
    created_at: datetime
    compliance_version: str


class HrKpiSnapshot(BaseModel):
    """KPI snapshot for one group. Contains no personal data.

    practice_id is attached by the caller, the engine never sets it.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    practice_id: Optional[str] = None
    period_start: date
    period_end: date
    aggregation_level: AggregationLevel
    group_key: str
    group_size: int
    metrics: HrKpiMetrics
    audit: HrAuditMetadata


class HrAlert(BaseModel):
    """Organisational alert derived from one snapshot."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    code: AlertCode
    severity: Severity
    title: str
    explanation: str
    recommended_actions: Tuple[str, ...]
    metric: str
    current_value: float
    threshold_value: float
    aggregation_level: AggregationLevel
    group_key: str


# =============================================================================
# Result Schemas
# =============================================================================


class KAnonymityResult(BaseModel):
    """Verdict of a k-anonymity check for one group size."""
    model_config = ConfigDict(extra="forbid")

    allowed: bool
    fallback_level: Optional[AggregationLevel] = None
    reason: Optional[str] = None
    warning: Optional[str] = None


class ComplianceValidationResult(BaseModel):
    """Pre-flight report for aggregated input."""
    model_config = ConfigDict(extra="forbid")

    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class RoleSnapshotResult(BaseModel):
    """Role-level snapshots plus the practice fallback marker."""
    model_config = ConfigDict(extra="forbid")

    snapshots: List[HrKpiSnapshot]
    fallback_to_practice: bool = False
    warnings: List[str] = Field(default_factory=list)


class SnapshotAlerts(BaseModel):
    """Alerts generated for one snapshot."""
    model_config = ConfigDict(extra="forbid")

    group_key: str
    aggregation_level: AggregationLevel
    alerts: List[HrAlert] = Field(default_factory=list)


class ComplianceInfo(BaseModel):
    """Compliance block shown with every overview."""
    model_config = ConfigDict(extra="forbid")

    version: str = HR_COMPLIANCE_VERSION
    k_min: int
    legal_basis: str = DEFAULT_LEGAL_BASIS


class HrOverview(BaseModel):
    """Snapshots, alerts and compliance info for one request."""
    model_config = ConfigDict(extra="forbid")

    period_start: date
    period_end: date
    requested_level: Literal["practice", "role"]
    aggregation_level: Literal["practice", "role"] = Field(
        ..., description="Effective level; 'practice' after a k-anonymity fallback"
    )
    snapshots: List[HrKpiSnapshot]
    alerts_by_snapshot: List[SnapshotAlerts]
    compliance: ComplianceInfo
    warnings: List[str] = Field(default_factory=list)
