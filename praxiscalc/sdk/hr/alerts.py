"""HR alert rules: organisational, never personal.

Every rule is a pure function of (snapshot, thresholds) that returns an
HrAlert or None. The rule kinds form a closed enum and ALERT_RULES maps
each kind to its function in evaluation order (critical before warn per
metric, all-healthy last). Every text is linted with
assert_text_compliance when the alert is built.

Wording: "systemische Ueberlastung" instead of "Stress",
"Kapazitaetsengpass" instead of "Burnout", "Arbeitslast" instead of any
reference to a person.
"""

from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from .guard import assert_text_compliance
from .schemas import (
    AlertCode,
    ComplianceError,
    HrAlert,
    HrKpiSnapshot,
    HrThresholds,
    Severity,
)


SEVERITY_ORDER: Dict[str, int] = {"critical": 0, "warn": 1, "info": 2}


class AlertRule(str, Enum):
    """Closed set of rule kinds. Definition order is evaluation order."""

    CAPACITY_GAP_CRITICAL = "capacity_gap_critical"
    CAPACITY_GAP_WARN = "capacity_gap_warn"
    SYSTEM_OVERLOAD_CRITICAL = "system_overload_critical"
    SYSTEM_OVERLOAD_WARN = "system_overload_warn"
    ABSENCE_ELEVATED_CRITICAL = "absence_elevated_critical"
    ABSENCE_ELEVATED_WARN = "absence_elevated_warn"
    OVERTIME_ELEVATED = "overtime_elevated"
    LABOR_COST_CRITICAL = "labor_cost_critical"
    LABOR_COST_WARN = "labor_cost_warn"
    ALL_HEALTHY = "all_healthy"


RuleFn = Callable[[HrKpiSnapshot, HrThresholds], Optional[HrAlert]]


def _create_alert(
    snapshot: HrKpiSnapshot,
    code: AlertCode,
    severity: Severity,
    title: str,
    explanation: str,
    recommended_actions: Sequence[str],
    metric: str,
    current_value: float,
    threshold_value: float,
) -> HrAlert:
    """Build an alert after linting all of its texts."""
    try:
        assert_text_compliance(title)
        assert_text_compliance(explanation)
        for action in recommended_actions:
            assert_text_compliance(action)
    except ComplianceError as e:
        raise ComplianceError(f"Alert-Text Compliance-Fehler in {code.value}: {e}") from e

    return HrAlert(
        code=code,
        severity=severity,
        title=title,
        explanation=explanation,
        recommended_actions=tuple(recommended_actions),
        metric=metric,
        current_value=current_value,
        threshold_value=threshold_value,
        aggregation_level=snapshot.aggregation_level,
        group_key=snapshot.group_key,
    )


# =============================================================================
# Rules
# =============================================================================


def rule_capacity_gap_critical(snapshot: HrKpiSnapshot, thresholds: HrThresholds) -> Optional[HrAlert]:
    """FTE quote below the critical band."""
    quote = snapshot.metrics.fte_quote
    if quote >= thresholds.fte_gap_critical:
        return None

    return _create_alert(
        snapshot,
        code=AlertCode.HR_CAPACITY_GAP,
        severity="critical",
        title="Kritische Kapazitaetsluecke",
        explanation=(
            f"Die verfuegbare Personalkapazitaet liegt bei {quote * 100:.0f}% des Bedarfs. "
            f"Ein Defizit von {(1 - quote) * 100:.0f}% erfordert sofortige organisatorische "
            f"Massnahmen zur Sicherstellung des Praxisbetriebs."
        ),
        recommended_actions=[
            "Kapazitaetsplanung ueberpruefen und Soll-Besetzung aktualisieren",
            "Stellenausschreibungen fuer kritische Funktionsbereiche initiieren",
            "Temporaere Unterstuetzung durch externe Dienstleister pruefen",
            "Terminvolumen temporaer an verfuegbare Kapazitaet anpassen",
            "Prozessoptimierung zur Effizienzsteigerung evaluieren",
        ],
        metric="fte_quote",
        current_value=quote,
        threshold_value=thresholds.fte_gap_critical,
    )


def rule_capacity_gap_warn(snapshot: HrKpiSnapshot, thresholds: HrThresholds) -> Optional[HrAlert]:
    """FTE quote between the critical and the warn band."""
    quote = snapshot.metrics.fte_quote
    if quote < thresholds.fte_gap_critical or quote >= thresholds.fte_gap_warn:
        return None

    return _create_alert(
        snapshot,
        code=AlertCode.HR_CAPACITY_GAP,
        severity="warn",
        title="Kapazitaetsluecke erkannt",
        explanation=(
            f"Mit {quote * 100:.0f}% Besetzungsgrad besteht ein moderates Defizit. "
            f"Ungeplante Ausfaelle koennten zu Engpaessen fuehren."
        ),
        recommended_actions=[
            "Personalplanung auf mittelfristige Bedarfe ueberpruefen",
            "Aufstockungsmoeglichkeiten bei Teilzeitkraeften evaluieren",
            "Vertretungsregelungen aktualisieren",
            "Schichtplanung auf optimale Abdeckung pruefen",
        ],
        metric="fte_quote",
        current_value=quote,
        threshold_value=thresholds.fte_gap_warn,
    )


def rule_system_overload_critical(snapshot: HrKpiSnapshot, thresholds: HrThresholds) -> Optional[HrAlert]:
    """Overtime rate above the critical band."""
    rate = snapshot.metrics.overtime_rate_percent
    if rate <= thresholds.overtime_rate_critical:
        return None

    return _create_alert(
        snapshot,
        code=AlertCode.HR_SYSTEM_OVERLOAD,
        severity="critical",
        title="Systemische Ueberlastung erkannt",
        explanation=(
            f"Die Ueberstundenquote von {rate:.1f}% deutet auf strukturelle Kapazitaetsengpaesse hin. "
            f"Dauerhafte Mehrarbeit gefaehrdet die Betriebsstabilitaet und erfordert "
            f"organisatorische Anpassungen."
        ),
        recommended_actions=[
            "Arbeitszeitanalyse: Identifikation von Prozessengpaessen",
            "Kapazitaetserweiterung durch Neueinstellungen oder Dienstleister",
            "Prozessoptimierung zur Reduzierung nicht-wertschoepfender Taetigkeiten",
            "Terminplanung anpassen: Pufferzeiten integrieren",
            "Arbeitszeitausgleich zeitnah ermoeglichen (ArbZG-Konformitaet)",
        ],
        metric="overtime_rate",
        current_value=rate,
        threshold_value=thresholds.overtime_rate_critical,
    )


def rule_system_overload_warn(snapshot: HrKpiSnapshot, thresholds: HrThresholds) -> Optional[HrAlert]:
    rate = snapshot.metrics.overtime_rate_percent
    if rate <= thresholds.overtime_rate_warn or rate > thresholds.overtime_rate_critical:
        return None

    return _create_alert(
        snapshot,
        code=AlertCode.HR_SYSTEM_OVERLOAD,
        severity="warn",
        title="Erhoehte Arbeitslast",
        explanation=(
            f"Mit {rate:.1f}% Ueberstundenquote liegt die Arbeitslast ueber dem Normalniveau. "
            f"Kurzfristig akzeptabel, sollte jedoch nicht zum Dauerzustand werden."
        ),
        recommended_actions=[
            "Ueberstundenursachen dokumentieren (saisonal vs. strukturell)",
            "Zeitnahen Freizeitausgleich planen",
            "Aufgabenverteilung und Schichtbesetzung optimieren",
            "Terminplanung auf Lastspitzen ueberpruefen",
        ],
        metric="overtime_rate",
        current_value=rate,
        threshold_value=thresholds.overtime_rate_warn,
    )


def rule_absence_elevated_critical(snapshot: HrKpiSnapshot, thresholds: HrThresholds) -> Optional[HrAlert]:
    rate = snapshot.metrics.absence_rate_percent
    if rate <= thresholds.absence_rate_critical:
        return None

    return _create_alert(
        snapshot,
        code=AlertCode.HR_ABSENCE_ELEVATED,
        severity="critical",
        title="Kritisch erhoehte Abwesenheitsquote",
        explanation=(
            f"Mit {rate:.1f}% Abwesenheit faellt ein signifikanter Anteil der geplanten "
            f"Arbeitszeit aus. Dies erfordert organisatorische Massnahmen zur Sicherstellung "
            f"des Betriebs."
        ),
        recommended_actions=[
            "Ursachenanalyse: Verteilung nach Abwesenheitsgruenden auswerten",
            "Vertretungspool und Springerkonzept evaluieren",
            "Urlaubsplanung koordinieren zur Vermeidung von Engpaessen",
            "Betriebliches Gesundheitsmanagement staerken (praeventiv)",
            "Arbeitsorganisation auf belastungsoptimierende Gestaltung pruefen",
        ],
        metric="absence_rate",
        current_value=rate,
        threshold_value=thresholds.absence_rate_critical,
    )


def rule_absence_elevated_warn(snapshot: HrKpiSnapshot, thresholds: HrThresholds) -> Optional[HrAlert]:
    rate = snapshot.metrics.absence_rate_percent
    if rate <= thresholds.absence_rate_warn or rate > thresholds.absence_rate_critical:
        return None

    return _create_alert(
        snapshot,
        code=AlertCode.HR_ABSENCE_ELEVATED,
        severity="warn",
        title="Erhoehte Abwesenheitsquote",
        explanation=(
            f"Die Abwesenheitsquote von {rate:.1f}% liegt ueber dem Branchendurchschnitt. "
            f"Fruehzeitige Massnahmen koennen eine Eskalation verhindern."
        ),
        recommended_actions=[
            "Abwesenheitsmuster analysieren (Wochentage, Zeitraeume)",
            "Urlaubsplanung besser koordinieren",
            "Praeventive Gesundheitsangebote evaluieren",
            "Flexible Arbeitszeitmodelle als Option pruefen",
        ],
        metric="absence_rate",
        current_value=rate,
        threshold_value=thresholds.absence_rate_warn,
    )


def rule_overtime_elevated(snapshot: HrKpiSnapshot, thresholds: HrThresholds) -> Optional[HrAlert]:
    """Dedicated overtime alert in the warn band, next to the overload warning."""
    rate = snapshot.metrics.overtime_rate_percent
    if rate <= thresholds.overtime_rate_warn or rate > thresholds.overtime_rate_critical:
        return None

    return _create_alert(
        snapshot,
        code=AlertCode.HR_OVERTIME_ELEVATED,
        severity="warn",
        title="Ueberstundenquote ueber Normalniveau",
        explanation=(
            f"Die aggregierte Ueberstundenquote von {rate:.1f}% zeigt erhoehte Arbeitslast. "
            f"Zeitnaher Ausgleich ist empfohlen."
        ),
        recommended_actions=[
            "Freizeitausgleich zeitnah ermoeglichen",
            "Ursachen fuer Mehrarbeit identifizieren",
            "Terminplanung auf Kapazitaet abstimmen",
        ],
        metric="overtime_rate",
        current_value=rate,
        threshold_value=thresholds.overtime_rate_warn,
    )


def rule_labor_cost_critical(snapshot: HrKpiSnapshot, thresholds: HrThresholds) -> Optional[HrAlert]:
    """Labor cost ratio above the critical band (only when revenue was given)."""
    ratio = snapshot.metrics.labor_cost_ratio_percent
    if ratio is None or ratio <= thresholds.labor_cost_ratio_critical:
        return None

    return _create_alert(
        snapshot,
        code=AlertCode.HR_COST_ELEVATED,
        severity="critical",
        title="Personalkosten kritisch hoch",
        explanation=(
            f"{ratio:.1f}% des Umsatzes fuer Personal gefaehrdet die wirtschaftliche "
            f"Tragfaehigkeit der Praxis."
        ),
        recommended_actions=[
            "Kostenanalyse: groesste Kostentreiber identifizieren",
            "Umsatzpotenziale pruefen: hoehere Auslastung, neue Leistungen",
            "Bei Neubesetzungen Gehaltsstrukturen marktkonform pruefen",
            "Prozesseffizienz steigern, um gleichen Output mit weniger Stunden zu erreichen",
            "Auslagerung nicht-medizinischer Taetigkeiten pruefen",
        ],
        metric="labor_cost_ratio",
        current_value=ratio,
        threshold_value=thresholds.labor_cost_ratio_critical,
    )


def rule_labor_cost_warn(snapshot: HrKpiSnapshot, thresholds: HrThresholds) -> Optional[HrAlert]:
    ratio = snapshot.metrics.labor_cost_ratio_percent
    if (
        ratio is None
        or ratio <= thresholds.labor_cost_ratio_warn
        or ratio > thresholds.labor_cost_ratio_critical
    ):
        return None

    return _create_alert(
        snapshot,
        code=AlertCode.HR_COST_ELEVATED,
        severity="warn",
        title="Personalkosten im oberen Bereich",
        explanation=(
            f"Mit {ratio:.1f}% Personalkostenquote bleibt wenig Spielraum. "
            f"Der Branchenschnitt liegt bei 25-35%."
        ),
        recommended_actions=[
            "Regelmaessiges Controlling der Personalkosten einfuehren",
            "Bei Gehaltsanpassungen Produktivitaetssteigerung einplanen",
            "Digitalisierung zur Effizienzsteigerung nutzen",
            "Umsatz pro Vollzeitstelle als Kennzahl verfolgen",
        ],
        metric="labor_cost_ratio",
        current_value=ratio,
        threshold_value=thresholds.labor_cost_ratio_warn,
    )


def rule_all_healthy(snapshot: HrKpiSnapshot, thresholds: HrThresholds) -> Optional[HrAlert]:
    """Info alert when every metric sits inside its healthy band."""
    metrics = snapshot.metrics
    healthy = (
        metrics.fte_quote >= thresholds.fte_gap_warn
        and metrics.absence_rate_percent <= thresholds.absence_rate_warn
        and metrics.overtime_rate_percent <= thresholds.overtime_rate_warn
        and (
            metrics.labor_cost_ratio_percent is None
            or metrics.labor_cost_ratio_percent <= thresholds.labor_cost_ratio_warn
        )
    )
    if not healthy:
        return None

    return _create_alert(
        snapshot,
        code=AlertCode.HR_ALL_HEALTHY,
        severity="info",
        title="Personalbereich stabil",
        explanation=(
            "Alle aggregierten HR-Kennzahlen liegen im Normalbereich. "
            "Die Personalkapazitaet entspricht dem Bedarf."
        ),
        recommended_actions=[
            "Regelmaessiges Monitoring fortsetzen",
            "Kapazitaetsplanung quartalsweise ueberpruefen",
            "Praeventive Massnahmen zur Stabilitaetssicherung beibehalten",
        ],
        metric="overall",
        current_value=1,
        threshold_value=1,
    )


# =============================================================================
# Registry
# =============================================================================

ALERT_RULES: Dict[AlertRule, RuleFn] = {
    AlertRule.CAPACITY_GAP_CRITICAL: rule_capacity_gap_critical,
    AlertRule.CAPACITY_GAP_WARN: rule_capacity_gap_warn,
    AlertRule.SYSTEM_OVERLOAD_CRITICAL: rule_system_overload_critical,
    AlertRule.SYSTEM_OVERLOAD_WARN: rule_system_overload_warn,
    AlertRule.ABSENCE_ELEVATED_CRITICAL: rule_absence_elevated_critical,
    AlertRule.ABSENCE_ELEVATED_WARN: rule_absence_elevated_warn,
    AlertRule.OVERTIME_ELEVATED: rule_overtime_elevated,
    AlertRule.LABOR_COST_CRITICAL: rule_labor_cost_critical,
    AlertRule.LABOR_COST_WARN: rule_labor_cost_warn,
    AlertRule.ALL_HEALTHY: rule_all_healthy,
}

if list(ALERT_RULES) != list(AlertRule):
    raise RuntimeError("ALERT_RULES must list every AlertRule exactly once, in enum order")


# =============================================================================
# Main Entry Point
# =============================================================================


def generate_hr_alerts(snapshot: HrKpiSnapshot, thresholds: HrThresholds) -> List[HrAlert]:
    """Evaluate every rule against a snapshot.

    Returns:
        Alerts sorted by severity (critical, warn, info), stable within a
        severity. The all-healthy alert only appears on its own.

    Raises:
        ComplianceError: a rule produced non-compliant text
    """
    alerts = [
        alert
        for alert in (rule(snapshot, thresholds) for rule in ALERT_RULES.values())
        if alert is not None
    ]
    alerts.sort(key=lambda a: SEVERITY_ORDER[a.severity])

    if len(alerts) > 1:
        alerts = [a for a in alerts if a.code != AlertCode.HR_ALL_HEALTHY]

    return alerts


# =============================================================================
# Helpers
# =============================================================================


def filter_alerts_by_severity(alerts: Sequence[HrAlert], severity: Severity) -> List[HrAlert]:
    return [a for a in alerts if a.severity == severity]


def has_critical_alerts(alerts: Sequence[HrAlert]) -> bool:
    return any(a.severity == "critical" for a in alerts)


def get_highest_severity(alerts: Sequence[HrAlert]) -> Optional[Severity]:
    """Most severe level present, or None for no alerts."""
    if not alerts:
        return None
    return min((a.severity for a in alerts), key=SEVERITY_ORDER.__getitem__)


def group_alerts_by_code(alerts: Sequence[HrAlert]) -> Dict[AlertCode, List[HrAlert]]:
    grouped: Dict[AlertCode, List[HrAlert]] = {}
    for alert in alerts:
        grouped.setdefault(alert.code, []).append(alert)
    return grouped
