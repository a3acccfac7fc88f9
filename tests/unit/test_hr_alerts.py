"""Unit tests for HR alert generation."""

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from praxiscalc.sdk.hr import (
    ALERT_RULES,
    AggregationLevel,
    AlertCode,
    AlertRule,
    ComplianceError,
    HrAuditMetadata,
    HrKpiMetrics,
    HrKpiSnapshot,
    HrThresholds,
    filter_alerts_by_severity,
    generate_hr_alerts,
    get_highest_severity,
    group_alerts_by_code,
    has_critical_alerts,
)
from praxiscalc.sdk.hr import alerts as alerts_module


def make_snapshot(
    fte_quote=1.0,
    absence=2.0,
    overtime=5.0,
    labor_cost=None,
    level=AggregationLevel.PRACTICE,
    group_key="practice",
):
    return HrKpiSnapshot(
        id="snap-1",
        period_start=date(2026, 1, 1),
        period_end=date(2026, 1, 31),
        aggregation_level=level,
        group_key=group_key,
        group_size=8,
        metrics=HrKpiMetrics(
            fte_quote=fte_quote,
            current_fte=fte_quote * 8,
            target_fte=8.0,
            fte_delta=(fte_quote - 1) * 8,
            absence_rate_percent=absence,
            overtime_rate_percent=overtime,
            labor_cost_ratio_percent=labor_cost,
            overall_status="ok",
        ),
        audit=HrAuditMetadata(
            aggregation_level=level,
            k_used=5,
            legal_basis="DSGVO",
            created_at=datetime(2026, 2, 1, tzinfo=timezone.utc),
            compliance_version="1.0.0",
        ),
    )


@pytest.fixture
def thresholds():
    return HrThresholds()


def _codes(alerts):
    return [a.code for a in alerts]


class TestGenerateHrAlerts:

    def test_capacity_and_overload_critical(self, thresholds):
        alerts = generate_hr_alerts(make_snapshot(fte_quote=0.75, overtime=25, absence=3), thresholds)

        assert len(alerts) == 2
        assert all(a.severity == "critical" for a in alerts)
        assert _codes(alerts) == [AlertCode.HR_CAPACITY_GAP, AlertCode.HR_SYSTEM_OVERLOAD]
        assert AlertCode.HR_ALL_HEALTHY not in _codes(alerts)

    def test_all_healthy_alone(self, thresholds):
        alerts = generate_hr_alerts(make_snapshot(), thresholds)
        assert len(alerts) == 1
        assert alerts[0].code == AlertCode.HR_ALL_HEALTHY
        assert alerts[0].severity == "info"
        assert alerts[0].metric == "overall"

    def test_sorted_by_severity_stable_within(self, thresholds):
        alerts = generate_hr_alerts(make_snapshot(fte_quote=0.9, overtime=25, absence=12), thresholds)
        assert _codes(alerts) == [
            AlertCode.HR_SYSTEM_OVERLOAD,
            AlertCode.HR_ABSENCE_ELEVATED,
            AlertCode.HR_CAPACITY_GAP,
        ]
        assert [a.severity for a in alerts] == ["critical", "critical", "warn"]

    def test_overtime_warn_band_gives_two_alerts(self, thresholds):
        alerts = generate_hr_alerts(make_snapshot(overtime=15), thresholds)
        assert _codes(alerts) == [AlertCode.HR_SYSTEM_OVERLOAD, AlertCode.HR_OVERTIME_ELEVATED]
        assert all(a.severity == "warn" for a in alerts)
        assert all(a.metric == "overtime_rate" for a in alerts)

    def test_boundaries_are_exclusive(self, thresholds):
        # Rates exactly on the warn band and a quote exactly on it stay healthy
        alerts = generate_hr_alerts(make_snapshot(fte_quote=0.95, absence=5, overtime=10), thresholds)
        assert _codes(alerts) == [AlertCode.HR_ALL_HEALTHY]

    def test_capacity_gap_warn(self, thresholds):
        alerts = generate_hr_alerts(make_snapshot(fte_quote=0.8), thresholds)
        assert len(alerts) == 1
        assert alerts[0].severity == "warn"
        assert alerts[0].threshold_value == 0.95

    @pytest.mark.parametrize("ratio,severity", [(40, "warn"), (50, "critical")])
    def test_labor_cost(self, thresholds, ratio, severity):
        alerts = generate_hr_alerts(make_snapshot(labor_cost=ratio), thresholds)
        assert _codes(alerts) == [AlertCode.HR_COST_ELEVATED]
        assert alerts[0].severity == severity
        assert alerts[0].metric == "labor_cost_ratio"

    def test_no_labor_cost_alert_without_ratio(self, thresholds):
        assert _codes(generate_hr_alerts(make_snapshot(labor_cost=None), thresholds)) == [
            AlertCode.HR_ALL_HEALTHY
        ]

    def test_alert_carries_group(self, thresholds):
        snapshot = make_snapshot(fte_quote=0.5, level=AggregationLevel.ROLE, group_key="ZFA")
        alert = generate_hr_alerts(snapshot, thresholds)[0]
        assert alert.aggregation_level == AggregationLevel.ROLE
        assert alert.group_key == "ZFA"
        assert alert.current_value == 0.5
        assert "50%" in alert.explanation

    def test_custom_thresholds(self):
        strict = HrThresholds(overtime_rate_warn=3, overtime_rate_critical=4)
        alerts = generate_hr_alerts(make_snapshot(overtime=5), strict)
        assert _codes(alerts) == [AlertCode.HR_SYSTEM_OVERLOAD]
        assert alerts[0].severity == "critical"

    def test_idempotent(self, thresholds):
        snapshot = make_snapshot(fte_quote=0.7, absence=11, overtime=12, labor_cost=38)
        assert generate_hr_alerts(snapshot, thresholds) == generate_hr_alerts(snapshot, thresholds)

    def test_alerts_are_frozen(self, thresholds):
        alert = generate_hr_alerts(make_snapshot(), thresholds)[0]
        with pytest.raises(ValidationError):
            alert.severity = "critical"


class TestAlertTexts:

    def test_every_text_is_compliant(self, thresholds):
        snapshots = [
            make_snapshot(fte_quote=0.5, absence=20, overtime=30, labor_cost=60),
            make_snapshot(fte_quote=0.9, absence=7, overtime=15, labor_cost=40),
            make_snapshot(),
        ]
        for snapshot in snapshots:
            for alert in generate_hr_alerts(snapshot, thresholds):
                assert alert.title
                assert alert.recommended_actions

    def test_non_compliant_rule_text_raises(self, thresholds, monkeypatch):
        def personal_rule(snapshot, thresholds):
            return alerts_module._create_alert(
                snapshot,
                code=AlertCode.HR_ALL_HEALTHY,
                severity="info",
                title="Frau Meier ist ueberlastet",
                explanation="-",
                recommended_actions=[],
                metric="overall",
                current_value=1,
                threshold_value=1,
            )

        monkeypatch.setitem(alerts_module.ALERT_RULES, AlertRule.ALL_HEALTHY, personal_rule)
        with pytest.raises(ComplianceError, match="HR_ALL_HEALTHY"):
            generate_hr_alerts(make_snapshot(), thresholds)


class TestRegistry:

    def test_registry_covers_every_rule_in_order(self):
        assert list(ALERT_RULES) == list(AlertRule)

    def test_critical_rules_precede_warn_rules_per_metric(self):
        order = list(AlertRule)
        assert order.index(AlertRule.CAPACITY_GAP_CRITICAL) < order.index(AlertRule.CAPACITY_GAP_WARN)
        assert order.index(AlertRule.LABOR_COST_CRITICAL) < order.index(AlertRule.LABOR_COST_WARN)
        assert order[-1] == AlertRule.ALL_HEALTHY


class TestHelpers:

    @pytest.fixture
    def alerts(self, thresholds):
        return generate_hr_alerts(make_snapshot(fte_quote=0.9, overtime=25, absence=12), thresholds)

    def test_filter_by_severity(self, alerts):
        assert len(filter_alerts_by_severity(alerts, "critical")) == 2
        assert len(filter_alerts_by_severity(alerts, "info")) == 0

    def test_has_critical(self, alerts, thresholds):
        assert has_critical_alerts(alerts) is True
        assert has_critical_alerts(generate_hr_alerts(make_snapshot(), thresholds)) is False

    def test_highest_severity(self, alerts):
        assert get_highest_severity(alerts) == "critical"
        assert get_highest_severity(alerts[2:]) == "warn"
        assert get_highest_severity([]) is None

    def test_group_by_code(self, alerts):
        grouped = group_alerts_by_code(alerts)
        assert set(grouped) == {
            AlertCode.HR_SYSTEM_OVERLOAD,
            AlertCode.HR_ABSENCE_ELEVATED,
            AlertCode.HR_CAPACITY_GAP,
        }
        assert len(grouped[AlertCode.HR_CAPACITY_GAP]) == 1
