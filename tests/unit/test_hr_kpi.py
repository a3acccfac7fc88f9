"""Unit tests for HR KPI snapshots."""

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from praxiscalc.sdk.hr import (
    AggregationLevel,
    ComplianceError,
    HrPracticeInput,
    HrThresholds,
    aggregate_groups,
    calculate_absence_rate,
    calculate_fte_quote,
    calculate_labor_cost_ratio,
    calculate_overtime_rate,
    compute_practice_snapshot,
    compute_role_snapshots,
    determine_overall_status,
    period_days,
)
from praxiscalc.sdk.hr import kpi


NOW = datetime(2026, 2, 1, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def thresholds():
    return HrThresholds()


@pytest.fixture
def practice_data():
    """Four weeks, two roles, both k-anonymous at k=5."""
    return {
        "period_start": "2026-01-01",
        "period_end": "2026-01-28",
        "target_fte": 10.0,
        "groups": [
            {
                "group_key": "ZFA",
                "headcount": 6,
                "total_fte": 5.0,
                "total_contracted_hours_per_week": 200,
                "total_overtime_minutes": 2400,
                "total_absence_days": 6,
                "absence_by_type": {"sick": 4, "vacation": 2},
            },
            {
                "group_key": "EMPFANG",
                "headcount": 5,
                "total_fte": 3.0,
                "total_contracted_hours_per_week": 120,
                "total_overtime_minutes": 0,
                "total_absence_days": 5,
            },
        ],
    }


class TestMetricHelpers:

    def test_fte_quote(self):
        assert calculate_fte_quote(8, 10) == pytest.approx(0.8)
        assert calculate_fte_quote(2, 3) == pytest.approx(0.667)
        assert calculate_fte_quote(5, 0) == 0.0

    def test_absence_rate(self):
        assert calculate_absence_rate(11, 11, 20) == pytest.approx(5.0)
        assert calculate_absence_rate(3, 0, 20) == 0.0

    def test_overtime_rate(self):
        assert calculate_overtime_rate(2400, 76800) == pytest.approx(3.13)
        assert calculate_overtime_rate(100, 0) == 0.0

    def test_labor_cost_ratio(self):
        assert calculate_labor_cost_ratio(320, 120000, 30) == pytest.approx(34.67)
        assert calculate_labor_cost_ratio(320, None, 30) is None
        assert calculate_labor_cost_ratio(320, 0, 30) is None

    def test_period_days_is_inclusive(self):
        assert period_days(date(2026, 1, 1), date(2026, 1, 28)) == 28
        assert period_days(date(2026, 1, 1), date(2026, 1, 1)) == 1

    def test_aggregate_groups(self, practice_data):
        practice = HrPracticeInput.model_validate(practice_data)
        total = aggregate_groups(practice.groups)
        assert total.group_key == "practice"
        assert total.headcount == 11
        assert total.total_fte == pytest.approx(8.0)
        assert total.absence_by_type.sick == 4


class TestOverallStatus:

    def test_ok(self, thresholds):
        assert determine_overall_status(1.0, 2, 5, thresholds) == "ok"

    @pytest.mark.parametrize("fte,absence,overtime", [
        (0.9, 2, 5),
        (1.0, 5, 5),
        (1.0, 2, 10),
    ])
    def test_warning(self, thresholds, fte, absence, overtime):
        assert determine_overall_status(fte, absence, overtime, thresholds) == "warning"

    @pytest.mark.parametrize("fte,absence,overtime", [
        (0.75, 2, 5),
        (1.0, 10, 5),
        (1.0, 2, 20),
    ])
    def test_critical(self, thresholds, fte, absence, overtime):
        assert determine_overall_status(fte, absence, overtime, thresholds) == "critical"

    def test_labor_cost_counts_when_present(self, thresholds):
        assert determine_overall_status(1.0, 2, 5, thresholds, 36) == "warning"
        assert determine_overall_status(1.0, 2, 5, thresholds, 45) == "critical"
        assert determine_overall_status(1.0, 2, 5, thresholds, None) == "ok"


class TestPracticeSnapshot:

    def test_metrics(self, practice_data, thresholds):
        snapshot = compute_practice_snapshot(practice_data, thresholds, now=NOW)
        m = snapshot.metrics

        assert snapshot.aggregation_level == AggregationLevel.PRACTICE
        assert snapshot.group_key == "practice"
        assert snapshot.group_size == 11
        assert m.current_fte == pytest.approx(8.0)
        assert m.target_fte == pytest.approx(10.0)
        assert m.fte_quote == pytest.approx(0.8)
        assert m.fte_delta == pytest.approx(-2.0)
        assert m.absence_rate_percent == pytest.approx(5.0)
        assert m.overtime_rate_percent == pytest.approx(3.13)
        assert m.labor_cost_ratio_percent is None
        assert m.overall_status == "warning"

    def test_labor_cost_with_revenue(self, practice_data, thresholds):
        practice_data["monthly_revenue"] = 120000
        snapshot = compute_practice_snapshot(practice_data, thresholds, now=NOW)
        assert snapshot.metrics.labor_cost_ratio_percent == pytest.approx(34.67)

    def test_audit_block(self, practice_data, thresholds):
        snapshot = compute_practice_snapshot(practice_data, thresholds, now=NOW)
        assert snapshot.audit.created_at == NOW
        assert snapshot.audit.k_used == 5
        assert snapshot.audit.compliance_version == "1.0.0"
        assert "DSGVO" in snapshot.audit.legal_basis
        assert snapshot.practice_id is None
        assert snapshot.id

    def test_ids_are_unique(self, practice_data, thresholds):
        first = compute_practice_snapshot(practice_data, thresholds, now=NOW)
        second = compute_practice_snapshot(practice_data, thresholds, now=NOW)
        assert first.id != second.id
        assert first.metrics == second.metrics

    def test_snapshot_is_frozen(self, practice_data, thresholds):
        snapshot = compute_practice_snapshot(practice_data, thresholds, now=NOW)
        with pytest.raises(ValidationError):
            snapshot.metrics.fte_quote = 1.0

    def test_workdays_per_week(self, practice_data, thresholds):
        practice_data["workdays_per_week"] = 4
        snapshot = compute_practice_snapshot(practice_data, thresholds, now=NOW)
        # 11 days / (11 heads x 16 workdays)
        assert snapshot.metrics.absence_rate_percent == pytest.approx(6.25)

    def test_accepts_model_input(self, practice_data, thresholds):
        practice = HrPracticeInput.model_validate(practice_data)
        snapshot = compute_practice_snapshot(practice, thresholds, now=NOW)
        assert snapshot.group_size == 11

    def test_period_end_before_start(self, practice_data, thresholds):
        practice_data["period_end"] = "2025-12-31"
        with pytest.raises(ValidationError, match="before period_start"):
            compute_practice_snapshot(practice_data, thresholds)


class TestComplianceFailsClosed:

    def test_person_field_rejected_before_any_metric(self, practice_data, thresholds, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("metric computed")

        monkeypatch.setattr(kpi, "calculate_fte_quote", fail)
        practice_data["groups"][0]["members"] = [{"staffId": "s-1", "minutes": 30}]

        with pytest.raises(ComplianceError) as exc:
            compute_practice_snapshot(practice_data, thresholds)
        assert exc.value.field == "staffId"

    def test_role_level_also_guarded(self, practice_data, thresholds):
        practice_data["email"] = "praxis@example.de"
        with pytest.raises(ComplianceError):
            compute_role_snapshots(practice_data, thresholds)

    def test_sub_floor_k_min(self, practice_data):
        with pytest.raises(ComplianceError, match="kMin=2"):
            compute_practice_snapshot(practice_data, HrThresholds(k_min=2))

    def test_invalid_group_numbers(self, practice_data, thresholds):
        practice_data["groups"][1]["headcount"] = 0
        with pytest.raises(ComplianceError, match="headcount"):
            compute_practice_snapshot(practice_data, thresholds)


class TestRoleSnapshots:

    def test_one_snapshot_per_role(self, practice_data, thresholds):
        result = compute_role_snapshots(practice_data, thresholds, now=NOW)

        assert result.fallback_to_practice is False
        assert result.warnings == []
        assert [s.group_key for s in result.snapshots] == ["ZFA", "EMPFANG"]
        assert all(s.aggregation_level == AggregationLevel.ROLE for s in result.snapshots)

    def test_targets_apportioned_by_headcount(self, practice_data, thresholds):
        zfa, empfang = compute_role_snapshots(practice_data, thresholds, now=NOW).snapshots
        assert zfa.metrics.target_fte == pytest.approx(5.45)
        assert zfa.metrics.fte_quote == pytest.approx(0.917)
        assert empfang.metrics.target_fte == pytest.approx(4.55)
        assert empfang.metrics.fte_quote == pytest.approx(0.66)

    def test_no_labor_cost_per_role(self, practice_data, thresholds):
        practice_data["monthly_revenue"] = 120000
        result = compute_role_snapshots(practice_data, thresholds, now=NOW)
        assert all(s.metrics.labor_cost_ratio_percent is None for s in result.snapshots)

    def test_small_role_is_excluded(self, practice_data, thresholds):
        practice_data["groups"][1]["headcount"] = 2
        result = compute_role_snapshots(practice_data, thresholds, now=NOW)
        assert [s.group_key for s in result.snapshots] == ["ZFA"]

    def test_falls_back_to_practice(self, practice_data, thresholds):
        practice_data["groups"][0]["headcount"] = 2
        practice_data["groups"][1]["headcount"] = 2
        result = compute_role_snapshots(practice_data, thresholds, now=NOW)

        assert result.fallback_to_practice is True
        assert len(result.snapshots) == 1
        snapshot = result.snapshots[0]
        assert snapshot.aggregation_level == AggregationLevel.PRACTICE
        assert snapshot.group_key == "practice"
        assert snapshot.group_size == 4
        assert "Fallback auf PRACTICE" in result.warnings[0]
        assert "kMin=5" in result.warnings[0]

    def test_small_groups_merged_at_lower_k(self, practice_data):
        practice_data["groups"].append({
            "group_key": "DH",
            "headcount": 1,
            "total_fte": 1.0,
            "total_contracted_hours_per_week": 40,
        })
        practice_data["groups"].append({
            "group_key": "AZUBI",
            "headcount": 2,
            "total_fte": 2.0,
            "total_contracted_hours_per_week": 80,
        })
        result = compute_role_snapshots(practice_data, HrThresholds(k_min=3), now=NOW)
        assert [s.group_key for s in result.snapshots] == ["ZFA", "EMPFANG", "SONSTIGE"]
        assert result.snapshots[2].group_size == 3

    def test_labels_for_the_same_role_share_one_snapshot(self, practice_data, thresholds):
        practice_data["groups"].append({
            "group_key": "zfa",
            "headcount": 5,
            "total_fte": 4.0,
            "total_contracted_hours_per_week": 160,
        })
        result = compute_role_snapshots(practice_data, thresholds, now=NOW)

        assert [s.group_key for s in result.snapshots] == ["ZFA", "EMPFANG"]
        assert result.snapshots[0].group_size == 11
        assert result.snapshots[0].metrics.current_fte == pytest.approx(9.0)
