"""Unit tests for the staffing demand engine."""

import math

import pytest

from praxiscalc.sdk.staffing import (
    STAFFING_ENGINE_VERSION,
    StaffingInput,
    calculate_staffing,
    compute_staffing,
)


STANDARD_PRACTICE = {
    "dentists_fte": 2.0,
    "chairs_simultaneous": 2,
    "patients_per_day": 36,
    "complexity_level": 0,
}

ROLES = ("chairside", "steri", "zfa_total", "prophy", "frontdesk", "pm", "total")
STEPPED_ROLES = ("chairside", "steri", "prophy", "frontdesk", "pm", "total")


def _flag_ids(result):
    return [f.id for f in result.flags]


class TestStandardPractice:
    """Two dentists, two chairs, 36 patients a day."""

    @pytest.fixture
    def result(self):
        return compute_staffing(STANDARD_PRACTICE)

    def test_derived_values(self, result):
        d = result.derived
        assert d.C == 2
        assert d.N == 36
        assert d.PPC == pytest.approx(18)
        assert d.TI == pytest.approx(0.5)
        assert d.SF == pytest.approx(0.275)
        assert d.CB == 0
        assert d.warnings == []

    def test_base_fte(self, result):
        base = result.base_fte
        assert base.chairside == pytest.approx(2.55)
        assert base.steri == pytest.approx(0.348)
        assert base.zfa_total == pytest.approx(2.898)
        assert base.frontdesk == pytest.approx(0.91)
        assert base.pm == 0

    def test_final_fte_applies_buffers(self, result):
        final = result.final_fte
        assert final.chairside == pytest.approx(2.856)
        assert final.steri == pytest.approx(0.3898)
        assert final.frontdesk == pytest.approx(0.9828)

    def test_rounded_fte(self, result):
        rounded = result.rounded_fte
        assert rounded.chairside == pytest.approx(2.9)
        assert rounded.steri == pytest.approx(0.4)
        assert rounded.zfa_total == pytest.approx(3.3)
        assert rounded.frontdesk == pytest.approx(1.0)
        assert rounded.prophy == 0
        assert rounded.pm == 0
        assert rounded.total == pytest.approx(4.3)

    def test_total_from_rounded_parts(self, result):
        assert result.meta.total_from_rounded_parts == pytest.approx(4.3)
        assert result.meta.engine_version == STAFFING_ENGINE_VERSION
        assert result.meta.is_practice_active is True

    def test_ratios_and_green_flag(self, result):
        assert result.ratios.chairside_per_chair == pytest.approx(1.45)
        assert result.ratios.zfa_total_per_chair == pytest.approx(1.65)
        assert result.ratios.frontdesk_per_dentist_fte == pytest.approx(0.5)
        assert _flag_ids(result) == ["TARGET_CHAIRSIDE_GREEN"]
        assert result.flags[0].severity == "green"

    def test_headcount_hint(self, result):
        hint = result.headcount_hint
        assert hint.chairside == 4
        assert hint.steri == 1
        assert hint.zfa_total == 5
        assert hint.frontdesk == 2
        assert hint.prophy == 0
        assert hint.total == 6

    def test_no_coverage_without_current(self, result):
        assert result.coverage is None

    def test_model_input_gives_same_result(self, result):
        from_model = compute_staffing(StaffingInput(**STANDARD_PRACTICE))
        assert from_model.model_dump() == result.model_dump()

    def test_alias(self, result):
        assert calculate_staffing(STANDARD_PRACTICE).model_dump() == result.model_dump()


class TestCoverage:

    def test_zfa_total_coverage(self):
        result = compute_staffing(STANDARD_PRACTICE, current={"zfa_total_fte": 1.0})
        assert result.coverage.zfa_total == pytest.approx(0.303)
        assert result.coverage.chairside is None

    def test_roles_without_demand_are_skipped(self):
        result = compute_staffing(STANDARD_PRACTICE, current={"prophy_fte": 1.0, "frontdesk_fte": 1.0})
        assert result.coverage.prophy is None
        assert result.coverage.frontdesk == pytest.approx(1.0)

    def test_malformed_current_gives_no_coverage(self):
        result = compute_staffing(STANDARD_PRACTICE, current={"zfa_total_fte": "viele"})
        assert result.coverage is None


class TestInactivePractice:

    def test_all_zero_input(self):
        result = compute_staffing({
            "dentists_fte": 0,
            "chairs_simultaneous": 0,
            "patients_per_day": 0,
            "prophylaxis_chairs": 0,
        })
        assert result.meta.is_practice_active is False
        assert result.rounded_fte.frontdesk == 0
        assert result.rounded_fte.total == 0
        assert not any("CHAIRSIDE" in flag_id for flag_id in _flag_ids(result))
        assert result.flags == []

    def test_empty_input(self):
        result = compute_staffing({})
        assert result.meta.is_practice_active is False
        assert result.derived.C == 0
        assert result.derived.N == 0

    def test_rooms_without_dentists_give_no_chairs(self):
        result = compute_staffing({"dentists_fte": 0, "treatment_rooms": 3})
        assert result.derived.C == 0
        assert result.rounded_fte.chairside == 0
        assert any("keine Zahnaerzte" in w for w in result.derived.warnings)

    def test_prophylaxis_only_practice_is_active(self):
        result = compute_staffing({"prophylaxis_chairs": 1})
        assert result.meta.is_practice_active is True
        assert result.derived.C == 0
        assert result.rounded_fte.prophy == pytest.approx(1.1)
        assert result.rounded_fte.frontdesk == pytest.approx(0.6)
        assert result.flags == []


class TestChairFallbacks:

    def test_rooms_capped_by_dentists(self):
        result = compute_staffing({"dentists_fte": 2.0, "treatment_rooms": 3, "patients_per_day": 30})
        assert result.derived.C == 2
        assert any("geschaetzt" in w for w in result.derived.warnings)

    def test_zero_rooms_means_unknown(self):
        result = compute_staffing({"dentists_fte": 2.4, "treatment_rooms": 0})
        assert result.derived.C == 2
        assert any("aus dentistsFte" in w for w in result.derived.warnings)

    def test_patients_estimated_from_chairs(self):
        result = compute_staffing({"dentists_fte": 1.0, "chairs_simultaneous": 2})
        assert result.derived.N == 36
        assert any("patientsPerDay geschaetzt" in w for w in result.derived.warnings)

    def test_explicit_chairs_win(self):
        result = compute_staffing({"dentists_fte": 1.0, "chairs_simultaneous": 3, "treatment_rooms": 5})
        assert result.derived.C == 3


class TestFlags:

    def test_understaffed_red(self):
        result = compute_staffing({
            "dentists_fte": 2.0,
            "chairs_simultaneous": 2,
            "patients_per_day": 0,
            "complexity_level": -1,
            "clinical_buffer": 0,
        })
        assert result.ratios.chairside_per_chair == pytest.approx(1.1)
        assert "UNDERSTAFFED_CHAIRSIDE_RED" in _flag_ids(result)

    def test_understaffed_yellow(self):
        result = compute_staffing({"dentists_fte": 2.0, "chairs_simultaneous": 2, "patients_per_day": 0})
        assert "UNDERSTAFFED_CHAIRSIDE_YELLOW" in _flag_ids(result)

    def test_overstaffed_red(self):
        result = compute_staffing({
            "dentists_fte": 1.0,
            "chairs_simultaneous": 1,
            "patients_per_day": 30,
            "complexity_level": 2,
            "clinical_buffer": 0.5,
        })
        assert "OVERSTAFFED_CHAIRSIDE_RED" in _flag_ids(result)

    def test_frontdesk_low_for_volume(self):
        result = compute_staffing({
            "dentists_fte": 1.0,
            "chairs_simultaneous": 2,
            "patients_per_day": 35,
            "admin_buffer": 0,
        })
        assert result.rounded_fte.frontdesk == pytest.approx(0.7)
        assert "FRONTDESK_LOW_FOR_VOLUME_YELLOW" in _flag_ids(result)


MIXED_INPUTS = [
    STANDARD_PRACTICE,
    {"dentists_fte": 3.5, "treatment_rooms": 4, "prophylaxis_chairs": 2, "complexity_level": 2},
    {"dentists_fte": 1.0, "chairs_simultaneous": 1, "patients_per_day": 25, "rounding_step_fte": 0.25},
    {"dentists_fte": 6.0, "chairs_simultaneous": 5, "patients_per_day": 110, "prophylaxis_chairs": 3},
    {"dentists_fte": 1.0, "chairs_simultaneous": 1, "patients_per_day": 20, "rounding_step_fte": 0.001},
    {"prophylaxis_chairs": 1},
    {},
]


class TestInvariants:

    @pytest.mark.parametrize("data", MIXED_INPUTS)
    def test_zfa_total_is_sum_at_every_fidelity(self, data):
        result = compute_staffing(data)
        for fte in (result.base_fte, result.final_fte, result.rounded_fte):
            assert fte.zfa_total == pytest.approx(fte.chairside + fte.steri, abs=1e-9)

    @pytest.mark.parametrize("data", MIXED_INPUTS)
    def test_rounded_never_below_final(self, data):
        result = compute_staffing(data)
        for role in ROLES:
            assert getattr(result.rounded_fte, role) >= getattr(result.final_fte, role) - 1e-9

    @pytest.mark.parametrize("data", MIXED_INPUTS)
    @pytest.mark.parametrize("role", STEPPED_ROLES)
    def test_rounded_is_ceiling_of_final(self, data, role):
        result = compute_staffing(data)
        step = data.get("rounding_step_fte", 0.1)
        final = getattr(result.final_fte, role)
        assert getattr(result.rounded_fte, role) == pytest.approx(math.ceil(round(final / step, 9)) * step)

    @pytest.mark.parametrize("data", MIXED_INPUTS)
    def test_zfa_total_within_one_step_of_its_ceiling(self, data):
        result = compute_staffing(data)
        step = data.get("rounding_step_fte", 0.1)
        ceiling = math.ceil(round(result.final_fte.zfa_total / step, 9)) * step
        assert ceiling - 1e-9 <= result.rounded_fte.zfa_total <= ceiling + step + 1e-9

    @pytest.mark.parametrize("data", MIXED_INPUTS)
    def test_total_from_rounded_parts_adds_up(self, data):
        r = compute_staffing(data).rounded_fte
        expected = r.zfa_total + r.prophy + r.frontdesk + r.pm
        assert compute_staffing(data).meta.total_from_rounded_parts == pytest.approx(expected)

    @pytest.mark.parametrize("data", MIXED_INPUTS)
    def test_idempotent(self, data):
        assert compute_staffing(data).model_dump() == compute_staffing(data).model_dump()

    def test_rounding_step_is_respected(self):
        result = compute_staffing(MIXED_INPUTS[2])
        for role in ROLES:
            steps = getattr(result.rounded_fte, role) / 0.25
            assert steps == pytest.approx(round(steps))

    def test_fine_step_never_rounds_down(self):
        result = compute_staffing({
            "dentists_fte": 1,
            "chairs_simultaneous": 1,
            "patients_per_day": 20,
            "rounding_step_fte": 0.001,
        })
        assert result.final_fte.steri == pytest.approx(0.2016)
        assert result.rounded_fte.steri == pytest.approx(0.202)
        assert result.rounded_fte.chairside == pytest.approx(1.498)
        assert result.rounded_fte.zfa_total == pytest.approx(1.7)

    def test_zfa_total_follows_rounded_parts(self):
        # final zfa_total 1.6996 ceils to 1.7, the rounded parts add up to 1.8
        result = compute_staffing({"dentists_fte": 1, "chairs_simultaneous": 1, "patients_per_day": 20})
        assert result.final_fte.zfa_total == pytest.approx(1.6996)
        assert result.rounded_fte.chairside == pytest.approx(1.5)
        assert result.rounded_fte.steri == pytest.approx(0.3)
        assert result.rounded_fte.zfa_total == pytest.approx(1.8)


class TestMalformedInput:

    @pytest.mark.parametrize("data", [
        {"dentists_fte": "abc", "chairs_simultaneous": float("nan")},
        {"dentists_fte": -2, "patients_per_day": -5},
        {"dentists_fte": math.inf, "treatment_rooms": math.inf},
        {"dentists_fte": 2, "complexity_level": 9, "rounding_step_fte": 0},
        {"dentists_fte": 2, "avg_contract_fraction": 0, "clinical_buffer": "viel"},
        {"dentists_fte": None, "prophylaxis_chairs": [1, 2]},
        {"dentists_fte": True, "unknown_key": "ignored"},
        {"dentists_fte": 1e306, "chairs_simultaneous": 1e306},
    ])
    def test_never_raises(self, data):
        result = compute_staffing(data)
        assert result.derived.C >= 0
        for role in ROLES:
            value = getattr(result.rounded_fte, role)
            assert math.isfinite(value)
            assert value >= 0

    def test_negative_patients_become_zero(self):
        result = compute_staffing({"dentists_fte": 1, "chairs_simultaneous": 1, "patients_per_day": -5})
        assert result.derived.N == 0

    def test_complexity_is_clamped(self):
        result = compute_staffing({"dentists_fte": 1, "chairs_simultaneous": 1, "complexity_level": 9})
        assert result.derived.CB == pytest.approx(0.1)

    def test_invalid_contract_fraction_uses_default(self):
        result = compute_staffing({**STANDARD_PRACTICE, "avg_contract_fraction": 0})
        assert result.headcount_hint.zfa_total == 5
