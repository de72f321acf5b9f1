"""
Unit tests for the prediction engine.
"""

import itertools
import math
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from app.schemas.prediction import ExternalAdjustment, PredictionInput
from services.prediction_service import (
    OPTIMISTIC_WEIGHT,
    PESSIMISTIC_WEIGHT,
    PredictionEngine,
    ValidationError,
    classify,
    elapsed_hours,
    round_half_up,
    time_decay_for,
)

SEOUL = ZoneInfo("Asia/Seoul")


def make_input(**overrides) -> PredictionInput:
    fields = {
        "quota": 35,
        "real_applicants": 245,
        "revealed_count": 100,
        "my_rank": 12,
        "analysis_timestamp": datetime(2025, 1, 1),
    }
    fields.update(overrides)
    return PredictionInput(**fields)


@pytest.fixture
def engine():
    return PredictionEngine(tz=SEOUL)


class TestManualWeightScenario:
    """Worked example with a manual weight of 0.5 at the start of the year."""

    def test_metrics(self, engine, manual_input):
        result = engine.predict(manual_input)

        assert result.metrics.competition_rate == pytest.approx(7.0)
        assert result.metrics.revealed_ratio == pytest.approx(100 / 245)
        assert result.metrics.additional_passes == 15
        assert result.metrics.max_rank == 50

    def test_breakdown(self, engine, manual_input):
        breakdown = engine.predict(manual_input).breakdown

        assert breakdown.days_passed == 0
        assert breakdown.hours_passed == 0
        assert breakdown.time_decay_percent == 0
        assert breakdown.weight_source == "manual"
        assert breakdown.base_weight == 0.5
        assert breakdown.ratio_correction == 0.0
        assert breakdown.unrevealed_count == 145
        assert breakdown.rank_ratio == pytest.approx(0.12)

    def test_ranks(self, engine, manual_input):
        result = engine.predict(manual_input)

        assert result.weights.realistic == pytest.approx(0.5)
        # 145 * 0.12 * 0.5 = 8.7 -> 9 hidden superiors
        assert result.ranks.realistic == 21
        assert result.ranks.optimistic == 15
        assert result.ranks.pessimistic == 29

    def test_probabilities(self, engine, manual_input):
        probabilities = engine.predict(manual_input).probabilities

        assert probabilities.realistic.waiting_number == -14
        assert probabilities.realistic.label == "Very Safe / Admitted"
        assert probabilities.realistic.score == 95
        # 29 is inside the quota but above 80% of it
        assert probabilities.pessimistic.waiting_number == -6
        assert probabilities.pessimistic.label == "Safe / Admitted"
        assert probabilities.pessimistic.score == 85

    def test_full_reveal_keeps_own_rank(self, engine):
        result = engine.predict(make_input(revealed_count=245, manual_weight=0.5))

        assert result.ranks.optimistic == 12
        assert result.ranks.realistic == 12
        assert result.ranks.pessimistic == 12
        assert result.breakdown.unrevealed_count == 0


class TestAutoWeight:
    """Tests for the automatically derived base weight."""

    def test_low_competition_example(self, engine, auto_input):
        result = engine.predict(auto_input)

        expected_ratio_correction = (0.5 - 5 / 11) * 0.2
        expected = 0.7 - 0.15 * math.log(1.1) + expected_ratio_correction

        assert result.metrics.competition_rate == pytest.approx(1.1)
        assert result.breakdown.weight_source == "auto"
        assert result.breakdown.ratio_correction == pytest.approx(expected_ratio_correction)
        assert result.breakdown.base_weight == pytest.approx(expected)
        assert result.breakdown.base_weight == pytest.approx(0.6948, abs=1e-4)
        assert result.weights.realistic == pytest.approx(expected)

    def test_low_competition_ranks(self, engine, auto_input):
        result = engine.predict(auto_input)

        assert result.ranks.optimistic == 4
        assert result.ranks.realistic == 6
        assert result.ranks.pessimistic == 7
        # Default additional passes: half of 10
        assert result.metrics.max_rank == 15

    def test_rate_below_floor_uses_floor(self, engine):
        """A competition rate under 1.1 is treated as 1.1."""
        below = engine.predict(make_input(quota=10, real_applicants=10, revealed_count=5, my_rank=3))
        at_floor = 0.7 - 0.15 * math.log(1.1) + (0.5 - 0.5) * 0.2

        assert below.breakdown.base_weight == pytest.approx(at_floor)

    def test_early_period_floor(self, engine):
        """Within the first three days the automatic weight is at least 0.35."""
        crowded = dict(quota=1, real_applicants=1000, revealed_count=500, my_rank=10)

        day_zero = engine.predict(make_input(**crowded, analysis_timestamp=datetime(2025, 1, 1)))
        day_three = engine.predict(make_input(**crowded, analysis_timestamp=datetime(2025, 1, 4, 23)))
        day_ten = engine.predict(make_input(**crowded, analysis_timestamp=datetime(2025, 1, 11)))

        assert day_zero.breakdown.base_weight == pytest.approx(0.35)
        assert day_three.breakdown.base_weight == pytest.approx(0.35)
        assert day_ten.breakdown.base_weight == pytest.approx(0.15)

    def test_ratio_correction_direction(self, engine):
        """Fewer reveals push the weight up, more reveals push it down."""
        few = engine.predict(make_input(revealed_count=20, my_rank=2, analysis_timestamp=datetime(2025, 2, 1)))
        many = engine.predict(make_input(revealed_count=220, my_rank=2, analysis_timestamp=datetime(2025, 2, 1)))

        assert few.breakdown.ratio_correction > 0
        assert many.breakdown.ratio_correction < 0
        assert few.breakdown.base_weight > many.breakdown.base_weight

    def test_ai_factor_shifts_weight(self, engine, auto_input):
        plain = engine.predict(auto_input)
        adjusted = engine.predict(auto_input, ExternalAdjustment(factor=0.05, reason="hidden pool"))

        assert adjusted.breakdown.base_weight == pytest.approx(plain.breakdown.base_weight + 0.05)
        assert adjusted.breakdown.ai_factor == 0.05
        assert adjusted.breakdown.ai_reason == "hidden pool"

    def test_ai_factor_applies_after_early_floor(self, engine):
        crowded = make_input(quota=1, real_applicants=1000, revealed_count=500, my_rank=10)

        result = engine.predict(crowded, ExternalAdjustment(factor=-0.09))

        assert result.breakdown.base_weight == pytest.approx(0.26)

    def test_manual_weight_ignores_ai_factor(self, engine, manual_input):
        result = engine.predict(manual_input, ExternalAdjustment(factor=0.09, reason="ignored"))

        assert result.breakdown.base_weight == 0.5
        assert result.breakdown.ai_factor == 0.0
        assert result.breakdown.ai_reason == ""
        assert result.ranks.realistic == 21


class TestTimeDecay:
    """Tests for the time reference and decay."""

    def test_elapsed_hours(self):
        assert elapsed_hours(datetime(2025, 1, 1)) == 0
        assert elapsed_hours(datetime(2025, 1, 1, 0, 59)) == 0
        assert elapsed_hours(datetime(2025, 1, 3, 12, 30)) == 60

    def test_elapsed_hours_aware(self):
        assert elapsed_hours(datetime(2025, 1, 2, 6, 0, tzinfo=SEOUL)) == 30

    def test_decay_grows_two_percent_per_day(self):
        assert time_decay_for(0) == 0
        assert time_decay_for(24) == pytest.approx(0.02)
        assert time_decay_for(60) == pytest.approx(0.05)

    def test_decay_capped(self):
        assert time_decay_for(24 * 15) == pytest.approx(0.3)
        assert time_decay_for(24 * 300) == 0.3

    def test_breakdown_reports_elapsed_time(self, engine):
        result = engine.predict(make_input(manual_weight=0.5, analysis_timestamp=datetime(2025, 1, 3, 12, 30)))

        assert result.breakdown.hours_passed == 60
        assert result.breakdown.days_passed == 2
        assert result.breakdown.hours_left == 12
        assert result.breakdown.time_decay_percent == pytest.approx(5.0)
        assert result.weights.realistic == pytest.approx(0.5 * 0.95)
        assert result.breakdown.decayed_weight == pytest.approx(0.5 * 0.95)

    def test_explicit_now_used_without_timestamp(self, engine):
        result = engine.predict(make_input(analysis_timestamp=None), now=datetime(2025, 1, 2))

        assert result.breakdown.hours_passed == 24
        assert result.analyzed_at == datetime(2025, 1, 2)

    def test_input_timestamp_beats_now(self, engine):
        result = engine.predict(make_input(analysis_timestamp=datetime(2025, 1, 1, 5)), now=datetime(2025, 3, 1))

        assert result.breakdown.hours_passed == 5

    def test_wall_clock_in_configured_zone(self, engine):
        result = engine.predict(make_input(analysis_timestamp=None))

        assert result.analyzed_at.tzinfo is not None
        assert result.analyzed_at.utcoffset() == datetime(2025, 1, 1, tzinfo=SEOUL).utcoffset()


class TestRounding:
    """Hidden superiors round half up, never banker's rounding."""

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(8.7) == 9
        assert round_half_up(3.48) == 3

    def test_half_rounds_up_in_projection(self, engine):
        # 5 unrevealed * 0.5 rank ratio * 1.0 = 2.5 -> 3
        result = engine.predict(
            make_input(quota=10, real_applicants=7, revealed_count=2, my_rank=1, manual_weight=0.5)
        )

        assert result.ranks.pessimistic == 4
        assert result.ranks.realistic == 2

    def test_default_additional_passes_round_half_up(self, engine):
        result = engine.predict(make_input(quota=5, real_applicants=20, revealed_count=10, my_rank=1))

        assert result.metrics.additional_passes == 3
        assert result.metrics.max_rank == 8

    def test_explicit_zero_additional_passes(self, engine):
        result = engine.predict(make_input(additional_passes=0))

        assert result.metrics.additional_passes == 0
        assert result.metrics.max_rank == 35


class TestScenarioWeights:
    def test_fixed_weights(self, engine, manual_input):
        weights = engine.predict(manual_input).weights

        assert weights.optimistic == OPTIMISTIC_WEIGHT
        assert weights.pessimistic == PESSIMISTIC_WEIGHT

    def test_realistic_weight_not_below_optimistic(self, engine):
        result = engine.predict(make_input(manual_weight=0.1))

        assert result.breakdown.decayed_weight == pytest.approx(0.1)
        assert result.weights.realistic == OPTIMISTIC_WEIGHT
        assert result.ranks.realistic == result.ranks.optimistic

    def test_last_among_revealers_has_full_ratio(self, engine):
        result = engine.predict(make_input(my_rank=100, manual_weight=0.5))

        assert result.breakdown.rank_ratio == 1.0
        assert result.ranks.pessimistic == 100 + 145


class TestClassification:
    """Tests for the waitlist-based likelihood tiers (quota 10, cutoff 15)."""

    @pytest.mark.parametrize(
        "rank, label, score, waiting",
        [
            (1, "Very Safe / Admitted", 95, -9),
            (8, "Very Safe / Admitted", 95, -2),
            (9, "Safe / Admitted", 85, -1),
            (10, "Safe / Admitted", 85, 0),
            (12, "Likely via Waitlist", 65, 2),
            (13, "Possible via Waitlist", 45, 3),
            (15, "Possible via Waitlist", 45, 5),
            (16, "Likely Rejected", 15, 6),
        ],
    )
    def test_tiers(self, rank, label, score, waiting):
        assessment = classify(rank, quota=10, max_rank=15)

        assert assessment.label == label
        assert assessment.score == score
        assert assessment.waiting_number == waiting


class TestValidation:
    """Invalid figures are rejected before any computation."""

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"real_applicants": 40, "revealed_count": 50, "my_rank": 1}, "점공 인원이 전체 지원자보다"),
            ({"my_rank": 101}, "나의 등수가 점공 인원보다"),
            ({"quota": 0}, "모집 인원은 0보다"),
            ({"quota": -3}, "모집 인원은 0보다"),
            ({"revealed_count": 0, "my_rank": 0}, "점공 인원은 1명 이상"),
            ({"my_rank": 0}, "나의 등수는 1 이상"),
            ({"manual_weight": 1.5}, "가중치는"),
            ({"manual_weight": 0.05}, "가중치는"),
            ({"additional_passes": -1}, "추가 합격 인원은"),
        ],
    )
    def test_invalid_input(self, engine, overrides, message):
        with pytest.raises(ValidationError, match=message):
            engine.predict(make_input(**overrides))

    def test_validation_error_is_value_error(self):
        assert issubclass(ValidationError, ValueError)

    def test_manual_weight_bounds_inclusive(self, engine):
        engine.predict(make_input(manual_weight=0.1))
        engine.predict(make_input(manual_weight=1.0))


class TestProperties:
    """Invariants across a grid of valid inputs."""

    GRID = list(
        itertools.product(
            [1, 10, 35],  # quota
            [50, 400],  # real applicants
            [1, 25, 50],  # revealed count
            [1, 7, 25, 50],  # my rank
            [None, 0.1, 0.6, 1.0],  # manual weight
            [datetime(2025, 1, 1), datetime(2025, 1, 20, 13)],
        )
    )

    def test_scenarios_ordered_and_never_better_than_own_rank(self, engine):
        checked = 0
        for quota, applicants, revealed, rank, weight, stamp in self.GRID:
            if rank > revealed:
                continue
            result = engine.predict(
                make_input(
                    quota=quota,
                    real_applicants=applicants,
                    revealed_count=revealed,
                    my_rank=rank,
                    manual_weight=weight,
                    analysis_timestamp=stamp,
                )
            )
            ranks = result.ranks
            assert ranks.optimistic <= ranks.realistic <= ranks.pessimistic
            assert ranks.optimistic >= rank
            assert OPTIMISTIC_WEIGHT <= result.weights.realistic <= PESSIMISTIC_WEIGHT
            checked += 1
        assert checked > 0

    def test_idempotent(self, engine, auto_input):
        adjustment = ExternalAdjustment(factor=-0.03, reason="steady")

        first = engine.predict(auto_input, adjustment)
        second = engine.predict(auto_input, adjustment)

        assert first == second
        assert first.model_dump() == second.model_dump()

    def test_result_is_frozen(self, engine, auto_input):
        result = engine.predict(auto_input)

        with pytest.raises(Exception):
            result.ranks.realistic = 1


class TestDecayedWeight:
    def test_floor_weight_decays_below_scenario_range(self, engine):
        """0.15 base weight after ten days of decay is 0.12, applied as 0.2."""
        crowded = make_input(
            quota=1,
            real_applicants=1000,
            revealed_count=500,
            my_rank=10,
            analysis_timestamp=datetime(2025, 1, 11),
        )

        result = engine.predict(crowded)

        assert result.breakdown.base_weight == pytest.approx(0.15)
        assert result.breakdown.decayed_weight == pytest.approx(0.15 * 0.8)
        assert result.weights.realistic == OPTIMISTIC_WEIGHT
