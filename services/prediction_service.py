import logging
import math
from datetime import datetime, tzinfo
from typing import Optional

from app.schemas.prediction import (
    ExternalAdjustment,
    PredictionBreakdown,
    PredictionInput,
    PredictionMetrics,
    PredictionResult,
    ProbabilityAssessment,
    ScenarioProbabilities,
    ScenarioRanks,
    ScenarioWeights,
)
from core.config import settings

logger = logging.getLogger(__name__)

# Fixed scenario weights: share of the unrevealed pool assumed to outrank the user.
OPTIMISTIC_WEIGHT = 0.2
PESSIMISTIC_WEIGHT = 1.0

# Automatic base weight: w = 0.7 - 0.15 * ln(competition rate)
BASE_WEIGHT_INTERCEPT = 0.7
BASE_WEIGHT_LOG_SLOPE = 0.15
MIN_COMPETITION_RATE = 1.1
RATIO_CORRECTION_PIVOT = 0.5
RATIO_CORRECTION_SCALE = 0.2
EARLY_PERIOD_DAYS = 3
EARLY_PERIOD_MIN_WEIGHT = 0.35
MIN_BASE_WEIGHT = 0.15

# Time decay grows 2% per day, computed hourly, capped at 30%.
DAILY_DECAY = 0.02
MAX_TIME_DECAY = 0.3

DEFAULT_ADDITIONAL_PASS_RATE = 0.5
MANUAL_WEIGHT_RANGE = (0.1, 1.0)

# (label, score) per likelihood tier
VERY_SAFE = ("Very Safe / Admitted", 95)
SAFE = ("Safe / Admitted", 85)
LIKELY_WAITLIST = ("Likely via Waitlist", 65)
POSSIBLE_WAITLIST = ("Possible via Waitlist", 45)
LIKELY_REJECTED = ("Likely Rejected", 15)
SAFE_QUOTA_SHARE = 0.8
LIKELY_CUTOFF_SHARE = 0.8


class ValidationError(ValueError):
    """Raised when the input figures contradict each other. The message is user-facing."""


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (2.5 -> 3), unlike round()."""
    return math.floor(value + 0.5)


def elapsed_hours(timestamp: datetime) -> int:
    """Whole hours since January 1st 00:00 of the timestamp's year (same tzinfo)."""
    anchor = timestamp.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    hours = math.floor((timestamp - anchor).total_seconds() / 3600)
    return max(0, hours)


def time_decay_for(hours_passed: int) -> float:
    return min(MAX_TIME_DECAY, hours_passed * (DAILY_DECAY / 24))


def classify(projected_rank: int, quota: int, max_rank: int) -> ProbabilityAssessment:
    """
    Map a projected rank to an admission-likelihood tier.

    Within the quota the split is at 80% of the quota; on the waiting list the
    split is at 80% of the cutoff (quota + additional passes).
    """
    waiting_number = math.ceil(projected_rank) - quota
    if waiting_number <= 0:
        label, score = VERY_SAFE if projected_rank <= quota * SAFE_QUOTA_SHARE else SAFE
    elif projected_rank <= max_rank * LIKELY_CUTOFF_SHARE:
        label, score = LIKELY_WAITLIST
    elif projected_rank <= max_rank:
        label, score = POSSIBLE_WAITLIST
    else:
        label, score = LIKELY_REJECTED
    return ProbabilityAssessment(label=label, score=score, waiting_number=waiting_number)


class PredictionEngine:
    """
    Projects a final admission rank from score-reveal figures.

    Stateless: every call recomputes from its arguments. The only implicit
    input is the wall clock, used when neither the input nor the caller
    supplies a timestamp.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz or settings.tzinfo

    def validate(self, prediction_input: PredictionInput) -> None:
        """Raise ValidationError on the first violated invariant."""
        p = prediction_input
        if p.revealed_count > p.real_applicants:
            raise ValidationError("점공 인원이 전체 지원자보다 많을 수 없습니다.")
        if p.my_rank > p.revealed_count:
            raise ValidationError("나의 등수가 점공 인원보다 클 수 없습니다.")
        if p.quota <= 0:
            raise ValidationError("모집 인원은 0보다 커야 합니다.")
        if p.revealed_count <= 0:
            raise ValidationError("점공 인원은 1명 이상이어야 합니다.")
        if p.my_rank < 1:
            raise ValidationError("나의 등수는 1 이상이어야 합니다.")
        if p.manual_weight is not None:
            low, high = MANUAL_WEIGHT_RANGE
            if not low <= p.manual_weight <= high:
                raise ValidationError(f"가중치는 {low} ~ {high} 사이여야 합니다.")
        if p.additional_passes is not None and p.additional_passes < 0:
            raise ValidationError("추가 합격 인원은 0 이상이어야 합니다.")

    def resolve_timestamp(
        self, prediction_input: PredictionInput, now: Optional[datetime] = None
    ) -> datetime:
        if prediction_input.analysis_timestamp is not None:
            return prediction_input.analysis_timestamp
        if now is not None:
            return now
        return datetime.now(self.tz)

    def predict(
        self,
        prediction_input: PredictionInput,
        adjustment: Optional[ExternalAdjustment] = None,
        now: Optional[datetime] = None,
    ) -> PredictionResult:
        self.validate(prediction_input)
        adjustment = adjustment or ExternalAdjustment(factor=0.0, reason="")

        p = prediction_input
        competition_rate = p.real_applicants / p.quota
        revealed_ratio = p.revealed_count / p.real_applicants

        analyzed_at = self.resolve_timestamp(p, now)
        hours_passed = elapsed_hours(analyzed_at)
        days_passed, hours_left = divmod(hours_passed, 24)
        time_decay = time_decay_for(hours_passed)

        if p.manual_weight is not None:
            base_weight = p.manual_weight
            weight_source = "manual"
            ratio_correction = 0.0
            ai_factor = 0.0
        else:
            weight_source = "auto"
            safe_rate = max(MIN_COMPETITION_RATE, competition_rate)
            weight = BASE_WEIGHT_INTERCEPT - BASE_WEIGHT_LOG_SLOPE * math.log(safe_rate)
            ratio_correction = (RATIO_CORRECTION_PIVOT - revealed_ratio) * RATIO_CORRECTION_SCALE
            weight += ratio_correction
            if days_passed <= EARLY_PERIOD_DAYS:
                weight = max(weight, EARLY_PERIOD_MIN_WEIGHT)
            # Provider contract bounds the factor; it is not re-clamped here
            ai_factor = adjustment.factor
            weight += ai_factor
            base_weight = max(MIN_BASE_WEIGHT, weight)

        decayed_weight = base_weight * (1 - time_decay)
        realistic_weight = min(PESSIMISTIC_WEIGHT, max(OPTIMISTIC_WEIGHT, decayed_weight))
        weights = ScenarioWeights(
            optimistic=OPTIMISTIC_WEIGHT,
            realistic=realistic_weight,
            pessimistic=PESSIMISTIC_WEIGHT,
        )

        unrevealed_count = p.real_applicants - p.revealed_count
        rank_ratio = p.my_rank / p.revealed_count

        def project(weight: float) -> int:
            hidden_superiors = round_half_up(unrevealed_count * rank_ratio * weight)
            return p.my_rank + hidden_superiors

        ranks = ScenarioRanks(
            optimistic=project(weights.optimistic),
            realistic=project(weights.realistic),
            pessimistic=project(weights.pessimistic),
        )

        if p.additional_passes is not None:
            additional_passes = p.additional_passes
        else:
            additional_passes = round_half_up(p.quota * DEFAULT_ADDITIONAL_PASS_RATE)
        max_rank = p.quota + additional_passes

        probabilities = ScenarioProbabilities(
            optimistic=classify(ranks.optimistic, p.quota, max_rank),
            realistic=classify(ranks.realistic, p.quota, max_rank),
            pessimistic=classify(ranks.pessimistic, p.quota, max_rank),
        )

        logger.debug(
            "Predicted ranks %d/%d/%d (weight %.4f, %s) for quota=%d applicants=%d revealed=%d rank=%d",
            ranks.optimistic,
            ranks.realistic,
            ranks.pessimistic,
            realistic_weight,
            weight_source,
            p.quota,
            p.real_applicants,
            p.revealed_count,
            p.my_rank,
        )

        return PredictionResult(
            ranks=ranks,
            probabilities=probabilities,
            weights=weights,
            metrics=PredictionMetrics(
                competition_rate=competition_rate,
                revealed_ratio=revealed_ratio,
                additional_passes=additional_passes,
                max_rank=max_rank,
            ),
            breakdown=PredictionBreakdown(
                base_weight=base_weight,
                decayed_weight=decayed_weight,
                weight_source=weight_source,
                time_decay_percent=time_decay * 100,
                hours_passed=hours_passed,
                days_passed=days_passed,
                hours_left=hours_left,
                ratio_correction=ratio_correction,
                ai_factor=ai_factor,
                ai_reason=adjustment.reason if weight_source == "auto" else "",
                unrevealed_count=unrevealed_count,
                rank_ratio=rank_ratio,
            ),
            analyzed_at=analyzed_at,
        )


prediction_engine = PredictionEngine()


def get_prediction_engine() -> PredictionEngine:
    return prediction_engine
