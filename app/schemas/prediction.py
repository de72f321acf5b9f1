"""
Pydantic models for prediction engine inputs and outputs.
All models are frozen: a result is recomputed on every call, never mutated.
"""

from datetime import datetime

from pydantic import BaseModel, Field

MAX_ADJUSTMENT_FACTOR = 0.09


class PredictionInput(BaseModel):
    """Raw score-reveal figures for one department."""

    quota: int = Field(..., description="Seats offered before additional passes")
    real_applicants: int = Field(..., description="Total number of applicants")
    revealed_count: int = Field(..., description="Applicants who disclosed their scores")
    my_rank: int = Field(..., description="Own rank among the revealed applicants")
    manual_weight: float | None = Field(
        None, description="Manual base weight (0.1-1.0); overrides the automatic weight"
    )
    additional_passes: int | None = Field(
        None, description="Expected seats filled from the waiting list (default: half the quota)"
    )
    analysis_timestamp: datetime | None = Field(
        None, description="Point in time used for time decay (default: now)"
    )

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "quota": 35,
                "real_applicants": 245,
                "revealed_count": 100,
                "my_rank": 12,
                "manual_weight": None,
                "additional_passes": 15,
                "analysis_timestamp": "2025-01-03T21:00:00+09:00",
            }
        }


class ExternalAdjustment(BaseModel):
    """Bounded weight correction supplied by an adjustment provider."""

    factor: float = Field(
        0.0,
        ge=-MAX_ADJUSTMENT_FACTOR,
        le=MAX_ADJUSTMENT_FACTOR,
        description="Additive correction to the automatic base weight",
    )
    reason: str = Field("", description="Advisory explanation, not used in computation")
    available: bool = Field(True, description="False when the provider fell back to neutral")

    class Config:
        frozen = True


class ScenarioRanks(BaseModel):
    """Projected final rank per scenario."""

    optimistic: int
    realistic: int
    pessimistic: int

    class Config:
        frozen = True


class ScenarioWeights(BaseModel):
    """Weight applied to the unrevealed pool per scenario."""

    optimistic: float
    realistic: float
    pessimistic: float

    class Config:
        frozen = True


class ProbabilityAssessment(BaseModel):
    """Admission-likelihood classification for one projected rank."""

    label: str = Field(..., description="Likelihood label")
    score: int = Field(..., ge=0, le=100, description="Rough likelihood score")
    waiting_number: int = Field(
        ..., description="Waiting-list position; zero or negative means within the quota"
    )

    class Config:
        frozen = True


class ScenarioProbabilities(BaseModel):
    optimistic: ProbabilityAssessment
    realistic: ProbabilityAssessment
    pessimistic: ProbabilityAssessment

    class Config:
        frozen = True


class PredictionMetrics(BaseModel):
    competition_rate: float = Field(..., description="Applicants per seat")
    revealed_ratio: float = Field(..., gt=0, le=1, description="Share of applicants who revealed")
    additional_passes: int = Field(..., ge=0, description="Additional passes used for the cutoff")
    max_rank: int = Field(..., description="Last rank admitted including additional passes")

    class Config:
        frozen = True


class PredictionBreakdown(BaseModel):
    """Intermediate values, for display only."""

    base_weight: float
    decayed_weight: float = Field(
        ..., description="base_weight after time decay, before clamping to the scenario range"
    )
    weight_source: str = Field(..., description="'manual' or 'auto'")
    time_decay_percent: float
    hours_passed: int
    days_passed: int
    hours_left: int
    ratio_correction: float
    ai_factor: float
    ai_reason: str = ""
    unrevealed_count: int
    rank_ratio: float

    class Config:
        frozen = True


class PredictionResult(BaseModel):
    """Result from the prediction engine."""

    ranks: ScenarioRanks
    probabilities: ScenarioProbabilities
    weights: ScenarioWeights
    metrics: PredictionMetrics
    breakdown: PredictionBreakdown
    analyzed_at: datetime = Field(..., description="Timestamp the time decay was computed for")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "ranks": {"optimistic": 15, "realistic": 21, "pessimistic": 29},
                "probabilities": {
                    "optimistic": {"label": "Very Safe / Admitted", "score": 95, "waiting_number": -20},
                    "realistic": {"label": "Very Safe / Admitted", "score": 95, "waiting_number": -14},
                    "pessimistic": {"label": "Safe / Admitted", "score": 85, "waiting_number": -6},
                },
                "weights": {"optimistic": 0.2, "realistic": 0.5, "pessimistic": 1.0},
                "metrics": {
                    "competition_rate": 7.0,
                    "revealed_ratio": 0.408,
                    "additional_passes": 15,
                    "max_rank": 50,
                },
            }
        }
