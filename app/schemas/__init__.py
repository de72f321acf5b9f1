"""
Pydantic schemas for type-safe data structures.
"""

from app.schemas.history import SavedAnalysis
from app.schemas.prediction import (
    MAX_ADJUSTMENT_FACTOR,
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
from app.schemas.validation import PredictionRequestParam, SaveAnalysisParam

__all__ = [
    # Prediction schemas
    "MAX_ADJUSTMENT_FACTOR",
    "PredictionInput",
    "ExternalAdjustment",
    "ScenarioRanks",
    "ScenarioWeights",
    "ProbabilityAssessment",
    "ScenarioProbabilities",
    "PredictionMetrics",
    "PredictionBreakdown",
    "PredictionResult",
    # History schemas
    "SavedAnalysis",
    # Validation schemas
    "PredictionRequestParam",
    "SaveAnalysisParam",
]
