"""
Base adjustment provider interface for the Strategy Pattern.
All adjustment providers must inherit from BaseAdjustmentProvider.
"""

from abc import ABC, abstractmethod

from app.schemas.prediction import ExternalAdjustment, PredictionInput

AI_UNAVAILABLE_REASON = "AI 분석 불가"


def neutral_adjustment(reason: str, available: bool = False) -> ExternalAdjustment:
    """The zero correction every provider falls back to."""
    return ExternalAdjustment(factor=0.0, reason=reason, available=available)


class BaseAdjustmentProvider(ABC):
    """
    Abstract base class for weight-adjustment strategies.

    Implementations must never raise from get_adjustment(): any failure
    collapses to neutral_adjustment() so the engine can always produce a result.
    """

    @abstractmethod
    async def get_adjustment(self, prediction_input: PredictionInput) -> ExternalAdjustment:
        """
        Return a bounded correction to the automatic base weight.

        Args:
            prediction_input: The figures the user is analysing

        Returns:
            ExternalAdjustment with factor in [-0.09, 0.09]
        """
        pass

    @property
    @abstractmethod
    def source_name(self) -> str:
        """
        Return a descriptive name for this provider (e.g., 'neutral', 'gemini').
        Used for transparency in prediction responses.
        """
        pass
