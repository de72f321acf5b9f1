"""
Provider that never adjusts.
Used when AI analysis is disabled or not configured, and in tests.
"""

from app.schemas.prediction import ExternalAdjustment, PredictionInput
from services.adjusters.base import BaseAdjustmentProvider, neutral_adjustment


class NeutralAdjustmentProvider(BaseAdjustmentProvider):
    def __init__(self, reason: str = "", available: bool = True):
        self.reason = reason
        # False when standing in for an AI provider that cannot run
        self.available = available

    async def get_adjustment(self, prediction_input: PredictionInput) -> ExternalAdjustment:
        return neutral_adjustment(self.reason, available=self.available)

    @property
    def source_name(self) -> str:
        return "neutral"
