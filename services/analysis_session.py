"""
Caller-side analysis flow.

A calculation first yields an instant baseline with no adjustment, then a
refined result once the adjustment provider answers. If a newer calculation
starts while a provider call is pending, the older refinement is discarded.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.schemas.prediction import ExternalAdjustment, PredictionInput, PredictionResult
from services.adjusters import BaseAdjustmentProvider, NeutralAdjustmentProvider
from services.prediction_service import PredictionEngine, get_prediction_engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisOutcome:
    baseline: PredictionResult
    result: PredictionResult
    adjustment: ExternalAdjustment


class AnalysisSession:
    """
    Holds the currently displayed result for one user.

    Not shared between users; inputs are frozen models so nothing the caller
    holds can change a result after the fact.
    """

    def __init__(
        self,
        engine: Optional[PredictionEngine] = None,
        provider: Optional[BaseAdjustmentProvider] = None,
    ):
        self.engine = engine or get_prediction_engine()
        self.provider = provider or NeutralAdjustmentProvider()
        self.current: Optional[PredictionResult] = None
        self._latest_request_id = 0

    @property
    def latest_request_id(self) -> int:
        return self._latest_request_id

    def calculate(
        self, prediction_input: PredictionInput, now: Optional[datetime] = None
    ) -> tuple[int, PredictionResult]:
        """
        Run the engine with no adjustment and make it the current result.

        Raises:
            ValidationError: If the input is inconsistent; current is left as is
        """
        result = self.engine.predict(prediction_input, now=now)
        self._latest_request_id += 1
        self.current = result
        return self._latest_request_id, result

    async def refine(
        self,
        request_id: int,
        prediction_input: PredictionInput,
        baseline: PredictionResult,
    ) -> Optional[tuple[PredictionResult, ExternalAdjustment]]:
        """
        Re-run the engine with the provider's adjustment.

        Uses the baseline's timestamp so both results describe the same moment.
        Returns None when a newer calculation superseded this one.
        """
        adjustment = await self.provider.get_adjustment(prediction_input)
        if request_id != self._latest_request_id:
            logger.debug(
                "Discarding stale adjustment for request %d (latest is %d)",
                request_id,
                self._latest_request_id,
            )
            return None

        result = self.engine.predict(prediction_input, adjustment, now=baseline.analyzed_at)
        self.current = result
        return result, adjustment

    async def analyze(
        self, prediction_input: PredictionInput, now: Optional[datetime] = None
    ) -> Optional[AnalysisOutcome]:
        request_id, baseline = self.calculate(prediction_input, now=now)
        refined = await self.refine(request_id, prediction_input, baseline)
        if refined is None:
            return None
        result, adjustment = refined
        return AnalysisOutcome(baseline=baseline, result=result, adjustment=adjustment)
