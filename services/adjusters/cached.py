"""
Caching decorator provider.
Wraps another provider and remembers successful adjustments per input.
"""

import logging
from typing import Optional

from app.schemas.prediction import ExternalAdjustment, PredictionInput
from services.adjusters.base import BaseAdjustmentProvider
from services.cache import TTLCache, adjustment_cache_key, get_adjustment_cache

logger = logging.getLogger(__name__)


class CachedAdjustmentProvider(BaseAdjustmentProvider):
    def __init__(self, inner: BaseAdjustmentProvider, cache: Optional[TTLCache] = None):
        self.inner = inner
        self.cache = cache if cache is not None else get_adjustment_cache()

    async def get_adjustment(self, prediction_input: PredictionInput) -> ExternalAdjustment:
        key = f"{self.inner.source_name}:{adjustment_cache_key(prediction_input)}"
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Adjustment cache hit for key: %s", key)
            return cached

        adjustment = await self.inner.get_adjustment(prediction_input)
        # Fallbacks are not cached so a transient outage does not stick
        if adjustment.available:
            self.cache.set(key, adjustment)
        return adjustment

    @property
    def source_name(self) -> str:
        return self.inner.source_name
