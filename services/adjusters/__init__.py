"""
Weight-adjustment strategy implementations.
Separates the LLM-backed correction from the neutral default.
"""

import logging

from core.config import settings
from services import gemini_integration
from services.adjusters.base import BaseAdjustmentProvider, neutral_adjustment
from services.adjusters.cached import CachedAdjustmentProvider
from services.adjusters.gemini import GeminiAdjustmentProvider
from services.adjusters.neutral import NeutralAdjustmentProvider

logger = logging.getLogger(__name__)


def get_adjustment_provider() -> BaseAdjustmentProvider:
    """Gemini behind the cache when enabled and configured, otherwise neutral."""
    if not settings.AI_ADJUSTMENT_ENABLED:
        return NeutralAdjustmentProvider(reason="AI 분석 비활성화", available=False)
    if not gemini_integration.is_configured():
        logger.warning("GEMINI_API_KEY not set. AI adjustment will be skipped.")
        return NeutralAdjustmentProvider(reason="AI 분석 불가: API 키가 설정되지 않았습니다.", available=False)
    return CachedAdjustmentProvider(GeminiAdjustmentProvider())


__all__ = [
    "BaseAdjustmentProvider",
    "CachedAdjustmentProvider",
    "GeminiAdjustmentProvider",
    "NeutralAdjustmentProvider",
    "get_adjustment_provider",
    "neutral_adjustment",
]
