"""
Gemini-backed adjustment provider.
Asks the model for a small correction to the automatic base weight given the
reveal statistics. Every failure degrades to the neutral adjustment.
"""

import asyncio
import json
import logging
import math
import re
from typing import Any, Optional

from app.schemas.prediction import MAX_ADJUSTMENT_FACTOR, ExternalAdjustment, PredictionInput
from core.config import settings
from services import gemini_integration
from services.adjusters.base import AI_UNAVAILABLE_REASON, BaseAdjustmentProvider, neutral_adjustment

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 200
_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

PROMPT_TEMPLATE = """\
당신은 한국 대학 정시 점수공개(점공) 분석 전문가입니다.
아래 점공 현황을 보고, 미점공자 중 나보다 점수가 높은 사람의 비율(가중치)을
기본 모델보다 얼마나 올리거나 내려야 하는지 판단하세요.

- 모집 인원: {quota}명
- 전체 지원자: {real_applicants}명 (경쟁률 {competition_rate:.2f}:1)
- 점공 참여: {revealed_count}명 (참여율 {revealed_percent:.1f}%)
- 점공 내 나의 등수: {my_rank}등
- 분석 시점: {analyzed_at}

가중치 보정값 factor는 {min_factor} 이상 {max_factor} 이하의 실수입니다.
양수는 더 보수적으로(숨은 고득점자가 많음), 음수는 더 낙관적으로 보정합니다.
반드시 다음 JSON 형식으로만 답하세요:
{{"factor": <number>, "reason": "<한 문장 근거>"}}
"""


def build_prompt(prediction_input: PredictionInput) -> str:
    p = prediction_input
    analyzed_at = p.analysis_timestamp.isoformat() if p.analysis_timestamp else "현재"
    return PROMPT_TEMPLATE.format(
        quota=p.quota,
        real_applicants=p.real_applicants,
        competition_rate=p.real_applicants / p.quota if p.quota else 0.0,
        revealed_count=p.revealed_count,
        revealed_percent=p.revealed_count / p.real_applicants * 100 if p.real_applicants else 0.0,
        my_rank=p.my_rank,
        analyzed_at=analyzed_at,
        min_factor=-MAX_ADJUSTMENT_FACTOR,
        max_factor=MAX_ADJUSTMENT_FACTOR,
    )


def parse_adjustment(raw: Any) -> ExternalAdjustment:
    """
    Parse the model's JSON answer and clamp the factor to the allowed range.

    Raises:
        ValueError: If the answer is not a JSON object with a numeric factor
    """
    if not isinstance(raw, str):
        raise ValueError(f"Expected text response, got {type(raw).__name__}")
    text = _CODE_FENCE.sub("", raw.strip())
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Response is not a JSON object")

    factor = data.get("factor")
    if isinstance(factor, bool) or not isinstance(factor, (int, float, str)):
        raise ValueError(f"Invalid factor: {factor!r}")
    factor = float(factor)
    if not math.isfinite(factor):
        raise ValueError(f"Factor is not finite: {factor}")
    factor = max(-MAX_ADJUSTMENT_FACTOR, min(MAX_ADJUSTMENT_FACTOR, factor))

    reason = str(data.get("reason") or "").strip()[:MAX_REASON_LENGTH]
    return ExternalAdjustment(factor=factor, reason=reason, available=True)


class GeminiAdjustmentProvider(BaseAdjustmentProvider):
    """Adjustment provider calling the Gemini text model once per request."""

    def __init__(self, model: Optional[str] = None, timeout: Optional[float] = None):
        self.model = model or settings.GEMINI_MODEL
        self.timeout = timeout or settings.AI_TIMEOUT_SECONDS

    async def get_adjustment(self, prediction_input: PredictionInput) -> ExternalAdjustment:
        if not gemini_integration.is_configured():
            return neutral_adjustment(f"{AI_UNAVAILABLE_REASON}: API 키가 설정되지 않았습니다.")

        prompt = build_prompt(prediction_input)
        try:
            raw = await asyncio.wait_for(
                gemini_integration.generate_text_async(prompt, self.model),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Gemini adjustment timed out after %.1fs", self.timeout)
            return neutral_adjustment(f"{AI_UNAVAILABLE_REASON}: 응답 시간 초과")
        except gemini_integration.GeminiError as exc:
            logger.warning("Gemini returned no usable content: %s", exc)
            return neutral_adjustment(f"{AI_UNAVAILABLE_REASON}: {exc}")
        except Exception as exc:  # noqa: BLE001
            logger.warning("Gemini adjustment request failed: %s", exc)
            return neutral_adjustment(f"{AI_UNAVAILABLE_REASON}: 요청 실패")

        try:
            adjustment = parse_adjustment(raw)
        except (ValueError, TypeError) as exc:
            logger.warning("Malformed Gemini adjustment %r: %s", raw, exc)
            return neutral_adjustment(f"{AI_UNAVAILABLE_REASON}: 응답 형식 오류")

        logger.info("Gemini adjustment %.3f (%s)", adjustment.factor, adjustment.reason)
        return adjustment

    @property
    def source_name(self) -> str:
        return f"gemini:{self.model}"
