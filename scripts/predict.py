#!/usr/bin/env python3
import argparse
import asyncio
import json
import logging
import os
import sys
from datetime import datetime

# Add the project root directory to sys.path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(project_root)

from app.schemas.prediction import PredictionInput
from services.adjusters import NeutralAdjustmentProvider, get_adjustment_provider
from services.analysis_session import AnalysisSession
from services.prediction_service import ValidationError

SCENARIOS = ("optimistic", "realistic", "pessimistic")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Estimate the final rank from score-reveal figures.")
    parser.add_argument("--quota", type=int, required=True, help="Seats offered")
    parser.add_argument("--applicants", type=int, required=True, help="Total applicants")
    parser.add_argument("--revealed", type=int, required=True, help="Applicants who revealed scores")
    parser.add_argument("--rank", type=int, required=True, help="Own rank among revealers")
    parser.add_argument("--weight", type=float, help="Manual base weight (0.1-1.0)")
    parser.add_argument("--additional-passes", type=int, help="Expected additional passes")
    parser.add_argument(
        "--at",
        type=datetime.fromisoformat,
        help="Analysis time in ISO format, e.g. 2025-01-03T21:00",
    )
    parser.add_argument("--no-ai", action="store_true", help="Skip the AI adjustment")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    return parser


def main():
    args = build_parser().parse_args()

    prediction_input = PredictionInput(
        quota=args.quota,
        real_applicants=args.applicants,
        revealed_count=args.revealed,
        my_rank=args.rank,
        manual_weight=args.weight,
        additional_passes=args.additional_passes,
        analysis_timestamp=args.at,
    )
    provider = NeutralAdjustmentProvider() if args.no_ai else get_adjustment_provider()
    session = AnalysisSession(provider=provider)

    try:
        outcome = asyncio.run(session.analyze(prediction_input))
    except ValidationError as e:
        print(f"입력 오류: {e}", file=sys.stderr)
        sys.exit(1)

    result = outcome.result
    if args.json:
        print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return

    metrics = result.metrics
    print(f"경쟁률 {metrics.competition_rate:.2f}:1, 점공 참여율 {metrics.revealed_ratio * 100:.1f}%")
    print(f"추가 합격 {metrics.additional_passes}명 포함 커트라인 {metrics.max_rank}등")
    for scenario in SCENARIOS:
        rank = getattr(result.ranks, scenario)
        weight = getattr(result.weights, scenario)
        probability = getattr(result.probabilities, scenario)
        waiting = f"예비 {probability.waiting_number}번" if probability.waiting_number > 0 else "최초합권"
        print(f"{scenario:>12}: {rank:>5}등 (w={weight:.3f}) {waiting:<10} {probability.label} ({probability.score})")

    adjustment = outcome.adjustment
    if adjustment.reason:
        print(f"AI 보정 {adjustment.factor:+.3f}: {adjustment.reason}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    main()
