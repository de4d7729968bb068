from __future__ import annotations

from didperf.thresholds.evaluator import (
    ThresholdResult,
    all_passed,
    evaluate_threshold,
    evaluate_thresholds,
)
from didperf.thresholds.models import Threshold, ThresholdError, parse_threshold, parse_thresholds

__all__ = [
    "Threshold",
    "ThresholdError",
    "ThresholdResult",
    "all_passed",
    "evaluate_threshold",
    "evaluate_thresholds",
    "parse_threshold",
    "parse_thresholds",
]
