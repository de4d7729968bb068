from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from didperf.metrics.models import MetricsSnapshot
from didperf.thresholds.models import Threshold


@dataclass(frozen=True, slots=True)
class ThresholdResult:
    threshold: Threshold
    observed: float
    ok: bool


def evaluate_threshold(snapshot: MetricsSnapshot, threshold: Threshold) -> ThresholdResult:
    observed = snapshot.stat(threshold.metric, threshold.aggregation)
    return ThresholdResult(threshold=threshold, observed=observed, ok=threshold.holds(observed))


def evaluate_thresholds(
    snapshot: MetricsSnapshot,
    thresholds: Iterable[Threshold],
) -> tuple[ThresholdResult, ...]:
    return tuple(evaluate_threshold(snapshot, threshold) for threshold in thresholds)


def all_passed(results: Iterable[ThresholdResult]) -> bool:
    return all(result.ok for result in results)
