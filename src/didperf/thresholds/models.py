from __future__ import annotations

import operator
import re
from dataclasses import dataclass
from typing import Callable, Mapping

from didperf.metrics.models import METRIC_KINDS, MetricKind


class ThresholdError(ValueError):
    pass


_OPERATORS: Mapping[str, Callable[[float, float], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
}

_EXPRESSION = re.compile(
    r"^\s*(?P<aggregation>count|rate|avg|min|med|max|p\(\d+(?:\.\d+)?\))"
    r"\s*(?P<operator><=|>=|==|!=|<|>)"
    r"\s*(?P<value>-?\d+(?:\.\d+)?)\s*$"
)

_AGGREGATIONS: Mapping[MetricKind, frozenset[str]] = {
    MetricKind.COUNTER: frozenset({"count", "rate"}),
    MetricKind.RATE: frozenset({"rate"}),
    MetricKind.DISTRIBUTION: frozenset({"avg", "min", "med", "max"}),
}


@dataclass(frozen=True, slots=True)
class Threshold:
    metric: str
    aggregation: str
    operator: str
    value: float
    expression: str

    def holds(self, observed: float) -> bool:
        return _OPERATORS[self.operator](observed, self.value)

    def __str__(self) -> str:
        return f"{self.metric} {self.expression}"


def parse_threshold(metric: str, expression: str) -> Threshold:
    """Parse a k6-style expression such as ``p(95)<2000`` for ``metric``."""
    kind = METRIC_KINDS.get(metric)
    if kind is None:
        msg = f"Unknown metric {metric!r} in threshold {expression!r}"
        raise ThresholdError(msg)
    match = _EXPRESSION.match(expression)
    if match is None:
        msg = f"Malformed threshold expression {expression!r} for {metric}"
        raise ThresholdError(msg)
    aggregation = match.group("aggregation")
    allowed = _AGGREGATIONS[kind]
    is_percentile = aggregation.startswith("p(")
    if aggregation not in allowed and not (is_percentile and kind is MetricKind.DISTRIBUTION):
        msg = f"Aggregation {aggregation!r} is not available for {kind.value} metric {metric}"
        raise ThresholdError(msg)
    if is_percentile and not 0.0 <= float(aggregation[2:-1]) <= 100.0:
        msg = f"Percentile out of range in {expression!r}"
        raise ThresholdError(msg)
    op, value = match.group("operator"), match.group("value")
    return Threshold(
        metric=metric,
        aggregation=aggregation,
        operator=op,
        value=float(value),
        expression=f"{aggregation}{op}{value}",
    )


def parse_thresholds(declared: Mapping[str, list[str]]) -> tuple[Threshold, ...]:
    return tuple(
        parse_threshold(metric, expression)
        for metric, expressions in declared.items()
        for expression in expressions
    )
