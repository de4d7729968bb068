from __future__ import annotations

from didperf.metrics.aggregator import MetricAggregator
from didperf.metrics.models import (
    CHECKS,
    DATA_RECEIVED,
    DATA_SENT,
    ERROR_EVENTS,
    ERRORS,
    HTTP_REQ_DURATION,
    HTTP_REQ_FAILED,
    HTTP_REQS,
    ITERATIONS,
    METRIC_CONTAINS,
    METRIC_KINDS,
    CheckResult,
    DistributionValue,
    ErrorType,
    HttpExchange,
    IterationTally,
    MetricKind,
    MetricsSnapshot,
    RateValue,
    RequestSpec,
)

__all__ = [
    "CHECKS",
    "DATA_RECEIVED",
    "DATA_SENT",
    "ERRORS",
    "ERROR_EVENTS",
    "HTTP_REQS",
    "HTTP_REQ_DURATION",
    "HTTP_REQ_FAILED",
    "ITERATIONS",
    "METRIC_CONTAINS",
    "METRIC_KINDS",
    "CheckResult",
    "DistributionValue",
    "ErrorType",
    "HttpExchange",
    "IterationTally",
    "MetricAggregator",
    "MetricKind",
    "MetricsSnapshot",
    "RateValue",
    "RequestSpec",
]
