from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

import httpx
import numpy as np


class ErrorType(str, Enum):
    TIMEOUT = "timeout"
    CONNECT = "connect"
    READ = "read"
    OTHER = "other"


class MetricKind(str, Enum):
    COUNTER = "counter"
    RATE = "rate"
    DISTRIBUTION = "trend"


HTTP_REQS = "http_reqs"
HTTP_REQ_DURATION = "http_req_duration"
HTTP_REQ_FAILED = "http_req_failed"
CHECKS = "checks"
ERRORS = "errors"
ERROR_EVENTS = "error_events"
ITERATIONS = "iterations"
DATA_SENT = "data_sent"
DATA_RECEIVED = "data_received"

METRIC_KINDS: Mapping[str, MetricKind] = {
    HTTP_REQS: MetricKind.COUNTER,
    HTTP_REQ_DURATION: MetricKind.DISTRIBUTION,
    HTTP_REQ_FAILED: MetricKind.RATE,
    CHECKS: MetricKind.RATE,
    ERRORS: MetricKind.RATE,
    ERROR_EVENTS: MetricKind.COUNTER,
    ITERATIONS: MetricKind.COUNTER,
    DATA_SENT: MetricKind.COUNTER,
    DATA_RECEIVED: MetricKind.COUNTER,
}

# Value units, as k6 reports them in the "contains" field.
METRIC_CONTAINS: Mapping[str, str] = {
    HTTP_REQ_DURATION: "time",
    DATA_SENT: "data",
    DATA_RECEIVED: "data",
}

SUMMARY_PERCENTILES = (90.0, 95.0)


@dataclass(frozen=True, slots=True)
class RequestSpec:
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | None = None
    params: Mapping[str, str] | None = None


@dataclass(frozen=True, slots=True)
class HttpExchange:
    """One request and whatever came back for it.

    A transport failure leaves ``status_code`` as ``None`` and sets
    ``error_type``; headers and body are then empty.
    """

    request: RequestSpec
    status_code: int | None
    headers: httpx.Headers
    body: bytes
    elapsed_ms: float
    error_type: ErrorType | None = None
    error_message: str = ""

    @property
    def is_success(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300

    def header(self, name: str) -> str | None:
        return self.headers.get(name)

    def json(self) -> Any:
        # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors.
        return json.loads(self.body)


@dataclass(frozen=True, slots=True)
class CheckResult:
    name: str
    passed: bool


@dataclass(slots=True)
class IterationTally:
    vu_id: int
    iteration: int
    exchanges: int = 0
    failed: bool = False


@dataclass(frozen=True, slots=True)
class RateValue:
    hits: int
    total: int

    @property
    def rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.hits / self.total


@dataclass(frozen=True, slots=True)
class DistributionValue:
    samples: tuple[float, ...]

    @property
    def count(self) -> int:
        return len(self.samples)

    def percentile(self, pct: float) -> float:
        # Linear interpolation between closest ranks, numpy's default.
        if not self.samples:
            return 0.0
        return float(np.percentile(self.samples, pct))

    def avg(self) -> float:
        if not self.samples:
            return 0.0
        return float(np.mean(self.samples))

    def min(self) -> float:
        return min(self.samples) if self.samples else 0.0

    def max(self) -> float:
        return max(self.samples) if self.samples else 0.0

    def med(self) -> float:
        return self.percentile(50.0)


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    duration_sec: float
    counters: Mapping[str, int]
    rates: Mapping[str, RateValue]
    distributions: Mapping[str, DistributionValue]

    def kind_of(self, name: str) -> MetricKind | None:
        if name in self.counters:
            return MetricKind.COUNTER
        if name in self.rates:
            return MetricKind.RATE
        if name in self.distributions:
            return MetricKind.DISTRIBUTION
        return None

    def counter_rate(self, name: str) -> float:
        if self.duration_sec <= 0:
            return 0.0
        return self.counters[name] / self.duration_sec

    def stat(self, name: str, aggregation: str) -> float:
        kind = self.kind_of(name)
        if kind is MetricKind.COUNTER:
            if aggregation == "count":
                return float(self.counters[name])
            if aggregation == "rate":
                return self.counter_rate(name)
        elif kind is MetricKind.RATE:
            if aggregation == "rate":
                return self.rates[name].rate
        elif kind is MetricKind.DISTRIBUTION:
            dist = self.distributions[name]
            if aggregation.startswith("p("):
                return dist.percentile(float(aggregation[2:-1]))
            if aggregation in ("avg", "min", "med", "max"):
                return float(getattr(dist, aggregation)())
        msg = f"Unsupported aggregation {aggregation!r} for metric {name!r}"
        raise ValueError(msg)

    def values(self, name: str) -> dict[str, float]:
        kind = self.kind_of(name)
        if kind is MetricKind.COUNTER:
            return {"count": self.counters[name], "rate": self.counter_rate(name)}
        if kind is MetricKind.RATE:
            value = self.rates[name]
            return {
                "rate": value.rate,
                "passes": value.hits,
                "fails": value.total - value.hits,
            }
        if kind is MetricKind.DISTRIBUTION:
            dist = self.distributions[name]
            values = {
                "avg": dist.avg(),
                "min": dist.min(),
                "med": dist.med(),
                "max": dist.max(),
            }
            for pct in SUMMARY_PERCENTILES:
                values[f"p({pct:g})"] = dist.percentile(pct)
            return values
        msg = f"Unknown metric {name!r}"
        raise KeyError(msg)
