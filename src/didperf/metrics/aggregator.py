from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Iterable

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
    METRIC_KINDS,
    CheckResult,
    DistributionValue,
    HttpExchange,
    IterationTally,
    MetricKind,
    MetricsSnapshot,
    RateValue,
)


@dataclass(slots=True)
class _RateTally:
    hits: int = 0
    total: int = 0

    def add(self, hit: bool) -> None:
        self.total += 1
        if hit:
            self.hits += 1


class MetricAggregator:
    """Process-wide metric state shared by every virtual user.

    All mutators take the same lock, so callers never synchronize
    themselves. The ``errors`` rate counts iterations, not checks: a tally
    contributes at most one hit and exactly one total once it has seen an
    exchange.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}
        self._rates: dict[str, _RateTally] = {}
        self._samples: dict[str, list[float]] = {}
        self._finalized = False
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self._counters = {
                name: 0 for name, kind in METRIC_KINDS.items() if kind is MetricKind.COUNTER
            }
            self._rates = {
                name: _RateTally() for name, kind in METRIC_KINDS.items() if kind is MetricKind.RATE
            }
            self._samples = {
                name: []
                for name, kind in METRIC_KINDS.items()
                if kind is MetricKind.DISTRIBUTION
            }
            self._finalized = False

    def begin_iteration(self, vu_id: int, iteration: int) -> IterationTally:
        return IterationTally(vu_id=vu_id, iteration=iteration)

    def record_request_completion(self, failed: bool = False) -> None:
        with self._lock:
            self._ensure_open()
            self._count_request(failed)

    def record_duration(self, exchange: HttpExchange, tally: IterationTally | None = None) -> None:
        with self._lock:
            self._ensure_open()
            self._sample_exchange(exchange, tally)

    def record_exchange(
        self,
        exchange: HttpExchange,
        failed: bool,
        tally: IterationTally | None = None,
    ) -> None:
        """Count and sample one exchange atomically, so ``http_reqs`` always matches the samples."""
        with self._lock:
            self._ensure_open()
            self._count_request(failed)
            self._sample_exchange(exchange, tally)

    def record_checks(self, results: Iterable[CheckResult]) -> None:
        with self._lock:
            self._ensure_open()
            for result in results:
                self._rates[CHECKS].add(result.passed)

    def record_check_outcome(self, tally: IterationTally, passed: bool) -> None:
        if passed:
            return
        with self._lock:
            self._ensure_open()
            self._counters[ERROR_EVENTS] += 1
            if not tally.failed:
                tally.failed = True
                self._rates[ERRORS].hits += 1

    def end_iteration(self, tally: IterationTally) -> None:
        with self._lock:
            self._ensure_open()
            self._counters[ITERATIONS] += 1
            if tally.exchanges > 0:
                self._rates[ERRORS].total += 1

    def snapshot(self, duration_sec: float) -> MetricsSnapshot:
        with self._lock:
            return self._snapshot(duration_sec)

    def finalize(self, duration_sec: float) -> MetricsSnapshot:
        with self._lock:
            self._finalized = True
            return self._snapshot(duration_sec)

    def _snapshot(self, duration_sec: float) -> MetricsSnapshot:
        return MetricsSnapshot(
            duration_sec=duration_sec,
            counters=dict(self._counters),
            rates={name: RateValue(t.hits, t.total) for name, t in self._rates.items()},
            distributions={
                name: DistributionValue(tuple(sorted(samples)))
                for name, samples in self._samples.items()
            },
        )

    def _count_request(self, failed: bool) -> None:
        self._counters[HTTP_REQS] += 1
        self._rates[HTTP_REQ_FAILED].add(failed)

    def _sample_exchange(self, exchange: HttpExchange, tally: IterationTally | None) -> None:
        self._samples[HTTP_REQ_DURATION].append(exchange.elapsed_ms)
        self._counters[DATA_SENT] += len(exchange.request.body or b"")
        self._counters[DATA_RECEIVED] += len(exchange.body)
        if tally is not None:
            tally.exchanges += 1

    def _ensure_open(self) -> None:
        if self._finalized:
            msg = "Aggregator is finalized; call reset() before recording a new run"
            raise RuntimeError(msg)
