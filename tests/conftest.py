from __future__ import annotations

import asyncio
import json
import random
from typing import Any, Callable

import httpx
import pytest

from didperf.loadgen.client import HttpSession
from didperf.loadgen.limiter import RateLimiter
from didperf.metrics import (
    METRIC_KINDS,
    DistributionValue,
    ErrorType,
    HttpExchange,
    MetricAggregator,
    MetricKind,
    MetricsSnapshot,
    RateValue,
    RequestSpec,
)
from didperf.scenarios import IterationContext, IterationOutcome, Scenario

Handler = Callable[[httpx.Request], httpx.Response]


def make_exchange(
    status: int | None = 200,
    body: Any = b"",
    headers: dict[str, str] | None = None,
    elapsed_ms: float = 10.0,
    error_type: ErrorType | None = None,
) -> HttpExchange:
    if not isinstance(body, bytes):
        body = json.dumps(body).encode()
    return HttpExchange(
        request=RequestSpec(method="GET", url="http://svc.test/resolve"),
        status_code=status,
        headers=httpx.Headers(headers or {}),
        body=body,
        elapsed_ms=elapsed_ms,
        error_type=error_type,
    )


def make_snapshot(
    samples: tuple[float, ...] = (),
    errors: tuple[int, int] = (0, 0),
    failed: tuple[int, int] = (0, 0),
    requests: int = 0,
    duration_sec: float = 10.0,
) -> MetricsSnapshot:
    counters = {name: 0 for name, kind in METRIC_KINDS.items() if kind is MetricKind.COUNTER}
    counters["http_reqs"] = requests
    rates = {name: RateValue(0, 0) for name, kind in METRIC_KINDS.items() if kind is MetricKind.RATE}
    rates["errors"] = RateValue(*errors)
    rates["http_req_failed"] = RateValue(*failed)
    return MetricsSnapshot(
        duration_sec=duration_sec,
        counters=counters,
        rates=rates,
        distributions={"http_req_duration": DistributionValue(tuple(sorted(samples)))},
    )


def json_response(status: int, payload: Any, content_type: str = "application/json") -> httpx.Response:
    content = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    return httpx.Response(status, content=content, headers={"Content-Type": content_type})


@pytest.fixture
def run_one() -> Callable[..., tuple[IterationOutcome, MetricAggregator]]:
    """Run a single scenario iteration against an in-process handler."""

    def _run(
        scenario: Scenario,
        handler: Handler,
        vu_id: int = 1,
        iteration: int = 1,
        aggregator: MetricAggregator | None = None,
    ) -> tuple[IterationOutcome, MetricAggregator]:
        agg = aggregator or MetricAggregator()

        async def go() -> IterationOutcome:
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                session = HttpSession(client, RateLimiter(0), agg, scenario.expects_status)
                ctx = IterationContext(
                    vu_id=vu_id,
                    iteration=iteration,
                    rng=random.Random(0),
                    http=session,
                    aggregator=agg,
                )
                return await scenario.run_iteration(ctx)

        return asyncio.run(go()), agg

    return _run
