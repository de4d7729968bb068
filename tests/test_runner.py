from __future__ import annotations

import asyncio

import httpx

from conftest import json_response
from didperf.config import RunConfig, ScenarioType, TargetConfig, default_thresholds
from didperf.loadgen.limiter import RateLimiter
from didperf.loadgen.runner import _vu_rng, run_scenario
from didperf.metrics import MetricAggregator
from didperf.scenarios import DEFAULT_TEST_DIDS, ResolveScenario

BASE_URL = "http://resolver.test"


def _config(**overrides) -> RunConfig:
    values = {
        "scenario": ScenarioType.RESOLVE,
        "target": TargetConfig(base_url=BASE_URL),
        "duration_sec": 0.3,
        "vus": 3,
        "pacing_sec": 0.02,
        "thresholds": default_thresholds(ScenarioType.RESOLVE),
        "seed": 11,
    }
    values.update(overrides)
    return RunConfig(**values)


def _resolver(request: httpx.Request) -> httpx.Response:
    did = request.url.params["did"]
    if did == "did:acc:bob":
        return json_response(404, {"error": "notFound"})
    return json_response(200, {"didDocument": {"id": did}})


def test_every_vu_runs_until_the_deadline() -> None:
    result = asyncio.run(run_scenario(_config(), transport=httpx.MockTransport(_resolver)))

    assert sorted(result.iterations_per_vu) == [1, 2, 3]
    assert all(count >= 2 for count in result.iterations_per_vu.values())
    snapshot = result.snapshot
    total = sum(result.iterations_per_vu.values())
    assert snapshot.counters["iterations"] == total
    assert snapshot.counters["http_reqs"] == total
    assert snapshot.rates["errors"].total == total
    assert snapshot.rates["errors"].hits == 0
    assert snapshot.rates["http_req_failed"].hits == 0
    assert snapshot.duration_sec >= 0.3


def test_in_flight_iterations_drain() -> None:
    async def slow(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.2)
        return _resolver(request)

    config = _config(duration_sec=0.05, vus=4, pacing_sec=1.0)
    result = asyncio.run(run_scenario(config, transport=httpx.MockTransport(slow)))

    assert result.iterations_per_vu == {1: 1, 2: 1, 3: 1, 4: 1}
    assert result.snapshot.counters["http_reqs"] == 4
    assert result.snapshot.distributions["http_req_duration"].min() >= 150.0


def test_rate_ceiling_throttles_requests() -> None:
    config = _config(duration_sec=0.5, vus=3, pacing_sec=0.0, rps=20.0)
    result = asyncio.run(run_scenario(config, transport=httpx.MockTransport(_resolver)))

    requests = result.snapshot.counters["http_reqs"]
    assert 0 < requests <= 0.5 * 20 + config.vus + 1


def test_aggregator_is_reset_and_finalized() -> None:
    aggregator = MetricAggregator()
    aggregator.record_request_completion(failed=True)
    config = _config(duration_sec=0.1, vus=1)
    result = asyncio.run(
        run_scenario(
            config,
            ResolveScenario(BASE_URL),
            aggregator,
            transport=httpx.MockTransport(_resolver),
        )
    )
    assert result.snapshot.rates["http_req_failed"].hits == 0
    assert aggregator.snapshot(0.1).counters["http_reqs"] == result.snapshot.counters["http_reqs"]


def test_iteration_callback_sees_every_outcome() -> None:
    seen = []

    async def record(outcome) -> None:
        seen.append((outcome.vu_id, outcome.iteration))

    result = asyncio.run(
        run_scenario(
            _config(duration_sec=0.1, vus=2),
            transport=httpx.MockTransport(_resolver),
            on_iteration=record,
        )
    )
    assert len(seen) == sum(result.iterations_per_vu.values())
    assert {vu for vu, _ in seen} == {1, 2}


def test_vu_random_streams_are_reproducible() -> None:
    first = [_vu_rng(5, 1).choice(DEFAULT_TEST_DIDS) for _ in range(3)]
    again = [_vu_rng(5, 1).choice(DEFAULT_TEST_DIDS) for _ in range(3)]
    assert first == again


def test_limiter_spaces_concurrent_callers() -> None:
    async def go() -> list[float]:
        limiter = RateLimiter(10.0)
        return list(await asyncio.gather(*(limiter.acquire() for _ in range(5))))

    delays = sorted(asyncio.run(go()))
    assert delays[0] == 0.0
    assert delays[-1] >= 0.35


def test_limiter_disabled_at_zero() -> None:
    async def go() -> list[float]:
        limiter = RateLimiter(0)
        return [await limiter.acquire() for _ in range(100)]

    assert asyncio.run(go()) == [0.0] * 100
