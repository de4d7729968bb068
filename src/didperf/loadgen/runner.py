from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx

from didperf.config import RunConfig
from didperf.loadgen.client import HttpSession
from didperf.loadgen.limiter import RateLimiter
from didperf.metrics import HTTP_REQS, MetricAggregator, MetricsSnapshot
from didperf.scenarios import IterationContext, IterationOutcome, Scenario, scenario_for

logger = logging.getLogger(__name__)

IterationCallback = Callable[[IterationOutcome], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RunResult:
    snapshot: MetricsSnapshot
    iterations_per_vu: dict[int, int]


def _vu_rng(seed: int | None, vu_id: int) -> random.Random:
    if seed is None:
        return random.Random()
    return random.Random(f"{seed}-{vu_id}")


async def run_scenario(
    config: RunConfig,
    scenario: Scenario | None = None,
    aggregator: MetricAggregator | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    on_iteration: IterationCallback | None = None,
) -> RunResult:
    """Run ``config.vus`` virtual users against the scenario for the configured duration.

    Each VU runs whole iterations back to back, sleeping the pacing interval in
    between. Once the duration has elapsed no new iteration starts; the ones
    in flight finish before the aggregator is finalized.
    """
    scenario = scenario or scenario_for(config)
    aggregator = aggregator or MetricAggregator()
    aggregator.reset()
    limiter = RateLimiter(config.rps)
    pacing = scenario.pacing_sec if config.pacing_sec is None else config.pacing_sec
    iterations: dict[int, int] = {}

    logger.info(
        "Starting %s run: %d VUs for %.1fs against %s (rps ceiling %s)",
        scenario.name,
        config.vus,
        config.duration_sec,
        config.target.base_url,
        config.rps or "off",
    )
    started_mono = time.perf_counter()
    stop_at = started_mono + config.duration_sec

    async with httpx.AsyncClient(transport=transport, timeout=config.target.timeout_sec) as client:
        session = HttpSession(client, limiter, aggregator, scenario.expects_status)

        async def worker(vu_id: int) -> None:
            rng = _vu_rng(config.seed, vu_id)
            iteration = 0
            while time.perf_counter() < stop_at:
                iteration += 1
                ctx = IterationContext(
                    vu_id=vu_id,
                    iteration=iteration,
                    rng=rng,
                    http=session,
                    aggregator=aggregator,
                )
                outcome = await scenario.run_iteration(ctx)
                if on_iteration:
                    await on_iteration(outcome)
                await _sleep_until_time(min(time.perf_counter() + pacing, stop_at))
            iterations[vu_id] = iteration

        tasks = [asyncio.create_task(worker(vu_id)) for vu_id in range(1, config.vus + 1)]
        await asyncio.gather(*tasks)

    elapsed = time.perf_counter() - started_mono
    snapshot = aggregator.finalize(elapsed)
    logger.info(
        "Finished %s run after %.1fs: %d iterations, %d requests",
        scenario.name,
        elapsed,
        sum(iterations.values()),
        snapshot.counters[HTTP_REQS],
    )
    return RunResult(snapshot=snapshot, iterations_per_vu=iterations)


async def _sleep_until_time(target: float) -> None:
    # Sleeps even for a zero delay: every VU yields once per iteration.
    await asyncio.sleep(max(0.0, target - time.perf_counter()))
