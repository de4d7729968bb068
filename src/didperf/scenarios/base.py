from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol

from didperf.loadgen.client import HttpSession
from didperf.metrics import CheckResult, HttpExchange, IterationTally, MetricAggregator, RequestSpec
from didperf.validation import Check, all_passed, run_checks


CheckSelector = Callable[[HttpExchange], Iterable[Check]]


@dataclass(frozen=True, slots=True)
class IterationContext:
    vu_id: int
    iteration: int
    rng: random.Random
    http: HttpSession
    aggregator: MetricAggregator


@dataclass(frozen=True, slots=True)
class StepResult:
    step: str
    exchange: HttpExchange
    checks: tuple[CheckResult, ...]

    @property
    def passed(self) -> bool:
        return all_passed(self.checks)


@dataclass(frozen=True, slots=True)
class IterationOutcome:
    vu_id: int
    iteration: int
    steps: tuple[StepResult, ...]
    failed: bool

    @property
    def step_names(self) -> tuple[str, ...]:
        return tuple(step.step for step in self.steps)

    @property
    def checks(self) -> tuple[CheckResult, ...]:
        return tuple(check for step in self.steps for check in step.checks)


class Scenario(Protocol):
    name: str
    pacing_sec: float

    def expects_status(self, status: int) -> bool:
        ...

    async def run_iteration(self, ctx: IterationContext) -> IterationOutcome:
        ...


async def validated_step(
    ctx: IterationContext,
    tally: IterationTally,
    step: str,
    request: RequestSpec,
    checks: Iterable[Check] | CheckSelector,
) -> StepResult:
    """Issue one request, check it and feed the outcome to the aggregator.

    ``checks`` may be a callable that picks the checks once the response is
    known. The checks form one group: however many fail, the group reports
    a single failed outcome.
    """
    exchange = await ctx.http.request(request, tally)
    if callable(checks):
        checks = checks(exchange)
    results = tuple(run_checks(exchange, checks))
    ctx.aggregator.record_checks(results)
    ctx.aggregator.record_check_outcome(tally, all_passed(results))
    return StepResult(step=step, exchange=exchange, checks=results)
