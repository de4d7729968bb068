from __future__ import annotations

from dataclasses import dataclass

from didperf.metrics import HttpExchange, RequestSpec
from didperf.scenarios.base import IterationContext, IterationOutcome, validated_step
from didperf.validation import (
    Check,
    ResolutionResult,
    Tombstone,
    faster_than,
    has_header,
    header_contains,
    status_in,
)

DEFAULT_TEST_DIDS: tuple[str, ...] = (
    "did:acc:alice",
    "did:acc:bob",
    "did:acc:company.example",
    "did:acc:test.user",
    "did:acc:beastmode.acme",
)

DID_JSON = "application/did+json"


def _is_tombstone(exchange: HttpExchange) -> bool:
    return Tombstone.from_json(exchange.json()).is_deactivated


def _is_resolution(exchange: HttpExchange) -> bool:
    return ResolutionResult.from_json(exchange.json()).is_valid


def resolve_checks(exchange: HttpExchange) -> list[Check]:
    checks: list[Check] = [
        ("status is 200, 404 or 410", status_in(200, 404, 410)),
        ("response time < 500ms", faster_than(500)),
        ("has content-type header", has_header("Content-Type")),
    ]
    if exchange.status_code == 410:
        checks.append(
            ("deactivated response has proper content-type", header_contains("Content-Type", "application/json"))
        )
        checks.append(("deactivated response has error field", _is_tombstone))
    elif exchange.status_code == 200:
        checks.append(("valid DID resolution result", _is_resolution))
    return checks


@dataclass(frozen=True, slots=True)
class ResolveScenario:
    base_url: str
    dids: tuple[str, ...] = DEFAULT_TEST_DIDS
    pacing_sec: float = 1.0
    name: str = "resolve"

    def __post_init__(self) -> None:
        if not self.dids:
            msg = "ResolveScenario needs at least one DID to resolve"
            raise ValueError(msg)

    def expects_status(self, status: int) -> bool:
        # Unknown and deactivated DIDs are answered, not failed.
        return 200 <= status < 400 or status in (404, 410)

    def request_for(self, did: str) -> RequestSpec:
        return RequestSpec(
            method="GET",
            url=f"{self.base_url.rstrip('/')}/resolve",
            headers={"Accept": DID_JSON},
            params={"did": did},
        )

    async def run_iteration(self, ctx: IterationContext) -> IterationOutcome:
        tally = ctx.aggregator.begin_iteration(ctx.vu_id, ctx.iteration)
        did = ctx.rng.choice(self.dids)
        step = await validated_step(ctx, tally, "resolve", self.request_for(did), resolve_checks)
        ctx.aggregator.end_iteration(tally)
        return IterationOutcome(
            vu_id=ctx.vu_id,
            iteration=ctx.iteration,
            steps=(step,),
            failed=tally.failed,
        )
