from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from didperf.metrics import HttpExchange, IterationTally, RequestSpec
from didperf.scenarios.base import IterationContext, IterationOutcome, StepResult, validated_step
from didperf.validation import Check, DeactivationResult, RegistrationResult, faster_than, status_in

DID_CONTEXT = "https://www.w3.org/ns/did/v1"
VERIFICATION_KEY_TYPE = "Ed25519VerificationKey2020"
TEST_PUBLIC_KEY = "z6MkhaXgBZDvotDkL5257faiztiGiC2QtKLGpbnnEGta2doK"


class Step(str, Enum):
    PROBING = "probing"
    CREATING = "creating"
    DEACTIVATING = "deactivating"
    DONE = "done"


def synthetic_did(iteration: int, vu_id: int, prefix: str = "perf-test") -> str:
    return f"did:acc:{prefix}-{iteration}-{vu_id}"


def did_document(did: str) -> dict[str, Any]:
    key_id = f"{did}#key-1"
    return {
        "@context": [DID_CONTEXT],
        "id": did,
        "verificationMethod": [
            {
                "id": key_id,
                "type": VERIFICATION_KEY_TYPE,
                "controller": did,
                "publicKeyMultibase": TEST_PUBLIC_KEY,
            }
        ],
        "authentication": [key_id],
    }


def _has_transaction_info(exchange: HttpExchange) -> bool:
    if not exchange.is_success:
        # Error bodies are not required to carry transaction info.
        return True
    return RegistrationResult.from_json(exchange.json()).has_transaction_info


def _has_tombstone_info(exchange: HttpExchange) -> bool:
    if exchange.status_code != 200:
        return True
    return DeactivationResult.from_json(exchange.json()).is_deactivated


HEALTH_CHECKS: tuple[Check, ...] = (
    ("health check status is 200", status_in(200)),
    ("health check response time < 100ms", faster_than(100)),
)

CREATE_CHECKS: tuple[Check, ...] = (
    ("create status is 200 or 201", status_in(200, 201)),
    ("create response time < 2s", faster_than(2000)),
    ("create response has transaction info", _has_transaction_info),
)

DEACTIVATE_CHECKS: tuple[Check, ...] = (
    ("deactivate status is 200", status_in(200)),
    ("deactivate response time < 2s", faster_than(2000)),
    ("deactivate response has tombstone info", _has_tombstone_info),
)


@dataclass(frozen=True, slots=True)
class RegistrarScenario:
    """Health probe, then create a DID, then deactivate it.

    Each iteration walks ``PROBING -> CREATING -> DEACTIVATING -> DONE``. A
    failed probe ends the iteration before anything is written; a create
    that does not return 2xx skips the deactivation.
    """

    base_url: str
    bearer_token: str = ""
    did_prefix: str = "perf-test"
    pacing_sec: float = 2.0
    name: str = "registrar"

    def expects_status(self, status: int) -> bool:
        return 200 <= status < 400

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{path}"

    def _json_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.bearer_token:
            headers["Authorization"] = f"Bearer {self.bearer_token}"
        return headers

    def health_request(self) -> RequestSpec:
        return RequestSpec(method="GET", url=self._url("/healthz"))

    def create_request(self, did: str) -> RequestSpec:
        payload = {"didDocument": did_document(did)}
        return RequestSpec(
            method="POST",
            url=self._url("/register"),
            headers=self._json_headers(),
            body=json.dumps(payload).encode(),
        )

    def deactivate_request(self, did: str) -> RequestSpec:
        payload = {"did": did, "deactivate": True}
        return RequestSpec(
            method="POST",
            url=self._url("/native/deactivate"),
            headers=self._json_headers(),
            body=json.dumps(payload).encode(),
        )

    async def run_iteration(self, ctx: IterationContext) -> IterationOutcome:
        tally = ctx.aggregator.begin_iteration(ctx.vu_id, ctx.iteration)
        did = synthetic_did(ctx.iteration, ctx.vu_id, self.did_prefix)
        steps: list[StepResult] = []
        state = Step.PROBING
        while state is not Step.DONE:
            state = await self._advance(state, ctx, tally, did, steps)
        ctx.aggregator.end_iteration(tally)
        return IterationOutcome(
            vu_id=ctx.vu_id,
            iteration=ctx.iteration,
            steps=tuple(steps),
            failed=tally.failed,
        )

    async def _advance(
        self,
        state: Step,
        ctx: IterationContext,
        tally: IterationTally,
        did: str,
        steps: list[StepResult],
    ) -> Step:
        if state is Step.PROBING:
            result = await validated_step(ctx, tally, "health", self.health_request(), HEALTH_CHECKS)
            steps.append(result)
            return Step.CREATING if result.passed else Step.DONE
        if state is Step.CREATING:
            result = await validated_step(ctx, tally, "create", self.create_request(did), CREATE_CHECKS)
            steps.append(result)
            return Step.DEACTIVATING if result.exchange.is_success else Step.DONE
        if state is Step.DEACTIVATING:
            result = await validated_step(
                ctx, tally, "deactivate", self.deactivate_request(did), DEACTIVATE_CHECKS
            )
            steps.append(result)
            return Step.DONE
        msg = f"No transition out of {state}"
        raise ValueError(msg)
