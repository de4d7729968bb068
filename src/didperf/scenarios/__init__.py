from __future__ import annotations

from didperf.scenarios.base import (
    IterationContext,
    IterationOutcome,
    Scenario,
    StepResult,
    validated_step,
)
from didperf.scenarios.factory import scenario_for
from didperf.scenarios.registrar import RegistrarScenario, Step, did_document, synthetic_did
from didperf.scenarios.resolve import DEFAULT_TEST_DIDS, ResolveScenario, resolve_checks

__all__ = [
    "DEFAULT_TEST_DIDS",
    "IterationContext",
    "IterationOutcome",
    "RegistrarScenario",
    "ResolveScenario",
    "Scenario",
    "Step",
    "StepResult",
    "did_document",
    "resolve_checks",
    "scenario_for",
    "synthetic_did",
    "validated_step",
]
