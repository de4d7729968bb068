from __future__ import annotations

from didperf.config import RunConfig, ScenarioType
from didperf.scenarios.base import Scenario
from didperf.scenarios.registrar import RegistrarScenario
from didperf.scenarios.resolve import ResolveScenario


def scenario_for(config: RunConfig) -> Scenario:
    pacing = config.effective_pacing_sec
    if config.scenario is ScenarioType.RESOLVE:
        return ResolveScenario(base_url=config.target.base_url, pacing_sec=pacing)
    if config.scenario is ScenarioType.REGISTRAR:
        return RegistrarScenario(
            base_url=config.target.base_url,
            bearer_token=config.target.bearer_token,
            pacing_sec=pacing,
        )
    msg = f"Unsupported scenario: {config.scenario}"
    raise ValueError(msg)
