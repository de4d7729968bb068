from __future__ import annotations

from didperf.config.env import parse_duration, run_config_from_env
from didperf.config.models import (
    DEFAULT_DURATION_SEC,
    DEFAULT_SUMMARY_DIR,
    DEFAULT_TIMEOUT_SEC,
    SCENARIO_DEFAULTS,
    ConfigError,
    RunConfig,
    ScenarioDefaults,
    ScenarioType,
    TargetConfig,
    default_thresholds,
    validate_base_url,
)

__all__ = [
    "DEFAULT_DURATION_SEC",
    "DEFAULT_SUMMARY_DIR",
    "DEFAULT_TIMEOUT_SEC",
    "SCENARIO_DEFAULTS",
    "ConfigError",
    "RunConfig",
    "ScenarioDefaults",
    "ScenarioType",
    "TargetConfig",
    "default_thresholds",
    "parse_duration",
    "run_config_from_env",
    "validate_base_url",
]
