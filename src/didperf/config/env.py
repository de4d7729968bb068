from __future__ import annotations

import math
import os
import re
from pathlib import Path
from typing import Any, Mapping

from didperf.config.models import (
    DEFAULT_DURATION_SEC,
    DEFAULT_SUMMARY_DIR,
    DEFAULT_TIMEOUT_SEC,
    SCENARIO_DEFAULTS,
    ConfigError,
    RunConfig,
    ScenarioType,
    TargetConfig,
    default_thresholds,
)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str) -> float:
    """Parse a k6 duration string (``60s``, ``1m30s``, ``500ms``) into seconds.

    A bare number is taken as seconds.
    """
    text = value.strip()
    if not text:
        msg = "Duration is empty"
        raise ConfigError(msg)
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            msg = f"Malformed duration {value!r}"
            raise ConfigError(msg)
        return seconds
    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()
    if position != len(text):
        msg = f"Malformed duration {value!r}"
        raise ConfigError(msg)
    return total


def _env(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(name, "").strip()
    return value or None


def _int_env(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = _env(environ, name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        msg = f"{name} must be an integer, got {raw!r}"
        raise ConfigError(msg) from exc


def _float_env(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = _env(environ, name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        msg = f"{name} must be a number, got {raw!r}"
        raise ConfigError(msg) from exc


def run_config_from_env(
    scenario: ScenarioType,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> RunConfig:
    """Build the run configuration for ``scenario``.

    Scenario defaults are overridden by environment variables, which are in
    turn overridden by explicit keyword arguments whose value is not None.
    """
    env = os.environ if environ is None else environ
    defaults = SCENARIO_DEFAULTS[scenario]
    overrides = {key: value for key, value in overrides.items() if value is not None}

    duration_raw = _env(env, "DURATION")
    duration_sec = parse_duration(duration_raw) if duration_raw else DEFAULT_DURATION_SEC
    summary_dir = Path(_env(env, "SUMMARY_DIR") or DEFAULT_SUMMARY_DIR)

    target = TargetConfig(
        base_url=overrides.pop("base_url", None) or _env(env, defaults.url_env) or defaults.base_url,
        timeout_sec=overrides.pop("timeout_sec", DEFAULT_TIMEOUT_SEC),
        bearer_token=overrides.pop("bearer_token", None) or _env(env, "API_KEY") or "",
    )
    if "summary_dir" in overrides:
        summary_dir = Path(overrides.pop("summary_dir"))

    values: dict[str, Any] = {
        "duration_sec": duration_sec,
        "vus": _int_env(env, "VUS", defaults.vus),
        "rps": _float_env(env, "RPS", defaults.rps),
        "thresholds": default_thresholds(scenario),
        "summary_path": summary_dir / defaults.summary_file,
    }
    values.update(overrides)
    return RunConfig(scenario=scenario, target=target, **values)
