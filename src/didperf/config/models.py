from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import httpx

from didperf.metrics.models import ERRORS
from didperf.thresholds.models import Threshold, parse_thresholds


class ConfigError(ValueError):
    pass


class ScenarioType(str, Enum):
    RESOLVE = "resolve"
    REGISTRAR = "registrar"


@dataclass(frozen=True, slots=True)
class ScenarioDefaults:
    title: str
    url_env: str
    base_url: str
    vus: int
    rps: float
    pacing_sec: float
    thresholds: Mapping[str, list[str]]
    summary_file: str


SCENARIO_DEFAULTS: Mapping[ScenarioType, ScenarioDefaults] = {
    ScenarioType.RESOLVE: ScenarioDefaults(
        title="Resolve Performance Summary",
        url_env="RESOLVER_URL",
        base_url="http://127.0.0.1:8080",
        vus=10,
        rps=100.0,
        pacing_sec=1.0,
        thresholds={
            "http_req_duration": ["p(95)<500"],
            "http_req_failed": ["rate<0.1"],
            "errors": ["rate<0.1"],
        },
        summary_file="resolve-smoke-results.json",
    ),
    ScenarioType.REGISTRAR: ScenarioDefaults(
        title="Registrar Performance Summary",
        url_env="REGISTRAR_URL",
        base_url="http://127.0.0.1:8081",
        vus=5,
        rps=10.0,
        pacing_sec=2.0,
        thresholds={
            "http_req_duration": ["p(95)<2000"],
            "http_req_failed": ["rate<0.2"],
            "errors": ["rate<0.2"],
        },
        summary_file="registrar-smoke-results.json",
    ),
}

DEFAULT_DURATION_SEC = 60.0
DEFAULT_TIMEOUT_SEC = 60.0
DEFAULT_SUMMARY_DIR = Path("perf")


@dataclass(frozen=True, slots=True)
class TargetConfig:
    base_url: str
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    bearer_token: str = ""

    def __post_init__(self) -> None:
        validate_base_url(self.base_url)
        if self.timeout_sec <= 0:
            msg = f"Request timeout must be positive, got {self.timeout_sec}"
            raise ConfigError(msg)

    @property
    def auth_headers(self) -> Mapping[str, str]:
        if not self.bearer_token:
            return {}
        return {"Authorization": f"Bearer {self.bearer_token}"}


@dataclass(frozen=True, slots=True)
class RunConfig:
    scenario: ScenarioType
    target: TargetConfig
    duration_sec: float = DEFAULT_DURATION_SEC
    vus: int = 1
    rps: float = 0.0
    thresholds: tuple[Threshold, ...] = ()
    pacing_sec: float | None = None
    seed: int | None = None
    summary_path: Path | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.duration_sec <= 0:
            msg = f"Duration must be positive, got {self.duration_sec}s"
            raise ConfigError(msg)
        if self.vus < 1:
            msg = f"VU count must be at least 1, got {self.vus}"
            raise ConfigError(msg)
        if self.rps < 0:
            msg = f"Request rate ceiling cannot be negative, got {self.rps}"
            raise ConfigError(msg)
        if self.pacing_sec is not None and self.pacing_sec < 0:
            msg = f"Pacing cannot be negative, got {self.pacing_sec}s"
            raise ConfigError(msg)

    @property
    def defaults(self) -> ScenarioDefaults:
        return SCENARIO_DEFAULTS[self.scenario]

    @property
    def effective_pacing_sec(self) -> float:
        if self.pacing_sec is None:
            return self.defaults.pacing_sec
        return self.pacing_sec

    @property
    def error_rate_ceiling(self) -> float | None:
        """Upper bound declared for the ``errors`` rate, if any."""
        for threshold in self.thresholds:
            if threshold.metric == ERRORS and threshold.aggregation == "rate":
                if threshold.operator in ("<", "<="):
                    return threshold.value
        return None

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "scenario": self.scenario.value,
            "created_at": self.created_at.isoformat(),
            "duration_sec": self.duration_sec,
            "vus": self.vus,
            "rps": self.rps,
            "pacing_sec": self.effective_pacing_sec,
            "seed": self.seed,
            "target": {
                "base_url": self.target.base_url,
                "timeout_sec": self.target.timeout_sec,
                "bearer_token": "***" if self.target.bearer_token else "",
            },
            "thresholds": {
                metric: [t.expression for t in self.thresholds if t.metric == metric]
                for metric in dict.fromkeys(t.metric for t in self.thresholds)
            },
        }


def default_thresholds(scenario: ScenarioType) -> tuple[Threshold, ...]:
    return parse_thresholds(SCENARIO_DEFAULTS[scenario].thresholds)


def validate_base_url(base_url: str) -> None:
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as exc:
        msg = f"Invalid base URL {base_url!r}: {exc}"
        raise ConfigError(msg) from exc
    if url.scheme not in ("http", "https") or not url.host:
        msg = f"Base URL must be an absolute http(s) URL, got {base_url!r}"
        raise ConfigError(msg)
