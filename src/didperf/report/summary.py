from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from rich.console import Console
from rich.text import Text

from didperf.config import RunConfig
from didperf.metrics import (
    ERRORS,
    HTTP_REQ_DURATION,
    HTTP_REQ_FAILED,
    HTTP_REQS,
    METRIC_CONTAINS,
    METRIC_KINDS,
    MetricsSnapshot,
)
from didperf.thresholds import ThresholdResult, all_passed, evaluate_thresholds

logger = logging.getLogger(__name__)

BANNER_STYLE = "bold cyan"
PASS_STYLE = "bold green"
FAIL_STYLE = "bold red"


@dataclass(frozen=True, slots=True)
class SummaryReport:
    scenario: str
    title: str
    options: Mapping[str, Any]
    snapshot: MetricsSnapshot
    thresholds: tuple[ThresholdResult, ...]
    error_rate_ceiling: float | None = None

    @property
    def passed(self) -> bool:
        return all_passed(self.thresholds)

    def to_dict(self) -> dict[str, Any]:
        metrics: dict[str, Any] = {}
        for name, kind in METRIC_KINDS.items():
            entry: dict[str, Any] = {
                "type": kind.value,
                "contains": METRIC_CONTAINS.get(name, "default"),
                "values": self.snapshot.values(name),
            }
            declared = [r for r in self.thresholds if r.threshold.metric == name]
            if declared:
                entry["thresholds"] = {
                    r.threshold.expression: {"ok": r.ok, "observed": r.observed} for r in declared
                }
            metrics[name] = entry
        return {
            "scenario": self.scenario,
            "passed": self.passed,
            "state": {"testRunDurationMs": self.snapshot.duration_sec * 1000.0},
            "options": dict(self.options),
            "metrics": metrics,
        }


def build_summary(config: RunConfig, snapshot: MetricsSnapshot) -> SummaryReport:
    return SummaryReport(
        scenario=config.scenario.value,
        title=config.defaults.title,
        options=config.to_metadata(),
        snapshot=snapshot,
        thresholds=evaluate_thresholds(snapshot, config.thresholds),
        error_rate_ceiling=config.error_rate_ceiling,
    )


def render_json(report: SummaryReport) -> str:
    return json.dumps(report.to_dict(), indent=2)


def render_text(report: SummaryReport, indent: str = "  ", enable_colors: bool = True) -> Text:
    """Human-readable run summary; the error rate is red above its ceiling."""

    def styled(content: str, style: str) -> Text:
        return Text(content, style=style if enable_colors else "")

    snapshot = report.snapshot
    banner = f"=== {report.title} ==="
    out = Text("\n")
    out.append(indent)
    out.append_text(styled(banner, BANNER_STYLE))
    out.append("\n")

    lines = [
        f"Duration: {round(snapshot.duration_sec)}s",
        f"VUs: {report.options.get('vus', '-')}",
        f"Total Requests: {snapshot.counters[HTTP_REQS]}",
        f"Request Rate: {round(snapshot.counter_rate(HTTP_REQS), 2)}/s",
    ]
    duration = snapshot.distributions[HTTP_REQ_DURATION]
    lines.append(
        f"Response Time - avg: {round(duration.avg())}ms, p95: {round(duration.percentile(95))}ms"
    )
    for line in lines:
        out.append(f"{indent}{line}\n")

    error_pct = round(snapshot.rates[ERRORS].rate * 100, 2)
    ceiling = report.error_rate_ceiling
    over = ceiling is not None and snapshot.rates[ERRORS].rate > ceiling
    out.append(indent)
    out.append_text(styled(f"Error Rate: {error_pct}%", FAIL_STYLE if over else PASS_STYLE))
    out.append("\n")
    failed_pct = round(snapshot.rates[HTTP_REQ_FAILED].rate * 100, 2)
    out.append(f"{indent}Failed Requests: {failed_pct}%\n")

    if report.thresholds:
        out.append(f"{indent}Thresholds:\n")
        for result in report.thresholds:
            mark = styled("✓" if result.ok else "✗", PASS_STYLE if result.ok else FAIL_STYLE)
            out.append(f"{indent}{indent}")
            out.append_text(mark)
            out.append(f" {result.threshold} (observed {result.observed:.4g})\n")

    out.append(indent)
    out.append_text(styled("=" * len(banner), BANNER_STYLE))
    out.append("\n")
    return out


def write_summary(
    report: SummaryReport,
    console: Console | None = None,
    json_path: Path | None = None,
    enable_colors: bool = True,
) -> bool:
    """Send the text summary to ``console`` and the JSON summary to ``json_path``.

    Returns False when a sink could not be written; the report itself is
    unaffected.
    """
    ok = True
    console = console or Console(highlight=False, no_color=not enable_colors)
    try:
        console.print(render_text(report, enable_colors=enable_colors), end="")
    except OSError as exc:
        logger.error("Could not write text summary: %s", exc)
        ok = False
    if json_path is not None:
        try:
            json_path.parent.mkdir(parents=True, exist_ok=True)
            json_path.write_text(render_json(report) + "\n", encoding="utf-8")
        except OSError as exc:
            logger.error("Could not write JSON summary to %s: %s", json_path, exc)
            ok = False
        else:
            logger.info("Wrote JSON summary to %s", json_path)
    return ok
