from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.markup import escape

from didperf.config import ConfigError, RunConfig, ScenarioType, parse_duration, run_config_from_env
from didperf.loadgen.runner import run_scenario
from didperf.report import build_summary, write_summary
from didperf.thresholds import ThresholdError

EXIT_PASS = 0
EXIT_THRESHOLD_BREACH = 1
EXIT_CONFIG_ERROR = 2

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Performance smoke test for the DID resolver and registrar",
        epilog="DURATION, VUS, RPS, RESOLVER_URL, REGISTRAR_URL, API_KEY and SUMMARY_DIR "
        "are read from the environment; flags take precedence.",
    )
    parser.add_argument("scenario", choices=[s.value for s in ScenarioType])
    parser.add_argument("--duration", help="k6-style duration, e.g. 60s or 1m30s")
    parser.add_argument("--vus", type=int)
    parser.add_argument("--rps", type=float, help="Request rate ceiling across all VUs (0 = off)")
    parser.add_argument("--target", help="Base URL of the service under test")
    parser.add_argument("--api-key", help="Bearer credential for registrar writes")
    parser.add_argument("--summary-dir", help="Directory for the JSON summary")
    parser.add_argument("--seed", type=int)
    parser.add_argument("--pacing", type=float, help="Seconds each VU sleeps between iterations")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    parser.add_argument("--no-color", action="store_true")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def _build_config(args: argparse.Namespace) -> RunConfig:
    return run_config_from_env(
        ScenarioType(args.scenario),
        duration_sec=parse_duration(args.duration) if args.duration else None,
        vus=args.vus,
        rps=args.rps,
        base_url=args.target,
        bearer_token=args.api_key,
        summary_dir=args.summary_dir,
        seed=args.seed,
        pacing_sec=args.pacing,
        timeout_sec=args.timeout,
    )


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _build_config(args)
    except (ConfigError, ThresholdError) as exc:
        Console(stderr=True).print(f"[red]Error:[/red] {escape(str(exc))}")
        return EXIT_CONFIG_ERROR

    result = asyncio.run(run_scenario(config))
    report = build_summary(config, result.snapshot)
    write_summary(report, json_path=config.summary_path, enable_colors=not args.no_color)
    if not report.passed:
        failed = [str(r.threshold) for r in report.thresholds if not r.ok]
        logger.warning("Thresholds crossed: %s", ", ".join(failed))
        return EXIT_THRESHOLD_BREACH
    return EXIT_PASS


if __name__ == "__main__":
    raise SystemExit(main())
