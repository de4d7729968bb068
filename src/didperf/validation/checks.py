from __future__ import annotations

from typing import Callable, Iterable

from didperf.metrics import CheckResult, HttpExchange

Predicate = Callable[[HttpExchange], bool]
Check = tuple[str, Predicate]


def run_checks(exchange: HttpExchange, checks: Iterable[Check]) -> list[CheckResult]:
    """Evaluate every named predicate against ``exchange``, in order.

    A ``ValueError`` raised by a predicate (malformed JSON, undecodable body)
    counts as a failed check rather than an error.
    """
    results: list[CheckResult] = []
    for name, predicate in checks:
        try:
            passed = bool(predicate(exchange))
        except ValueError:
            passed = False
        results.append(CheckResult(name=name, passed=passed))
    return results


def all_passed(results: Iterable[CheckResult]) -> bool:
    return all(result.passed for result in results)


def failed_checks(results: Iterable[CheckResult]) -> list[CheckResult]:
    return [result for result in results if not result.passed]


def status_in(*statuses: int) -> Predicate:
    def predicate(exchange: HttpExchange) -> bool:
        return exchange.status_code in statuses

    return predicate


def faster_than(limit_ms: float) -> Predicate:
    def predicate(exchange: HttpExchange) -> bool:
        return exchange.elapsed_ms < limit_ms

    return predicate


def has_header(name: str) -> Predicate:
    def predicate(exchange: HttpExchange) -> bool:
        return exchange.header(name) is not None

    return predicate


def header_contains(name: str, fragment: str) -> Predicate:
    def predicate(exchange: HttpExchange) -> bool:
        return fragment in (exchange.header(name) or "")

    return predicate
