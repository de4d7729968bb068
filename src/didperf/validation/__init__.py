from __future__ import annotations

from didperf.validation.checks import (
    Check,
    Predicate,
    all_passed,
    failed_checks,
    faster_than,
    has_header,
    header_contains,
    run_checks,
    status_in,
)
from didperf.validation.shapes import (
    DeactivationResult,
    RegistrationResult,
    ResolutionResult,
    Tombstone,
)

__all__ = [
    "Check",
    "DeactivationResult",
    "Predicate",
    "RegistrationResult",
    "ResolutionResult",
    "Tombstone",
    "all_passed",
    "failed_checks",
    "faster_than",
    "has_header",
    "header_contains",
    "run_checks",
    "status_in",
]
