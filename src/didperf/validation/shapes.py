from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def _field(data: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    did_document_id: str | None

    @classmethod
    def from_json(cls, data: Any) -> ResolutionResult:
        return cls(did_document_id=_text(_field(data, "didDocument", "id")))

    @property
    def is_valid(self) -> bool:
        return bool(self.did_document_id)


@dataclass(frozen=True, slots=True)
class Tombstone:
    error: str | None

    @classmethod
    def from_json(cls, data: Any) -> Tombstone:
        return cls(error=_text(_field(data, "error")))

    @property
    def is_deactivated(self) -> bool:
        return self.error == "deactivated"


@dataclass(frozen=True, slots=True)
class RegistrationResult:
    txids: Any
    accounts: Any

    @classmethod
    def from_json(cls, data: Any) -> RegistrationResult:
        return cls(txids=_field(data, "txids"), accounts=_field(data, "accounts"))

    @property
    def has_transaction_info(self) -> bool:
        return self.txids is not None or self.accounts is not None


@dataclass(frozen=True, slots=True)
class DeactivationResult:
    action: str | None

    @classmethod
    def from_json(cls, data: Any) -> DeactivationResult:
        return cls(action=_text(_field(data, "didState", "action")))

    @property
    def is_deactivated(self) -> bool:
        return self.action == "deactivate"
