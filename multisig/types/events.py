"""
multisig.types.events — wallet notification records.

`WalletEvent` is a compact, deterministic container recorded by the wallet on
every state transition. Events carry the emitting wallet, a kind tag, a
monotonically increasing sequence number (assigned by the sink) and a flat
field mapping of JSON-friendly values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping


class EventKind(str, Enum):
    DEPOSIT = "deposit"
    SUBMIT = "submit"
    APPROVE = "approve"
    REVOKE = "revoke"
    EXECUTION = "execution"
    EXECUTION_FAILURE = "execution_failure"
    REQUIREMENT_CHANGE = "requirement_change"
    OWNER_ADDITION = "owner_addition"
    OWNER_REMOVAL = "owner_removal"
    TRANSACTION_CANCELLED = "transaction_cancelled"
    OWNER_CHANGE_SUBMITTED = "owner_change_submitted"
    OWNER_CHANGE_APPROVED = "owner_change_approved"
    TIMELOCK_SCHEDULED = "timelock_scheduled"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


@dataclass(frozen=True)
class WalletEvent:
    """
    A single notification.

    Attributes:
        seq:    position in the sink (0-based, assigned on append)
        wallet: emitting wallet address
        kind:   EventKind
        fields: event-specific values (addresses as hex, bytes as 0x-hex)
    """

    seq: int
    wallet: str
    kind: EventKind
    fields: Mapping[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.fields[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        return {"seq": self.seq, "wallet": self.wallet, "kind": self.kind.value, **dict(self.fields)}


__all__ = ["EventKind", "WalletEvent"]
