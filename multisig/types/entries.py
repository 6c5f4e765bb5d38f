"""
multisig.types.entries — records held by the wallet registries.

* `Transaction`   — a proposed external action (transfer and/or invocation).
* `OwnerChange`   — a proposed addition or removal of an owner.
* `ExecutionReceipt` — what a successful `execute` returns.

Records are frozen; registries replace an entry with `dataclasses.replace` when
it transitions to executed. `to_dict()` / `from_dict()` convert to/from
JSON-friendly forms (payloads as 0x-hex).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


def _hex(b: bytes) -> str:
    return "0x" + b.hex()


def _unhex(v: Any) -> bytes:
    if isinstance(v, (bytes, bytearray, memoryview)):
        return bytes(v)
    s = str(v)
    if s.startswith(("0x", "0X")):
        s = s[2:]
    return bytes.fromhex(s)


@dataclass(frozen=True)
class Transaction:
    """
    A proposed action.

    Attributes:
        id:       zero-based sequential id
        target:   destination address (canonical hex)
        value:    amount moved to `target` on execution
        payload:  call data forwarded to `target` (b"" for a plain transfer)
        executed: irrevocable once True (also set by cancellation)
    """

    id: int
    target: str
    value: int
    payload: bytes = b""
    executed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "target": self.target,
            "value": self.value,
            "payload": _hex(self.payload),
            "executed": self.executed,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Transaction":
        return cls(
            id=int(d["id"]),
            target=str(d["target"]),
            value=int(d["value"]),
            payload=_unhex(d.get("payload", "0x")),
            executed=bool(d.get("executed", False)),
        )


@dataclass(frozen=True)
class OwnerChange:
    id: int
    target_owner: str
    is_addition: bool
    executed: bool = False

    @property
    def kind(self) -> str:
        return "add" if self.is_addition else "remove"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "target_owner": self.target_owner,
            "is_addition": self.is_addition,
            "executed": self.executed,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OwnerChange":
        return cls(
            id=int(d["id"]),
            target_owner=str(d["target_owner"]),
            is_addition=bool(d["is_addition"]),
            executed=bool(d.get("executed", False)),
        )


@dataclass(frozen=True)
class ExecutionReceipt:
    tx_id: int
    success: bool
    output: bytes = b""
    gas_used: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tx_id": self.tx_id,
            "success": self.success,
            "output": _hex(self.output),
            "gas_used": self.gas_used,
        }


__all__ = ["Transaction", "OwnerChange", "ExecutionReceipt"]
