"""
multisig.runtime.gas — budget accounting for forwarded calls.

`execute` keeps `call_gas_reserve` back and hands the rest of its budget to the
host call as a `GasMeter`. The host charges the intrinsic cost of the call;
handlers may charge their own work (the wallet charges DISPATCH_GAS for a
decoded self-call). Overdrawing the meter raises `OutOfGas`, which the host
reports as a failed call that consumed the whole budget.
"""

from __future__ import annotations

from typing import Optional

from multisig.errors import OutOfGas

# Flat charge for every call.
CALL_BASE_GAS = 700
# Per-byte charge for call payloads.
PAYLOAD_BYTE_GAS = 16
# Charge for a wallet operation dispatched from a call payload.
DISPATCH_GAS = 5_000


class GasMeter:
    __slots__ = ("_limit", "_used")

    def __init__(self, limit: int) -> None:
        if int(limit) < 0:
            raise ValueError("gas limit must be non-negative")
        self._limit = int(limit)
        self._used = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def used(self) -> int:
        return self._used

    @property
    def remaining(self) -> int:
        return max(0, self._limit - self._used)

    def debit(self, amount: int, *, reason: Optional[str] = None) -> None:
        """Charge `amount`; raises OutOfGas without charging when it does not fit."""
        n = int(amount)
        if n < 0:
            raise ValueError("gas amount must be non-negative")
        if n > self.remaining:
            raise OutOfGas(f"out of gas: {reason}" if reason else "out of gas", limit=self._limit)
        self._used += n

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"GasMeter(limit={self._limit}, used={self._used})"


def intrinsic_call_gas(payload: bytes) -> int:
    """Up-front cost of a call carrying `payload`."""
    return CALL_BASE_GAS + PAYLOAD_BYTE_GAS * len(payload)


__all__ = [
    "GasMeter",
    "intrinsic_call_gas",
    "CALL_BASE_GAS",
    "PAYLOAD_BYTE_GAS",
    "DISPATCH_GAS",
]
