"""
multisig.errors — typed failures of the multi-party authorization engine.

Every failure of a wallet operation is surfaced as a *typed exception* carrying a
stable, literal reason string. Callers and tests match on `err.reason` (or on the
class); higher layers (CLI, RPC glue) render `err.to_dict()`.

Hierarchy
---------
WalletError (base)
 ├─ ValidationError     : malformed construction/submission arguments
 │   ├─ InsufficientBalance : value exceeds the wallet (or sender) balance
 │   └─ AbiError            : payload could not be encoded/decoded
 ├─ AuthorizationError  : caller is not a current owner
 ├─ NotFoundError       : unknown transaction / owner-change id
 ├─ StateConflictError  : already approved / executed, not approved
 ├─ QuorumError         : approvals below the required threshold
 ├─ TimelockError       : timelock delay has not elapsed
 ├─ ReentrancyError     : guard already held on entry
 ├─ ExecutionError      : the invoked external action failed (decoded reason)
 │   └─ OutOfGas            : budget too small to forward the call and keep the reserve
 └─ Revert              : raised by call targets to fail an invocation on purpose

All errors terminate the triggering call without partial effect; the host's
atomic scope restores state before the exception leaves the wallet.

These classes import nothing from the rest of the package so they can be used
from every layer without cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# ---- stable reason literals ------------------------------------------------

# construction
OWNERS_REQUIRED = "owners required"
TOO_MANY_OWNERS = "too many owners"
INVALID_REQUIRED_OWNERS = "invalid required number of owners"
INVALID_OWNER = "invalid owner"
OWNER_NOT_UNIQUE = "owner is not unique"

# transactions
NOT_OWNER = "not owner"
INVALID_TARGET = "invalid target address"
INVALID_VALUE = "invalid value"
INSUFFICIENT_BALANCE = "insufficient balance"
TX_NOT_FOUND = "tx does not exist"
TX_ALREADY_APPROVED = "tx already approved"
TX_ALREADY_EXECUTED = "tx already executed"
TX_NOT_APPROVED = "tx not approved"
APPROVALS_BELOW_REQUIRED = "approvals < required"
NOT_ENOUGH_APPROVALS_TO_CANCEL = "not enough approvals to cancel"
REENTRANT_CALL = "reentrant call"
TIMELOCK_NOT_EXPIRED = "timelock not expired"
INSUFFICIENT_GAS = "insufficient gas"

# governance
OWNER_EXISTS = "owner exists"
MAX_OWNERS_REACHED = "max owners reached"
NOT_AN_OWNER = "not an owner"
BELOW_REQUIRED = "cannot have less owners than required"
CHANGE_NOT_FOUND = "change does not exist"
CHANGE_ALREADY_APPROVED = "change already approved"
CHANGE_ALREADY_EXECUTED = "already executed"
NOT_ENOUGH_APPROVALS = "not enough approvals"
INVALID_REQUIRED = "invalid required number"


@dataclass
class WalletError(Exception):
    """
    Base wallet error.

    Attributes:
        message: The literal reason (e.g. ``"not owner"``).
        code:    Stable machine code string (e.g. ``"UNAUTHORIZED"``).
        data:    Optional structured details (kept JSON-serializable).
    """

    message: str = "wallet error"
    code: str = "WALLET_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    @property
    def reason(self) -> str:
        return self.message

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for logs/CLI output."""
        out: Dict[str, Any] = {"code": self.code, "reason": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


def _details(data: Optional[Dict[str, Any]], **extra: Any) -> Optional[Dict[str, Any]]:
    d: Dict[str, Any] = {}
    if data:
        d.update(data)
    for k, v in extra.items():
        if v is not None:
            d.setdefault(k, v)
    return d or None


class ValidationError(WalletError):
    """Malformed construction or submission arguments."""

    def __init__(self, reason: str, *, data: Optional[Dict[str, Any]] = None, code: str = "VALIDATION"):
        super().__init__(message=reason, code=code, data=data)


class InsufficientBalance(ValidationError):
    """Requested value exceeds the live balance it is drawn from."""

    def __init__(
        self,
        reason: str = INSUFFICIENT_BALANCE,
        *,
        required: Optional[int] = None,
        available: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            reason,
            data=_details(data, required=required, available=available),
            code="INSUFFICIENT_BALANCE",
        )


class AbiError(ValidationError):
    """Payload encoding/decoding failure."""

    def __init__(self, reason: str, *, data: Optional[Dict[str, Any]] = None):
        super().__init__(reason, data=data, code="ABI_ERROR")


class AuthorizationError(WalletError):
    """Caller is not a current owner."""

    def __init__(self, reason: str = NOT_OWNER, *, caller: Optional[str] = None, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=reason, code="UNAUTHORIZED", data=_details(data, caller=caller))


class NotFoundError(WalletError):
    """Unknown transaction or owner-change id."""

    def __init__(self, reason: str, *, entry_id: Optional[int] = None, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=reason, code="NOT_FOUND", data=_details(data, id=entry_id))


class StateConflictError(WalletError):
    """Entry is in the wrong state for the requested transition."""

    def __init__(self, reason: str, *, entry_id: Optional[int] = None, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=reason, code="STATE_CONFLICT", data=_details(data, id=entry_id))


class QuorumError(WalletError):
    """Live approval count is below the required threshold."""

    def __init__(
        self,
        reason: str = APPROVALS_BELOW_REQUIRED,
        *,
        approvals: Optional[int] = None,
        required: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=reason,
            code="QUORUM_NOT_MET",
            data=_details(data, approvals=approvals, required=required),
        )


class TimelockError(WalletError):
    """Execution attempted before the eligibility timestamp."""

    def __init__(
        self,
        reason: str = TIMELOCK_NOT_EXPIRED,
        *,
        eligible_at: Optional[int] = None,
        now: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=reason,
            code="TIMELOCK_NOT_EXPIRED",
            data=_details(data, eligible_at=eligible_at, now=now),
        )


class ReentrancyError(WalletError):
    """A guarded entry point was re-entered during its own external invocation."""

    def __init__(self, reason: str = REENTRANT_CALL, *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=reason, code="REENTRANT_CALL", data=data)


class ExecutionError(WalletError):
    """
    The invoked external action failed.

    `reason` is the diagnostic decoded from the raw failure output, or the
    configured generic message when nothing could be decoded. The raw output is
    kept (hex) under ``data["output"]`` for tooling.
    """

    def __init__(
        self,
        reason: str,
        *,
        output: Optional[bytes] = None,
        tx_id: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
        code: str = "EXECUTION_FAILED",
    ):
        super().__init__(
            message=reason,
            code=code,
            data=_details(data, tx_id=tx_id, output=None if output is None else "0x" + output.hex()),
        )


class OutOfGas(ExecutionError):
    """Gas budget cannot cover the forwarded call plus the cleanup reserve."""

    def __init__(
        self,
        reason: str = INSUFFICIENT_GAS,
        *,
        limit: Optional[int] = None,
        reserve: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(reason, data=_details(data, limit=limit, reserve=reserve), code="OUT_OF_GAS")


class Revert(WalletError):
    """
    Raised by a call target (a registered host handler) to fail the invocation.

    The host encodes `reason` into the standard ``Error(string)`` output so the
    caller can decode it.
    """

    def __init__(self, reason: str = "", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=reason, code="REVERT", data=data)


__all__ = [
    "WalletError",
    "ValidationError",
    "InsufficientBalance",
    "AbiError",
    "AuthorizationError",
    "NotFoundError",
    "StateConflictError",
    "QuorumError",
    "TimelockError",
    "ReentrancyError",
    "ExecutionError",
    "OutOfGas",
    "Revert",
]
