"""
multisig.state.transactions — log of proposed actions and their approvals.

Ids are zero-based, assigned in submission order and never reused. Entries are
never deleted; an executed (or cancelled) entry is immutable.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, List, Tuple

from multisig import errors as E
from multisig.state.approvals import ApprovalLog
from multisig.types.address import AddressLike, coerce
from multisig.types.entries import Transaction

log = logging.getLogger(__name__)


def _check_value(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise E.ValidationError(E.INVALID_VALUE, data={"value": repr(value)})
    return value


class TransactionRegistry(ApprovalLog[Transaction]):
    NOT_FOUND = E.TX_NOT_FOUND
    ALREADY_EXECUTED = E.TX_ALREADY_EXECUTED
    ALREADY_APPROVED = E.TX_ALREADY_APPROVED

    def submit(
        self,
        caller: AddressLike,
        target: AddressLike,
        value: int,
        payload: bytes = b"",
        *,
        balance: int,
    ) -> int:
        """
        Append a new transaction. The caller's own approval is *not* recorded.

        Raises:
            AuthorizationError("not owner")
            ValidationError("invalid target address" | "invalid value")
            InsufficientBalance("insufficient balance") when value > balance
        """
        self._ledger.require_owner(caller)
        to = coerce(target, E.INVALID_TARGET)
        value = _check_value(value)
        if value > balance:
            raise E.InsufficientBalance(required=value, available=balance)
        if not isinstance(payload, (bytes, bytearray, memoryview)):
            raise E.ValidationError("invalid payload", data={"type": type(payload).__name__})

        tx_id = self._append(Transaction(id=len(self._entries), target=to, value=value, payload=bytes(payload)))
        log.debug("tx submitted", extra={"tx_id": tx_id, "target": to, "value": value})
        return tx_id

    def approve(self, caller: AddressLike, tx_id: int) -> str:
        owner = self._ledger.require_owner(caller)
        self._check_open(tx_id)
        self._set_flag(tx_id, owner)
        log.debug("tx approved", extra={"tx_id": tx_id, "owner": owner})
        return owner

    def revoke(self, caller: AddressLike, tx_id: int) -> str:
        owner = self._ledger.require_owner(caller)
        self._check_open(tx_id)
        flags = self._approvals[tx_id]
        if not flags.get(owner):
            raise E.StateConflictError(E.TX_NOT_APPROVED, entry_id=tx_id, data={"owner": owner})
        flags[owner] = False
        log.debug("tx approval revoked", extra={"tx_id": tx_id, "owner": owner})
        return owner

    def approval_count(self, tx_id: int) -> int:
        return self.count(tx_id)

    # ------------------------------------------------------------------ export

    def dump(self) -> List[Dict[str, Any]]:
        return self._dump_entries()

    def load(self, items: List[Dict[str, Any]]) -> None:
        entries: List[Transaction] = []
        approvals: List[Dict[str, bool]] = []
        for i, d in enumerate(items):
            tx = Transaction.from_dict(d)
            tx = dataclasses.replace(tx, target=coerce(tx.target, E.INVALID_TARGET))
            if tx.id != i:
                raise E.ValidationError("non-sequential transaction ids", data={"expected": i, "got": tx.id})
            entries.append(tx)
            approvals.append(self._load_flags(d.get("approvals", [])))
        self.restore((tuple(entries), tuple(approvals)))

    def entries(self) -> Tuple[Transaction, ...]:
        return tuple(self._entries)


__all__ = ["TransactionRegistry"]
