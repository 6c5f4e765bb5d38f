"""
multisig.state.governance — log of owner-set change proposals.

Mirrors the transaction registry, except that approvals of
an owner change cannot be revoked.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, List, Tuple

from multisig import errors as E
from multisig.state.approvals import ApprovalLog
from multisig.types.address import AddressLike, coerce
from multisig.types.entries import OwnerChange

log = logging.getLogger(__name__)


class GovernanceRegistry(ApprovalLog[OwnerChange]):
    NOT_FOUND = E.CHANGE_NOT_FOUND
    ALREADY_EXECUTED = E.CHANGE_ALREADY_EXECUTED
    ALREADY_APPROVED = E.CHANGE_ALREADY_APPROVED

    def check_addition(self, candidate: str) -> None:
        if self._ledger.is_owner(candidate):
            raise E.ValidationError(E.OWNER_EXISTS, data={"owner": candidate})
        if self._ledger.at_capacity():
            raise E.ValidationError(E.MAX_OWNERS_REACHED, data={"max": self._ledger.max_owners})

    def check_removal(self, target: str) -> None:
        if not self._ledger.is_owner(target):
            raise E.ValidationError(E.NOT_AN_OWNER, data={"owner": target})
        if self._ledger.owner_count() - 1 < self._ledger.required:
            raise E.ValidationError(
                E.BELOW_REQUIRED,
                data={"owners": self._ledger.owner_count(), "required": self._ledger.required},
            )

    def propose_add(self, caller: AddressLike, candidate: AddressLike) -> int:
        self._ledger.require_owner(caller)
        addr = coerce(candidate, E.INVALID_OWNER)
        self.check_addition(addr)
        change_id = self._append(OwnerChange(id=len(self._entries), target_owner=addr, is_addition=True))
        log.debug("owner addition proposed", extra={"change_id": change_id, "owner": addr})
        return change_id

    def propose_remove(self, caller: AddressLike, target: AddressLike) -> int:
        self._ledger.require_owner(caller)
        addr = coerce(target, E.INVALID_OWNER)
        self.check_removal(addr)
        change_id = self._append(OwnerChange(id=len(self._entries), target_owner=addr, is_addition=False))
        log.debug("owner removal proposed", extra={"change_id": change_id, "owner": addr})
        return change_id

    def approve(self, caller: AddressLike, change_id: int) -> str:
        owner = self._ledger.require_owner(caller)
        self._check_open(change_id)
        self._set_flag(change_id, owner)
        log.debug("owner change approved", extra={"change_id": change_id, "owner": owner})
        return owner

    def approval_count(self, change_id: int) -> int:
        return self.count(change_id)

    # ------------------------------------------------------------------ export

    def dump(self) -> List[Dict[str, Any]]:
        return self._dump_entries()

    def load(self, items: List[Dict[str, Any]]) -> None:
        entries: List[OwnerChange] = []
        approvals: List[Dict[str, bool]] = []
        for i, d in enumerate(items):
            ch = OwnerChange.from_dict(d)
            ch = dataclasses.replace(ch, target_owner=coerce(ch.target_owner, E.INVALID_OWNER))
            if ch.id != i:
                raise E.ValidationError("non-sequential owner change ids", data={"expected": i, "got": ch.id})
            entries.append(ch)
            approvals.append(self._load_flags(d.get("approvals", [])))
        self.restore((tuple(entries), tuple(approvals)))

    def entries(self) -> Tuple[OwnerChange, ...]:
        return tuple(self._entries)


__all__ = ["GovernanceRegistry"]
