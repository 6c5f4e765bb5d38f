"""
multisig.state.approvals — shared append-only approval log.

Both registries (transactions and owner changes) are the same shape: an
append-only list of frozen entries indexed by a zero-based id, plus a per-entry
map of owner → approved flag. This module holds that shape once.

Counting is always *live*: `count(id)` iterates the ledger's current owners and
counts set flags. Flags of removed owners stay recorded but do not count; if
such an owner is re-added its old flags count again.

Subclasses provide the literal reasons used for their entry kind.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, Generic, Iterable, List, Tuple, TypeVar

from multisig import errors as E
from multisig.state.ledger import AuthorizationLedger
from multisig.types.address import coerce

T = TypeVar("T")


class ApprovalLog(Generic[T]):
    NOT_FOUND = "entry does not exist"
    ALREADY_EXECUTED = "entry already executed"
    ALREADY_APPROVED = "entry already approved"

    def __init__(self, ledger: AuthorizationLedger) -> None:
        self._ledger = ledger
        self._entries: List[T] = []
        self._approvals: List[Dict[str, bool]] = []

    # ------------------------------------------------------------------ queries

    def count_entries(self) -> int:
        return len(self._entries)

    def get(self, entry_id: int) -> T:
        return self._entries[self._index(entry_id)]

    def exists(self, entry_id: int) -> bool:
        return isinstance(entry_id, int) and not isinstance(entry_id, bool) and 0 <= entry_id < len(self._entries)

    def count(self, entry_id: int) -> int:
        """Approvals of `entry_id` among the *current* owners."""
        flags = self._approvals[self._index(entry_id)]
        return sum(1 for o in self._ledger.owners() if flags.get(o))

    def approvers(self, entry_id: int) -> Tuple[str, ...]:
        flags = self._approvals[self._index(entry_id)]
        return tuple(o for o in self._ledger.owners() if flags.get(o))

    def has_approved(self, entry_id: int, owner: str) -> bool:
        flags = self._approvals[self._index(entry_id)]
        return bool(flags.get(owner))

    def pending_ids(self) -> Tuple[int, ...]:
        return tuple(i for i, e in enumerate(self._entries) if not e.executed)  # type: ignore[attr-defined]

    # ------------------------------------------------------------------ transitions

    def _append(self, entry: T) -> int:
        self._entries.append(entry)
        self._approvals.append({})
        return len(self._entries) - 1

    def _check_open(self, entry_id: int) -> T:
        entry = self.get(entry_id)
        if entry.executed:  # type: ignore[attr-defined]
            raise E.StateConflictError(self.ALREADY_EXECUTED, entry_id=entry_id)
        return entry

    def _set_flag(self, entry_id: int, owner: str) -> None:
        flags = self._approvals[entry_id]
        if flags.get(owner):
            raise E.StateConflictError(self.ALREADY_APPROVED, entry_id=entry_id, data={"owner": owner})
        flags[owner] = True

    def mark_executed(self, entry_id: int) -> T:
        entry = self._check_open(entry_id)
        done = dataclasses.replace(entry, executed=True)  # type: ignore[type-var]
        self._entries[entry_id] = done
        return done

    def _index(self, entry_id: int) -> int:
        if not self.exists(entry_id):
            raise E.NotFoundError(self.NOT_FOUND, entry_id=entry_id if isinstance(entry_id, int) else None)
        return entry_id

    # ------------------------------------------------------------------ snapshots

    def snapshot(self) -> Tuple[Tuple[T, ...], Tuple[Dict[str, bool], ...]]:
        return tuple(self._entries), tuple(dict(a) for a in self._approvals)

    def restore(self, snap: Tuple[Tuple[T, ...], Tuple[Dict[str, bool], ...]]) -> None:
        entries, approvals = snap
        self._entries = list(entries)
        self._approvals = [dict(a) for a in approvals]

    def _dump_entries(self) -> List[Dict[str, Any]]:
        out = []
        for entry, flags in zip(self._entries, self._approvals):
            d = entry.to_dict()  # type: ignore[attr-defined]
            d["approvals"] = sorted(o for o, v in flags.items() if v)
            out.append(d)
        return out

    def _load_flags(self, approvals: List[str]) -> Dict[str, bool]:
        return {coerce(o, "invalid approver"): True for o in approvals}

    def check_approvers(self, known: Iterable[str]) -> None:
        """Reject loaded approvals from addresses outside `known`."""
        allowed = set(known)
        for entry_id, flags in enumerate(self._approvals):
            stray = sorted(o for o in flags if o not in allowed)
            if stray:
                raise E.ValidationError("approval from a non-owner", data={"entry_id": entry_id, "approvers": stray})


__all__ = ["ApprovalLog"]
