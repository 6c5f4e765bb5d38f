"""
multisig.state.ledger — owner set and quorum configuration.

The ledger answers membership and quorum questions. It owns two pieces of
state: the ordered owner list and `required`. Only the execution engine calls
`add_owner` / `remove_owner`; `set_required` is owner-gated by the caller check
performed here.

Invariants (checked on construction and every mutation):
  * owners are unique and non-null
  * 1 ≤ len(owners) ≤ max_owners
  * 1 ≤ required ≤ len(owners)

Removal swaps the removed owner with the last one; positions carry no meaning.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Tuple

from multisig import errors as E
from multisig.types.address import AddressLike, coerce, normalize

log = logging.getLogger(__name__)


def validate_owner_set(owners: Iterable[AddressLike], required: int, max_owners: int) -> List[str]:
    """
    Validate a proposed owner set and threshold, returning canonical owners.

    Checks run in a fixed order so the first violated rule is the one reported:
    empty, too many, required bound, null/malformed owner, duplicate.
    """
    raw = list(owners)
    if not raw:
        raise E.ValidationError(E.OWNERS_REQUIRED)
    if len(raw) > max_owners:
        raise E.ValidationError(E.TOO_MANY_OWNERS, data={"count": len(raw), "max": max_owners})
    if isinstance(required, bool) or not isinstance(required, int) or not (1 <= required <= len(raw)):
        raise E.ValidationError(E.INVALID_REQUIRED_OWNERS, data={"required": repr(required), "owners": len(raw)})

    out: List[str] = []
    seen = set()
    for o in raw:
        addr = coerce(o, E.INVALID_OWNER)
        if addr in seen:
            raise E.ValidationError(E.OWNER_NOT_UNIQUE, data={"owner": addr})
        seen.add(addr)
        out.append(addr)
    return out


class AuthorizationLedger:
    def __init__(self, owners: Iterable[AddressLike], required: int, *, max_owners: int = 50) -> None:
        self._max_owners = int(max_owners)
        self._owners: List[str] = validate_owner_set(owners, required, self._max_owners)
        self._is_owner: Dict[str, bool] = {o: True for o in self._owners}
        self._required = int(required)

    # ------------------------------------------------------------------ queries

    @property
    def required(self) -> int:
        return self._required

    @property
    def max_owners(self) -> int:
        return self._max_owners

    def is_owner(self, addr: AddressLike) -> bool:
        try:
            a = normalize(addr)
        except (TypeError, ValueError):
            return False
        return a is not None and self._is_owner.get(a, False)

    def owner_count(self) -> int:
        return len(self._owners)

    def owners(self) -> Tuple[str, ...]:
        return tuple(self._owners)

    def at_capacity(self) -> bool:
        return len(self._owners) >= self._max_owners

    def require_owner(self, caller: AddressLike) -> str:
        """Return the canonical caller address or raise AuthorizationError("not owner")."""
        if not self.is_owner(caller):
            raise E.AuthorizationError(E.NOT_OWNER, caller=_render(caller))
        return normalize(caller)  # type: ignore[return-value]

    # ------------------------------------------------------------------ mutations

    def add_owner(self, addr: AddressLike) -> str:
        a = coerce(addr, E.INVALID_OWNER)
        if self._is_owner.get(a):
            raise E.ValidationError(E.OWNER_EXISTS, data={"owner": a})
        if self.at_capacity():
            raise E.ValidationError(E.MAX_OWNERS_REACHED, data={"max": self._max_owners})
        self._owners.append(a)
        self._is_owner[a] = True
        log.info("owner added", extra={"owner": a, "owners": len(self._owners)})
        return a

    def remove_owner(self, addr: AddressLike) -> str:
        a = coerce(addr, E.INVALID_OWNER)
        if not self._is_owner.get(a):
            raise E.ValidationError(E.NOT_AN_OWNER, data={"owner": a})
        if len(self._owners) - 1 < self._required:
            raise E.ValidationError(E.BELOW_REQUIRED, data={"owners": len(self._owners), "required": self._required})
        idx = self._owners.index(a)
        last = len(self._owners) - 1
        if idx != last:
            self._owners[idx] = self._owners[last]
        self._owners.pop()
        self._is_owner.pop(a, None)
        log.info("owner removed", extra={"owner": a, "owners": len(self._owners)})
        return a

    def set_required(self, caller: AddressLike, n: int) -> int:
        self.require_owner(caller)
        if isinstance(n, bool) or not isinstance(n, int) or not (1 <= n <= len(self._owners)):
            raise E.ValidationError(E.INVALID_REQUIRED, data={"required": repr(n), "owners": len(self._owners)})
        self._required = n
        log.info("required changed", extra={"required": n})
        return n

    # ------------------------------------------------------------------ snapshots

    def snapshot(self) -> Tuple[Tuple[str, ...], int]:
        return tuple(self._owners), self._required

    def restore(self, snap: Tuple[Tuple[str, ...], int]) -> None:
        owners, required = snap
        self._owners = list(owners)
        self._is_owner = {o: True for o in self._owners}
        self._required = required

    def to_dict(self) -> Dict[str, Any]:
        return {"owners": list(self._owners), "required": self._required}


def _render(addr: AddressLike) -> str:
    if isinstance(addr, (bytes, bytearray, memoryview)):
        return "0x" + bytes(addr).hex()
    return str(addr)


__all__ = ["AuthorizationLedger", "validate_owner_set"]
