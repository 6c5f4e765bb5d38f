"""
multisig.runtime.guard — scoped non-reentrancy latch.

    with guard:
        ...  # a nested `with guard:` on the same stack raises ReentrancyError

The latch is held only for the dynamic extent of the block and released on
every exit path, including exceptions. It is not a snapshot
participant: rolling back an atomic scope must never re-lock or unlock it.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from multisig.errors import ReentrancyError

log = logging.getLogger(__name__)


class ReentrancyGuard:
    __slots__ = ("_entered", "_holder")

    def __init__(self) -> None:
        self._entered = False
        self._holder: Optional[str] = None

    @property
    def entered(self) -> bool:
        return self._entered

    def enter(self, op: str = "") -> None:
        if self._entered:
            log.warning("reentrant call rejected", extra={"op": op, "holder": self._holder})
            raise ReentrancyError(data={"op": op, "holder": self._holder} if op else None)
        self._entered = True
        self._holder = op or None

    def exit(self) -> None:
        self._entered = False
        self._holder = None

    def __call__(self, op: str) -> "_Scope":
        return _Scope(self, op)

    def __enter__(self) -> "ReentrancyGuard":
        self.enter()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.exit()


class _Scope:
    __slots__ = ("_guard", "_op")

    def __init__(self, guard: ReentrancyGuard, op: str) -> None:
        self._guard = guard
        self._op = op

    def __enter__(self) -> ReentrancyGuard:
        self._guard.enter(self._op)
        return self._guard

    def __exit__(self, *exc: Any) -> None:
        self._guard.exit()


__all__ = ["ReentrancyGuard"]
