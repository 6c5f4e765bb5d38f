"""
multisig.runtime.policy — execution policies.

A wallet is built with one policy, chosen by a small tagged value:

    Immediate()            execute as soon as quorum is reached
    Timelocked(delay=None) execute only once `delay` seconds have elapsed since
                           the transaction's *first* approval (None → configured
                           default, 24h)

`build_policy()` turns the choice into an object with two hooks the engine
calls:

    after_approve(tx_id, now)  -> Optional[int]   eligibility scheduled, if any
    before_execute(tx_id, now) -> None            raises TimelockError when early

The timelock record maps tx id → eligibility timestamp; an id without a
record has never been approved (`eligible_at` reports 0). It is written once,
on the first approval, and never changed afterwards (later revocations and
re-approvals do not move it).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from multisig.errors import TimelockError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Immediate:
    tag: str = "immediate"


@dataclass(frozen=True)
class Timelocked:
    delay: Optional[int] = None
    tag: str = "timelocked"


PolicyChoice = Union[Immediate, Timelocked]


class ImmediatePolicy:
    tag = "immediate"

    def after_approve(self, tx_id: int, now: int) -> Optional[int]:
        return None

    def before_execute(self, tx_id: int, now: int) -> None:
        return None

    def eligible_at(self, tx_id: int) -> int:
        return 0

    def snapshot(self) -> None:
        return None

    def restore(self, snap: None) -> None:
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.tag}


class TimelockPolicy:
    tag = "timelocked"

    def __init__(self, delay: int) -> None:
        if isinstance(delay, bool) or not isinstance(delay, int) or delay < 0:
            raise ValueError("timelock delay must be a non-negative integer")
        self.delay = delay
        self._eligible: Dict[int, int] = {}

    def eligible_at(self, tx_id: int) -> int:
        return self._eligible.get(tx_id, 0)

    def after_approve(self, tx_id: int, now: int) -> Optional[int]:
        if tx_id in self._eligible:
            return None
        at = int(now) + self.delay
        self._eligible[tx_id] = at
        log.debug("timelock scheduled", extra={"tx_id": tx_id, "eligible_at": at})
        return at

    def before_execute(self, tx_id: int, now: int) -> None:
        at = self._eligible.get(tx_id)
        if at is None or now < at:
            raise TimelockError(eligible_at=at, now=now)

    def snapshot(self) -> Dict[int, int]:
        return dict(self._eligible)

    def restore(self, snap: Dict[int, int]) -> None:
        self._eligible = dict(snap)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.tag,
            "delay": self.delay,
            "eligible_at": {str(k): v for k, v in sorted(self._eligible.items())},
        }

    def load(self, records: Dict[str, int]) -> None:
        self._eligible = {int(k): int(v) for k, v in records.items()}


ExecutionPolicy = Union[ImmediatePolicy, TimelockPolicy]


def build_policy(choice: Optional[PolicyChoice], *, default_delay: int) -> ExecutionPolicy:
    if choice is None or isinstance(choice, Immediate):
        return ImmediatePolicy()
    if isinstance(choice, Timelocked):
        return TimelockPolicy(default_delay if choice.delay is None else choice.delay)
    raise TypeError(f"unknown policy choice: {choice!r}")


__all__ = [
    "Immediate",
    "Timelocked",
    "PolicyChoice",
    "ImmediatePolicy",
    "TimelockPolicy",
    "ExecutionPolicy",
    "build_policy",
]
