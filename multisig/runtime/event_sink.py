"""
multisig.runtime.event_sink — append-only notification log.

The sink is a snapshot participant: events recorded inside an atomic scope that
is later rolled back disappear with it, so the log only ever shows committed
transitions. Sequence numbers are positions in the log.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, List, Optional, Tuple

from multisig.types.events import EventKind, WalletEvent

log = logging.getLogger(__name__)


def _coerce(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray, memoryview)):
        return "0x" + bytes(v).hex()
    if isinstance(v, EventKind):
        return v.value
    return v


class EventSink:
    def __init__(self) -> None:
        self._events: List[WalletEvent] = []

    def emit(self, wallet: str, kind: EventKind, **fields: Any) -> WalletEvent:
        ev = WalletEvent(
            seq=len(self._events),
            wallet=wallet,
            kind=kind,
            fields={k: _coerce(v) for k, v in fields.items()},
        )
        self._events.append(ev)
        log.debug("event", extra={"kind": kind.value, "seq": ev.seq})
        return ev

    def events(self, kind: Optional[EventKind] = None, *, wallet: Optional[str] = None) -> Tuple[WalletEvent, ...]:
        return tuple(
            e
            for e in self._events
            if (kind is None or e.kind is kind) and (wallet is None or e.wallet == wallet)
        )

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[WalletEvent]:
        return iter(tuple(self._events))

    # snapshots: events are immutable, so a length mark is enough
    def snapshot(self) -> int:
        return len(self._events)

    def restore(self, mark: int) -> None:
        del self._events[mark:]


__all__ = ["EventSink"]
