"""
multisig.runtime.host — in-memory hosting environment for wallets.

The host stands in for the chain a wallet runs on. It provides:

* balances      — `balance_of`, `credit`, `transfer` over canonical addresses
* a clock       — `now`, `advance`, `set_time` (monotonic, whole seconds)
* call targets  — `register(address, handler)`; `call(...)` invokes them
* atomic scopes — `atomic()` snapshots balances and every attached participant
                  (anything with `snapshot()` / `restore()`) and restores them
                  all if the block raises. Scopes nest.
* addresses     — `new_address(tag)` derives fresh deterministic addresses

Calls
-----
`call(sender, target, value, payload, gas)` moves `value` first, then runs the
target's handler (if any) inside a nested atomic scope and returns a
`CallResult(success, output, gas_used)`. A call never raises for callee
failures; they are reported in the result and the value move is rolled back:

  * `Revert(reason)` or any `WalletError` from the handler → output is the
    standard Error(string) encoding of the reason
  * `OutOfGas` → empty output, the whole forwarded budget is consumed
  * any other exception → logged, empty output

A call made from inside a running handler is nested: whatever it uses is
charged to the running call's meter as well.

Handlers receive a `CallContext` and return bytes (or None for empty output).
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional

from multisig import abi
from multisig import errors as E
from multisig.runtime.event_sink import EventSink
from multisig.runtime.gas import GasMeter, intrinsic_call_gas
from multisig.types.address import AddressLike, coerce, derive_address

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallContext:
    host: "Host"
    sender: str
    target: str
    value: int
    payload: bytes
    gas: GasMeter


@dataclass(frozen=True)
class CallResult:
    success: bool
    output: bytes = b""
    gas_used: int = 0

    @property
    def revert_reason(self) -> Optional[str]:
        return None if self.success else abi.decode_revert(self.output)


Handler = Callable[[CallContext], Optional[bytes]]


def _check_amount(amount: Any) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise E.ValidationError(E.INVALID_VALUE, data={"value": repr(amount)})
    return amount


class Host:
    """
    Parameters
    ----------
    now : int
        Initial clock value (seconds).
    name : str
        Namespace mixed into derived addresses so separate hosts do not collide.
    """

    def __init__(self, *, now: int = 0, name: str = "local") -> None:
        self._lock = threading.RLock()
        self._balances: Dict[str, int] = {}
        self._handlers: Dict[str, Handler] = {}
        self._participants: List[Any] = []
        self._now = int(now)
        self._name = name
        self._nonce = 0
        self._meters: List[GasMeter] = []
        self.events = EventSink()
        self.attach(self.events)

    # ------------------------------------------------------------------ clock

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("clock cannot move backwards")
        self._now += int(seconds)
        return self._now

    def set_time(self, ts: int) -> int:
        if ts < self._now:
            raise ValueError("clock cannot move backwards")
        self._now = int(ts)
        return self._now

    # ------------------------------------------------------------------ balances

    def balance_of(self, addr: AddressLike) -> int:
        return self._balances.get(coerce(addr, "invalid address"), 0)

    def credit(self, addr: AddressLike, amount: int) -> int:
        """Mint `amount` to `addr` (tests / genesis funding)."""
        a = coerce(addr, "invalid address")
        amount = _check_amount(amount)
        with self._lock:
            self._balances[a] = self._balances.get(a, 0) + amount
            return self._balances[a]

    def transfer(self, frm: AddressLike, to: AddressLike, amount: int) -> None:
        src = coerce(frm, "invalid address")
        dst = coerce(to, E.INVALID_TARGET)
        amount = _check_amount(amount)
        if amount == 0:
            return
        with self._lock:
            have = self._balances.get(src, 0)
            if amount > have:
                raise E.InsufficientBalance(required=amount, available=have, data={"account": src})
            self._balances[src] = have - amount
            self._balances[dst] = self._balances.get(dst, 0) + amount

    # ------------------------------------------------------------------ addresses

    def new_address(self, tag: str = "account") -> str:
        with self._lock:
            self._nonce += 1
            return derive_address(f"{self._name}/{tag}/{self._nonce}")

    # ------------------------------------------------------------------ participants

    def attach(self, participant: Any) -> None:
        if not (callable(getattr(participant, "snapshot", None)) and callable(getattr(participant, "restore", None))):
            raise TypeError("participant must implement snapshot() and restore()")
        if participant not in self._participants:
            self._participants.append(participant)

    @contextmanager
    def atomic(self) -> Iterator["Host"]:
        """All-or-nothing scope over balances and attached participants."""
        with self._lock:
            balances = dict(self._balances)
            snaps = [(p, p.snapshot()) for p in self._participants]
            try:
                yield self
            except BaseException:
                self._balances = balances
                for p, s in reversed(snaps):
                    p.restore(s)
                raise

    # ------------------------------------------------------------------ calls

    def register(self, addr: AddressLike, handler: Handler) -> str:
        a = coerce(addr, E.INVALID_TARGET)
        self._handlers[a] = handler
        return a

    def has_handler(self, addr: AddressLike) -> bool:
        return coerce(addr, E.INVALID_TARGET) in self._handlers

    def call(
        self,
        sender: AddressLike,
        target: AddressLike,
        value: int = 0,
        payload: bytes = b"",
        *,
        gas: int,
    ) -> CallResult:
        src = coerce(sender, "invalid address")
        dst = coerce(target, E.INVALID_TARGET)
        payload = bytes(payload)
        meter = GasMeter(gas)
        with self._lock:
            parent = self._meters[-1] if self._meters else None
            self._meters.append(meter)
            try:
                result = self._run(src, dst, value, payload, meter)
            finally:
                self._meters.pop()
            if parent is not None:
                # nested calls spend the budget of the call that made them
                parent.debit(result.gas_used, reason="nested call")
            return result

    def _run(self, src: str, dst: str, value: int, payload: bytes, meter: GasMeter) -> CallResult:
        try:
            with self.atomic():
                meter.debit(intrinsic_call_gas(payload), reason="intrinsic")
                self.transfer(src, dst, value)
                handler = self._handlers.get(dst)
                out = b""
                if handler is not None:
                    ctx = CallContext(self, src, dst, int(value), payload, meter)
                    out = handler(ctx) or b""
        except E.OutOfGas:
            log.debug("call out of gas", extra={"target": dst, "gas": meter.limit})
            return CallResult(False, b"", meter.limit)
        except E.WalletError as e:
            log.debug("call reverted", extra={"target": dst, "reason": e.reason})
            return CallResult(False, abi.encode_revert(e.reason), meter.used)
        except Exception:
            log.exception("call target raised", extra={"target": dst})
            return CallResult(False, b"", meter.used)
        return CallResult(True, bytes(out), meter.used)


__all__ = ["Host", "CallContext", "CallResult", "Handler"]
