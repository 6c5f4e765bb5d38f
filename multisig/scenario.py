"""
multisig.scenario — scripted wallet runs.

A scenario is a JSON-friendly mapping:

    {
      "owners": ["alice", "bob", "carol"],     # names or 0x-hex addresses
      "required": 2,
      "balance": 10,                           # credited to the wallet up front
      "timelock": 3600,                        # optional; seconds (null → immediate)
      "accounts": {"dave": 5},                 # optional external funding
      "steps": [
        {"op": "submit", "caller": "alice", "to": "xavier", "value": 1},
        {"op": "approve", "caller": "alice", "tx": 0},
        {"op": "execute", "caller": "alice", "tx": 0, "expect": "approvals < required"},
        {"op": "advance", "seconds": 3600}
      ]
    }

Names are turned into deterministic addresses with `derive_address(name)`; the
name "wallet" refers to the wallet itself. Each step may carry `expect`: "ok"
or the literal failure reason; outcomes are compared and mismatches counted in
the report.

Step failures are *outcomes*, not errors: a step that raises a WalletError is
recorded and the run continues. A malformed scenario raises ScenarioError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from multisig import errors as E
from multisig.config import MultisigConfig
from multisig.runtime.host import Host
from multisig.runtime.policy import Immediate, Timelocked
from multisig.types.address import derive_address
from multisig.types.entries import ExecutionReceipt, OwnerChange, Transaction
from multisig.wallet import MultiSigWallet

log = logging.getLogger(__name__)

STEP_OPS = (
    "submit",
    "approve",
    "revoke",
    "execute",
    "cancel",
    "propose_add",
    "propose_remove",
    "approve_change",
    "execute_change",
    "change_requirement",
    "deposit",
    "advance",
)


class ScenarioError(ValueError):
    """The scenario document is malformed."""


@dataclass
class StepOutcome:
    index: int
    op: str
    ok: bool
    result: Any = None
    error: Optional[Dict[str, Any]] = None
    expect: Optional[str] = None

    @property
    def matched(self) -> bool:
        if self.expect is None:
            return True
        if self.expect == "ok":
            return self.ok
        return not self.ok and self.error is not None and self.error.get("reason") == self.expect

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"index": self.index, "op": self.op, "ok": self.ok}
        if self.result is not None:
            d["result"] = self.result
        if self.error is not None:
            d["error"] = self.error
        if self.expect is not None:
            d["expect"] = self.expect
            d["matched"] = self.matched
        return d


@dataclass
class ScenarioReport:
    wallet: MultiSigWallet
    names: Dict[str, str]
    steps: List[StepOutcome] = field(default_factory=list)

    @property
    def mismatches(self) -> int:
        return sum(1 for s in self.steps if not s.matched)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wallet": self.wallet.address,
            "names": dict(self.names),
            "steps": [s.to_dict() for s in self.steps],
            "events": [e.to_dict() for e in self.wallet.events()],
            "state": self.wallet.dump(),
            "mismatches": self.mismatches,
        }


# --------------------------------------------------------------------------- parsing


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ScenarioError(msg)


def _int_field(d: Mapping[str, Any], key: str, *, default: Optional[int] = None) -> int:
    v = d.get(key, default)
    _require(isinstance(v, int) and not isinstance(v, bool), f"'{key}' must be an integer")
    return v  # type: ignore[return-value]


def _hex_field(d: Mapping[str, Any], key: str) -> bytes:
    v = d.get(key, "0x")
    _require(isinstance(v, str), f"'{key}' must be a hex string")
    s = v[2:] if v.startswith(("0x", "0X")) else v
    try:
        return bytes.fromhex(s)
    except ValueError:
        raise ScenarioError(f"'{key}' is not valid hex: {v!r}") from None


class _Names:
    def __init__(self) -> None:
        self.seen: Dict[str, str] = {}
        self.wallet_address: Optional[str] = None

    def __call__(self, name: Any) -> str:
        _require(isinstance(name, str) and name != "", f"address/name must be a non-empty string, got {name!r}")
        if name == "wallet":
            _require(self.wallet_address is not None, "'wallet' is not available here")
            return self.wallet_address  # type: ignore[return-value]
        if name.startswith(("0x", "0X")) and len(name) == 66:
            return name.lower()
        return self.seen.setdefault(name, derive_address(name))


def validate(data: Any) -> None:
    """Raise ScenarioError unless `data` is a well-formed scenario document."""
    _require(isinstance(data, dict), "scenario must be a JSON object")
    owners = data.get("owners")
    _require(isinstance(owners, list) and all(isinstance(o, str) for o in owners), "'owners' must be a list of strings")
    _int_field(data, "required")
    _int_field(data, "balance", default=0)
    tl = data.get("timelock")
    _require(tl is None or (isinstance(tl, int) and not isinstance(tl, bool) and tl >= 0), "'timelock' must be null or seconds")
    accounts = data.get("accounts", {})
    _require(isinstance(accounts, dict), "'accounts' must be an object")
    steps = data.get("steps", [])
    _require(isinstance(steps, list), "'steps' must be a list")
    for i, st in enumerate(steps):
        _require(isinstance(st, dict), f"step {i} must be an object")
        _require(st.get("op") in STEP_OPS, f"step {i}: unknown op {st.get('op')!r}")


# --------------------------------------------------------------------------- running


def _render(out: Any) -> Any:
    if isinstance(out, (ExecutionReceipt, Transaction, OwnerChange)):
        return out.to_dict()
    return out


def _step_fn(w: MultiSigWallet, host: Host, names: _Names, st: Mapping[str, Any]) -> Callable[[], Any]:
    op = st["op"]
    if op == "advance":
        secs = _int_field(st, "seconds")
        _require(secs >= 0, "'seconds' must be non-negative")
        return lambda: host.advance(secs)
    if op == "deposit":
        sender, value = names(st.get("sender")), _int_field(st, "value")
        return lambda: w.deposit(sender, value)

    caller = names(st.get("caller"))
    if op == "submit":
        to, value, data = names(st.get("to")), _int_field(st, "value", default=0), _hex_field(st, "data")
        return lambda: w.submit(caller, to, value, data)
    if op in ("approve", "revoke", "execute", "cancel"):
        tx = _int_field(st, "tx")
        if op == "execute":
            gas = st.get("gas")
            return lambda: w.execute(caller, tx, gas)
        fn = {"approve": w.approve, "revoke": w.revoke, "cancel": w.cancel_transaction}[op]
        return lambda: fn(caller, tx)
    if op in ("propose_add", "propose_remove"):
        owner = names(st.get("owner"))
        fn = w.propose_add_owner if op == "propose_add" else w.propose_remove_owner
        return lambda: fn(caller, owner)
    if op in ("approve_change", "execute_change"):
        change = _int_field(st, "change")
        fn = w.approve_owner_change if op == "approve_change" else w.execute_owner_change
        return lambda: fn(caller, change)
    # change_requirement
    required = _int_field(st, "required")
    return lambda: w.change_requirement(caller, required)


def run_scenario(
    data: Mapping[str, Any],
    *,
    host: Optional[Host] = None,
    config: Optional[MultisigConfig] = None,
) -> ScenarioReport:
    validate(data)
    host = host or Host()
    names = _Names()

    tl = data.get("timelock")
    policy = Immediate() if tl is None else Timelocked(int(tl))
    owners = [names(o) for o in data["owners"]]
    try:
        w = MultiSigWallet(host, owners, data["required"], policy=policy, config=config)
    except E.WalletError as e:
        raise ScenarioError(f"wallet construction failed: {e.reason}") from e
    names.wallet_address = w.address

    host.credit(w.address, _int_field(data, "balance", default=0))
    for name, amount in data.get("accounts", {}).items():
        _require(isinstance(amount, int) and amount >= 0, f"account {name!r}: amount must be a non-negative integer")
        host.credit(names(name), amount)

    report = ScenarioReport(wallet=w, names={})
    for i, st in enumerate(data.get("steps", [])):
        fn = _step_fn(w, host, names, st)
        expect = st.get("expect")
        try:
            out = fn()
        except E.WalletError as e:
            report.steps.append(StepOutcome(i, st["op"], False, error=e.to_dict(), expect=expect))
            log.debug("step failed", extra={"step": i, "reason": e.reason})
            continue
        report.steps.append(StepOutcome(i, st["op"], True, result=_render(out), expect=expect))

    report.names = dict(names.seen)
    return report


def demo_scenario(*, timelock: bool = False, delay: int = 3600) -> Dict[str, Any]:
    """
    The reference walk-through: three owners, required 2, balance 10.

    Immediate: quorum gating, double-execute rejection, revoke, non-owner submit,
    owner addition. Timelocked: execute rejected until the delay has elapsed.
    """
    steps: List[Dict[str, Any]] = [
        {"op": "submit", "caller": "A", "to": "X", "value": 1, "expect": "ok"},
        {"op": "approve", "caller": "A", "tx": 0, "expect": "ok"},
    ]
    if timelock:
        steps += [
            {"op": "approve", "caller": "B", "tx": 0, "expect": "ok"},
            {"op": "execute", "caller": "A", "tx": 0, "expect": E.TIMELOCK_NOT_EXPIRED},
            {"op": "advance", "seconds": delay},
        ]
    else:
        steps += [
            {"op": "execute", "caller": "A", "tx": 0, "expect": E.APPROVALS_BELOW_REQUIRED},
            {"op": "approve", "caller": "B", "tx": 0, "expect": "ok"},
        ]
    steps += [
        {"op": "execute", "caller": "A", "tx": 0, "expect": "ok"},
        {"op": "execute", "caller": "A", "tx": 0, "expect": E.TX_ALREADY_EXECUTED},
        {"op": "submit", "caller": "A", "to": "X", "value": 1, "expect": "ok"},
        {"op": "approve", "caller": "A", "tx": 1, "expect": "ok"},
        {"op": "revoke", "caller": "A", "tx": 1, "expect": "ok"},
        # timelocked wallets check eligibility before quorum
        {
            "op": "execute",
            "caller": "A",
            "tx": 1,
            "expect": E.TIMELOCK_NOT_EXPIRED if timelock else E.APPROVALS_BELOW_REQUIRED,
        },
        {"op": "submit", "caller": "D", "to": "X", "value": 1, "expect": E.NOT_OWNER},
        {"op": "propose_add", "caller": "A", "owner": "D", "expect": "ok"},
        {"op": "approve_change", "caller": "A", "change": 0, "expect": "ok"},
        {"op": "approve_change", "caller": "B", "change": 0, "expect": "ok"},
        {"op": "execute_change", "caller": "A", "change": 0, "expect": "ok"},
    ]
    return {
        "owners": ["A", "B", "C"],
        "required": 2,
        "balance": 10,
        "timelock": delay if timelock else None,
        "steps": steps,
    }


__all__ = [
    "ScenarioError",
    "StepOutcome",
    "ScenarioReport",
    "STEP_OPS",
    "validate",
    "run_scenario",
    "demo_scenario",
]
