"""
multisig.wallet — MultiSigWallet, the external interface of a wallet instance.

A wallet composes:

    AuthorizationLedger   owners + required
    TransactionRegistry   proposed actions + approvals
    GovernanceRegistry    owner-change proposals + approvals
    ExecutionPolicy       Immediate() or Timelocked(delay)
    ExecutionEngine       execute / execute_owner_change / cancel

and lives on a `Host`. Construction attaches the stateful components to the
host (so host atomic scopes cover them) and registers the wallet as the call
handler for its own address:

* a call with an empty payload is a deposit (Deposit event when value > 0)
* any other payload is decoded with `abi.decode_call` and dispatched to the
  matching operation with `caller = sender`

The second path is how an executed transaction re-enters its wallet; since
every mutating operation holds the wallet's reentrancy guard, such reentry is
rejected with "reentrant call".

Example
-------
    host = Host()
    w = MultiSigWallet(host, [a, b, c], 2)
    host.credit(w.address, 100)
    tx = w.submit(a, dest, 10)
    w.approve(a, tx); w.approve(b, tx)
    w.execute(a, tx)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from multisig import abi
from multisig import errors as E
from multisig.config import MultisigConfig, get_config
from multisig.runtime.engine import ExecutionEngine
from multisig.runtime.gas import DISPATCH_GAS
from multisig.runtime.host import CallContext, Host
from multisig.runtime.policy import (Immediate, PolicyChoice, TimelockPolicy,
                                     Timelocked, build_policy)
from multisig.state.governance import GovernanceRegistry
from multisig.state.ledger import AuthorizationLedger
from multisig.state.transactions import TransactionRegistry
from multisig.types.address import AddressLike, coerce, normalize
from multisig.types.entries import ExecutionReceipt, OwnerChange, Transaction
from multisig.types.events import EventKind, WalletEvent

log = logging.getLogger(__name__)

DUMP_VERSION = 1


class MultiSigWallet:
    def __init__(
        self,
        host: Host,
        owners: Iterable[AddressLike],
        required: int,
        *,
        policy: Optional[PolicyChoice] = None,
        address: Optional[AddressLike] = None,
        config: Optional[MultisigConfig] = None,
    ) -> None:
        self.config = config or get_config()
        self.host = host
        self.ledger = AuthorizationLedger(owners, required, max_owners=self.config.limits.max_owners)

        if address is None:
            self.address = host.new_address("wallet")
        else:
            self.address = coerce(address, "invalid wallet address")
            if host.has_handler(self.address):
                raise E.ValidationError("address in use", data={"address": self.address})

        self.transactions = TransactionRegistry(self.ledger)
        self.governance = GovernanceRegistry(self.ledger)
        self.policy = build_policy(policy, default_delay=self.config.timelock_delay)
        self.engine = ExecutionEngine(
            host,
            self.address,
            ledger=self.ledger,
            transactions=self.transactions,
            governance=self.governance,
            policy=self.policy,
            config=self.config,
        )
        for part in (self.ledger, self.transactions, self.governance, self.policy):
            host.attach(part)
        host.register(self.address, self._on_call)
        log.info(
            "wallet created",
            extra={"wallet": self.address, "owners": self.ledger.owner_count(), "required": required, "policy": self.policy.tag},
        )

    def __repr__(self) -> str:
        return (
            f"MultiSigWallet(address={self.address}, owners={self.ledger.owner_count()}, "
            f"required={self.ledger.required}, policy={self.policy.tag})"
        )

    # ------------------------------------------------------------------ transactions

    def submit(self, caller: AddressLike, to: AddressLike, value: int, data: bytes = b"") -> int:
        """Propose a transaction; returns its id. Does not approve it."""
        with self.engine.operation("submit", caller):
            tx_id = self.transactions.submit(caller, to, value, data, balance=self.balance())
            tx = self.transactions.get(tx_id)
            self.engine.emit(EventKind.SUBMIT, tx_id=tx_id, target=tx.target, value=tx.value, payload=tx.payload)
            return tx_id

    def approve(self, caller: AddressLike, tx_id: int) -> None:
        with self.engine.operation("approve", caller):
            owner = self.transactions.approve(caller, tx_id)
            self.engine.emit(EventKind.APPROVE, tx_id=tx_id, owner=owner)
            at = self.policy.after_approve(tx_id, self.host.now())
            if at is not None:
                self.engine.emit(EventKind.TIMELOCK_SCHEDULED, tx_id=tx_id, eligible_at=at)

    def revoke(self, caller: AddressLike, tx_id: int) -> None:
        with self.engine.operation("revoke", caller):
            owner = self.transactions.revoke(caller, tx_id)
            self.engine.emit(EventKind.REVOKE, tx_id=tx_id, owner=owner)

    def execute(self, caller: AddressLike, tx_id: int, gas: Optional[int] = None) -> ExecutionReceipt:
        return self.engine.execute(caller, tx_id, gas=gas)

    def cancel_transaction(self, caller: AddressLike, tx_id: int) -> Transaction:
        return self.engine.cancel(caller, tx_id)

    # ------------------------------------------------------------------ governance

    def propose_add_owner(self, caller: AddressLike, owner: AddressLike) -> int:
        with self.engine.operation("propose_add", caller):
            change_id = self.governance.propose_add(caller, owner)
            self._emit_change_submitted(change_id)
            return change_id

    def propose_remove_owner(self, caller: AddressLike, owner: AddressLike) -> int:
        with self.engine.operation("propose_remove", caller):
            change_id = self.governance.propose_remove(caller, owner)
            self._emit_change_submitted(change_id)
            return change_id

    def approve_owner_change(self, caller: AddressLike, change_id: int) -> None:
        with self.engine.operation("approve_change", caller):
            owner = self.governance.approve(caller, change_id)
            self.engine.emit(EventKind.OWNER_CHANGE_APPROVED, change_id=change_id, owner=owner)

    def execute_owner_change(self, caller: AddressLike, change_id: int) -> OwnerChange:
        return self.engine.execute_owner_change(caller, change_id)

    def change_requirement(self, caller: AddressLike, required: int) -> None:
        """Owner-gated, not quorum-gated: any single owner may change the threshold."""
        with self.engine.operation("change_requirement", caller):
            self.ledger.set_required(caller, required)
            self.engine.emit(EventKind.REQUIREMENT_CHANGE, required=required)

    def _emit_change_submitted(self, change_id: int) -> None:
        ch = self.governance.get(change_id)
        self.engine.emit(
            EventKind.OWNER_CHANGE_SUBMITTED,
            change_id=change_id,
            owner=ch.target_owner,
            is_addition=ch.is_addition,
        )

    # ------------------------------------------------------------------ funds

    def deposit(self, sender: AddressLike, amount: int) -> None:
        """Move `amount` from `sender`'s host balance into the wallet."""
        with self.engine.operation("deposit", sender):
            self.host.transfer(sender, self.address, amount)
            if amount > 0:
                self.engine.emit(EventKind.DEPOSIT, sender=normalize(sender), value=amount)

    def balance(self) -> int:
        return self.host.balance_of(self.address)

    # ------------------------------------------------------------------ call handler

    def _on_call(self, ctx: CallContext) -> bytes:
        if not ctx.payload:
            if ctx.value > 0:
                self.engine.emit(EventKind.DEPOSIT, sender=ctx.sender, value=ctx.value)
            return b""

        method, args = abi.decode_call(ctx.payload)
        ctx.gas.debit(DISPATCH_GAS, reason=method)
        log.debug("dispatching call", extra={"method": method, "sender": ctx.sender})
        if method == "execute":
            # runs on what is left of the forwarded budget, not a fresh one
            try:
                self.execute(ctx.sender, *args, gas=ctx.gas.remaining)
            except E.OutOfGas as e:
                raise E.Revert(e.reason) from e
            return b""
        out = getattr(self, method)(ctx.sender, *args)
        if isinstance(out, int) and not isinstance(out, bool):
            return out.to_bytes(32, "big")
        return b""

    # ------------------------------------------------------------------ queries

    def get_transaction(self, tx_id: int) -> Transaction:
        return self.transactions.get(tx_id)

    def get_owner_change(self, change_id: int) -> OwnerChange:
        return self.governance.get(change_id)

    def get_pending_transactions(self) -> Tuple[int, ...]:
        return self.transactions.pending_ids()

    def get_pending_owner_changes(self) -> Tuple[int, ...]:
        return self.governance.pending_ids()

    def get_owners(self) -> Tuple[str, ...]:
        return self.ledger.owners()

    def get_transaction_count(self) -> int:
        return self.transactions.count_entries()

    def get_owner_change_count(self) -> int:
        return self.governance.count_entries()

    def get_required(self) -> int:
        return self.ledger.required

    def approval_count(self, tx_id: int) -> int:
        return self.transactions.count(tx_id)

    def owner_change_approval_count(self, change_id: int) -> int:
        return self.governance.count(change_id)

    def get_approvers(self, tx_id: int) -> Tuple[str, ...]:
        return self.transactions.approvers(tx_id)

    def get_owner_change_approvers(self, change_id: int) -> Tuple[str, ...]:
        return self.governance.approvers(change_id)

    def has_approved(self, tx_id: int, owner: AddressLike) -> bool:
        addr = normalize(owner)
        return addr is not None and self.transactions.has_approved(tx_id, addr)

    def is_owner(self, addr: AddressLike) -> bool:
        return self.ledger.is_owner(addr)

    def eligible_at(self, tx_id: int) -> int:
        return self.policy.eligible_at(tx_id)

    def events(self, kind: Optional[EventKind] = None) -> Tuple[WalletEvent, ...]:
        return self.host.events.events(kind, wallet=self.address)

    # ------------------------------------------------------------------ export

    def dump(self) -> Dict[str, Any]:
        """JSON-friendly snapshot of the wallet state (balances stay with the host)."""
        return {
            "version": DUMP_VERSION,
            "address": self.address,
            "owners": list(self.ledger.owners()),
            "required": self.ledger.required,
            "balance": self.balance(),
            "policy": self.policy.to_dict(),
            "transactions": self.transactions.dump(),
            "owner_changes": self.governance.dump(),
        }

    @classmethod
    def load(
        cls,
        host: Host,
        data: Dict[str, Any],
        *,
        config: Optional[MultisigConfig] = None,
    ) -> "MultiSigWallet":
        """
        Rebuild a wallet from `dump()` output on `host`. Owners and threshold are
        validated exactly like construction.

        The whole document is parsed into detached components first; the wallet
        is registered on `host` only once every part has loaded, so a rejected
        document leaves the host untouched.
        """
        cfg = config or get_config()
        try:
            version = int(data.get("version", DUMP_VERSION))
            if version != DUMP_VERSION:
                raise E.ValidationError("unsupported dump version", data={"version": version})

            pol = data.get("policy") or {"kind": "immediate"}
            if pol.get("kind") == "timelocked":
                choice: PolicyChoice = Timelocked(int(pol["delay"]))
            elif pol.get("kind", "immediate") == "immediate":
                choice = Immediate()
            else:
                raise E.ValidationError("unknown policy kind", data={"kind": pol.get("kind")})

            ledger = AuthorizationLedger(data["owners"], int(data["required"]), max_owners=cfg.limits.max_owners)
            transactions = TransactionRegistry(ledger)
            transactions.load(list(data.get("transactions", [])))
            governance = GovernanceRegistry(ledger)
            governance.load(list(data.get("owner_changes", [])))
            # approvals may only come from current owners or owners touched by an executed change
            members = set(ledger.owners()) | {c.target_owner for c in governance.entries() if c.executed}
            transactions.check_approvers(members)
            governance.check_approvers(members)
            policy = build_policy(choice, default_delay=cfg.timelock_delay)
            if isinstance(policy, TimelockPolicy):
                policy.load(pol.get("eligible_at", {}))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise E.ValidationError("malformed dump", data={"error": repr(e)}) from e

        w = cls(host, ledger.owners(), ledger.required, policy=choice, address=data.get("address"), config=cfg)
        w.transactions.restore(transactions.snapshot())
        w.governance.restore(governance.snapshot())
        w.policy.restore(policy.snapshot())  # type: ignore[arg-type]
        return w


__all__ = ["MultiSigWallet", "DUMP_VERSION"]
