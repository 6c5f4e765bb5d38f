"""
multisig.runtime.engine — ExecutionEngine: the only component that performs
external effects or mutates owner membership.

Entry points (all reentrancy-guarded):

    execute(caller, tx_id, gas=None)        -> ExecutionReceipt
    execute_owner_change(caller, change_id) -> OwnerChange
    cancel(caller, tx_id)                   -> Transaction

`execute` check order
---------------------
1. guard acquired (else "reentrant call")
2. policy.before_execute (timelock; "timelock not expired")
3. caller is an owner ("not owner")
4. tx exists / not executed ("tx does not exist" / "tx already executed")
5. live approvals ≥ required ("approvals < required")
6. value ≤ wallet balance ("insufficient balance")
7. gas covers the cleanup reserve plus the call's intrinsic cost ("insufficient gas")
8. inside an atomic scope: mark executed, *then* invoke the target with
   `gas - call_gas_reserve`
9. on failure the scope restores the executed flag and balances, an
   ExecutionFailure event is recorded after the rollback and ExecutionError is
   raised with the decoded Error(string) reason or the configured generic one

`operation()` is the shared wrapper the wallet facade uses for its other
mutating operations: logging context, guard, atomic scope and metrics.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from multisig import abi
from multisig import errors as E
from multisig import metrics
from multisig.config import MultisigConfig
from multisig.logging import scope as log_scope
from multisig.runtime.gas import intrinsic_call_gas
from multisig.runtime.guard import ReentrancyGuard
from multisig.runtime.host import Host
from multisig.runtime.policy import ExecutionPolicy
from multisig.state.governance import GovernanceRegistry
from multisig.state.ledger import AuthorizationLedger
from multisig.state.transactions import TransactionRegistry
from multisig.types.address import AddressLike
from multisig.types.entries import ExecutionReceipt, OwnerChange, Transaction
from multisig.types.events import EventKind

log = logging.getLogger(__name__)


class ExecutionEngine:
    def __init__(
        self,
        host: Host,
        address: str,
        *,
        ledger: AuthorizationLedger,
        transactions: TransactionRegistry,
        governance: GovernanceRegistry,
        policy: ExecutionPolicy,
        config: MultisigConfig,
    ) -> None:
        self.host = host
        self.address = address
        self.ledger = ledger
        self.transactions = transactions
        self.governance = governance
        self.policy = policy
        self.config = config
        self.guard = ReentrancyGuard()

    # ------------------------------------------------------------------ plumbing

    def emit(self, kind: EventKind, **fields: Any) -> None:
        self.host.events.emit(self.address, kind, **fields)

    @contextmanager
    def operation(self, op: str, caller: Optional[AddressLike] = None, *, atomic: bool = True) -> Iterator[None]:
        """
        Run a mutating operation: guarded, optionally inside a host atomic scope,
        counted in metrics. Failures propagate unchanged.
        """
        with log_scope(wallet=self.address, op=op, caller=caller):
            try:
                with self.guard(op):
                    if atomic:
                        with self.host.atomic():
                            yield
                    else:
                        yield
            except E.WalletError as e:
                metrics.observe_op(op, e)
                log.debug("operation rejected", extra={"reason": e.reason, "code": e.code})
                raise
            metrics.observe_op(op)

    # ------------------------------------------------------------------ execute

    def execute(self, caller: AddressLike, tx_id: int, *, gas: Optional[int] = None) -> ExecutionReceipt:
        gas = self.config.gas.execute_gas if gas is None else int(gas)
        with self.operation("execute", caller, atomic=False):
            self.policy.before_execute(tx_id, self.host.now())
            self.ledger.require_owner(caller)
            tx = self.transactions.get(tx_id)
            if tx.executed:
                raise E.StateConflictError(E.TX_ALREADY_EXECUTED, entry_id=tx_id)
            approvals = self.transactions.count(tx_id)
            if approvals < self.ledger.required:
                raise E.QuorumError(E.APPROVALS_BELOW_REQUIRED, approvals=approvals, required=self.ledger.required)
            balance = self.host.balance_of(self.address)
            if tx.value > balance:
                raise E.InsufficientBalance(required=tx.value, available=balance)
            reserve = self.config.gas.call_gas_reserve
            if gas < reserve + intrinsic_call_gas(tx.payload):
                raise E.OutOfGas(limit=gas, reserve=reserve)

            try:
                receipt = self._invoke(tx, gas - reserve)
            except E.ExecutionError as e:
                # the atomic scope has already rolled back; record the failure outside it
                self.emit(EventKind.EXECUTION_FAILURE, tx_id=tx_id, reason=e.reason)
                metrics.observe_execution("transaction", False)
                log.warning("execution failed", extra={"tx_id": tx_id, "reason": e.reason})
                raise

            metrics.observe_execution("transaction", True, receipt.gas_used)
            log.info("executed", extra={"tx_id": tx_id, "gas_used": receipt.gas_used})
            return receipt

    def _invoke(self, tx: Transaction, forward_gas: int) -> ExecutionReceipt:
        with self.host.atomic():
            self.transactions.mark_executed(tx.id)
            result = self.host.call(self.address, tx.target, tx.value, tx.payload, gas=forward_gas)
            if not result.success:
                reason = abi.decode_revert(result.output) or self.config.generic_revert_reason
                raise E.ExecutionError(reason, output=result.output, tx_id=tx.id)
            self.emit(EventKind.EXECUTION, tx_id=tx.id, gas_used=result.gas_used)
        return ExecutionReceipt(tx_id=tx.id, success=True, output=result.output, gas_used=result.gas_used)

    # ------------------------------------------------------------------ owner changes

    def execute_owner_change(self, caller: AddressLike, change_id: int) -> OwnerChange:
        with self.operation("execute_change", caller):
            self.ledger.require_owner(caller)
            change = self.governance.get(change_id)
            if change.executed:
                raise E.StateConflictError(E.CHANGE_ALREADY_EXECUTED, entry_id=change_id)
            approvals = self.governance.count(change_id)
            if approvals < self.ledger.required:
                raise E.QuorumError(E.NOT_ENOUGH_APPROVALS, approvals=approvals, required=self.ledger.required)

            # the owner set may have moved since the proposal was made
            if change.is_addition:
                self.governance.check_addition(change.target_owner)
            else:
                self.governance.check_removal(change.target_owner)

            done = self.governance.mark_executed(change_id)
            if change.is_addition:
                self.ledger.add_owner(change.target_owner)
                self.emit(EventKind.OWNER_ADDITION, change_id=change_id, owner=change.target_owner)
            else:
                self.ledger.remove_owner(change.target_owner)
                self.emit(EventKind.OWNER_REMOVAL, change_id=change_id, owner=change.target_owner)
            metrics.observe_execution("owner_change", True)
            log.info("owner change executed", extra={"change_id": change_id, "change": change.kind})
            return done

    # ------------------------------------------------------------------ cancel

    def cancel(self, caller: AddressLike, tx_id: int) -> Transaction:
        with self.operation("cancel", caller):
            self.ledger.require_owner(caller)
            tx = self.transactions.get(tx_id)
            if tx.executed:
                raise E.StateConflictError(E.TX_ALREADY_EXECUTED, entry_id=tx_id)
            approvals = self.transactions.count(tx_id)
            if approvals < self.ledger.required:
                raise E.QuorumError(
                    E.NOT_ENOUGH_APPROVALS_TO_CANCEL, approvals=approvals, required=self.ledger.required
                )
            done = self.transactions.mark_executed(tx_id)
            self.emit(EventKind.TRANSACTION_CANCELLED, tx_id=tx_id)
            metrics.observe_execution("cancel", True)
            log.info("transaction cancelled", extra={"tx_id": tx_id})
            return done


__all__ = ["ExecutionEngine"]
