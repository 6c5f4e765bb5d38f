"""
multisig.types — small, dependency-light records shared across the wallet.

Public surface (re-exported):
    Transaction, OwnerChange      : Dataclasses — registry entries
    ExecutionReceipt              : Dataclass — result of a successful execute
    EventKind, WalletEvent        : Notification kind enum + record
"""

from __future__ import annotations

from .entries import ExecutionReceipt, OwnerChange, Transaction
from .events import EventKind, WalletEvent

__all__ = [
    "Transaction",
    "OwnerChange",
    "ExecutionReceipt",
    "EventKind",
    "WalletEvent",
]
