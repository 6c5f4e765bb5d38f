"""
multisig — multi-party transaction authorization wallets.

A group of owners must jointly approve an action (a value transfer or an
arbitrary invocation) before it executes, optionally after a mandatory delay.
The same quorum mechanism governs changes to the owner set.

Public surface (re-exported):
    MultiSigWallet                 : wallet facade (submit/approve/revoke/execute/...)
    WalletFactory                  : creates and tracks wallets on a host
    Host                           : in-memory hosting environment
    Immediate, Timelocked          : execution policy choices
    Transaction, OwnerChange,
    ExecutionReceipt               : records
    EventKind, WalletEvent         : notifications
    WalletError (+ subclasses)     : typed failures, see multisig.errors
"""

from __future__ import annotations

__version__ = "0.1.0"

from .errors import (AbiError, AuthorizationError, ExecutionError,
                     InsufficientBalance, NotFoundError, OutOfGas, QuorumError,
                     ReentrancyError, Revert, StateConflictError,
                     TimelockError, ValidationError, WalletError)
from .factory import WalletFactory
from .runtime.host import CallContext, CallResult, Host
from .runtime.policy import Immediate, Timelocked
from .types import (EventKind, ExecutionReceipt, OwnerChange, Transaction,
                    WalletEvent)
from .wallet import MultiSigWallet

__all__ = [
    "__version__",
    "MultiSigWallet",
    "WalletFactory",
    "Host",
    "CallContext",
    "CallResult",
    "Immediate",
    "Timelocked",
    "Transaction",
    "OwnerChange",
    "ExecutionReceipt",
    "EventKind",
    "WalletEvent",
    "WalletError",
    "ValidationError",
    "InsufficientBalance",
    "AbiError",
    "AuthorizationError",
    "NotFoundError",
    "StateConflictError",
    "QuorumError",
    "TimelockError",
    "ReentrancyError",
    "ExecutionError",
    "OutOfGas",
    "Revert",
]
