"""
multisig.state — wallet-owned state components.

    AuthorizationLedger  : owner set + quorum threshold
    TransactionRegistry  : proposed actions + approvals (revocable)
    GovernanceRegistry   : owner-change proposals + approvals (not revocable)

Each component exposes `snapshot()` / `restore()` so the host can roll it back
as part of an atomic scope.
"""

from __future__ import annotations

from .governance import GovernanceRegistry
from .ledger import AuthorizationLedger, validate_owner_set
from .transactions import TransactionRegistry

__all__ = [
    "AuthorizationLedger",
    "validate_owner_set",
    "TransactionRegistry",
    "GovernanceRegistry",
]
