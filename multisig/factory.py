"""
multisig.factory — creates wallets on a host and keeps a registry of them.

    factory = WalletFactory(host)
    w = factory.create(creator, [a, b, c], 2, policy=Timelocked(3600))
    factory.wallets_of(a)   # -> (w,)

`wallets_of` answers from *live* membership, so it follows owner changes
executed after creation.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Tuple

from multisig import errors as E
from multisig.config import MultisigConfig
from multisig.runtime.host import Host
from multisig.runtime.policy import PolicyChoice
from multisig.types.address import AddressLike, coerce, normalize
from multisig.wallet import MultiSigWallet

log = logging.getLogger(__name__)


class WalletFactory:
    def __init__(self, host: Host, *, config: Optional[MultisigConfig] = None) -> None:
        self.host = host
        self.config = config
        self._wallets: Dict[str, MultiSigWallet] = {}
        self._creators: Dict[str, str] = {}

    def create(
        self,
        creator: AddressLike,
        owners: Iterable[AddressLike],
        required: int,
        *,
        policy: Optional[PolicyChoice] = None,
    ) -> MultiSigWallet:
        who = coerce(creator, "invalid creator")
        w = MultiSigWallet(self.host, owners, required, policy=policy, config=self.config)
        self._wallets[w.address] = w
        self._creators[w.address] = who
        log.info("wallet instantiated", extra={"wallet": w.address, "creator": who})
        return w

    def get(self, address: AddressLike) -> MultiSigWallet:
        try:
            addr = normalize(address)
        except (TypeError, ValueError):
            addr = None
        w = self._wallets.get(addr) if addr else None
        if w is None:
            raise E.NotFoundError("wallet does not exist", data={"address": str(address)})
        return w

    def creator_of(self, address: AddressLike) -> str:
        return self._creators[self.get(address).address]

    def is_instantiation(self, address: AddressLike) -> bool:
        try:
            self.get(address)
        except E.NotFoundError:
            return False
        return True

    def wallets(self) -> Tuple[MultiSigWallet, ...]:
        return tuple(self._wallets.values())

    def wallets_of(self, owner: AddressLike) -> Tuple[MultiSigWallet, ...]:
        return tuple(w for w in self._wallets.values() if w.is_owner(owner))

    def count(self) -> int:
        return len(self._wallets)


__all__ = ["WalletFactory"]
