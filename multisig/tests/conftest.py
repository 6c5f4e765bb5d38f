# -*- coding: utf-8 -*-
"""
Shared fixtures for multisig tests.

Principals are deterministic 32-byte addresses derived from short names, so a
failing assertion shows the same address on every run:

    A, B, C  — the three initial owners (required = 2)
    D        — a non-owner (later added in governance tests)
    X        — a plain destination account (no call handler)

Call targets registered on the host:

    recorder  — records every call and echoes the payload back
    reverter  — raises Revert("target says no")
    silent    — raises Revert("") (failure without a reason)
    burner    — burns more gas than any forwarded budget
    crasher   — raises an unexpected RuntimeError
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from multisig import Host, MultiSigWallet, Revert, Timelocked
from multisig.config import MultisigConfig, load_config
from multisig.types.address import derive_address

A = derive_address("A")
B = derive_address("B")
C = derive_address("C")
D = derive_address("D")
X = derive_address("X")

OWNERS = (A, B, C)
INITIAL_BALANCE = 10
DELAY = 3600


class Recorder:
    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, ctx) -> bytes:
        self.calls.append({"sender": ctx.sender, "value": ctx.value, "payload": ctx.payload})
        return ctx.payload


def _reverter(ctx) -> bytes:
    raise Revert("target says no")


def _silent(ctx) -> bytes:
    raise Revert("")


def _burner(ctx) -> bytes:
    ctx.gas.debit(10**12)
    return b""


def _crasher(ctx) -> bytes:
    raise RuntimeError("kaboom")


@pytest.fixture
def cfg() -> MultisigConfig:
    # isolated from the process environment
    return load_config(env={})


@pytest.fixture
def host() -> Host:
    return Host(now=1_000)


@pytest.fixture
def wallet(host: Host, cfg: MultisigConfig) -> MultiSigWallet:
    w = MultiSigWallet(host, OWNERS, 2, config=cfg)
    host.credit(w.address, INITIAL_BALANCE)
    return w


@pytest.fixture
def timelocked(host: Host, cfg: MultisigConfig) -> MultiSigWallet:
    w = MultiSigWallet(host, OWNERS, 2, policy=Timelocked(DELAY), config=cfg)
    host.credit(w.address, INITIAL_BALANCE)
    return w


@pytest.fixture
def recorder(host: Host) -> Recorder:
    rec = Recorder()
    rec.address = host.register(derive_address("recorder"), rec)  # type: ignore[attr-defined]
    return rec


@pytest.fixture
def targets(host: Host) -> Dict[str, str]:
    out = {}
    for name, fn in (("reverter", _reverter), ("silent", _silent), ("burner", _burner), ("crasher", _crasher)):
        out[name] = host.register(derive_address(name), fn)
    return out


def approved(w: MultiSigWallet, tx_id: int, *owners: str) -> int:
    for o in owners:
        w.approve(o, tx_id)
    return tx_id
