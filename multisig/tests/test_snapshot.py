from __future__ import annotations

import json

import pytest

from multisig import Host, MultiSigWallet, ValidationError
from multisig.wallet import DUMP_VERSION

from .conftest import A, B, C, D, DELAY, X


def test_dump_is_json_friendly(timelocked):
    tx = timelocked.submit(A, X, 2, b"\xbe\xef")
    timelocked.approve(A, tx)
    timelocked.propose_add_owner(B, D)

    data = json.loads(json.dumps(timelocked.dump()))
    assert data["version"] == DUMP_VERSION
    assert data["owners"] == [A, B, C]
    assert data["balance"] == 10
    assert data["policy"]["kind"] == "timelocked" and data["policy"]["delay"] == DELAY
    assert data["policy"]["eligible_at"] == {"0": timelocked.eligible_at(tx)}
    assert data["transactions"][0] == {
        "id": 0,
        "target": X,
        "value": 2,
        "payload": "0xbeef",
        "executed": False,
        "approvals": [A],
    }
    assert data["owner_changes"][0]["target_owner"] == D


def test_load_restores_state_on_a_new_host(timelocked, host):
    tx = timelocked.submit(A, X, 2)
    timelocked.approve(A, tx)
    timelocked.approve(B, tx)
    cid = timelocked.propose_add_owner(B, D)
    timelocked.approve_owner_change(C, cid)
    data = json.loads(json.dumps(timelocked.dump()))

    other = Host(now=host.now())
    w = MultiSigWallet.load(other, data)
    other.credit(w.address, data["balance"])

    assert w.address == timelocked.address
    assert w.get_owners() == timelocked.get_owners()
    assert w.approval_count(tx) == 2
    assert w.get_owner_change_approvers(cid) == (C,)
    assert w.eligible_at(tx) == timelocked.eligible_at(tx)
    assert w.dump() == timelocked.dump()

    other.advance(DELAY)
    assert w.execute(A, tx).success
    assert other.balance_of(X) == 2


def test_load_rejects_bad_documents(wallet):
    data = wallet.dump()

    with pytest.raises(ValidationError) as ei:
        MultiSigWallet.load(Host(), {**data, "version": 99})
    assert ei.value.reason == "unsupported dump version"

    with pytest.raises(ValidationError) as ei:
        MultiSigWallet.load(Host(), {**data, "owners": [A, A]})
    assert ei.value.reason == "owner is not unique"

    with pytest.raises(ValidationError):
        MultiSigWallet.load(Host(), {**data, "policy": {"kind": "someday"}})

    wallet.submit(A, X, 1)
    bad = wallet.dump()
    bad["transactions"][0]["id"] = 5
    with pytest.raises(ValidationError):
        MultiSigWallet.load(Host(), bad)


def test_load_refuses_an_occupied_address(wallet, host):
    with pytest.raises(ValidationError) as ei:
        MultiSigWallet.load(host, wallet.dump())
    assert ei.value.reason == "address in use"


def test_host_atomic_scope_restores_everything(wallet, host):
    wallet.submit(A, X, 1)
    before = (wallet.dump(), len(host.events), host.balance_of(X))
    with pytest.raises(RuntimeError):
        with host.atomic():
            wallet.approve(A, 0)
            host.credit(X, 3)
            raise RuntimeError("abort")
    assert (wallet.dump(), len(host.events), host.balance_of(X)) == before


def test_immediate_policy_dump_round_trip(host, cfg):
    w = MultiSigWallet(host, [A, B], 1, config=cfg)
    assert w.dump()["policy"] == {"kind": "immediate"}
    clone = MultiSigWallet.load(Host(), w.dump(), config=cfg)
    assert clone.policy.tag == "immediate"


def test_rejected_load_leaves_the_host_untouched(wallet, cfg):
    wallet.submit(A, X, 1)
    good = wallet.dump()
    bad = wallet.dump()
    bad["transactions"][0]["id"] = 5

    other = Host()
    with pytest.raises(ValidationError):
        MultiSigWallet.load(other, bad, config=cfg)
    assert not other.has_handler(good["address"])

    w = MultiSigWallet.load(other, good, config=cfg)
    assert w.get_transaction_count() == 1


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.pop("owners"),
        lambda d: d.pop("required"),
        lambda d: d["policy"].pop("delay"),
        lambda d: d["policy"].update(delay=-1),
        lambda d: d["transactions"][0].pop("target"),
        lambda d: d["transactions"][0].update(payload="0xzz"),
    ],
)
def test_malformed_documents_are_validation_errors(timelocked, cfg, mutate):
    timelocked.submit(A, X, 1)
    data = timelocked.dump()
    mutate(data)
    other = Host()
    with pytest.raises(ValidationError) as ei:
        MultiSigWallet.load(other, data, config=cfg)
    assert ei.value.reason == "malformed dump"
    assert not other.has_handler(data["address"])


def test_load_rejects_approvals_from_strangers(wallet, cfg):
    tx = wallet.submit(A, X, 1)
    wallet.approve(A, tx)

    data = wallet.dump()
    data["transactions"][0]["approvals"] = [A, D]
    with pytest.raises(ValidationError) as ei:
        MultiSigWallet.load(Host(), data, config=cfg)
    assert ei.value.reason == "approval from a non-owner"

    data = wallet.dump()
    data["transactions"][0]["approvals"] = [A, "not-an-address"]
    with pytest.raises(ValidationError) as ei:
        MultiSigWallet.load(Host(), data, config=cfg)
    assert ei.value.reason == "invalid approver"


def test_load_keeps_approvals_of_removed_owners(wallet, cfg):
    tx = wallet.submit(A, X, 1)
    wallet.approve(C, tx)
    cid = wallet.propose_remove_owner(A, C)
    wallet.approve_owner_change(A, cid)
    wallet.approve_owner_change(B, cid)
    wallet.execute_owner_change(A, cid)

    data = wallet.dump()
    assert data["transactions"][0]["approvals"] == [C]
    w = MultiSigWallet.load(Host(), data, config=cfg)
    assert w.approval_count(tx) == 0
    assert w.has_approved(tx, C)
