from __future__ import annotations

import pytest

from multisig import (AuthorizationError, EventKind, ExecutionError,
                      TimelockError)
from multisig.runtime.policy import (ImmediatePolicy, Timelocked,
                                     TimelockPolicy, build_policy)

from .conftest import A, B, C, DELAY, X, approved


def test_first_approval_schedules_eligibility(timelocked, host):
    tx = timelocked.submit(A, X, 1)
    assert timelocked.eligible_at(tx) == 0

    timelocked.approve(A, tx)
    at = host.now() + DELAY
    assert timelocked.eligible_at(tx) == at
    sched = timelocked.events(EventKind.TIMELOCK_SCHEDULED)
    assert len(sched) == 1 and sched[0]["eligible_at"] == at

    host.advance(100)
    timelocked.approve(B, tx)
    assert timelocked.eligible_at(tx) == at
    assert len(timelocked.events(EventKind.TIMELOCK_SCHEDULED)) == 1


def test_execute_before_and_after_delay(timelocked, host):
    tx = approved(timelocked, timelocked.submit(A, X, 1), A, B)
    at = timelocked.eligible_at(tx)

    with pytest.raises(TimelockError) as ei:
        timelocked.execute(A, tx)
    assert ei.value.reason == "timelock not expired"
    assert ei.value.data == {"eligible_at": at, "now": host.now()}

    host.set_time(at - 1)
    with pytest.raises(TimelockError):
        timelocked.execute(A, tx)

    host.set_time(at)
    assert timelocked.execute(A, tx).success
    assert host.balance_of(X) == 1


def test_never_approved_transaction_is_not_eligible(timelocked, host):
    tx = timelocked.submit(A, X, 1)
    host.advance(DELAY * 10)
    with pytest.raises(TimelockError):
        timelocked.execute(A, tx)


def test_timelock_checked_before_owner_and_existence(timelocked):
    with pytest.raises(TimelockError):
        timelocked.execute(A, 123)


def test_revoke_and_reapprove_do_not_move_eligibility(timelocked, host):
    tx = timelocked.submit(A, X, 1)
    timelocked.approve(A, tx)
    at = timelocked.eligible_at(tx)

    host.advance(DELAY // 2)
    timelocked.revoke(A, tx)
    timelocked.approve(A, tx)
    timelocked.approve(C, tx)
    assert timelocked.eligible_at(tx) == at

    host.set_time(at)
    assert timelocked.execute(B, tx).success


def test_rejected_approval_leaves_no_timestamp(timelocked):
    tx = timelocked.submit(A, X, 1)
    with pytest.raises(AuthorizationError):
        timelocked.approve(X, tx)
    assert timelocked.eligible_at(tx) == 0
    assert timelocked.events(EventKind.TIMELOCK_SCHEDULED) == ()


def test_failed_execution_keeps_eligibility(timelocked, host, targets):
    tx = approved(timelocked, timelocked.submit(A, targets["reverter"], 1), A, B)
    at = timelocked.eligible_at(tx)
    host.set_time(at)
    with pytest.raises(ExecutionError):
        timelocked.execute(A, tx)
    assert timelocked.eligible_at(tx) == at


def test_quorum_still_required_after_delay(timelocked, host):
    from multisig import QuorumError

    tx = approved(timelocked, timelocked.submit(A, X, 1), A)
    host.advance(DELAY)
    with pytest.raises(QuorumError):
        timelocked.execute(A, tx)


def test_build_policy_defaults():
    assert isinstance(build_policy(None, default_delay=5), ImmediatePolicy)
    p = build_policy(Timelocked(), default_delay=86_400)
    assert isinstance(p, TimelockPolicy) and p.delay == 86_400
    assert build_policy(Timelocked(0), default_delay=86_400).delay == 0
    with pytest.raises(TypeError):
        build_policy("later", default_delay=1)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        TimelockPolicy(-1)


def test_zero_delay_still_requires_an_approval(cfg):
    from multisig import Host, MultiSigWallet

    host = Host(now=0)
    w = MultiSigWallet(host, [A, B], 1, policy=Timelocked(0), config=cfg)
    host.credit(w.address, 1)
    tx = w.submit(A, X, 1)
    with pytest.raises(TimelockError):
        w.execute(A, tx)
    w.approve(A, tx)
    assert w.execute(A, tx).success
