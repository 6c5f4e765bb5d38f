from __future__ import annotations

import hashlib

import pytest

from multisig import AbiError, CallResult, Revert
from multisig.abi import (ERROR_SELECTOR, WALLET_METHODS, decode_call,
                          decode_revert, encode_call, encode_revert,
                          method_names, selector, signature)
from multisig.runtime.gas import CALL_BASE_GAS

from .conftest import A, X


def test_encode_revert_layout():
    out = encode_revert("not owner")
    assert out[:4] == ERROR_SELECTOR == bytes.fromhex("08c379a0")
    assert int.from_bytes(out[4:36], "big") == 32
    assert int.from_bytes(out[36:68], "big") == len("not owner")
    assert out[68:77] == b"not owner"
    assert len(out) == 4 + 32 * 3
    assert decode_revert(out) == "not owner"


@pytest.mark.parametrize(
    "output",
    [
        None,
        b"",
        ERROR_SELECTOR,
        encode_revert("short")[:67],
        b"\xde\xad\xbe\xef" + encode_revert("other selector")[4:],
        ERROR_SELECTOR + (32).to_bytes(32, "big") + (500).to_bytes(32, "big") + b"x" * 32,
        ERROR_SELECTOR + (32).to_bytes(32, "big") + (2).to_bytes(32, "big") + b"\xff\xfe" + b"\x00" * 30,
    ],
)
def test_decode_revert_returns_none_for_undecodable_output(output):
    assert decode_revert(output) is None


def test_empty_reason_round_trips_to_empty_string():
    assert decode_revert(encode_revert("")) == ""


def test_selectors_are_sha3_of_signature():
    assert signature("submit") == "submit(address,uint256,bytes)"
    assert selector("approve") == hashlib.sha3_256(b"approve(uint256)").digest()[:4]
    assert len({selector(m) for m in WALLET_METHODS}) == len(WALLET_METHODS)
    assert "execute_owner_change" in method_names()


def test_encode_decode_call():
    payload = encode_call("submit", X, 7, b"\x01\x02\x03")
    assert payload[:4] == selector("submit")
    # selector + 3 head words + length word + one padded data word
    assert len(payload) == 4 + 32 * 5
    assert decode_call(payload) == ("submit", (X, 7, b"\x01\x02\x03"))

    assert decode_call(encode_call("propose_add_owner", A)) == ("propose_add_owner", (A,))
    assert decode_call(encode_call("approve", 3)) == ("approve", (3,))


@pytest.mark.parametrize(
    "method, args",
    [
        ("transfer", (1,)),
        ("approve", ()),
        ("approve", (-1,)),
        ("approve", (1 << 256,)),
        ("submit", (X, 1, "not-bytes")),
        ("propose_add_owner", ("0x1234",)),
    ],
)
def test_encode_call_rejects_bad_arguments(method, args):
    with pytest.raises(AbiError):
        encode_call(method, *args)


@pytest.mark.parametrize(
    "payload",
    [
        b"",
        b"\x00\x01",
        b"\xff\xff\xff\xff" + b"\x00" * 32,
        selector("approve"),
        selector("submit") + b"\x00" * 64,
    ],
)
def test_decode_call_rejects_malformed_payloads(payload):
    with pytest.raises(AbiError):
        decode_call(payload)


def test_host_encodes_handler_reverts(host):
    def handler(ctx):
        raise Revert("custom failure")

    target = host.register(X, handler)
    res = host.call(A, target, 0, b"", gas=100_000)
    assert isinstance(res, CallResult)
    assert not res.success
    assert res.revert_reason == "custom failure"
    assert res.gas_used == CALL_BASE_GAS


def test_host_call_rolls_back_value_on_failure(host):
    host.credit(A, 5)

    def handler(ctx):
        raise Revert("no")

    host.register(X, handler)
    res = host.call(A, X, 5, b"", gas=100_000)
    assert not res.success
    assert host.balance_of(A) == 5 and host.balance_of(X) == 0


def test_host_call_without_handler_is_a_transfer(host):
    host.credit(A, 5)
    res = host.call(A, X, 2, gas=10_000)
    assert res.success and res.output == b""
    assert host.balance_of(X) == 2


def test_host_call_insufficient_funds_reverts(host):
    res = host.call(A, X, 1, gas=10_000)
    assert not res.success
    assert res.revert_reason == "insufficient balance"
