"""
multisig.abi — payload encoding for wallet invocations.

Two concerns live here:

1) Failure reasons. A failed invocation returns raw output bytes; when the
   callee reverted with a message the output uses the standard ``Error(string)``
   layout:

       0x08c379a0 | offset (32B, =0x20) | length (32B) | utf-8 bytes, zero-padded to 32

   `encode_revert` / `decode_revert` build and parse it. Anything else decodes to
   None and the engine falls back to its generic reason.

2) Wallet calls. When an executed transaction targets a wallet, its payload is a
   call into that wallet: ``selector(4B) | head words | tail``. The selector is
   the first 4 bytes of sha3_256 of the canonical signature, e.g.
   ``approve(uint256)``. Supported argument types are ``address`` and ``uint256``
   (one 32-byte word each) and ``bytes`` (offset word in the head, then
   length word + zero-padded data in the tail).
"""

from __future__ import annotations

import hashlib
from typing import Any, Dict, List, Optional, Sequence, Tuple

from multisig.errors import AbiError
from multisig.types.address import ADDRESS_LEN, normalize

WORD = 32
ERROR_SELECTOR = bytes.fromhex("08c379a0")
_UINT_MAX = (1 << 256) - 1

# Wallet methods reachable through a call payload, in declaration order.
WALLET_METHODS: Dict[str, Tuple[str, ...]] = {
    "submit": ("address", "uint256", "bytes"),
    "approve": ("uint256",),
    "revoke": ("uint256",),
    "execute": ("uint256",),
    "cancel_transaction": ("uint256",),
    "propose_add_owner": ("address",),
    "propose_remove_owner": ("address",),
    "approve_owner_change": ("uint256",),
    "execute_owner_change": ("uint256",),
    "change_requirement": ("uint256",),
}


def signature(method: str) -> str:
    """e.g. submit(address,uint256,bytes)"""
    try:
        types = WALLET_METHODS[method]
    except KeyError:
        raise AbiError("unknown method", data={"method": method}) from None
    return f"{method}({','.join(types)})"


def selector(method: str) -> bytes:
    """First 4 bytes of sha3_256(signature)."""
    return hashlib.sha3_256(signature(method).encode("utf-8")).digest()[:4]


_BY_SELECTOR: Dict[bytes, str] = {selector(m): m for m in WALLET_METHODS}


# --------------------------------------------------------------------------- words


def _u256(n: int) -> bytes:
    if isinstance(n, bool) or not isinstance(n, int) or not (0 <= n <= _UINT_MAX):
        raise AbiError("uint256 out of range", data={"value": repr(n)})
    return n.to_bytes(WORD, "big")


def _pad(b: bytes) -> bytes:
    rem = len(b) % WORD
    return b if rem == 0 else b + b"\x00" * (WORD - rem)


def _word(buf: bytes, off: int) -> int:
    if off < 0 or off + WORD > len(buf):
        raise AbiError("payload truncated", data={"offset": off, "size": len(buf)})
    return int.from_bytes(buf[off : off + WORD], "big")


def _read_bytes(buf: bytes, off: int) -> bytes:
    n = _word(buf, off)
    start = off + WORD
    if start + n > len(buf):
        raise AbiError("bytes length exceeds payload", data={"offset": off, "length": n})
    return buf[start : start + n]


# --------------------------------------------------------------------------- revert


def encode_revert(reason: str) -> bytes:
    """Standard Error(string) output for `reason`."""
    msg = reason.encode("utf-8")
    return ERROR_SELECTOR + _u256(WORD) + _u256(len(msg)) + _pad(msg)


def decode_revert(output: Optional[bytes]) -> Optional[str]:
    """
    Extract the reason from an Error(string) output.

    Returns None for outputs shorter than selector + two words, with another
    selector, with inconsistent offset/length, or with non-UTF-8 content.
    """
    if not output or len(output) < 4 + 2 * WORD:
        return None
    if bytes(output[:4]) != ERROR_SELECTOR:
        return None
    body = bytes(output[4:])
    try:
        off = _word(body, 0)
        msg = _read_bytes(body, off)
        return msg.decode("utf-8")
    except (AbiError, UnicodeDecodeError):
        return None


# --------------------------------------------------------------------------- calls


def encode_call(method: str, *args: Any) -> bytes:
    """
    Encode a wallet call, e.g. ``encode_call("approve", 0)`` or
    ``encode_call("submit", addr, 10, b"")``.
    """
    types = WALLET_METHODS.get(method)
    if types is None:
        raise AbiError("unknown method", data={"method": method})
    if len(args) != len(types):
        raise AbiError(
            "argument count mismatch",
            data={"method": method, "expected": len(types), "got": len(args)},
        )

    head: List[bytes] = []
    tail = b""
    head_size = WORD * len(types)
    for t, v in zip(types, args):
        if t == "uint256":
            head.append(_u256(v))
        elif t == "address":
            try:
                addr = normalize(v)
            except (TypeError, ValueError) as e:
                raise AbiError("invalid address argument", data={"value": repr(v)}) from e
            head.append(bytes.fromhex(addr[2:]) if addr else b"\x00" * ADDRESS_LEN)
        else:  # bytes
            if not isinstance(v, (bytes, bytearray, memoryview)):
                raise AbiError("bytes argument expected", data={"value": repr(v)})
            raw = bytes(v)
            head.append(_u256(head_size + len(tail)))
            tail += _u256(len(raw)) + _pad(raw)
    return selector(method) + b"".join(head) + tail


def decode_call(payload: bytes) -> Tuple[str, Tuple[Any, ...]]:
    """
    Decode a wallet call payload into ``(method, args)``.

    Addresses decode to canonical hex (the all-zero word decodes to the null
    address string so validation downstream reports its own reason).

    Raises:
        AbiError on unknown selector or malformed payload.
    """
    payload = bytes(payload)
    if len(payload) < 4:
        raise AbiError("payload too short", data={"size": len(payload)})
    method = _BY_SELECTOR.get(payload[:4])
    if method is None:
        raise AbiError("unknown selector", data={"selector": "0x" + payload[:4].hex()})

    body = payload[4:]
    out: List[Any] = []
    for i, t in enumerate(WALLET_METHODS[method]):
        word = _word(body, i * WORD)
        if t == "uint256":
            out.append(word)
        elif t == "address":
            out.append("0x" + body[i * WORD : (i + 1) * WORD].hex())
        else:
            out.append(_read_bytes(body, word))
    return method, tuple(out)


def method_names() -> Sequence[str]:
    return tuple(WALLET_METHODS)


__all__ = [
    "ERROR_SELECTOR",
    "WALLET_METHODS",
    "signature",
    "selector",
    "encode_revert",
    "decode_revert",
    "encode_call",
    "decode_call",
    "method_names",
]
