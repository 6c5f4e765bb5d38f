"""
multisig.types.address — principal identifiers.

An address is an opaque 32-byte value, canonically rendered as lowercase
0x-prefixed hex (66 chars). Inputs may be bytes or hex strings (with or without
0x) and are normalized by `normalize()`.

`None`, the empty string and the all-zero address are *null* addresses; they are
never valid owners or call targets.
"""

from __future__ import annotations

import hashlib
from typing import Optional, Union

from multisig.errors import ValidationError

AddressLike = Union[str, bytes, bytearray, memoryview, None]

ADDRESS_LEN = 32
NULL_ADDRESS = "0x" + "00" * ADDRESS_LEN


def _to_bytes(v: AddressLike) -> bytes:
    if isinstance(v, (bytes, bytearray, memoryview)):
        return bytes(v)
    if isinstance(v, str):
        s = v.strip()
        if s.startswith(("0x", "0X")):
            s = s[2:]
        return bytes.fromhex(s)
    raise TypeError(f"expected address-like value, got {type(v).__name__}")


def normalize(v: AddressLike) -> Optional[str]:
    """
    Canonical hex form of `v`, or None for a null address.

    Raises:
        ValueError/TypeError for malformed input (wrong length, bad hex, wrong type).
    """
    if v is None or (isinstance(v, str) and v.strip() == ""):
        return None
    b = _to_bytes(v)
    if len(b) != ADDRESS_LEN:
        raise ValueError(f"address must be {ADDRESS_LEN} bytes, got {len(b)}")
    if not any(b):
        return None
    return "0x" + b.hex()


def coerce(v: AddressLike, reason: str) -> str:
    """
    Normalize `v` into a non-null address or raise ValidationError(reason).

    The caller chooses the reason so each context reports its own literal
    ("invalid owner", "invalid target address", ...).
    """
    try:
        addr = normalize(v)
    except (TypeError, ValueError) as e:
        raise ValidationError(reason, data={"value": repr(v)}) from e
    if addr is None:
        raise ValidationError(reason, data={"value": repr(v)})
    return addr


def derive_address(tag: Union[str, bytes]) -> str:
    """Deterministic address from a tag: sha3_256(b"multisig/addr/" || tag)."""
    raw = tag.encode("utf-8") if isinstance(tag, str) else bytes(tag)
    return "0x" + hashlib.sha3_256(b"multisig/addr/" + raw).hexdigest()


def short(addr: Optional[str]) -> str:
    """Abbreviated form for logs: 0x1234…abcd."""
    if not addr:
        return "<null>"
    return f"{addr[:6]}…{addr[-4:]}"


__all__ = [
    "AddressLike",
    "ADDRESS_LEN",
    "NULL_ADDRESS",
    "normalize",
    "coerce",
    "derive_address",
    "short",
]
