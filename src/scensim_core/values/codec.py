# src/scensim_core/values/codec.py
"""
Top-level and nested binary encodings used for arguments, results and storage.

Top encoding is the minimal big-endian form: zero is the empty byte string and
there are no leading zero bytes (unsigned) or no redundant sign bytes (signed).
Nested encoding prefixes variable-length values with a 4-byte big-endian length.
"""
from typing import List, Tuple

from .exceptions import DecodeError


def top_encode_biguint(value: int) -> bytes:
    if value < 0:
        raise ValueError(f"Cannot top-encode negative value {value} as an unsigned integer.")
    if value == 0:
        return b""
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def top_decode_biguint(raw: bytes) -> int:
    return int.from_bytes(raw, "big", signed=False)


def top_encode_bigint(value: int) -> bytes:
    if value == 0:
        return b""
    length = 1
    while True:
        try:
            return value.to_bytes(length, "big", signed=True)
        except OverflowError:
            length += 1


def top_decode_bigint(raw: bytes) -> int:
    return int.from_bytes(raw, "big", signed=True)


def top_encode_u64(value: int) -> bytes:
    if not 0 <= value < 2**64:
        raise ValueError(f"Value {value} does not fit in a u64.")
    return top_encode_biguint(value)


def top_decode_u64(raw: bytes) -> int:
    if len(raw) > 8:
        raise DecodeError(type_name="u64", details=f"input is {len(raw)} bytes long, at most 8 allowed")
    return top_decode_biguint(raw)


def top_encode_bool(value: bool) -> bytes:
    return b"\x01" if value else b""


def top_decode_bool(raw: bytes) -> bool:
    if raw in (b"", b"\x00"):
        return False
    if raw == b"\x01":
        return True
    raise DecodeError(type_name="bool", details=f"invalid encoding 0x{raw.hex()}")


def encode_fixed_width(value: int, num_bytes: int, signed: bool) -> bytes:
    try:
        return value.to_bytes(num_bytes, "big", signed=signed)
    except OverflowError as e:
        kind = "i" if signed else "u"
        raise ValueError(f"Value {value} does not fit in {kind}{num_bytes * 8}.") from e


def nested_encode_bytes(raw: bytes) -> bytes:
    return len(raw).to_bytes(4, "big") + raw


def nested_decode_bytes(raw: bytes, offset: int = 0) -> Tuple[bytes, int]:
    """Decodes one length-prefixed item, returning it together with the next offset."""
    if len(raw) < offset + 4:
        raise DecodeError(type_name="nested bytes", details="input too short for the length prefix")
    length = int.from_bytes(raw[offset:offset + 4], "big")
    start = offset + 4
    end = start + length
    if len(raw) < end:
        raise DecodeError(type_name="nested bytes", details=f"declared length {length} exceeds input")
    return raw[start:end], end


def nested_encode_list(items: List[bytes]) -> bytes:
    return len(items).to_bytes(4, "big") + b"".join(nested_encode_bytes(item) for item in items)


def nested_decode_list(raw: bytes, offset: int = 0) -> Tuple[List[bytes], int]:
    if len(raw) < offset + 4:
        raise DecodeError(type_name="nested list", details="input too short for the item count")
    count = int.from_bytes(raw[offset:offset + 4], "big")
    cursor = offset + 4
    items: List[bytes] = []
    for _ in range(count):
        item, cursor = nested_decode_bytes(raw, cursor)
        items.append(item)
    return items, cursor
