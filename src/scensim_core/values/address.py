# src/scensim_core/values/address.py
from __future__ import annotations

import hashlib
from dataclasses import dataclass

from ..constants import (
    ADDRESS_LENGTH,
    ADDRESS_PADDING_BYTE,
    SC_ADDRESS_NUM_LEADING_ZEROS,
)
from .exceptions import ValueExpressionError


@dataclass(frozen=True, order=True)
class Address:
    """
    A fixed-width, 32-byte account identifier.

    Immutable and hashable so it can key the world-state account map directly.
    """
    raw: bytes

    def __post_init__(self):
        if not isinstance(self.raw, (bytes, bytearray)):
            raise TypeError(f"Address requires bytes, got {type(self.raw).__name__}.")
        if len(self.raw) != ADDRESS_LENGTH:
            raise ValueError(f"Address must be exactly {ADDRESS_LENGTH} bytes, got {len(self.raw)}.")
        object.__setattr__(self, 'raw', bytes(self.raw))

    @classmethod
    def zero(cls) -> Address:
        return cls(bytes(ADDRESS_LENGTH))

    @classmethod
    def from_hex(cls, hex_str: str) -> Address:
        cleaned = hex_str[2:] if hex_str.startswith("0x") else hex_str
        return cls(bytes.fromhex(cleaned))

    def hex(self) -> str:
        return self.raw.hex()

    def is_smart_contract(self) -> bool:
        return self.raw[:SC_ADDRESS_NUM_LEADING_ZEROS] == bytes(SC_ADDRESS_NUM_LEADING_ZEROS)

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return f"0x{self.raw.hex()}"

    def __repr__(self) -> str:
        printable = self.raw.rstrip(ADDRESS_PADDING_BYTE).lstrip(b"\x00")
        if printable and all(32 <= b < 127 for b in printable):
            return f"Address({printable.decode('ascii')!r})"
        return f"Address(0x{self.raw.hex()})"


def _pad_name(name: str, width: int, expression: str) -> bytes:
    encoded = name.encode("utf-8")
    if len(encoded) > width:
        raise ValueExpressionError(
            expression=expression,
            details=f"Name '{name}' is {len(encoded)} bytes long; at most {width} bytes fit in an address."
        )
    return encoded + ADDRESS_PADDING_BYTE * (width - len(encoded))


def user_address(name: str) -> Address:
    """`address:name` → the name right-padded with '_' to 32 bytes."""
    return Address(_pad_name(name, ADDRESS_LENGTH, f"address:{name}"))


def sc_address(name: str) -> Address:
    """`sc:name` → 8 zero bytes followed by the name right-padded with '_' to 24 bytes."""
    width = ADDRESS_LENGTH - SC_ADDRESS_NUM_LEADING_ZEROS
    return Address(bytes(SC_ADDRESS_NUM_LEADING_ZEROS) + _pad_name(name, width, f"sc:{name}"))


def derive_contract_address(creator: Address, creator_nonce: int) -> Address:
    """
    Deterministically derives the address of a contract deployed by `creator` at
    `creator_nonce`. The result carries the smart-contract prefix and keeps the
    creator's last two bytes, so identical inputs always give the identical address.
    """
    if creator_nonce < 0:
        raise ValueError(f"Creator nonce must be non-negative, got {creator_nonce}.")
    digest = hashlib.sha256(creator.raw + creator_nonce.to_bytes(8, "big")).digest()
    body_len = ADDRESS_LENGTH - SC_ADDRESS_NUM_LEADING_ZEROS - 2
    return Address(bytes(SC_ADDRESS_NUM_LEADING_ZEROS) + digest[:body_len] + creator.raw[-2:])
