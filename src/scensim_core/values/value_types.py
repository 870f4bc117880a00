# src/scensim_core/values/value_types.py
"""
Typed scenario values. Each keeps the expression it was built from (`original`)
next to its interpreted form (`value`), so a trace can write back exactly what the
scenario author wrote.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .address import Address
from .codec import top_decode_biguint, top_encode_biguint
from .exceptions import ValueExpressionError
from .interpreter import (
    InterpreterContext,
    interpret,
    interpret_biguint,
    interpret_u64,
    is_numeric_expression,
)

BytesLike = Union[str, bytes, bytearray, "BytesValue"]
IntLike = Union[str, int, "BigUintValue", "U64Value"]
AddressLike = Union[str, Address, "AddressValue"]


@dataclass(frozen=True)
class BytesValue:
    original: str
    value: bytes

    @classmethod
    def of(cls, source: BytesLike, context: Optional[InterpreterContext] = None) -> BytesValue:
        if isinstance(source, BytesValue):
            return source
        if isinstance(source, (bytes, bytearray)):
            return cls(original=f"0x{bytes(source).hex()}" if source else "", value=bytes(source))
        if isinstance(source, Address):
            return cls(original=str(source), value=source.raw)
        return cls(original=source, value=interpret(source, context))

    @classmethod
    def empty(cls) -> BytesValue:
        return cls(original="", value=b"")


@dataclass(frozen=True)
class BigUintValue:
    original: str
    value: int

    @classmethod
    def of(cls, source: IntLike, context: Optional[InterpreterContext] = None) -> BigUintValue:
        if isinstance(source, BigUintValue):
            return source
        if isinstance(source, U64Value):
            return cls(original=source.original, value=source.value)
        if isinstance(source, bool):
            raise ValueExpressionError(expression=repr(source), details="Booleans are not amounts.")
        if isinstance(source, int):
            if source < 0:
                raise ValueExpressionError(expression=str(source), details="Amounts cannot be negative.")
            return cls(original=str(source), value=source)
        return cls(original=source, value=interpret_biguint(source, context))

    @classmethod
    def zero(cls) -> BigUintValue:
        return cls(original="0", value=0)

    def is_zero(self) -> bool:
        return self.value == 0


@dataclass(frozen=True)
class U64Value:
    original: str
    value: int

    @classmethod
    def of(cls, source: IntLike, context: Optional[InterpreterContext] = None) -> U64Value:
        if isinstance(source, U64Value):
            return source
        big = BigUintValue.of(source, context)
        if big.value >= 2**64:
            raise ValueExpressionError(expression=big.original, details="Value does not fit in a u64.")
        return cls(original=big.original, value=big.value)

    @classmethod
    def zero(cls) -> U64Value:
        return cls(original="0", value=0)


@dataclass(frozen=True)
class AddressValue:
    original: str
    value: Address

    @classmethod
    def of(cls, source: AddressLike, context: Optional[InterpreterContext] = None) -> AddressValue:
        if isinstance(source, AddressValue):
            return source
        if isinstance(source, Address):
            return cls(original=str(source), value=source)
        if hasattr(source, "to_address_value"):
            return source.to_address_value()
        raw = interpret(source, context)
        try:
            return cls(original=source, value=Address(raw))
        except ValueError as e:
            raise ValueExpressionError(expression=source, details=str(e)) from e


@dataclass(frozen=True)
class CheckValue:
    """
    An expected value in a check. `*` matches anything; a numeric expectation matches
    any byte string denoting the same unsigned integer; everything else must match
    byte for byte.
    """
    original: str
    expected: Optional[bytes]
    numeric: bool = False

    @classmethod
    def of(cls, source: Union[str, int, bytes, "CheckValue"], context: Optional[InterpreterContext] = None) -> CheckValue:
        if isinstance(source, CheckValue):
            return source
        if isinstance(source, bool):
            raise ValueExpressionError(expression=repr(source), details="Use 'true'/'false' expressions for booleans.")
        if isinstance(source, int):
            return cls(original=str(source), expected=top_encode_biguint(source), numeric=True)
        if isinstance(source, (bytes, bytearray)):
            return cls(original=f"0x{bytes(source).hex()}" if source else "", expected=bytes(source))
        if source == "*":
            return cls.star()
        return cls(original=source, expected=interpret(source, context), numeric=is_numeric_expression(source))

    @classmethod
    def star(cls) -> CheckValue:
        return cls(original="*", expected=None)

    @property
    def is_star(self) -> bool:
        return self.expected is None

    def matches(self, actual: bytes) -> bool:
        if self.expected is None:
            return True
        if self.expected == actual:
            return True
        if self.numeric:
            return top_decode_biguint(self.expected) == top_decode_biguint(actual)
        return False

    def __str__(self) -> str:
        return self.original
