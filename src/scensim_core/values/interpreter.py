# src/scensim_core/values/interpreter.py
"""
Interprets scenario value expressions into raw bytes.

The scenario language is deliberately small. Every argument, storage key, storage
value, balance or address in a scenario file is a string expression, and this module
is the single place that turns such a string into the bytes the VM sees.
"""
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from .address import sc_address, user_address
from .codec import (
    encode_fixed_width,
    nested_encode_bytes,
    top_encode_bigint,
    top_encode_biguint,
)
from .exceptions import ValueExpressionError

logger = logging.getLogger(__name__)

_DECIMAL_REGEX = re.compile(r"^[0-9][0-9,]*$")
_SIGNED_DECIMAL_REGEX = re.compile(r"^[+-][0-9][0-9,]*$")

# (prefix, byte width, signed)
_FIXED_WIDTH_PREFIXES: Tuple[Tuple[str, int, bool], ...] = (
    ("u8:", 1, False), ("u16:", 2, False), ("u32:", 4, False), ("u64:", 8, False),
    ("i8:", 1, True), ("i16:", 2, True), ("i32:", 4, True), ("i64:", 8, True),
)

_STRING_PREFIXES = ("str:", "''", "``")


@dataclass(frozen=True)
class InterpreterContext:
    """Where relative `file:` expressions are resolved from."""
    context_path: Path = field(default_factory=Path.cwd)

    def with_dir(self, directory: Path) -> "InterpreterContext":
        return InterpreterContext(context_path=Path(directory))


def _parse_integer(text: str, expression: str) -> int:
    cleaned = text.replace(",", "")
    try:
        if cleaned.startswith(("0x", "-0x")):
            negative = cleaned.startswith("-")
            value = int(cleaned.lstrip("-")[2:] or "0", 16)
            return -value if negative else value
        return int(cleaned, 10)
    except ValueError:
        raise ValueExpressionError(expression=expression, details=f"'{text}' is not a valid integer.") from None


def _interpret_hex(body: str, expression: str) -> bytes:
    if len(body) % 2 != 0:
        raise ValueExpressionError(expression=expression, details="Hex literal must have an even number of digits.")
    try:
        return bytes.fromhex(body)
    except ValueError:
        raise ValueExpressionError(expression=expression, details=f"'{body}' contains non-hex characters.") from None


def _interpret_binary(body: str, expression: str) -> bytes:
    if not body or any(c not in "01" for c in body):
        raise ValueExpressionError(expression=expression, details="Binary literal must contain only '0' and '1'.")
    num_bytes = (len(body) + 7) // 8
    return int(body, 2).to_bytes(num_bytes, "big")


def _interpret_file(path_str: str, context: InterpreterContext) -> bytes:
    path = (context.context_path / path_str).resolve()
    if path.is_file():
        return path.read_bytes()
    # Contract code files are usually not built when running in-process; the path
    # itself then identifies the registered contract.
    logger.debug(f"File '{path_str}' not found under {context.context_path}; using placeholder code.")
    return f"MISSING:{path_str}".encode("utf-8")


def _interpret_single(expression: str, context: InterpreterContext) -> bytes:
    if expression == "":
        return b""
    if expression == "true":
        return b"\x01"
    if expression == "false":
        return b""

    for prefix in _STRING_PREFIXES:
        if expression.startswith(prefix):
            return expression[len(prefix):].encode("utf-8")

    if expression.startswith("address:"):
        return user_address(expression[len("address:"):]).raw
    if expression.startswith("sc:"):
        return sc_address(expression[len("sc:"):]).raw
    if expression.startswith("file:"):
        return _interpret_file(expression[len("file:"):], context)
    if expression.startswith("nested:"):
        return nested_encode_bytes(interpret(expression[len("nested:"):], context))
    if expression.startswith("biguint:"):
        value = _parse_integer(expression[len("biguint:"):], expression)
        if value < 0:
            raise ValueExpressionError(expression=expression, details="biguint cannot be negative.")
        return nested_encode_bytes(top_encode_biguint(value))
    if expression.startswith("bigint:"):
        value = _parse_integer(expression[len("bigint:"):], expression)
        return nested_encode_bytes(top_encode_bigint(value))

    for prefix, width, signed in _FIXED_WIDTH_PREFIXES:
        if expression.startswith(prefix):
            value = _parse_integer(expression[len(prefix):], expression)
            if not signed and value < 0:
                raise ValueExpressionError(expression=expression, details="Unsigned value cannot be negative.")
            try:
                return encode_fixed_width(value, width, signed)
            except ValueError as e:
                raise ValueExpressionError(expression=expression, details=str(e)) from e

    if expression.startswith("0x"):
        return _interpret_hex(expression[2:], expression)
    if expression.startswith("0b"):
        return _interpret_binary(expression[2:], expression)
    if _DECIMAL_REGEX.match(expression):
        return top_encode_biguint(_parse_integer(expression, expression))
    if _SIGNED_DECIMAL_REGEX.match(expression):
        return top_encode_bigint(_parse_integer(expression, expression))

    raise ValueExpressionError(expression=expression, details="Unrecognized value expression format.")


def interpret(expression: str, context: Optional[InterpreterContext] = None) -> bytes:
    """
    Interprets a scenario value expression, e.g. `"str:sum"`, `"1,000"`,
    `"address:owner"` or `"u32:1|str:abc"`, into raw bytes.
    """
    if not isinstance(expression, str):
        raise ValueExpressionError(
            expression=repr(expression),
            details=f"Value expressions must be strings, got {type(expression).__name__}."
        )
    context = context or InterpreterContext()
    if "|" in expression:
        return b"".join(_interpret_single(part, context) for part in expression.split("|"))
    return _interpret_single(expression, context)


def is_numeric_expression(expression: str) -> bool:
    """
    True for expressions that denote an unsigned number (decimal, hex, binary or an
    unsigned fixed-width type). Such values are compared by integer value, so that
    leading zero bytes do not matter.
    """
    if "|" in expression:
        return False
    if _DECIMAL_REGEX.match(expression):
        return True
    if expression.startswith(("0x", "0b")):
        return True
    return expression.startswith(("u8:", "u16:", "u32:", "u64:"))


def interpret_biguint(expression: str, context: Optional[InterpreterContext] = None) -> int:
    """Interprets an expression that must denote a non-negative integer (balances, amounts)."""
    if expression == "":
        return 0
    if expression.startswith("-"):
        raise ValueExpressionError(expression=expression, details="Amounts cannot be negative.")
    if _DECIMAL_REGEX.match(expression):
        return _parse_integer(expression, expression)
    return int.from_bytes(interpret(expression, context), "big")


def interpret_u64(expression: str, context: Optional[InterpreterContext] = None) -> int:
    value = interpret_biguint(expression, context)
    if value >= 2**64:
        raise ValueExpressionError(expression=expression, details=f"Value {value} does not fit in a u64.")
    return value

