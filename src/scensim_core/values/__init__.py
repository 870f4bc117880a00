# src/scensim_core/values/__init__.py
from .address import Address, derive_contract_address, sc_address, user_address
from .codec import (
    nested_decode_bytes,
    nested_decode_list,
    nested_encode_bytes,
    nested_encode_list,
    top_decode_bigint,
    top_decode_biguint,
    top_decode_bool,
    top_decode_u64,
    top_encode_bigint,
    top_encode_biguint,
    top_encode_bool,
    top_encode_u64,
)
from .exceptions import DecodeError, ValueExpressionError
from .interpreter import (
    InterpreterContext,
    interpret,
    interpret_biguint,
    interpret_u64,
    is_numeric_expression,
)
from .value_types import AddressValue, BigUintValue, BytesValue, CheckValue, U64Value

__all__ = [
    # Addresses
    "Address", "derive_contract_address", "sc_address", "user_address",
    # Codec
    "nested_decode_bytes", "nested_decode_list", "nested_encode_bytes", "nested_encode_list",
    "top_decode_bigint", "top_decode_biguint", "top_decode_bool", "top_decode_u64",
    "top_encode_bigint", "top_encode_biguint", "top_encode_bool", "top_encode_u64",
    # Interpreter
    "InterpreterContext", "interpret", "interpret_biguint", "interpret_u64", "is_numeric_expression",
    # Typed values
    "AddressValue", "BigUintValue", "BytesValue", "CheckValue", "U64Value",
    # Exceptions
    "DecodeError", "ValueExpressionError",
]
