# src/scensim_core/values/exceptions.py
"""
Diagnosable exceptions for the value-expression layer.

A malformed expression is a construction-time error: it is raised the moment the
expression is interpreted, which is when a builder setter receives it or when the
parser reads it from a scenario file.
"""
from dataclasses import dataclass

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class ValueExpressionError(DiagnosableError):
    """Raised when a scenario value expression cannot be interpreted."""
    expression: str
    details: str

    def __str__(self):
        return f"Invalid value expression '{self.expression}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Value Expression",
            details=self.details,
            suggestion=(
                "Use one of the supported forms: decimal ('1,000'), hex ('0x0a'), 'str:...', "
                "'address:...', 'sc:...', 'u64:...', 'biguint:...', 'nested:...', 'file:...', "
                "optionally joined with '|'."
            ),
            context={'user_input': self.expression}
        )


@dataclass()
class DecodeError(DiagnosableError):
    """Raised when raw bytes cannot be decoded into the requested type."""
    type_name: str
    details: str

    def __str__(self):
        return f"Cannot decode {self.type_name}: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Value Decode Error",
            details=str(self),
            suggestion="Check that the argument or storage value was encoded with the expected type.",
            context={}
        )
