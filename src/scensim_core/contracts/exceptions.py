# src/scensim_core/contracts/exceptions.py
"""
Defines the custom, diagnosable exceptions for the contracts subsystem.
"""
from dataclasses import dataclass

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class EndpointRegistrationError(DiagnosableError):
    """
    Raised when a contract class declares an invalid endpoint table, most commonly
    when two methods claim the same endpoint name. Detected once, when the table is built.
    """
    contract_name: str
    endpoint: str
    details: str

    def __str__(self):
        return f"Contract '{self.contract_name}' endpoint '{self.endpoint}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Endpoint Registration Error",
            details=str(self),
            suggestion="Every endpoint name may be bound to exactly one method of the contract class.",
            context={'field': self.endpoint, 'user_input': self.contract_name}
        )
