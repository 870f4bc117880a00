# src/scensim_core/world/exceptions.py
"""
Diagnosable exceptions raised by the world state.

None of these are ever converted into a default value: a missing account, a
deploy landing somewhere unexpected or an overdrawn balance is reported as an
explicit error, with the address that caused it.
"""
from dataclasses import dataclass
from typing import Optional

from ..errors import DiagnosableError, format_diagnostic_report
from ..values import Address


@dataclass()
class AccountNotFoundError(DiagnosableError):
    """Raised when an operation requires an account that does not exist in the world."""
    address: Address
    details: str = ""

    def __str__(self):
        suffix = f" ({self.details})" if self.details else ""
        return f"Account {self.address!r} not found{suffix}."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Account Not Found",
            details=str(self),
            suggestion="Accounts are never created implicitly. Add the account in a setState step before using it.",
            context={'address': str(self.address)}
        )


@dataclass()
class DeployAddressMismatchError(DiagnosableError):
    """Raised when a contract was deployed at an address other than the predicted one."""
    creator: Address
    creator_nonce: int
    expected: Address
    actual: Address

    def __str__(self):
        return (
            f"Deploy by {self.creator!r} at nonce {self.creator_nonce} landed at {self.actual!r}, "
            f"but {self.expected!r} was predicted."
        )

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Deploy Address Mismatch",
            details=str(self),
            suggestion="Check the 'newAddresses' entries of the setState step and the creator's nonce at deploy time.",
            context={'address': str(self.actual)}
        )


@dataclass()
class InsufficientFundsError(DiagnosableError):
    """Raised when a transfer would overdraw an EGLD or ESDT balance."""
    address: Address
    required: int
    available: int
    token: Optional[str] = None

    def __str__(self):
        asset = self.token or "EGLD"
        return (
            f"Account {self.address!r} has {self.available} {asset} but {self.required} is required."
        )

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Insufficient Funds",
            details=str(self),
            suggestion="Fund the sender in a setState step or lower the transferred amount.",
            context={'address': str(self.address)}
        )
