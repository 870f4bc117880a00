# src/scensim_core/vm/exceptions.py
"""
Exceptions of the execution boundary.

`ContractSignalError` is the only exception that crosses from contract code into the
VM as an expected outcome: the VM catches it at the frame boundary, rolls the
frame back and turns it into a non-zero status on the result. Everything else
raised here is an integrity failure of the scenario and propagates to the runner.
"""
from dataclasses import dataclass

from ..errors import DiagnosableError, format_diagnostic_report
from ..values import Address


@dataclass()
class ContractSignalError(DiagnosableError):
    """A contract-level failure, carried as a VM status code and message."""
    status: int
    message: str

    def __str__(self):
        return f"Contract signalled status {self.status}: {self.message}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Contract Error",
            details=str(self),
            suggestion="This is an expected contract outcome inside the VM; declare it in the step's 'expect' block.",
            context={}
        )


@dataclass()
class UnknownContractCodeError(DiagnosableError):
    """Raised when an account's code is not bound to any registered contract implementation."""
    address: Address
    code: bytes

    def __str__(self):
        shown = self.code[:64].decode("utf-8", errors="replace")
        return f"No contract registered for code '{shown}' of account {self.address!r}."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Unknown Contract Code",
            details=str(self),
            suggestion=(
                "Register the contract for this code expression before running the scenario, "
                "e.g. world.register_contract('file:output/adder.wasm', AdderContract)."
            ),
            context={'address': str(self.address)}
        )
