# src/scensim_core/model/exceptions.py
"""
Construction-time errors of the scenario data model.

These are raised by the fluent builders the instant an invalid combination is
assembled, so the failure points at the exact setter call (or scenario file entry)
that caused it rather than at some later execution step.
"""
from dataclasses import dataclass
from typing import Optional

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class PaymentConflictError(DiagnosableError):
    """Raised when a single call would carry both an EGLD amount and ESDT transfers."""
    details: str
    step_id: Optional[str] = None

    def __str__(self):
        return f"Cannot transfer both EGLD and ESDT: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Payment Conflict",
            details=str(self),
            suggestion="A call carries either one EGLD amount or a list of ESDT transfers, never both. Split the payment into two calls.",
            context={'step_id': self.step_id}
        )


@dataclass()
class ResponseAlreadySetError(DiagnosableError):
    """Raised when a step's write-once response cell is written a second time."""
    step_id: str

    def __str__(self):
        return f"Step '{self.step_id}' already has a response; responses are written exactly once."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Response Already Set",
            details=str(self),
            suggestion="Create a new step object instead of re-running an executed one.",
            context={'step_id': self.step_id}
        )


@dataclass()
class ResponseNotReadyError(DiagnosableError):
    """Raised when a step's response is read before the step was executed."""
    step_id: str

    def __str__(self):
        return f"Step '{self.step_id}' has not been executed yet; its response is not ready."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Response Not Ready",
            details=str(self),
            suggestion="Run the step through a ScenarioWorld before inspecting its response.",
            context={'step_id': self.step_id}
        )
