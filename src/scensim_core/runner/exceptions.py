# src/scensim_core/runner/exceptions.py
"""
Integrity errors raised by the scenario runners.

Unlike contract failures, which surface as a non-zero status on the step's
response, these abort the scenario: the scenario itself is malformed or asks for
something the engine must refuse.
"""
from dataclasses import dataclass

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class PendingCallsOnQueryError(DiagnosableError):
    """Raised when a query endpoint issued asynchronous calls, which a read-only call can never resolve."""
    step_id: str
    num_pending_calls: int

    def __str__(self):
        return (
            f"Query step '{self.step_id}' left {self.num_pending_calls} pending call(s): "
            f"can't query a view function that performs an async call."
        )

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Asynchronous Call In Query",
            details=str(self),
            suggestion="Run the endpoint with an scCall step instead of an scQuery step.",
            context={'step_id': self.step_id}
        )


@dataclass()
class IncompleteStepError(DiagnosableError):
    """Raised when an executable step is missing a field it cannot run without."""
    step_id: str
    field: str

    def __str__(self):
        return f"Step '{self.step_id}' has no '{self.field}'."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Incomplete Step",
            details=str(self),
            suggestion=f"Set '{self.field}' on the step before running it.",
            context={'step_id': self.step_id, 'field': self.field}
        )
