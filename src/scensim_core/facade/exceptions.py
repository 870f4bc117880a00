# src/scensim_core/facade/exceptions.py
from dataclasses import dataclass

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class BackendCapabilityError(DiagnosableError):
    """Raised when a backend is asked for an operation it cannot perform, such as step-by-step execution."""
    backend: str
    operation: str

    def __str__(self):
        return f"The {self.backend} backend does not support step-by-step execution (called '{self.operation}')."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Unsupported Backend Operation",
            details=str(self),
            suggestion=(
                "Use `run_scenario_file` with this backend, or create the world with "
                "`Backend.DEBUGGER` to run and inspect steps one by one."
            ),
            context={}
        )
