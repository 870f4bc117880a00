# src/scensim_core/parser/exceptions.py
"""
Defines the diagnosable exceptions of the scenario file parser.

`ParsingError` covers file-level problems (missing file, invalid YAML/JSON),
`SchemaValidationError` structural problems found by the Cerberus schema,
`ScenarioStepError` a structurally valid step that cannot be built (a bad value
expression, a payment conflict), and `CircularExternalStepsError` scenario files
that include each other.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import DiagnosableError, format_diagnostic_report


class BaseParsingError(DiagnosableError):
    """A local base class for all scenario file parsing errors."""
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Generic Parsing Error",
            details=str(self),
            suggestion="Please check the format and content of the relevant scenario file.",
            context={}
        )


@dataclass(frozen=True)
class ParsingError(BaseParsingError):
    """File-system or syntax errors that prevent a scenario file from being loaded."""
    details: str
    file_path: Optional[Path] = None

    def __str__(self):
        return f"Parsing error in file '{self.file_path}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Scenario File Error",
            details=self.details,
            suggestion="Ensure the file exists, is readable, and contains valid JSON or YAML.",
            context={'source_file': self.file_path}
        )


def _flatten_errors(errors: Any, prefix: str = "") -> List[str]:
    """Flattens Cerberus' nested error structure into 'path: message' lines."""
    lines = []
    if isinstance(errors, dict):
        for key, value in sorted(errors.items(), key=lambda item: str(item[0])):
            path = f"{prefix}.{key}" if prefix else str(key)
            lines.extend(_flatten_errors(value, path))
    elif isinstance(errors, list):
        for item in errors:
            lines.extend(_flatten_errors(item, prefix))
    else:
        lines.append(f"Field '{prefix}': {errors}")
    return lines


@dataclass(frozen=True)
class SchemaValidationError(BaseParsingError):
    """Raised when a scenario document does not conform to the scenario schema."""
    errors: Dict[str, Any]
    file_path: Optional[Path] = None

    def __str__(self):
        lines = _flatten_errors(self.errors)
        return (
            f"Scenario schema validation failed for file '{self.file_path}':\n"
            + "\n".join(f"  - {line}" for line in lines)
        )

    def get_diagnostic_report(self) -> str:
        lines = _flatten_errors(self.errors)
        details = (
            "The structure of the scenario file does not conform to the required schema.\n"
            f"See details for {len(lines)} issue(s) below:\n\n"
            + "\n".join(f"  - {line}" for line in lines)
        )
        return format_diagnostic_report(
            error_type="Scenario Schema Validation Error",
            details=details,
            suggestion=(
                "Correct the specified fields. Every step needs a 'step' type, transaction "
                "steps need a 'tx' block, and values must be expression strings."
            ),
            context={'source_file': self.file_path}
        )


@dataclass(frozen=True)
class ScenarioStepError(BaseParsingError):
    """Raised when a structurally valid step cannot be built."""
    details: str
    step_index: int
    step_id: Optional[str] = None
    file_path: Optional[Path] = None
    cause_report: str = ""

    def __str__(self):
        return f"Step #{self.step_index} ('{self.step_id or ''}') in '{self.file_path}': {self.details}"

    def get_diagnostic_report(self) -> str:
        details = self.details
        if self.cause_report:
            details += "\n\nUnderlying error:" + self.cause_report
        return format_diagnostic_report(
            error_type="Invalid Scenario Step",
            details=details,
            suggestion="Fix the value expressions or the payment of the step.",
            context={'step_id': self.step_id or f"#{self.step_index}", 'source_file': self.file_path}
        )


@dataclass(frozen=True)
class CircularExternalStepsError(BaseParsingError):
    """Raised when scenario files include each other through 'externalSteps'."""
    cycle: List[Path]

    def __str__(self):
        chain = " -> ".join(str(path) for path in self.cycle)
        return f"Circular externalSteps dependency detected: {chain}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Circular External Steps",
            details=str(self),
            suggestion="Remove one of the 'externalSteps' includes so that the files form no cycle.",
            context={'source_file': self.cycle[0] if self.cycle else None}
        )
