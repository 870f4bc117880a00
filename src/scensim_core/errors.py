# src/scensim_core/errors.py
"""
Error types shared by every subpackage.

Internal failures subclass `DiagnosableError` and render themselves with
`format_diagnostic_report`. The facade turns them into one of the two public
errors below, with the rendered report as the message.
"""
from abc import abstractmethod
from typing import Any, Dict, Protocol
from typing import runtime_checkable


class ScenSimError(Exception):
    """Root of the errors a caller of `run_scenario` can see."""


class ScenarioBuildError(ScenSimError):
    """The scenario never started: it could not be read, validated or interpreted."""


class ScenarioRunError(ScenSimError):
    """A step of a loaded scenario failed, e.g. an unmet expectation or a misplaced deploy."""


@runtime_checkable
class Diagnosable(Protocol):
    def get_diagnostic_report(self) -> str:
        ...


class DiagnosableError(Exception, Diagnosable):
    """Internal error that knows how to describe itself. Subclasses implement `get_diagnostic_report`."""

    @abstractmethod
    def get_diagnostic_report(self) -> str:
        raise NotImplementedError


# Context keys shown in the report header, in display order.
_CONTEXT_LABELS = (
    ('step_id', "Step"),
    ('address', "Address"),
    ('field', "Field"),
    ('source_file', "Source File"),
    ('user_input', "User Input"),
)

_RULE_WIDTH = 74


def _indented(text: str) -> list:
    return [f"  {line}" for line in text.splitlines()]


def format_diagnostic_report(
    error_type: str,
    details: str,
    suggestion: str,
    context: Dict[str, Any]
) -> str:
    """
    Renders a multi-line report: a header naming the error category and whichever
    context values are set, then the details and, if given, a suggestion.

    `context` may hold any of 'step_id', 'address', 'field', 'source_file' and
    'user_input'; empty values are left out.
    """
    lines = ["\n", " ScenSim Core: Actionable Diagnostic Report ".center(_RULE_WIDTH, "=")]
    lines.append(f"{'Error Type:':<16}{error_type}")
    for key, label in _CONTEXT_LABELS:
        value = context.get(key)
        if not value:
            continue
        if key == 'user_input':
            value = f"'{value}'"
        lines.append(f"{label + ':':<16}{value}")

    lines.append("\nDetails:")
    lines.extend(_indented(details))
    if suggestion:
        lines.append("\nSuggestion:")
        lines.extend(_indented(suggestion))
    lines.append("=" * _RULE_WIDTH)
    return "\n".join(lines)
