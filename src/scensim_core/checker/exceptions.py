# src/scensim_core/checker/exceptions.py
"""
Defines the diagnosable exception raised when a step's expectations are not met.

Every check of a step is evaluated before raising, so a single `ScenarioCheckError`
carries the complete list of mismatches for that step, not just the first one.
"""
from typing import List

from ..errors import DiagnosableError, format_diagnostic_report
from .issues import CheckIssue


class ScenarioCheckError(DiagnosableError):
    """Raised when the response or the world state of a step does not match its expectation."""

    def __init__(self, step_id: str, issues: List[CheckIssue]):
        self.step_id = step_id
        self.issues: List[CheckIssue] = list(issues)
        lines = [str(issue) for issue in self.issues]
        summary_message = (
            f"Check failed for step '{step_id}' with {len(self.issues)} issue(s):\n"
            + "\n".join(f"  - {line}" for line in lines)
        )
        super().__init__(summary_message)

    def get_diagnostic_report(self) -> str:
        lines = [str(issue) for issue in self.issues]
        details = (
            f"The step's outcome does not match its expectation.\n"
            f"Found {len(self.issues)} issue(s):\n\n"
            + "\n".join(f"  - {line}" for line in lines)
        )
        first_issue = self.issues[0] if self.issues else None
        context = {'step_id': self.step_id or 'unnamed'}
        if first_issue is not None:
            if first_issue.address:
                context['address'] = first_issue.address
            if first_issue.field:
                context['field'] = first_issue.field

        return format_diagnostic_report(
            error_type="Scenario Check Failed",
            details=details,
            suggestion="Either the contract behaves differently than intended, or the step's expectation is wrong.",
            context=context
        )
