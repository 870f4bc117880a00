# src/scensim_core/checker/issues.py
import logging
from dataclasses import dataclass
from typing import Optional

from .issue_codes import CheckIssueCode

logger = logging.getLogger(__name__)


@dataclass
class CheckIssue:
    """A single mismatch between an expectation and what actually happened."""
    code: str
    message: str
    step_id: str = ""
    address: Optional[str] = None
    field: Optional[str] = None
    expected: str = ""
    actual: str = ""

    @classmethod
    def create(
        cls,
        code_enum: CheckIssueCode,
        step_id: str,
        field: Optional[str] = None,
        address: Optional[str] = None,
        **kwargs,
    ) -> "CheckIssue":
        if address is not None:
            kwargs['address'] = address
        return cls(
            code=code_enum.code,
            message=code_enum.format_message(**kwargs),
            step_id=step_id,
            address=address,
            field=field,
            expected=str(kwargs.get('expected', "")),
            actual=str(kwargs.get('actual', "")),
        )

    def __str__(self) -> str:
        parts = [f"[{self.code}]"]
        if self.step_id:
            parts.append(f"Step: {self.step_id}")
        if self.field:
            parts.append(f"Field: {self.field}")
        parts.append(f"Message: {self.message}")
        return " ".join(parts)
