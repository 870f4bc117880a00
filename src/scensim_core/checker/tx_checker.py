# src/scensim_core/checker/tx_checker.py
import logging
from typing import List, Sequence

from ..model import CheckLog, TxExpect, TxLog, TxResponse
from ..values import top_encode_biguint
from .exceptions import ScenarioCheckError
from .issue_codes import CheckIssueCode
from .issues import CheckIssue

logger = logging.getLogger(__name__)


def format_bytes(raw: bytes) -> str:
    if not raw:
        return "''"
    if raw.isascii() and raw.decode("ascii").isprintable():
        return f"0x{raw.hex()} (str:{raw.decode('ascii')})"
    return f"0x{raw.hex()}"


class TxOutputChecker:
    """
    Compares a transaction response against its `TxExpect`.

    - the status is always compared;
    - the message only when one is expected;
    - results position by position, only when a result list is declared;
    - logs only when declared.
    """

    def __init__(self, step_id: str, expect: TxExpect):
        self.step_id = step_id
        self.expect = expect
        self.issues: List[CheckIssue] = []

    def check(self, response: TxResponse) -> List[CheckIssue]:
        self.issues = []
        self._check_status(response)
        self._check_message(response)
        self._check_out(response)
        self._check_logs(response.logs)
        return self.issues

    def _add_issue(self, code_enum: CheckIssueCode, field: str, **kwargs):
        issue = CheckIssue.create(code_enum, step_id=self.step_id, field=field, **kwargs)
        logger.debug(f"Check issue: {issue}")
        self.issues.append(issue)

    def _check_status(self, response: TxResponse):
        if not self.expect.status.matches(top_encode_biguint(response.status)):
            self._add_issue(
                CheckIssueCode.TX_STATUS, "status",
                expected=self.expect.status.original, actual=response.status, message=response.message,
            )

    def _check_message(self, response: TxResponse):
        if self.expect.message is None:
            return
        if not self.expect.message.matches(response.message.encode("utf-8")):
            self._add_issue(
                CheckIssueCode.TX_MESSAGE, "message",
                expected=self.expect.message.original, actual=response.message,
            )

    def _check_out(self, response: TxResponse):
        if self.expect.out is None:
            return
        expected_out = self.expect.out
        if len(expected_out) != len(response.out):
            self._add_issue(
                CheckIssueCode.TX_OUT_LENGTH, "out",
                expected=len(expected_out),
                expected_values=", ".join(value.original for value in expected_out) or "none",
                actual=len(response.out),
                actual_values=", ".join(format_bytes(value) for value in response.out) or "none",
            )
            return
        for index, (expected, actual) in enumerate(zip(expected_out, response.out)):
            if not expected.matches(actual):
                self._add_issue(
                    CheckIssueCode.TX_OUT_VALUE, f"out[{index}]",
                    index=index, expected=expected.original, actual=format_bytes(actual),
                )

    def _check_logs(self, logs: Sequence[TxLog]):
        if self.expect.logs is None:
            return
        if len(self.expect.logs) != len(logs):
            self._add_issue(CheckIssueCode.TX_LOG_COUNT, "logs", expected=len(self.expect.logs), actual=len(logs))
            return
        for index, (expected, actual) in enumerate(zip(self.expect.logs, logs)):
            self._check_log(index, expected, actual)

    def _check_log(self, index: int, expected: CheckLog, actual: TxLog):
        pairs = [
            ("address", expected.address, actual.address.raw),
            ("endpoint", expected.endpoint, actual.endpoint.encode("utf-8")),
            ("data", expected.data, actual.data),
        ]
        if len(expected.topics) != len(actual.topics):
            self._add_issue(
                CheckIssueCode.TX_LOG_FIELD, f"logs[{index}].topics",
                index=index, log_field="topic count", expected=len(expected.topics), actual=len(actual.topics),
            )
        else:
            pairs.extend(
                (f"topics[{i}]", check, topic) for i, (check, topic) in enumerate(zip(expected.topics, actual.topics))
            )
        for log_field, check, value in pairs:
            if not check.matches(value):
                self._add_issue(
                    CheckIssueCode.TX_LOG_FIELD, f"logs[{index}].{log_field}",
                    index=index, log_field=log_field, expected=check.original, actual=format_bytes(value),
                )


def check_tx_output(step_id: str, expect: TxExpect, response: TxResponse):
    """Raises `ScenarioCheckError` with every mismatch if the response does not meet the expectation."""
    issues = TxOutputChecker(step_id, expect).check(response)
    if issues:
        logger.error(f"Step '{step_id}': {len(issues)} expectation issue(s) found.")
        raise ScenarioCheckError(step_id=step_id, issues=issues)
