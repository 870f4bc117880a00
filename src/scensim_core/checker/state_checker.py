# src/scensim_core/checker/state_checker.py
import logging
from typing import List

from ..model import CheckAccount, CheckStateStep
from ..values import AddressValue, CheckValue, top_encode_biguint, top_encode_u64
from ..world import AccountState, WorldState
from .exceptions import ScenarioCheckError
from .issue_codes import CheckIssueCode
from .issues import CheckIssue
from .tx_checker import format_bytes

logger = logging.getLogger(__name__)


class StateChecker:
    """
    Checks the world against a `CheckStateStep` with subset semantics: only the
    declared accounts are looked at, and of those only the declared fields and
    storage keys. Undeclared storage keys are never an issue.
    """

    def __init__(self, world: WorldState):
        self.world = world
        self.issues: List[CheckIssue] = []

    def check(self, step: CheckStateStep) -> List[CheckIssue]:
        self.issues = []
        for address_value, check_account in step.accounts.items():
            account = self.world.get_account(address_value.value)
            if account is None:
                self._add_issue(
                    CheckIssueCode.STATE_ACCOUNT_MISSING, step.id, "account", address_value,
                )
                continue
            self._check_account(step.id, address_value, check_account, account)
        return self.issues

    def _add_issue(self, code_enum: CheckIssueCode, step_id: str, field: str, address_value: AddressValue, **kwargs):
        self.issues.append(CheckIssue.create(
            code_enum, step_id=step_id, field=field, address=address_value.original, **kwargs,
        ))

    def _check_field(
        self,
        code_enum: CheckIssueCode,
        step_id: str,
        field: str,
        address_value: AddressValue,
        check: CheckValue,
        actual: bytes,
        **kwargs,
    ):
        if check is not None and not check.matches(actual):
            self._add_issue(
                code_enum, step_id, field, address_value,
                expected=check.original, actual=format_bytes(actual), **kwargs,
            )

    def _check_account(self, step_id: str, address_value: AddressValue, check: CheckAccount, account: AccountState):
        self._check_field(
            CheckIssueCode.STATE_NONCE, step_id, "nonce", address_value,
            check.nonce_check, top_encode_u64(account.nonce),
        )
        self._check_field(
            CheckIssueCode.STATE_BALANCE, step_id, "balance", address_value,
            check.balance_check, top_encode_biguint(account.balance),
        )
        self._check_field(
            CheckIssueCode.STATE_CODE, step_id, "code", address_value,
            check.code_check, account.code or b"",
        )
        self._check_field(
            CheckIssueCode.STATE_OWNER, step_id, "owner", address_value,
            check.owner_check, account.owner.raw if account.owner is not None else b"",
        )
        for token, instances in check.esdt.items():
            for instance in instances:
                self._check_field(
                    CheckIssueCode.STATE_ESDT_BALANCE, step_id, f"esdt.{token.original}", address_value,
                    instance.balance, top_encode_biguint(account.esdt_balance(token.value, instance.nonce)),
                    token=token.original, token_nonce=instance.nonce,
                )
        for key, value_check in check.storage.items():
            self._check_field(
                CheckIssueCode.STATE_STORAGE, step_id, f"storage.{key.original}", address_value,
                value_check, account.storage_load(key.value), key=key.original,
            )


def check_state(step: CheckStateStep, world: WorldState):
    """Raises `ScenarioCheckError` with every mismatch found by `StateChecker`."""
    issues = StateChecker(world).check(step)
    if issues:
        logger.error(f"Step '{step.id}': {len(issues)} state issue(s) found.")
        raise ScenarioCheckError(step_id=step.id, issues=issues)
    logger.debug(f"Step '{step.id}': state check passed for {len(step.accounts)} account(s).")
