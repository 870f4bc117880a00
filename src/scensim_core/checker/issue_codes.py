# src/scensim_core/checker/issue_codes.py
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class CheckIssueCode(Enum):
    """
    Registry of expectation-check issue codes and their message templates.
    Each enum member's value is a tuple: (code_str, message_template_str).
    """

    # --- Transaction Output Issues (TX_...) ---
    TX_STATUS = ("TX_STATUS", "Bad status. Want: {expected}. Have: {actual}. Message: '{message}'.")
    TX_MESSAGE = ("TX_MESSAGE", "Bad message. Want: '{expected}'. Have: '{actual}'.")
    TX_OUT_LENGTH = ("TX_OUT_LENGTH", "Bad number of results. Want: {expected} ({expected_values}). Have: {actual} ({actual_values}).")
    TX_OUT_VALUE = ("TX_OUT_VALUE", "Bad result #{index}. Want: {expected}. Have: {actual}.")
    TX_LOG_COUNT = ("TX_LOG_COUNT", "Bad number of logs. Want: {expected}. Have: {actual}.")
    TX_LOG_FIELD = ("TX_LOG_FIELD", "Bad log #{index} {log_field}. Want: {expected}. Have: {actual}.")

    # --- Account State Issues (STATE_...) ---
    STATE_ACCOUNT_MISSING = ("STATE_ACCOUNT_MISSING", "Expected account {address} does not exist.")
    STATE_NONCE = ("STATE_NONCE", "Bad nonce of {address}. Want: {expected}. Have: {actual}.")
    STATE_BALANCE = ("STATE_BALANCE", "Bad EGLD balance of {address}. Want: {expected}. Have: {actual}.")
    STATE_ESDT_BALANCE = ("STATE_ESDT_BALANCE", "Bad balance of token '{token}' (nonce {token_nonce}) of {address}. Want: {expected}. Have: {actual}.")
    STATE_CODE = ("STATE_CODE", "Bad code of {address}. Want: {expected}. Have: {actual}.")
    STATE_OWNER = ("STATE_OWNER", "Bad owner of {address}. Want: {expected}. Have: {actual}.")
    STATE_STORAGE = ("STATE_STORAGE", "Bad storage value of {address} for key {key}. Want: {expected}. Have: {actual}.")

    @property
    def code(self) -> str:
        return self.value[0]

    @property
    def template(self) -> str:
        return self.value[1]

    def format_message(self, **kwargs) -> str:
        """Formats the message template with provided keyword arguments."""
        try:
            return self.template.format(**kwargs)
        except KeyError as e:
            logger.error(f"Missing key {e} for formatting message template of {self.name}: '{self.template}'. Provided args: {kwargs}")
            return f"Error formatting message for {self.code}: Missing key {e}. Template: '{self.template}' Args: {kwargs}"
