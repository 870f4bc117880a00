# src/scensim_core/checker/__init__.py
import logging
logger = logging.getLogger(__name__)

from .issue_codes import CheckIssueCode
from .issues import CheckIssue
from .exceptions import ScenarioCheckError
from .tx_checker import TxOutputChecker, check_tx_output, format_bytes
from .state_checker import StateChecker, check_state

__all__ = [
    "CheckIssueCode",
    "CheckIssue",
    "ScenarioCheckError",
    "TxOutputChecker",
    "check_tx_output",
    "format_bytes",
    "StateChecker",
    "check_state",
]
