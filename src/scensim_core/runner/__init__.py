# src/scensim_core/runner/__init__.py
import logging
logger = logging.getLogger(__name__)

from .base import STEP_DISPATCH, ScenarioRunner, run_scenario_steps, run_step
from .exceptions import IncompleteStepError, PendingCallsOnQueryError
from .trace import ScenarioTrace
from .vm_runner import ScenarioVMRunner

__all__ = [
    "STEP_DISPATCH",
    "ScenarioRunner",
    "run_scenario_steps",
    "run_step",
    "IncompleteStepError",
    "PendingCallsOnQueryError",
    "ScenarioTrace",
    "ScenarioVMRunner",
]
