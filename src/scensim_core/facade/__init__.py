# src/scensim_core/facade/__init__.py
import logging
logger = logging.getLogger(__name__)

from .world import Backend, ScenarioWorld
from .execution import run_scenario
from .exceptions import BackendCapabilityError

__all__ = [
    "Backend",
    "ScenarioWorld",
    "run_scenario",
    "BackendCapabilityError",
]
