# src/scensim_core/parser/__init__.py
import logging
logger = logging.getLogger(__name__)

from .parser import ScenarioParser
from .schema import EnhancedValidator, STEP_TYPES
from .writer import ScenarioWriter
from .exceptions import (
    BaseParsingError,
    CircularExternalStepsError,
    ParsingError,
    ScenarioStepError,
    SchemaValidationError,
)

__all__ = [
    "ScenarioParser",
    "ScenarioWriter",
    "EnhancedValidator",
    "STEP_TYPES",
    "BaseParsingError",
    "CircularExternalStepsError",
    "ParsingError",
    "ScenarioStepError",
    "SchemaValidationError",
]
