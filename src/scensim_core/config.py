# src/scensim_core/config.py
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import cerberus

logger = logging.getLogger(__name__)

BACKEND_NAMES = ("debugger", "vm-go")

_RUN_CONFIG_SCHEMA = {
    "backend": {"type": "string", "allowed": list(BACKEND_NAMES)},
    "trace": {"type": "boolean"},
    "trace_path": {"type": "string", "empty": False},
    "current_dir": {"type": "string", "empty": False},
    "log_level": {"type": "string", "allowed": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], "coerce": str.upper},
}


class ConfigParsingError(ValueError):
    """Custom exception for errors during run configuration parsing."""
    pass


@dataclass(frozen=True)
class RunConfig:
    """How a scenario run is set up: which backend, whether to trace, and where."""
    backend: str = "debugger"
    trace: bool = False
    trace_path: Optional[Path] = None
    current_dir: Optional[Path] = None
    log_level: Optional[str] = None


def parse_run_config(raw_config: Optional[Dict[str, Any]]) -> RunConfig:
    """
    Parses a raw run configuration dictionary into a `RunConfig`.

    An empty or missing configuration gives the defaults. Asking for a trace path
    switches tracing on.
    """
    if not raw_config:
        return RunConfig()
    if not isinstance(raw_config, dict):
        raise ConfigParsingError(f"Run configuration must be a mapping, got {type(raw_config).__name__}.")

    validator = cerberus.Validator(_RUN_CONFIG_SCHEMA)
    if not validator.validate(raw_config):
        raise ConfigParsingError(f"Failed to parse run configuration: {validator.errors}")
    config = validator.document

    trace_path = Path(config["trace_path"]) if "trace_path" in config else None
    run_config = RunConfig(
        backend=config.get("backend", "debugger"),
        trace=config.get("trace", trace_path is not None),
        trace_path=trace_path,
        current_dir=Path(config["current_dir"]) if "current_dir" in config else None,
        log_level=config.get("log_level"),
    )
    if run_config.trace and run_config.trace_path is None:
        raise ConfigParsingError("Tracing is enabled but no 'trace_path' was given.")
    logger.debug(f"Parsed run configuration: {run_config}")
    return run_config
