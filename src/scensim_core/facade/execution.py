# src/scensim_core/facade/execution.py
import logging
from pathlib import Path
from typing import Dict, Optional, Union

from ..config import RunConfig
from ..errors import (
    DiagnosableError,
    ScenarioBuildError,
    ScenarioRunError,
    format_diagnostic_report,
)
from ..log_config import set_package_log_level
from ..parser import BaseParsingError
from .world import Backend, ScenarioWorld

logger = logging.getLogger(__name__)


def run_scenario(
    path: Union[str, Path],
    config: Optional[RunConfig] = None,
    contracts: Optional[Dict[str, object]] = None,
) -> ScenarioWorld:
    """
    The primary public API for running a scenario file.

    Args:
        path: The `.scen.json` or YAML scenario file to run.
        config: An optional `RunConfig` choosing the backend, tracing and the
                directory value expressions are resolved from. Defaults to the
                debugger backend without a trace.
        contracts: Optional mapping of code expressions (e.g. `file:adder.wasm`)
                   to contract classes or instances to register before running.

    Returns:
        The `ScenarioWorld` the scenario ran in, so that its final state can be
        inspected.

    Raises:
        ScenarioBuildError: The file, or a file it includes, could not be loaded.
        ScenarioRunError: The scenario failed while running, e.g. on a failed
                          expectation. The original exception is chained.
    """
    config = config or RunConfig()
    path = Path(path).resolve()
    if config.log_level:
        set_package_log_level(config.log_level)

    world = ScenarioWorld(Backend(config.backend), current_dir=config.current_dir or path.parent)
    for code_expression, contract in (contracts or {}).items():
        world.register_contract(code_expression, contract)
    if config.trace:
        world.start_trace(name=path.name)

    try:
        logger.info(f"--- Starting scenario '{path}' ---")
        world.run_scenario_file(path)
        if config.trace:
            world.write_scenario_trace(config.trace_path)
        logger.info(f"--- Scenario '{path}' passed ---")
        return world

    except BaseParsingError as e:
        logger.error(f"Scenario '{path}' could not be loaded: {e}")
        raise ScenarioBuildError(e.get_diagnostic_report()) from e

    except DiagnosableError as e:
        logger.error(f"A diagnosable error occurred while running '{path}': {e}")
        raise ScenarioRunError(e.get_diagnostic_report()) from e

    except Exception as e:
        logger.critical(f"An unexpected internal error occurred while running '{path}': {e}", exc_info=True)
        report = format_diagnostic_report(
            error_type=f"An Unexpected Scenario Error Occurred ({type(e).__name__})",
            details=f"The scenario engine encountered an unexpected internal error: {e}",
            suggestion="This may be a bug, or a contract raised a Python exception. Review the traceback.",
            context={'source_file': path}
        )
        raise ScenarioRunError(report) from e
