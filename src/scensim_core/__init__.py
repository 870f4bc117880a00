# src/scensim_core/__init__.py
import logging
from .log_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
logger.info("ScenSim Core package initialized.")

from .values import Address, CheckValue, InterpreterContext, interpret
from .model import (
    Account,
    CheckAccount,
    CheckStateStep,
    ScCallStep,
    ScDeployStep,
    ScQueryStep,
    SetStateStep,
    TransferStep,
    TxExpect,
    TxResponse,
    ValidatorRewardStep,
)
from .world import WorldState
from .contracts import ContractBase, endpoint, register_contract
from .vm import BlockchainVM, ContractApi
from .parser import ScenarioParser, ScenarioWriter
from .runner import ScenarioTrace, ScenarioVMRunner
from .facade import Backend, ScenarioWorld, run_scenario
from .config import RunConfig, parse_run_config
from .errors import ScenSimError, ScenarioBuildError, ScenarioRunError

__all__ = [
    # Values
    "Address", "CheckValue", "InterpreterContext", "interpret",
    # Scenario model
    "Account", "CheckAccount", "CheckStateStep", "ScCallStep", "ScDeployStep", "ScQueryStep",
    "SetStateStep", "TransferStep", "TxExpect", "TxResponse", "ValidatorRewardStep",
    # World & execution
    "WorldState", "BlockchainVM", "ContractApi",
    # Contracts
    "ContractBase", "endpoint", "register_contract",
    # Scenario files
    "ScenarioParser", "ScenarioWriter",
    # Runners & facade
    "ScenarioTrace", "ScenarioVMRunner", "Backend", "ScenarioWorld", "run_scenario",
    # Configuration
    "RunConfig", "parse_run_config",
    # Top-Level Errors (Actionable Diagnostics)
    "ScenSimError", "ScenarioBuildError", "ScenarioRunError",
]
