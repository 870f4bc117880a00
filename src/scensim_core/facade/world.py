# src/scensim_core/facade/world.py
"""
Defines `ScenarioWorld`, the entry point for writing scenarios in Python.

A world owns one `WorldState`, the VM runner that executes steps against it and,
once `start_trace` was called, a `ScenarioTrace` recording copies of the steps.
Every step method forwards the step to the VM runner first and then to the trace,
so the trace only ever holds steps that ran.

The `VM_GO` backend executes whole scenario files in a fresh world of their own;
it has no per-step runner, and every step method raises `BackendCapabilityError`.
Contracts registered on the world are available to both backends.
"""
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from ..model import (
    CheckStateStep,
    DumpStateStep,
    ExternalStepsStep,
    ScCallStep,
    ScDeployStep,
    ScQueryStep,
    SetStateStep,
    TransferStep,
    TxResponse,
    ValidatorRewardStep,
)
from ..parser import ScenarioParser
from ..runner import ScenarioTrace, ScenarioVMRunner, run_scenario_steps
from ..values import Address, BytesValue, InterpreterContext
from ..vm import BlockchainVM
from ..world import WorldState
from .exceptions import BackendCapabilityError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Backend(Enum):
    """Where scenarios are executed."""
    DEBUGGER = "debugger"
    VM_GO = "vm-go"


class ScenarioWorld:
    """Fluent front-end that fans every step out to the VM runner and the trace."""

    def __init__(self, backend: Backend = Backend.DEBUGGER, current_dir: Optional[PathLike] = None):
        self.backend = backend
        self.context = InterpreterContext(Path(current_dir)) if current_dir is not None else InterpreterContext()
        self.parser = ScenarioParser()
        self.world = WorldState()
        self.vm = BlockchainVM(self.world)
        self.vm_runner = ScenarioVMRunner(world=self.world, vm=self.vm, context=self.context, parser=self.parser)
        self.trace: Optional[ScenarioTrace] = None
        logger.debug(f"Created scenario world with backend '{backend.value}' in '{self.context.context_path}'.")

    @classmethod
    def debugger(cls, current_dir: Optional[PathLike] = None) -> "ScenarioWorld":
        return cls(Backend.DEBUGGER, current_dir)

    @classmethod
    def vm_go(cls, current_dir: Optional[PathLike] = None) -> "ScenarioWorld":
        return cls(Backend.VM_GO, current_dir)

    # --- Setup ---

    def interpreter_context(self) -> InterpreterContext:
        return self.context

    def set_current_dir(self, current_dir: PathLike) -> "ScenarioWorld":
        """Changes the directory `file:` expressions and external step paths are resolved from."""
        self.context = self.context.with_dir(Path(current_dir))
        self.vm_runner.context = self.context
        return self

    def register_contract(self, code_expression: str, contract) -> "ScenarioWorld":
        """
        Binds the code a scenario deploys (e.g. `file:output/adder.wasm`) to a Python
        contract. The expression is interpreted against the world's current directory,
        exactly as the deploy step's `contractCode` will be.
        """
        code = BytesValue.of(code_expression, self.context).value
        self.vm.register_contract(code, contract)
        name = contract.__name__ if isinstance(contract, type) else type(contract).__name__
        logger.info(f"Registered contract {name} for code '{code_expression}'.")
        return self

    def start_trace(self, name: str = "trace") -> "ScenarioWorld":
        self._require_debugger("start_trace")
        self.trace = ScenarioTrace(name=name)
        return self

    # --- Fan-out ---

    def _require_debugger(self, operation: str):
        if self.backend is not Backend.DEBUGGER:
            logger.error(f"Backend '{self.backend.value}' cannot perform '{operation}'.")
            raise BackendCapabilityError(backend=self.backend.value, operation=operation)

    def _runners(self, operation: str) -> List:
        self._require_debugger(operation)
        runners: List = [self.vm_runner]
        if self.trace is not None:
            runners.append(self.trace)
        return runners

    # --- ScenarioRunner protocol ---

    def run_external_steps(self, step: ExternalStepsStep):
        for runner in self._runners("external_steps"):
            runner.run_external_steps(step)

    def run_set_state_step(self, step: SetStateStep):
        for runner in self._runners("set_state_step"):
            runner.run_set_state_step(step)

    def run_sc_call_step(self, step: ScCallStep):
        for runner in self._runners("sc_call_step"):
            runner.run_sc_call_step(step)

    def run_multi_sc_call_step(self, steps: Sequence[ScCallStep]):
        for runner in self._runners("multi_sc_call_step"):
            runner.run_multi_sc_call_step(steps)

    def run_multi_sc_deploy_step(self, steps: Sequence[ScDeployStep]):
        for runner in self._runners("multi_sc_deploy_step"):
            runner.run_multi_sc_deploy_step(steps)

    def run_sc_query_step(self, step: ScQueryStep):
        for runner in self._runners("sc_query_step"):
            runner.run_sc_query_step(step)

    def run_sc_deploy_step(self, step: ScDeployStep):
        for runner in self._runners("sc_deploy_step"):
            runner.run_sc_deploy_step(step)

    def run_transfer_step(self, step: TransferStep):
        for runner in self._runners("transfer_step"):
            runner.run_transfer_step(step)

    def run_validator_reward_step(self, step: ValidatorRewardStep):
        for runner in self._runners("validator_reward_step"):
            runner.run_validator_reward_step(step)

    def run_check_state_step(self, step: CheckStateStep):
        for runner in self._runners("check_state_step"):
            runner.run_check_state_step(step)

    def run_dump_state_step(self, step: DumpStateStep):
        for runner in self._runners("dump_state_step"):
            runner.run_dump_state_step(step)

    # --- Fluent step API ---

    def external_steps(self, path: PathLike) -> "ScenarioWorld":
        path = Path(path)
        if not path.is_absolute():
            path = self.context.context_path / path
        self.run_external_steps(ExternalStepsStep(path))
        return self

    def set_state_step(self, step: SetStateStep) -> "ScenarioWorld":
        self.run_set_state_step(step)
        return self

    def sc_call_step(self, step: ScCallStep) -> "ScenarioWorld":
        self.run_sc_call_step(step)
        return self

    def multi_sc_call_step(self, steps: Sequence[ScCallStep]) -> "ScenarioWorld":
        self.run_multi_sc_call_step(steps)
        return self

    def sc_query_step(self, step: ScQueryStep) -> "ScenarioWorld":
        self.run_sc_query_step(step)
        return self

    def sc_deploy_step(self, step: ScDeployStep) -> "ScenarioWorld":
        self.run_sc_deploy_step(step)
        return self

    def sc_deploy_use_new_address(
        self, step: ScDeployStep, use_new_address: Callable[[Optional[Address]], None]
    ) -> "ScenarioWorld":
        """Runs a deploy and hands the address it landed on (`None` if it failed) to the callable."""
        def handler(response: TxResponse):
            use_new_address(response.new_deployed_address)

        step.with_raw_response(handler)
        return self.sc_deploy_step(step)

    def transfer_step(self, step: TransferStep) -> "ScenarioWorld":
        self.run_transfer_step(step)
        return self

    def validator_reward_step(self, step: ValidatorRewardStep) -> "ScenarioWorld":
        self.run_validator_reward_step(step)
        return self

    def check_state_step(self, step: CheckStateStep) -> "ScenarioWorld":
        self.run_check_state_step(step)
        return self

    def dump_state_step(self) -> "ScenarioWorld":
        self.run_dump_state_step(DumpStateStep())
        return self

    # --- Whole scenarios and traces ---

    def run_scenario_file(self, path: PathLike) -> "ScenarioWorld":
        path = Path(path)
        if not path.is_absolute():
            path = self.context.context_path / path
        scenario = self.parser.parse_file(path)
        if self.backend is Backend.VM_GO:
            logger.info(f"Running '{path}' as a whole on the {self.backend.value} backend.")
            world = WorldState()
            runner = ScenarioVMRunner(
                world=world,
                vm=self.vm.with_world(world),
                context=self.context.with_dir(path.parent),
                parser=self.parser,
            )
            runner.run_scenario(scenario)
        else:
            run_scenario_steps(self, scenario)
        return self

    def write_scenario_trace(self, path: PathLike) -> Path:
        self._require_debugger("write_scenario_trace")
        if self.trace is None:
            raise RuntimeError("No trace is being recorded; call start_trace() before running steps.")
        return self.trace.write_scenario_trace(path)
