# src/scensim_core/runner/base.py
"""
Defines the `ScenarioRunner` protocol shared by everything that consumes steps:
the VM runner that executes them and the trace recorder that copies them.
"""
import logging
from typing import Dict, Protocol, Sequence, runtime_checkable

from ..model import (
    CheckStateStep,
    DumpStateStep,
    ExternalStepsStep,
    Scenario,
    ScCallStep,
    ScDeployStep,
    ScQueryStep,
    SetStateStep,
    Step,
    TransferStep,
    ValidatorRewardStep,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class ScenarioRunner(Protocol):

    def run_external_steps(self, step: ExternalStepsStep): ...

    def run_set_state_step(self, step: SetStateStep): ...

    def run_sc_call_step(self, step: ScCallStep): ...

    def run_multi_sc_call_step(self, steps: Sequence[ScCallStep]): ...

    def run_multi_sc_deploy_step(self, steps: Sequence[ScDeployStep]): ...

    def run_sc_query_step(self, step: ScQueryStep): ...

    def run_sc_deploy_step(self, step: ScDeployStep): ...

    def run_transfer_step(self, step: TransferStep): ...

    def run_validator_reward_step(self, step: ValidatorRewardStep): ...

    def run_check_state_step(self, step: CheckStateStep): ...

    def run_dump_state_step(self, step: DumpStateStep): ...


#: Step tag → runner method name.
STEP_DISPATCH: Dict[str, str] = {
    ExternalStepsStep.step_type: "run_external_steps",
    SetStateStep.step_type: "run_set_state_step",
    ScCallStep.step_type: "run_sc_call_step",
    ScQueryStep.step_type: "run_sc_query_step",
    ScDeployStep.step_type: "run_sc_deploy_step",
    TransferStep.step_type: "run_transfer_step",
    ValidatorRewardStep.step_type: "run_validator_reward_step",
    CheckStateStep.step_type: "run_check_state_step",
    DumpStateStep.step_type: "run_dump_state_step",
}


def run_step(runner: ScenarioRunner, step: Step):
    """Dispatches one step to the matching runner method."""
    method_name = STEP_DISPATCH.get(step.step_type)
    if method_name is None:
        raise TypeError(f"Unsupported step type '{step.step_type}' ({type(step).__name__}).")
    getattr(runner, method_name)(step)


def run_scenario_steps(runner: ScenarioRunner, scenario: Scenario):
    for step in scenario.steps:
        run_step(runner, step)
