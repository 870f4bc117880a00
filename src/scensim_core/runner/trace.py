# src/scensim_core/runner/trace.py
import logging
from pathlib import Path
from typing import Sequence, Union

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
from ..parser import ScenarioWriter

logger = logging.getLogger(__name__)


class ScenarioTrace:
    """
    Records a copy of every step it receives, so that the steps of a scenario built
    in code can be written out as a scenario file and replayed later. Copies never
    carry response handlers.
    """

    def __init__(self, name: str = "trace"):
        self.scenario = Scenario(name=name)

    def _record(self, step: Step):
        self.scenario.steps.append(step.copy_for_trace())

    def run_external_steps(self, step: ExternalStepsStep):
        self._record(step)

    def run_set_state_step(self, step: SetStateStep):
        self._record(step)

    def run_sc_call_step(self, step: ScCallStep):
        self._record(step)

    def run_multi_sc_call_step(self, steps: Sequence[ScCallStep]):
        for step in steps:
            self._record(step)

    def run_multi_sc_deploy_step(self, steps: Sequence[ScDeployStep]):
        for step in steps:
            self._record(step)

    def run_sc_query_step(self, step: ScQueryStep):
        self._record(step)

    def run_sc_deploy_step(self, step: ScDeployStep):
        self._record(step)

    def run_transfer_step(self, step: TransferStep):
        self._record(step)

    def run_validator_reward_step(self, step: ValidatorRewardStep):
        self._record(step)

    def run_check_state_step(self, step: CheckStateStep):
        self._record(step)

    def run_dump_state_step(self, step: DumpStateStep):
        self._record(step)

    def write_scenario_trace(self, path: Union[str, Path]) -> Path:
        written = ScenarioWriter().write_file(self.scenario, Path(path))
        logger.info(f"Wrote scenario trace with {len(self.scenario.steps)} step(s) to '{written}'.")
        return written
