# tests/test_facade.py

import textwrap

import pytest

from scensim_core import (
    Account,
    CheckAccount,
    CheckStateStep,
    RunConfig,
    ScDeployStep,
    ScCallStep,
    ScenarioBuildError,
    ScenarioRunError,
    ScenarioWorld,
    SetStateStep,
    TxExpect,
    run_scenario,
)
from scensim_core.checker import ScenarioCheckError
from scensim_core.contracts import AdderContract
from scensim_core.facade import Backend, BackendCapabilityError
from scensim_core.values import sc_address

from conftest import ADDER, ADDER_CODE, OWNER, register_test_contracts

DEPLOY_AND_ADD_YAML = """
steps:
  - step: setState
    accounts:
      address:owner: {nonce: "1", balance: "1,000"}
    newAddresses:
      - {creatorAddress: "address:owner", creatorNonce: "1", newAddress: "sc:adder"}
  - step: scDeploy
    id: deploy
    tx:
      from: address:owner
      contractCode: file:adder.wasm
      arguments: ["5"]
    expect: {out: [], status: "0"}
  - step: scCall
    id: add
    tx: {from: "address:owner", to: "sc:adder", function: add, arguments: ["2"]}
    expect: {status: "0"}
  - step: checkState
    accounts:
      sc:adder:
        storage: {str:sum: "7"}
"""


def write(directory, name, content):
    path = directory / name
    path.write_text(textwrap.dedent(content))
    return path


class TestBackends:
    """VERIFIES: The VM_GO backend only runs whole files; step-by-step use is refused."""

    def test_step_methods_are_refused(self, tmp_path):
        world = ScenarioWorld.vm_go(current_dir=tmp_path)
        with pytest.raises(BackendCapabilityError, match="vm-go backend does not support"):
            world.set_state_step(SetStateStep.new())
        with pytest.raises(BackendCapabilityError, match="start_trace"):
            world.start_trace()

    def test_vm_go_runs_whole_files(self, tmp_path):
        path = write(tmp_path, "adder.scen.yaml", DEPLOY_AND_ADD_YAML)
        world = register_test_contracts(ScenarioWorld(Backend.VM_GO, current_dir=tmp_path))
        world.run_scenario_file(path)
        # The file ran in a world of its own.
        assert not world.world.has_account(sc_address("adder"))

    def test_debugger_runs_files_in_its_own_world(self, world, tmp_path):
        write(tmp_path, "adder.scen.yaml", DEPLOY_AND_ADD_YAML)
        world.run_scenario_file("adder.scen.yaml")
        world.check_state_step(
            CheckStateStep.new().put_account(ADDER, CheckAccount.new().check_storage("str:sum", "7"))
        )

    def test_relative_external_steps(self, world, tmp_path):
        (tmp_path / "steps").mkdir()
        write(tmp_path / "steps", "adder.scen.yaml", DEPLOY_AND_ADD_YAML)
        world.external_steps("steps/adder.scen.yaml")
        assert world.world.get_account(sc_address("adder")).is_contract


class TestTracing:
    """VERIFIES: A trace records the steps that ran and replays to the same state."""

    def test_trace_round_trip(self, tmp_path):
        recording = register_test_contracts(ScenarioWorld.debugger(current_dir=tmp_path)).start_trace("adder")
        recording.set_state_step(
            SetStateStep.new()
            .put_account(OWNER, Account.new().nonce(1).balance("1,000"))
            .new_address(OWNER, 1, ADDER)
        )
        recording.sc_deploy_step(
            ScDeployStep.new().from_(OWNER).contract_code(ADDER_CODE, recording.interpreter_context())
            .argument("5").expect(TxExpect.ok().no_result())
        )
        seen = []
        recording.sc_call_step(
            ScCallStep("add-one").from_(OWNER).to(ADDER).function("add").argument("1")
            .with_raw_response(lambda response: seen.append(response.status))
        )
        assert seen == [0]
        assert len(recording.trace.scenario.steps) == 3

        written = recording.write_scenario_trace(tmp_path / "adder.trace.scen.json")
        assert written.is_file()

        replay = register_test_contracts(ScenarioWorld.debugger(current_dir=tmp_path))
        replay.run_scenario_file(written)
        replay.check_state_step(
            CheckStateStep.new().put_account(ADDER, CheckAccount.new().check_storage("str:sum", "6"))
        )

    def test_failed_step_is_not_recorded(self, adder_world):
        adder_world.start_trace()
        with pytest.raises(ScenarioCheckError):
            adder_world.sc_call_step(
                ScCallStep.new().from_(OWNER).to(ADDER).function("add").argument("1").expect(TxExpect.user_error("str:x"))
            )
        assert adder_world.trace.scenario.steps == []

    def test_write_without_trace(self, world, tmp_path):
        with pytest.raises(RuntimeError, match="start_trace"):
            world.write_scenario_trace(tmp_path / "t.scen.json")


class TestDeployAddressCallback:
    """VERIFIES: sc_deploy_use_new_address hands over the deployed address, or None on failure."""

    def test_address_is_passed(self, world):
        world.set_state_step(SetStateStep.new().put_account(OWNER, Account.new()).new_address(OWNER, 0, ADDER))
        addresses = []
        world.sc_deploy_use_new_address(
            ScDeployStep.new().from_(OWNER).contract_code(ADDER_CODE, world.interpreter_context()).argument("1"),
            addresses.append,
        )
        assert addresses == [sc_address("adder")]

    def test_none_on_failure(self, world):
        world.set_state_step(SetStateStep.new().put_account(OWNER, Account.new()))
        addresses = []
        world.sc_deploy_use_new_address(
            ScDeployStep.new().from_(OWNER).contract_code(ADDER_CODE, world.interpreter_context())
            .expect(TxExpect.err(2, "*")),
            addresses.append,
        )
        assert addresses == [None]


class TestRunScenario:
    """VERIFIES: run_scenario wraps loading and running failures into the top-level errors."""

    def test_success_returns_world(self, tmp_path):
        path = write(tmp_path, "adder.scen.yaml", DEPLOY_AND_ADD_YAML)
        world = run_scenario(path, contracts={ADDER_CODE: AdderContract})
        assert world.world.get_account(sc_address("adder")).storage_load(b"sum") == b"\x07"

    def test_trace_is_written_when_configured(self, tmp_path):
        path = write(tmp_path, "adder.scen.yaml", DEPLOY_AND_ADD_YAML)
        trace_path = tmp_path / "traces" / "adder.trace.scen.yaml"
        run_scenario(path, RunConfig(trace=True, trace_path=trace_path), contracts={ADDER_CODE: AdderContract})
        assert trace_path.is_file()

    def test_parse_failure_is_a_build_error(self, tmp_path):
        path = write(tmp_path, "broken.scen.yaml", "steps: [{step: scCall}]")
        with pytest.raises(ScenarioBuildError, match="Scenario Schema Validation Error"):
            run_scenario(path)

    def test_failed_check_is_a_run_error(self, tmp_path):
        content = DEPLOY_AND_ADD_YAML.replace('str:sum: "7"', 'str:sum: "8"')
        path = write(tmp_path, "wrong.scen.yaml", content)
        with pytest.raises(ScenarioRunError, match="str:sum"):
            run_scenario(path, contracts={ADDER_CODE: AdderContract})

    def test_unknown_contract_code_is_a_run_error(self, tmp_path):
        path = write(tmp_path, "adder.scen.yaml", DEPLOY_AND_ADD_YAML)
        with pytest.raises(ScenarioRunError):
            run_scenario(path)
