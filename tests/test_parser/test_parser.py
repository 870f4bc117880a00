# tests/test_parser/test_parser.py

import json
import textwrap
from pathlib import Path

import pytest
import yaml

from scensim_core.model import (
    CheckStateStep,
    DumpStateStep,
    ExternalStepsStep,
    ScCallStep,
    ScDeployStep,
    ScQueryStep,
    SetStateStep,
    TransferStep,
    ValidatorRewardStep,
)
from scensim_core.parser import (
    CircularExternalStepsError,
    ParsingError,
    ScenarioParser,
    ScenarioStepError,
    ScenarioWriter,
    SchemaValidationError,
)
from scensim_core.values import sc_address, user_address

# --- Helper function to create the scenario files for tests ---

ADDER_SCENARIO_YAML = """
name: adder
comment: deploy, add and check
steps:
  - step: setState
    id: init-accounts
    accounts:
      address:owner:
        nonce: 1
        balance: "1,000,000"
        esdt:
          str:TOK-123456: "100"
          str:NFT-abcdef:
            instances:
              - nonce: "2"
                balance: "1"
    newAddresses:
      - creatorAddress: address:owner
        creatorNonce: "1"
        newAddress: sc:adder
    currentBlockInfo:
      blockTimestamp: "1000"
      blockNonce: 12
  - step: scDeploy
    id: deploy
    tx:
      from: address:owner
      contractCode: file:adder.wasm
      arguments: ["5"]
      gasLimit: "5,000,000"
    expect:
      out: []
      status: "0"
  - step: scCall
    id: add
    txId: add-tx
    tx:
      from: address:owner
      to: sc:adder
      function: add
      arguments: ["3"]
    expect:
      status: "0"
      message: ""
  - step: scQuery
    id: get-sum
    tx:
      to: sc:adder
      function: getSum
    expect:
      out: ["8"]
  - step: transfer
    id: pay
    tx:
      from: address:owner
      to: sc:adder
      esdtValue:
        - tokenIdentifier: str:TOK-123456
          value: "10"
  - step: validatorReward
    id: reward
    tx:
      to: sc:adder
      egldValue: "7"
  - step: checkState
    id: check
    accounts:
      sc:adder:
        storage:
          str:sum: "8"
          +: ""
      +: ""
  - step: dumpState
"""


def write_scenario(directory: Path, name: str, content: str) -> Path:
    path = directory / name
    path.write_text(textwrap.dedent(content))
    return path


@pytest.fixture
def parser() -> ScenarioParser:
    return ScenarioParser()


class TestParsingValidFiles:
    """VERIFIES: Scenario files in YAML and JSON build the same typed steps the fluent API builds."""

    def test_yaml_scenario_builds_every_step_type(self, parser, tmp_path):
        scenario = parser.parse_file(write_scenario(tmp_path, "adder.scen.yaml", ADDER_SCENARIO_YAML))

        assert scenario.name == "adder"
        assert scenario.source_path == (tmp_path / "adder.scen.yaml").resolve()
        assert [type(step) for step in scenario.steps] == [
            SetStateStep, ScDeployStep, ScCallStep, ScQueryStep, TransferStep,
            ValidatorRewardStep, CheckStateStep, DumpStateStep,
        ]

        set_state = scenario.steps[0]
        assert set_state.id == "init-accounts"
        owner = next(iter(set_state.accounts.values()))
        assert owner.nonce_value.value == 1
        assert owner.balance_value.value == 1_000_000
        assert len(owner.esdt) == 2
        assert set_state.new_addresses[0].new_address.value == sc_address("adder")
        assert set_state.current_block_info.timestamp.value == 1000
        assert set_state.current_block_info.nonce.value == 12

        deploy = scenario.steps[1]
        assert deploy.tx.contract_code.value == b"MISSING:adder.wasm"
        assert deploy.tx.gas_limit.value == 5_000_000
        assert deploy.expect_value.out == []

        call = scenario.steps[2]
        assert call.tx_id == "add-tx"
        assert call.tx.from_address.value == user_address("owner")
        assert [arg.value for arg in call.tx.arguments] == [b"\x03"]
        assert call.expect_value.out is None
        assert call.expect_value.message.original == ""

        transfer = scenario.steps[4]
        assert transfer.tx.esdt_value[0].value.value == 10

        check = scenario.steps[6]
        assert len(check.accounts) == 1
        only_check = next(iter(check.accounts.values()))
        assert len(only_check.storage) == 1

    def test_json_scenario(self, parser, tmp_path):
        document = yaml.safe_load(ADDER_SCENARIO_YAML)
        path = tmp_path / "adder.scen.json"
        path.write_text(json.dumps(document))
        scenario = parser.parse_file(path)
        assert len(scenario.steps) == 8

    def test_contract_code_is_read_relative_to_the_file(self, parser, tmp_path):
        (tmp_path / "output").mkdir()
        (tmp_path / "output" / "adder.wasm").write_bytes(b"\x00asm")
        path = write_scenario(tmp_path, "deploy.scen.yaml", """
            steps:
              - step: scDeploy
                tx:
                  from: address:owner
                  contractCode: file:output/adder.wasm
        """)
        scenario = parser.parse_file(path)
        assert scenario.steps[0].tx.contract_code.value == b"\x00asm"

    def test_external_steps_resolved_against_including_file(self, parser, tmp_path):
        (tmp_path / "sub").mkdir()
        write_scenario(tmp_path / "sub", "init.scen.yaml", "steps: [{step: dumpState}]")
        path = write_scenario(tmp_path, "main.scen.yaml", """
            steps:
              - step: externalSteps
                path: sub/init.scen.yaml
        """)
        scenario = parser.parse_file(path)
        step = scenario.steps[0]
        assert isinstance(step, ExternalStepsStep)
        assert step.path.resolve() == (tmp_path / "sub" / "init.scen.yaml").resolve()


class TestParsingInvalidFiles:
    """VERIFIES: Loading, schema and step-construction failures are reported with precise errors."""

    def test_missing_file(self, parser, tmp_path):
        with pytest.raises(ParsingError, match="not found"):
            parser.parse_file(tmp_path / "nope.scen.yaml")

    def test_empty_file(self, parser, tmp_path):
        with pytest.raises(ParsingError, match="empty"):
            parser.parse_file(write_scenario(tmp_path, "empty.scen.yaml", ""))

    def test_invalid_yaml(self, parser, tmp_path):
        with pytest.raises(ParsingError, match="Invalid YAML"):
            parser.parse_file(write_scenario(tmp_path, "bad.scen.yaml", "steps: [unclosed"))

    def test_invalid_json(self, parser, tmp_path):
        with pytest.raises(ParsingError, match="Invalid JSON"):
            parser.parse_file(write_scenario(tmp_path, "bad.scen.json", "{\"steps\": ["))

    def test_unknown_step_type(self, parser, tmp_path):
        with pytest.raises(SchemaValidationError, match="steps"):
            parser.parse_file(write_scenario(tmp_path, "unknown.scen.yaml", "steps: [{step: teleport}]"))

    def test_missing_tx(self, parser, tmp_path):
        with pytest.raises(SchemaValidationError, match="tx"):
            parser.parse_file(write_scenario(tmp_path, "notx.scen.yaml", "steps: [{step: scCall}]"))

    def test_unknown_tx_field(self, parser, tmp_path):
        path = write_scenario(tmp_path, "field.scen.yaml", """
            steps:
              - step: scQuery
                tx: {to: "sc:adder", function: getSum, from: "address:owner"}
        """)
        with pytest.raises(SchemaValidationError, match="from"):
            parser.parse_file(path)

    def test_duplicate_step_ids(self, parser, tmp_path):
        path = write_scenario(tmp_path, "dup.scen.yaml", """
            steps:
              - {step: dumpState, id: same}
              - {step: dumpState, id: same}
        """)
        with pytest.raises(SchemaValidationError, match="Duplicate"):
            parser.parse_file(path)

    def test_bad_value_expression(self, parser, tmp_path):
        path = write_scenario(tmp_path, "expr.scen.yaml", """
            steps:
              - step: scCall
                id: broken
                tx:
                  from: address:owner
                  to: sc:adder
                  function: add
                  arguments: ["0xabc"]
        """)
        with pytest.raises(ScenarioStepError) as exc_info:
            parser.parse_file(path)
        assert exc_info.value.step_id == "broken"
        assert "0xabc" in exc_info.value.get_diagnostic_report()

    def test_payment_conflict_in_file(self, parser, tmp_path):
        path = write_scenario(tmp_path, "pay.scen.yaml", """
            steps:
              - step: scCall
                tx:
                  from: address:owner
                  to: sc:adder
                  function: add
                  egldValue: "5"
                  esdtValue: [{tokenIdentifier: "str:TOK-123456", value: "1"}]
        """)
        with pytest.raises(ScenarioStepError, match="both EGLD and ESDT"):
            parser.parse_file(path)

    def test_circular_external_steps(self, parser, tmp_path):
        write_scenario(tmp_path, "a.scen.yaml", "steps: [{step: externalSteps, path: b.scen.yaml}]")
        write_scenario(tmp_path, "b.scen.yaml", "steps: [{step: externalSteps, path: a.scen.yaml}]")
        with pytest.raises(CircularExternalStepsError) as exc_info:
            parser.parse_file(tmp_path / "a.scen.yaml")
        assert [path.name for path in exc_info.value.cycle] == ["a.scen.yaml", "b.scen.yaml", "a.scen.yaml"]

    def test_missing_external_file(self, parser, tmp_path):
        path = write_scenario(tmp_path, "main.scen.yaml", "steps: [{step: externalSteps, path: gone.scen.yaml}]")
        with pytest.raises(ParsingError, match="not found"):
            parser.parse_file(path)


class TestWriter:
    """VERIFIES: A written scenario parses back into equivalent steps."""

    @pytest.mark.parametrize("file_name", ["trace.scen.yaml", "trace.scen.json"])
    def test_written_scenario_parses_back(self, parser, tmp_path, file_name):
        original = parser.parse_file(write_scenario(tmp_path, "adder.scen.yaml", ADDER_SCENARIO_YAML))
        written = ScenarioWriter().write_file(original, tmp_path / "out" / file_name)
        reparsed = parser.parse_file(written)

        assert [type(step) for step in reparsed.steps] == [type(step) for step in original.steps]
        assert [step.id for step in reparsed.steps] == [step.id for step in original.steps]
        deploy = reparsed.steps[1]
        assert deploy.tx.contract_code.original == "file:adder.wasm"
        assert reparsed.steps[3].expect_value.out[0].original == "8"

    def test_external_path_written_relative_to_trace(self, tmp_path):
        from scensim_core.model import Scenario
        scenario = Scenario(name="t", steps=[ExternalStepsStep(tmp_path / "lib" / "init.scen.yaml")])
        document = ScenarioWriter().to_document(scenario, base_dir=tmp_path / "traces")
        assert document["steps"][0]["path"] == "../lib/init.scen.yaml"
