# src/scensim_core/parser/parser.py
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import networkx as nx
import yaml

from ..errors import DiagnosableError
from ..model import (
    Account,
    BlockInfo,
    CheckAccount,
    CheckLog,
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
    TxExpect,
    TxStep,
    ValidatorRewardStep,
)
from ..values import AddressValue, BigUintValue, BytesValue, CheckValue, InterpreterContext, U64Value
from .exceptions import CircularExternalStepsError, ParsingError, ScenarioStepError, SchemaValidationError
from .schema import DOCUMENT_SCHEMA, STEP_SCHEMAS, EnhancedValidator

logger = logging.getLogger(__name__)

JSON_SUFFIXES = (".json",)


def _expr(value: Any) -> str:
    """Scenario values may come in as YAML integers; the value language works on strings."""
    return str(value) if isinstance(value, int) else value


def _egld_value(tx: Dict[str, Any]) -> Optional[str]:
    value = tx.get("egldValue", tx.get("value"))
    return None if value is None else _expr(value)


class ScenarioParser:
    """
    Loads scenario files (JSON or YAML) into `Scenario` objects.

    Parsing happens in three stages: the document is loaded and checked against the
    Cerberus schemas; the graph of `externalSteps` includes reachable from it is built
    and checked for cycles; finally every step is built through the same fluent
    builders user code uses, so value expressions and payment rules are enforced
    exactly as they are for scenarios written in Python.
    """

    def __init__(self):
        self._document_validator = EnhancedValidator(DOCUMENT_SCHEMA)
        self._document_validator.allow_unknown = False
        self._step_validators = {
            step_type: EnhancedValidator(schema) for step_type, schema in STEP_SCHEMAS.items()
        }
        for validator in self._step_validators.values():
            validator.allow_unknown = False
        logger.debug("ScenarioParser initialized.")

    # --- Public API ---

    def parse_file(self, path: Union[str, Path]) -> Scenario:
        resolved_path = Path(path).resolve()
        logger.info(f"Parsing scenario file: {resolved_path}")
        document = self.load_document(resolved_path)
        self.check_includes(resolved_path, document)
        return self.parse_document(document, source_path=resolved_path)

    def parse_document(
        self,
        document: Dict[str, Any],
        source_path: Optional[Path] = None,
        context: Optional[InterpreterContext] = None,
    ) -> Scenario:
        """Validates an in-memory scenario document and builds its steps."""
        self._validate(document, source_path)
        if context is None:
            context = InterpreterContext(source_path.parent) if source_path else InterpreterContext()

        scenario = Scenario(
            name=document.get("name"),
            comment=document.get("comment"),
            check_gas=document.get("checkGas"),
            source_path=source_path,
        )
        for index, raw_step in enumerate(document["steps"]):
            scenario.steps.append(self._build_step(index, raw_step, source_path, context))
        logger.debug(f"Built {len(scenario.steps)} step(s) from '{source_path or '<memory>'}'.")
        return scenario

    def load_document(self, source: Path) -> Dict[str, Any]:
        """Loads and performs basic sanity checks on a scenario file."""
        if not source.is_file():
            raise ParsingError(details=f"Scenario file not found at path: {source}", file_path=source)
        try:
            with source.open("r", encoding="utf-8") as f:
                if source.suffix in JSON_SUFFIXES:
                    content = json.load(f)
                else:
                    content = yaml.safe_load(f)
        except PermissionError as e:
            raise ParsingError(details=f"Permission denied when trying to read file: {e}", file_path=source) from e
        except json.JSONDecodeError as e:
            raise ParsingError(details=f"Invalid JSON syntax: {e}", file_path=source) from e
        except yaml.YAMLError as e:
            raise ParsingError(details=f"Invalid YAML syntax: {e}", file_path=source) from e

        if content is None:
            raise ParsingError(details="The scenario file is empty.", file_path=source)
        if not isinstance(content, dict):
            raise ParsingError(details="The root of a scenario file must be a mapping.", file_path=source)
        return content

    def check_includes(self, root_path: Path, root_document: Dict[str, Any]) -> nx.DiGraph:
        """
        Builds the include graph of `externalSteps` reachable from `root_path` and
        raises `CircularExternalStepsError` if it contains a cycle.
        """
        graph = nx.DiGraph()
        graph.add_node(root_path)
        pending = [(root_path, root_document)]
        while pending:
            path, document = pending.pop()
            for included in self._external_paths(path, document):
                is_new = included not in graph
                graph.add_edge(path, included)
                if is_new:
                    pending.append((included, self.load_document(included)))
        try:
            cycle = nx.find_cycle(graph, source=root_path)
        except nx.NetworkXNoCycle:
            return graph
        cycle_paths = [edge[0] for edge in cycle] + [cycle[-1][1]]
        logger.error(f"Circular externalSteps in '{root_path}'.")
        raise CircularExternalStepsError(cycle=cycle_paths)

    # --- Validation ---

    def _validate(self, document: Dict[str, Any], source_path: Optional[Path]):
        if not self._document_validator.validate(document):
            raise SchemaValidationError(self._document_validator.errors, source_path)
        errors = {}
        for index, raw_step in enumerate(document["steps"]):
            validator = self._step_validators[raw_step["step"]]
            if not validator.validate(raw_step):
                errors[f"steps.{index}({raw_step['step']})"] = validator.errors
        if errors:
            raise SchemaValidationError(errors, source_path)

    @staticmethod
    def _external_paths(path: Path, document: Dict[str, Any]) -> List[Path]:
        steps = document.get("steps") if isinstance(document, dict) else None
        if not isinstance(steps, list):
            return []
        return [
            (path.parent / raw_step["path"]).resolve()
            for raw_step in steps
            if isinstance(raw_step, dict) and raw_step.get("step") == "externalSteps" and isinstance(raw_step.get("path"), str)
        ]

    # --- Step construction ---

    def _build_step(self, index: int, raw_step: Dict[str, Any], source_path: Optional[Path], context: InterpreterContext) -> Step:
        builders: Dict[str, Callable[[Dict[str, Any], InterpreterContext], Step]] = {
            "setState": self._build_set_state,
            "scDeploy": self._build_sc_deploy,
            "scCall": self._build_sc_call,
            "scQuery": self._build_sc_query,
            "transfer": self._build_transfer,
            "validatorReward": self._build_validator_reward,
            "checkState": self._build_check_state,
            "dumpState": lambda raw, ctx: DumpStateStep(),
            "externalSteps": lambda raw, ctx: ExternalStepsStep(path=ctx.context_path / raw["path"]),
        }
        step_id = str(raw_step["id"]) if "id" in raw_step else ""
        try:
            step = builders[raw_step["step"]](raw_step, context)
        except DiagnosableError as e:
            raise ScenarioStepError(
                details=str(e),
                step_index=index,
                step_id=step_id,
                file_path=source_path,
                cause_report=e.get_diagnostic_report(),
            ) from e

        step.id = step_id
        step.comment = raw_step.get("comment")
        if isinstance(step, TxStep) and "txId" in raw_step:
            step.tx_id = str(raw_step["txId"])
        return step

    def _build_set_state(self, raw: Dict[str, Any], ctx: InterpreterContext) -> SetStateStep:
        step = SetStateStep.new()
        for address, raw_account in raw.get("accounts", {}).items():
            step.put_account(AddressValue.of(address, ctx), self._build_account(raw_account, ctx))
        for entry in raw.get("newAddresses", []):
            step.new_address(
                AddressValue.of(_expr(entry["creatorAddress"]), ctx),
                U64Value.of(_expr(entry["creatorNonce"]), ctx),
                AddressValue.of(_expr(entry["newAddress"]), ctx),
            )
        for key, attr in (("previousBlockInfo", "previous_block_info"), ("currentBlockInfo", "current_block_info")):
            if key in raw:
                setattr(step, attr, self._build_block_info(raw[key], ctx))
        return step

    @staticmethod
    def _build_block_info(raw: Dict[str, Any], ctx: InterpreterContext):
        info = BlockInfo()
        for key, value in raw.items():
            field_name = key[len("block"):].lower()
            setattr(info, field_name, U64Value.of(_expr(value), ctx))
        return info

    @staticmethod
    def _build_account(raw: Dict[str, Any], ctx: InterpreterContext) -> Account:
        account = Account.new()
        if "nonce" in raw:
            account.nonce(U64Value.of(_expr(raw["nonce"]), ctx))
        if "balance" in raw:
            account.balance(BigUintValue.of(_expr(raw["balance"]), ctx))
        for token, entry in raw.get("esdt", {}).items():
            token_value = BytesValue.of(token, ctx)
            if isinstance(entry, dict):
                for instance in entry.get("instances", []):
                    account.esdt_nft_balance(
                        token_value,
                        U64Value.of(_expr(instance.get("nonce", "0")), ctx),
                        BigUintValue.of(_expr(instance["balance"]), ctx),
                    )
            else:
                account.esdt_balance(token_value, BigUintValue.of(_expr(entry), ctx))
        if "code" in raw:
            account.code(BytesValue.of(_expr(raw["code"]), ctx))
        if "owner" in raw:
            account.owner(AddressValue.of(_expr(raw["owner"]), ctx))
        for key, value in raw.get("storage", {}).items():
            account.storage_entry(BytesValue.of(key, ctx), BytesValue.of(_expr(value), ctx))
        return account

    @staticmethod
    def _build_check_account(raw: Dict[str, Any], ctx: InterpreterContext) -> CheckAccount:
        account = CheckAccount.new()
        if "nonce" in raw:
            account.nonce(CheckValue.of(_expr(raw["nonce"]), ctx))
        if "balance" in raw:
            account.balance(CheckValue.of(_expr(raw["balance"]), ctx))
        esdt = raw.get("esdt", {})
        if isinstance(esdt, dict):
            for token, entry in esdt.items():
                token_value = BytesValue.of(token, ctx)
                if isinstance(entry, dict):
                    for instance in entry.get("instances", []):
                        account.esdt_nft_balance(
                            token_value,
                            U64Value.of(_expr(instance.get("nonce", "0")), ctx),
                            CheckValue.of(_expr(instance["balance"]), ctx),
                        )
                else:
                    account.esdt_balance(token_value, CheckValue.of(_expr(entry), ctx))
        if "code" in raw:
            account.code(CheckValue.of(_expr(raw["code"]), ctx))
        if "owner" in raw:
            account.owner(CheckValue.of(_expr(raw["owner"]), ctx))
        storage = raw.get("storage", {})
        if isinstance(storage, dict):
            for key, value in storage.items():
                if key == "+":
                    continue
                account.check_storage(BytesValue.of(key, ctx), CheckValue.of(_expr(value), ctx))
        return account

    @staticmethod
    def _build_expect(raw: Optional[Dict[str, Any]], ctx: InterpreterContext) -> Optional[TxExpect]:
        if raw is None:
            return None
        expect = TxExpect()
        if "status" in raw:
            expect.expect_status(CheckValue.of(_expr(raw["status"]), ctx))
        if "message" in raw:
            expect.expect_message(CheckValue.of(_expr(raw["message"]), ctx))
        out = raw.get("out", "*")
        if out != "*":
            expect.no_result()
            for value in out:
                expect.result(CheckValue.of(_expr(value), ctx))
        logs = raw.get("logs", "*")
        if logs != "*":
            expect.expect_logs([
                CheckLog(
                    address=CheckValue.of(_expr(log.get("address", "*")), ctx),
                    endpoint=CheckValue.of(_expr(log.get("endpoint", log.get("identifier", "*"))), ctx),
                    topics=[CheckValue.of(_expr(topic), ctx) for topic in log.get("topics", [])],
                    data=CheckValue.of(_expr(log.get("data", "*")), ctx),
                )
                for log in logs
            ])
        return expect

    def _build_sc_deploy(self, raw: Dict[str, Any], ctx: InterpreterContext) -> ScDeployStep:
        tx = raw["tx"]
        step = ScDeployStep.new().from_(AddressValue.of(_expr(tx["from"]), ctx))
        step.contract_code(_expr(tx["contractCode"]), ctx)
        if (value := _egld_value(tx)) is not None:
            step.egld_value(BigUintValue.of(value, ctx))
        for argument in tx.get("arguments", []):
            step.argument(BytesValue.of(_expr(argument), ctx))
        if "gasLimit" in tx:
            step.gas_limit(U64Value.of(_expr(tx["gasLimit"]), ctx))
        if "gasPrice" in tx:
            step.tx.gas_price = U64Value.of(_expr(tx["gasPrice"]), ctx)
        if (expect := self._build_expect(raw.get("expect"), ctx)) is not None:
            step.expect(expect)
        return step

    def _build_sc_call(self, raw: Dict[str, Any], ctx: InterpreterContext) -> ScCallStep:
        tx = raw["tx"]
        step = ScCallStep.new().from_(AddressValue.of(_expr(tx["from"]), ctx)).to(AddressValue.of(_expr(tx["to"]), ctx))
        step.function(tx["function"])
        if (value := _egld_value(tx)) is not None:
            step.egld_value(BigUintValue.of(value, ctx))
        for esdt in tx.get("esdtValue", []):
            step.esdt_transfer(
                BytesValue.of(_expr(esdt["tokenIdentifier"]), ctx),
                U64Value.of(_expr(esdt.get("nonce", "0")), ctx),
                BigUintValue.of(_expr(esdt["value"]), ctx),
            )
        for argument in tx.get("arguments", []):
            step.argument(BytesValue.of(_expr(argument), ctx))
        if "gasLimit" in tx:
            step.gas_limit(U64Value.of(_expr(tx["gasLimit"]), ctx))
        if "gasPrice" in tx:
            step.tx.gas_price = U64Value.of(_expr(tx["gasPrice"]), ctx)
        if (expect := self._build_expect(raw.get("expect"), ctx)) is not None:
            step.expect(expect)
        return step

    def _build_sc_query(self, raw: Dict[str, Any], ctx: InterpreterContext) -> ScQueryStep:
        tx = raw["tx"]
        step = ScQueryStep.new().to(AddressValue.of(_expr(tx["to"]), ctx)).function(tx["function"])
        for argument in tx.get("arguments", []):
            step.argument(BytesValue.of(_expr(argument), ctx))
        if (expect := self._build_expect(raw.get("expect"), ctx)) is not None:
            step.expect(expect)
        return step

    def _build_transfer(self, raw: Dict[str, Any], ctx: InterpreterContext) -> TransferStep:
        tx = raw["tx"]
        step = TransferStep.new().from_(AddressValue.of(_expr(tx["from"]), ctx)).to(AddressValue.of(_expr(tx["to"]), ctx))
        if (value := _egld_value(tx)) is not None:
            step.egld_value(BigUintValue.of(value, ctx))
        for esdt in tx.get("esdtValue", []):
            step.esdt_transfer(
                BytesValue.of(_expr(esdt["tokenIdentifier"]), ctx),
                U64Value.of(_expr(esdt.get("nonce", "0")), ctx),
                BigUintValue.of(_expr(esdt["value"]), ctx),
            )
        if "gasLimit" in tx:
            step.tx.gas_limit = U64Value.of(_expr(tx["gasLimit"]), ctx)
        if "gasPrice" in tx:
            step.tx.gas_price = U64Value.of(_expr(tx["gasPrice"]), ctx)
        return step

    @staticmethod
    def _build_validator_reward(raw: Dict[str, Any], ctx: InterpreterContext) -> ValidatorRewardStep:
        tx = raw["tx"]
        step = ValidatorRewardStep.new().to(AddressValue.of(_expr(tx["to"]), ctx))
        if (value := _egld_value(tx)) is not None:
            step.egld_value(BigUintValue.of(value, ctx))
        return step

    def _build_check_state(self, raw: Dict[str, Any], ctx: InterpreterContext) -> CheckStateStep:
        step = CheckStateStep.new()
        for address, raw_account in raw["accounts"].items():
            if address == "+":
                continue
            step.put_account(AddressValue.of(address, ctx), self._build_check_account(raw_account, ctx))
        return step
