# src/scensim_core/parser/writer.py
"""
Serialises a `Scenario` back into a scenario document.

Every value is written with the expression it was built from, so a trace of a
scenario assembled in Python reads like a hand-written scenario file and replays
to the same results.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..model import (
    Account,
    BlockInfo,
    CheckAccount,
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
from ..model.transaction import TxESDT
from .exceptions import ParsingError
from .parser import JSON_SUFFIXES

logger = logging.getLogger(__name__)


class ScenarioWriter:
    """Turns scenarios into JSON (for `.json` paths) or YAML documents."""

    def write_file(self, scenario: Scenario, path: Path) -> Path:
        path = Path(path)
        document = self.to_document(scenario, base_dir=path.parent.resolve())
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as f:
                if path.suffix in JSON_SUFFIXES:
                    json.dump(document, f, indent=4)
                    f.write("\n")
                else:
                    yaml.safe_dump(document, f, sort_keys=False, allow_unicode=True)
        except OSError as e:
            raise ParsingError(details=f"Could not write scenario file: {e}", file_path=path) from e
        return path

    def to_document(self, scenario: Scenario, base_dir: Optional[Path] = None) -> Dict[str, Any]:
        document: Dict[str, Any] = {}
        if scenario.name:
            document["name"] = scenario.name
        if scenario.comment:
            document["comment"] = scenario.comment
        if scenario.check_gas is not None:
            document["checkGas"] = scenario.check_gas
        document["steps"] = [self._step(step, base_dir) for step in scenario.steps]
        return document

    # --- Steps ---

    def _step(self, step: Step, base_dir: Optional[Path]) -> Dict[str, Any]:
        raw: Dict[str, Any] = {"step": step.step_type}
        if step.id:
            raw["id"] = step.id
        if isinstance(step, TxStep) and step.tx_id:
            raw["txId"] = step.tx_id
        if step.comment:
            raw["comment"] = step.comment

        if isinstance(step, SetStateStep):
            raw.update(self._set_state(step))
        elif isinstance(step, ScDeployStep):
            raw["tx"] = self._sc_deploy_tx(step)
        elif isinstance(step, ScCallStep):
            raw["tx"] = self._sc_call_tx(step)
        elif isinstance(step, ScQueryStep):
            raw["tx"] = {
                "to": step.tx.to_address.original if step.tx.to_address else "",
                "function": step.tx.function,
                "arguments": [arg.original for arg in step.tx.arguments],
            }
        elif isinstance(step, TransferStep):
            raw["tx"] = self._transfer_tx(step)
        elif isinstance(step, ValidatorRewardStep):
            raw["tx"] = {
                "to": step.tx.to_address.original if step.tx.to_address else "",
                "egldValue": step.tx.egld_value.original,
            }
        elif isinstance(step, CheckStateStep):
            raw["accounts"] = {
                address.original: self._check_account(account) for address, account in step.accounts.items()
            }
        elif isinstance(step, ExternalStepsStep):
            raw["path"] = self._relative_path(step.path, base_dir)
        elif not isinstance(step, DumpStateStep):
            raise TypeError(f"Cannot serialise step of type {type(step).__name__}.")

        if isinstance(step, TxStep) and step.expect_value is not None:
            raw["expect"] = self._expect(step.expect_value)
        return raw

    @staticmethod
    def _relative_path(path: Path, base_dir: Optional[Path]) -> str:
        if base_dir is None or not path.is_absolute():
            return path.as_posix()
        return Path(os.path.relpath(path, base_dir)).as_posix()

    def _set_state(self, step: SetStateStep) -> Dict[str, Any]:
        raw: Dict[str, Any] = {}
        if step.accounts:
            raw["accounts"] = {address.original: self._account(account) for address, account in step.accounts.items()}
        if step.new_addresses:
            raw["newAddresses"] = [
                {
                    "creatorAddress": entry.creator_address.original,
                    "creatorNonce": entry.creator_nonce.original,
                    "newAddress": entry.new_address.original,
                }
                for entry in step.new_addresses
            ]
        if step.previous_block_info is not None:
            raw["previousBlockInfo"] = self._block_info(step.previous_block_info)
        if step.current_block_info is not None:
            raw["currentBlockInfo"] = self._block_info(step.current_block_info)
        return raw

    @staticmethod
    def _block_info(info: BlockInfo) -> Dict[str, str]:
        raw = {}
        for name in ("timestamp", "nonce", "round", "epoch"):
            value = getattr(info, name)
            if value is not None:
                raw[f"block{name.capitalize()}"] = value.original
        return raw

    @staticmethod
    def _account(account: Account) -> Dict[str, Any]:
        raw: Dict[str, Any] = {}
        if account.nonce_value is not None:
            raw["nonce"] = account.nonce_value.original
        if account.balance_value is not None:
            raw["balance"] = account.balance_value.original
        if account.esdt:
            raw["esdt"] = {}
            for token, instances in account.esdt.items():
                if len(instances) == 1 and instances[0].nonce.value == 0:
                    raw["esdt"][token.original] = instances[0].balance.original
                else:
                    raw["esdt"][token.original] = {"instances": [
                        {"nonce": instance.nonce.original, "balance": instance.balance.original}
                        for instance in instances
                    ]}
        if account.code_value is not None:
            raw["code"] = account.code_value.original
        if account.owner_value is not None:
            raw["owner"] = account.owner_value.original
        if account.storage:
            raw["storage"] = {key.original: value.original for key, value in account.storage.items()}
        return raw

    @staticmethod
    def _check_account(account: CheckAccount) -> Dict[str, Any]:
        raw: Dict[str, Any] = {}
        if account.nonce_check is not None:
            raw["nonce"] = account.nonce_check.original
        if account.balance_check is not None:
            raw["balance"] = account.balance_check.original
        if account.esdt:
            raw["esdt"] = {}
            for token, instances in account.esdt.items():
                if len(instances) == 1 and instances[0].nonce == 0:
                    raw["esdt"][token.original] = instances[0].balance.original
                else:
                    raw["esdt"][token.original] = {"instances": [
                        {"nonce": str(instance.nonce), "balance": instance.balance.original}
                        for instance in instances
                    ]}
        if account.code_check is not None:
            raw["code"] = account.code_check.original
        if account.owner_check is not None:
            raw["owner"] = account.owner_check.original
        if account.storage:
            raw["storage"] = {key.original: value.original for key, value in account.storage.items()}
        return raw

    @staticmethod
    def _esdt_list(esdt_values: List[TxESDT]) -> List[Dict[str, str]]:
        return [
            {"tokenIdentifier": esdt.token_identifier.original, "nonce": esdt.nonce.original, "value": esdt.value.original}
            for esdt in esdt_values
        ]

    def _sc_deploy_tx(self, step: ScDeployStep) -> Dict[str, Any]:
        tx = step.tx
        return {
            "from": tx.from_address.original if tx.from_address else "",
            "contractCode": tx.contract_code.original if tx.contract_code else "",
            "egldValue": tx.egld_value.original,
            "arguments": [arg.original for arg in tx.arguments],
            "gasLimit": tx.gas_limit.original,
            "gasPrice": tx.gas_price.original,
        }

    def _sc_call_tx(self, step: ScCallStep) -> Dict[str, Any]:
        tx = step.tx
        raw: Dict[str, Any] = {
            "from": tx.from_address.original if tx.from_address else "",
            "to": tx.to_address.original if tx.to_address else "",
        }
        if tx.esdt_value:
            raw["esdtValue"] = self._esdt_list(tx.esdt_value)
        else:
            raw["egldValue"] = tx.egld_value.original
        raw.update({
            "function": tx.function,
            "arguments": [arg.original for arg in tx.arguments],
            "gasLimit": tx.gas_limit.original,
            "gasPrice": tx.gas_price.original,
        })
        return raw

    def _transfer_tx(self, step: TransferStep) -> Dict[str, Any]:
        tx = step.tx
        raw: Dict[str, Any] = {
            "from": tx.from_address.original if tx.from_address else "",
            "to": tx.to_address.original if tx.to_address else "",
        }
        if tx.esdt_value:
            raw["esdtValue"] = self._esdt_list(tx.esdt_value)
        else:
            raw["egldValue"] = tx.egld_value.original
        return raw

    @staticmethod
    def _expect(expect: TxExpect) -> Dict[str, Any]:
        raw: Dict[str, Any] = {}
        raw["out"] = "*" if expect.out is None else [value.original for value in expect.out]
        raw["status"] = expect.status.original
        if expect.message is not None:
            raw["message"] = expect.message.original
        if expect.logs is not None:
            raw["logs"] = [
                {
                    "address": log.address.original,
                    "endpoint": log.endpoint.original,
                    "topics": [topic.original for topic in log.topics],
                    "data": log.data.original,
                }
                for log in expect.logs
            ]
        return raw
