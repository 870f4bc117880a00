# src/scensim_core/runner/vm_runner.py
"""
Defines `ScenarioVMRunner`, which executes scenario steps against the in-process VM.

For every executable step the runner:
1. builds a `TxInput` from the step's transaction and the current world;
2. hands it to the `BlockchainVM`;
3. attaches the resulting `TxResponse` to the step (write-once);
4. checks the response against the step's expectation, if one was declared;
5. runs, then drops, the step's response handlers.

The sender's nonce is incremented for calls, deploys and transfers before anything
executes, so it stays incremented when the contract fails. Contract failures are
statuses on the response; the exceptions raised here are integrity failures that
abort the scenario.
"""
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from ..checker import check_state, check_tx_output
from ..constants import QUERY_GAS_LIMIT, VALIDATOR_REWARD_KEY
from ..model import (
    BlockInfo,
    CheckStateStep,
    DumpStateStep,
    EsdtTransfer,
    ExternalStepsStep,
    Scenario,
    ScCallStep,
    ScDeployStep,
    ScQueryStep,
    SetStateStep,
    TransferStep,
    TxResponse,
    TxStep,
    ValidatorRewardStep,
)
from ..model.transaction import TxESDT
from ..parser import ScenarioParser
from ..values import Address, AddressValue, InterpreterContext, top_decode_biguint, top_encode_biguint
from ..vm import BlockchainVM, TxInput, generate_tx_hash
from ..world import AccountState, BlockState, WorldState
from .base import run_scenario_steps
from .exceptions import IncompleteStepError, PendingCallsOnQueryError

logger = logging.getLogger(__name__)


def _esdt_transfers(esdt_values: Sequence[TxESDT]):
    return [
        EsdtTransfer(token_identifier=esdt.token_identifier.value, nonce=esdt.nonce.value, amount=esdt.value.value)
        for esdt in esdt_values
    ]


def _merge_block_info(block: BlockState, info: BlockInfo) -> BlockState:
    changes = {
        name: getattr(info, name).value
        for name in ("timestamp", "nonce", "round", "epoch")
        if getattr(info, name) is not None
    }
    return replace(block, **changes)


class ScenarioVMRunner:
    """Executes steps against a `WorldState` through a `BlockchainVM`."""

    def __init__(
        self,
        world: Optional[WorldState] = None,
        vm: Optional[BlockchainVM] = None,
        context: Optional[InterpreterContext] = None,
        parser: Optional[ScenarioParser] = None,
    ):
        self.world = world or WorldState()
        self.vm = vm or BlockchainVM(self.world)
        self.context = context or InterpreterContext()
        self.parser = parser or ScenarioParser()

    # --- Helpers ---

    @staticmethod
    def _required(step: TxStep, value: Optional[AddressValue], field: str) -> Address:
        if value is None:
            raise IncompleteStepError(step_id=step.id, field=field)
        return value.value

    def _bump_nonce(self, sender: Address, details: str) -> AccountState:
        account = self.world.require_account(sender, details)
        account.nonce += 1
        return account

    def _finish_step(self, step: TxStep, response: TxResponse, check_status: bool = True):
        step.set_response(response)
        if step.expect_value is not None:
            check_tx_output(step.id, step.expect_value, response)
        elif check_status and not response.is_success:
            logger.warning(
                f"Step '{step.id}' failed with status {response.status} ('{response.message}') "
                f"and declares no expectation."
            )
        step.trigger_handlers()

    # --- Scenario-level ---

    def run_scenario(self, scenario: Scenario):
        logger.info(f"Running scenario '{scenario.name or scenario.source_path or 'unnamed'}' ({len(scenario.steps)} steps).")
        run_scenario_steps(self, scenario)

    def run_external_steps(self, step: ExternalStepsStep):
        path = step.path if step.path.is_absolute() else self.context.context_path / step.path
        logger.info(f"Running external steps from '{path}'.")
        scenario = self.parser.parse_file(Path(path))
        self.run_scenario(scenario)

    # --- State steps ---

    def run_set_state_step(self, step: SetStateStep):
        logger.info(f"setState '{step.id}': {len(step.accounts)} account(s), {len(step.new_addresses)} new address(es).")
        for address_value, account in step.accounts.items():
            self.world.put_account(address_value.value, AccountState.from_model(account))
        for new_address in step.new_addresses:
            self.world.register_new_address(
                new_address.creator_address.value,
                new_address.creator_nonce.value,
                new_address.new_address.value,
            )
        if step.previous_block_info is not None:
            self.world.set_previous_block_info(_merge_block_info(self.world.previous_block, step.previous_block_info))
        if step.current_block_info is not None:
            self.world.set_current_block_info(_merge_block_info(self.world.current_block, step.current_block_info))

    def run_check_state_step(self, step: CheckStateStep):
        logger.info(f"checkState '{step.id}': {len(step.accounts)} account(s).")
        check_state(step, self.world)

    def run_dump_state_step(self, step: Optional[DumpStateStep] = None):
        logger.info(self.dump_state())

    def dump_state(self) -> str:
        lines = ["World state dump:"]
        for address, account in self.world.iter_accounts():
            lines.append(f"  {address}: nonce={account.nonce} balance={account.balance}")
            for (token, token_nonce), amount in sorted(account.esdt.items()):
                lines.append(f"    esdt {token.decode('utf-8', errors='replace')}/{token_nonce}: {amount}")
            if account.code is not None:
                lines.append(f"    code: {len(account.code)} bytes, owner={account.owner}")
            for key, value in sorted(account.storage.items()):
                lines.append(f"    storage 0x{key.hex()} = 0x{value.hex()}")
            if account.call_queue:
                lines.append(f"    queued calls: {len(account.call_queue)}")
        return "\n".join(lines)

    # --- Transaction steps ---

    def run_sc_call_step(self, step: ScCallStep) -> TxResponse:
        tx = step.tx
        sender = self._required(step, tx.from_address, "from")
        receiver = self._required(step, tx.to_address, "to")
        tx_hash = generate_tx_hash(step.tx_id or step.id)
        logger.info(f"scCall '{step.id}': {tx.from_address.original} -> {tx.to_address.original}::{tx.function}")

        tx_input = TxInput(
            from_address=sender,
            to_address=receiver,
            egld_value=tx.egld_value.value,
            esdt_transfers=_esdt_transfers(tx.esdt_value),
            function=tx.function,
            arguments=[arg.value for arg in tx.arguments],
            gas_limit=tx.gas_limit.value,
            gas_price=tx.gas_price.value,
            tx_hash=tx_hash,
        )
        self._bump_nonce(sender, "scCall sender")
        result = self.vm.execute_tx(tx_input)
        response = result.to_response(tx_hash=tx_hash, gas_limit=tx.gas_limit.value)
        self._finish_step(step, response)
        return response

    def run_multi_sc_call_step(self, steps: Sequence[ScCallStep]):
        for step in steps:
            self.run_sc_call_step(step)

    def run_sc_deploy_step(self, step: ScDeployStep) -> TxResponse:
        tx = step.tx
        sender = self._required(step, tx.from_address, "from")
        if tx.contract_code is None:
            raise IncompleteStepError(step_id=step.id, field="contractCode")
        tx_hash = generate_tx_hash(step.tx_id or step.id)

        sender_account = self.world.require_account(sender, "scDeploy sender")
        creator_nonce = sender_account.nonce
        predicted = self.world.new_address(sender, creator_nonce)
        logger.info(f"scDeploy '{step.id}': {tx.from_address.original} deploys '{tx.contract_code.original}' at {predicted}")

        tx_input = TxInput(
            from_address=sender,
            to_address=predicted,
            egld_value=tx.egld_value.value,
            arguments=[arg.value for arg in tx.arguments],
            gas_limit=tx.gas_limit.value,
            gas_price=tx.gas_price.value,
            tx_hash=tx_hash,
        )
        self._bump_nonce(sender, "scDeploy sender")
        result = self.vm.execute_deploy(tx_input, tx.contract_code.value, creator_nonce)

        deployed = None
        if result.is_success:
            deployed = result.new_address
            self.world.verify_new_address(sender, creator_nonce, deployed)
        response = result.to_response(tx_hash=tx_hash, gas_limit=tx.gas_limit.value, new_deployed_address=deployed)
        self._finish_step(step, response)
        return response

    def run_multi_sc_deploy_step(self, steps: Sequence[ScDeployStep]):
        for step in steps:
            self.run_sc_deploy_step(step)

    def run_sc_query_step(self, step: ScQueryStep) -> TxResponse:
        tx = step.tx
        contract = self._required(step, tx.to_address, "to")
        tx_hash = generate_tx_hash(step.tx_id or step.id)
        logger.info(f"scQuery '{step.id}': {tx.to_address.original}::{tx.function}")

        tx_input = TxInput(
            from_address=contract,
            to_address=contract,
            function=tx.function,
            arguments=[arg.value for arg in tx.arguments],
            gas_limit=QUERY_GAS_LIMIT,
            tx_hash=tx_hash,
        )
        result = self.vm.execute_query(tx_input)
        if result.pending_calls:
            logger.error(f"Query '{step.id}' issued {len(result.pending_calls)} asynchronous call(s).")
            raise PendingCallsOnQueryError(step_id=step.id, num_pending_calls=len(result.pending_calls))
        response = result.to_response(tx_hash=tx_hash, gas_limit=QUERY_GAS_LIMIT)
        self._finish_step(step, response, check_status=False)
        return response

    def run_transfer_step(self, step: TransferStep) -> TxResponse:
        tx = step.tx
        sender = self._required(step, tx.from_address, "from")
        receiver = self._required(step, tx.to_address, "to")
        tx_hash = generate_tx_hash(step.tx_id or step.id)
        logger.info(f"transfer '{step.id}': {tx.from_address.original} -> {tx.to_address.original}")

        self.world.require_account(receiver, "transfer receiver")
        self._bump_nonce(sender, "transfer sender")
        self.world.transfer_egld(sender, receiver, tx.egld_value.value)
        for transfer in _esdt_transfers(tx.esdt_value):
            self.world.transfer_esdt(sender, receiver, transfer)

        response = TxResponse(tx_hash=tx_hash, gas_limit=tx.gas_limit.value)
        self._finish_step(step, response)
        return response

    def run_validator_reward_step(self, step: ValidatorRewardStep):
        tx = step.tx
        if tx.to_address is None:
            raise IncompleteStepError(step_id=step.id, field="to")
        logger.info(f"validatorReward '{step.id}': {tx.egld_value.original} to {tx.to_address.original}")
        account = self.world.require_account(tx.to_address.value, "validator reward receiver")
        amount = tx.egld_value.value
        account.balance += amount
        accumulated = top_decode_biguint(account.storage_load(VALIDATOR_REWARD_KEY)) + amount
        account.storage_store(VALIDATOR_REWARD_KEY, top_encode_biguint(accumulated))
