# src/scensim_core/vm/executor.py
"""
Defines `BlockchainVM`, the in-process execution boundary.

The VM binds contract code blobs to contract implementations and runs endpoints
against the `WorldState`. Every execution frame is atomic: the world is
snapshotted when the frame starts and rolled back if the frame ends with a
non-zero status. Contract failures therefore never escape as exceptions; they are
statuses on the returned `TxResult`. Integrity failures (unknown contract code,
a missing executing account) do propagate.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Union

from ..constants import (
    INIT_ENDPOINT,
    MAX_CALL_DEPTH,
    STATUS_ACCOUNT_COLLISION,
    STATUS_CALL_STACK_OVERFLOW,
    STATUS_CONTRACT_NOT_FOUND,
    STATUS_FUNCTION_NOT_FOUND,
    STATUS_OK,
    STATUS_OUT_OF_FUNDS,
)
from ..contracts.base import ContractCapability
from ..model import PendingCall
from ..values import Address, derive_contract_address
from ..world import AccountState, InsufficientFundsError, WorldState
from .async_resolver import AsyncCallResolver
from .context import OUT_OF_FUNDS_MESSAGE, ContractApi
from .exceptions import ContractSignalError, UnknownContractCodeError
from .tx import TxInput, TxResult

logger = logging.getLogger(__name__)

ContractFactory = Callable[[], ContractCapability]
AddressDeriver = Callable[[Address, int], Address]


class BlockchainVM:
    """Runs contract endpoints against a world state."""

    def __init__(self, world: WorldState, address_deriver: AddressDeriver = derive_contract_address):
        self.world = world
        self.resolver = AsyncCallResolver(self)
        self.address_deriver = address_deriver
        self._contracts: Dict[bytes, ContractCapability] = {}

    # --- Contract map ---

    def register_contract(self, code: bytes, contract: Union[ContractCapability, ContractFactory]):
        """Binds a code blob to a contract. Accepts an instance, a class or any zero-argument factory."""
        # Classes satisfy the runtime protocol check too, so they are instantiated first.
        if isinstance(contract, type) or not isinstance(contract, ContractCapability):
            instance = contract()
        else:
            instance = contract
        if not isinstance(instance, ContractCapability):
            raise TypeError(f"{instance!r} does not provide the contract capability (invoke, duplicate).")
        if code in self._contracts:
            logger.warning(f"Contract code of {len(code)} bytes is being re-registered.")
        self._contracts[code] = instance
        logger.debug(f"Registered {type(instance).__name__} for {len(code)} code bytes.")

    def is_registered(self, code: bytes) -> bool:
        return code in self._contracts

    def with_world(self, world: WorldState) -> BlockchainVM:
        """A VM over another world that knows the same contracts."""
        vm = BlockchainVM(world, address_deriver=self.address_deriver)
        vm._contracts = dict(self._contracts)
        return vm

    def _contract_for(self, address: Address, account: AccountState) -> ContractCapability:
        prototype = self._contracts.get(account.code)
        if prototype is None:
            raise UnknownContractCodeError(address=address, code=account.code)
        return prototype.duplicate()

    # --- Top-level entry points ---

    def execute_tx(self, tx_input: TxInput) -> TxResult:
        logger.debug(f"execute_tx {tx_input.from_address!r} -> {tx_input.to_address!r}::{tx_input.function}")
        return self._execute_frame(tx_input, depth=0)

    def execute_query(self, tx_input: TxInput) -> TxResult:
        """
        Runs a read-only call. Whatever the endpoint changes is rolled back. Outbound calls,
        promises and calls the endpoint put on a call queue are reported as pending instead.
        """
        logger.debug(f"execute_query {tx_input.to_address!r}::{tx_input.function}")
        snapshot = self.world.snapshot()
        try:
            result = self._execute_frame(tx_input, depth=0, resolve=False)
            result.pending_calls.extend(self._newly_queued_calls(snapshot))
            return result
        finally:
            self.world.rollback(snapshot)

    def _newly_queued_calls(self, snapshot) -> List[PendingCall]:
        """Calls sitting on an account's call queue that were not there when `snapshot` was taken."""
        calls = []
        for address, account in self.world.iter_accounts():
            before = snapshot.accounts[address].call_queue if address in snapshot.accounts else []
            queue = account.call_queue
            if queue[:len(before)] == before:
                calls.extend(queue[len(before):])
            else:
                calls.extend(call for call in queue if call not in before)
        return calls

    def deploy_address(self, creator: Address, creator_nonce: int) -> Address:
        """Where a deploy by `creator` at `creator_nonce` lands: the declared address, else a derived one."""
        declared = self.world.declared_new_address(creator, creator_nonce)
        if declared is not None:
            return declared
        return self.address_deriver(creator, creator_nonce)

    def execute_deploy(self, tx_input: TxInput, code: bytes, creator_nonce: int) -> TxResult:
        """
        Creates the contract account before running `init`, so the constructor sees its own
        address. The address comes from `deploy_address`; `tx_input.to_address` is ignored.
        A failed constructor removes the account again.
        """
        new_address = self.deploy_address(tx_input.from_address, creator_nonce)
        if self.world.has_account(new_address):
            return TxResult.from_error(STATUS_ACCOUNT_COLLISION, f"account collision: {new_address}")

        snapshot = self.world.snapshot()
        self.world.put_account(new_address, AccountState(code=code, owner=tx_input.from_address))
        try:
            self._contract_for(new_address, self.world.require_account(new_address))
        except UnknownContractCodeError:
            self.world.rollback(snapshot)
            raise

        init_input = TxInput(
            from_address=tx_input.from_address,
            to_address=new_address,
            egld_value=tx_input.egld_value,
            function=INIT_ENDPOINT,
            arguments=list(tx_input.arguments),
            gas_limit=tx_input.gas_limit,
            gas_price=tx_input.gas_price,
            tx_hash=tx_input.tx_hash,
        )
        logger.debug(f"execute_deploy {tx_input.from_address!r} -> {new_address!r}")
        result = self._execute_frame(init_input, depth=0)
        if result.is_success:
            result.new_address = new_address
        else:
            self.world.rollback(snapshot)
        return result

    # --- Nested entry points, used by the host API and the resolver ---

    def execute_call(self, call: PendingCall, depth: int, tx_hash: bytes = b"") -> TxResult:
        return self._execute_frame(self._input_from_call(call, tx_hash), depth=depth)

    def execute_transfer_execute(self, call: PendingCall, depth: int, tx_hash: bytes = b"") -> TxResult:
        """
        Moves the payment first, outside the frame, so it survives an endpoint failure.
        Raises `InsufficientFundsError` / `AccountNotFoundError` if the payment itself fails.
        """
        self.world.require_account(call.to_address, "transfer-execute receiver")
        self._apply_payment(call.from_address, call.to_address, call.egld_value, call.esdt_transfers, raw=True)
        if not call.endpoint:
            return TxResult()
        return self._execute_frame(self._input_from_call(call, tx_hash), depth=depth, payment_applied=True)

    def execute_callback(self, tx_input: TxInput, depth: int, allow_missing_endpoint: bool = False) -> TxResult:
        return self._execute_frame(
            tx_input,
            depth=depth,
            payment_applied=True,
            in_callback=True,
            allow_missing_endpoint=allow_missing_endpoint,
        )

    @staticmethod
    def _input_from_call(call: PendingCall, tx_hash: bytes) -> TxInput:
        return TxInput(
            from_address=call.from_address,
            to_address=call.to_address,
            egld_value=call.egld_value,
            esdt_transfers=list(call.esdt_transfers),
            function=call.endpoint,
            arguments=list(call.arguments),
            gas_limit=call.gas_limit,
            tx_hash=tx_hash,
        )

    # --- Frames ---

    def _execute_frame(
        self,
        tx_input: TxInput,
        depth: int,
        resolve: bool = True,
        payment_applied: bool = False,
        in_callback: bool = False,
        allow_missing_endpoint: bool = False,
    ) -> TxResult:
        if depth > MAX_CALL_DEPTH:
            logger.debug(f"Call depth {depth} exceeds {MAX_CALL_DEPTH}.")
            return TxResult.from_error(STATUS_CALL_STACK_OVERFLOW, "call stack overflow")

        snapshot = self.world.snapshot()
        try:
            result = self._run_frame(tx_input, depth, resolve, payment_applied, in_callback, allow_missing_endpoint)
        except ContractSignalError as e:
            result = TxResult.from_error(e.status, e.message)

        if not result.is_success:
            logger.debug(
                f"Frame {tx_input.to_address!r}::{tx_input.function} failed "
                f"(status {result.status}: {result.message}); rolling back."
            )
            self.world.rollback(snapshot)
        return result

    def _run_frame(
        self,
        tx_input: TxInput,
        depth: int,
        resolve: bool,
        payment_applied: bool,
        in_callback: bool,
        allow_missing_endpoint: bool,
    ) -> TxResult:
        target = self.world.get_account(tx_input.to_address)
        if target is None:
            raise ContractSignalError(STATUS_CONTRACT_NOT_FOUND, f"account not found: {tx_input.to_address}")

        if not payment_applied:
            self._apply_payment(
                tx_input.from_address, tx_input.to_address, tx_input.egld_value, tx_input.esdt_transfers,
            )

        if not tx_input.function:
            return TxResult()
        if not target.is_contract:
            if allow_missing_endpoint:
                return TxResult()
            raise ContractSignalError(STATUS_CONTRACT_NOT_FOUND, "invalid contract code (not found)")

        contract = self._contract_for(tx_input.to_address, target)
        api = ContractApi(self, self.world, tx_input, depth=depth, in_callback=in_callback)
        found = contract.invoke(tx_input.function, api)
        if not found:
            if allow_missing_endpoint:
                logger.debug(f"{tx_input.to_address!r} has no '{tx_input.function}' endpoint; callback skipped.")
                return TxResult()
            raise ContractSignalError(STATUS_FUNCTION_NOT_FOUND, "invalid function (not found)")

        result = TxResult(
            status=STATUS_OK,
            out=list(api.out),
            logs=list(api.logs),
            back_transfer_egld=api.back_transfer_egld,
        )
        if resolve:
            report = self.resolver.resolve_outbound(api)
            result.logs = list(api.logs)
            result.callback_count = report.callback_count
            result.callback_payments = report.callback_payments
        else:
            result.pending_calls = list(api.outbound)
        return result

    def _apply_payment(self, sender: Address, receiver: Address, egld_value: int, esdt_transfers, raw: bool = False):
        """
        Moves a call's payment. Insufficient funds become a status-7 contract failure,
        unless `raw` is set, in which case the world's exception is raised as is.
        """
        try:
            self.world.transfer_egld(sender, receiver, egld_value)
            for transfer in esdt_transfers:
                self.world.transfer_esdt(sender, receiver, transfer)
        except InsufficientFundsError:
            if raw:
                raise
            raise ContractSignalError(STATUS_OUT_OF_FUNDS, OUT_OF_FUNDS_MESSAGE) from None
