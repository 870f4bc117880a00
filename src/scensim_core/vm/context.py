# src/scensim_core/vm/context.py
"""
Defines `ContractApi`, the host interface a contract endpoint runs against.

One `ContractApi` exists per execution frame. It exposes the frame's input
(caller, payment, arguments), collects its output (results, logs, outbound
asynchronous calls) and mediates every world access of the contract: storage,
balances, transfers and calls to other contracts.

Call flavours:
- `execute_on_dest`: synchronous; results come back immediately and a failure of
  the callee fails the caller.
- `transfer_execute`: the payment is applied unconditionally, then the endpoint
  runs; a failing endpoint only rolls back its own effects.
- `async_call`: a legacy asynchronous call, executed after the current endpoint
  returns and answered on the caller's `callBack` endpoint.
- `register_promise`: a promise, executed after the current endpoint returns and
  answered on the callback endpoint it names, with its closure arguments.
- `enqueue_call` / `forward_queued_calls`: the account-scoped call queue.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from ..constants import (
    LEGACY_CALLBACK_ENDPOINT,
    STATUS_CONTRACT_NOT_FOUND,
    STATUS_FUNCTION_WRONG_SIGNATURE,
    STATUS_OUT_OF_FUNDS,
    STATUS_USER_ERROR,
)
from ..model import CallKind, EsdtTransfer, PendingCall, TxLog
from ..values import Address, DecodeError, top_decode_biguint, top_decode_u64, top_encode_biguint, top_encode_u64
from ..world import AccountNotFoundError, AccountState, BlockState, InsufficientFundsError, WorldState
from .exceptions import ContractSignalError
from .tx import TxInput

if TYPE_CHECKING:
    from .executor import BlockchainVM

logger = logging.getLogger(__name__)

OUT_OF_FUNDS_MESSAGE = "failed transfer (insufficient funds)"


class ContractApi:
    """The host environment of one execution frame."""

    def __init__(
        self,
        vm: "BlockchainVM",
        world: WorldState,
        tx_input: TxInput,
        depth: int = 0,
        in_callback: bool = False,
    ):
        self._vm = vm
        self._world = world
        self.input = tx_input
        self.depth = depth
        self.in_callback = in_callback

        self.out: List[bytes] = []
        self.logs: List[TxLog] = []
        self.outbound: List[PendingCall] = []
        self.back_transfer_egld: int = 0

    # --- Frame input ---

    @property
    def sc_address(self) -> Address:
        return self.input.to_address

    @property
    def caller(self) -> Address:
        return self.input.from_address

    @property
    def egld_value(self) -> int:
        return self.input.egld_value

    @property
    def esdt_transfers(self) -> List[EsdtTransfer]:
        return list(self.input.esdt_transfers)

    @property
    def function(self) -> str:
        return self.input.function

    @property
    def arguments(self) -> List[bytes]:
        return list(self.input.arguments)

    @property
    def num_arguments(self) -> int:
        return len(self.input.arguments)

    @property
    def callback_closure(self) -> List[bytes]:
        """The closure arguments registered with the promise this callback answers."""
        return list(self.input.callback_args)

    @property
    def tx_hash(self) -> bytes:
        return self.input.tx_hash

    @property
    def block(self) -> BlockState:
        return self._world.current_block

    @property
    def previous_block(self) -> BlockState:
        return self._world.previous_block

    def check_num_arguments(self, expected: int):
        if self.num_arguments != expected:
            raise ContractSignalError(STATUS_FUNCTION_WRONG_SIGNATURE, "wrong number of arguments")

    def check_min_arguments(self, minimum: int):
        if self.num_arguments < minimum:
            raise ContractSignalError(STATUS_FUNCTION_WRONG_SIGNATURE, "wrong number of arguments")

    def arg(self, index: int) -> bytes:
        if index >= self.num_arguments:
            raise ContractSignalError(STATUS_FUNCTION_WRONG_SIGNATURE, "wrong number of arguments")
        return self.input.arguments[index]

    def arg_biguint(self, index: int) -> int:
        return top_decode_biguint(self.arg(index))

    def arg_u64(self, index: int) -> int:
        raw = self.arg(index)
        try:
            return top_decode_u64(raw)
        except DecodeError as e:
            raise ContractSignalError(STATUS_USER_ERROR, f"argument decode error (arg {index}): {e.details}") from e

    def arg_address(self, index: int) -> Address:
        raw = self.arg(index)
        try:
            return Address(raw)
        except ValueError as e:
            raise ContractSignalError(STATUS_USER_ERROR, f"argument decode error (arg {index}): {e}") from e

    def arg_str(self, index: int) -> str:
        return self.arg(index).decode("utf-8", errors="replace")

    def args_from(self, index: int) -> List[bytes]:
        return list(self.input.arguments[index:])

    # --- Frame output ---

    def finish(self, value: bytes):
        self.out.append(bytes(value))

    def finish_biguint(self, value: int):
        self.finish(top_encode_biguint(value))

    def finish_u64(self, value: int):
        self.finish(top_encode_u64(value))

    def log(self, topics: Sequence[bytes], data: bytes = b""):
        self.logs.append(TxLog(
            address=self.sc_address, endpoint=self.function, topics=list(topics), data=data,
        ))

    def signal_error(self, message: str, status: int = STATUS_USER_ERROR):
        raise ContractSignalError(status, message)

    def require(self, condition: bool, message: str):
        if not condition:
            self.signal_error(message)

    # --- Storage & balances ---

    def _own_account(self) -> AccountState:
        return self._world.require_account(self.sc_address, "executing contract")

    def storage_load(self, key: bytes) -> bytes:
        return self._own_account().storage_load(key)

    def storage_store(self, key: bytes, value: bytes):
        self._own_account().storage_store(key, value)

    def storage_load_biguint(self, key: bytes) -> int:
        return top_decode_biguint(self.storage_load(key))

    def storage_store_biguint(self, key: bytes, value: int):
        self.storage_store(key, top_encode_biguint(value))

    def balance(self, address: Optional[Address] = None) -> int:
        account = self._world.get_account(address or self.sc_address)
        return account.balance if account is not None else 0

    def esdt_balance(self, token_identifier: bytes, nonce: int = 0, address: Optional[Address] = None) -> int:
        account = self._world.get_account(address or self.sc_address)
        return account.esdt_balance(token_identifier, nonce) if account is not None else 0

    # --- Direct transfers ---

    def send_egld(self, to: Address, amount: int):
        try:
            self._world.transfer_egld(self.sc_address, to, amount)
        except InsufficientFundsError as e:
            raise ContractSignalError(STATUS_OUT_OF_FUNDS, OUT_OF_FUNDS_MESSAGE) from e
        except AccountNotFoundError as e:
            raise ContractSignalError(STATUS_CONTRACT_NOT_FOUND, f"account not found: {to}") from e
        if to == self.caller:
            self.back_transfer_egld += amount

    def send_esdt(self, to: Address, token_identifier: bytes, nonce: int, amount: int):
        transfer = EsdtTransfer(token_identifier=token_identifier, nonce=nonce, amount=amount)
        try:
            self._world.transfer_esdt(self.sc_address, to, transfer)
        except InsufficientFundsError as e:
            raise ContractSignalError(STATUS_OUT_OF_FUNDS, OUT_OF_FUNDS_MESSAGE) from e
        except AccountNotFoundError as e:
            raise ContractSignalError(STATUS_CONTRACT_NOT_FOUND, f"account not found: {to}") from e

    # --- Contract-to-contract calls ---

    def _pending(
        self,
        kind: CallKind,
        to: Address,
        endpoint: str,
        arguments: Sequence[bytes] = (),
        egld_value: int = 0,
        esdt_transfers: Sequence[EsdtTransfer] = (),
        gas_limit: int = 0,
        callback: str = "",
        callback_args: Sequence[bytes] = (),
    ) -> PendingCall:
        if egld_value and esdt_transfers:
            self.signal_error("cannot transfer both EGLD and ESDT")
        return PendingCall(
            kind=kind,
            from_address=self.sc_address,
            to_address=to,
            endpoint=endpoint,
            arguments=list(arguments),
            egld_value=egld_value,
            esdt_transfers=list(esdt_transfers),
            gas_limit=gas_limit,
            callback=callback,
            callback_args=list(callback_args),
        )

    def execute_on_dest(
        self,
        to: Address,
        endpoint: str,
        arguments: Sequence[bytes] = (),
        egld_value: int = 0,
        esdt_transfers: Sequence[EsdtTransfer] = (),
    ) -> List[bytes]:
        """Synchronous call. Returns the callee's results; a callee failure fails this frame."""
        call = self._pending(CallKind.SYNC, to, endpoint, arguments, egld_value, esdt_transfers)
        result = self._vm.execute_call(call, depth=self.depth + 1, tx_hash=self.tx_hash)
        if not result.is_success:
            raise ContractSignalError(result.status, result.message)
        self.logs.extend(result.logs)
        return list(result.out)

    def transfer_execute(
        self,
        to: Address,
        endpoint: str = "",
        arguments: Sequence[bytes] = (),
        egld_value: int = 0,
        esdt_transfers: Sequence[EsdtTransfer] = (),
    ):
        """Applies the payment unconditionally, then runs `endpoint` on `to` without awaiting its outcome."""
        call = self._pending(CallKind.TRANSFER_EXECUTE, to, endpoint, arguments, egld_value, esdt_transfers)
        try:
            result = self._vm.execute_transfer_execute(call, depth=self.depth + 1, tx_hash=self.tx_hash)
        except InsufficientFundsError as e:
            raise ContractSignalError(STATUS_OUT_OF_FUNDS, OUT_OF_FUNDS_MESSAGE) from e
        except AccountNotFoundError as e:
            raise ContractSignalError(STATUS_CONTRACT_NOT_FOUND, f"account not found: {to}") from e
        if result.is_success:
            self.logs.extend(result.logs)
        else:
            logger.debug(
                f"transfer-execute {to!r}::{endpoint} failed with status {result.status} "
                f"('{result.message}'); payment kept."
            )

    def async_call(
        self,
        to: Address,
        endpoint: str,
        arguments: Sequence[bytes] = (),
        egld_value: int = 0,
        esdt_transfers: Sequence[EsdtTransfer] = (),
    ):
        """Records a legacy asynchronous call, resolved once this endpoint returns."""
        self.outbound.append(self._pending(
            CallKind.LEGACY_ASYNC, to, endpoint, arguments, egld_value, esdt_transfers,
            callback=LEGACY_CALLBACK_ENDPOINT,
        ))

    def register_promise(
        self,
        to: Address,
        endpoint: str,
        arguments: Sequence[bytes] = (),
        egld_value: int = 0,
        esdt_transfers: Sequence[EsdtTransfer] = (),
        gas_limit: int = 0,
        callback: str = "",
        callback_args: Sequence[bytes] = (),
    ):
        """
        Issues a promise, resolved once this endpoint returns. A promise issued while
        running a callback is put back on the account's queue for the next forward.
        """
        call = self._pending(
            CallKind.PROMISE, to, endpoint, arguments, egld_value, esdt_transfers,
            gas_limit=gas_limit, callback=callback, callback_args=callback_args,
        )
        if self.in_callback:
            logger.debug(f"Promise to {to!r}::{endpoint} issued from a callback; deferred to the next forward.")
            self._own_account().call_queue.append(call)
        else:
            self.outbound.append(call)

    def enqueue_call(
        self,
        kind: CallKind,
        to: Address,
        endpoint: str,
        arguments: Sequence[bytes] = (),
        egld_value: int = 0,
        esdt_transfers: Sequence[EsdtTransfer] = (),
        gas_limit: int = 0,
        callback: str = "",
        callback_args: Sequence[bytes] = (),
    ):
        """Appends a call to this contract's own queue. Nothing runs until `forward_queued_calls`."""
        if kind is CallKind.LEGACY_ASYNC and not callback:
            callback = LEGACY_CALLBACK_ENDPOINT
        self._own_account().call_queue.append(self._pending(
            kind, to, endpoint, arguments, egld_value, esdt_transfers,
            gas_limit=gas_limit, callback=callback, callback_args=callback_args,
        ))

    def queued_calls(self) -> Tuple[PendingCall, ...]:
        return tuple(self._own_account().call_queue)

    def forward_queued_calls(self) -> int:
        """Drains this contract's queue in FIFO order. Returns the number of calls forwarded."""
        return self._vm.resolver.forward_queue(self)
