# src/scensim_core/model/step.py
"""
Scenario steps: the tagged variant the runners dispatch on.

Every executable step (deploy, call, query, transfer) owns exactly one transaction,
an optional expectation, a write-once response cell and a list of response handlers.
The handlers run once, in registration order, immediately after the response is
set, and are then discarded.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from ..values import AddressValue, BigUintValue, BytesValue, U64Value
from ..values.value_types import AddressLike, BytesLike, IntLike
from .account import Account, CheckAccount
from .exceptions import PaymentConflictError, ResponseAlreadySetError, ResponseNotReadyError
from .transaction import (
    TxCall,
    TxDeploy,
    TxExpect,
    TxQuery,
    TxResponse,
    TxTransfer,
    TxValidatorReward,
)

logger = logging.getLogger(__name__)

ResponseHandler = Callable[[TxResponse], None]


class Step:
    """Base class of all steps. `step_type` is the tag used in scenario files."""
    step_type: str = ""

    def __init__(self, step_id: str = "", comment: Optional[str] = None):
        self.id: str = step_id
        self.comment: Optional[str] = comment

    def copy_for_trace(self) -> Step:
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


class TxStep(Step):
    """A step that executes a transaction and therefore produces a response."""

    def __init__(self, step_id: str = "", comment: Optional[str] = None):
        super().__init__(step_id, comment)
        self.tx_id: Optional[str] = None
        self.expect_value: Optional[TxExpect] = None
        self._response: Optional[TxResponse] = None
        self.response_handlers: List[ResponseHandler] = []

    def expect(self, expect: TxExpect):
        self.expect_value = expect
        return self

    def with_raw_response(self, handler: ResponseHandler):
        self.response_handlers.append(handler)
        return self

    @property
    def has_response(self) -> bool:
        return self._response is not None

    @property
    def response(self) -> TxResponse:
        if self._response is None:
            raise ResponseNotReadyError(step_id=self.id)
        return self._response

    def set_response(self, response: TxResponse):
        if self._response is not None:
            raise ResponseAlreadySetError(step_id=self.id)
        self._response = response

    def trigger_handlers(self):
        """Invokes every registered handler once with the response, then clears the list."""
        response = self.response
        handlers, self.response_handlers = self.response_handlers, []
        for handler in handlers:
            handler(response)

    def copy_for_trace(self) -> TxStep:
        # Handlers are closures over the caller's context; they never travel with a copy.
        handlers, self.response_handlers = self.response_handlers, []
        try:
            return copy.deepcopy(self)
        finally:
            self.response_handlers = handlers


# --- SetState ---

@dataclass(frozen=True)
class NewAddress:
    creator_address: AddressValue
    creator_nonce: U64Value
    new_address: AddressValue


@dataclass
class BlockInfo:
    timestamp: Optional[U64Value] = None
    nonce: Optional[U64Value] = None
    round: Optional[U64Value] = None
    epoch: Optional[U64Value] = None


class SetStateStep(Step):
    step_type = "setState"

    def __init__(self, step_id: str = "", comment: Optional[str] = None):
        super().__init__(step_id, comment)
        self.accounts: Dict[AddressValue, Account] = {}
        self.new_addresses: List[NewAddress] = []
        self.previous_block_info: Optional[BlockInfo] = None
        self.current_block_info: Optional[BlockInfo] = None

    @classmethod
    def new(cls) -> SetStateStep:
        return cls()

    def put_account(self, address: AddressLike, account: Account) -> SetStateStep:
        self.accounts[AddressValue.of(address)] = account
        return self

    def new_address(self, creator: AddressLike, creator_nonce: IntLike, new_address: AddressLike) -> SetStateStep:
        self.new_addresses.append(NewAddress(
            creator_address=AddressValue.of(creator),
            creator_nonce=U64Value.of(creator_nonce),
            new_address=AddressValue.of(new_address),
        ))
        return self

    def block_timestamp(self, timestamp: IntLike) -> SetStateStep:
        self._current_block().timestamp = U64Value.of(timestamp)
        return self

    def block_nonce(self, nonce: IntLike) -> SetStateStep:
        self._current_block().nonce = U64Value.of(nonce)
        return self

    def block_round(self, block_round: IntLike) -> SetStateStep:
        self._current_block().round = U64Value.of(block_round)
        return self

    def block_epoch(self, epoch: IntLike) -> SetStateStep:
        self._current_block().epoch = U64Value.of(epoch)
        return self

    def _current_block(self) -> BlockInfo:
        if self.current_block_info is None:
            self.current_block_info = BlockInfo()
        return self.current_block_info


# --- Transaction steps ---

class ScDeployStep(TxStep):
    step_type = "scDeploy"

    def __init__(self, step_id: str = "", comment: Optional[str] = None):
        super().__init__(step_id, comment)
        self.tx = TxDeploy()

    @classmethod
    def new(cls) -> ScDeployStep:
        return cls()

    def from_(self, address: AddressLike) -> ScDeployStep:
        self.tx.from_address = AddressValue.of(address)
        return self

    def egld_value(self, amount: IntLike) -> ScDeployStep:
        self.tx.egld_value = BigUintValue.of(amount)
        return self

    def contract_code(self, code: BytesLike, context=None) -> ScDeployStep:
        self.tx.contract_code = BytesValue.of(code, context)
        return self

    def argument(self, arg: BytesLike) -> ScDeployStep:
        self.tx.arguments.append(BytesValue.of(arg))
        return self

    def gas_limit(self, gas_limit: IntLike) -> ScDeployStep:
        self.tx.gas_limit = U64Value.of(gas_limit)
        return self


class ScCallStep(TxStep):
    step_type = "scCall"

    def __init__(self, step_id: str = "", comment: Optional[str] = None):
        super().__init__(step_id, comment)
        self.tx = TxCall()

    @classmethod
    def new(cls) -> ScCallStep:
        return cls()

    def from_(self, address: AddressLike) -> ScCallStep:
        self.tx.from_address = AddressValue.of(address)
        return self

    def to(self, address: AddressLike) -> ScCallStep:
        self.tx.to_address = AddressValue.of(address)
        return self

    def egld_value(self, amount: IntLike) -> ScCallStep:
        try:
            self.tx.set_egld_value(amount)
        except PaymentConflictError as e:
            raise PaymentConflictError(details=e.details, step_id=self.id) from None
        return self

    def esdt_transfer(self, token_id: BytesLike, token_nonce: IntLike, amount: IntLike) -> ScCallStep:
        try:
            self.tx.add_esdt_transfer(token_id, token_nonce, amount)
        except PaymentConflictError as e:
            raise PaymentConflictError(details=e.details, step_id=self.id) from None
        return self

    def function(self, endpoint: str) -> ScCallStep:
        self.tx.function = endpoint
        return self

    def argument(self, arg: BytesLike) -> ScCallStep:
        self.tx.arguments.append(BytesValue.of(arg))
        return self

    def gas_limit(self, gas_limit: IntLike) -> ScCallStep:
        self.tx.gas_limit = U64Value.of(gas_limit)
        return self


class ScQueryStep(TxStep):
    step_type = "scQuery"

    def __init__(self, step_id: str = "", comment: Optional[str] = None):
        super().__init__(step_id, comment)
        self.tx = TxQuery()

    @classmethod
    def new(cls) -> ScQueryStep:
        return cls()

    def to(self, address: AddressLike) -> ScQueryStep:
        self.tx.to_address = AddressValue.of(address)
        return self

    def function(self, endpoint: str) -> ScQueryStep:
        self.tx.function = endpoint
        return self

    def argument(self, arg: BytesLike) -> ScQueryStep:
        self.tx.arguments.append(BytesValue.of(arg))
        return self


class TransferStep(TxStep):
    step_type = "transfer"

    def __init__(self, step_id: str = "", comment: Optional[str] = None):
        super().__init__(step_id, comment)
        self.tx = TxTransfer()

    @classmethod
    def new(cls) -> TransferStep:
        return cls()

    def from_(self, address: AddressLike) -> TransferStep:
        self.tx.from_address = AddressValue.of(address)
        return self

    def to(self, address: AddressLike) -> TransferStep:
        self.tx.to_address = AddressValue.of(address)
        return self

    def egld_value(self, amount: IntLike) -> TransferStep:
        try:
            self.tx.set_egld_value(amount)
        except PaymentConflictError as e:
            raise PaymentConflictError(details=e.details, step_id=self.id) from None
        return self

    def esdt_transfer(self, token_id: BytesLike, token_nonce: IntLike, amount: IntLike) -> TransferStep:
        try:
            self.tx.add_esdt_transfer(token_id, token_nonce, amount)
        except PaymentConflictError as e:
            raise PaymentConflictError(details=e.details, step_id=self.id) from None
        return self


class ValidatorRewardStep(Step):
    step_type = "validatorReward"

    def __init__(self, step_id: str = "", comment: Optional[str] = None):
        super().__init__(step_id, comment)
        self.tx = TxValidatorReward()

    @classmethod
    def new(cls) -> ValidatorRewardStep:
        return cls()

    def to(self, address: AddressLike) -> ValidatorRewardStep:
        self.tx.to_address = AddressValue.of(address)
        return self

    def egld_value(self, amount: IntLike) -> ValidatorRewardStep:
        self.tx.egld_value = BigUintValue.of(amount)
        return self


# --- Non-executing steps ---

class CheckStateStep(Step):
    step_type = "checkState"

    def __init__(self, step_id: str = "", comment: Optional[str] = None):
        super().__init__(step_id, comment)
        self.accounts: Dict[AddressValue, CheckAccount] = {}

    @classmethod
    def new(cls) -> CheckStateStep:
        return cls()

    def put_account(self, address: AddressLike, account: CheckAccount) -> CheckStateStep:
        self.accounts[AddressValue.of(address)] = account
        return self


class DumpStateStep(Step):
    step_type = "dumpState"


class ExternalStepsStep(Step):
    step_type = "externalSteps"

    def __init__(self, path: Union[str, Path], step_id: str = "", comment: Optional[str] = None):
        super().__init__(step_id, comment)
        self.path = Path(path)


AnyStep = Union[
    SetStateStep, ScDeployStep, ScCallStep, ScQueryStep, TransferStep,
    ValidatorRewardStep, CheckStateStep, DumpStateStep, ExternalStepsStep,
]


@dataclass
class Scenario:
    """An ordered list of steps, as loaded from or written to a scenario file."""
    name: Optional[str] = None
    comment: Optional[str] = None
    check_gas: Optional[bool] = None
    steps: List[Step] = field(default_factory=list)
    source_path: Optional[Path] = None
