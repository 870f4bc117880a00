# src/scensim_core/model/transaction.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional

from ..constants import STATUS_OK, STATUS_USER_ERROR
from ..values import (
    Address,
    AddressValue,
    BigUintValue,
    BytesValue,
    CheckValue,
    U64Value,
)
from ..values.value_types import AddressLike, BytesLike, IntLike
from .exceptions import PaymentConflictError

logger = logging.getLogger(__name__)

DEFAULT_GAS_LIMIT = 5_000_000


# --- Payments ---

@dataclass(frozen=True)
class TxESDT:
    """A single ESDT transfer attached to a call: token identifier, token nonce, amount."""
    token_identifier: BytesValue
    nonce: U64Value
    value: BigUintValue


class _PaymentMixin:
    """
    Shared payment setters. A transaction carries either an EGLD amount or an
    ordered list of ESDT transfers; the second kind is rejected the moment it is
    added, whichever order the setters are called in.
    """
    egld_value: BigUintValue
    esdt_value: List[TxESDT]

    def set_egld_value(self, amount: IntLike):
        amount_value = BigUintValue.of(amount)
        if self.esdt_value and not amount_value.is_zero():
            raise PaymentConflictError(
                details=f"an EGLD amount of {amount_value.original} was set after {len(self.esdt_value)} ESDT transfer(s)"
            )
        self.egld_value = amount_value

    def add_esdt_transfer(self, token_id: BytesLike, token_nonce: IntLike, amount: IntLike):
        if not self.egld_value.is_zero():
            raise PaymentConflictError(
                details=f"an ESDT transfer was added after an EGLD amount of {self.egld_value.original}"
            )
        self.esdt_value.append(TxESDT(
            token_identifier=BytesValue.of(token_id),
            nonce=U64Value.of(token_nonce),
            value=BigUintValue.of(amount),
        ))


@dataclass
class TxCall(_PaymentMixin):
    from_address: Optional[AddressValue] = None
    to_address: Optional[AddressValue] = None
    egld_value: BigUintValue = field(default_factory=BigUintValue.zero)
    esdt_value: List[TxESDT] = field(default_factory=list)
    function: str = ""
    arguments: List[BytesValue] = field(default_factory=list)
    gas_limit: U64Value = field(default_factory=lambda: U64Value.of(DEFAULT_GAS_LIMIT))
    gas_price: U64Value = field(default_factory=U64Value.zero)


@dataclass
class TxDeploy:
    from_address: Optional[AddressValue] = None
    egld_value: BigUintValue = field(default_factory=BigUintValue.zero)
    contract_code: Optional[BytesValue] = None
    arguments: List[BytesValue] = field(default_factory=list)
    gas_limit: U64Value = field(default_factory=lambda: U64Value.of(DEFAULT_GAS_LIMIT))
    gas_price: U64Value = field(default_factory=U64Value.zero)


@dataclass
class TxQuery:
    to_address: Optional[AddressValue] = None
    function: str = ""
    arguments: List[BytesValue] = field(default_factory=list)


@dataclass
class TxTransfer(_PaymentMixin):
    from_address: Optional[AddressValue] = None
    to_address: Optional[AddressValue] = None
    egld_value: BigUintValue = field(default_factory=BigUintValue.zero)
    esdt_value: List[TxESDT] = field(default_factory=list)
    gas_limit: U64Value = field(default_factory=U64Value.zero)
    gas_price: U64Value = field(default_factory=U64Value.zero)


@dataclass
class TxValidatorReward:
    to_address: Optional[AddressValue] = None
    egld_value: BigUintValue = field(default_factory=BigUintValue.zero)


# --- Logs ---

@dataclass(frozen=True)
class TxLog:
    """An event emitted by a contract during execution."""
    address: Address
    endpoint: str
    topics: List[bytes]
    data: bytes


@dataclass(frozen=True)
class CheckLog:
    address: CheckValue
    endpoint: CheckValue
    topics: List[CheckValue]
    data: CheckValue


# --- Expectation ---

@dataclass
class TxExpect:
    """
    What a transaction is expected to produce.

    `out` is `None` when results are not checked; an empty list (see `no_result`)
    asserts that there are none. `message` is `None` when the message is not checked.
    """
    status: CheckValue = field(default_factory=lambda: CheckValue.of(str(STATUS_OK)))
    message: Optional[CheckValue] = None
    out: Optional[List[CheckValue]] = None
    logs: Optional[List[CheckLog]] = None

    @classmethod
    def ok(cls) -> TxExpect:
        return cls()

    @classmethod
    def err(cls, status, message) -> TxExpect:
        return cls(status=CheckValue.of(status), message=CheckValue.of(message))

    @classmethod
    def user_error(cls, message) -> TxExpect:
        return cls.err(str(STATUS_USER_ERROR), message)

    def expect_status(self, status) -> TxExpect:
        self.status = CheckValue.of(status)
        return self

    def expect_message(self, message) -> TxExpect:
        self.message = CheckValue.of(message)
        return self

    def no_result(self) -> TxExpect:
        self.out = []
        return self

    def result(self, value) -> TxExpect:
        if self.out is None:
            self.out = []
        self.out.append(CheckValue.of(value))
        return self

    def expect_logs(self, logs: List[CheckLog]) -> TxExpect:
        self.logs = list(logs)
        return self


# --- Asynchronous calls ---

class CallKind(Enum):
    """The protocol variant of an outbound contract call."""
    SYNC = auto()
    LEGACY_ASYNC = auto()
    TRANSFER_EXECUTE = auto()
    PROMISE = auto()


@dataclass(frozen=True)
class PendingCall:
    """
    A queued or issued outbound call. Promises name their own callback endpoint and
    carry closure arguments that the callback receives back; legacy async calls are
    always answered on the reserved callback endpoint.
    """
    kind: CallKind
    from_address: Address
    to_address: Address
    endpoint: str
    arguments: List[bytes] = field(default_factory=list)
    egld_value: int = 0
    esdt_transfers: List["EsdtTransfer"] = field(default_factory=list)
    gas_limit: int = 0
    callback: str = ""
    callback_args: List[bytes] = field(default_factory=list)


@dataclass(frozen=True)
class EsdtTransfer:
    """A concrete, interpreted ESDT transfer as seen by the VM."""
    token_identifier: bytes
    nonce: int
    amount: int


# --- Response ---

@dataclass
class TxResponse:
    """The outcome of one executed transaction, as attached to its step."""
    status: int = STATUS_OK
    message: str = ""
    out: List[bytes] = field(default_factory=list)
    logs: List[TxLog] = field(default_factory=list)
    new_deployed_address: Optional[Address] = None
    pending_calls: List[PendingCall] = field(default_factory=list)
    tx_hash: bytes = b""
    gas_limit: int = 0
    callback_count: int = 0
    callback_payments: int = 0

    @property
    def is_success(self) -> bool:
        return self.status == STATUS_OK
