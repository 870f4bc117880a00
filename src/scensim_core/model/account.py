# src/scensim_core/model/account.py
"""
Declarative account descriptions used by SetState and CheckState steps.

`Account` describes the full state to install; `CheckAccount` describes only the
fields a check cares about. Anything a `CheckAccount` leaves unset is not checked.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..values import (
    AddressValue,
    BigUintValue,
    BytesValue,
    CheckValue,
    U64Value,
)
from ..values.value_types import AddressLike, BytesLike, IntLike


@dataclass(frozen=True)
class EsdtInstance:
    """One balance entry of a token: fungible tokens use nonce 0."""
    nonce: U64Value
    balance: BigUintValue


@dataclass
class Account:
    nonce_value: Optional[U64Value] = None
    balance_value: Optional[BigUintValue] = None
    esdt: Dict[BytesValue, List[EsdtInstance]] = field(default_factory=dict)
    code_value: Optional[BytesValue] = None
    owner_value: Optional[AddressValue] = None
    storage: Dict[BytesValue, BytesValue] = field(default_factory=dict)

    @classmethod
    def new(cls) -> Account:
        return cls()

    def nonce(self, nonce: IntLike) -> Account:
        self.nonce_value = U64Value.of(nonce)
        return self

    def balance(self, balance: IntLike) -> Account:
        self.balance_value = BigUintValue.of(balance)
        return self

    def esdt_balance(self, token_id: BytesLike, balance: IntLike) -> Account:
        return self.esdt_nft_balance(token_id, 0, balance)

    def esdt_nft_balance(self, token_id: BytesLike, nonce: IntLike, balance: IntLike) -> Account:
        instances = self.esdt.setdefault(BytesValue.of(token_id), [])
        instances.append(EsdtInstance(nonce=U64Value.of(nonce), balance=BigUintValue.of(balance)))
        return self

    def code(self, code: BytesLike) -> Account:
        self.code_value = BytesValue.of(code)
        return self

    def owner(self, owner: AddressLike) -> Account:
        self.owner_value = AddressValue.of(owner)
        return self

    def storage_entry(self, key: BytesLike, value: BytesLike) -> Account:
        self.storage[BytesValue.of(key)] = BytesValue.of(value)
        return self


@dataclass(frozen=True)
class CheckEsdtInstance:
    nonce: int
    balance: CheckValue


@dataclass
class CheckAccount:
    nonce_check: Optional[CheckValue] = None
    balance_check: Optional[CheckValue] = None
    esdt: Dict[BytesValue, List[CheckEsdtInstance]] = field(default_factory=dict)
    code_check: Optional[CheckValue] = None
    owner_check: Optional[CheckValue] = None
    storage: Dict[BytesValue, CheckValue] = field(default_factory=dict)

    @classmethod
    def new(cls) -> CheckAccount:
        return cls()

    def nonce(self, nonce) -> CheckAccount:
        self.nonce_check = CheckValue.of(nonce)
        return self

    def balance(self, balance) -> CheckAccount:
        self.balance_check = CheckValue.of(balance)
        return self

    def esdt_balance(self, token_id: BytesLike, balance) -> CheckAccount:
        return self.esdt_nft_balance(token_id, 0, balance)

    def esdt_nft_balance(self, token_id: BytesLike, nonce: IntLike, balance) -> CheckAccount:
        instances = self.esdt.setdefault(BytesValue.of(token_id), [])
        instances.append(CheckEsdtInstance(nonce=U64Value.of(nonce).value, balance=CheckValue.of(balance)))
        return self

    def code(self, code) -> CheckAccount:
        self.code_check = CheckValue.of(code)
        return self

    def owner(self, owner) -> CheckAccount:
        self.owner_check = CheckValue.of(owner)
        return self

    def check_storage(self, key: BytesLike, value) -> CheckAccount:
        self.storage[BytesValue.of(key)] = CheckValue.of(value)
        return self
