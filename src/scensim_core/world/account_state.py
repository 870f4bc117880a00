# src/scensim_core/world/account_state.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..model import Account, PendingCall
from ..values import Address

logger = logging.getLogger(__name__)

# (token identifier, token nonce); fungible tokens use nonce 0.
EsdtKey = Tuple[bytes, int]


@dataclass
class AccountState:
    """
    The live state of one account in the world.

    `call_queue` holds the outbound calls this account has enqueued but not yet
    forwarded. It belongs to the account, so snapshots and rollbacks carry it along
    with the rest of the account's state.
    """
    nonce: int = 0
    balance: int = 0
    esdt: Dict[EsdtKey, int] = field(default_factory=dict)
    code: Optional[bytes] = None
    owner: Optional[Address] = None
    storage: Dict[bytes, bytes] = field(default_factory=dict)
    call_queue: List[PendingCall] = field(default_factory=list)

    @property
    def is_contract(self) -> bool:
        return self.code is not None

    def esdt_balance(self, token_identifier: bytes, nonce: int = 0) -> int:
        return self.esdt.get((token_identifier, nonce), 0)

    def set_esdt_balance(self, token_identifier: bytes, nonce: int, amount: int):
        if amount == 0:
            self.esdt.pop((token_identifier, nonce), None)
        else:
            self.esdt[(token_identifier, nonce)] = amount

    def storage_load(self, key: bytes) -> bytes:
        return self.storage.get(key, b"")

    def storage_store(self, key: bytes, value: bytes):
        # An empty value clears the key, mirroring on-chain storage.
        if value:
            self.storage[key] = value
        else:
            self.storage.pop(key, None)

    @classmethod
    def from_model(cls, account: Account) -> AccountState:
        """Materializes a declarative `Account` (from a setState step) into live state."""
        state = cls(
            nonce=account.nonce_value.value if account.nonce_value else 0,
            balance=account.balance_value.value if account.balance_value else 0,
            code=account.code_value.value if account.code_value and account.code_value.value else None,
            owner=account.owner_value.value if account.owner_value else None,
        )
        for token, instances in account.esdt.items():
            for instance in instances:
                state.set_esdt_balance(token.value, instance.nonce.value, instance.balance.value)
        for key, value in account.storage.items():
            state.storage_store(key.value, value.value)
        return state
