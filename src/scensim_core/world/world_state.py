# src/scensim_core/world/world_state.py
"""
Defines the `WorldState`, the single mutable ledger of a scenario run.

The world maps addresses to `AccountState` objects and carries the block metadata
visible to contracts. It never creates accounts implicitly: looking up an unknown
address yields `None` (or `AccountNotFoundError` through `require_account`), so an
uninitialized account surfaces as an explicit error instead of a silent zero.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterator, Optional, Tuple

from ..model import EsdtTransfer
from ..values import Address, derive_contract_address
from .account_state import AccountState
from .exceptions import AccountNotFoundError, DeployAddressMismatchError, InsufficientFundsError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockState:
    """Block metadata exposed to contracts through the host API."""
    timestamp: int = 0
    nonce: int = 0
    round: int = 0
    epoch: int = 0


@dataclass(frozen=True)
class WorldSnapshot:
    """An opaque, deep copy of the account map, used to roll back a failed transaction."""
    accounts: Dict[Address, AccountState]


class WorldState:
    """
    The mutable ledger: address → account, plus current and previous block info.

    Exactly one `WorldState` exists per scenario run and each step gets exclusive
    access to it for the step's duration.
    """

    def __init__(self):
        self._accounts: Dict[Address, AccountState] = {}
        self.current_block: BlockState = BlockState()
        self.previous_block: BlockState = BlockState()
        # Addresses declared up-front by setState 'newAddresses' entries.
        self._declared_new_addresses: Dict[Tuple[Address, int], Address] = {}
        # Every prediction handed out by `new_address`, to verify deploys against.
        self._predicted_new_addresses: Dict[Tuple[Address, int], Address] = {}
        logger.debug("WorldState created.")

    # --- Accounts ---

    def get_account(self, address: Address) -> Optional[AccountState]:
        return self._accounts.get(address)

    def require_account(self, address: Address, details: str = "") -> AccountState:
        account = self._accounts.get(address)
        if account is None:
            raise AccountNotFoundError(address=address, details=details)
        return account

    def put_account(self, address: Address, account: AccountState):
        """Inserts or totally replaces the account at `address`; nothing is merged."""
        if address in self._accounts:
            logger.debug(f"Replacing account {address!r}.")
        self._accounts[address] = account

    def has_account(self, address: Address) -> bool:
        return address in self._accounts

    def iter_accounts(self) -> Iterator[Tuple[Address, AccountState]]:
        return iter(sorted(self._accounts.items()))

    # --- Deterministic deploy addresses ---

    def register_new_address(self, creator: Address, creator_nonce: int, new_address: Address):
        key = (creator, creator_nonce)
        if key in self._declared_new_addresses and self._declared_new_addresses[key] != new_address:
            logger.warning(
                f"New address for creator {creator!r} at nonce {creator_nonce} redeclared: "
                f"{self._declared_new_addresses[key]!r} -> {new_address!r}"
            )
        self._declared_new_addresses[key] = new_address

    def declared_new_address(self, creator: Address, creator_nonce: int) -> Optional[Address]:
        return self._declared_new_addresses.get((creator, creator_nonce))

    def new_address(self, creator: Address, creator_nonce: int) -> Address:
        """
        Returns the address a contract deployed by `creator` at `creator_nonce` will get:
        the declared one if a setState step declared it, otherwise the deterministically
        derived one. The prediction is recorded for `verify_new_address`.
        """
        key = (creator, creator_nonce)
        predicted = self._declared_new_addresses.get(key)
        if predicted is None:
            predicted = derive_contract_address(creator, creator_nonce)
        self._predicted_new_addresses[key] = predicted
        logger.debug(f"Predicted new address {predicted!r} for creator {creator!r} at nonce {creator_nonce}.")
        return predicted

    def verify_new_address(self, creator: Address, creator_nonce: int, actual: Address):
        expected = self._predicted_new_addresses.get((creator, creator_nonce))
        if expected is None:
            expected = self._declared_new_addresses.get((creator, creator_nonce))
        if expected is not None and expected != actual:
            logger.error(f"Deploy landed at {actual!r}, predicted {expected!r}.")
            raise DeployAddressMismatchError(
                creator=creator, creator_nonce=creator_nonce, expected=expected, actual=actual
            )

    # --- Blocks ---

    def set_current_block_info(self, block: BlockState):
        self.current_block = block

    def set_previous_block_info(self, block: BlockState):
        self.previous_block = block

    def advance_block(self, timestamp: int = 0, nonce: int = 1, round: int = 1, epoch: int = 0):
        """Moves the current block forward by the given non-negative deltas."""
        for name, delta in (("timestamp", timestamp), ("nonce", nonce), ("round", round), ("epoch", epoch)):
            if delta < 0:
                raise ValueError(f"Block {name} delta must be non-negative, got {delta}.")
        self.previous_block = self.current_block
        self.current_block = replace(
            self.current_block,
            timestamp=self.current_block.timestamp + timestamp,
            nonce=self.current_block.nonce + nonce,
            round=self.current_block.round + round,
            epoch=self.current_block.epoch + epoch,
        )
        logger.debug(f"Advanced to block {self.current_block}.")

    # --- Transactions ---

    def snapshot(self) -> WorldSnapshot:
        return WorldSnapshot(accounts=copy.deepcopy(self._accounts))

    def rollback(self, snapshot: WorldSnapshot):
        self._accounts = copy.deepcopy(snapshot.accounts)

    def transfer_egld(self, sender: Address, receiver: Address, amount: int):
        if amount == 0:
            return
        source = self.require_account(sender, "EGLD transfer sender")
        target = self.require_account(receiver, "EGLD transfer receiver")
        if source.balance < amount:
            raise InsufficientFundsError(address=sender, required=amount, available=source.balance)
        source.balance -= amount
        target.balance += amount

    def transfer_esdt(self, sender: Address, receiver: Address, transfer: EsdtTransfer):
        if transfer.amount == 0:
            return
        source = self.require_account(sender, "ESDT transfer sender")
        target = self.require_account(receiver, "ESDT transfer receiver")
        available = source.esdt_balance(transfer.token_identifier, transfer.nonce)
        if available < transfer.amount:
            raise InsufficientFundsError(
                address=sender, required=transfer.amount, available=available,
                token=transfer.token_identifier.decode("utf-8", errors="replace"),
            )
        source.set_esdt_balance(transfer.token_identifier, transfer.nonce, available - transfer.amount)
        target.set_esdt_balance(
            transfer.token_identifier, transfer.nonce,
            target.esdt_balance(transfer.token_identifier, transfer.nonce) + transfer.amount,
        )
