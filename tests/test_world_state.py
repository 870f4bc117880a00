# tests/test_world_state.py

import pytest

from scensim_core.model import Account, EsdtTransfer
from scensim_core.values import derive_contract_address, sc_address, user_address
from scensim_core.world import (
    AccountNotFoundError,
    AccountState,
    DeployAddressMismatchError,
    InsufficientFundsError,
    WorldState,
)

ALICE = user_address("alice")
BOB = user_address("bob")


@pytest.fixture
def world() -> WorldState:
    state = WorldState()
    state.put_account(ALICE, AccountState(balance=100, esdt={(b"TOK-123456", 0): 10}))
    state.put_account(BOB, AccountState())
    return state


class TestTransfers:
    """VERIFIES: Balance moves are all-or-nothing and refuse to overdraw."""

    def test_egld_transfer(self, world):
        world.transfer_egld(ALICE, BOB, 40)
        assert world.get_account(ALICE).balance == 60
        assert world.get_account(BOB).balance == 40

    def test_insufficient_egld(self, world):
        with pytest.raises(InsufficientFundsError, match="101 is required"):
            world.transfer_egld(ALICE, BOB, 101)
        assert world.get_account(ALICE).balance == 100

    def test_esdt_transfer(self, world):
        world.transfer_esdt(ALICE, BOB, EsdtTransfer(b"TOK-123456", 0, 4))
        assert world.get_account(ALICE).esdt_balance(b"TOK-123456") == 6
        assert world.get_account(BOB).esdt_balance(b"TOK-123456") == 4

    def test_insufficient_esdt(self, world):
        with pytest.raises(InsufficientFundsError):
            world.transfer_esdt(ALICE, BOB, EsdtTransfer(b"TOK-123456", 1, 1))

    def test_missing_receiver(self, world):
        with pytest.raises(AccountNotFoundError):
            world.transfer_egld(ALICE, user_address("carol"), 1)

    def test_zero_transfer_is_noop(self, world):
        world.transfer_egld(ALICE, user_address("carol"), 0)
        assert not world.has_account(user_address("carol"))


class TestSnapshots:
    """VERIFIES: Rollback restores every account exactly as snapshotted."""

    def test_rollback_restores_state(self, world):
        snapshot = world.snapshot()
        world.transfer_egld(ALICE, BOB, 50)
        world.get_account(BOB).storage_store(b"k", b"v")
        world.put_account(user_address("carol"), AccountState(balance=1))

        world.rollback(snapshot)
        assert world.get_account(ALICE).balance == 100
        assert world.get_account(BOB).storage == {}
        assert not world.has_account(user_address("carol"))

    def test_snapshot_is_independent_of_later_changes(self, world):
        snapshot = world.snapshot()
        world.get_account(ALICE).balance = 0
        world.rollback(snapshot)
        world.get_account(ALICE).balance = 1
        world.rollback(snapshot)
        assert world.get_account(ALICE).balance == 100


class TestNewAddresses:
    """VERIFIES: Deploy addresses are declared or derived, and verified afterwards."""

    def test_declared_address_wins(self, world):
        world.register_new_address(ALICE, 0, sc_address("token"))
        assert world.new_address(ALICE, 0) == sc_address("token")

    def test_derived_address_without_declaration(self, world):
        assert world.new_address(ALICE, 5) == derive_contract_address(ALICE, 5)

    def test_verification_rejects_other_address(self, world):
        world.register_new_address(ALICE, 0, sc_address("token"))
        world.new_address(ALICE, 0)
        with pytest.raises(DeployAddressMismatchError):
            world.verify_new_address(ALICE, 0, sc_address("other"))


class TestBlocks:
    """VERIFIES: Blocks only move forward."""

    def test_advance_block(self, world):
        world.advance_block(timestamp=6, nonce=1, round=1)
        world.advance_block(timestamp=6, epoch=1)
        assert world.previous_block.timestamp == 6
        assert world.current_block.timestamp == 12
        assert world.current_block.nonce == 2
        assert world.current_block.epoch == 1

    def test_negative_delta_is_rejected(self, world):
        with pytest.raises(ValueError, match="non-negative"):
            world.advance_block(timestamp=-1)


class TestAccountState:
    """VERIFIES: Account storage drops keys set to empty values and accounts convert from the scenario model."""

    def test_empty_value_deletes_key(self):
        account = AccountState()
        account.storage_store(b"k", b"v")
        account.storage_store(b"k", b"")
        assert account.storage == {}
        assert account.storage_load(b"k") == b""

    def test_from_model(self):
        model = (
            Account.new().nonce(2).balance("1,000")
            .esdt_nft_balance("str:NFT-123456", 7, "1")
            .storage_entry("str:key", "str:value")
            .owner("address:alice")
        )
        account = AccountState.from_model(model)
        assert account.nonce == 2
        assert account.balance == 1000
        assert account.esdt_balance(b"NFT-123456", 7) == 1
        assert account.storage_load(b"key") == b"value"
        assert account.owner == ALICE
        assert not account.is_contract
