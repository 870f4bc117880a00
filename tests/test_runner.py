# tests/test_runner.py

"""
Tests for step execution against the in-process VM: deploys, calls, queries,
transfers, validator rewards and state checks, driven through `ScenarioWorld`.
"""

import pytest

from scensim_core import (
    Account,
    CheckAccount,
    CheckStateStep,
    ScCallStep,
    ScDeployStep,
    ScQueryStep,
    ScenarioWorld,
    SetStateStep,
    TransferStep,
    TxExpect,
    ValidatorRewardStep,
)
from scensim_core.checker import CheckIssueCode, ScenarioCheckError
from scensim_core.constants import VALIDATOR_REWARD_KEY
from scensim_core.runner import IncompleteStepError
from scensim_core.values import derive_contract_address, sc_address, user_address
from scensim_core.world import AccountNotFoundError, DeployAddressMismatchError, InsufficientFundsError

from conftest import ADDER, ADDER_CODE, OWNER, register_test_contracts


def add_step(amount: str) -> ScCallStep:
    return ScCallStep.new().from_(OWNER).to(ADDER).function("add").argument(amount)


class TestDeployAndCall:
    """VERIFIES: The canonical deploy, call, check and query round of the adder contract."""

    def test_deploy_lands_on_declared_address(self, adder_world):
        account = adder_world.world.get_account(sc_address("adder"))
        assert account is not None
        assert account.is_contract
        assert account.owner == user_address("owner")
        assert account.storage_load(b"sum") == b"\x05"

    def test_add_updates_storage_and_query_reads_it(self, adder_world):
        adder_world.sc_call_step(add_step("3").expect(TxExpect.ok().no_result()))
        adder_world.check_state_step(
            CheckStateStep.new().put_account(ADDER, CheckAccount.new().check_storage("str:sum", "8"))
        )

        query = ScQueryStep.new().to(ADDER).function("getSum").expect(TxExpect.ok().result("8"))
        adder_world.sc_query_step(query)
        assert query.response.out == [b"\x08"]

    def test_alias_endpoint_reaches_same_method(self, adder_world):
        query = ScQueryStep.new().to(ADDER).function("sum")
        adder_world.sc_query_step(query)
        assert query.response.out == [b"\x05"]

    def test_sender_nonce_increments_per_transaction(self, adder_world):
        adder_world.sc_call_step(add_step("1"))
        adder_world.check_state_step(
            CheckStateStep.new().put_account(OWNER, CheckAccount.new().nonce("3"))
        )

    def test_deploy_use_new_address_hands_over_the_address(self, world):
        world.set_state_step(SetStateStep.new().put_account(OWNER, Account.new().nonce(7)))
        seen = []
        world.sc_deploy_use_new_address(
            ScDeployStep.new().from_(OWNER).contract_code(ADDER_CODE, world.interpreter_context()).argument("1"),
            seen.append,
        )
        assert len(seen) == 1
        assert seen[0] is not None
        assert seen[0].is_smart_contract()
        assert world.world.has_account(seen[0])

    def test_deploy_use_new_address_receives_none_on_failure(self, world):
        world.set_state_step(SetStateStep.new().put_account(OWNER, Account.new()))
        seen = []
        world.sc_deploy_use_new_address(
            ScDeployStep.new().from_(OWNER).contract_code(ADDER_CODE, world.interpreter_context())
            .expect(TxExpect.err(2, "str:wrong number of arguments")),
            seen.append,
        )
        assert seen == [None]


class TestQueries:
    """VERIFIES: Queries never change the world, whatever the endpoint does."""

    def test_query_of_mutating_endpoint_is_rolled_back(self, adder_world):
        query = ScQueryStep.new().to(ADDER).function("add").argument("100")
        adder_world.sc_query_step(query)
        assert query.response.is_success

        adder_world.check_state_step(
            CheckStateStep.new().put_account(ADDER, CheckAccount.new().check_storage("str:sum", "5"))
        )

    def test_query_does_not_touch_nonces(self, adder_world):
        adder_world.sc_query_step(ScQueryStep.new().to(ADDER).function("getSum"))
        adder_world.check_state_step(
            CheckStateStep.new().put_account(OWNER, CheckAccount.new().nonce("2"))
        )


class TestFailureStatuses:
    """VERIFIES: Contract failures are reported as statuses, with state rolled back and the nonce kept."""

    def test_wrong_number_of_arguments(self, adder_world):
        step = ScCallStep.new().from_(OWNER).to(ADDER).function("add")
        adder_world.sc_call_step(step.expect(TxExpect.err(2, "str:wrong number of arguments")))
        assert step.response.status == 2
        adder_world.check_state_step(
            CheckStateStep.new()
            .put_account(OWNER, CheckAccount.new().nonce("3"))
            .put_account(ADDER, CheckAccount.new().check_storage("str:sum", "5"))
        )

    def test_function_not_found(self, adder_world):
        step = ScCallStep.new().from_(OWNER).to(ADDER).function("subtract").argument("1")
        adder_world.sc_call_step(step.expect(TxExpect.err(1, "str:invalid function (not found)")))

    def test_call_to_missing_account(self, adder_world):
        step = ScCallStep.new().from_(OWNER).to("sc:nowhere").function("add")
        adder_world.sc_call_step(step.expect(TxExpect.err(3, "*")))
        assert step.response.message.startswith("account not found")

    def test_call_to_user_account_is_invalid_contract(self, adder_world):
        adder_world.set_state_step(SetStateStep.new().put_account("address:bob", Account.new()))
        step = ScCallStep.new().from_(OWNER).to("address:bob").function("add")
        adder_world.sc_call_step(step.expect(TxExpect.err(3, "str:invalid contract code (not found)")))

    def test_payment_without_funds(self, adder_world):
        step = add_step("1").egld_value("2,000,000")
        adder_world.sc_call_step(step.expect(TxExpect.err(7, "str:failed transfer (insufficient funds)")))
        adder_world.check_state_step(
            CheckStateStep.new().put_account(OWNER, CheckAccount.new().balance("1,000,000"))
        )

    def test_deploy_collision(self, adder_world):
        adder_world.set_state_step(SetStateStep.new().new_address(OWNER, 2, ADDER))
        step = (
            ScDeployStep.new().from_(OWNER)
            .contract_code(ADDER_CODE, adder_world.interpreter_context())
            .argument("1")
        )
        adder_world.sc_deploy_step(step.expect(TxExpect.err(6, "*")))
        assert step.response.new_deployed_address is None
        adder_world.check_state_step(
            CheckStateStep.new().put_account(ADDER, CheckAccount.new().check_storage("str:sum", "5"))
        )

    def test_failed_constructor_leaves_no_account(self, world):
        world.set_state_step(SetStateStep.new().put_account(OWNER, Account.new()).new_address(OWNER, 0, ADDER))
        world.sc_deploy_step(
            ScDeployStep.new().from_(OWNER).contract_code(ADDER_CODE, world.interpreter_context())
            .expect(TxExpect.err(2, "*"))
        )
        assert not world.world.has_account(sc_address("adder"))


class TestDeployAddresses:
    """VERIFIES: Undeclared deploys land on the derived address, and the runner rejects any other landing."""

    @staticmethod
    def deploy(world) -> list:
        seen = []
        world.sc_deploy_use_new_address(
            ScDeployStep.new().from_(OWNER).contract_code(ADDER_CODE, world.interpreter_context()).argument("1"),
            seen.append,
        )
        return seen

    def test_independent_worlds_derive_the_same_address(self, tmp_path):
        addresses = []
        for _ in range(2):
            world = register_test_contracts(ScenarioWorld.debugger(current_dir=tmp_path))
            world.set_state_step(SetStateStep.new().put_account(OWNER, Account.new()))
            addresses.extend(self.deploy(world))

        assert addresses[0] == addresses[1]
        assert addresses[0] == derive_contract_address(user_address("owner"), 0)

    def test_landing_elsewhere_than_predicted_is_fatal(self, world):
        world.set_state_step(SetStateStep.new().put_account(OWNER, Account.new()))
        world.vm.address_deriver = lambda creator, creator_nonce: sc_address("elsewhere")
        with pytest.raises(DeployAddressMismatchError, match="was predicted"):
            self.deploy(world)

    def test_declared_address_wins_over_derivation(self, world):
        world.set_state_step(SetStateStep.new().put_account(OWNER, Account.new()).new_address(OWNER, 0, ADDER))
        world.vm.address_deriver = lambda creator, creator_nonce: sc_address("elsewhere")
        assert self.deploy(world) == [sc_address("adder")]


class TestExpectations:
    """VERIFIES: A response that misses its expectation aborts the scenario with every issue listed."""

    def test_wrong_result_raises_check_error(self, adder_world):
        query = ScQueryStep.new().to(ADDER).function("getSum").expect(TxExpect.ok().result("6"))
        with pytest.raises(ScenarioCheckError) as exc_info:
            adder_world.sc_query_step(query)
        codes = [issue.code for issue in exc_info.value.issues]
        assert codes == [CheckIssueCode.TX_OUT_VALUE.code]

    def test_failure_without_expectation_does_not_raise(self, adder_world):
        step = ScCallStep.new().from_(OWNER).to(ADDER).function("add")
        adder_world.sc_call_step(step)
        assert step.response.status == 2

    def test_response_handler_runs_once(self, adder_world):
        calls = []
        step = add_step("2").with_raw_response(calls.append)
        adder_world.sc_call_step(step)
        assert calls == [step.response]
        assert step.response_handlers == []


class TestTransfersAndRewards:
    """VERIFIES: Plain transfers and validator rewards move balances as declared."""

    def test_egld_and_esdt_transfer(self, world):
        world.set_state_step(
            SetStateStep.new()
            .put_account(OWNER, Account.new().balance("100").esdt_balance("str:TOK-123456", "50"))
            .put_account("address:bob", Account.new())
        )
        world.transfer_step(TransferStep.new().from_(OWNER).to("address:bob").egld_value("30"))
        world.transfer_step(TransferStep.new().from_(OWNER).to("address:bob").esdt_transfer("str:TOK-123456", 0, "20"))
        world.check_state_step(
            CheckStateStep.new()
            .put_account(OWNER, CheckAccount.new().nonce("2").balance("70").esdt_balance("str:TOK-123456", "30"))
            .put_account("address:bob", CheckAccount.new().balance("30").esdt_balance("str:TOK-123456", "20"))
        )

    def test_transfer_without_funds_is_fatal(self, world):
        world.set_state_step(
            SetStateStep.new().put_account(OWNER, Account.new().balance("10")).put_account("address:bob", Account.new())
        )
        with pytest.raises(InsufficientFundsError):
            world.transfer_step(TransferStep.new().from_(OWNER).to("address:bob").egld_value("11"))

    def test_transfer_to_missing_account_is_fatal(self, world):
        world.set_state_step(SetStateStep.new().put_account(OWNER, Account.new().balance("10")))
        with pytest.raises(AccountNotFoundError):
            world.transfer_step(TransferStep.new().from_(OWNER).to("address:nobody").egld_value("1"))

    def test_validator_reward_accumulates(self, world):
        world.set_state_step(SetStateStep.new().put_account("address:validator", Account.new().balance("5")))
        world.validator_reward_step(ValidatorRewardStep.new().to("address:validator").egld_value("10"))
        world.validator_reward_step(ValidatorRewardStep.new().to("address:validator").egld_value("15"))

        account = world.world.get_account(user_address("validator"))
        assert account.balance == 30
        assert account.storage_load(VALIDATOR_REWARD_KEY) == (25).to_bytes(1, "big")

    def test_call_without_sender_is_incomplete(self, world):
        with pytest.raises(IncompleteStepError):
            world.sc_call_step(ScCallStep.new().to(ADDER).function("add"))


class TestSetState:
    """VERIFIES: setState replaces accounts wholesale and updates block info."""

    def test_put_account_replaces_previous_account(self, world):
        world.set_state_step(SetStateStep.new().put_account(OWNER, Account.new().balance("10").storage_entry("str:a", "1")))
        world.set_state_step(SetStateStep.new().put_account(OWNER, Account.new().balance("3")))
        account = world.world.get_account(user_address("owner"))
        assert account.balance == 3
        assert account.storage == {}

    def test_block_info(self, world):
        world.set_state_step(SetStateStep.new().block_timestamp(1000).block_nonce(12).block_round(13).block_epoch(2))
        block = world.world.current_block
        assert (block.timestamp, block.nonce, block.round, block.epoch) == (1000, 12, 13, 2)

    def test_dump_state_lists_accounts(self, adder_world):
        dump = adder_world.vm_runner.dump_state()
        assert str(sc_address("adder")) in dump
        assert "storage 0x73756d = 0x05" in dump
