# tests/conftest.py
import pytest

from scensim_core import Account, ScDeployStep, ScenarioWorld, SetStateStep, TxExpect
from scensim_core.contracts import AdderContract, ForwarderQueueContract, VaultContract

ADDER_CODE = "file:adder.wasm"
VAULT_CODE = "file:vault.wasm"
FORWARDER_CODE = "file:forwarder-queue.wasm"

OWNER = "address:owner"
ADDER = "sc:adder"
VAULT = "sc:vault"
FORWARDER = "sc:forwarder"


def register_test_contracts(world: ScenarioWorld) -> ScenarioWorld:
    """Binds the bundled contracts to the code expressions used throughout the tests."""
    return (
        world
        .register_contract(ADDER_CODE, AdderContract)
        .register_contract(VAULT_CODE, VaultContract)
        .register_contract(FORWARDER_CODE, ForwarderQueueContract)
    )


@pytest.fixture
def world(tmp_path) -> ScenarioWorld:
    """A debugger world rooted in an empty temporary directory, with the bundled contracts registered."""
    return register_test_contracts(ScenarioWorld.debugger(current_dir=tmp_path))


@pytest.fixture
def adder_world(world) -> ScenarioWorld:
    """An owner account plus an adder deployed at `sc:adder` with an initial sum of 5."""
    world.set_state_step(
        SetStateStep.new()
        .put_account(OWNER, Account.new().nonce(1).balance("1,000,000"))
        .new_address(OWNER, 1, ADDER)
    )
    world.sc_deploy_step(
        ScDeployStep.new()
        .from_(OWNER)
        .contract_code(ADDER_CODE, world.interpreter_context())
        .argument("5")
        .expect(TxExpect.ok().no_result())
    )
    return world


@pytest.fixture
def forwarder_world(world) -> ScenarioWorld:
    """A funded owner, a forwarder-queue contract and a vault contract holding 1000 EGLD units."""
    world.set_state_step(
        SetStateStep.new()
        .put_account(OWNER, Account.new().nonce(1).balance("1,000,000"))
        .put_account(FORWARDER, Account.new().code(FORWARDER_CODE).owner(OWNER))
        .put_account(VAULT, Account.new().code(VAULT_CODE).owner(OWNER).balance("1000"))
    )
    return world
