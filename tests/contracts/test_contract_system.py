# tests/contracts/test_contract_system.py

import pytest

from scensim_core.contracts import (
    CONTRACT_REGISTRY,
    AdderContract,
    ContractBase,
    ContractCapability,
    EndpointRegistrationError,
    ForwarderQueueContract,
    VaultContract,
    endpoint,
    register_contract,
)
from scensim_core.vm import BlockchainVM
from scensim_core.world import WorldState


class TestEndpointDiscovery:
    """VERIFIES: Endpoint tables are discovered through the MRO and reject ambiguous names."""

    def test_adder_endpoints(self):
        assert AdderContract().endpoint_names == ["add", "getSum", "init", "sum"]

    def test_inherited_endpoints(self):
        class LoudAdder(AdderContract):
            @endpoint("shout")
            def shout(self, api):
                pass

        contract = LoudAdder()
        assert contract.has_endpoint("add")
        assert contract.has_endpoint("shout")

    def test_two_methods_claiming_one_name(self):
        class Ambiguous(ContractBase):
            @endpoint("run")
            def first(self, api):
                pass

            @endpoint("run")
            def second(self, api):
                pass

        with pytest.raises(EndpointRegistrationError, match="declared by both 'first' and 'second'"):
            Ambiguous()

    def test_same_name_twice_on_one_method(self):
        with pytest.raises(EndpointRegistrationError, match="declared twice"):
            class Repeated(ContractBase):
                @endpoint("run")
                @endpoint("run")
                def run(self, api):
                    pass

    def test_invoke_reports_missing_endpoint(self):
        assert AdderContract().invoke("nope", api=None) is False

    def test_duplicate_gives_fresh_instance(self):
        contract = VaultContract()
        copy = contract.duplicate()
        assert copy is not contract
        assert isinstance(copy, VaultContract)
        assert isinstance(copy, ContractCapability)


class TestRegistry:
    """VERIFIES: The registry decorator validates contract classes before registering them."""

    def test_bundled_contracts_are_registered(self):
        assert CONTRACT_REGISTRY["adder"] is AdderContract
        assert CONTRACT_REGISTRY["vault"] is VaultContract
        assert CONTRACT_REGISTRY["forwarder-queue"] is ForwarderQueueContract
        assert AdderContract.contract_name == "adder"

    def test_rejects_non_contract_class(self):
        with pytest.raises(TypeError, match="must inherit from ContractBase"):
            @register_contract("plain")
            class Plain:
                pass

    def test_rejects_contract_without_endpoints(self):
        with pytest.raises(EndpointRegistrationError, match="no endpoints"):
            @register_contract("empty")
            class Empty(ContractBase):
                pass
        assert "empty" not in CONTRACT_REGISTRY


class TestVmRegistration:
    """VERIFIES: The VM accepts contract classes, instances and factories, and nothing else."""

    @pytest.mark.parametrize("contract", [AdderContract, AdderContract(), lambda: AdderContract()])
    def test_accepted_forms(self, contract):
        vm = BlockchainVM(WorldState())
        vm.register_contract(b"adder-code", contract)

    def test_rejects_object_without_capability(self):
        vm = BlockchainVM(WorldState())
        with pytest.raises(TypeError, match="contract capability"):
            vm.register_contract(b"code", lambda: object())
