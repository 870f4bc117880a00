# src/scensim_core/contracts/__init__.py
import logging
logger = logging.getLogger(__name__)

from .base import CONTRACT_REGISTRY, ContractBase, ContractCapability, endpoint, register_contract
from .exceptions import EndpointRegistrationError

# Importing the built-in contracts registers them.
from .adder import AdderContract
from .forwarder_queue import ForwarderQueueContract
from .vault import VaultContract

__all__ = [
    "CONTRACT_REGISTRY",
    "ContractBase",
    "ContractCapability",
    "endpoint",
    "register_contract",
    "EndpointRegistrationError",
    "AdderContract",
    "ForwarderQueueContract",
    "VaultContract",
]
