# src/scensim_core/vm/__init__.py
import logging
logger = logging.getLogger(__name__)

from .tx import TxInput, TxResult, generate_tx_hash
from .context import ContractApi
from .async_resolver import AsyncCallResolver, ForwardingReport
from .executor import BlockchainVM, ContractFactory
from .exceptions import ContractSignalError, UnknownContractCodeError

__all__ = [
    "TxInput",
    "TxResult",
    "generate_tx_hash",
    "ContractApi",
    "AsyncCallResolver",
    "ForwardingReport",
    "BlockchainVM",
    "ContractFactory",
    "ContractSignalError",
    "UnknownContractCodeError",
]
