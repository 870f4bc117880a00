# src/scensim_core/world/__init__.py
import logging
logger = logging.getLogger(__name__)

from .account_state import AccountState, EsdtKey
from .world_state import BlockState, WorldSnapshot, WorldState
from .exceptions import AccountNotFoundError, DeployAddressMismatchError, InsufficientFundsError

__all__ = [
    "AccountState",
    "EsdtKey",
    "BlockState",
    "WorldSnapshot",
    "WorldState",
    "AccountNotFoundError",
    "DeployAddressMismatchError",
    "InsufficientFundsError",
]
