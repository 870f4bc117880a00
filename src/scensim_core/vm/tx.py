# src/scensim_core/vm/tx.py
"""The VM-level transaction input and result records."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..constants import ADDRESS_LENGTH, STATUS_OK
from ..model import EsdtTransfer, PendingCall, TxLog, TxResponse
from ..values import Address

logger = logging.getLogger(__name__)


def generate_tx_hash(step_id: str, explicit_tx_hash: Optional[bytes] = None) -> bytes:
    """
    Returns the explicit hash if one is given, otherwise the step id bytes padded
    with zeros (or truncated) to 32 bytes, so every step gets a stable hash.
    """
    if explicit_tx_hash is not None:
        return explicit_tx_hash
    id_bytes = step_id.encode("utf-8")[:ADDRESS_LENGTH]
    return id_bytes.ljust(ADDRESS_LENGTH, b"\x00")


@dataclass
class TxInput:
    from_address: Address
    to_address: Address
    egld_value: int = 0
    esdt_transfers: List[EsdtTransfer] = field(default_factory=list)
    function: str = ""
    arguments: List[bytes] = field(default_factory=list)
    gas_limit: int = 0
    gas_price: int = 0
    tx_hash: bytes = b""
    # Closure arguments of a promise, only set when the input runs a callback.
    callback_args: List[bytes] = field(default_factory=list)


@dataclass
class TxResult:
    """What one execution frame produced."""
    status: int = STATUS_OK
    message: str = ""
    out: List[bytes] = field(default_factory=list)
    logs: List[TxLog] = field(default_factory=list)
    pending_calls: List[PendingCall] = field(default_factory=list)
    # EGLD the frame's contract sent back to its own caller.
    back_transfer_egld: int = 0
    callback_count: int = 0
    callback_payments: int = 0
    # Set by a successful deploy.
    new_address: Optional[Address] = None

    @classmethod
    def from_error(cls, status: int, message: str) -> TxResult:
        return cls(status=status, message=message)

    @property
    def is_success(self) -> bool:
        return self.status == STATUS_OK

    def to_response(
        self,
        tx_hash: bytes = b"",
        gas_limit: int = 0,
        new_deployed_address: Optional[Address] = None,
    ) -> TxResponse:
        return TxResponse(
            status=self.status,
            message=self.message,
            out=list(self.out),
            logs=list(self.logs),
            new_deployed_address=new_deployed_address,
            pending_calls=list(self.pending_calls),
            tx_hash=tx_hash,
            gas_limit=gas_limit,
            callback_count=self.callback_count,
            callback_payments=self.callback_payments,
        )
