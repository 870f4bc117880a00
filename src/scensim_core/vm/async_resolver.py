# src/scensim_core/vm/async_resolver.py
"""
Emulates asynchronous cross-contract calls on the synchronous in-process VM.

Two entry points:

`forward_queue(api)` drains the calling contract's own queue, first-in first-out.
Synchronous and transfer-execute entries run in-line, right away; legacy async
and promise entries are moved onto the frame's outbound list.

`resolve_outbound(api)` runs after an endpoint has returned successfully. Each
outbound call is executed against its target, then its callback is invoked on the
issuing contract with `[status, results...]` on success or `[status, message]` on
failure, its closure arguments, and the EGLD the target sent back to it during the
call as call value. Failed calls are not skipped: their callback still runs, with
the error. A callback that fails only rolls back its own effects.

For every pass, the number of callbacks invoked equals the number of promises and
legacy calls that were outbound; an empty pass is a no-op.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..constants import LEGACY_CALLBACK_ENDPOINT
from ..model import CallKind, PendingCall
from ..values import top_encode_u64
from .tx import TxInput, TxResult

if TYPE_CHECKING:
    from .context import ContractApi
    from .executor import BlockchainVM

logger = logging.getLogger(__name__)


@dataclass
class ForwardingReport:
    """Accounting of one resolution pass."""
    resolved: int = 0
    callback_count: int = 0
    callback_payments: int = 0

    def merge(self, other: "ForwardingReport"):
        self.resolved += other.resolved
        self.callback_count += other.callback_count
        self.callback_payments += other.callback_payments


class AsyncCallResolver:
    """Resolves queued and outbound calls on behalf of the VM."""

    def __init__(self, vm: "BlockchainVM"):
        self._vm = vm

    def forward_queue(self, api: "ContractApi") -> int:
        account = self._vm.world.require_account(api.sc_address, "forwarding contract")
        queue, account.call_queue = account.call_queue, []
        if not queue:
            logger.debug(f"Forward on {api.sc_address!r}: queue is empty.")
            return 0

        logger.debug(f"Forwarding {len(queue)} queued call(s) from {api.sc_address!r}.")
        for call in queue:
            if call.kind is CallKind.SYNC:
                api.execute_on_dest(
                    call.to_address, call.endpoint, call.arguments, call.egld_value, call.esdt_transfers,
                )
            elif call.kind is CallKind.TRANSFER_EXECUTE:
                api.transfer_execute(
                    call.to_address, call.endpoint, call.arguments, call.egld_value, call.esdt_transfers,
                )
            elif call.kind is CallKind.LEGACY_ASYNC:
                api.async_call(
                    call.to_address, call.endpoint, call.arguments, call.egld_value, call.esdt_transfers,
                )
            else:
                api.register_promise(
                    call.to_address, call.endpoint, call.arguments, call.egld_value, call.esdt_transfers,
                    gas_limit=call.gas_limit, callback=call.callback, callback_args=call.callback_args,
                )
        return len(queue)

    def resolve_outbound(self, api: "ContractApi") -> ForwardingReport:
        report = ForwardingReport()
        outbound, api.outbound = api.outbound, []
        for call in outbound:
            report.merge(self._resolve_one(call, api))
        return report

    def _resolve_one(self, call: PendingCall, api: "ContractApi") -> ForwardingReport:
        report = ForwardingReport(resolved=1)
        result = self._vm.execute_call(call, depth=api.depth + 1, tx_hash=api.tx_hash)
        api.logs.extend(result.logs)
        logger.debug(
            f"{call.kind.name} call {call.from_address!r} -> {call.to_address!r}::{call.endpoint} "
            f"finished with status {result.status}."
        )

        if not call.callback:
            return report

        callback_input = self._callback_input(call, result, api.tx_hash)
        callback_result = self._vm.execute_callback(
            callback_input,
            depth=api.depth + 1,
            allow_missing_endpoint=call.kind is CallKind.LEGACY_ASYNC,
        )
        report.callback_count += 1
        report.callback_payments += callback_input.egld_value
        if callback_result.is_success:
            api.logs.extend(callback_result.logs)
        else:
            logger.warning(
                f"Callback '{call.callback}' on {call.from_address!r} failed with status "
                f"{callback_result.status}: {callback_result.message}"
            )
        return report

    @staticmethod
    def _callback_input(call: PendingCall, result: TxResult, tx_hash: bytes) -> TxInput:
        arguments = [top_encode_u64(result.status)]
        if result.is_success:
            arguments.extend(result.out)
        else:
            arguments.append(result.message.encode("utf-8"))
        return TxInput(
            from_address=call.to_address,
            to_address=call.from_address,
            # Already in the caller's balance; reported as call value only.
            egld_value=result.back_transfer_egld if result.is_success else 0,
            function=call.callback or LEGACY_CALLBACK_ENDPOINT,
            arguments=arguments,
            gas_limit=call.gas_limit,
            tx_hash=tx_hash,
            callback_args=list(call.callback_args),
        )
