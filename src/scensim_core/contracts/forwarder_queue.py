# src/scensim_core/contracts/forwarder_queue.py
"""
A contract that queues outbound calls of every kind and forwards them on demand.

Calls are added with one of the `add_queued_call*` endpoints, each taking
`to, endpoint_name, args...`; the payment of the adding transaction (EGLD or ESDT)
becomes the payment of the queued call. Nothing is sent until `forward_queued_calls`
is called. Promise callbacks are counted in storage, together with the EGLD
received back through them.
"""
import logging

from ..model import CallKind, EsdtTransfer
from .base import ContractBase, endpoint, register_contract

logger = logging.getLogger(__name__)

CALLBACK_COUNT_KEY = b"callback_count"
CALLBACK_PAYMENTS_KEY = b"callback_payments"
LEGACY_CALLBACK_COUNT_KEY = b"legacy_callback_count"

PROMISE_CALLBACK_ENDPOINT = "promises_callback_method"

#: Call type argument of `add_queued_call`, in declaration order.
CALL_TYPES = (CallKind.SYNC, CallKind.LEGACY_ASYNC, CallKind.TRANSFER_EXECUTE, CallKind.PROMISE)


@register_contract("forwarder-queue")
class ForwarderQueueContract(ContractBase):

    @endpoint("init")
    def init(self, api):
        pass

    def _enqueue(self, api, kind: CallKind, first_arg: int = 0, esdt_transfers=None):
        api.check_min_arguments(first_arg + 2)
        to = api.arg_address(first_arg)
        endpoint_name = api.arg_str(first_arg + 1)
        api.enqueue_call(
            kind,
            to,
            endpoint_name,
            arguments=api.args_from(first_arg + 2),
            egld_value=api.egld_value,
            esdt_transfers=esdt_transfers if esdt_transfers is not None else api.esdt_transfers,
            callback=PROMISE_CALLBACK_ENDPOINT if kind is CallKind.PROMISE else "",
        )

    @endpoint("add_queued_call_sync")
    def add_queued_call_sync(self, api):
        self._enqueue(api, CallKind.SYNC)

    @endpoint("add_queued_call_legacy_async")
    def add_queued_call_legacy_async(self, api):
        self._enqueue(api, CallKind.LEGACY_ASYNC)

    @endpoint("add_queued_call_transfer_execute")
    def add_queued_call_transfer_execute(self, api):
        self._enqueue(api, CallKind.TRANSFER_EXECUTE)

    @endpoint("add_queued_call_transfer_esdt")
    def add_queued_call_transfer_esdt(self, api):
        """Arguments: to, token identifier, token nonce, amount, endpoint name, args... (paid from own balance)."""
        api.check_min_arguments(5)
        to = api.arg_address(0)
        transfer = EsdtTransfer(token_identifier=api.arg(1), nonce=api.arg_u64(2), amount=api.arg_biguint(3))
        api.enqueue_call(
            CallKind.TRANSFER_EXECUTE,
            to,
            api.arg_str(4),
            arguments=api.args_from(5),
            esdt_transfers=[transfer],
        )

    @endpoint("add_queued_call_promise")
    def add_queued_call_promise(self, api):
        self._enqueue(api, CallKind.PROMISE)

    @endpoint("add_queued_call")
    def add_queued_call(self, api):
        """Arguments: call type (0 sync, 1 legacy async, 2 transfer-execute, 3 promise), to, endpoint name, args..."""
        api.check_min_arguments(3)
        call_type = api.arg_u64(0)
        if call_type >= len(CALL_TYPES):
            api.signal_error(f"unknown call type {call_type}")
        self._enqueue(api, CALL_TYPES[call_type], first_arg=1)

    @endpoint("forward_queued_calls")
    def forward_queued_calls(self, api):
        forwarded = api.forward_queued_calls()
        api.log([b"forward_queued_calls"], data=str(forwarded).encode("ascii"))

    @endpoint("queued_calls")
    def queued_calls(self, api):
        for call in api.queued_calls():
            api.finish(call.kind.name.encode("ascii") + b"|" + call.to_address.raw + b"|" + call.endpoint.encode("utf-8"))

    @endpoint("callback_count")
    def callback_count(self, api):
        api.finish_biguint(api.storage_load_biguint(CALLBACK_COUNT_KEY))

    @endpoint("callback_payments")
    def callback_payments(self, api):
        api.finish_biguint(api.storage_load_biguint(CALLBACK_PAYMENTS_KEY))

    @endpoint("legacy_callback_count")
    def legacy_callback_count(self, api):
        api.finish_biguint(api.storage_load_biguint(LEGACY_CALLBACK_COUNT_KEY))

    @endpoint(PROMISE_CALLBACK_ENDPOINT)
    def promises_callback_method(self, api):
        api.storage_store_biguint(CALLBACK_COUNT_KEY, api.storage_load_biguint(CALLBACK_COUNT_KEY) + 1)
        if api.egld_value > 0:
            api.storage_store_biguint(
                CALLBACK_PAYMENTS_KEY, api.storage_load_biguint(CALLBACK_PAYMENTS_KEY) + api.egld_value,
            )

    @endpoint("callBack")
    def legacy_callback(self, api):
        api.storage_store_biguint(LEGACY_CALLBACK_COUNT_KEY, api.storage_load_biguint(LEGACY_CALLBACK_COUNT_KEY) + 1)
