# src/scensim_core/contracts/vault.py
"""
A passive target contract for cross-contract call scenarios.

It accepts any payment, echoes its arguments, fails on request and can send funds
back to whoever called it (a back-transfer, from the caller's point of view).
"""
import logging

from .base import ContractBase, endpoint, register_contract

logger = logging.getLogger(__name__)

CALL_COUNT_KEY = b"call_count"
ACCEPTED_EGLD_KEY = b"accepted_egld"


@register_contract("vault")
class VaultContract(ContractBase):

    @endpoint("init")
    def init(self, api):
        for argument in api.arguments:
            api.finish(argument)

    def _count_call(self, api):
        api.storage_store_biguint(CALL_COUNT_KEY, api.storage_load_biguint(CALL_COUNT_KEY) + 1)

    @endpoint("echo_arguments")
    def echo_arguments(self, api):
        self._count_call(api)
        for argument in api.arguments:
            api.finish(argument)

    @endpoint("accept_funds")
    def accept_funds(self, api):
        self._count_call(api)
        if api.egld_value:
            api.storage_store_biguint(ACCEPTED_EGLD_KEY, api.storage_load_biguint(ACCEPTED_EGLD_KEY) + api.egld_value)
        api.log([b"accept_funds", api.caller.raw], data=str(api.egld_value).encode("ascii"))

    @endpoint("accept_funds_echo_payment")
    def accept_funds_echo_payment(self, api):
        self._count_call(api)
        api.finish_biguint(api.egld_value)
        for transfer in api.esdt_transfers:
            api.finish(transfer.token_identifier)
            api.finish_biguint(transfer.amount)

    @endpoint("reject_funds")
    def reject_funds(self, api):
        api.signal_error("reject_funds")

    @endpoint("explicit_panic")
    def explicit_panic(self, api):
        message = api.arg_str(0) if api.num_arguments else "explicit panic"
        api.signal_error(message)

    @endpoint("retrieve_funds")
    def retrieve_funds(self, api):
        """Sends `amount` EGLD (or ESDT, when a token identifier is given) back to the caller."""
        self._count_call(api)
        api.check_min_arguments(1)
        if api.num_arguments == 1:
            api.send_egld(api.caller, api.arg_biguint(0))
        else:
            api.check_num_arguments(3)
            api.send_esdt(api.caller, api.arg(0), api.arg_u64(1), api.arg_biguint(2))

    @endpoint("call_count")
    def call_count(self, api):
        api.finish_biguint(api.storage_load_biguint(CALL_COUNT_KEY))
