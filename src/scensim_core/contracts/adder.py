# src/scensim_core/contracts/adder.py
"""A minimal contract keeping a running sum in storage under the key "sum"."""
import logging

from .base import ContractBase, endpoint, register_contract

logger = logging.getLogger(__name__)

SUM_KEY = b"sum"


@register_contract("adder")
class AdderContract(ContractBase):

    @endpoint("init")
    def init(self, api):
        api.check_num_arguments(1)
        api.storage_store_biguint(SUM_KEY, api.arg_biguint(0))

    @endpoint("getSum")
    @endpoint("sum")
    def get_sum(self, api):
        api.check_num_arguments(0)
        api.finish_biguint(api.storage_load_biguint(SUM_KEY))

    @endpoint("add")
    def add(self, api):
        """Adds the argument to the stored sum."""
        api.check_num_arguments(1)
        total = api.storage_load_biguint(SUM_KEY) + api.arg_biguint(0)
        api.storage_store_biguint(SUM_KEY, total)
