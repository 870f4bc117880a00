# tests/test_model.py

import pytest

from scensim_core.model import (
    PaymentConflictError,
    ResponseAlreadySetError,
    ResponseNotReadyError,
    ScCallStep,
    ScDeployStep,
    SetStateStep,
    TransferStep,
    TxExpect,
    TxResponse,
)
from scensim_core.values import InterpreterContext


class TestPaymentExclusivity:
    """VERIFIES: A transaction pays either EGLD or ESDT, never both, whichever is set first."""

    def test_esdt_after_egld(self):
        step = ScCallStep("pay").egld_value("10")
        with pytest.raises(PaymentConflictError) as exc_info:
            step.esdt_transfer("str:TOK-123456", 0, "5")
        assert exc_info.value.step_id == "pay"

    def test_egld_after_esdt(self):
        step = TransferStep.new().esdt_transfer("str:TOK-123456", 0, "5")
        with pytest.raises(PaymentConflictError):
            step.egld_value("10")

    def test_zero_egld_does_not_conflict(self):
        step = ScCallStep.new().egld_value("0").esdt_transfer("str:TOK-123456", 0, "5")
        assert len(step.tx.esdt_value) == 1

    def test_multiple_esdt_transfers(self):
        step = ScCallStep.new().esdt_transfer("str:A-000001", 0, "1").esdt_transfer("str:B-000001", 3, "2")
        assert [esdt.nonce.value for esdt in step.tx.esdt_value] == [0, 3]


class TestResponses:
    """VERIFIES: A step's response is write-once and its handlers run once."""

    def test_response_not_ready(self):
        with pytest.raises(ResponseNotReadyError):
            _ = ScCallStep("pending").response

    def test_response_is_write_once(self):
        step = ScCallStep("once")
        step.set_response(TxResponse())
        assert step.has_response
        with pytest.raises(ResponseAlreadySetError):
            step.set_response(TxResponse(status=4))
        assert step.response.status == 0

    def test_handlers_run_once_in_order(self):
        seen = []
        step = ScCallStep.new().with_raw_response(lambda r: seen.append(("a", r.status)))
        step.with_raw_response(lambda r: seen.append(("b", r.status)))
        step.set_response(TxResponse(status=4))
        step.trigger_handlers()
        step.trigger_handlers()
        assert seen == [("a", 4), ("b", 4)]

    def test_trace_copy_drops_handlers(self):
        step = ScCallStep("traced").from_("address:owner").with_raw_response(print)
        copied = step.copy_for_trace()
        assert copied.response_handlers == []
        assert step.response_handlers == [print]
        assert copied.tx.from_address == step.tx.from_address


class TestBuilders:
    """VERIFIES: Fluent builders interpret their inputs when called."""

    def test_deploy_code_uses_given_context(self, tmp_path):
        (tmp_path / "c.wasm").write_bytes(b"code")
        step = ScDeployStep.new().contract_code("file:c.wasm", InterpreterContext(tmp_path))
        assert step.tx.contract_code.value == b"code"
        assert step.tx.contract_code.original == "file:c.wasm"

    def test_set_state_collects_block_info(self):
        step = SetStateStep.new().block_nonce(3).block_epoch(1)
        assert step.current_block_info.nonce.value == 3
        assert step.current_block_info.epoch.value == 1
        assert step.current_block_info.round is None

    def test_expect_builders(self):
        expect = TxExpect.user_error("str:boom")
        assert expect.status.matches(b"\x04")
        assert expect.message.matches(b"boom")
        assert expect.out is None
        assert TxExpect.ok().no_result().out == []
