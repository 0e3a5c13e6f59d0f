"""Tests for the swap execution primitive."""

import pytest

from conftest import WALLET_ADDRESS, drain
from swap_swarm.history import SwapHistory
from swap_swarm.logging_utils import MetricsCollector
from swap_swarm.trader import SwapExecutor
from swap_swarm.utils import BalanceFetchError, BlockhashExpiredError, RouteError, SwapError


@pytest.fixture
def history(tmp_path):
    return SwapHistory(str(tmp_path / "swap_history.json"))


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def executor(wallet, router, history, reporter, metrics, recording_sleep):
    return SwapExecutor(wallet, router, history, reporter, metrics=metrics, sleep=recording_sleep)


class TestGetBaseBalance:

    def test_returns_balance(self, executor, wallet):
        assert executor.get_base_balance() == 2_000_000_000
        wallet.get_native_balance.assert_called_once()

    def test_retries_then_succeeds(self, executor, wallet, channel, recording_sleep):
        wallet.get_native_balance.side_effect = [OSError("rpc down"), 5_000_000]

        assert executor.get_base_balance() == 5_000_000
        assert recording_sleep.calls == [2.0]
        events = drain(channel)
        assert len(events) == 1
        assert events[0].level == "error"

    def test_exhaustion_raises(self, executor, wallet, channel, recording_sleep):
        wallet.get_native_balance.side_effect = OSError("rpc down")

        with pytest.raises(BalanceFetchError):
            executor.get_base_balance()

        assert wallet.get_native_balance.call_count == 3
        assert recording_sleep.calls == [2.0, 4.0]
        assert [e.level for e in drain(channel)] == ["error", "error", "error"]


class TestSwap:
    """Tests for SwapExecutor.swap."""

    def test_confirmed_swap_appends_one_record(self, executor, wallet, router, history, metrics):
        wallet.send_transaction.return_value = "5confirmedSig"

        txid = executor.swap("mintIn", "mintOut", 1_800_000_000, 50)

        assert txid == "5confirmedSig"
        router.get_quote.assert_called_once_with("mintIn", "mintOut", 1_800_000_000, 50)
        router.build_swap_transaction.assert_called_once_with(
            router.get_quote.return_value, WALLET_ADDRESS
        )
        wallet.sign_serialized.assert_called_once_with("dHg=")
        wallet.send_transaction.assert_called_once_with("signed-tx")
        wallet.confirm_transaction.assert_called_once_with("5confirmedSig")

        records = history.load()
        assert len(records) == 1
        record = records[0]
        assert record.input_mint == "mintIn"
        assert record.output_mint == "mintOut"
        assert record.amount == 1_800_000_000
        assert record.txid == "5confirmedSig"
        assert record.wallet == WALLET_ADDRESS

        summary = metrics.get_summary()
        assert summary["operations"]["swap"]["success"] == 1

    def test_default_slippage(self, executor, router):
        executor.swap("mintIn", "mintOut", 1000)
        assert router.get_quote.call_args[0][3] == 50

    def test_three_failed_submissions(self, executor, wallet, history, channel, metrics, recording_sleep):
        wallet.send_transaction.side_effect = OSError("node is behind")

        assert executor.swap("mintIn", "mintOut", 1000) is None

        assert wallet.send_transaction.call_count == 3
        assert recording_sleep.calls == [2.0, 4.0]
        wallet.confirm_transaction.assert_not_called()
        assert history.load() == []

        errors = [e for e in drain(channel) if e.level == "error"]
        assert len(errors) == 3
        assert metrics.get_summary()["operations"]["swap"]["failure"] == 1

    def test_submission_recovers(self, executor, wallet, history):
        wallet.send_transaction.side_effect = [OSError("busy"), "5retriedSig"]

        assert executor.swap("mintIn", "mintOut", 1000) == "5retriedSig"
        assert len(history.load()) == 1

    def test_blockhash_expiry_is_retried(self, executor, wallet, history, channel):
        wallet.confirm_transaction.side_effect = [BlockhashExpiredError("expired"), "5sig"]

        assert executor.swap("mintIn", "mintOut", 1000) == "5sig"
        assert wallet.confirm_transaction.call_count == 2
        assert any(e.level == "warning" for e in drain(channel))
        assert len(history.load()) == 1

    def test_failed_transaction_not_retried(self, executor, wallet, history):
        wallet.confirm_transaction.side_effect = SwapError("custom program error")

        assert executor.swap("mintIn", "mintOut", 1000) is None
        wallet.confirm_transaction.assert_called_once()
        assert history.load() == []

    def test_insufficient_fee_balance(self, executor, wallet, router, history):
        wallet.get_native_balance.return_value = 9_999

        assert executor.swap("mintIn", "mintOut", 1000) is None
        router.get_quote.assert_not_called()
        assert history.load() == []

    def test_same_input_and_output(self, executor, router):
        assert executor.swap("mintIn", "mintIn", 1000) is None
        router.get_quote.assert_not_called()

    def test_no_route(self, executor, router, wallet, channel):
        router.get_quote.side_effect = RouteError("No routes found")

        assert executor.swap("mintIn", "mintOut", 1000) is None
        wallet.send_transaction.assert_not_called()
        assert "No routes found" in drain(channel)[-1].message

    def test_works_without_metrics(self, wallet, router, history, reporter, recording_sleep):
        executor = SwapExecutor(wallet, router, history, reporter, sleep=recording_sleep)
        assert executor.swap("mintIn", "mintOut", 1000) == "5sig"


class TestClose:

    def test_close_releases_router_session(self, executor, router):
        executor.close()

        router.close.assert_called_once_with()
