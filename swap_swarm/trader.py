"""
Trader Module - Swap Execution
==============================
SwapExecutor is the swap primitive every wallet runner uses:
fee check, Jupiter quote and swap build, sign, submit with retry,
confirm with retry on blockhash expiry, then a history record.
"""

import time
from typing import Callable, Optional

from .history import SwapHistory, SwapRecord
from .logging_utils import MetricsCollector, OperationMetric
from .progress import WalletReporter
from .retry import balance_policy, confirm_policy, submit_policy
from .router import JupiterRouter
from .utils import (
    BalanceFetchError,
    BlockhashExpiredError,
    SwapError,
    explorer_link,
    format_amount,
    logger,
)
from .wallet import SolanaWallet


class SwapExecutor:
    """
    Executes swaps for a single wallet.

    Usage:
        executor = SwapExecutor(wallet, router, history, reporter)
        txid = executor.swap(input_mint, output_mint, amount)

    ``swap`` never raises: every failure is reported and ``None`` returned.
    """

    def __init__(
        self,
        wallet: SolanaWallet,
        router: JupiterRouter,
        history: SwapHistory,
        reporter: WalletReporter,
        metrics: Optional[MetricsCollector] = None,
        sleep: Callable[[float], None] = time.sleep,
        min_fee_balance: int = 10000,
        default_slippage_bps: int = 50,
    ):
        self.wallet = wallet
        self.router = router
        self.history = history
        self.reporter = reporter
        self.metrics = metrics
        self.sleep = sleep
        self.min_fee_balance = min_fee_balance
        self.default_slippage_bps = default_slippage_bps

    def get_base_balance(self) -> int:
        """SOL balance in lamports, retried; raises BalanceFetchError when exhausted."""
        policy = balance_policy(self.sleep)

        def on_retry(attempt: int, exc: BaseException, delay: float):
            self.reporter.error(
                f"Balance fetch attempt {attempt}/{policy.max_attempts} failed: {exc}, "
                f"retrying in {delay:.0f}s"
            )

        try:
            return policy.call(self.wallet.get_native_balance, on_retry=on_retry)
        except Exception as e:
            self.reporter.error(
                f"Balance fetch attempt {policy.max_attempts}/{policy.max_attempts} failed: {e}"
            )
            raise BalanceFetchError(
                f"Could not fetch SOL balance after {policy.max_attempts} attempts: {e}"
            ) from e

    def swap(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: Optional[int] = None,
    ) -> Optional[str]:
        """Swap ``amount`` raw units of input into output; returns the signature or None."""
        if slippage_bps is None:
            slippage_bps = self.default_slippage_bps

        metric = None
        if self.metrics is not None:
            metric = self.metrics.start(
                "swap",
                self.wallet.address,
                input_mint=input_mint,
                output_mint=output_mint,
                amount=amount,
            )

        try:
            txid = self._execute(input_mint, output_mint, amount, slippage_bps)
        except Exception as e:
            self.reporter.error(f"Swap failed: {e}")
            logger.debug(f"Swap {input_mint} -> {output_mint} failed for {self.wallet.address}: {e}")
            self._record(metric, success=False, error=str(e))
            return None

        self._record(metric, success=True, txid=txid)
        return txid

    def _execute(self, input_mint: str, output_mint: str, amount: int, slippage_bps: int) -> str:
        balance = self.get_base_balance()
        if balance < self.min_fee_balance:
            raise SwapError(
                f"Insufficient SOL for fees: {format_amount(balance)} SOL "
                f"(need {format_amount(self.min_fee_balance)})"
            )

        if input_mint == output_mint:
            raise SwapError("Input and output tokens are the same")

        quote = self.router.get_quote(input_mint, output_mint, amount, slippage_bps)
        swap_transaction = self.router.build_swap_transaction(quote, self.wallet.address)
        tx = self.wallet.sign_serialized(swap_transaction)

        txid = self._submit(tx)
        self._confirm(txid)

        self.reporter.success(f"Swap confirmed: {explorer_link(txid)}")
        self.history.append(SwapRecord(
            input_mint=input_mint,
            output_mint=output_mint,
            amount=amount,
            txid=txid,
            wallet=self.wallet.address,
        ))
        return txid

    def _submit(self, tx) -> str:
        policy = submit_policy(self.sleep)

        def on_retry(attempt: int, exc: BaseException, delay: float):
            self.reporter.error(
                f"Send attempt {attempt}/{policy.max_attempts} failed: {exc}, "
                f"retrying in {delay:.0f}s"
            )

        return policy.call(self.wallet.send_transaction, tx, on_retry=on_retry)

    def _confirm(self, txid: str) -> str:
        policy = confirm_policy((BlockhashExpiredError,), self.sleep)

        def on_retry(attempt: int, exc: BaseException, delay: float):
            self.reporter.warning(
                f"Blockhash expired while confirming (attempt {attempt}/{policy.max_attempts}), retrying"
            )

        return policy.call(self.wallet.confirm_transaction, txid, on_retry=on_retry)

    def _record(self, metric: Optional[OperationMetric], success: bool,
                error: Optional[str] = None, txid: Optional[str] = None):
        if metric is None:
            return
        metric.finalize(success=success, error=error, txid=txid)
        self.metrics.add_metric(metric)

    def close(self):
        """Release the router's HTTP session."""
        self.router.close()
