"""
Wallet Runner
=============
The per-wallet sequence:

1. Connect and read the SOL balance
2. Normalize: swap every leftover token balance back into SOL
3. Prepare associated token accounts for every tradable token
4. Randomized swap sequence with random delays between steps
5. Final consolidation back into SOL

Each runner owns its wallet state; the only things it shares with other
runners are the history file, the metrics collector and the progress channel.
"""

import random
import time
from typing import Callable, List, Optional, Set

from .config import Config, RunParameters
from .history import SwapHistory
from .logging_utils import MetricsCollector
from .progress import RunnerResult, WalletReporter
from .tokens import TokenDescriptor, TokenRoster, choose_target
from .trader import SwapExecutor
from .utils import (
    BalanceFetchError,
    base_trade_amount,
    format_amount,
    format_duration,
    logger,
    random_delay_ms,
    random_swap_count,
    shuffled_steps,
    sleep_ms,
)
from .wallet import SolanaWallet


class WalletRunner:
    """Runs the full swap sequence for one wallet."""

    def __init__(
        self,
        wallet: SolanaWallet,
        executor: SwapExecutor,
        roster: TokenRoster,
        params: RunParameters,
        config: Config,
        reporter: WalletReporter,
        history: SwapHistory,
        metrics: Optional[MetricsCollector] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.wallet = wallet
        self.executor = executor
        self.roster = roster
        self.params = params
        self.config = config
        self.reporter = reporter
        self.history = history
        self.metrics = metrics
        self.sleep = sleep
        self.rng = rng or random.Random()

        # Runtime state
        self.current_mint = roster.base.mint
        self.base_balance = 0
        self.remaining_steps: List[int] = []
        self.skipped: Set[str] = set()

    @property
    def base(self) -> TokenDescriptor:
        return self.roster.base

    def run(self) -> RunnerResult:
        """Run every phase. Unexpected exceptions propagate to the orchestrator."""
        try:
            return self._run()
        finally:
            self.executor.close()

    def _run(self) -> RunnerResult:
        address = self.wallet.address
        self.reporter.info(f"Connected ({self.params.describe()})")

        try:
            self.base_balance = self.executor.get_base_balance()
        except BalanceFetchError as e:
            self.reporter.error(f"Could not read {self.base.symbol} balance, stopping: {e}")
            return RunnerResult(address, exit_code=1, error=str(e))

        self.reporter.info(f"{self.base.symbol} balance: {format_amount(self.base_balance)}")

        self.normalize_balances()

        initial_amount = base_trade_amount(
            self.base_balance, self.params.base_fraction, self.config.fee_reserve
        )
        if initial_amount < self.config.min_trade_amount:
            self.reporter.warning(
                f"Insufficient {self.base.symbol} to trade: "
                f"{format_amount(max(initial_amount, 0))} available, "
                f"{format_amount(self.config.min_trade_amount)} required"
            )
            return RunnerResult(address)

        self.prepare_accounts()

        try:
            self.run_random_sequence()
        except Exception as e:
            logger.exception(f"Swap sequence failed for {address}: {e}")
            self.reporter.error(f"Swap sequence stopped: {e}")

        self.consolidate()
        return RunnerResult(address)

    # Phases

    def normalize_balances(self):
        """Swap every non-base balance at or above the dust threshold into the base asset."""
        self.reporter.info(f"Normalizing token balances into {self.base.symbol}")
        for token in self.roster.non_base:
            self._swap_to_base(token, delay=False)

    def prepare_accounts(self) -> Set[str]:
        """
        Make sure every tradable token has an associated token account.

        Mints whose account cannot be created are added to the skipped set and
        never chosen as a swap target for the rest of the run.
        """
        for token in self.roster.non_base:
            metric = None
            try:
                if self.wallet.token_account_exists(token.mint):
                    continue

                self.reporter.info(f"Creating token account for {token.symbol}")
                if self.metrics is not None:
                    metric = self.metrics.start("create_account", self.wallet.address, mint=token.mint)
                txid = self.wallet.create_token_account(token.mint)
            except Exception as e:
                self.reporter.error(f"Could not prepare {token.symbol} account, skipping token: {e}")
                self.skipped.add(token.mint)
                if metric is not None:
                    metric.finalize(success=False, error=str(e))
                    self.metrics.add_metric(metric)
                continue

            self.reporter.success(f"Created {token.symbol} token account")
            if metric is not None:
                metric.finalize(success=True, txid=txid)
                self.metrics.add_metric(metric)

        return self.skipped

    def run_random_sequence(self):
        """Random hops between tokens, starting from and re-entering through the base asset."""
        count = random_swap_count(self.params.swaps_min, self.params.swaps_max, self.rng)
        self.remaining_steps = shuffled_steps(count, self.rng)
        self.current_mint = self.base.mint
        self.reporter.info(f"Starting {count} random swaps")

        while self.remaining_steps:
            step = self.remaining_steps.pop(0)
            if not self._run_step(step, count):
                self.remaining_steps = []
                break

    def _run_step(self, step: int, total: int) -> bool:
        """One hop. Returns False when the sequence has to stop."""
        delay = random_delay_ms(self.params.delay_min_ms, self.params.delay_max_ms, self.rng)
        self.reporter.info(f"Step {step}/{total}: waiting {format_duration(delay // 1000)}")
        sleep_ms(self.sleep, delay)

        exclude = self.skipped | {self.current_mint}
        balance = self.wallet.get_token_balance(self.current_mint)

        if balance == 0:
            try:
                base_balance = self.executor.get_base_balance()
            except BalanceFetchError as e:
                self.reporter.error(f"Stopping swaps: {e}")
                return False

            amount = base_trade_amount(base_balance, self.params.base_fraction, self.config.fee_reserve)
            if amount < self.config.min_trade_amount:
                self.reporter.warning(
                    f"Stopping swaps: {format_amount(max(amount, 0))} {self.base.symbol} "
                    f"is below the minimum trade amount"
                )
                return False
            source = self.base
        else:
            amount = balance
            source = self.roster.get(self.current_mint) or self.base

        target = choose_target(self.roster, exclude, self.rng)
        if target is None:
            self.reporter.warning("Stopping swaps: no eligible target token left")
            return False

        self.reporter.info(
            f"Step {step}/{total}: swapping {format_amount(amount, source.decimals)} "
            f"{source.symbol} -> {target.symbol}"
        )
        self.executor.swap(source.mint, target.mint, amount, self.config.slippage_bps)

        # Advance even on failure; a zero balance next step re-enters from base
        self.current_mint = target.mint
        return True

    def consolidate(self):
        """Swap everything back into the base asset and report the wallet's history count."""
        self.reporter.info(f"Consolidating balances into {self.base.symbol}")
        for token in self.roster.non_base:
            self._swap_to_base(token, delay=True)

        self.reporter.success("All swaps finished")
        count = self.history.count_for(self.wallet.address)
        self.reporter.info(f"{count} swaps recorded in history for this wallet")

    def _swap_to_base(self, token: TokenDescriptor, delay: bool):
        balance = self.wallet.get_token_balance(token.mint)

        if balance >= self.config.min_token_amount:
            if delay:
                sleep_ms(
                    self.sleep,
                    random_delay_ms(self.params.delay_min_ms, self.params.delay_max_ms, self.rng),
                )
            self.reporter.info(
                f"Swapping {format_amount(balance, token.decimals)} {token.symbol} to {self.base.symbol}"
            )
            txid = self.executor.swap(
                token.mint, self.base.mint, balance, self.config.consolidation_slippage_bps
            )
            if txid is None:
                self.reporter.warning(f"{token.symbol} skipped: no route or insufficient balance")
        elif balance > 0:
            self.reporter.info(f"{token.symbol} balance too small to swap")
        else:
            self.reporter.info(f"No {token.symbol} balance")
