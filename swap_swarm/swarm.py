"""
Swarm Orchestrator
==================
Starts one wallet runner per credential, each on its own thread, and renders
their progress on the console as it arrives. A failed runner is reported, never
retried.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import RunParameters
from .progress import (
    ERROR,
    SUCCESS,
    WARNING,
    ProgressChannel,
    ProgressEvent,
    RunnerResult,
)
from .utils import PROGRESS_LOGGER_NAME, console as default_console, logger


# (credential, params, channel) -> object with run() -> RunnerResult
RunnerFactory = Callable[[str, RunParameters, ProgressChannel], Any]


@dataclass
class SwarmResult:
    """Aggregated outcome of one swarm run."""
    results: List[RunnerResult] = field(default_factory=list)
    aborted: bool = False
    interrupted: bool = False

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def exit_code(self) -> int:
        return 1 if self.aborted else 0

    def summary_table(self) -> Table:
        table = Table(title="Wallet Results", box=box.ROUNDED)
        table.add_column("Wallet", style="cyan")
        table.add_column("Status")
        table.add_column("Exit", justify="right")
        table.add_column("Error", style="dim")

        for r in self.results:
            status = "[green]done[/green]" if r.success else "[red]failed[/red]"
            table.add_row(r.wallet, status, str(r.exit_code), escape(r.error or ""))
        return table


class ProgressPrinter:
    """Renders progress events on the console and mirrors them to the progress log."""

    STYLES = {
        SUCCESS: "green",
        ERROR: "red",
        WARNING: "yellow",
    }

    LOG_LEVELS = {
        SUCCESS: logging.INFO,
        ERROR: logging.ERROR,
        WARNING: logging.WARNING,
    }

    def __init__(self, console: Optional[Console] = None,
                 progress_logger: Optional[logging.Logger] = None):
        self.console = console or default_console
        self.progress_logger = progress_logger or logging.getLogger(PROGRESS_LOGGER_NAME)

    def print(self, event: ProgressEvent):
        line = logger.sanitize(f"{event.wallet} - {event.message}")
        self.console.print(line, style=self.STYLES.get(event.level), markup=False, highlight=False)
        self.progress_logger.log(
            self.LOG_LEVELS.get(event.level, logging.INFO),
            line,
            extra={"wallet": event.wallet},
        )


class SwarmOrchestrator:
    """
    Runs every wallet concurrently and waits for all of them.

    Usage:
        orchestrator = SwarmOrchestrator(runner_factory)
        result = orchestrator.run(credentials, params)
    """

    def __init__(
        self,
        runner_factory: RunnerFactory,
        console: Optional[Console] = None,
        printer: Optional[ProgressPrinter] = None,
        poll_interval: float = 0.2,
    ):
        self.runner_factory = runner_factory
        self.console = console or default_console
        self.printer = printer or ProgressPrinter(self.console)
        self.poll_interval = poll_interval
        self._results_lock = threading.Lock()

    def run(self, credentials: Sequence[str], params: RunParameters) -> SwarmResult:
        if not credentials:
            logger.error("No wallets found, nothing to run")
            return SwarmResult(aborted=True)

        channel = ProgressChannel()
        results: Dict[int, RunnerResult] = {}
        threads = []

        for index, credential in enumerate(credentials):
            thread = threading.Thread(
                target=self._run_one,
                args=(index, credential, params, channel, results),
                name=f"wallet-{index + 1}",
                daemon=True,
            )
            threads.append(thread)
            thread.start()

        logger.info(f"Started {len(threads)} wallet runners ({params.describe()})")

        interrupted = False
        try:
            while any(t.is_alive() for t in threads) or not channel.empty():
                event = channel.get(timeout=self.poll_interval)
                if event is not None:
                    self.printer.print(event)
        except KeyboardInterrupt:
            interrupted = True
            logger.warning("Interrupted, no longer waiting for wallet runners")

        with self._results_lock:
            finished = [results[i] for i in sorted(results)]
        result = SwarmResult(
            results=finished,
            interrupted=interrupted,
        )
        self._report(result, len(threads))
        return result

    def _run_one(self, index: int, credential: str, params: RunParameters,
                 channel: ProgressChannel, results: Dict[int, RunnerResult]):
        label = f"wallet #{index + 1}"
        try:
            runner = self.runner_factory(credential, params, channel)
            label = runner.wallet.address
            result = runner.run()
        except Exception as e:
            logger.exception(f"Runner for {label} crashed: {e}")
            channel.publish(ProgressEvent(label, ERROR, f"Stopped with error: {e}"))
            result = RunnerResult(label, exit_code=1, error=str(e))
        with self._results_lock:
            results[index] = result

    def _report(self, result: SwarmResult, started: int):
        self.console.print()
        self.console.print(result.summary_table())

        finished = len(result.results)
        if result.interrupted:
            self.console.print(
                f"[yellow]Interrupted: {finished}/{started} wallets finished[/yellow]"
            )
        if result.failed:
            self.console.print(
                f"[red]{result.failed} of {started} wallets failed[/red], "
                f"{result.succeeded} completed"
            )
        elif not result.interrupted:
            self.console.print(f"[green]All {finished} wallets completed[/green]")
        logger.info(f"Swarm finished: {result.succeeded} completed, {result.failed} failed")
