#!/usr/bin/env python3
"""
Swap Swarm CLI
==============

Commands:
- run:          run the randomized swap sequence on every wallet concurrently
- init-config:  write the default YAML configuration
- history:      show swap counts per wallet from the history file

Usage:
    swap-swarm init-config
    swap-swarm run --wallets ./data/wallets.txt
    swap-swarm run --swaps-min 3 --swaps-max 6 --delay-min 10000 --delay-max 20000
    swap-swarm history
"""

import argparse
import sys
from pathlib import Path
from typing import Callable, Optional

from rich import box
from rich.panel import Panel
from rich.table import Table

from .config import (
    DEFAULT_DELAY_RANGE_MS,
    DEFAULT_SWAPS_RANGE,
    Config,
    ConfigManager,
    RunParameters,
    load_credentials,
)
from .history import SwapHistory
from .logging_utils import MetricsCollector
from .progress import ProgressChannel, WalletReporter
from .router import JupiterRouter
from .runner import WalletRunner
from .swarm import SwarmOrchestrator
from .trader import SwapExecutor
from .utils import ConfigurationError, console, format_address, logger, setup_logging
from .wallet import SolanaWallet


def print_banner():
    """Print the CLI banner."""
    banner = """
    Swap Swarm
    ══════════
    Randomized multi-wallet token swaps on Solana via Jupiter
    """
    console.print(Panel(banner, style="bold cyan", box=box.DOUBLE))


def prompt_value(label: str, default: int, input_func: Callable[[str], str] = input) -> str:
    """Ask for one value; an empty answer keeps the default."""
    answer = input_func(f"{label} [{default}]: ").strip()
    return answer if answer else str(default)


def collect_run_parameters(
    args: argparse.Namespace,
    config: Config,
    input_func: Callable[[str], str] = input,
) -> RunParameters:
    """Range values from flags, prompting for any that were not passed."""
    values = {}
    prompts = (
        ("swaps_min", "Minimum swaps per wallet", DEFAULT_SWAPS_RANGE[0]),
        ("swaps_max", "Maximum swaps per wallet", DEFAULT_SWAPS_RANGE[1]),
        ("delay_min", "Minimum delay between swaps (ms)", DEFAULT_DELAY_RANGE_MS[0]),
        ("delay_max", "Maximum delay between swaps (ms)", DEFAULT_DELAY_RANGE_MS[1]),
    )
    for attr, label, default in prompts:
        value = getattr(args, attr, None)
        values[attr] = value if value is not None else prompt_value(label, default, input_func)

    return RunParameters.from_ranges(
        swaps_min=values["swaps_min"],
        swaps_max=values["swaps_max"],
        delay_min_ms=values["delay_min"],
        delay_max_ms=values["delay_max"],
        base_fraction=config.base_fraction,
    )


def build_runner_factory(
    config: Config,
    history: SwapHistory,
    metrics: MetricsCollector,
):
    """Factory creating a fresh wallet, router and executor for each credential."""
    roster = config.roster()

    def factory(credential: str, params: RunParameters, channel: ProgressChannel) -> WalletRunner:
        wallet = SolanaWallet.from_secret(credential, config.rpc_url, config.request_timeout)
        reporter = WalletReporter(wallet.address, channel)
        router = JupiterRouter(config.jupiter_api_url, timeout=config.request_timeout)
        executor = SwapExecutor(
            wallet,
            router,
            history,
            reporter,
            metrics=metrics,
            min_fee_balance=config.min_fee_balance,
            default_slippage_bps=config.slippage_bps,
        )
        return WalletRunner(
            wallet,
            executor,
            roster,
            params,
            config,
            reporter,
            history,
            metrics=metrics,
        )

    return factory


def load_config(args: argparse.Namespace) -> Config:
    config = ConfigManager(Path(args.config)).load_config()

    # Command-line overrides
    for attr, key in (("rpc", "rpc_url"), ("jupiter_api", "jupiter_api_url"),
                      ("wallets", "wallets_file"), ("history_file", "history_file")):
        value = getattr(args, attr, None)
        if value:
            setattr(config, key, value)
    return config


def run_command(args: argparse.Namespace, input_func: Callable[[str], str] = input) -> int:
    """Run the swarm. Returns the process exit code."""
    config = load_config(args)
    setup_logging(config.log_level, config.log_file)
    print_banner()

    credentials = load_credentials(config.wallets_file)
    if not credentials:
        console.print(f"[red]No wallets found in {config.wallets_file}[/red]")
        return 1

    console.print(f"[cyan]Loaded {len(credentials)} wallet(s) from {config.wallets_file}[/cyan]")
    params = collect_run_parameters(args, config, input_func)
    console.print(f"[cyan]Run parameters: {params.describe()}[/cyan]\n")

    history = SwapHistory(config.history_file)
    metrics = MetricsCollector()
    orchestrator = SwarmOrchestrator(build_runner_factory(config, history, metrics), console=console)

    result = orchestrator.run(credentials, params)

    metrics.print_summary(console)
    if args.metrics_file:
        metrics.save_to_file(args.metrics_file)
        console.print(f"[dim]Metrics saved to {args.metrics_file}[/dim]")

    return result.exit_code


def init_config_command(args: argparse.Namespace) -> int:
    manager = ConfigManager(Path(args.config))
    if manager.write_default(overwrite=args.force):
        console.print(f"[green]Configuration written to {args.config}[/green]")
        return 0

    console.print(f"[yellow]{args.config} already exists, use --force to overwrite[/yellow]")
    return 0


def history_command(args: argparse.Namespace) -> int:
    config = load_config(args)
    history = SwapHistory(config.history_file)
    summary = history.summary(args.wallet)

    if not summary:
        console.print(f"[yellow]No swaps recorded in {config.history_file}[/yellow]")
        return 0

    table = Table(title="Swap History", box=box.ROUNDED)
    table.add_column("Wallet", style="cyan")
    table.add_column("Swaps", justify="right", style="green")
    table.add_column("Last Swap")

    for wallet, stats in sorted(summary.items()):
        table.add_row(
            wallet if args.wallet else format_address(wallet, 6),
            str(stats["swaps"]),
            stats["last_swap"],
        )

    console.print(table)
    console.print(f"[dim]Total swaps: {sum(s['swaps'] for s in summary.values())}[/dim]")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="swap-swarm",
        description="Randomized multi-wallet token swaps on Solana",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Write the default config
  swap-swarm init-config

  # Run with prompts for swap count and delay ranges
  swap-swarm run

  # Run without prompts
  swap-swarm run --swaps-min 5 --swaps-max 10 --delay-min 30000 --delay-max 60000

  # Show swap counts per wallet
  swap-swarm history
        """
    )

    # Global options
    parser.add_argument(
        '--config',
        default='./bot_config.yaml',
        help='Path to YAML config'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Run command
    run_parser = subparsers.add_parser('run', help='Run swaps on every wallet')
    run_parser.add_argument('--wallets', help='Wallets file, one base58 secret key per line')
    run_parser.add_argument('--rpc', help='Solana RPC URL')
    run_parser.add_argument('--jupiter-api', help='Jupiter API base URL')
    run_parser.add_argument('--history-file', help='Swap history JSON file')
    run_parser.add_argument('--swaps-min', help='Minimum swaps per wallet')
    run_parser.add_argument('--swaps-max', help='Maximum swaps per wallet')
    run_parser.add_argument('--delay-min', help='Minimum delay between swaps in ms')
    run_parser.add_argument('--delay-max', help='Maximum delay between swaps in ms')
    run_parser.add_argument('--metrics-file', help='Save operation metrics as JSON')

    # Init config command
    init_parser = subparsers.add_parser('init-config', help='Write the default configuration')
    init_parser.add_argument('--force', action='store_true', help='Overwrite an existing config')

    # History command
    history_parser = subparsers.add_parser('history', help='Show swap history per wallet')
    history_parser.add_argument('--wallet', help='Only this wallet address')
    history_parser.add_argument('--history-file', help='Swap history JSON file')

    return parser


def main(argv: Optional[list] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == 'run':
            code = run_command(args)
        elif args.command == 'init-config':
            code = init_config_command(args)
        elif args.command == 'history':
            code = history_command(args)
        else:
            parser.print_help()
            code = 0
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        code = 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped by user[/yellow]")
        code = 0
    except Exception as e:
        logger.exception(f"Unhandled error: {e}")
        code = 1

    sys.exit(code)


if __name__ == '__main__':
    main()
