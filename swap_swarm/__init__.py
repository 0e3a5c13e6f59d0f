"""
Swap Swarm - Randomized Multi-Wallet Token Swaps on Solana

Runs a randomized sequence of Jupiter swaps on many wallets concurrently,
then consolidates every wallet back into SOL.

Usage:
    from swap_swarm import SwarmOrchestrator, RunParameters, ConfigManager

    # Or from the command line: swap-swarm run
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .config import Config, ConfigManager, RunParameters, load_credentials
from .history import SwapHistory, SwapRecord
from .progress import ProgressChannel, ProgressEvent, RunnerResult, WalletReporter
from .retry import RetryPolicy
from .router import JupiterRouter
from .runner import WalletRunner
from .swarm import SwarmOrchestrator, SwarmResult
from .tokens import DEFAULT_TOKENS, SOL_MINT, TokenDescriptor, TokenRoster
from .trader import SwapExecutor
from .wallet import SolanaWallet
from .utils import (
    logger,
    setup_logging,
    format_amount,
    format_duration,
    SwapSwarmError,
    ConfigurationError,
    BalanceFetchError,
    SwapError,
    RouteError,
    BlockhashExpiredError,
    TokenAccountError,
)

__all__ = [
    "Config",
    "ConfigManager",
    "RunParameters",
    "load_credentials",
    "SwapHistory",
    "SwapRecord",
    "ProgressChannel",
    "ProgressEvent",
    "RunnerResult",
    "WalletReporter",
    "RetryPolicy",
    "JupiterRouter",
    "WalletRunner",
    "SwarmOrchestrator",
    "SwarmResult",
    "DEFAULT_TOKENS",
    "SOL_MINT",
    "TokenDescriptor",
    "TokenRoster",
    "SwapExecutor",
    "SolanaWallet",
    "logger",
    "setup_logging",
    "format_amount",
    "format_duration",
    "SwapSwarmError",
    "ConfigurationError",
    "BalanceFetchError",
    "SwapError",
    "RouteError",
    "BlockhashExpiredError",
    "TokenAccountError",
]
