"""
Utility Module

Exceptions, secure logging setup, randomization helpers and formatting
utilities shared by the wallet runners and the orchestrator.

- Log messages are sanitized: registered credentials never reach a handler
- Console output goes through Rich, the log file is JSON lines with rotation
"""

import os
import random
import logging
import logging.handlers
from typing import Callable, List, Optional

import base58
from rich.console import Console
from rich.logging import RichHandler

from .logging_utils import JSONFormatter


# Global console for Rich output
console = Console()

LOGGER_NAME = "swap_swarm"
PROGRESS_LOGGER_NAME = "swap_swarm.progress"


class SwapSwarmError(Exception):
    """Base class for all errors raised by swap-swarm."""
    pass


class ConfigurationError(SwapSwarmError):
    """Bad or missing configuration (credentials, ranges, token roster)."""
    pass


class BalanceFetchError(SwapSwarmError):
    """Base-asset balance could not be fetched after all retries."""
    pass


class SwapError(SwapSwarmError):
    """A swap could not be built, submitted or confirmed."""
    pass


class RouteError(SwapError):
    """The swap router returned no usable route or transaction."""
    pass


class BlockhashExpiredError(SwapSwarmError):
    """Transaction confirmation ran past its last valid block height."""
    pass


class TokenAccountError(SwapSwarmError):
    """Associated token account could not be created."""
    pass


class SecureLogger:
    """
    Logger that removes registered secrets from log messages.

    Credentials are registered once when they are loaded; any later message
    that happens to contain one (exception text, repr of a keypair) is masked
    before it reaches a handler.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger
        self._secrets: List[str] = []

    @property
    def name(self) -> str:
        return self._logger.name

    def register_secret(self, secret: str):
        if secret and secret not in self._secrets:
            self._secrets.append(secret)

    def sanitize(self, msg) -> str:
        """Remove sensitive data from log message."""
        if not isinstance(msg, str):
            msg = str(msg)

        sanitized = msg
        for secret in self._secrets:
            sanitized = sanitized.replace(secret, mask_sensitive(secret))
        return sanitized

    def debug(self, msg, *args, **kwargs):
        self._logger.debug(self.sanitize(msg), *args, **kwargs)

    def info(self, msg, *args, **kwargs):
        self._logger.info(self.sanitize(msg), *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self._logger.warning(self.sanitize(msg), *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self._logger.error(self.sanitize(msg), *args, **kwargs)

    def exception(self, msg, *args, **kwargs):
        self._logger.exception(self.sanitize(msg), *args, **kwargs)

    def critical(self, msg, *args, **kwargs):
        self._logger.critical(self.sanitize(msg), *args, **kwargs)

    def log(self, level: int, msg, *args, **kwargs):
        self._logger.log(level, self.sanitize(msg), *args, **kwargs)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "./logs/swap_swarm.log",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> SecureLogger:
    """
    Setup logging with Rich console output and a rotating JSON log file.

    The progress logger only writes to the file: progress lines are already
    rendered on the console by the orchestrator.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(level)
    root.handlers = []

    progress = logging.getLogger(PROGRESS_LOGGER_NAME)
    progress.setLevel(logging.DEBUG)
    progress.handlers = []
    progress.propagate = False

    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True
    )
    rich_handler.setLevel(level)
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(rich_handler)

    if log_file:
        log_path = os.path.abspath(log_file)
        os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)
        progress.addHandler(file_handler)

    return logger


# Module-wide secure logger; handlers are attached by setup_logging()
logger = SecureLogger(logging.getLogger(LOGGER_NAME))


# Randomization utilities

def random_swap_count(swaps_min: int, swaps_max: int, rng: random.Random = random) -> int:
    """Draw a swap count uniformly from [swaps_min, swaps_max]."""
    return rng.randint(swaps_min, swaps_max)


def random_delay_ms(delay_min_ms: int, delay_max_ms: int, rng: random.Random = random) -> int:
    """Draw a delay in milliseconds uniformly from [delay_min_ms, delay_max_ms]."""
    return rng.randint(delay_min_ms, delay_max_ms)


def shuffled_steps(count: int, rng: random.Random = random) -> List[int]:
    """Step labels 1..count in Fisher-Yates shuffled order."""
    steps = list(range(1, count + 1))
    for i in range(len(steps) - 1, 0, -1):
        j = rng.randint(0, i)
        steps[i], steps[j] = steps[j], steps[i]
    return steps


def base_trade_amount(balance: int, fraction: float, fee_reserve: int) -> int:
    """
    Amount of the base asset to put into a swap.

    A fraction of the balance, but never eating into the fee reserve.
    """
    return min(int(balance * fraction), balance - fee_reserve)


def sleep_ms(sleep: Callable[[float], None], milliseconds: int):
    sleep(milliseconds / 1000)


# Formatting utilities

def format_amount(raw_amount: int, decimals: int = 9) -> str:
    """Format a raw token amount to a human-readable string."""
    if raw_amount == 0:
        return "0"

    value = raw_amount / (10 ** decimals)

    if value < 0.0001:
        return f"{value:.8f}"
    elif value < 1:
        return f"{value:.6f}"
    elif value < 1000:
        return f"{value:.4f}"
    else:
        return f"{value:,.2f}"


def format_duration(seconds: int) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        minutes = seconds // 60
        secs = seconds % 60
        return f"{minutes}m {secs}s" if secs > 0 else f"{minutes}m"
    else:
        hours = seconds // 3600
        minutes = (seconds % 3600) // 60
        return f"{hours}h {minutes}m" if minutes > 0 else f"{hours}h"


def format_address(address: str, length: int = 4) -> str:
    """Shorten a base58 address with an ellipsis."""
    if len(address) <= length * 2 + 3:
        return address
    return f"{address[:length]}...{address[-length:]}"


def explorer_link(signature: str) -> str:
    return f"https://solscan.io/tx/{signature}"


# Validation utilities

def validate_private_key(key: str) -> bool:
    """A Solana secret key is 64 bytes encoded as base58."""
    if not key:
        return False

    try:
        return len(base58.b58decode(key.strip())) == 64
    except ValueError:
        return False


def read_lines(file_path: str) -> List[str]:
    """Non-empty, stripped lines of a text file."""
    with open(file_path, "r", encoding="utf-8-sig") as f:
        return [line.strip() for line in f if line.strip()]


def mask_sensitive(value: str, visible_chars: int = 4) -> str:
    """Mask sensitive data, showing only first and last few characters."""
    if len(value) <= visible_chars * 2:
        return "*" * len(value)

    return value[:visible_chars] + "***" + value[-visible_chars:]
