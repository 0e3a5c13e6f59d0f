"""
Configuration Management Module

Bot settings live in a YAML file; run parameters (swap count and delay ranges)
are collected per run from flags or interactive prompts.
"""

import os
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .tokens import DEFAULT_TOKENS, TokenRoster
from .utils import ConfigurationError, logger, read_lines


DEFAULT_SWAPS_RANGE = (5, 10)
DEFAULT_DELAY_RANGE_MS = (30000, 60000)
DEFAULT_BASE_FRACTION = 0.9


@dataclass
class Config:
    """Bot configuration settings."""

    # Network
    rpc_url: str = "https://api.mainnet-beta.solana.com"
    jupiter_api_url: str = "https://quote-api.jup.ag/v6"
    request_timeout: int = 30

    # Files
    wallets_file: str = "./data/wallets.txt"
    history_file: str = "./swap_history.json"
    log_file: str = "./logs/swap_swarm.log"
    log_level: str = "INFO"

    # Trading settings
    slippage_bps: int = 50
    consolidation_slippage_bps: int = 100
    base_fraction: float = DEFAULT_BASE_FRACTION

    # Thresholds in raw units (lamports for SOL)
    min_token_amount: int = 1
    fee_reserve: int = 10000
    min_fee_balance: int = 10000
    min_trade_amount: int = 1000000

    tokens: List[Dict[str, Any]] = field(
        default_factory=lambda: [t.to_dict() for t in DEFAULT_TOKENS]
    )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        # Filter only valid fields
        valid_fields = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**valid_fields)

    def roster(self) -> TokenRoster:
        return TokenRoster.from_dicts(self.tokens)


def _parse_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_range(
    low: Any,
    high: Any,
    default: Tuple[int, int],
    name: str = "range",
) -> Tuple[int, int]:
    """
    Validate a [low, high] pair.

    An empty bound takes its default; a bound that is not an integer, a
    negative bound or a crossed pair (low > high) substitutes the whole default
    pair. Never raises.
    """
    parsed_low = default[0] if low is None or str(low).strip() == "" else _parse_int(low)
    parsed_high = default[1] if high is None or str(high).strip() == "" else _parse_int(high)

    if parsed_low is None or parsed_high is None or parsed_low < 0 or parsed_low > parsed_high:
        logger.warning(
            f"Invalid {name} {low!r}-{high!r}, using defaults {default[0]}-{default[1]}"
        )
        return default

    return parsed_low, parsed_high


@dataclass(frozen=True)
class RunParameters:
    """Per-run parameters shared by value with every wallet runner."""
    swaps_min: int = DEFAULT_SWAPS_RANGE[0]
    swaps_max: int = DEFAULT_SWAPS_RANGE[1]
    delay_min_ms: int = DEFAULT_DELAY_RANGE_MS[0]
    delay_max_ms: int = DEFAULT_DELAY_RANGE_MS[1]
    base_fraction: float = DEFAULT_BASE_FRACTION

    @classmethod
    def from_ranges(
        cls,
        swaps_min: Any = None,
        swaps_max: Any = None,
        delay_min_ms: Any = None,
        delay_max_ms: Any = None,
        base_fraction: float = DEFAULT_BASE_FRACTION,
    ) -> "RunParameters":
        swaps = normalize_range(swaps_min, swaps_max, DEFAULT_SWAPS_RANGE, "swap count range")
        delays = normalize_range(delay_min_ms, delay_max_ms, DEFAULT_DELAY_RANGE_MS, "delay range")

        if not 0 < base_fraction <= 1:
            raise ConfigurationError(f"base_fraction must be in (0, 1], got {base_fraction}")

        return cls(
            swaps_min=swaps[0],
            swaps_max=swaps[1],
            delay_min_ms=delays[0],
            delay_max_ms=delays[1],
            base_fraction=base_fraction,
        )

    def describe(self) -> str:
        return (
            f"swaps {self.swaps_min}-{self.swaps_max}, "
            f"delays {self.delay_min_ms}-{self.delay_max_ms} ms, "
            f"{self.base_fraction * 100:.0f}% SOL"
        )


class ConfigManager:
    """Manages the YAML configuration file."""

    def __init__(self, config_path: Path = Path("./bot_config.yaml")):
        self.config_path = Path(config_path)

    def load_config(self) -> Config:
        """Load configuration, falling back to defaults when the file is missing."""
        if not self.config_path.exists():
            logger.info(f"No config file at {self.config_path}, using defaults")
            return Config()

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {self.config_path} must contain a mapping")

        config = Config.from_dict(data)
        # Fail early on a broken roster
        config.roster()

        logger.info(f"Configuration loaded from {self.config_path}")
        return config

    def save_config(self, config: Config) -> bool:
        """Save configuration to YAML file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

        logger.info(f"Configuration saved to {self.config_path}")
        return True

    def write_default(self, overwrite: bool = False) -> bool:
        """Write the commented default template."""
        if self.config_path.exists() and not overwrite:
            logger.warning(f"{self.config_path} already exists, not overwriting")
            return False

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w') as f:
            f.write(DEFAULT_CONFIG + "\n")

        logger.info(f"Default configuration written to {self.config_path}")
        return True


def load_credentials(wallets_file: str) -> List[str]:
    """
    Read base58 secret keys, one per non-empty line.

    A missing or unreadable file yields an empty list; the caller aborts the run.
    """
    if not os.path.exists(wallets_file):
        logger.error(f"Wallets file not found: {wallets_file}")
        return []

    try:
        keys = read_lines(wallets_file)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read {wallets_file}: {e}")
        return []

    for key in keys:
        logger.register_secret(key)
    return keys


# Default configuration template
DEFAULT_CONFIG = """
# swap-swarm configuration

rpc_url: https://api.mainnet-beta.solana.com
jupiter_api_url: https://quote-api.jup.ag/v6
request_timeout: 30

# Files
wallets_file: ./data/wallets.txt
history_file: ./swap_history.json
log_file: ./logs/swap_swarm.log
log_level: INFO

# Slippage in basis points (random swaps / swaps back into SOL)
slippage_bps: 50
consolidation_slippage_bps: 100

# Share of the SOL balance used when swapping out of SOL
base_fraction: 0.9

# Raw-unit thresholds (lamports for SOL)
min_token_amount: 1
fee_reserve: 10000
min_fee_balance: 10000
min_trade_amount: 1000000

# Tokens to trade between; exactly one must be the base asset
tokens:
  - {symbol: SOL, mint: So11111111111111111111111111111111111111112, decimals: 9, is_base: true}
  - {symbol: USDT, mint: Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB, decimals: 6}
  - {symbol: JitoSOL, mint: J1toso1uCk3RLmjorhTtrVwY9HJ7X8V9yYac6Y7kGCPn, decimals: 9}
  - {symbol: WETH, mint: 7vfCXTUXx5WJV5JADk17DUJ4ksgau7utNKj4b963voxs, decimals: 8}
  - {symbol: USDC, mint: EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v, decimals: 6}
  - {symbol: WIF, mint: EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm, decimals: 6}
  - {symbol: GIGA, mint: 63LfDmNb3MQ8mw9MtZ2To9bEA2M71kZUUGq5tiJxcqj9, decimals: 5}
  - {symbol: GRASS, mint: Grass7B4RdKfBCjTKgSqnXkqjwiGvQyFbuSCUJr3XXjs, decimals: 9}
  - {symbol: FARTCOIN, mint: 9BB6NFEcjBCtnNLFko2FqVQBq8HHM13kCyYcdQbgpump, decimals: 6}
  - {symbol: TRUMP, mint: 6p6xgHyF7AeE6TZkSmFsko444wqoP15icUSqi2jfGiPN, decimals: 6}
""".strip()
