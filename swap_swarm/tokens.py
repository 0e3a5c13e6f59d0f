"""
Token Roster
============
Static list of tokens the swarm trades between. Exactly one entry is the base
asset (SOL); every other token is swapped from and back into it.
"""

import random
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .utils import ConfigurationError


SOL_MINT = "So11111111111111111111111111111111111111112"


@dataclass(frozen=True)
class TokenDescriptor:
    """One tradable token."""
    symbol: str
    mint: str
    decimals: int
    is_base: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenDescriptor":
        return cls(
            symbol=data["symbol"],
            mint=data["mint"],
            decimals=int(data["decimals"]),
            is_base=bool(data.get("is_base", False)),
        )


DEFAULT_TOKENS: Tuple[TokenDescriptor, ...] = (
    TokenDescriptor("SOL", SOL_MINT, 9, is_base=True),
    TokenDescriptor("USDT", "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB", 6),
    TokenDescriptor("JitoSOL", "J1toso1uCk3RLmjorhTtrVwY9HJ7X8V9yYac6Y7kGCPn", 9),
    TokenDescriptor("WETH", "7vfCXTUXx5WJV5JADk17DUJ4ksgau7utNKj4b963voxs", 8),
    TokenDescriptor("USDC", "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v", 6),
    TokenDescriptor("WIF", "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm", 6),
    TokenDescriptor("GIGA", "63LfDmNb3MQ8mw9MtZ2To9bEA2M71kZUUGq5tiJxcqj9", 5),
    TokenDescriptor("GRASS", "Grass7B4RdKfBCjTKgSqnXkqjwiGvQyFbuSCUJr3XXjs", 9),
    TokenDescriptor("FARTCOIN", "9BB6NFEcjBCtnNLFko2FqVQBq8HHM13kCyYcdQbgpump", 6),
    TokenDescriptor("TRUMP", "6p6xgHyF7AeE6TZkSmFsko444wqoP15icUSqi2jfGiPN", 6),
)


class TokenRoster:
    """Immutable roster of token descriptors with a single base asset."""

    def __init__(self, tokens: Iterable[TokenDescriptor] = DEFAULT_TOKENS):
        self._tokens: Tuple[TokenDescriptor, ...] = tuple(tokens)

        bases = [t for t in self._tokens if t.is_base]
        if len(bases) != 1:
            raise ConfigurationError(
                f"Token roster needs exactly one base token, found {len(bases)}"
            )

        mints = [t.mint for t in self._tokens]
        if len(set(mints)) != len(mints):
            raise ConfigurationError("Token roster contains duplicate mints")

        self._base = bases[0]
        self._by_mint = {t.mint: t for t in self._tokens}

    @classmethod
    def from_dicts(cls, data: Iterable[Dict[str, Any]]) -> "TokenRoster":
        return cls(TokenDescriptor.from_dict(item) for item in data)

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [t.to_dict() for t in self._tokens]

    @property
    def base(self) -> TokenDescriptor:
        return self._base

    @property
    def non_base(self) -> Tuple[TokenDescriptor, ...]:
        return tuple(t for t in self._tokens if not t.is_base)

    def get(self, mint: str) -> Optional[TokenDescriptor]:
        return self._by_mint.get(mint)

    def __iter__(self) -> Iterator[TokenDescriptor]:
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)


def choose_target(
    tokens: Iterable[TokenDescriptor],
    exclude: Iterable[str],
    rng: random.Random = random,
) -> Optional[TokenDescriptor]:
    """
    Pick a uniformly random swap target.

    Base tokens and every mint in ``exclude`` are never returned. ``None``
    means no eligible target is left.
    """
    excluded = set(exclude)
    candidates = [t for t in tokens if not t.is_base and t.mint not in excluded]
    if not candidates:
        return None
    return rng.choice(candidates)
