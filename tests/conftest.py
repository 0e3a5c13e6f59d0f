"""
Shared fixtures for the swap-swarm test suite.

Run with: pytest tests/ -v
"""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from swap_swarm.progress import ProgressChannel, WalletReporter


WALLET_ADDRESS = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"


class RecordingSleep:
    """Sleep replacement that records requested durations instead of waiting."""

    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


def drain(channel: ProgressChannel):
    """All events currently queued on a channel."""
    events = []
    while not channel.empty():
        events.append(channel.get(timeout=0))
    return events


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def channel():
    return ProgressChannel()


@pytest.fixture
def reporter(channel):
    return WalletReporter(WALLET_ADDRESS, channel)


@pytest.fixture
def wallet():
    """Mock SolanaWallet with a healthy SOL balance and no token balances."""
    mock = Mock()
    mock.address = WALLET_ADDRESS
    mock.get_native_balance.return_value = 2_000_000_000
    mock.get_token_balance.return_value = 0
    mock.token_account_exists.return_value = True
    mock.sign_serialized.return_value = "signed-tx"
    mock.send_transaction.return_value = "5sig"
    mock.confirm_transaction.side_effect = lambda sig: sig
    return mock


@pytest.fixture
def router():
    mock = Mock()
    mock.get_quote.return_value = {"inAmount": "100", "outAmount": "99"}
    mock.build_swap_transaction.return_value = "dHg="
    return mock
