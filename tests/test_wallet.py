"""
Tests for the Solana wallet wrapper.

RPC access is mocked; only keypair handling runs for real.
"""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest
from solana.rpc.core import TransactionExpiredBlockheightExceededError
from solders.keypair import Keypair
from solders.signature import Signature

from swap_swarm.utils import BlockhashExpiredError, ConfigurationError, SwapError, TokenAccountError
from swap_swarm.wallet import SolanaWallet


SIGNATURE = str(Signature.default())


@pytest.fixture
def keypair():
    return Keypair()


@pytest.fixture
def client():
    mock = Mock()
    mock.get_latest_blockhash.return_value = SimpleNamespace(
        value=SimpleNamespace(blockhash="hash", last_valid_block_height=100)
    )
    return mock


class TestFromSecret:

    def test_valid_secret(self, keypair):
        wallet = SolanaWallet.from_secret(str(keypair), "http://localhost:8899")

        assert wallet.address == str(keypair.pubkey())
        assert str(keypair) not in repr(wallet)

    def test_invalid_secret(self):
        with pytest.raises(ConfigurationError):
            SolanaWallet.from_secret("0xnot-a-solana-key", "http://localhost:8899")

    def test_short_secret(self):
        with pytest.raises(ConfigurationError):
            SolanaWallet.from_secret("1111", "http://localhost:8899")


class TestBalances:

    def test_native_balance(self, keypair, client):
        client.get_balance.return_value = SimpleNamespace(value=1_500_000_000)
        wallet = SolanaWallet(keypair, client)

        assert wallet.get_native_balance() == 1_500_000_000

    def test_token_balance(self, keypair, client):
        client.get_token_account_balance.return_value = SimpleNamespace(
            value=SimpleNamespace(amount="123456")
        )
        wallet = SolanaWallet(keypair, client)

        assert wallet.get_token_balance("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v") == 123456

    def test_missing_token_account_reads_zero(self, keypair, client):
        client.get_token_account_balance.side_effect = Exception("could not find account")
        wallet = SolanaWallet(keypair, client)

        assert wallet.get_token_balance("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v") == 0

    def test_token_account_exists(self, keypair, client):
        wallet = SolanaWallet(keypair, client)

        client.get_account_info.return_value = SimpleNamespace(value=None)
        assert not wallet.token_account_exists("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")

        client.get_account_info.return_value = SimpleNamespace(value=object())
        assert wallet.token_account_exists("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")


class TestTransactions:

    def test_confirm_success(self, keypair, client):
        client.confirm_transaction.return_value = SimpleNamespace(value=[SimpleNamespace(err=None)])
        wallet = SolanaWallet(keypair, client)

        assert wallet.confirm_transaction(SIGNATURE) == SIGNATURE

    def test_confirm_expired_blockhash(self, keypair, client):
        client.confirm_transaction.side_effect = TransactionExpiredBlockheightExceededError("expired")
        wallet = SolanaWallet(keypair, client)

        with pytest.raises(BlockhashExpiredError):
            wallet.confirm_transaction(SIGNATURE)

    def test_confirm_failed_transaction(self, keypair, client):
        client.confirm_transaction.return_value = SimpleNamespace(
            value=[SimpleNamespace(err="InstructionError")]
        )
        wallet = SolanaWallet(keypair, client)

        with pytest.raises(SwapError):
            wallet.confirm_transaction(SIGNATURE)

    def test_create_token_account_failure(self, keypair, client):
        client.get_latest_blockhash.side_effect = Exception("rpc down")
        wallet = SolanaWallet(keypair, client)

        with pytest.raises(TokenAccountError):
            wallet.create_token_account("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")
