"""
Wallet Module - Solana Keypair and RPC Access
=============================================
One SolanaWallet per runner: it owns the keypair and the RPC client handle and
exposes the handful of chain calls the runner needs. Nothing here retries;
retry policies live with the callers.
"""

import base64

from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed
from solana.rpc.core import TransactionExpiredBlockheightExceededError
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction
from spl.token.instructions import (
    create_associated_token_account,
    get_associated_token_address,
)

from .utils import (
    BlockhashExpiredError,
    ConfigurationError,
    SwapError,
    TokenAccountError,
    validate_private_key,
)


class SolanaWallet:
    """
    Keypair plus RPC client for a single wallet.

    Security:
    - The base58 secret is only used to build the keypair and is not stored
    - ``__repr__`` never includes key material
    """

    def __init__(self, keypair: Keypair, client: Client):
        self.keypair = keypair
        self.client = client
        self.pubkey: Pubkey = keypair.pubkey()
        self.address = str(self.pubkey)

    @classmethod
    def from_secret(cls, secret: str, rpc_url: str, timeout: int = 30) -> "SolanaWallet":
        if not validate_private_key(secret):
            raise ConfigurationError("Invalid wallet secret key: expected a base58 encoded 64-byte key")
        try:
            keypair = Keypair.from_base58_string(secret.strip())
        except ValueError as e:
            raise ConfigurationError(f"Invalid wallet secret key: {e}") from e
        return cls(keypair, Client(rpc_url, commitment=Confirmed, timeout=timeout))

    def __repr__(self) -> str:
        return f"SolanaWallet({self.address})"

    # Balances

    def get_native_balance(self) -> int:
        """SOL balance in lamports."""
        return self.client.get_balance(self.pubkey, commitment=Confirmed).value

    def token_account_address(self, mint: str) -> Pubkey:
        return get_associated_token_address(self.pubkey, Pubkey.from_string(mint))

    def get_token_balance(self, mint: str) -> int:
        """
        Raw balance of the associated token account for ``mint``.

        A missing account or a failed query reads as zero.
        """
        try:
            resp = self.client.get_token_account_balance(self.token_account_address(mint))
            return int(resp.value.amount)
        except Exception:
            return 0

    def token_account_exists(self, mint: str) -> bool:
        resp = self.client.get_account_info(self.token_account_address(mint))
        return resp.value is not None

    # Transactions

    def create_token_account(self, mint: str) -> str:
        """Create the associated token account for ``mint`` and wait for confirmation."""
        try:
            ix = create_associated_token_account(
                payer=self.pubkey,
                owner=self.pubkey,
                mint=Pubkey.from_string(mint),
            )
            latest = self.client.get_latest_blockhash(Confirmed).value
            message = MessageV0.try_compile(self.pubkey, [ix], [], latest.blockhash)
            tx = VersionedTransaction(message, [self.keypair])

            signature = self.client.send_raw_transaction(bytes(tx)).value
            self.client.confirm_transaction(
                signature,
                Confirmed,
                last_valid_block_height=latest.last_valid_block_height,
            )
            return str(signature)
        except Exception as e:
            raise TokenAccountError(f"Could not create token account for {mint}: {e}") from e

    def sign_serialized(self, swap_transaction_b64: str) -> VersionedTransaction:
        """Deserialize a base64 versioned transaction from the router and sign it."""
        raw = VersionedTransaction.from_bytes(base64.b64decode(swap_transaction_b64))
        return VersionedTransaction(raw.message, [self.keypair])

    def send_transaction(self, tx: VersionedTransaction) -> str:
        resp = self.client.send_raw_transaction(
            bytes(tx),
            opts=TxOpts(skip_preflight=False, preflight_commitment=Confirmed, max_retries=5),
        )
        return str(resp.value)

    def confirm_transaction(self, signature: str) -> str:
        """
        Wait for ``signature`` against a fresh blockhash window.

        Raises BlockhashExpiredError when the window passes without
        confirmation and SwapError when the transaction failed on chain.
        """
        latest = self.client.get_latest_blockhash(Confirmed).value
        try:
            resp = self.client.confirm_transaction(
                Signature.from_string(signature),
                Confirmed,
                last_valid_block_height=latest.last_valid_block_height,
            )
        except TransactionExpiredBlockheightExceededError as e:
            raise BlockhashExpiredError(str(e)) from e

        statuses = resp.value
        status = statuses[0] if statuses else None
        if status is not None and status.err is not None:
            raise SwapError(f"Transaction {signature} failed: {status.err}")
        return signature
