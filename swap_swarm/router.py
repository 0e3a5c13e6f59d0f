"""
Jupiter Aggregator Integration
==============================
Quote and swap-transaction building through the Jupiter HTTP API.

API Docs: https://dev.jup.ag/docs/swap-api
"""

from typing import Any, Dict, Optional

import requests

from .utils import RouteError, logger


JUPITER_API_BASE = "https://quote-api.jup.ag/v6"


class JupiterRouter:
    """Jupiter aggregator client: quote, then a signed-ready swap transaction."""

    def __init__(
        self,
        api_base: str = JUPITER_API_BASE,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ):
        self.api_base = api_base.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.headers = {"Accept": "application/json"}

    def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int = 50,
    ) -> Dict[str, Any]:
        """Best route for swapping ``amount`` raw units of input into output."""
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": str(slippage_bps),
        }

        try:
            response = self.session.get(
                f"{self.api_base}/quote",
                params=params,
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RouteError(f"Jupiter quote request failed: {e}") from e

        if response.status_code != 200:
            error_text = response.text[:300] if response.text else "Unknown error"
            raise RouteError(f"Jupiter quote error: {response.status_code} - {error_text}")

        quote = response.json()
        if not quote or "error" in quote:
            raise RouteError(f"No route found: {quote.get('error') if quote else 'empty response'}")

        logger.debug(
            f"Jupiter route {input_mint} -> {output_mint}: "
            f"in={quote.get('inAmount')} out={quote.get('outAmount')}"
        )
        return quote

    def build_swap_transaction(self, quote: Dict[str, Any], user_public_key: str) -> str:
        """Serialized (base64) versioned transaction for ``quote``, ready to sign."""
        payload = {
            "quoteResponse": quote,
            "userPublicKey": user_public_key,
            "wrapAndUnwrapSol": True,
        }

        try:
            response = self.session.post(
                f"{self.api_base}/swap",
                json=payload,
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RouteError(f"Jupiter swap request failed: {e}") from e

        if response.status_code != 200:
            error_text = response.text[:300] if response.text else "Unknown error"
            raise RouteError(f"Jupiter swap error: {response.status_code} - {error_text}")

        swap_transaction = response.json().get("swapTransaction")
        if not swap_transaction:
            raise RouteError("No swap transaction in Jupiter response")
        return swap_transaction

    def close(self):
        self.session.close()
