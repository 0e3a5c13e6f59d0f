"""Tests for the Jupiter router HTTP handling."""

from unittest.mock import Mock

import pytest
import requests

from swap_swarm.router import JupiterRouter
from swap_swarm.utils import RouteError


def make_response(status_code=200, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = text
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


class TestGetQuote:

    def test_quote_request(self, session):
        quote = {"inAmount": "1000", "outAmount": "990", "routePlan": []}
        session.get.return_value = make_response(payload=quote)
        router = JupiterRouter("https://jup.example/v6/", session=session, timeout=5)

        assert router.get_quote("mintA", "mintB", 1000, 50) == quote

        args, kwargs = session.get.call_args
        assert args[0] == "https://jup.example/v6/quote"
        assert kwargs["params"] == {
            "inputMint": "mintA",
            "outputMint": "mintB",
            "amount": "1000",
            "slippageBps": "50",
        }
        assert kwargs["timeout"] == 5

    def test_http_error_raises(self, session):
        session.get.return_value = make_response(status_code=400, text="bad mint")
        router = JupiterRouter(session=session)

        with pytest.raises(RouteError, match="400"):
            router.get_quote("mintA", "mintB", 1000)

    def test_error_body_raises(self, session):
        session.get.return_value = make_response(payload={"error": "No routes found"})
        router = JupiterRouter(session=session)

        with pytest.raises(RouteError, match="No routes found"):
            router.get_quote("mintA", "mintB", 1000)

    def test_network_error_raises_route_error(self, session):
        session.get.side_effect = requests.ConnectionError("refused")
        router = JupiterRouter(session=session)

        with pytest.raises(RouteError):
            router.get_quote("mintA", "mintB", 1000)


class TestBuildSwapTransaction:

    def test_swap_request(self, session):
        session.post.return_value = make_response(payload={"swapTransaction": "AQID"})
        router = JupiterRouter("https://jup.example/v6", session=session)
        quote = {"inAmount": "1000"}

        assert router.build_swap_transaction(quote, "walletPubkey") == "AQID"

        args, kwargs = session.post.call_args
        assert args[0] == "https://jup.example/v6/swap"
        assert kwargs["json"] == {
            "quoteResponse": quote,
            "userPublicKey": "walletPubkey",
            "wrapAndUnwrapSol": True,
        }

    def test_missing_transaction_raises(self, session):
        session.post.return_value = make_response(payload={})
        router = JupiterRouter(session=session)

        with pytest.raises(RouteError):
            router.build_swap_transaction({}, "walletPubkey")

    def test_http_error_raises(self, session):
        session.post.return_value = make_response(status_code=500, text="")
        router = JupiterRouter(session=session)

        with pytest.raises(RouteError, match="Unknown error"):
            router.build_swap_transaction({}, "walletPubkey")

    def test_close_closes_session(self, session):
        JupiterRouter(session=session).close()
        session.close.assert_called_once()
