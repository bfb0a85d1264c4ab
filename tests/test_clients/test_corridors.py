"""
Corridor quote client tests.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from paygrid.clients.corridors import CorridorQuotesClient
from paygrid.engine.exceptions import ApiError
from paygrid.schemas.https import CorridorQuoteRequest, NetworkTokens
from paygrid.schemas.intents import RoutingPriority

from mocks import PAYEE_ADDRESS, PAYER_ADDRESS, RecordingHandler, build_client, json_response


QUOTES_BODY = {
    "corridor_quotes": [
        {"quoteId": "q_1", "corridorId": "c_base_polygon", "estimated_total_fees": "0.25", "unknown": 1},
        {"quoteId": "q_2", "estimated_total_fees": "0.40"},
    ]
}


@pytest.mark.asyncio
async def test_payment_corridor_routes():
    handler = RecordingHandler(json_response(200, QUOTES_BODY))
    async with build_client(CorridorQuotesClient, handler) as client:
        quotes = await client.get_payment_corridor_routes(
            1000,
            PAYER_ADDRESS,
            PAYEE_ADDRESS,
            sources=NetworkTokens(networks=["BASE"], tokens=["USDC"]),
        )

    request = handler.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/corridors/quotes"
    assert handler.last_json == {
        "amount": 1000,
        "source_account": PAYER_ADDRESS,
        "destination_account": PAYEE_ADDRESS,
        "routing_priority": "AUTO",
        "sources": {"networks": ["BASE"], "tokens": ["USDC"]},
    }
    assert quotes.best_quote.quote_id == "q_1"
    assert quotes.best_quote.corridor_id == "c_base_polygon"
    assert quotes.best_quote.estimated_total_fees == Decimal("0.25")
    assert len(quotes.corridor_quotes) == 2


@pytest.mark.asyncio
async def test_quotes_get_expiry_stamp():
    handler = RecordingHandler(json_response(200, QUOTES_BODY))
    async with build_client(CorridorQuotesClient, handler) as client:
        quotes = await client.get_corridor_quotes(
            CorridorQuoteRequest(amount=500, source_account=PAYER_ADDRESS, routing_priority=RoutingPriority.COST)
        )
    assert datetime.fromisoformat(quotes.expires_at).tzinfo is not None


@pytest.mark.asyncio
async def test_server_expiry_is_kept():
    handler = RecordingHandler(json_response(200, {**QUOTES_BODY, "expires_at": "2030-01-01T00:00:00+00:00"}))
    async with build_client(CorridorQuotesClient, handler) as client:
        quotes = await client.get_corridor_quotes({"amount": 500, "source_account": PAYER_ADDRESS})
    assert quotes.expires_at == "2030-01-01T00:00:00+00:00"


@pytest.mark.asyncio
async def test_no_routes():
    handler = RecordingHandler(json_response(404, {"message": "No corridor routes found for BASE/USDC"}))
    async with build_client(CorridorQuotesClient, handler) as client:
        with pytest.raises(ApiError) as exc_info:
            await client.get_payment_corridor_routes(1000, PAYER_ADDRESS)

    message = str(exc_info.value)
    assert message.startswith("Corridor quote request failed:")
    assert "No corridor routes found for the requested parameters" in message
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_effective_quote():
    handler = RecordingHandler(json_response(200, QUOTES_BODY))
    async with build_client(CorridorQuotesClient, handler) as client:
        quote = await client.get_effective_quote("q_1", PAYEE_ADDRESS)

    request = handler.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/v1/corridors/quotes/q_1"
    assert request.url.params["dstAccount"] == PAYEE_ADDRESS
    assert quote.best_quote.estimated_total_fees == Decimal("0.25")


@pytest.mark.asyncio
async def test_effective_quote_failure():
    handler = RecordingHandler(json_response(410, {"message": "Quote expired"}))
    async with build_client(CorridorQuotesClient, handler) as client:
        with pytest.raises(ApiError, match="^Effective quote request failed:"):
            await client.get_effective_quote("q_1")
    assert "dstAccount" not in handler.requests[0].url.params
