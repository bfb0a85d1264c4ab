"""
Corridor quote client.

Quotes the corridor fees of moving an amount between networks and tokens.
``CorridorQuotesClient.get_effective_quote`` matches the quote-service
interface the Permit2 payload builder uses when the payer bears the
corridor fees.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from .http_client import PaygridHttpClient
from ..engine.exceptions import ApiError
from ..schemas.https import CorridorQuoteRequest, CorridorQuoteResponse, NetworkTokens
from ..schemas.intents import RoutingPriority

logger = logging.getLogger(__name__)

CORRIDOR_QUOTES_ENDPOINT = "/corridors/quotes"

QUOTE_VALIDITY = timedelta(minutes=5)


class CorridorQuotesClient(PaygridHttpClient):
    """
    Client for the ``/corridors/quotes`` resource.

    Usage:
        ```python
        async with CorridorQuotesClient(config) as quotes:
            routes = await quotes.get_payment_corridor_routes(1000, payer, payee)
            best = routes.best_quote
        ```
    """

    async def get_corridor_quotes(
        self,
        request: Union[CorridorQuoteRequest, dict],
    ) -> CorridorQuoteResponse:
        """
        Request corridor quotes (``POST /corridors/quotes``).

        Quotes are valid for five minutes; ``expires_at`` is stamped with
        that horizon when the API does not provide one.

        Raises:
            ApiError: ``Corridor quote request failed: ...``
        """
        if not isinstance(request, CorridorQuoteRequest):
            request = CorridorQuoteRequest.model_validate(request)
        body = request.model_dump(mode="json", exclude_none=True)
        try:
            data = await self._request_json("POST", CORRIDOR_QUOTES_ENDPOINT, json_body=body)
        except ApiError as exc:
            raise ApiError(
                f"Corridor quote request failed: {exc}",
                status_code=exc.status_code,
                body=exc.body,
                request=exc.request,
            ) from exc

        response = CorridorQuoteResponse.model_validate(data or {})
        if response.expires_at is None:
            expires_at = datetime.now(timezone.utc) + QUOTE_VALIDITY
            response = response.model_copy(update={"expires_at": expires_at.isoformat()})
        logger.info("Received %d corridor quote(s)", len(response.corridor_quotes))
        return response

    async def get_effective_quote(
        self,
        quote_id: str,
        destination_account: Optional[str] = None,
    ) -> CorridorQuoteResponse:
        """
        Fetch the effective quote for ``quote_id`` (``GET /corridors/quotes/{id}``).

        Raises:
            ApiError: ``Effective quote request failed: ...``
        """
        params = {"dstAccount": destination_account} if destination_account else None
        try:
            data = await self._request_json(
                "GET", f"{CORRIDOR_QUOTES_ENDPOINT}/{quote_id}", params=params
            )
        except ApiError as exc:
            raise ApiError(
                f"Effective quote request failed: {exc}",
                status_code=exc.status_code,
                body=exc.body,
                request=exc.request,
            ) from exc
        return CorridorQuoteResponse.model_validate(data or {})

    async def get_payment_corridor_routes(
        self,
        amount: int,
        source_account: str,
        destination_account: Optional[str] = None,
        sources: Optional[NetworkTokens] = None,
        destinations: Optional[NetworkTokens] = None,
        routing_priority: Optional[RoutingPriority] = None,
        payment_reference: Optional[str] = None,
    ) -> CorridorQuoteResponse:
        """Quote the routes for ``amount`` cents; routing priority defaults to AUTO."""
        request = CorridorQuoteRequest(
            amount=amount,
            source_account=source_account,
            destination_account=destination_account,
            sources=sources,
            destinations=destinations,
            routing_priority=routing_priority or RoutingPriority.AUTO,
            payment_reference=payment_reference,
        )
        return await self.get_corridor_quotes(request)
