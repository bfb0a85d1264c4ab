"""
Paygrid API HTTP Clients

Async clients for the Paygrid REST API, built as ``httpx.AsyncClient``
subclasses so they keep the full httpx surface (context manager, custom
transports, event hooks).

- PaygridHttpClient: Shared configuration and error handling
- PaymentIntentClient: Submit payment intents and poll them to a terminal status
"""

import asyncio
import json
import logging
import math
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..adapters.evm.signatures import (
    IntentLike,
    QuoteService,
    coerce_payment_intent,
    resolve_intent_dates,
    sign_payment_intent,
)
from ..engine.exceptions import (
    ApiError,
    PaymentFailed,
    PollingAborted,
    PollingTimeout,
)
from ..schemas.config import SDKConfig
from ..schemas.https import PaymentIntentResponse
from ..schemas.intents import PaymentStatus

logger = logging.getLogger(__name__)

PAYMENTS_ENDPOINT = "/payments"

DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_MAX_POLL_ATTEMPTS = 600


class PaygridHttpClient(httpx.AsyncClient):
    """
    ``httpx.AsyncClient`` preconfigured for the Paygrid API.

    Base URL, headers, timeout and connection retries come from ``SDKConfig``.
    Any standard httpx keyword argument (``transport``, ``event_hooks``, ...)
    overrides the configured value.

    Usage:
        ```python
        async with PaymentIntentClient(SDKConfig(environment="testnet")) as client:
            payment = await client.get_payment_intent_by_id("pi_123")
        ```
    """

    def __init__(self, config: Optional[SDKConfig] = None, **kwargs):
        self.config = config or SDKConfig()
        kwargs.setdefault("base_url", self.config.api_base_url)
        kwargs.setdefault("timeout", self.config.timeout)
        kwargs["headers"] = {**self.config.api_headers, **(kwargs.get("headers") or {})}
        if "transport" not in kwargs:
            kwargs["transport"] = httpx.AsyncHTTPTransport(retries=self.config.max_retries)
        super().__init__(**kwargs)

    # =========================================================================
    # Request helpers
    # =========================================================================

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            ApiError: On a 4xx/5xx answer (408 on client-side timeout), a
                transport failure, or an undecodable body.
        """
        snapshot = {"method": method, "url": path, "payload": json_body, "params": params}
        try:
            response = await self.request(method, path, json=json_body, params=params)
        except httpx.TimeoutException as exc:
            raise ApiError("API request timeout", status_code=408, request=snapshot) from exc
        except httpx.HTTPError as exc:
            raise ApiError(f"Network error while calling {method} {path}: {exc}", request=snapshot) from exc

        body = _decode_body(response)
        if response.is_error:
            raise ApiError(
                _format_error_message(response.status_code, body, snapshot),
                status_code=response.status_code,
                body=body,
                request=snapshot,
            )
        if not response.content:
            return None
        if isinstance(body, str):
            raise ApiError(
                f"Invalid JSON in response to {method} {path}",
                status_code=response.status_code,
                body=body,
                request=snapshot,
            )
        return body


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _format_error_message(status_code: int, body: Any, request: Dict[str, Any]) -> str:
    """
    Build a readable error message from an API error body.

    Handles nested validation errors (``errors: [{message, errors: [{path, message}]}]``),
    flat validation errors (``errors: {field: message}``), and plain
    ``message`` / ``error`` fields. The raw body and request snapshot are
    always appended.
    """
    details: List[str] = [f"Status: {status_code}"]
    data = body if isinstance(body, dict) else {}
    message = data.get("message")
    errors = data.get("errors")

    if isinstance(errors, list):
        for err in errors:
            if not isinstance(err, dict):
                details.append(f"Message: {err}")
                continue
            if err.get("message"):
                details.append(f"Message: {err['message']}")
            for nested in err.get("errors") or []:
                if not isinstance(nested, dict):
                    continue
                path = nested.get("path")
                if isinstance(path, list):
                    path = ".".join(str(p) for p in path)
                if path and nested.get("message"):
                    details.append(f"Validation: {path}: {nested['message']}")
                elif nested.get("message"):
                    details.append(f"Validation: {nested['message']}")
    elif isinstance(errors, dict):
        details.append("Validation errors:")
        details.extend(f"  {field}: {msg}" for field, msg in errors.items())
    elif status_code == 404 and isinstance(message, str) and (
        "No corridor routes found" in message or "No realtime" in message
    ):
        details.append("No corridor routes found for the requested parameters")
    elif message:
        details.append(f"Message: {message}")
    elif data.get("error"):
        details.append(f"Error: {data['error']}")
    else:
        details.append("Unknown API error")

    details.append(f"Response Data: {json.dumps(body, indent=2, default=str)}")
    details.append(
        "Request Details: "
        f"URL PATH: {request.get('url')} "
        f"METHOD: {request.get('method')} "
        f"PAYLOAD: {json.dumps(request.get('payload'), default=str)}"
    )
    return "\n".join(details)


def format_payment_details(payment: Optional[PaymentIntentResponse]) -> str:
    """One-line summary of a payment for error messages."""
    if payment is None:
        return "No payment details available."

    details = [
        f"Last status: {payment.status.value}",
        f"Payment Intent ID: {payment.id}",
        f"Amount: {payment.amount}",
        f"Source: {payment.source.network_id}/{payment.source.payment_token}",
        f"Destination: {payment.destination.network_id}/{payment.destination.payment_token}",
    ]
    tx = payment.transaction
    if tx is not None:
        if tx.src_tx_hash:
            details.append(f"Source TX: {tx.src_tx_hash}")
        if tx.dst_tx_hash:
            details.append(f"Destination TX: {tx.dst_tx_hash}")
        if tx.error:
            details.append(f"Error: {tx.error}")
        if tx.gas_amount_usd:
            details.append(f"Gas Cost: ${tx.gas_amount_usd}")
    if payment.processing_fees is not None:
        details.append(
            f"Processing Fees: ${payment.processing_fees.corridor_fees} "
            f"({payment.processing_fees.charge_bearer.value})"
        )
    return " | ".join(details)


class PaymentIntentClient(PaygridHttpClient):
    """
    Client for the ``/payments`` resource.

    Usage:
        ```python
        async with PaymentIntentClient(config) as client:
            created = await client.sign_and_initiate_payment_intent(intent, signer)
            final = await client.poll_payment_intent_status(created.id, timeout=300)
        ```
    """

    # =========================================================================
    # Submission
    # =========================================================================

    async def initiate_payment_intent(self, intent: IntentLike) -> PaymentIntentResponse:
        """
        Submit a signed payment intent (``POST /payments``).

        Raises:
            MissingRequiredField: If the intent has no expiration date or
                Permit2 signature.
            ApiError: If the API rejects the intent.
        """
        payload = coerce_payment_intent(intent).to_submission_payload()
        logger.info(
            "Submitting payment intent: %s %s/%s -> %s/%s",
            payload["amount"],
            payload["source"]["network_id"],
            payload["source"]["payment_token"],
            payload["destination"]["network_id"],
            payload["destination"]["payment_token"],
        )
        data = await self._request_json("POST", PAYMENTS_ENDPOINT, json_body=payload)
        return self._parse_payment(data, {"method": "POST", "url": PAYMENTS_ENDPOINT, "payload": payload})

    async def sign_and_initiate_payment_intent(
        self,
        intent: IntentLike,
        signer: Any,
        quote_service: Optional[QuoteService] = None,
        **builder_kwargs,
    ) -> PaymentIntentResponse:
        """
        Sign the Permit2 authorization for ``intent`` and submit it.

        Existing ``initial_permit`` authorizations are preserved. Missing
        ``processing_date`` / ``expiration_date`` values are defaulted before
        signing and submitted as signed.
        """
        intent = resolve_intent_dates(intent, builder_kwargs.get("now"))
        authorizations = await sign_payment_intent(
            intent, signer, quote_service=quote_service, **builder_kwargs
        )
        return await self.initiate_payment_intent(intent.with_authorizations(authorizations))

    # =========================================================================
    # Retrieval & polling
    # =========================================================================

    async def get_payment_intent_by_id(self, payment_intent_id: str) -> PaymentIntentResponse:
        """
        Fetch a payment intent (``GET /payments/{id}``).

        Raises:
            ApiError: ``status_code == 404`` when the payment intent does not exist.
        """
        path = f"{PAYMENTS_ENDPOINT}/{payment_intent_id}"
        try:
            data = await self._request_json("GET", path)
        except ApiError as exc:
            if exc.status_code == 404:
                raise ApiError(
                    f"Payment intent not found: {payment_intent_id}",
                    status_code=404,
                    body=exc.body,
                    request=exc.request,
                ) from exc
            raise
        return self._parse_payment(data, {"method": "GET", "url": path})

    async def poll_payment_intent_status(
        self,
        payment_intent_id: str,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: Optional[float] = None,
        abort_event: Optional[asyncio.Event] = None,
    ) -> PaymentIntentResponse:
        """
        Poll a payment intent at a fixed interval until it reaches a terminal status.

        Args:
            payment_intent_id: Payment intent id
            poll_interval: Seconds between polls
            timeout: Total polling budget in seconds; the attempt ceiling is
                ``ceil(timeout / poll_interval)``, or 600 when omitted
            abort_event: Checked before every poll; when set, polling stops
                without another API call

        Returns:
            PaymentIntentResponse with status COMPLETED

        Raises:
            PaymentFailed: Status FAILED or CANCELLED
            PollingTimeout: Attempt ceiling reached without a terminal status
            PollingAborted: ``abort_event`` was set
            ApiError: The API failed; last known payment details are appended
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        max_attempts = math.ceil(timeout / poll_interval) if timeout else DEFAULT_MAX_POLL_ATTEMPTS
        max_attempts = max(max_attempts, 1)

        last: Optional[PaymentIntentResponse] = None
        for attempt in range(1, max_attempts + 1):
            if abort_event is not None and abort_event.is_set():
                raise PollingAborted(
                    f"Payment status polling was aborted. {format_payment_details(last)}", last
                )

            try:
                last = await self.get_payment_intent_by_id(payment_intent_id)
            except ApiError as exc:
                raise ApiError(
                    f"Error while polling payment status: {exc}. {format_payment_details(last)}",
                    status_code=exc.status_code,
                    body=exc.body,
                    request=exc.request,
                ) from exc

            logger.debug("Poll %d/%d for %s: %s", attempt, max_attempts, payment_intent_id, last.status.value)
            if last.status is PaymentStatus.COMPLETED:
                return last
            if last.status in (PaymentStatus.FAILED, PaymentStatus.CANCELLED):
                raise PaymentFailed(f"Payment failed. {format_payment_details(last)}", last)

            if attempt < max_attempts:
                await asyncio.sleep(poll_interval)

        raise PollingTimeout(f"Payment timeout reached. {format_payment_details(last)}", last)

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def _parse_payment(self, data: Any, request: Dict[str, Any]) -> PaymentIntentResponse:
        if not isinstance(data, dict) or not data.get("id"):
            raise ApiError("Payment tracking error: response missing payment intent ID", body=data, request=request)
        if not data.get("status"):
            raise ApiError("Payment tracking error: response missing payment status", body=data, request=request)
        try:
            return PaymentIntentResponse.model_validate(data)
        except ValidationError as exc:
            raise ApiError(f"Payment tracking error: unexpected response shape: {exc}", body=data, request=request) from exc
