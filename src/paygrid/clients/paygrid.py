"""
Paygrid SDK facade.

One object exposing payment signing, legacy permits, submission, polling
and corridor quotes, all driven by a single ``SDKConfig``.
"""

from typing import Any, Optional

from .corridors import CorridorQuotesClient
from .http_client import PaymentIntentClient
from ..adapters.evm.ledger import LedgerReader, Web3LedgerReader
from ..adapters.evm.permits import generate_token_permit, get_token_permit_payload
from ..adapters.evm.signatures import IntentLike, build_payment_authorization_payload, sign_payment_intent
from ..adapters.evm.standards import EIP712Payload
from ..schemas.config import SDKConfig
from ..schemas.https import CorridorQuoteResponse, PaymentIntentResponse
from ..schemas.intents import Authorizations, PermitAuthorization


class Paygrid:
    """
    Entry point of the SDK.

    Corridor quotes fetched through this facade feed the payload builder
    automatically when the payer bears the corridor fees.

    Usage:
        ```python
        async with Paygrid(SDKConfig(environment="testnet", api_key=key)) as paygrid:
            signer = LocalAccountSigner(private_key)
            payment = await paygrid.sign_and_initiate_payment_intent(intent, signer)
            final = await paygrid.poll_payment_intent_status(payment.id)
        ```
    """

    def __init__(
        self,
        config: Optional[SDKConfig] = None,
        *,
        payments: Optional[PaymentIntentClient] = None,
        corridors: Optional[CorridorQuotesClient] = None,
        ledger: Optional[LedgerReader] = None,
    ):
        self.config = config or SDKConfig()
        self.payments = payments or PaymentIntentClient(self.config)
        self.corridors = corridors or CorridorQuotesClient(self.config)
        self._ledger = ledger

    async def __aenter__(self) -> "Paygrid":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.payments.aclose()
        await self.corridors.aclose()

    def ledger_for(self, network: str) -> LedgerReader:
        """Ledger reader for ``network``, honoring ``custom_rpc_urls``."""
        if self._ledger is not None:
            return self._ledger
        return Web3LedgerReader.for_network(network, self.config.custom_rpc_urls)

    # Permit2 payment authorization

    async def construct_payment_authorization_payload(self, intent: IntentLike, **kwargs) -> EIP712Payload:
        kwargs.setdefault("quote_service", self.corridors)
        return await build_payment_authorization_payload(intent, **kwargs)

    async def sign_payment_intent(self, intent: IntentLike, signer: Any, **kwargs) -> Authorizations:
        kwargs.setdefault("quote_service", self.corridors)
        return await sign_payment_intent(intent, signer, **kwargs)

    # Legacy token permits

    async def get_token_permit_payload(
        self,
        symbol: str,
        network: str,
        owner: str,
        *,
        deadline: int,
        value: Optional[int] = None,
        nonce: Optional[int] = None,
        spender: Optional[str] = None,
    ) -> EIP712Payload:
        return await get_token_permit_payload(
            symbol,
            network,
            owner,
            self.ledger_for(network),
            deadline=deadline,
            value=value,
            nonce=nonce,
            spender=spender,
        )

    async def generate_token_permit(
        self,
        symbol: str,
        network: str,
        owner: str,
        signer: Any,
        *,
        deadline: int,
        value: Optional[int] = None,
        nonce: Optional[int] = None,
        spender: Optional[str] = None,
    ) -> PermitAuthorization:
        return await generate_token_permit(
            symbol,
            network,
            owner,
            signer,
            self.ledger_for(network),
            deadline=deadline,
            value=value,
            nonce=nonce,
            spender=spender,
        )

    # Payments API

    async def initiate_payment_intent(self, intent: IntentLike) -> PaymentIntentResponse:
        return await self.payments.initiate_payment_intent(intent)

    async def sign_and_initiate_payment_intent(self, intent: IntentLike, signer: Any, **kwargs) -> PaymentIntentResponse:
        kwargs.setdefault("quote_service", self.corridors)
        return await self.payments.sign_and_initiate_payment_intent(intent, signer, **kwargs)

    async def get_payment_intent_by_id(self, payment_intent_id: str) -> PaymentIntentResponse:
        return await self.payments.get_payment_intent_by_id(payment_intent_id)

    async def poll_payment_intent_status(self, payment_intent_id: str, **kwargs) -> PaymentIntentResponse:
        return await self.payments.poll_payment_intent_status(payment_intent_id, **kwargs)

    # Corridor quotes

    async def get_corridor_quotes(self, request) -> CorridorQuoteResponse:
        return await self.corridors.get_corridor_quotes(request)

    async def get_effective_quote(self, quote_id: str, destination_account: Optional[str] = None) -> CorridorQuoteResponse:
        return await self.corridors.get_effective_quote(quote_id, destination_account)

    async def get_payment_corridor_routes(self, amount: int, source_account: str, **kwargs) -> CorridorQuoteResponse:
        return await self.corridors.get_payment_corridor_routes(amount, source_account, **kwargs)
