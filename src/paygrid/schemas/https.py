"""
HTTP Request/Response Schema Models for the Paygrid API

Pydantic models for the bodies exchanged with the Paygrid API:

1. ``POST /payments`` answers with a PaymentIntentResponse
2. ``GET /payments/{id}`` returns the same PaymentIntentResponse, polled until terminal
3. ``POST /corridors/quotes`` takes a CorridorQuoteRequest and answers with a CorridorQuoteResponse
4. ``GET /corridors/quotes/{id}`` returns the effective CorridorQuoteResponse for one quote

Response models ignore unknown fields so new server attributes do not break
older clients.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Union

from pydantic import ConfigDict, Field, JsonValue

from .bases import CanonicalModel
from .intents import (
    OperatorData,
    PaymentStatus,
    ProcessingFees,
    RoutingPriority,
)


# ============================================================================
# Payment intent responses
# ============================================================================

class BlockchainTransaction(CanonicalModel):
    """On-chain execution details reported by the gateway.

    Attributes:
        src_tx_hash: Source chain transaction hash.
        dst_tx_hash: Destination chain transaction hash.
        error: Execution error, if the transfer failed on-chain.
        effective_gas_price: Gas price paid (wei, decimal string).
        gas_used: Gas units consumed.
        gas_amount_usd: Gas cost in USD.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    src_tx_hash: Optional[str] = None
    dst_tx_hash: Optional[str] = None
    error: Optional[str] = None
    effective_gas_price: Optional[str] = Field(default=None, alias="effectiveGasPrice")
    gas_used: Optional[str] = Field(default=None, alias="gasUsed")
    gas_amount_usd: Optional[str] = Field(default=None, alias="gasAmountUSD")


class BlockchainMetadata(CanonicalModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    payment_gateway_proxy: Optional[str] = None
    transaction: Optional[BlockchainTransaction] = None


class ResponseDomain(CanonicalModel):
    """Source or destination section of a response; only one account field is set."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    from_account: Optional[str] = None
    to_account: Optional[str] = None
    network_id: Union[str, int]
    payment_token: str

    @property
    def account(self) -> Optional[str]:
        return self.from_account or self.to_account


class PaymentIntentResponse(CanonicalModel):
    """
    Payment intent as stored by the Paygrid API.

    Example:
        payment = PaymentIntentResponse.model_validate(response.json())
        if payment.is_terminal:
            ...
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    payment_type: str
    routing_priority: Optional[RoutingPriority] = None
    operator_data: Optional[OperatorData] = None
    amount: int
    source: ResponseDomain
    destination: ResponseDomain
    status: PaymentStatus
    processing_date: Optional[Union[str, int]] = None
    processing_fees: Optional[ProcessingFees] = None
    payment_reference: Optional[str] = None
    metadata: Optional[Dict[str, JsonValue]] = None
    blockchain_metadata: Optional[BlockchainMetadata] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def transaction(self) -> Optional[BlockchainTransaction]:
        if self.blockchain_metadata is None:
            return None
        return self.blockchain_metadata.transaction


# ============================================================================
# Corridor quotes
# ============================================================================

class NetworkTokens(CanonicalModel):
    """Networks and tokens to consider on one side of a corridor."""
    networks: Optional[List[str]] = None
    tokens: Optional[List[str]] = None


class CorridorQuoteRequest(CanonicalModel):
    """Request body for ``POST /corridors/quotes``.

    Attributes:
        amount: Amount in cents.
        source_account: Payer address.
        destination_account: Payee address.
        routing_priority: Route selection preference.
        sources: Candidate source networks and tokens.
        destinations: Candidate destination networks and tokens.
        payment_reference: Caller reference echoed by the API.
    """
    amount: int = Field(..., ge=0, description="Amount in cents")
    source_account: str
    destination_account: Optional[str] = None
    routing_priority: Optional[RoutingPriority] = None
    sources: Optional[NetworkTokens] = None
    destinations: Optional[NetworkTokens] = None
    payment_reference: Optional[str] = None


class CorridorFee(CanonicalModel):
    """A single corridor route quote. Fees are decimal token amounts."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    quote_id: str = Field(..., alias="quoteId")
    corridor_id: Optional[str] = Field(default=None, alias="corridorId")
    estimated_total_fees: Decimal
    estimated_execution_time: Optional[float] = None
    price_impact: Optional[float] = None


class CorridorQuoteResponse(CanonicalModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    corridor_quotes: List[CorridorFee] = Field(default_factory=list)
    expires_at: Optional[str] = None

    @property
    def best_quote(self) -> Optional[CorridorFee]:
        return self.corridor_quotes[0] if self.corridor_quotes else None

