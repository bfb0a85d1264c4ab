"""
Payment Intent Schema Models

Pydantic models for the payment intent, the declarative payment instruction
that is signed by the payer and submitted to the Paygrid API.

Core Classes:
    - PaymentIntent: The central value object
    - OperatorData, SourceDomain, DestinationDomain, Schedule: Intent sections
    - Authorizations, PermitAuthorization: Signatures attached by the signer
    - ProcessingFees: Corridor fee terms

Enums:
    - PaymentType, PaymentStatus, ChargeBearer, IntervalUnit, RoutingPriority

Optional sections are explicit ``Optional[...] = None`` fields; a section
that was never provided is ``None``, never an absent attribute.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field, JsonValue, field_validator

from .bases import CanonicalModel
from ..engine.exceptions import MissingRequiredField


_BYTES32_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


# ============================================================================
# Enums
# ============================================================================

class PaymentType(str, Enum):
    """Payment recurrence. The wire value is lower-case; the witness uses a small integer code."""
    ONE_TIME = "one-time"
    RECURRING = "recurring"

    @property
    def witness_code(self) -> int:
        return 0 if self is PaymentType.ONE_TIME else 1

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-")
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class PaymentStatus(str, Enum):
    RELEASED_TO_GATEWAY = "RELEASED_TO_GATEWAY"
    PROCESSING = "PROCESSING"
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in FINAL_PAYMENT_STATES


FINAL_PAYMENT_STATES = frozenset({
    PaymentStatus.COMPLETED,
    PaymentStatus.FAILED,
    PaymentStatus.CANCELLED,
})


class ChargeBearer(str, Enum):
    """Party that pays the corridor fees."""
    OPERATOR = "OPERATOR"
    PAYEE = "PAYEE"
    PAYER = "PAYER"
    GATEWAY = "PG_GATEWAY"


class IntervalUnit(str, Enum):
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
    YEAR = "YEAR"


class RoutingPriority(str, Enum):
    AUTO = "AUTO"
    BALANCED = "BALANCED"
    COST = "COST"
    SPEED = "SPEED"


# ============================================================================
# Intent sections
# ============================================================================

class OperatorData(CanonicalModel):
    """Operator originating the payment.

    Attributes:
        id: Operator identifier (bytes32 hex). Derived from the operator
            address when omitted.
        operator: Operator address.
        treasury: Address receiving the operator fee leg.
        fee_bps: Operator fee in basis points, 0 to 10000.
        authorized_delegates: Addresses allowed to act for the operator.
        webhook_url: Callback URL for status notifications.
    """
    id: Optional[str] = Field(default=None, description="Operator id, bytes32 hex")
    operator: str = Field(..., description="Operator address")
    treasury: str = Field(..., description="Operator treasury address")
    fee_bps: int = Field(default=0, ge=0, le=10_000, description="Operator fee in basis points")
    authorized_delegates: Optional[List[str]] = None
    webhook_url: Optional[str] = None

    @field_validator("id")
    @classmethod
    def _validate_id(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not _BYTES32_RE.match(v):
            raise ValueError("operator id must be a 0x-prefixed 32-byte hex string")
        return v


class SourceDomain(CanonicalModel):
    from_account: str = Field(..., description="Payer address")
    network_id: str = Field(..., description="Source network key, e.g. BASE")
    payment_token: str = Field(..., description="Source token symbol, e.g. USDC")


class DestinationDomain(CanonicalModel):
    to_account: str = Field(..., description="Payee address")
    network_id: str = Field(..., description="Destination network key")
    payment_token: str = Field(..., description="Destination token symbol")


class Schedule(CanonicalModel):
    """Recurrence parameters. Passed through to the API, not signed."""
    interval_unit: IntervalUnit
    interval_count: int = Field(..., ge=1)
    iterations: Optional[int] = Field(default=None, ge=1)
    start_date: int = Field(..., description="Unix timestamp")
    end_date: Optional[int] = Field(default=None, description="Unix timestamp")


class PermitAuthorization(CanonicalModel):
    """Signature over a permit, with the nonce and deadline it was signed for."""
    signature: Optional[str] = None
    nonce: str = Field(..., description="Permit nonce as a decimal string")
    deadline: int = Field(..., description="Unix timestamp")

    @field_validator("nonce", mode="before")
    @classmethod
    def _nonce_to_str(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class Authorizations(CanonicalModel):
    """
    Signatures attached to a payment intent.

    Attributes:
        permit2_permit: Permit2 batch-witness signature (filled in by the signer)
        initial_permit: Optional legacy single-token permit granting Permit2
            its allowance
    """
    permit2_permit: Optional[PermitAuthorization] = None
    initial_permit: Optional[PermitAuthorization] = None


class ProcessingFees(CanonicalModel):
    corridor_fees: Optional[str] = Field(default=None, description='Decimal string, e.g. "0.25"')
    charge_bearer: ChargeBearer = ChargeBearer.PAYEE
    quote_id: Optional[str] = Field(default=None, alias="quoteId")


# ============================================================================
# Payment intent
# ============================================================================

class PaymentIntent(CanonicalModel):
    """
    Declarative cross-chain payment instruction.

    ``amount`` is in cents (two implied decimals); the signer converts it to
    the source token's native units before building the Permit2 payload.

    Example:
        intent = PaymentIntent(
            payment_type=PaymentType.ONE_TIME,
            operator_data=OperatorData(operator=op, treasury=op, fee_bps=50),
            amount=1000,  # $10.00
            source=SourceDomain(from_account=payer, network_id="BASE", payment_token="USDC"),
            destination=DestinationDomain(to_account=payee, network_id="BASE", payment_token="USDC"),
            expiration_date=int(time.time()) + 3600,
        )
    """
    payment_type: PaymentType = PaymentType.ONE_TIME
    operator_data: OperatorData
    amount: int = Field(..., ge=0, description="Amount in cents")
    source: SourceDomain
    destination: DestinationDomain
    schedule: Optional[Schedule] = None
    routing_priority: Optional[RoutingPriority] = None
    processing_date: Optional[int] = Field(default=None, description="Unix timestamp")
    expiration_date: Optional[int] = Field(default=None, description="Unix timestamp, permit deadline")
    authorizations: Authorizations = Field(default_factory=Authorizations)
    processing_fees: Optional[ProcessingFees] = None
    payment_reference: Optional[str] = None
    metadata: Optional[Dict[str, JsonValue]] = None

    def with_authorizations(self, authorizations: Authorizations) -> "PaymentIntent":
        """Return a copy carrying ``authorizations``; the original is left untouched."""
        return self.model_copy(update={"authorizations": authorizations})

    def to_submission_payload(self) -> Dict[str, Any]:
        """
        Format the intent as the ``POST /payments`` request body.

        Raises:
            MissingRequiredField: If ``expiration_date``, the Permit2
                signature or ``processing_date`` is missing. Both dates are
                part of the signed witness.
        """
        if self.expiration_date is None:
            raise MissingRequiredField("expiration_date")
        permit2 = self.authorizations.permit2_permit
        if permit2 is None or not permit2.signature:
            raise MissingRequiredField("authorizations.permit2_permit.signature")
        if self.processing_date is None:
            raise MissingRequiredField("processing_date")

        authorizations: Dict[str, Any] = {
            "permit2_permit": {
                "signature": permit2.signature,
                "nonce": permit2.nonce,
                "deadline": int(permit2.deadline),
            }
        }
        initial = self.authorizations.initial_permit
        if initial is not None:
            authorizations["initial_permit"] = {
                "signature": initial.signature,
                "nonce": initial.nonce,
                "deadline": int(initial.deadline),
            }

        processing_fees = None
        if self.processing_fees is not None:
            processing_fees = {
                "corridor_fees": self.processing_fees.corridor_fees,
                "charge_bearer": self.processing_fees.charge_bearer.value,
            }

        op = self.operator_data
        return {
            "payment_type": self.payment_type.value,
            "routing_priority": self.routing_priority.value if self.routing_priority else None,
            "operator_data": {
                "id": op.id,
                "operator": op.operator,
                "treasury": op.treasury,
                "fee_bps": op.fee_bps,
                "authorized_delegates": op.authorized_delegates,
                "webhook_url": op.webhook_url,
            },
            "amount": self.amount,
            "source": self.source.model_dump(mode="json"),
            "destination": self.destination.model_dump(mode="json"),
            "schedule": self.schedule.model_dump(mode="json") if self.schedule else None,
            "processing_date": self.processing_date,
            "expiration_date": self.expiration_date,
            "authorizations": authorizations,
            "processing_fees": processing_fees,
            "payment_reference": self.payment_reference,
            "metadata": self.metadata or None,
        }
