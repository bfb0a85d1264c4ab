from .bases import CanonicalModel
from .versions import SDK_VERSION, ApiVersion
from .intents import (
    PaymentType,
    PaymentStatus,
    ChargeBearer,
    IntervalUnit,
    RoutingPriority,
    FINAL_PAYMENT_STATES,
    OperatorData,
    SourceDomain,
    DestinationDomain,
    Schedule,
    PermitAuthorization,
    Authorizations,
    ProcessingFees,
    PaymentIntent,
)
from .https import (
    BlockchainTransaction,
    BlockchainMetadata,
    ResponseDomain,
    PaymentIntentResponse,
    NetworkTokens,
    CorridorQuoteRequest,
    CorridorFee,
    CorridorQuoteResponse,
)
from .config import SDKConfig

__all__ = [
    "CanonicalModel",
    "SDK_VERSION",
    "ApiVersion",
    "PaymentType",
    "PaymentStatus",
    "ChargeBearer",
    "IntervalUnit",
    "RoutingPriority",
    "FINAL_PAYMENT_STATES",
    "OperatorData",
    "SourceDomain",
    "DestinationDomain",
    "Schedule",
    "PermitAuthorization",
    "Authorizations",
    "ProcessingFees",
    "PaymentIntent",
    "BlockchainTransaction",
    "BlockchainMetadata",
    "ResponseDomain",
    "PaymentIntentResponse",
    "NetworkTokens",
    "CorridorQuoteRequest",
    "CorridorFee",
    "CorridorQuoteResponse",
    "SDKConfig",
]
