"""
Permit2 payment authorization: payload construction and signing.

A payment intent is authorized by a single Permit2
``PermitBatchWitnessTransferFrom`` signature. The transfer batch moves the
gross amount of the source token in three legs (payee, operator fee,
gateway fee) to the source network's gateway proxy, and the witness binds
the batch to the payment intent so the gateway contract can check both
atomically.

Functions:
    - build_payment_authorization_payload: Intent -> EIP712Payload
    - sign_payment_intent: Intent + signer -> Authorizations
    - resolve_gross_amount: Cents -> native units, corridor fees included
    - resolve_intent_dates: Fill in the signed processing / expiration dates
"""

import inspect
import logging
import threading
import time
from decimal import Decimal
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, Union

from eth_utils import keccak
from pydantic import ValidationError
from web3 import Web3

from .constants import (
    PERMIT2_ADDRESS,
    PERMIT2_DOMAIN_NAME,
    TokenConfig,
    amount_to_value,
    cents_to_value,
    checksum_address,
    get_network,
    get_token,
)
from .fees import split_fees
from .signers import sign_typed_data
from .standards import (
    EIP712Payload,
    PERMIT2_WITNESS_PRIMARY_TYPE,
    PaymentIntentWitness,
    PermitBatchWitnessMessage,
    WitnessDomain,
    WitnessOperatorData,
    permit2_witness_types,
)
from ...engine.exceptions import (
    MissingRequiredField,
    SigningFailed,
)
from ...schemas.intents import (
    Authorizations,
    ChargeBearer,
    PaymentIntent,
    PermitAuthorization,
)

logger = logging.getLogger(__name__)

#: processing_date default offset when the intent has none (5 hours).
DEFAULT_PROCESSING_DELAY = 5 * 60 * 60

#: deadline / expires_at default offset when the intent has no expiration_date.
DEFAULT_VALIDITY = 60 * 60

IntentLike = Union[PaymentIntent, Mapping[str, Any]]
NonceSource = Callable[[], Union[int, Awaitable[int]]]


class QuoteService(Protocol):
    async def get_effective_quote(self, quote_id: str, destination_account: Optional[str] = None) -> Any:
        ...


# ---------------------------------------------------------------------------
# Nonces
# ---------------------------------------------------------------------------

class MonotonicNonceSource:
    """
    Millisecond-clock nonce source that never hands out the same value twice.

    Each call returns ``max(now_ms, last + 1)``, so concurrent signers in
    the same process cannot collide even within one millisecond.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            self._last = max(int(self._clock() * 1000), self._last + 1)
            return self._last


default_nonce_source = MonotonicNonceSource()


async def _resolve_nonce(intent: PaymentIntent, nonce: Optional[int], nonce_source: Optional[NonceSource]) -> int:
    if nonce is not None:
        return int(nonce)
    permit2 = intent.authorizations.permit2_permit
    if permit2 is not None and permit2.nonce not in (None, ""):
        return int(permit2.nonce)
    value = (nonce_source or default_nonce_source)()
    if inspect.isawaitable(value):
        value = await value
    return int(value)


# ---------------------------------------------------------------------------
# Intent coercion
# ---------------------------------------------------------------------------

def coerce_payment_intent(intent: IntentLike) -> PaymentIntent:
    """
    Validate a mapping into a ``PaymentIntent``; models pass through.

    Raises:
        MissingRequiredField: If a required field is absent (dotted path).
        pydantic.ValidationError: For any other invalid value.
    """
    if isinstance(intent, PaymentIntent):
        return intent
    try:
        return PaymentIntent.model_validate(intent)
    except ValidationError as exc:
        for err in exc.errors():
            if err["type"] == "missing":
                raise MissingRequiredField(".".join(str(p) for p in err["loc"])) from exc
        raise


def resolve_intent_dates(intent: IntentLike, now: Optional[int] = None) -> PaymentIntent:
    """
    Return a copy of ``intent`` with ``processing_date`` and ``expiration_date`` set.

    Missing dates get the same defaults the witness is signed with
    (``now + DEFAULT_PROCESSING_DELAY`` and ``now + DEFAULT_VALIDITY``), so
    an intent submitted after signing declares exactly the signed values.
    """
    intent = coerce_payment_intent(intent)
    now = int(time.time()) if now is None else int(now)
    update = {}
    if intent.processing_date is None:
        update["processing_date"] = now + DEFAULT_PROCESSING_DELAY
    if intent.expiration_date is None:
        update["expiration_date"] = now + DEFAULT_VALIDITY
    return intent.model_copy(update=update) if update else intent


# ---------------------------------------------------------------------------
# Amount
# ---------------------------------------------------------------------------

def _estimated_total_fees(quote: Any) -> Decimal:
    if isinstance(quote, Mapping):
        quotes = quote.get("corridor_quotes") or []
        first = quotes[0] if quotes else None
        fees = first.get("estimated_total_fees") if isinstance(first, Mapping) else None
    else:
        quotes = getattr(quote, "corridor_quotes", None) or []
        fees = getattr(quotes[0], "estimated_total_fees", None) if quotes else None
    if fees is None:
        raise ValueError("effective quote is missing corridor_quotes[0].estimated_total_fees")
    return Decimal(str(fees))


async def resolve_gross_amount(
    intent: PaymentIntent,
    token: TokenConfig,
    quote_service: Optional[QuoteService] = None,
) -> int:
    """
    Convert ``intent.amount`` (cents) to native units of the source token.

    When the payer bears the corridor fees and the intent references a
    quote, the quoted ``estimated_total_fees`` (a decimal token amount) is
    added before conversion. A failed quote lookup is logged and the
    unadjusted amount is used.
    """
    base_value = cents_to_value(intent.amount, token.decimals)
    fees = intent.processing_fees
    if fees is None or fees.charge_bearer is not ChargeBearer.PAYER or not fees.quote_id:
        return base_value
    if quote_service is None:
        logger.warning(
            "Quote %s referenced but no quote service configured; using unadjusted amount",
            fees.quote_id,
        )
        return base_value

    try:
        quote = await quote_service.get_effective_quote(fees.quote_id, intent.destination.to_account)
        corridor_fees = _estimated_total_fees(quote)
        total = Decimal(intent.amount) / 100 + corridor_fees
        gross = amount_to_value(amount=total, decimals=token.decimals)
    except Exception as exc:
        logger.warning(
            "Failed to adjust amount for corridor fees (quote %s): %s. Using original amount.",
            fees.quote_id,
            exc,
        )
        return base_value

    logger.info(
        "Adjusted payment amount for corridor fees: %s cents + %s %s = %s native units",
        intent.amount,
        corridor_fees,
        token.symbol,
        gross,
    )
    return gross


# ---------------------------------------------------------------------------
# Payload builder
# ---------------------------------------------------------------------------

async def build_payment_authorization_payload(
    intent: IntentLike,
    *,
    quote_service: Optional[QuoteService] = None,
    nonce: Optional[int] = None,
    deadline: Optional[int] = None,
    nonce_source: Optional[NonceSource] = None,
    now: Optional[int] = None,
) -> EIP712Payload:
    """
    Build the Permit2 batch-witness typed data authorizing ``intent``.

    Args:
        intent: PaymentIntent or a mapping validated into one
        quote_service: Corridor quote lookup used when the payer bears
            corridor fees (see ``resolve_gross_amount``)
        nonce: Permit2 nonce. Falls back to
            ``intent.authorizations.permit2_permit.nonce``, then ``nonce_source``.
        deadline: Permit deadline. Falls back to ``intent.expiration_date``,
            then ``now + 3600``.
        nonce_source: Callable producing a fresh nonce; a process-wide
            monotonic millisecond clock when omitted.
        now: Current unix time, for deterministic defaults in tests

    Returns:
        EIP712Payload: ``domain`` (Permit2, no version), ``types`` and
        ``values`` ready for ``sign_typed_data``.

    Raises:
        UnsupportedNetworkOrToken: Source or destination not in the registry
        MissingRequiredField: An address field is missing
        InvalidAddress: An address field is not a valid address
        AmountReconciliationError: The fee legs do not add up

    Example::

        payload = await build_payment_authorization_payload(intent, nonce=1, deadline=1_900_000_000)
        payload.values["permitted"]  # [payee leg, operator leg, gateway leg]
    """
    intent = resolve_intent_dates(intent, now)

    source_network = get_network(intent.source.network_id)
    source_token = get_token(intent.source.payment_token, intent.source.network_id)
    destination_network = get_network(intent.destination.network_id)
    destination_token = get_token(intent.destination.payment_token, intent.destination.network_id)

    gross = await resolve_gross_amount(intent, source_token, quote_service)
    split = split_fees(gross, intent.operator_data.fee_bps)

    operator_data = intent.operator_data
    operator = checksum_address(operator_data.operator, "operator_data.operator")
    operator_id = operator_data.id or "0x" + keccak(text=operator_data.operator).hex()

    expires_at = intent.expiration_date
    witness = PaymentIntentWitness(
        payment_type=intent.payment_type.witness_code,
        operator_data=WitnessOperatorData(
            operator_id=operator_id,
            operator=operator,
            treasury_account=checksum_address(operator_data.treasury, "operator_data.treasury"),
            fee=operator_data.fee_bps,
        ),
        amount=gross,
        source=WitnessDomain(
            account=checksum_address(intent.source.from_account, "source.from_account"),
            network_id=source_network.chain_id,
            payment_token=Web3.to_checksum_address(source_token.address),
        ),
        destination=WitnessDomain(
            account=checksum_address(intent.destination.to_account, "destination.to_account"),
            network_id=destination_network.chain_id,
            payment_token=Web3.to_checksum_address(destination_token.address),
        ),
        processing_date=intent.processing_date,
        expires_at=expires_at,
    )

    message = PermitBatchWitnessMessage(
        permitted=split.as_permitted(source_token.address),
        spender=Web3.to_checksum_address(source_network.gateway_address),
        nonce=await _resolve_nonce(intent, nonce, nonce_source),
        deadline=int(deadline) if deadline is not None else expires_at,
        witness=witness,
    )

    domain = {
        "name": PERMIT2_DOMAIN_NAME,
        "chainId": source_network.chain_id,
        "verifyingContract": PERMIT2_ADDRESS,
    }
    logger.debug(
        "Built Permit2 payload: chain=%s nonce=%s deadline=%s legs=%s/%s/%s",
        source_network.chain_id,
        message.nonce,
        message.deadline,
        split.payee,
        split.operator_fee,
        split.gateway_fee,
    )
    return EIP712Payload(
        domain=domain,
        types=permit2_witness_types(),
        values=message.to_dict(),
        primary_type=PERMIT2_WITNESS_PRIMARY_TYPE,
    )


async def sign_payment_intent(intent: IntentLike, signer: Any, **builder_kwargs) -> Authorizations:
    """
    Build and sign the Permit2 authorization for ``intent``.

    Payload construction errors (unknown network or token, missing field,
    reconciliation failure) are raised unchanged before the signer is
    invoked. Everything that fails afterwards surfaces as ``SigningFailed``.

    Returns:
        Authorizations with ``permit2_permit`` filled in and any existing
        ``initial_permit`` preserved.
    """
    intent = coerce_payment_intent(intent)
    payload = await build_payment_authorization_payload(intent, **builder_kwargs)

    try:
        signature = await sign_typed_data(signer, payload.domain, payload.types, payload.values)
    except SigningFailed as exc:
        cause = exc.__cause__ or exc
        raise SigningFailed(f"Failed to sign payment intent: {cause}") from cause

    return Authorizations(
        permit2_permit=PermitAuthorization(
            signature=signature,
            nonce=str(payload.values["nonce"]),
            deadline=int(payload.values["deadline"]),
        ),
        initial_permit=intent.authorizations.initial_permit,
    )
