"""
Permit2 payment authorization tests.

Covers the batch-witness payload builder (domain, fee legs, witness
defaults, nonce precedence, corridor fee adjustment) and
``sign_payment_intent``.
"""

import logging
from unittest.mock import AsyncMock, Mock

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import keccak
from web3 import Web3

from paygrid.adapters.evm.constants import PERMIT2_ADDRESS, ZERO_ADDRESS, get_network, get_token
from paygrid.adapters.evm.signatures import (
    DEFAULT_PROCESSING_DELAY,
    DEFAULT_VALIDITY,
    MonotonicNonceSource,
    build_payment_authorization_payload,
    coerce_payment_intent,
    resolve_gross_amount,
    resolve_intent_dates,
    sign_payment_intent,
)
from paygrid.adapters.evm.signers import LocalAccountSigner, RawOnlySigner
from paygrid.adapters.evm.standards import PERMIT2_WITNESS_PRIMARY_TYPE, permit2_witness_types
from paygrid.engine.exceptions import (
    InvalidAddress,
    MissingRequiredField,
    PaygridError,
    SigningFailed,
    UnknownNetwork,
    UnknownToken,
)
from paygrid.schemas.intents import Authorizations, PermitAuthorization

from mocks import (
    FIXED_DEADLINE,
    FIXED_EXPIRATION,
    FIXED_NOW,
    FailingSigner,
    MockQuoteService,
    OPERATOR_ADDRESS,
    PAYEE_ADDRESS,
    PAYER_ADDRESS,
    PAYER_PRIVATE_KEY,
    TREASURY_ADDRESS,
    USDC_BASE,
    create_mock_intent,
    create_mock_intent_data,
    create_payer_bearer_intent,
    quote_with_fees,
)


async def _build(intent=None, **kwargs):
    kwargs.setdefault("now", FIXED_NOW)
    kwargs.setdefault("nonce", 42)
    return await build_payment_authorization_payload(intent or create_mock_intent(), **kwargs)


class TestPayloadShape:

    @pytest.mark.asyncio
    async def test_domain_has_no_version(self):
        payload = await _build()
        assert payload.domain == {"name": "Permit2", "chainId": 8453, "verifyingContract": PERMIT2_ADDRESS}
        assert payload.primary_type == PERMIT2_WITNESS_PRIMARY_TYPE
        assert payload.types == permit2_witness_types()
        assert "EIP712Domain" not in payload.types

    @pytest.mark.asyncio
    async def test_fee_legs(self):
        payload = await _build()
        # 1000 cents of USDC = 10_000_000 units; 50 bps operator, 10 bps gateway
        assert [leg["amount"] for leg in payload.values["permitted"]] == [9_940_000, 50_000, 10_000]
        assert all(leg["token"] == USDC_BASE for leg in payload.values["permitted"])
        assert payload.values["witness"]["amount"] == 10_000_000

    @pytest.mark.asyncio
    async def test_spender_is_source_gateway(self):
        payload = await _build()
        assert payload.values["spender"] == Web3.to_checksum_address(get_network("BASE").gateway_address)

    @pytest.mark.asyncio
    async def test_spender_is_zero_address_without_gateway(self):
        intent = create_mock_intent(
            source={"from_account": PAYER_ADDRESS, "network_id": "ETHEREUM", "payment_token": "USDC"}
        )
        payload = await _build(intent)
        assert payload.values["spender"] == ZERO_ADDRESS
        assert payload.domain["chainId"] == 1

    @pytest.mark.asyncio
    async def test_witness(self):
        payload = await _build(deadline=FIXED_DEADLINE)
        witness = payload.values["witness"]

        assert witness["payment_type"] == 0
        assert witness["operator_data"] == {
            "operatorId": "0x" + keccak(text=OPERATOR_ADDRESS).hex(),
            "operator": OPERATOR_ADDRESS,
            "treasury_account": TREASURY_ADDRESS,
            "fee": 50,
        }
        assert witness["source"] == {"account": PAYER_ADDRESS, "network_id": 8453, "payment_token": USDC_BASE}
        assert witness["destination"] == {"account": PAYEE_ADDRESS, "network_id": 8453, "payment_token": USDC_BASE}
        assert witness["processing_date"] == FIXED_NOW + DEFAULT_PROCESSING_DELAY
        assert witness["expires_at"] == FIXED_EXPIRATION
        assert payload.values["deadline"] == FIXED_DEADLINE
        assert payload.values["nonce"] == 42

    @pytest.mark.asyncio
    async def test_explicit_operator_id_and_dates(self):
        operator_id = "0x" + "ab" * 32
        intent = create_mock_intent(
            payment_type="recurring",
            operator_data={"id": operator_id, "operator": OPERATOR_ADDRESS, "treasury": TREASURY_ADDRESS},
            processing_date=FIXED_NOW + 60,
        )
        witness = (await _build(intent)).values["witness"]
        assert witness["payment_type"] == 1
        assert witness["operator_data"]["operatorId"] == operator_id
        assert witness["operator_data"]["fee"] == 0
        assert witness["processing_date"] == FIXED_NOW + 60

    @pytest.mark.asyncio
    async def test_defaults_without_expiration(self):
        intent = create_mock_intent(expiration_date=None)
        payload = await _build(intent)
        assert payload.values["witness"]["expires_at"] == FIXED_NOW + DEFAULT_VALIDITY
        assert payload.values["deadline"] == FIXED_NOW + DEFAULT_VALIDITY

    def test_resolve_intent_dates(self):
        intent = create_mock_intent(expiration_date=None)
        resolved = resolve_intent_dates(intent, now=FIXED_NOW)
        assert resolved.processing_date == FIXED_NOW + DEFAULT_PROCESSING_DELAY
        assert resolved.expiration_date == FIXED_NOW + DEFAULT_VALIDITY
        assert intent.processing_date is None and intent.expiration_date is None

        explicit = create_mock_intent(processing_date=FIXED_NOW + 60)
        assert resolve_intent_dates(explicit, now=FIXED_NOW) is explicit

    @pytest.mark.asyncio
    async def test_deadline_defaults_to_expiration(self):
        payload = await _build()
        assert payload.values["deadline"] == FIXED_EXPIRATION

    @pytest.mark.asyncio
    async def test_accepts_mapping_and_is_deterministic(self):
        first = await _build(create_mock_intent_data())
        second = await _build(create_mock_intent())
        assert first.to_dict() == second.to_dict()
        assert first.digest() == second.digest()


class TestNonces:

    @pytest.mark.asyncio
    async def test_explicit_nonce_wins(self):
        source = Mock(return_value=5)
        intent = create_mock_intent(authorizations={"permit2_permit": {"nonce": "9", "deadline": FIXED_DEADLINE}})
        payload = await _build(intent, nonce=1, nonce_source=source)
        assert payload.values["nonce"] == 1
        source.assert_not_called()

    @pytest.mark.asyncio
    async def test_intent_nonce_before_source(self):
        source = Mock(return_value=5)
        intent = create_mock_intent(authorizations={"permit2_permit": {"nonce": "0", "deadline": FIXED_DEADLINE}})
        payload = await _build(intent, nonce=None, nonce_source=source)
        assert payload.values["nonce"] == 0
        source.assert_not_called()

    @pytest.mark.asyncio
    async def test_nonce_source(self):
        payload = await _build(nonce=None, nonce_source=Mock(return_value=5))
        assert payload.values["nonce"] == 5

    @pytest.mark.asyncio
    async def test_async_nonce_source(self):
        payload = await _build(nonce=None, nonce_source=AsyncMock(return_value=77))
        assert payload.values["nonce"] == 77

    def test_monotonic_nonce_source_never_repeats(self):
        source = MonotonicNonceSource(clock=lambda: 1.0)
        assert [source(), source(), source()] == [1000, 1001, 1002]

    def test_monotonic_nonce_source_follows_clock(self):
        ticks = iter([1.0, 5.0])
        source = MonotonicNonceSource(clock=lambda: next(ticks))
        assert source() == 1000
        assert source() == 5000


class TestCorridorFees:

    @pytest.mark.asyncio
    async def test_payer_bears_quoted_fees(self):
        quotes = MockQuoteService(quote_with_fees("0.25"))
        payload = await _build(create_payer_bearer_intent(), quote_service=quotes)
        assert payload.values["witness"]["amount"] == 10_250_000
        assert sum(leg["amount"] for leg in payload.values["permitted"]) == 10_250_000
        assert quotes.calls == [("q_123", PAYEE_ADDRESS)]

    @pytest.mark.asyncio
    async def test_payee_bearer_skips_quote(self):
        quotes = MockQuoteService(quote_with_fees("0.25"))
        intent = create_mock_intent(processing_fees={"charge_bearer": "PAYEE", "quoteId": "q_123"})
        payload = await _build(intent, quote_service=quotes)
        assert payload.values["witness"]["amount"] == 10_000_000
        assert quotes.calls == []

    @pytest.mark.asyncio
    async def test_quote_failure_falls_back(self, caplog):
        quotes = MockQuoteService(RuntimeError("quote expired"))
        with caplog.at_level(logging.WARNING):
            payload = await _build(create_payer_bearer_intent(), quote_service=quotes)
        assert payload.values["witness"]["amount"] == 10_000_000
        assert "quote expired" in caplog.text

    @pytest.mark.asyncio
    async def test_quote_without_fees_falls_back(self):
        quotes = MockQuoteService({"corridor_quotes": []})
        amount = await resolve_gross_amount(create_payer_bearer_intent(), get_token("USDC", "BASE"), quotes)
        assert amount == 10_000_000

    @pytest.mark.asyncio
    async def test_missing_quote_service_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING):
            amount = await resolve_gross_amount(create_payer_bearer_intent(), get_token("USDC", "BASE"))
        assert amount == 10_000_000
        assert "q_123" in caplog.text


class TestValidation:

    @pytest.mark.asyncio
    async def test_unknown_source_network(self):
        intent = create_mock_intent(
            source={"from_account": PAYER_ADDRESS, "network_id": "SOLANA", "payment_token": "USDC"}
        )
        with pytest.raises(UnknownNetwork):
            await _build(intent)

    @pytest.mark.asyncio
    async def test_unknown_destination_token(self):
        intent = create_mock_intent(
            destination={"to_account": PAYEE_ADDRESS, "network_id": "BASE", "payment_token": "EURC"}
        )
        with pytest.raises(UnknownToken):
            await _build(intent)

    def test_missing_nested_field(self):
        data = create_mock_intent_data()
        del data["source"]["from_account"]
        with pytest.raises(MissingRequiredField) as exc_info:
            coerce_payment_intent(data)
        assert exc_info.value.field == "source.from_account"

    @pytest.mark.asyncio
    async def test_empty_account(self):
        intent = create_mock_intent(
            destination={"to_account": "", "network_id": "BASE", "payment_token": "USDC"}
        )
        with pytest.raises(MissingRequiredField, match="destination.to_account"):
            await _build(intent)

    @pytest.mark.asyncio
    async def test_invalid_address(self):
        intent = create_mock_intent(
            destination={"to_account": "0x1234", "network_id": "BASE", "payment_token": "USDC"}
        )
        with pytest.raises(InvalidAddress) as exc_info:
            await _build(intent)
        assert exc_info.value.field == "destination.to_account"
        assert isinstance(exc_info.value, PaygridError)


class TestSignPaymentIntent:

    @pytest.mark.asyncio
    async def test_signature_recovers_to_payer(self):
        initial = PermitAuthorization(signature="0x" + "11" * 65, nonce=3, deadline=FIXED_DEADLINE)
        intent = create_mock_intent().with_authorizations(Authorizations(initial_permit=initial))

        authorizations = await sign_payment_intent(
            intent, LocalAccountSigner(PAYER_PRIVATE_KEY), nonce=42, now=FIXED_NOW
        )

        payload = await _build(intent)
        signable = encode_typed_data(
            domain_data=payload.domain, message_types=payload.types, message_data=payload.values
        )
        permit = authorizations.permit2_permit
        assert Account.recover_message(signable, signature=permit.signature) == PAYER_ADDRESS
        assert permit.nonce == "42"
        assert permit.deadline == FIXED_EXPIRATION
        assert authorizations.initial_permit == initial

    @pytest.mark.asyncio
    async def test_raw_only_signer_matches_native(self):
        signer = LocalAccountSigner(PAYER_PRIVATE_KEY)
        native = await sign_payment_intent(create_mock_intent(), signer, nonce=42, now=FIXED_NOW)
        fallback = await sign_payment_intent(create_mock_intent(), RawOnlySigner(signer), nonce=42, now=FIXED_NOW)
        assert native.permit2_permit.signature == fallback.permit2_permit.signature

    @pytest.mark.asyncio
    async def test_signer_failure(self):
        error = RuntimeError("hardware wallet locked")
        with pytest.raises(SigningFailed) as exc_info:
            await sign_payment_intent(create_mock_intent(), FailingSigner(error), nonce=1, now=FIXED_NOW)
        assert str(exc_info.value) == "Failed to sign payment intent: hardware wallet locked"
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_build_errors_skip_signer(self):
        signer = FailingSigner(RuntimeError("unused"))
        intent = create_mock_intent(
            source={"from_account": PAYER_ADDRESS, "network_id": "SOLANA", "payment_token": "USDC"}
        )
        with pytest.raises(UnknownNetwork):
            await sign_payment_intent(intent, signer, nonce=1, now=FIXED_NOW)
        assert signer.calls == 0
