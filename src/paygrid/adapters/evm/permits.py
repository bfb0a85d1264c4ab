"""
Legacy single-token permits (EIP-2612 and DAI-style).

Tokens that support an approval-by-signature scheme can grant Permit2 its
allowance without an on-chain ``approve`` transaction. Which scheme a token
uses is a static per-network property (see ``constants.PermitVariant``):

- ``EIP2612``: ``Permit(owner, spender, value, nonce, deadline)``; domain
  name and version are read from the token contract
- ``DAI``: ``Permit(holder, spender, nonce, expiry, allowed)``; version "1"
- ``REGULAR``: no signature path; an on-chain approval is required

The permit nonce is read from the token's ``nonces(owner)`` accessor, or
``getNonce(owner)`` on tokens that use the alternate name.
"""

import logging
from typing import Any, Optional, Tuple

from web3 import Web3

from .constants import (
    MAX_UINT256,
    PERMIT2_ADDRESS,
    PermitVariant,
    checksum_address,
    get_network,
    get_token,
)
from .ledger import LedgerReader, first_successful
from .signers import sign_typed_data
from .standards import (
    DaiPermitMessage,
    EIP2612PermitMessage,
    EIP712Payload,
    dai_permit_types,
    eip2612_permit_types,
)
from ...engine.exceptions import (
    NonceUnavailable,
    PermitNotSupported,
    SigningFailed,
    UnsupportedNetworkOrToken,
)
from ...schemas.intents import PermitAuthorization

logger = logging.getLogger(__name__)

FALLBACK_TOKEN_NAME = "Unknown Token"
FALLBACK_TOKEN_VERSION = "1"
DAI_PERMIT_VERSION = "1"


# ---------------------------------------------------------------------------
# Variant resolution
# ---------------------------------------------------------------------------

def get_permit_variant(symbol: str, network: str) -> PermitVariant:
    """Return the permit variant of ``symbol`` on ``network``; REGULAR when the pair is not configured."""
    try:
        return get_token(symbol, network).permit_variant
    except UnsupportedNetworkOrToken:
        return PermitVariant.REGULAR


def is_permit_supported(symbol: str, network: str) -> bool:
    return get_permit_variant(symbol, network) is not PermitVariant.REGULAR


# ---------------------------------------------------------------------------
# On-chain reads
# ---------------------------------------------------------------------------

async def get_token_nonce(ledger: LedgerReader, token: str, owner: str) -> int:
    """
    Read the current permit nonce of ``owner`` on ``token``.

    Tries ``nonces(address)`` first, then ``getNonce(address)``.

    Raises:
        NonceUnavailable: If neither accessor answers.
    """
    owner = checksum_address(owner, "owner")
    probes = [
        lambda: ledger.read_view_call(token, "nonces(address)", [owner]),
        lambda: ledger.read_view_call(token, "getNonce(address)", [owner]),
    ]
    try:
        nonce = await first_successful(probes)
    except Exception as exc:
        raise NonceUnavailable(token, owner, str(exc)) from exc
    return int(nonce)


async def _read_string(ledger: LedgerReader, token: str, signature: str, fallback: str) -> str:
    try:
        value = await ledger.read_view_call(token, signature, [])
    except Exception as exc:
        logger.warning("%s unavailable on %s (%s); using %r", signature, token, exc, fallback)
        return fallback
    if isinstance(value, str) and value.strip():
        return value.strip()
    logger.warning("%s returned an empty value on %s; using %r", signature, token, fallback)
    return fallback


async def get_token_name_and_version(ledger: LedgerReader, token: str) -> Tuple[str, str]:
    """
    Read the EIP-712 domain name and version of a token.

    ``version()`` is optional in ERC-20 and missing on many tokens; failures
    fall back to "Unknown Token" and "1".
    """
    name = await _read_string(ledger, token, "name()", FALLBACK_TOKEN_NAME)
    version = await _read_string(ledger, token, "version()", FALLBACK_TOKEN_VERSION)
    return name, version


# ---------------------------------------------------------------------------
# Payload builder
# ---------------------------------------------------------------------------

async def get_token_permit_payload(
    symbol: str,
    network: str,
    owner: str,
    ledger: LedgerReader,
    *,
    deadline: int,
    value: Optional[int] = None,
    nonce: Optional[int] = None,
    spender: Optional[str] = None,
) -> EIP712Payload:
    """
    Build the legacy permit typed data for ``symbol`` on ``network``.

    Args:
        symbol: Token symbol (USDC, DAI, ...)
        network: Registry network key
        owner: Token holder granting the allowance
        ledger: Read-only ledger used for nonce, name and version
        deadline: Unix timestamp (``expiry`` for DAI-style permits)
        value: Allowance for EIP-2612 permits; unlimited when omitted
        nonce: Permit nonce; read from the token when omitted
        spender: Allowance recipient; the Permit2 contract when omitted

    Returns:
        EIP712Payload with primary type ``Permit``

    Raises:
        UnsupportedNetworkOrToken: If the pair is not in the registry
        PermitNotSupported: If the token has no permit on this network
        NonceUnavailable: If the nonce must be read and cannot be
        InvalidAddress: If ``owner`` or ``spender`` is malformed
    """
    network_config = get_network(network)
    token = get_token(symbol, network)
    if token.permit_variant is PermitVariant.REGULAR:
        raise PermitNotSupported(token.symbol, network_config.key)

    token_address = Web3.to_checksum_address(token.address)
    owner = checksum_address(owner, "owner")
    spender = checksum_address(spender or PERMIT2_ADDRESS, "spender")
    if nonce is None:
        nonce = await get_token_nonce(ledger, token_address, owner)

    if token.permit_variant is PermitVariant.DAI:
        name = await _read_string(ledger, token_address, "name()", FALLBACK_TOKEN_NAME)
        version = DAI_PERMIT_VERSION
        types = dai_permit_types()
        message: Any = DaiPermitMessage(
            holder=owner,
            spender=spender,
            nonce=int(nonce),
            expiry=int(deadline),
            allowed=True,
        )
    else:
        name, version = await get_token_name_and_version(ledger, token_address)
        types = eip2612_permit_types()
        message = EIP2612PermitMessage(
            owner=owner,
            spender=spender,
            value=MAX_UINT256 if value is None else int(value),
            nonce=int(nonce),
            deadline=int(deadline),
        )

    domain = {
        "name": name,
        "version": version,
        "chainId": network_config.chain_id,
        "verifyingContract": token_address,
    }
    return EIP712Payload(domain=domain, types=types, values=message.to_dict(), primary_type="Permit")


async def generate_token_permit(
    symbol: str,
    network: str,
    owner: str,
    signer: Any,
    ledger: LedgerReader,
    *,
    deadline: int,
    value: Optional[int] = None,
    nonce: Optional[int] = None,
    spender: Optional[str] = None,
) -> PermitAuthorization:
    """
    Build and sign a legacy permit.

    Returns:
        PermitAuthorization carrying the signature, nonce and deadline; ready
        to be attached as ``authorizations.initial_permit``.

    Raises:
        PermitNotSupported, NonceUnavailable, UnsupportedNetworkOrToken: From payload construction
        SigningFailed: If the signer fails or the user rejects the request
    """
    payload = await get_token_permit_payload(
        symbol,
        network,
        owner,
        ledger,
        deadline=deadline,
        value=value,
        nonce=nonce,
        spender=spender,
    )
    try:
        signature = await sign_typed_data(signer, payload.domain, payload.types, payload.values)
    except SigningFailed as exc:
        if str(exc).startswith("User rejected"):
            raise SigningFailed("User rejected the permit signature request") from exc
        raise SigningFailed(f"Failed to sign token permit: {exc.__cause__ or exc}") from exc

    return PermitAuthorization(
        signature=signature,
        nonce=str(payload.values["nonce"]),
        deadline=int(deadline),
    )
