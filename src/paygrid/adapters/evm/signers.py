"""
EIP-712 Signing Facade

Normalizes signer capabilities to a single
``sign_typed_data(signer, domain, types, values) -> "0x" + 130 hex`` contract.

A signer may expose either (or both) of:

- ``sign_typed_data(domain, types, values)``: native structured signing
  (wallets, ``LocalAccount``)
- ``sign_raw_message(digest)``: signs a 32-byte digest as-is

When only the raw capability is present, the EIP-712 digest
``keccak256(0x19 0x01 || domainSeparator || structHash)`` is computed here
and handed to the signer. Both paths yield byte-identical signatures.
"""

import inspect
import logging
from typing import Any, Dict, List, Protocol, Union, runtime_checkable

from eth_abi import encode
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import keccak

from ...engine.exceptions import SigningFailed

logger = logging.getLogger(__name__)


SignatureLike = Union[bytes, str, Any]

# Canonical EIP712Domain member order.
_EIP712_DOMAIN_FIELDS = (
    ("name", "string"),
    ("version", "string"),
    ("chainId", "uint256"),
    ("verifyingContract", "address"),
    ("salt", "bytes32"),
)

_USER_REJECTION_MARKERS = ("user rejected", "user denied", "rejected by user", "action_rejected")


@runtime_checkable
class ExternalSigner(Protocol):
    """Minimal signer surface. Methods may be sync or async."""

    @property
    def address(self) -> str:
        ...


# ---------------------------------------------------------------------------
# Digest helpers
# ---------------------------------------------------------------------------

def eip712_domain_type(domain: Dict[str, Any]) -> List[Dict[str, str]]:
    """Build the ``EIP712Domain`` type from the keys present in ``domain``, in canonical order."""
    return [{"name": name, "type": typ} for name, typ in _EIP712_DOMAIN_FIELDS if name in domain]


def _strip_domain_type(types: Dict[str, List[Dict[str, str]]]) -> Dict[str, List[Dict[str, str]]]:
    return {name: fields for name, fields in types.items() if name != "EIP712Domain"}


def hash_domain(domain: Dict[str, Any]) -> bytes:
    """Return the 32-byte EIP-712 domain separator."""
    fields = eip712_domain_type(domain)
    type_string = "EIP712Domain(" + ",".join(f"{f['type']} {f['name']}" for f in fields) + ")"
    abi_types = ["bytes32"]
    abi_values = [keccak(text=type_string)]
    for f in fields:
        value = domain[f["name"]]
        if f["type"] == "string":
            abi_types.append("bytes32")
            abi_values.append(keccak(text=value))
        elif f["type"] == "bytes32" and isinstance(value, str):
            abi_types.append("bytes32")
            abi_values.append(bytes.fromhex(value[2:] if value.startswith("0x") else value))
        else:
            abi_types.append(f["type"])
            abi_values.append(int(value) if f["type"] == "uint256" else value)
    return keccak(encode(abi_types, abi_values))


def hash_struct(domain: Dict[str, Any], types: Dict[str, Any], values: Dict[str, Any]) -> bytes:
    """Return the 32-byte struct hash of ``values`` under its primary type."""
    return _encode(domain, types, values).body


def typed_data_digest(domain: Dict[str, Any], types: Dict[str, Any], values: Dict[str, Any]) -> bytes:
    """Return ``keccak256(0x19 0x01 || domainSeparator || structHash)``."""
    signable = _encode(domain, types, values)
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def _encode(domain, types, values):
    return encode_typed_data(
        domain_data=domain,
        message_types=_strip_domain_type(types),
        message_data=values,
    )


# ---------------------------------------------------------------------------
# Signature normalization
# ---------------------------------------------------------------------------

def normalize_signature(result: SignatureLike) -> str:
    """
    Convert a signer result to a ``0x``-prefixed 65-byte hex string.

    Accepts raw bytes, hex strings (with or without ``0x``) and objects
    exposing a ``signature`` attribute (``SignedMessage``).
    """
    if hasattr(result, "signature") and not isinstance(result, (bytes, str)):
        result = result.signature

    if isinstance(result, (bytes, bytearray)):
        raw = bytes(result)
    elif isinstance(result, str):
        hex_part = result[2:] if result.lower().startswith("0x") else result
        try:
            raw = bytes.fromhex(hex_part)
        except ValueError as exc:
            raise ValueError(f"Signature is not valid hex: {result!r}") from exc
    else:
        raise TypeError(f"Unsupported signature type: {type(result).__name__}")

    if len(raw) != 65:
        raise ValueError(f"Signature must be 65 bytes (r||s||v), got {len(raw)}")
    return "0x" + raw.hex()


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


def _is_user_rejection(exc: BaseException) -> bool:
    code = getattr(exc, "code", None)
    if code in (4001, "ACTION_REJECTED"):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _USER_REJECTION_MARKERS)


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------

async def sign_typed_data(
    signer: Any,
    domain: Dict[str, Any],
    types: Dict[str, List[Dict[str, str]]],
    values: Dict[str, Any],
) -> str:
    """
    Sign EIP-712 typed data with any supported signer.

    Args:
        signer: Object exposing ``sign_typed_data`` and/or ``sign_raw_message``
        domain: EIP-712 domain (only the keys present are hashed)
        types: Struct definitions, with or without ``EIP712Domain``
        values: Message for the primary type

    Returns:
        str: 0x-prefixed 65-byte signature (r || s || v)

    Raises:
        SigningFailed: On any signer error, user rejection included. The
            original exception is chained.

    Example::

        signer = LocalAccountSigner(private_key)
        signature = await sign_typed_data(signer, payload.domain, payload.types, payload.values)
    """
    message_types = _strip_domain_type(types)
    try:
        native = getattr(signer, "sign_typed_data", None)
        if callable(native):
            result = await _maybe_await(native(domain, message_types, values))
        else:
            raw_signer = getattr(signer, "sign_raw_message", None)
            if not callable(raw_signer):
                raise TypeError(
                    f"{type(signer).__name__} exposes neither sign_typed_data nor sign_raw_message"
                )
            logger.debug("Signer lacks sign_typed_data; signing the EIP-712 digest directly")
            digest = typed_data_digest(domain, message_types, values)
            result = await _maybe_await(raw_signer(digest))
        return normalize_signature(result)
    except SigningFailed:
        raise
    except Exception as exc:
        if _is_user_rejection(exc):
            raise SigningFailed(f"User rejected the signature request: {exc}") from exc
        raise SigningFailed(f"Failed to sign typed data: {exc}") from exc


# ---------------------------------------------------------------------------
# Local signer
# ---------------------------------------------------------------------------

class LocalAccountSigner:
    """
    Private-key signer backed by ``eth_account``.

    Exposes both signer capabilities so it can drive either path of
    :func:`sign_typed_data`.

    Example::

        signer = LocalAccountSigner("0x4c0883a6...")
        signer.address  # checksummed
    """

    def __init__(self, private_key: str):
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    def sign_typed_data(self, domain: Dict[str, Any], types: Dict[str, Any], values: Dict[str, Any]) -> bytes:
        signed = self._account.sign_typed_data(
            domain_data=domain,
            message_types=_strip_domain_type(types),
            message_data=values,
        )
        return bytes(signed.signature)

    def sign_raw_message(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest without any EIP-191 prefix."""
        if len(digest) != 32:
            raise ValueError(f"digest must be 32 bytes, got {len(digest)}")
        return bytes(self._account.unsafe_sign_hash(digest).signature)


class RawOnlySigner:
    """Wraps a signer and hides its native ``sign_typed_data`` capability."""

    def __init__(self, signer: Any):
        self._signer = signer

    @property
    def address(self) -> str:
        return self._signer.address

    def sign_raw_message(self, digest: bytes):
        return self._signer.sign_raw_message(digest)
