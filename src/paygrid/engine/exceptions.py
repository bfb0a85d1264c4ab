"""
Exception and Error Definitions Module

Defines the exception hierarchy for payment intent construction, permit
signing, and communication with the Paygrid clearing API. Every exception
inherits from PaygridError so callers can catch the whole family at once.

Exception Hierarchy:
    PaygridError (root)
    ├── ConfigurationError
    ├── UnsupportedNetworkOrToken
    │   ├── UnknownNetwork
    │   └── UnknownToken
    ├── MissingRequiredField
    ├── InvalidAddress
    ├── AmountReconciliationError
    ├── PermitError
    │   ├── PermitNotSupported
    │   └── NonceUnavailable
    ├── SigningFailed
    ├── ApiError
    └── PaymentStatusError
        ├── PollingTimeout
        ├── PaymentFailed
        └── PollingAborted
"""

from typing import Any, Dict, Optional


class PaygridError(Exception):
    """
    Root exception class for all SDK-specific exceptions.

    All custom exceptions inherit from this class to enable
    unified exception handling at the application boundary.
    """
    pass


class ConfigurationError(PaygridError):
    """
    Raised when SDK configuration is missing or invalid.

    This includes scenarios such as:
    - Unknown environment name
    - Timeout or retry count outside the documented range
    - Custom RPC URL for an unsupported network
    """
    pass


class UnsupportedNetworkOrToken(PaygridError):
    """
    Base exception for registry lookup misses.

    Raised when a network key or a (token, network) pair is not present
    in the static registry tables.
    """
    pass


class UnknownNetwork(UnsupportedNetworkOrToken):
    """Raised when a network key is not configured."""

    def __init__(self, network: str):
        self.network = network
        super().__init__(f"Network {network} not configured")


class UnknownToken(UnsupportedNetworkOrToken):
    """Raised when a token is not configured, or not deployed on the given network."""

    def __init__(self, token: str, network: Optional[str] = None):
        self.token = token
        self.network = network
        if network is None:
            super().__init__(f"Token {token} not configured")
        else:
            super().__init__(f"Token {token} not configured for network {network}")


class MissingRequiredField(PaygridError):
    """
    Raised when a field needed to build or submit a payment intent is absent.

    Attributes:
        field: Dotted path of the missing field (e.g. ``source.from_account``)
    """

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Missing required field: {field}")


class InvalidAddress(PaygridError, ValueError):
    """
    Raised when an account or contract address is not a valid 20-byte hex address.

    Attributes:
        field: Dotted path of the offending field (e.g. ``destination.to_account``)
        value: The rejected value
    """

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"{field} is not a valid address: {value!r}")


class AmountReconciliationError(PaygridError):
    """
    Raised when the fee legs of a transfer batch do not add up to the gross amount.

    The split arithmetic makes this unreachable; seeing it means the split
    formula changed without the reconciliation being updated.

    Attributes:
        expected: Gross amount in native token units
        actual: Sum of the payee, operator and gateway legs
    """

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Amount mismatch: total {actual} != original {expected}")


class PermitError(PaygridError):
    """
    Base exception for legacy (single-token) permit construction failures.
    """
    pass


class PermitNotSupported(PermitError):
    """
    Raised when a token has no signature-based approval path on a network.

    The caller must fall back to a standard on-chain ``approve`` transaction.
    """

    def __init__(self, token: str, network: str):
        self.token = token
        self.network = network
        super().__init__(f"Token {token} does not support permit on {network}")


class NonceUnavailable(PermitError):
    """
    Raised when neither ``nonces(owner)`` nor ``getNonce(owner)`` can be read
    from the token contract.
    """

    def __init__(self, token: str, owner: str, reason: Optional[str] = None):
        self.token = token
        self.owner = owner
        message = f"Unable to read permit nonce for owner {owner} on token {token}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SigningFailed(PaygridError):
    """
    Raised when the external signer fails to produce a signature.

    This includes scenarios such as:
    - User rejection in a wallet
    - Disconnected or misconfigured signer
    - Network errors while reading on-chain fields needed for the payload

    The original exception is chained as ``__cause__`` and its message is
    included in this exception's message.
    """
    pass


class ApiError(PaygridError):
    """
    Raised when the Paygrid API answers with a 4xx/5xx status or cannot be reached.

    Attributes:
        status_code: HTTP status code (408 for client-side timeouts)
        body: Raw decoded response body, if any
        request: Snapshot of the request (method, url, payload)
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Any = None,
        request: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        self.body = body
        self.request = request or {}
        super().__init__(message)


class PaymentStatusError(PaygridError):
    """
    Base exception for payment status polling outcomes that are not a success.

    Attributes:
        payment: Last known ``PaymentIntentResponse`` (None if never fetched)
    """

    def __init__(self, message: str, payment: Any = None):
        self.payment = payment
        super().__init__(message)

    @property
    def last_status(self) -> Optional[str]:
        if self.payment is None:
            return None
        status = getattr(self.payment, "status", None)
        return getattr(status, "value", status)


class PollingTimeout(PaymentStatusError):
    """Raised when the payment does not reach a terminal status within the attempt budget."""
    pass


class PaymentFailed(PaymentStatusError):
    """Raised when the payment reaches the FAILED or CANCELLED terminal status."""
    pass


class PollingAborted(PaymentStatusError):
    """Raised when the caller's cancellation signal is set between poll iterations."""
    pass
