from .constants import (
    PERMIT2_ADDRESS,
    GATEWAY_FEE_BPS,
    MAX_UINT256,
    NetworkConfig,
    TokenConfig,
    PermitVariant,
    get_network,
    get_token,
    get_rpc_url,
    is_token_supported_on_network,
    cents_to_value,
    amount_to_value,
    value_to_amount,
    checksum_address,
)
from .fees import FeeSplit, split_fees
from .standards import EIP712Payload
from .signers import (
    LocalAccountSigner,
    RawOnlySigner,
    sign_typed_data,
    typed_data_digest,
    hash_domain,
    hash_struct,
)
from .ledger import LedgerReader, Web3LedgerReader, first_successful
from .permits import (
    get_permit_variant,
    is_permit_supported,
    get_token_nonce,
    get_token_name_and_version,
    get_token_permit_payload,
    generate_token_permit,
)
from .signatures import (
    MonotonicNonceSource,
    build_payment_authorization_payload,
    resolve_intent_dates,
    sign_payment_intent,
)

__all__ = [
    "PERMIT2_ADDRESS",
    "GATEWAY_FEE_BPS",
    "MAX_UINT256",
    "NetworkConfig",
    "TokenConfig",
    "PermitVariant",
    "get_network",
    "get_token",
    "get_rpc_url",
    "is_token_supported_on_network",
    "cents_to_value",
    "amount_to_value",
    "value_to_amount",
    "checksum_address",
    "FeeSplit",
    "split_fees",
    "EIP712Payload",
    "LocalAccountSigner",
    "RawOnlySigner",
    "sign_typed_data",
    "typed_data_digest",
    "hash_domain",
    "hash_struct",
    "LedgerReader",
    "Web3LedgerReader",
    "first_successful",
    "get_permit_variant",
    "is_permit_supported",
    "get_token_nonce",
    "get_token_name_and_version",
    "get_token_permit_payload",
    "generate_token_permit",
    "MonotonicNonceSource",
    "build_payment_authorization_payload",
    "resolve_intent_dates",
    "sign_payment_intent",
]
