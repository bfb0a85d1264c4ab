from .evm import (
    EIP712Payload,
    LocalAccountSigner,
    PermitVariant,
    build_payment_authorization_payload,
    sign_payment_intent,
    generate_token_permit,
    get_token_permit_payload,
)

__all__ = [
    "EIP712Payload",
    "LocalAccountSigner",
    "PermitVariant",
    "build_payment_authorization_payload",
    "sign_payment_intent",
    "generate_token_permit",
    "get_token_permit_payload",
]
