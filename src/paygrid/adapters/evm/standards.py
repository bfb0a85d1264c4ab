from dataclasses import dataclass, field
from typing import Dict, Any, List

from .signers import eip712_domain_type, typed_data_digest


TypeSchema = Dict[str, List[Dict[str, str]]]


# -----------------------------
# Permit2: PermitBatchWitnessTransferFrom with a PaymentIntent witness
# -----------------------------

PERMIT2_WITNESS_PRIMARY_TYPE = "PermitBatchWitnessTransferFrom"


def permit2_witness_types() -> TypeSchema:
    """
    Type schema of the Permit2 batch transfer carrying a PaymentIntent witness.

    Field order inside every struct is part of the type hash and must not
    change: the gateway contract recomputes the same hash on-chain.
    """
    return {
        "PermitBatchWitnessTransferFrom": [
            {"name": "permitted", "type": "TokenPermissions[]"},
            {"name": "spender", "type": "address"},
            {"name": "nonce", "type": "uint256"},
            {"name": "deadline", "type": "uint256"},
            {"name": "witness", "type": "PaymentIntent"},
        ],
        "TokenPermissions": [
            {"name": "token", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "PaymentIntent": [
            {"name": "payment_type", "type": "uint8"},
            {"name": "operator_data", "type": "OperatorData"},
            {"name": "amount", "type": "uint256"},
            {"name": "source", "type": "Domain"},
            {"name": "destination", "type": "Domain"},
            {"name": "processing_date", "type": "uint256"},
            {"name": "expires_at", "type": "uint256"},
        ],
        "OperatorData": [
            {"name": "operatorId", "type": "bytes32"},
            {"name": "operator", "type": "address"},
            {"name": "treasury_account", "type": "address"},
            {"name": "fee", "type": "uint256"},
        ],
        "Domain": [
            {"name": "account", "type": "address"},
            {"name": "network_id", "type": "uint256"},
            {"name": "payment_token", "type": "address"},
        ],
    }


@dataclass
class WitnessDomain:
    """Source or destination leg of the witness: who, which chain, which token."""
    account: str
    network_id: int
    payment_token: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "network_id": self.network_id,
            "payment_token": self.payment_token,
        }


@dataclass
class WitnessOperatorData:
    """
    Operator section of the witness.

    Attributes:
        operator_id: bytes32 hex string (0x-prefixed, 64 hex chars)
        operator: Operator address
        treasury_account: Address receiving the operator fee leg
        fee: Operator fee rate in basis points
    """
    operator_id: str
    operator: str
    treasury_account: str
    fee: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operatorId": self.operator_id,
            "operator": self.operator,
            "treasury_account": self.treasury_account,
            "fee": self.fee,
        }


@dataclass
class PaymentIntentWitness:
    """Witness struct binding the Permit2 transfer batch to a payment intent."""
    payment_type: int
    operator_data: WitnessOperatorData
    amount: int
    source: WitnessDomain
    destination: WitnessDomain
    processing_date: int
    expires_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "payment_type": self.payment_type,
            "operator_data": self.operator_data.to_dict(),
            "amount": self.amount,
            "source": self.source.to_dict(),
            "destination": self.destination.to_dict(),
            "processing_date": self.processing_date,
            "expires_at": self.expires_at,
        }


@dataclass
class PermitBatchWitnessMessage:
    """
    Message of the ``PermitBatchWitnessTransferFrom`` primary type.

    Attributes:
        permitted: TokenPermissions legs (payee, operator, gateway)
        spender: Gateway proxy allowed to pull the batch
        nonce: Permit2 unordered nonce
        deadline: Unix timestamp after which the permit is void
        witness: Payment intent witness
    """
    permitted: List[Dict[str, Any]]
    spender: str
    nonce: int
    deadline: int
    witness: PaymentIntentWitness

    def to_dict(self) -> Dict[str, Any]:
        return {
            "permitted": [dict(leg) for leg in self.permitted],
            "spender": self.spender,
            "nonce": self.nonce,
            "deadline": self.deadline,
            "witness": self.witness.to_dict(),
        }


# -----------------------------
# Legacy single-token permits
# -----------------------------

def eip2612_permit_types() -> TypeSchema:
    return {
        "Permit": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
            {"name": "value", "type": "uint256"},
            {"name": "nonce", "type": "uint256"},
            {"name": "deadline", "type": "uint256"},
        ]
    }


def dai_permit_types() -> TypeSchema:
    return {
        "Permit": [
            {"name": "holder", "type": "address"},
            {"name": "spender", "type": "address"},
            {"name": "nonce", "type": "uint256"},
            {"name": "expiry", "type": "uint256"},
            {"name": "allowed", "type": "bool"},
        ]
    }


@dataclass
class EIP2612PermitMessage:
    owner: str
    spender: str
    value: int
    nonce: int
    deadline: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "spender": self.spender,
            "value": self.value,
            "nonce": self.nonce,
            "deadline": self.deadline,
        }


@dataclass
class DaiPermitMessage:
    """
    DAI-style permit message.

    DAI approvals are all-or-nothing: ``allowed=True`` grants an unlimited
    allowance, there is no ``value`` field.
    """
    holder: str
    spender: str
    nonce: int
    expiry: int
    allowed: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "holder": self.holder,
            "spender": self.spender,
            "nonce": self.nonce,
            "expiry": self.expiry,
            "allowed": self.allowed,
        }


# -----------------------------
# Assembled payload
# -----------------------------

@dataclass
class EIP712Payload:
    """
    Typed-data payload ready to be signed.

    ``domain``, ``types`` and ``values`` are the three arguments of
    ``sign_typed_data``; ``types`` never contains ``EIP712Domain``, which
    ``to_dict()`` derives from the domain keys.

    Attributes:
        domain: EIP-712 domain
        types: Struct definitions (without EIP712Domain)
        values: Message for ``primary_type``
        primary_type: Name of the top-level struct
    """
    domain: Dict[str, Any]
    types: TypeSchema
    values: Dict[str, Any]
    primary_type: str = field(default=PERMIT2_WITNESS_PRIMARY_TYPE)

    def to_dict(self) -> Dict[str, Any]:
        """Return an ``eth_signTypedData_v4`` compatible message.

        Layout: { types, primaryType, domain, message }.
        """
        return {
            "types": {"EIP712Domain": eip712_domain_type(self.domain), **self.types},
            "primaryType": self.primary_type,
            "domain": dict(self.domain),
            "message": self.values,
        }

    def digest(self) -> bytes:
        """Return the 32-byte EIP-712 digest of this payload."""
        return typed_data_digest(self.domain, self.types, self.values)
