"""
EVM Network and Token Registry

Static lookup tables for the networks and stablecoins the Paygrid gateway
routes through, plus the protocol constants that enter signed payloads.
The tables are built once at import time and never mutated afterwards.

Includes helpers for RPC URL resolution (custom override, then the
registry default with an optional infrastructure key from the environment)
and for converting between API cents, human-readable token amounts and
native integer units.
"""

import os
from decimal import Decimal, InvalidOperation, ROUND_FLOOR
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional

import dotenv
from pydantic import BaseModel, ConfigDict, Field
from web3 import Web3

from ...engine.exceptions import (
    InvalidAddress,
    MissingRequiredField,
    UnknownNetwork,
    UnknownToken,
    UnsupportedNetworkOrToken,
)

dotenv.load_dotenv()


# ---------------------------------------------------------------------------
# Protocol constants
# ---------------------------------------------------------------------------

#: Canonical Permit2 deployment (same address on every supported chain).
PERMIT2_ADDRESS: str = "0x000000000022D473030F116dDEE9F6B43aC78BA3"

#: EIP-712 domain name used by Permit2. The batch-witness domain has no version.
PERMIT2_DOMAIN_NAME: str = "Permit2"

#: Fixed gateway fee charged on every payment, in basis points (0.1%).
GATEWAY_FEE_BPS: int = 10

BPS_DENOMINATOR: int = 10_000

MAX_UINT256: int = 2**256 - 1

ZERO_ADDRESS: str = "0x0000000000000000000000000000000000000000"

#: Decimal places of the API amount unit (cents).
CENTS_DECIMALS: int = 2


class PermitVariant(str, Enum):
    """Legacy single-token approval scheme supported by a token on a network."""

    EIP2612 = "EIP2612"
    DAI = "DAI"
    REGULAR = "REGULAR"


# ---------------------------------------------------------------------------
# Config models
# ---------------------------------------------------------------------------

class NetworkConfig(BaseModel):
    """EVM network configuration."""
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Registry key, e.g. BASE")
    name: str = Field(..., description="Lower-case network name used by the API")
    chain_id: int
    gateway_address: str = Field(..., description="Paygrid gateway proxy (Permit2 spender)")
    rpc_url: str = Field(..., description="Default JSON-RPC endpoint (Alchemy base URL)")
    explorer_url: str
    testnet: bool = False


class TokenConfig(BaseModel):
    """Token deployment on a single network."""
    model_config = ConfigDict(frozen=True)

    symbol: str
    network: str
    address: str = Field(..., description="Token contract address")
    decimals: int
    permit_variant: PermitVariant = PermitVariant.REGULAR


# Raw network data. Gateway proxies are only deployed on the mainnets listed;
# every other network carries the zero address.
_NETWORKS_DATA: Dict[str, Dict] = {
    "ETHEREUM": {
        "name": "ethereum",
        "chain_id": 1,
        "gateway_address": ZERO_ADDRESS,
        "rpc_url": "https://eth-mainnet.g.alchemy.com/v2/",
        "explorer_url": "https://etherscan.io",
    },
    "POLYGON": {
        "name": "polygon",
        "chain_id": 137,
        "gateway_address": "0x945366b290db61105B8DbD4D50B1dFDCed7a4342",
        "rpc_url": "https://polygon-mainnet.g.alchemy.com/v2/",
        "explorer_url": "https://polygonscan.com",
    },
    "OPTIMISM": {
        "name": "optimism",
        "chain_id": 10,
        "gateway_address": "0x4B1d5b0aF5AbAe333C8d2CCa2a346e0D5f68C427",
        "rpc_url": "https://opt-mainnet.g.alchemy.com/v2/",
        "explorer_url": "https://optimistic.etherscan.io",
    },
    "ARBITRUM": {
        "name": "arbitrum",
        "chain_id": 42161,
        "gateway_address": "0x4B1d5b0aF5AbAe333C8d2CCa2a346e0D5f68C427",
        "rpc_url": "https://arb-mainnet.g.alchemy.com/v2/",
        "explorer_url": "https://arbiscan.io",
    },
    "BASE": {
        "name": "base",
        "chain_id": 8453,
        "gateway_address": "0x93F07df792F40693fb9A31e62711aA6AFfe7efc6",
        "rpc_url": "https://base-mainnet.g.alchemy.com/v2/",
        "explorer_url": "https://basescan.org",
    },
    "SEPOLIA": {
        "name": "sepolia",
        "chain_id": 11155111,
        "gateway_address": ZERO_ADDRESS,
        "rpc_url": "https://eth-sepolia.g.alchemy.com/v2/",
        "explorer_url": "https://sepolia.etherscan.io",
        "testnet": True,
    },
    "AMOY": {
        "name": "amoy",
        "chain_id": 80002,
        "gateway_address": ZERO_ADDRESS,
        "rpc_url": "https://polygon-amoy.g.alchemy.com/v2/",
        "explorer_url": "https://amoy.polygonscan.com",
        "testnet": True,
    },
    "OPTIMISM_SEPOLIA": {
        "name": "optimism-sepolia",
        "chain_id": 11155420,
        "gateway_address": ZERO_ADDRESS,
        "rpc_url": "https://opt-sepolia.g.alchemy.com/v2/",
        "explorer_url": "https://optimism-sepolia.etherscan.io",
        "testnet": True,
    },
    "BASE_SEPOLIA": {
        "name": "base-sepolia",
        "chain_id": 84532,
        "gateway_address": ZERO_ADDRESS,
        "rpc_url": "https://base-sepolia.g.alchemy.com/v2/",
        "explorer_url": "https://base-sepolia.etherscan.io",
        "testnet": True,
    },
    "ARBITRUM_SEPOLIA": {
        "name": "arbitrum-sepolia",
        "chain_id": 421614,
        "gateway_address": ZERO_ADDRESS,
        "rpc_url": "https://arb-sepolia.g.alchemy.com/v2/",
        "explorer_url": "https://sepolia.arbiscan.io",
        "testnet": True,
    },
}

# Raw token data: decimals, per-network address and per-network permit variant.
_TOKENS_DATA: Dict[str, Dict] = {
    "USDC": {
        "decimals": 6,
        "addresses": {
            "ETHEREUM": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
            "POLYGON": "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
            "OPTIMISM": "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85",
            "ARBITRUM": "0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
            "BASE": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        },
        "permit": {
            "ETHEREUM": PermitVariant.EIP2612,
            "POLYGON": PermitVariant.EIP2612,
            "OPTIMISM": PermitVariant.EIP2612,
            "ARBITRUM": PermitVariant.EIP2612,
            "BASE": PermitVariant.EIP2612,
        },
    },
    "USDT": {
        "decimals": 6,
        "addresses": {
            "ETHEREUM": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
            "POLYGON": "0xc2132D05D31c914a87C6611C10748AEb04B58e8F",
            "OPTIMISM": "0x94b008aA00579c1307B0EF2c499aD98a8ce58e58",
            "ARBITRUM": "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9",
            "BASE": "0xfde4C96c8593536E31F229EA8f37b2ADa2699bb2",
        },
        "permit": {
            "ETHEREUM": PermitVariant.REGULAR,
            "POLYGON": PermitVariant.REGULAR,
            "OPTIMISM": PermitVariant.REGULAR,
            "ARBITRUM": PermitVariant.REGULAR,
            "BASE": PermitVariant.REGULAR,
        },
    },
    "DAI": {
        "decimals": 18,
        "addresses": {
            "ETHEREUM": "0x6B175474E89094C44Da98b954EedeAC495271d0F",
            "POLYGON": "0x8f3Cf7ad23Cd3CaDbD9735AFf958023239c6A063",
            "OPTIMISM": "0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1",
            "ARBITRUM": "0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1",
            "BASE": "0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb",
        },
        "permit": {
            "ETHEREUM": PermitVariant.DAI,
            "POLYGON": PermitVariant.DAI,
            "OPTIMISM": PermitVariant.EIP2612,
            "ARBITRUM": PermitVariant.EIP2612,
            "BASE": PermitVariant.REGULAR,
        },
    },
}


def _build_networks() -> Mapping[str, NetworkConfig]:
    return MappingProxyType({
        key: NetworkConfig(key=key, **data) for key, data in _NETWORKS_DATA.items()
    })


def _build_tokens() -> Mapping[str, Mapping[str, TokenConfig]]:
    tokens = {}
    for symbol, data in _TOKENS_DATA.items():
        tokens[symbol] = MappingProxyType({
            network: TokenConfig(
                symbol=symbol,
                network=network,
                address=address,
                decimals=data["decimals"],
                permit_variant=data["permit"].get(network, PermitVariant.REGULAR),
            )
            for network, address in data["addresses"].items()
        })
    return MappingProxyType(tokens)


NETWORKS: Mapping[str, NetworkConfig] = _build_networks()
TOKENS: Mapping[str, Mapping[str, TokenConfig]] = _build_tokens()


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def normalize_network_key(network: str) -> str:
    """Map any accepted spelling (``base``, ``optimism-sepolia``, ``BASE``) to a registry key."""
    if not isinstance(network, str) or not network.strip():
        raise ValueError("network must be a non-empty string")
    return network.strip().upper().replace("-", "_")


def get_network(network: str) -> NetworkConfig:
    """
    Resolve a network key to its configuration.

    Raises:
        UnknownNetwork: If the network is not in the registry.
    """
    try:
        key = normalize_network_key(network)
    except ValueError as exc:
        raise UnknownNetwork(str(network)) from exc
    config = NETWORKS.get(key)
    if config is None:
        raise UnknownNetwork(network)
    return config


def get_token(symbol: str, network: str) -> TokenConfig:
    """
    Resolve a (token symbol, network) pair to the token deployment.

    Raises:
        UnknownNetwork: If the network is not in the registry.
        UnknownToken: If the token is unknown or not deployed on the network.
    """
    network_key = get_network(network).key
    deployments = TOKENS.get(str(symbol).strip().upper())
    if deployments is None:
        raise UnknownToken(symbol)
    token = deployments.get(network_key)
    if token is None:
        raise UnknownToken(symbol, network_key)
    return token


def is_token_supported_on_network(symbol: str, network: str) -> bool:
    """Return True when ``symbol`` has a known deployment on ``network``."""

    try:
        get_token(symbol, network)
    except UnsupportedNetworkOrToken:
        return False
    return True


def get_rpc_key_from_env() -> Optional[str]:
    """
    Load the RPC infrastructure key from the environment.

    The registry's default endpoints are Alchemy base URLs; the key is
    appended to them when ``PAYGRID_RPC_KEY`` is set.

    Example:
        # In your .env file:
        # PAYGRID_RPC_KEY="xyz123abc456..."
        # -> https://base-mainnet.g.alchemy.com/v2/xyz123abc456...
    """
    return os.getenv("PAYGRID_RPC_KEY")


def get_rpc_url(network: str, custom_rpc_urls: Optional[Mapping[str, str]] = None) -> str:
    """
    Resolve the JSON-RPC endpoint for a network.

    A custom URL registered under the network key takes precedence over the
    registry default.
    """
    config = get_network(network)
    if custom_rpc_urls:
        for key, url in custom_rpc_urls.items():
            if normalize_network_key(key) == config.key and url:
                return url
    rpc_key = get_rpc_key_from_env()
    return f"{config.rpc_url}{rpc_key}" if rpc_key else config.rpc_url


def checksum_address(value: Optional[str], field: str) -> str:
    """
    Checksum ``value``, naming ``field`` in the error when it is empty or malformed.

    Raises:
        MissingRequiredField: If ``value`` is empty.
        InvalidAddress: If ``value`` is not a 20-byte hex address.
    """
    if not value:
        raise MissingRequiredField(field)
    try:
        return Web3.to_checksum_address(value)
    except (ValueError, TypeError) as exc:
        raise InvalidAddress(field, value) from exc


# ---------------------------------------------------------------------------
# Unit conversion
# ---------------------------------------------------------------------------

def _to_decimal(value, label: str) -> Decimal:
    try:
        # str() avoids binary-float artefacts (0.1 -> 0.1000000000000000055...)
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValueError(f"Invalid {label}: {value!r}") from e


def amount_to_value(*, amount: float | int | str | Decimal, decimals: int) -> int:
    """Convert a human-readable token ``amount`` into a native integer ``value``.

    Fractions below the smallest unit are floored.

    Args:
        amount: Human-readable amount (e.g. "10.5" USDC). Accepts float/int/str/Decimal.
        decimals: Token decimals (e.g. 6 for USDC).

    Returns:
        int: Native integer value.

    Raises:
        ValueError: If inputs are invalid or negative.
    """
    if not isinstance(decimals, int) or decimals < 0:
        raise ValueError("decimals must be a non-negative int")

    dec_amount = _to_decimal(amount, "amount")
    if not dec_amount.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    if dec_amount < 0:
        raise ValueError("amount must be non-negative")

    scaled = dec_amount.scaleb(decimals)
    return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def cents_to_value(amount_cents: int | str | Decimal, decimals: int) -> int:
    """Convert an API amount in cents into native token units.

    ``floor(amount_cents / 100 * 10**decimals)``, e.g. 1000 cents with
    6 decimals is 10_000_000.
    """
    dec_cents = _to_decimal(amount_cents, "amount")
    return amount_to_value(amount=dec_cents.scaleb(-CENTS_DECIMALS), decimals=decimals)


def value_to_amount(*, value: int | str | Decimal, decimals: int) -> Decimal:
    """Convert a native integer ``value`` into a human-readable token amount.

    Raises:
        ValueError: If inputs are invalid or ``value`` has a fractional part.
    """
    if not isinstance(decimals, int) or decimals < 0:
        raise ValueError("decimals must be a non-negative int")

    dec_value = _to_decimal(value, "value")
    if dec_value < 0:
        raise ValueError("value must be non-negative")
    if dec_value != dec_value.to_integral_value():
        raise ValueError("value must be an integer in smallest units")

    return dec_value.scaleb(-decimals)
