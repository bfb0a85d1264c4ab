"""
SDK Configuration

``SDKConfig`` validates every setting eagerly. Any invalid value raises a
single ``ConfigurationError`` that lists each problem found.

Environment Variables (read by ``SDKConfig.from_env``):
    - PAYGRID_ENVIRONMENT: ``mainnet`` (default) or ``testnet``
    - PAYGRID_API_KEY: API key sent as ``X-API-KEY``
    - PAYGRID_TIMEOUT: Request timeout in seconds
    - PAYGRID_MAX_RETRIES: Connection retries, 0 to 5
"""

import os
from typing import Dict, Literal, Optional

import dotenv
from pydantic import Field, ValidationError, field_validator

from .bases import CanonicalModel
from .versions import SDK_VERSION, ApiVersion
from ..adapters.evm.constants import NETWORKS, normalize_network_key
from ..engine.exceptions import ConfigurationError

MAINNET_API_URL = "https://api.paygrid.co"
TESTNET_API_URL_TEMPLATE = "https://api-{environment}.paygrid.co"

DEFAULT_TIMEOUT = 180.0
MAX_RETRIES_LIMIT = 5


class SDKConfig(CanonicalModel):
    """
    Paygrid SDK configuration.

    Attributes:
        environment: ``mainnet`` or ``testnet``
        api_key: API key, sent as the ``X-API-KEY`` header when set
        default_network: Registry key used when a caller omits the network
        timeout: HTTP request timeout in seconds (>= 1)
        max_retries: Connection retries for the HTTP transport (0 to 5)
        custom_rpc_urls: Registry key to ``http(s)`` RPC URL overrides
        api_version: API path version

    Raises:
        ConfigurationError: On construction, if any field is invalid.

    Example:
        config = SDKConfig(environment="testnet", api_key="pk_test_...", timeout=30)
        config.api_base_url  # "https://api-testnet.paygrid.co/v1"
    """

    environment: Literal["mainnet", "testnet"] = "mainnet"
    api_key: Optional[str] = None
    default_network: Optional[str] = None
    timeout: float = Field(default=DEFAULT_TIMEOUT, ge=1)
    max_retries: int = Field(default=0, ge=0, le=MAX_RETRIES_LIMIT)
    custom_rpc_urls: Dict[str, str] = Field(default_factory=dict)
    api_version: ApiVersion = ApiVersion.V1

    def __init__(self, **data):
        try:
            super().__init__(**data)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ConfigurationError(f"Invalid SDK configuration: {problems}") from exc

    @field_validator("environment", mode="before")
    @classmethod
    def _normalize_environment(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("default_network")
    @classmethod
    def _validate_default_network(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        key = normalize_network_key(v)
        if key not in NETWORKS:
            raise ValueError(f"unknown network {v!r}, must be one of {', '.join(NETWORKS)}")
        return key

    @field_validator("custom_rpc_urls")
    @classmethod
    def _validate_custom_rpc_urls(cls, v: Dict[str, str]) -> Dict[str, str]:
        normalized = {}
        for network, url in v.items():
            key = normalize_network_key(network)
            if key not in NETWORKS:
                raise ValueError(f"invalid network {network!r}")
            if not isinstance(url, str) or not url.startswith(("http://", "https://")):
                raise ValueError(f"invalid RPC URL for network {network}: {url!r}")
            normalized[key] = url
        return normalized

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "SDKConfig":
        """Load settings from a ``.env`` file and the process environment; ``overrides`` win."""
        dotenv.load_dotenv(env_file)
        data = {
            "environment": os.getenv("PAYGRID_ENVIRONMENT"),
            "api_key": os.getenv("PAYGRID_API_KEY"),
            "timeout": os.getenv("PAYGRID_TIMEOUT"),
            "max_retries": os.getenv("PAYGRID_MAX_RETRIES"),
        }
        data = {k: v for k, v in data.items() if v not in (None, "")}
        data.update(overrides)
        return cls(**data)

    @property
    def api_base_url(self) -> str:
        if self.environment == "mainnet":
            root = MAINNET_API_URL
        else:
            root = TESTNET_API_URL_TEMPLATE.format(environment=self.environment)
        return f"{root}/{self.api_version.value}"

    @property
    def api_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-SDK-Version": SDK_VERSION,
        }
        if self.api_key:
            headers["X-API-KEY"] = self.api_key
        return headers
