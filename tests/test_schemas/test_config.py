"""
SDK configuration tests.
"""

import pytest

from paygrid.engine.exceptions import ConfigurationError, PaygridError
from paygrid.schemas.config import SDKConfig
from paygrid.schemas.versions import SDK_VERSION, ApiVersion


def test_defaults():
    config = SDKConfig()
    assert config.environment == "mainnet"
    assert config.api_base_url == "https://api.paygrid.co/v1"
    assert config.timeout == 180
    assert config.max_retries == 0
    assert config.api_headers == {"Content-Type": "application/json", "X-SDK-Version": SDK_VERSION}


def test_testnet_with_api_key():
    config = SDKConfig(environment="TestNet", api_key="pk_test")
    assert config.environment == "testnet"
    assert config.api_base_url == "https://api-testnet.paygrid.co/v1"
    assert config.api_headers["X-API-KEY"] == "pk_test"


def test_all_problems_reported_together():
    with pytest.raises(ConfigurationError) as exc_info:
        SDKConfig(timeout=0, max_retries=9)
    message = str(exc_info.value)
    assert "timeout" in message
    assert "max_retries" in message
    assert isinstance(exc_info.value, PaygridError)


@pytest.mark.parametrize(
    "overrides",
    [
        {"environment": "staging"},
        {"default_network": "solana"},
        {"custom_rpc_urls": {"solana": "https://rpc.example.org"}},
        {"custom_rpc_urls": {"base": "ws://rpc.example.org"}},
    ],
)
def test_invalid_settings(overrides):
    with pytest.raises(ConfigurationError):
        SDKConfig(**overrides)


def test_network_keys_are_normalized():
    config = SDKConfig(
        default_network="base-sepolia",
        custom_rpc_urls={"optimism-sepolia": "https://rpc.example.org"},
    )
    assert config.default_network == "BASE_SEPOLIA"
    assert config.custom_rpc_urls == {"OPTIMISM_SEPOLIA": "https://rpc.example.org"}


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("PAYGRID_ENVIRONMENT", "testnet")
    monkeypatch.setenv("PAYGRID_API_KEY", "pk_env")
    monkeypatch.setenv("PAYGRID_TIMEOUT", "45")
    monkeypatch.delenv("PAYGRID_MAX_RETRIES", raising=False)

    config = SDKConfig.from_env(str(tmp_path / "missing.env"), max_retries=2)

    assert config.environment == "testnet"
    assert config.api_key == "pk_env"
    assert config.timeout == 45
    assert config.max_retries == 2


def test_from_env_file(monkeypatch, tmp_path):
    for name in ("PAYGRID_ENVIRONMENT", "PAYGRID_API_KEY", "PAYGRID_TIMEOUT", "PAYGRID_MAX_RETRIES"):
        monkeypatch.delenv(name, raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("PAYGRID_API_KEY=pk_file\nPAYGRID_MAX_RETRIES=3\n")

    config = SDKConfig.from_env(str(env_file))

    assert config.api_key == "pk_file"
    assert config.max_retries == 3
    for name in ("PAYGRID_API_KEY", "PAYGRID_MAX_RETRIES"):
        monkeypatch.delenv(name, raising=False)


def test_api_version_from_string():
    assert ApiVersion.from_string("v1") is ApiVersion.V1
    with pytest.raises(ValueError):
        ApiVersion.from_string("v9")
