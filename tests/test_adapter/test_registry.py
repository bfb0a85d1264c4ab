"""
Network and token registry tests: lookups, RPC resolution and unit conversion.
"""

from decimal import Decimal

import pytest

from paygrid.adapters.evm.constants import (
    NETWORKS,
    PermitVariant,
    ZERO_ADDRESS,
    amount_to_value,
    cents_to_value,
    get_network,
    get_rpc_url,
    get_token,
    is_token_supported_on_network,
    normalize_network_key,
    value_to_amount,
)
from paygrid.engine.exceptions import UnknownNetwork, UnknownToken, UnsupportedNetworkOrToken


class TestLookups:

    def test_get_network_accepts_any_spelling(self):
        assert get_network("base").chain_id == 8453
        assert get_network("BASE").key == "BASE"
        assert get_network("optimism-sepolia").key == "OPTIMISM_SEPOLIA"

    def test_normalize_network_key_rejects_blank(self):
        with pytest.raises(ValueError):
            normalize_network_key("  ")

    def test_unknown_network(self):
        with pytest.raises(UnknownNetwork) as exc_info:
            get_network("SOLANA")
        assert str(exc_info.value) == "Network SOLANA not configured"
        assert isinstance(exc_info.value, UnsupportedNetworkOrToken)

    def test_get_token(self):
        token = get_token("usdc", "base")
        assert token.symbol == "USDC"
        assert token.network == "BASE"
        assert token.decimals == 6
        assert token.permit_variant is PermitVariant.EIP2612

    def test_unknown_token_symbol(self):
        with pytest.raises(UnknownToken) as exc_info:
            get_token("XYZ", "BASE")
        assert exc_info.value.network is None

    def test_token_not_deployed_on_network(self):
        with pytest.raises(UnknownToken) as exc_info:
            get_token("USDC", "SEPOLIA")
        assert exc_info.value.network == "SEPOLIA"

    def test_token_lookup_with_unknown_network(self):
        with pytest.raises(UnknownNetwork):
            get_token("USDC", "SOLANA")

    def test_is_token_supported_on_network(self):
        assert is_token_supported_on_network("DAI", "ETHEREUM")
        assert not is_token_supported_on_network("DAI", "AMOY")
        assert not is_token_supported_on_network("DAI", "NOWHERE")

    def test_permit_variants_per_network(self):
        assert get_token("DAI", "ETHEREUM").permit_variant is PermitVariant.DAI
        assert get_token("DAI", "ARBITRUM").permit_variant is PermitVariant.EIP2612
        assert get_token("USDT", "ETHEREUM").permit_variant is PermitVariant.REGULAR

    def test_testnets_have_no_gateway(self):
        assert get_network("SEPOLIA").testnet
        assert get_network("SEPOLIA").gateway_address == ZERO_ADDRESS

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            NETWORKS["NEW"] = NETWORKS["BASE"]


class TestRpcUrl:

    def test_default_without_key(self, monkeypatch):
        monkeypatch.delenv("PAYGRID_RPC_KEY", raising=False)
        assert get_rpc_url("base") == "https://base-mainnet.g.alchemy.com/v2/"

    def test_default_with_key(self, monkeypatch):
        monkeypatch.setenv("PAYGRID_RPC_KEY", "abc")
        assert get_rpc_url("base") == "https://base-mainnet.g.alchemy.com/v2/abc"

    def test_custom_url_wins(self, monkeypatch):
        monkeypatch.setenv("PAYGRID_RPC_KEY", "abc")
        custom = {"base": "https://rpc.example.org"}
        assert get_rpc_url("BASE", custom) == "https://rpc.example.org"
        assert get_rpc_url("POLYGON", custom).startswith("https://polygon-mainnet")


class TestUnitConversion:

    def test_cents_to_value(self):
        assert cents_to_value(1000, 6) == 10_000_000
        assert cents_to_value(1, 18) == 10**16
        assert cents_to_value(0, 6) == 0

    def test_amount_to_value_floors(self):
        assert amount_to_value(amount="10.5", decimals=6) == 10_500_000
        assert amount_to_value(amount="0.0000019", decimals=6) == 1
        assert amount_to_value(amount=0.1, decimals=6) == 100_000

    @pytest.mark.parametrize("amount", ["-1", "abc", "NaN"])
    def test_amount_to_value_rejects_invalid(self, amount):
        with pytest.raises(ValueError):
            amount_to_value(amount=amount, decimals=6)

    def test_value_to_amount(self):
        assert value_to_amount(value=10_250_000, decimals=6) == Decimal("10.25")
        with pytest.raises(ValueError):
            value_to_amount(value="1.5", decimals=6)
