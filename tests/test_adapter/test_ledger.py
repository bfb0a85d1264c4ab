"""
Ledger reader tests: ABI fragment lookup, probe fallback and reader setup.
No RPC traffic is generated.
"""

import pytest

from paygrid.adapters.evm.ERC20_ABI import SUPPORTED_VIEW_SIGNATURES, get_view_abi
from paygrid.adapters.evm.ledger import LedgerReader, Web3LedgerReader, first_successful

from mocks import MockLedger, USDC_BASE


def test_get_view_abi():
    abi = get_view_abi("nonces(address)")
    assert abi[0]["name"] == "nonces"
    assert abi[0]["stateMutability"] == "view"
    assert get_view_abi("getNonce( address )")[0]["inputs"][0]["type"] == "address"
    assert "version()" in SUPPORTED_VIEW_SIGNATURES


def test_get_view_abi_rejects_unknown_signature():
    with pytest.raises(ValueError, match="Unsupported view call"):
        get_view_abi("transfer(address,uint256)")


def test_mock_ledger_satisfies_protocol():
    assert isinstance(MockLedger(), LedgerReader)
    assert isinstance(Web3LedgerReader("https://rpc.example.org"), LedgerReader)


def test_web3_reader_requires_url():
    with pytest.raises(ValueError):
        Web3LedgerReader(" ")


def test_web3_reader_for_network_uses_custom_rpc():
    reader = Web3LedgerReader.for_network("base", {"BASE": "https://rpc.example.org"})
    assert reader.rpc_url == "https://rpc.example.org"


@pytest.mark.asyncio
async def test_web3_reader_rejects_unsupported_call_before_rpc():
    reader = Web3LedgerReader("http://127.0.0.1:1")
    with pytest.raises(ValueError):
        await reader.read_view_call(USDC_BASE, "balanceOf(address)", [USDC_BASE])


class TestFirstSuccessful:

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        calls = []

        async def failing():
            calls.append("failing")
            raise RuntimeError("reverted")

        async def succeeding():
            calls.append("succeeding")
            return 7

        async def never():
            calls.append("never")
            return 8

        assert await first_successful([failing, succeeding, never]) == 7
        assert calls == ["failing", "succeeding"]

    @pytest.mark.asyncio
    async def test_raises_last_error(self):
        async def first():
            raise RuntimeError("first")

        async def second():
            raise LookupError("second")

        with pytest.raises(LookupError, match="second"):
            await first_successful([first, second])

    @pytest.mark.asyncio
    async def test_requires_probes(self):
        with pytest.raises(ValueError):
            await first_successful([])
