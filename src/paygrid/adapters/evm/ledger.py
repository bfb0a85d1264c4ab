"""
Read-only ledger access for permit construction.

``LedgerReader`` is the capability the permit builders consume: a single
``read_view_call(contract_address, function_signature, args)`` coroutine.
``Web3LedgerReader`` implements it over JSON-RPC with ``AsyncWeb3``.
"""

import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Protocol, Sequence, TypeVar, runtime_checkable

from web3 import AsyncWeb3, Web3

from .constants import get_rpc_url
from .ERC20_ABI import get_view_abi

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class LedgerReader(Protocol):
    async def read_view_call(
        self,
        contract_address: str,
        function_signature: str,
        args: Sequence[Any] = (),
    ) -> Any:
        ...


class Web3LedgerReader:
    """
    ``LedgerReader`` backed by ``web3.AsyncWeb3``.

    Only the view functions listed in ``ERC20_ABI.SUPPORTED_VIEW_SIGNATURES``
    can be called; anything else raises ``ValueError`` before any RPC traffic.

    Example::

        ledger = Web3LedgerReader.for_network("base")
        nonce = await ledger.read_view_call(usdc, "nonces(address)", [owner])
    """

    def __init__(self, rpc_url: str, *, request_timeout: float = 10.0):
        if not isinstance(rpc_url, str) or not rpc_url.strip():
            raise ValueError("rpc_url must be a non-empty string")
        self.rpc_url = rpc_url.strip()
        self.w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(self.rpc_url, request_kwargs={"timeout": request_timeout})
        )

    @classmethod
    def for_network(
        cls,
        network: str,
        custom_rpc_urls: Optional[Mapping[str, str]] = None,
        **kwargs,
    ) -> "Web3LedgerReader":
        """Build a reader for a registry network, honoring custom RPC overrides."""
        return cls(get_rpc_url(network, custom_rpc_urls), **kwargs)

    async def read_view_call(
        self,
        contract_address: str,
        function_signature: str,
        args: Sequence[Any] = (),
    ) -> Any:
        abi = get_view_abi(function_signature)
        function_name = function_signature.split("(", 1)[0].strip()
        contract = self.w3.eth.contract(address=Web3.to_checksum_address(contract_address), abi=abi)
        logger.debug("eth_call %s on %s", function_signature, contract_address)
        return await getattr(contract.functions, function_name)(*args).call()


async def first_successful(probes: Iterable[Callable[[], Awaitable[T]]]) -> T:
    """
    Run ``probes`` in order and return the first result that does not raise.

    Raises:
        ValueError: If ``probes`` is empty.
        Exception: The last probe's error when every probe fails.
    """
    last_error: Optional[BaseException] = None
    for index, probe in enumerate(probes):
        try:
            return await probe()
        except Exception as exc:
            logger.debug("Probe %d failed: %s", index, exc)
            last_error = exc
    if last_error is None:
        raise ValueError("first_successful() requires at least one probe")
    raise last_error
