"""
Permit-related ERC20 ABI Fragments

Minimal view-function ABIs read while building legacy (EIP-2612 / DAI)
permit payloads. Each fragment is keyed by its canonical function
signature so a ledger reader can resolve ``"nonces(address)"`` to the ABI
entry it needs.

Usage:
    from paygrid.adapters.evm.ERC20_ABI import get_view_abi

    abi = get_view_abi("nonces(address)")
    # web3.eth.contract(address=token_address, abi=abi).functions.nonces(owner).call()
"""

from typing import Any, Dict, List


def _view(name: str, inputs: List[Dict[str, str]], output_type: str) -> Dict[str, Any]:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": inputs,
        "outputs": [{"name": "", "type": output_type}],
    }


def get_nonces_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for the EIP-2612 / DAI `nonces(owner)` accessor.

    Example:
        contract = web3.eth.contract(address=token_address, abi=get_nonces_abi())
        nonce = contract.functions.nonces(owner).call()
    """
    return [_view("nonces", [{"name": "owner", "type": "address"}], "uint256")]


def get_get_nonce_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for the alternate `getNonce(user)` accessor.

    Some bridged tokens (e.g. Polygon PoS deployments) expose the permit
    nonce under this name instead of `nonces`.
    """
    return [_view("getNonce", [{"name": "user", "type": "address"}], "uint256")]


def get_name_abi() -> List[Dict[str, Any]]:
    """Get ABI for ERC20 `name()`."""
    return [_view("name", [], "string")]


def get_version_abi() -> List[Dict[str, Any]]:
    """Get ABI for the optional EIP-712 `version()` accessor."""
    return [_view("version", [], "string")]


_VIEW_ABIS = {
    "nonces(address)": get_nonces_abi,
    "getNonce(address)": get_get_nonce_abi,
    "name()": get_name_abi,
    "version()": get_version_abi,
}

SUPPORTED_VIEW_SIGNATURES = tuple(_VIEW_ABIS)


def get_view_abi(function_signature: str) -> List[Dict[str, Any]]:
    """
    Resolve a canonical function signature to its ABI fragment.

    Raises:
        ValueError: If the signature is not one of SUPPORTED_VIEW_SIGNATURES.
    """
    factory = _VIEW_ABIS.get(function_signature.replace(" ", ""))
    if factory is None:
        raise ValueError(
            f"Unsupported view call {function_signature!r}; "
            f"expected one of {', '.join(SUPPORTED_VIEW_SIGNATURES)}"
        )
    return factory()
