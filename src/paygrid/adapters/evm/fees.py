"""
Fee split for Permit2 transfer batches.

A payment's gross amount (native token units) is partitioned into three
legs: payee, operator fee and gateway fee. The payee leg is the remainder
after the two floored fee legs, so the partition is always exact.
"""

from dataclasses import dataclass
from typing import Dict, List

from web3 import Web3

from .constants import BPS_DENOMINATOR, GATEWAY_FEE_BPS
from ...engine.exceptions import AmountReconciliationError


@dataclass(frozen=True)
class FeeSplit:
    """Three-way partition of a gross amount."""
    payee: int
    operator_fee: int
    gateway_fee: int

    @property
    def total(self) -> int:
        return self.payee + self.operator_fee + self.gateway_fee

    def as_permitted(self, token: str) -> List[Dict[str, object]]:
        """Return the ``TokenPermissions`` legs in payee, operator, gateway order."""
        token = Web3.to_checksum_address(token)
        return [
            {"token": token, "amount": self.payee},
            {"token": token, "amount": self.operator_fee},
            {"token": token, "amount": self.gateway_fee},
        ]


def split_fees(gross: int, operator_bps: int, gateway_bps: int = GATEWAY_FEE_BPS) -> FeeSplit:
    """
    Split ``gross`` into payee, operator and gateway legs.

    ``operator_fee = gross * operator_bps // 10000`` and
    ``gateway_fee = gross * gateway_bps // 10000``, with the gateway leg
    capped at what the operator leaves so no leg goes negative. The payee
    receives the remainder.

    Args:
        gross: Gross amount in native token units (>= 0)
        operator_bps: Operator fee rate in basis points, in [0, 10000]
        gateway_bps: Gateway fee rate in basis points, in [0, 10000]

    Returns:
        FeeSplit whose legs sum to ``gross``

    Raises:
        ValueError: On a negative amount or a rate outside [0, 10000]
        AmountReconciliationError: If the legs do not sum to ``gross``

    Example:
        >>> split_fees(1_000_000, 50)
        FeeSplit(payee=994000, operator_fee=5000, gateway_fee=1000)
    """
    if isinstance(gross, bool) or not isinstance(gross, int) or gross < 0:
        raise ValueError(f"gross must be a non-negative int, got {gross!r}")
    for label, bps in (("operator_bps", operator_bps), ("gateway_bps", gateway_bps)):
        if isinstance(bps, bool) or not isinstance(bps, int) or not 0 <= bps <= BPS_DENOMINATOR:
            raise ValueError(f"{label} must be an int in [0, {BPS_DENOMINATOR}], got {bps!r}")

    operator_fee = gross * operator_bps // BPS_DENOMINATOR
    gateway_fee = min(gross * gateway_bps // BPS_DENOMINATOR, gross - operator_fee)
    payee = gross - operator_fee - gateway_fee

    split = FeeSplit(payee=payee, operator_fee=operator_fee, gateway_fee=gateway_fee)
    if split.total != gross:
        raise AmountReconciliationError(expected=gross, actual=split.total)
    return split
