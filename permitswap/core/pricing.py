"""
Swap pricing strategies.

A pool delegates "how much comes out for this much going in" to a pricing
strategy: any object with a pure `compute_output(reserve_in, reserve_out,
amount_in_after_fee)` method. The pool applies the fee before calling it, so
strategies only see the net input.

Algorithm Design (constant product):
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(1)
- Invariant: (reserve_in + amount_in) * (reserve_out - amount_out) >= reserve_in * reserve_out
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from ..errors import InvalidAmount, InvalidReserves
from ..state.balances import Amount

logger = logging.getLogger(__name__)


@runtime_checkable
class PricingStrategy(Protocol):
    def compute_output(self, reserve_in: Amount, reserve_out: Amount, amount_in_after_fee: Amount) -> Amount:
        ...


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmount(f"{name} must be an int")


def apply_swap_fee(amount_in: Amount, fee_numerator: int, fee_denominator: int) -> Amount:
    """
    Net input after the swap fee:

        amount_in_after_fee = floor(amount_in * (fee_denominator - fee_numerator) / fee_denominator)

    Rounding down keeps the dust in the pool.
    """
    _require_int("amount_in", amount_in)
    if amount_in < 0:
        raise InvalidAmount(f"amount_in must be non-negative: {amount_in}")
    if fee_denominator <= 0 or not (0 <= fee_numerator < fee_denominator):
        raise ValueError(f"invalid fee: {fee_numerator}/{fee_denominator}")
    return (amount_in * (fee_denominator - fee_numerator)) // fee_denominator


class ConstantProductCurve:
    """
    x * y = k pricing.

        amount_out = floor(reserve_out * net_in / (reserve_in + net_in))

    This is `reserve_out - k / (reserve_in + net_in)` with the division rounded
    in the pool's favour, so `k` can never shrink across a swap.
    """

    def compute_output(self, reserve_in: Amount, reserve_out: Amount, amount_in_after_fee: Amount) -> Amount:
        for name, v in (
            ("reserve_in", reserve_in),
            ("reserve_out", reserve_out),
            ("amount_in_after_fee", amount_in_after_fee),
        ):
            _require_int(name, v)
        if reserve_in < 0 or reserve_out < 0:
            raise InvalidReserves(f"Reserves must be non-negative: ({reserve_in}, {reserve_out})")
        if reserve_in == 0 or reserve_out == 0:
            raise InvalidReserves("cannot price against an empty reserve")
        if amount_in_after_fee <= 0:
            raise InvalidAmount(f"amount_in_after_fee must be positive: {amount_in_after_fee}")

        amount_out = (reserve_out * amount_in_after_fee) // (reserve_in + amount_in_after_fee)
        logger.debug(
            "cpmm: reserve_in=%d reserve_out=%d net_in=%d -> out=%d",
            reserve_in,
            reserve_out,
            amount_in_after_fee,
            amount_out,
        )
        return amount_out

    def __repr__(self) -> str:
        return "ConstantProductCurve()"
