"""
Claim-token (share) math for two-asset pools.

Assets in a pool may use different decimal scales, so deposits are normalized
to a common scale before share amounts are computed. All rounding is down,
which never credits a depositor or a withdrawer more than their proportional
contribution.
"""

import math
from typing import Tuple

from ..errors import InvalidAmount, InvalidReserves
from ..state.balances import Amount


def normalize(amount: Amount, decimals: int, target_decimals: int = 18) -> Amount:
    """
    Scale `amount` from `decimals` to `target_decimals`.

    Only up-scaling is supported; it is exact.

    Raises:
        ValueError: If `decimals > target_decimals`
    """
    if decimals > target_decimals:
        raise ValueError(f"cannot normalize {decimals} decimals down to {target_decimals}")
    return amount * 10 ** (target_decimals - decimals)


def compute_shares_to_mint(
    norm_reserve_a: Amount,
    norm_reserve_b: Amount,
    norm_amount_a: Amount,
    norm_amount_b: Amount,
    total_supply: Amount,
) -> Amount:
    """
    Compute claim tokens to mint for a deposit (all inputs normalized).

    For first deposit (total_supply == 0):
        shares = floor(sqrt(amount_a * amount_b))

    For subsequent deposits:
        shares = min(floor(amount_a * supply / reserve_a), floor(amount_b * supply / reserve_b))

    Whatever a depositor adds beyond the limiting ratio stays in the pool as a
    donation to existing holders.

    Raises:
        InvalidAmount: If a deposit amount is non-positive or the result rounds to zero
        InvalidReserves: If the pool has supply but an empty reserve
    """
    if norm_amount_a <= 0 or norm_amount_b <= 0:
        raise InvalidAmount(f"Deposit amounts must be positive: ({norm_amount_a}, {norm_amount_b})")
    if norm_reserve_a < 0 or norm_reserve_b < 0:
        raise InvalidReserves(f"Reserves must be non-negative: ({norm_reserve_a}, {norm_reserve_b})")
    if total_supply < 0:
        raise InvalidReserves(f"Share supply must be non-negative: {total_supply}")

    if total_supply == 0:
        if norm_reserve_a != 0 or norm_reserve_b != 0:
            raise InvalidReserves("pool has reserves but no shares outstanding")
        shares = math.isqrt(norm_amount_a * norm_amount_b)
    else:
        if norm_reserve_a == 0 or norm_reserve_b == 0:
            raise InvalidReserves("pool has shares outstanding but an empty reserve")
        shares_a = (norm_amount_a * total_supply) // norm_reserve_a
        shares_b = (norm_amount_b * total_supply) // norm_reserve_b
        shares = min(shares_a, shares_b)

    if shares <= 0:
        raise InvalidAmount(f"Deposit too small, computed shares are non-positive: {shares}")
    return shares


def compute_withdrawal(
    shares: Amount,
    reserve_a: Amount,
    reserve_b: Amount,
    total_supply: Amount,
) -> Tuple[Amount, Amount]:
    """
    Compute asset amounts returned for burning `shares`.

    Formula:
        amount_a = floor(shares * reserve_a / total_supply)
        amount_b = floor(shares * reserve_b / total_supply)

    Burning the whole supply returns the reserves exactly.
    """
    if shares <= 0:
        raise InvalidAmount(f"Share amount must be positive: {shares}")
    if total_supply <= 0:
        raise InvalidReserves(f"Share supply must be positive: {total_supply}")
    if shares > total_supply:
        raise InvalidAmount(f"Cannot burn more shares than supply: {shares} > {total_supply}")
    if reserve_a < 0 or reserve_b < 0:
        raise InvalidReserves(f"Reserves must be non-negative: ({reserve_a}, {reserve_b})")

    amount_a = (shares * reserve_a) // total_supply
    amount_b = (shares * reserve_b) // total_supply
    return amount_a, amount_b
