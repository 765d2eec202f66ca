"""
Two-asset constant-product liquidity pool.

A pool owns two reserves and one claim-token ledger. Reserves change only via
`deposit`, `withdraw` and `swap`; each runs inside an atomic section of the
execution context, so a failure at any point (including inside an asset
ledger call) leaves the pool and every ledger exactly as they were.

Ordering contract (every asset-ledger call may re-enter the pool, so reserves
and supply are read only after the pull and written before the payout):
- deposit: pull both assets -> price shares -> credit reserves -> mint shares
- withdraw: burn shares -> debit reserves -> pay out
- swap: pull input -> price -> update both reserves -> pay out
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Tuple, Union

from ..errors import InvalidAmount, SlippageOrLiquidity
from ..state.balances import Address, Amount, to_address
from ..state.context import ExecutionContext
from ..state.ledger import AssetLedger
from .pricing import ConstantProductCurve, PricingStrategy, apply_swap_fee
from .shares import compute_shares_to_mint, compute_withdrawal, normalize

logger = logging.getLogger(__name__)

AssetRef = Union[AssetLedger, Address]


class PoolStatus(Enum):
    EMPTY = "EMPTY"
    FUNDED = "FUNDED"


class Pool:
    """
    Constant-product pool over `asset_a` / `asset_b`.

    Fee and asset identities are fixed at construction. The claim token is
    named "<A>/<B> Liquidity Pool Token" with symbol "<A>/<B>-LP".
    """

    def __init__(
        self,
        context: ExecutionContext,
        asset_a: AssetLedger,
        asset_b: AssetLedger,
        *,
        pricing: Optional[PricingStrategy] = None,
    ) -> None:
        if asset_a is asset_b or asset_a.address == asset_b.address:
            raise ValueError(f"pool assets must differ: {asset_a.address}")
        config = context.config
        for asset in (asset_a, asset_b):
            if asset.decimals > config.normalized_decimals:
                raise ValueError(
                    f"{asset.symbol} has {asset.decimals} decimals; at most {config.normalized_decimals} supported"
                )
        if pricing is None:
            pricing = ConstantProductCurve()
        if not isinstance(pricing, PricingStrategy):
            raise TypeError(f"pricing must provide compute_output(): {pricing!r}")

        self.context = context
        self.asset_a = asset_a
        self.asset_b = asset_b
        self.pricing = pricing
        self.fee_numerator = config.fee_numerator
        self.fee_denominator = config.fee_denominator

        pair = f"{asset_a.symbol}/{asset_b.symbol}"
        self.address = context.allocate_address(f"pool:{pair}")
        self._share_token = AssetLedger(
            context,
            f"{pair} Liquidity Pool Token",
            f"{pair}-LP",
            config.share_decimals,
            minter=self.address,
        )
        self._reserve_a: Amount = 0
        self._reserve_b: Amount = 0

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def asset_a_id(self) -> Address:
        return self.asset_a.address

    @property
    def asset_b_id(self) -> Address:
        return self.asset_b.address

    @property
    def asset_a_symbol(self) -> str:
        return self.asset_a.symbol

    @property
    def asset_b_symbol(self) -> str:
        return self.asset_b.symbol

    def reserve_a(self) -> Amount:
        return self._reserve_a

    def reserve_b(self) -> Amount:
        return self._reserve_b

    def reserves(self) -> Tuple[Amount, Amount]:
        return self._reserve_a, self._reserve_b

    def share_token(self) -> AssetLedger:
        return self._share_token

    def status(self) -> PoolStatus:
        if self._share_token.total_supply() == 0:
            return PoolStatus.EMPTY
        return PoolStatus.FUNDED

    def invariant_violations(self) -> List[str]:
        """Return human-readable violations of the empty/funded invariant (empty list if none)."""
        violations: List[str] = []
        supply = self._share_token.total_supply()
        empty_flags = {self._reserve_a == 0, self._reserve_b == 0, supply == 0}
        if len(empty_flags) != 1:
            violations.append(
                f"partially funded: reserve_a={self._reserve_a} reserve_b={self._reserve_b} supply={supply}"
            )
        if not self._share_token.supply_is_conserved():
            violations.append("share balances do not sum to share supply")
        if self.asset_a.balance_of(self.address) < self._reserve_a:
            violations.append("asset_a holdings below reserve_a")
        if self.asset_b.balance_of(self.address) < self._reserve_b:
            violations.append("asset_b holdings below reserve_b")
        return violations

    def _side(self, asset: AssetRef) -> bool:
        """True if `asset` is asset_a, False if asset_b."""
        if isinstance(asset, AssetLedger):
            address = asset.address
        else:
            try:
                address = to_address(asset, name="asset")
            except ValueError as exc:
                raise InvalidAmount(f"unknown asset: {asset!r}") from exc
        if address == self.asset_a.address:
            return True
        if address == self.asset_b.address:
            return False
        raise InvalidAmount(f"asset {address} is not traded by pool {self.address}")

    def _set_reserves(self, reserve_a: Amount, reserve_b: Amount) -> None:
        if reserve_a < 0 or reserve_b < 0:
            raise ValueError(f"Reserves cannot be negative: ({reserve_a}, {reserve_b})")
        previous = (self._reserve_a, self._reserve_b)

        def undo() -> None:
            self._reserve_a, self._reserve_b = previous

        self.context.record(undo)
        self._reserve_a, self._reserve_b = reserve_a, reserve_b

    def _normalized(self, amount_a: Amount, amount_b: Amount) -> Tuple[Amount, Amount]:
        target = self.context.config.normalized_decimals
        return (
            normalize(amount_a, self.asset_a.decimals, target),
            normalize(amount_b, self.asset_b.decimals, target),
        )

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def quote(self, asset_in: AssetRef, amount_in: Amount) -> Amount:
        """Output `swap(asset_in, amount_in)` would pay right now. Read-only."""
        _require_positive("amount_in", amount_in)
        in_is_a = self._side(asset_in)
        reserve_in, reserve_out = self._oriented(in_is_a)
        net_in = apply_swap_fee(amount_in, self.fee_numerator, self.fee_denominator)
        return self.pricing.compute_output(reserve_in, reserve_out, net_in)

    def _oriented(self, in_is_a: bool) -> Tuple[Amount, Amount]:
        if in_is_a:
            return self._reserve_a, self._reserve_b
        return self._reserve_b, self._reserve_a

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def deposit(self, amount_a: Amount, amount_b: Amount, *, caller: Address) -> Amount:
        """
        Add liquidity; returns the number of shares minted to `caller`.

        Both amounts are pulled in full, even the part beyond the limiting
        ratio (it accrues to existing holders).

        Raises:
            InvalidAmount: If either amount is non-positive or the deposit mints no shares
            InsufficientAllowance, InsufficientBalance: From the asset ledgers
        """
        _require_positive("amount_a", amount_a)
        _require_positive("amount_b", amount_b)
        caller = to_address(caller, name="caller")

        with self.context.atomic("deposit"):
            self.asset_a.transfer_from(caller, self.address, amount_a, spender=self.address)
            self.asset_b.transfer_from(caller, self.address, amount_b, spender=self.address)

            # Reserves and supply are read only after both pulls have returned.
            norm_reserve_a, norm_reserve_b = self._normalized(self._reserve_a, self._reserve_b)
            norm_a, norm_b = self._normalized(amount_a, amount_b)
            shares = compute_shares_to_mint(
                norm_reserve_a,
                norm_reserve_b,
                norm_a,
                norm_b,
                self._share_token.total_supply(),
            )
            self._set_reserves(self._reserve_a + amount_a, self._reserve_b + amount_b)
            self._share_token.mint(caller, shares, caller=self.address)

        logger.info(
            "deposit %s: %d %s + %d %s -> %d shares",
            caller,
            amount_a,
            self.asset_a.symbol,
            amount_b,
            self.asset_b.symbol,
            shares,
        )
        return shares

    def withdraw(self, shares: Amount, *, caller: Address) -> Tuple[Amount, Amount]:
        """
        Burn `shares` for a proportional cut of both reserves.

        Raises:
            InvalidAmount: If `shares` is non-positive or exceeds the caller's balance
        """
        _require_positive("shares", shares)
        caller = to_address(caller, name="caller")
        held = self._share_token.balance_of(caller)
        if shares > held:
            raise InvalidAmount(f"cannot withdraw {shares} shares, {caller} holds {held}")

        with self.context.atomic("withdraw"):
            amount_a, amount_b = compute_withdrawal(
                shares, self._reserve_a, self._reserve_b, self._share_token.total_supply()
            )
            self._share_token.burn(caller, shares, caller=self.address)
            self._set_reserves(self._reserve_a - amount_a, self._reserve_b - amount_b)
            self.asset_a.transfer(caller, amount_a, sender=self.address)
            self.asset_b.transfer(caller, amount_b, sender=self.address)

        logger.info(
            "withdraw %s: %d shares -> %d %s + %d %s",
            caller,
            shares,
            amount_a,
            self.asset_a.symbol,
            amount_b,
            self.asset_b.symbol,
        )
        return amount_a, amount_b

    def swap(self, asset_in: AssetRef, amount_in: Amount, *, caller: Address) -> Amount:
        """
        Sell `amount_in` of `asset_in` for the other asset; returns the amount paid out.

        No minimum-output bound is applied; the trade executes at the current price.

        Raises:
            InvalidAmount: If the asset is foreign, the amount non-positive, or the output rounds to zero
            InvalidReserves: If the pool is empty
            SlippageOrLiquidity: If the output would exceed the reserve
        """
        _require_positive("amount_in", amount_in)
        in_is_a = self._side(asset_in)
        caller = to_address(caller, name="caller")
        ledger_in, ledger_out = (self.asset_a, self.asset_b) if in_is_a else (self.asset_b, self.asset_a)

        with self.context.atomic("swap"):
            ledger_in.transfer_from(caller, self.address, amount_in, spender=self.address)

            reserve_in, reserve_out = self._oriented(in_is_a)
            net_in = apply_swap_fee(amount_in, self.fee_numerator, self.fee_denominator)
            amount_out = self.pricing.compute_output(reserve_in, reserve_out, net_in)
            if amount_out > reserve_out:
                raise SlippageOrLiquidity(f"output {amount_out} exceeds reserve {reserve_out}")
            if amount_out <= 0:
                raise InvalidAmount(f"amount_in {amount_in} too small to produce any output")

            new_in, new_out = reserve_in + amount_in, reserve_out - amount_out
            if in_is_a:
                self._set_reserves(new_in, new_out)
            else:
                self._set_reserves(new_out, new_in)
            ledger_out.transfer(caller, amount_out, sender=self.address)

        logger.info(
            "swap %s: %d %s -> %d %s",
            caller,
            amount_in,
            ledger_in.symbol,
            amount_out,
            ledger_out.symbol,
        )
        return amount_out

    def __repr__(self) -> str:
        return (
            f"Pool({self.asset_a.symbol}/{self.asset_b.symbol}, address={self.address}, "
            f"reserves=({self._reserve_a}, {self._reserve_b}))"
        )


def _require_positive(name: str, value: Amount) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmount(f"{name} must be an int: {value!r}")
    if value <= 0:
        raise InvalidAmount(f"{name} must be positive: {value}")
