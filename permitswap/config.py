"""
Runtime configuration for the exchange core.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ExchangeConfig:
    # Chain identity bound into every permit domain (cross-chain replay protection).
    chain_id: int = 31337

    # Swap fee as a fraction of the gross input: 3 / 1000 = 0.3%.
    fee_numerator: int = 3
    fee_denominator: int = 1000

    # EIP-712 domain version for asset permits.
    permit_version: str = "1"

    # Deposits are scaled to this many decimals before share math.
    normalized_decimals: int = 18

    # Decimals of the claim token minted by every pool.
    share_decimals: int = 18

    def __post_init__(self) -> None:
        for name in ("chain_id", "fee_numerator", "fee_denominator", "normalized_decimals", "share_decimals"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an int")
        if self.chain_id <= 0:
            raise ValueError(f"chain_id must be positive: {self.chain_id}")
        if self.fee_denominator <= 0:
            raise ValueError(f"fee_denominator must be positive: {self.fee_denominator}")
        if not (0 <= self.fee_numerator < self.fee_denominator):
            raise ValueError(
                f"fee must be in [0, 1): {self.fee_numerator}/{self.fee_denominator}"
            )
        if not isinstance(self.permit_version, str) or not self.permit_version:
            raise ValueError("permit_version must be a non-empty string")
        if self.normalized_decimals < 0 or self.share_decimals < 0:
            raise ValueError("decimals must be non-negative")


DEFAULT_CONFIG = ExchangeConfig()
