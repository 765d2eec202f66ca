"""
Core exchange algorithms
"""

from .batch import BatchResult, BatchSwapOrchestrator, StepFill, SwapStep
from .permit import PermitAuthorizer
from .pool import Pool, PoolStatus
from .pricing import ConstantProductCurve, PricingStrategy, apply_swap_fee
from .shares import compute_shares_to_mint, compute_withdrawal, normalize

__all__ = [
    "BatchResult",
    "BatchSwapOrchestrator",
    "StepFill",
    "SwapStep",
    "PermitAuthorizer",
    "Pool",
    "PoolStatus",
    "ConstantProductCurve",
    "PricingStrategy",
    "apply_swap_fee",
    "compute_shares_to_mint",
    "compute_withdrawal",
    "normalize",
]
