"""
permitswap: two-asset constant-product pools with permit-authorized batch swaps.
"""

from .config import DEFAULT_CONFIG, ExchangeConfig
from .core import BatchSwapOrchestrator, ConstantProductCurve, PermitAuthorizer, Pool, SwapStep
from .state import AssetLedger, ExecutionContext, PermitSignature

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CONFIG",
    "ExchangeConfig",
    "BatchSwapOrchestrator",
    "ConstantProductCurve",
    "PermitAuthorizer",
    "Pool",
    "SwapStep",
    "AssetLedger",
    "ExecutionContext",
    "PermitSignature",
]
