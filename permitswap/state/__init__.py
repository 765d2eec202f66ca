"""
State management for the permitswap exchange
"""

from .balances import Address, Amount, BalanceTable, to_address
from .context import ExecutionContext
from .ledger import MAX_UINT256, AssetLedger
from .nonces import NonceTable
from .permits import PermitDomain, PermitSignature

__all__ = [
    "Address",
    "Amount",
    "BalanceTable",
    "to_address",
    "ExecutionContext",
    "MAX_UINT256",
    "AssetLedger",
    "NonceTable",
    "PermitDomain",
    "PermitSignature",
]
