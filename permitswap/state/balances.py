"""
Account balance tracking for a single fungible asset.

Implements BalanceTable[Address] -> Amount with every write journaled through
the owning `ExecutionContext`, so an enclosing atomic section can undo it.
"""

from __future__ import annotations

from typing import Callable, Dict, Hashable, Optional

from eth_utils import is_address, to_checksum_address


# Type aliases
Address = str  # EIP-55 checksummed 20-byte hex account address
Amount = int  # Non-negative integer in the asset's smallest unit

UndoFn = Callable[[], None]
JournalFn = Callable[[UndoFn], None]


def to_address(value: str, *, name: str = "address") -> Address:
    """Canonicalize an account address to its checksummed form."""
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"{name} must be a 20-byte hex address: {value!r}")
    return to_checksum_address(value)


class BalanceTable:
    """
    Sparse mapping key -> non-negative amount.

    Keys are accounts for balances and (owner, spender) pairs for allowances.
    Zero amounts are omitted. Each `set` hands an undo closure to `journal`
    (when one is attached) before mutating.
    """

    def __init__(self, journal: Optional[JournalFn] = None) -> None:
        self._balances: Dict[Hashable, Amount] = {}
        self._journal = journal

    def get(self, key: Hashable) -> Amount:
        """Get amount for key. Returns 0 if not found."""
        return self._balances.get(key, 0)

    def set(self, key: Hashable, amount: Amount) -> None:
        """
        Set amount for key.

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if self._journal is not None:
            self._journal(self._undo_for(key))
        if amount == 0:
            self._balances.pop(key, None)
        else:
            self._balances[key] = amount

    def add(self, key: Hashable, delta: int) -> None:
        """Add delta to an amount (delta may be negative)."""
        current = self.get(key)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(key, new_balance)

    def subtract(self, key: Hashable, delta: Amount) -> None:
        """Subtract a non-negative amount."""
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(key, -delta)

    def total(self) -> Amount:
        return sum(self._balances.values())

    def get_all_balances(self) -> Dict[Hashable, Amount]:
        return dict(self._balances)

    def verify_non_negative(self) -> bool:
        return all(amount >= 0 for amount in self._balances.values())

    def _undo_for(self, key: Hashable) -> UndoFn:
        had = key in self._balances
        previous = self._balances.get(key, 0)

        def undo() -> None:
            if had:
                self._balances[key] = previous
            else:
                self._balances.pop(key, None)

        return undo

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
