"""
Permit nonce table for replay protection.

We track, per owner address, the next nonce a permit must be signed over, and
the signatures already consumed. Nonces only ever advance by one per accepted
permit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Set, Tuple

from .balances import Address, JournalFn

SignatureKey = Tuple[int, int, int]


@dataclass
class NonceTable:
    """
    Mutable mapping: owner -> next_nonce, plus the set of consumed (v, r, s).
    """

    journal: Optional[JournalFn] = None
    _next: Dict[Address, int] = field(default_factory=dict)
    _consumed: Set[Tuple[Address, SignatureKey]] = field(default_factory=set)

    def get(self, owner: Address) -> int:
        v = self._next.get(owner, 0)
        if not isinstance(v, int) or isinstance(v, bool) or v < 0:
            raise ValueError(f"invalid stored nonce for {owner!r}: {v!r}")
        return v

    def consume(self, owner: Address, nonce: int, signature: SignatureKey) -> None:
        """Advance `owner` past `nonce` and remember `signature` as spent."""
        current = self.get(owner)
        if nonce != current:
            raise ValueError(f"nonce sequence invalid for {owner}: expected {current}, got {nonce}")
        key = (owner, signature)
        if self.journal is not None:
            self.journal(self._undo_for(owner, key))
        self._next[owner] = current + 1
        self._consumed.add(key)

    def is_consumed(self, owner: Address, signature: SignatureKey) -> bool:
        return (owner, signature) in self._consumed

    def get_all(self) -> Mapping[Address, int]:
        # Return a shallow copy to avoid accidental mutation during iteration.
        return dict(self._next)

    def _undo_for(self, owner: Address, key: Tuple[Address, SignatureKey]):
        had = owner in self._next
        previous = self._next.get(owner, 0)
        was_consumed = key in self._consumed

        def undo() -> None:
            if had:
                self._next[owner] = previous
            else:
                self._next.pop(owner, None)
            if not was_consumed:
                self._consumed.discard(key)

        return undo
