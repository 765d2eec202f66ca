"""
Explicit execution context.

Replaces ambient chain-wide state: the context owns the chain id, the clock,
address allocation and the undo journal that makes every operation atomic.
All ledgers and pools are created against a context and journal their writes
through it.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from eth_utils import keccak, to_checksum_address

from ..config import DEFAULT_CONFIG, ExchangeConfig
from .balances import Address, UndoFn

logger = logging.getLogger(__name__)


class ExecutionContext:
    """
    Single-writer transactional context.

    `atomic()` opens a (nestable) savepoint. Writes made inside it are journaled;
    if the block raises, the journal is unwound back to the savepoint in reverse
    order and the exception propagates. The journal is discarded once the
    outermost section exits cleanly.
    """

    def __init__(self, config: ExchangeConfig = DEFAULT_CONFIG, *, timestamp: int = 0) -> None:
        if timestamp < 0:
            raise ValueError(f"timestamp must be non-negative: {timestamp}")
        self.config = config
        self._timestamp = int(timestamp)
        self._journal: List[UndoFn] = []
        self._depth = 0
        self._address_counter = 0

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    @property
    def chain_id(self) -> int:
        return self.config.chain_id

    @property
    def now(self) -> int:
        return self._timestamp

    def set_time(self, timestamp: int) -> None:
        if timestamp < self._timestamp:
            raise ValueError(f"clock cannot go backwards: {timestamp} < {self._timestamp}")
        self._timestamp = int(timestamp)

    def advance_time(self, seconds: int) -> None:
        if seconds < 0:
            raise ValueError(f"seconds must be non-negative: {seconds}")
        self._timestamp += int(seconds)

    def allocate_address(self, label: str) -> Address:
        """Deterministic, collision-free address for a ledger or pool."""
        self._address_counter += 1
        seed = f"permitswap:{self.chain_id}:{self._address_counter}:{label}".encode("utf-8")
        return to_checksum_address(keccak(seed)[-20:])

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    @property
    def in_atomic(self) -> bool:
        return self._depth > 0

    def record(self, undo: UndoFn) -> None:
        """Journal an undo closure. Outside an atomic section writes are final."""
        if self._depth > 0:
            self._journal.append(undo)

    @contextmanager
    def atomic(self, label: Optional[str] = None) -> Iterator[None]:
        mark = len(self._journal)
        self._depth += 1
        try:
            yield
        except BaseException:
            undone = self._rollback(mark)
            logger.debug("rolled back %d write(s) in %s", undone, label or "atomic section")
            raise
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._journal.clear()

    def _rollback(self, mark: int) -> int:
        undone = 0
        while len(self._journal) > mark:
            undo = self._journal.pop()
            undo()
            undone += 1
        return undone

    def __repr__(self) -> str:
        return f"ExecutionContext(chain_id={self.chain_id}, now={self._timestamp})"
