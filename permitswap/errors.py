"""Exception types for the exchange core.

Every failure aborts the enclosing operation (deposit, withdraw, swap, permit,
batch) and surfaces one of these. `ExchangeError` derives from `ValueError`.
"""

from __future__ import annotations


class ExchangeError(ValueError):
    """Base class for all exchange failures."""


class InvalidAmount(ExchangeError):
    """Raised for zero, negative or otherwise malformed amounts and assets."""


class InsufficientBalance(ExchangeError):
    """Raised when an account holds less than it is asked to move."""


class InsufficientAllowance(ExchangeError):
    """Raised when a spender moves more than the owner approved."""


class InvalidReserves(ExchangeError):
    """Raised when pricing is attempted against an empty reserve."""


class SlippageOrLiquidity(ExchangeError):
    """Raised when a computed output exceeds the reserve that would pay it."""


class PermitError(ExchangeError):
    """Base class for permit validation failures."""


class Expired(PermitError):
    """Raised when a permit is used after its deadline."""


class InvalidSignature(PermitError):
    """Raised when signer recovery fails or the signer is not the owner."""


class NonceReuse(PermitError):
    """Raised when a permit signature has already been consumed."""


class BatchStepFailed(ExchangeError):
    """Raised when one step of a batch fails; the whole batch is reverted."""

    def __init__(self, index: int, cause: BaseException) -> None:
        self.index = index
        self.cause = cause
        super().__init__(f"batch step {index} failed: {type(cause).__name__}: {cause}")
