"""
Permit authorization: off-chain signature -> on-chain allowance.
"""

from __future__ import annotations

import logging

from ..errors import InvalidAmount
from ..state.balances import Address, Amount, to_address
from ..state.context import ExecutionContext
from ..state.ledger import AssetLedger
from ..state.permits import PermitSignature, require_valid_permit

logger = logging.getLogger(__name__)


class PermitAuthorizer:
    """
    Validates single-use, time-bounded permits and applies them to the asset ledger.

    Checks run in order: deadline, then signer recovery against the owner's
    *current* ledger nonce. A signature that only matches an already-consumed
    nonce is reported as `NonceReuse` rather than `InvalidSignature`.
    """

    def __init__(self, context: ExecutionContext) -> None:
        self.context = context

    def verify(
        self,
        asset: AssetLedger,
        owner: Address,
        spender: Address,
        value: Amount,
        deadline: int,
        signature: PermitSignature,
    ) -> None:
        """Read-only check; raises a `PermitError` if `authorize` would reject."""
        if not isinstance(signature, PermitSignature):
            raise TypeError(f"signature must be a PermitSignature: {signature!r}")
        for name, v in (("value", value), ("deadline", deadline)):
            if not isinstance(v, int) or isinstance(v, bool) or v < 0:
                raise InvalidAmount(f"{name} must be a non-negative int: {v!r}")
        owner = to_address(owner, name="owner")
        spender = to_address(spender, name="spender")
        require_valid_permit(
            asset.domain(),
            owner=owner,
            spender=spender,
            value=value,
            nonce=asset.nonce_of(owner),
            deadline=deadline,
            signature=signature,
            now=self.context.now,
            is_consumed=lambda sig: asset.is_consumed(owner, sig),
        )

    def authorize(
        self,
        asset: AssetLedger,
        owner: Address,
        spender: Address,
        value: Amount,
        deadline: int,
        signature: PermitSignature,
    ) -> None:
        """
        Verify the permit, then let the ledger bump the nonce and set the allowance.

        Raises:
            Expired, InvalidSignature, NonceReuse
        """
        with self.context.atomic("authorize"):
            self.verify(asset, owner, spender, value, deadline, signature)
            asset.permit(owner, spender, value, deadline, signature)
        logger.info(
            "permit %s: %s allows %s to spend %d (deadline %d)",
            asset.symbol,
            owner,
            spender,
            value,
            deadline,
        )
