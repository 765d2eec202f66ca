"""
Fungible-asset ledger with EIP-2612 style permits.

One `AssetLedger` instance models one token: balances, allowances, supply and
per-owner permit nonces. The claim token a pool mints to its depositors is the
same class, with the pool's address as the only minter.

Callers are passed explicitly (`sender=`, `spender=`, `caller=`); there is no
ambient message sender.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..errors import InsufficientAllowance, InsufficientBalance, InvalidAmount
from .balances import Address, Amount, BalanceTable, to_address
from .context import ExecutionContext
from .nonces import NonceTable
from .permits import PermitDomain, PermitSignature, require_valid_permit

logger = logging.getLogger(__name__)

MAX_UINT256 = 2**256 - 1


def _require_amount(name: str, value: Amount) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmount(f"{name} must be an int: {value!r}")
    if value < 0:
        raise InvalidAmount(f"{name} must be non-negative: {value}")
    if value > MAX_UINT256:
        raise InvalidAmount(f"{name} exceeds uint256: {value}")


class AssetLedger:
    """
    Balances, allowances and permit nonces for a single asset.

    An allowance of `MAX_UINT256` is treated as unlimited and is not decremented
    by `transfer_from`.
    """

    def __init__(
        self,
        context: ExecutionContext,
        name: str,
        symbol: str,
        decimals: int = 18,
        *,
        minter: Address,
        address: Optional[Address] = None,
    ) -> None:
        if not name or not symbol:
            raise ValueError("name and symbol must be non-empty")
        if not isinstance(decimals, int) or isinstance(decimals, bool) or not (0 <= decimals <= 77):
            raise ValueError(f"decimals must be an int in [0, 77]: {decimals!r}")
        self.context = context
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.minter = to_address(minter, name="minter")
        self.address = to_address(address) if address is not None else context.allocate_address(f"asset:{symbol}")

        self._balances = BalanceTable(journal=context.record)
        self._allowances = BalanceTable(journal=context.record)
        self._supply = BalanceTable(journal=context.record)
        self._nonces = NonceTable(journal=context.record)

    @classmethod
    def deploy(
        cls,
        context: ExecutionContext,
        name: str,
        symbol: str,
        initial_supply: Amount = 0,
        *,
        deployer: Address,
        decimals: int = 18,
    ) -> "AssetLedger":
        """Create a ledger minted by `deployer`, crediting them `initial_supply`."""
        ledger = cls(context, name, symbol, decimals, minter=deployer)
        if initial_supply:
            ledger.mint(deployer, initial_supply, caller=deployer)
        return ledger

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def total_supply(self) -> Amount:
        return self._supply.get(self.address)

    def balance_of(self, account: Address) -> Amount:
        return self._balances.get(to_address(account, name="account"))

    def allowance(self, owner: Address, spender: Address) -> Amount:
        return self._allowances.get((to_address(owner, name="owner"), to_address(spender, name="spender")))

    def nonce_of(self, owner: Address) -> int:
        return self._nonces.get(to_address(owner, name="owner"))

    def domain(self) -> PermitDomain:
        return PermitDomain(
            name=self.name,
            version=self.context.config.permit_version,
            chain_id=self.context.chain_id,
            verifying_contract=self.address,
        )

    def is_consumed(self, owner: Address, signature: PermitSignature) -> bool:
        return self._nonces.is_consumed(to_address(owner, name="owner"), signature.key())

    def supply_is_conserved(self) -> bool:
        """True if every balance is non-negative and balances sum to the total supply."""
        return self._balances.verify_non_negative() and self._balances.total() == self.total_supply()

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def transfer(self, to: Address, amount: Amount, *, sender: Address) -> None:
        _require_amount("amount", amount)
        sender = to_address(sender, name="sender")
        to = to_address(to, name="to")
        self._move(sender, to, amount)
        logger.debug("%s transfer %s -> %s: %d", self.symbol, sender, to, amount)

    def transfer_from(self, owner: Address, to: Address, amount: Amount, *, spender: Address) -> None:
        _require_amount("amount", amount)
        owner = to_address(owner, name="owner")
        to = to_address(to, name="to")
        spender = to_address(spender, name="spender")

        allowed = self._allowances.get((owner, spender))
        if allowed < amount:
            raise InsufficientAllowance(
                f"{self.symbol}: allowance {allowed} of {spender} over {owner} < {amount}"
            )
        with self.context.atomic("transfer_from"):
            if allowed != MAX_UINT256:
                self._allowances.set((owner, spender), allowed - amount)
            self._move(owner, to, amount)
        logger.debug("%s transfer_from %s -> %s by %s: %d", self.symbol, owner, to, spender, amount)

    def approve(self, owner: Address, spender: Address, amount: Amount) -> None:
        _require_amount("amount", amount)
        self._allowances.set((to_address(owner, name="owner"), to_address(spender, name="spender")), amount)

    def _move(self, source: Address, to: Address, amount: Amount) -> None:
        held = self._balances.get(source)
        if held < amount:
            raise InsufficientBalance(f"{self.symbol}: balance of {source} is {held} < {amount}")
        with self.context.atomic("move"):
            self._balances.subtract(source, amount)
            self._balances.add(to, amount)

    # ------------------------------------------------------------------
    # Supply
    # ------------------------------------------------------------------

    def mint(self, to: Address, amount: Amount, *, caller: Address) -> None:
        _require_amount("amount", amount)
        self._require_minter(caller)
        to = to_address(to, name="to")
        if self.total_supply() + amount > MAX_UINT256:
            raise InvalidAmount(f"{self.symbol}: mint would overflow total supply")
        with self.context.atomic("mint"):
            self._supply.add(self.address, amount)
            self._balances.add(to, amount)

    def burn(self, from_: Address, amount: Amount, *, caller: Address) -> None:
        _require_amount("amount", amount)
        self._require_minter(caller)
        from_ = to_address(from_, name="from")
        held = self._balances.get(from_)
        if held < amount:
            raise InsufficientBalance(f"{self.symbol}: cannot burn {amount}, balance of {from_} is {held}")
        with self.context.atomic("burn"):
            self._balances.subtract(from_, amount)
            self._supply.subtract(self.address, amount)

    def _require_minter(self, caller: Address) -> None:
        if to_address(caller, name="caller") != self.minter:
            raise PermissionError(f"{self.symbol}: {caller} is not the minter")

    # ------------------------------------------------------------------
    # Permits
    # ------------------------------------------------------------------

    def permit(
        self,
        owner: Address,
        spender: Address,
        value: Amount,
        deadline: int,
        signature: PermitSignature,
    ) -> None:
        """
        Set `allowance(owner, spender) = value` from an off-chain signature.

        Verification, the nonce bump and the allowance write happen as one
        atomic step; a rejected permit leaves no trace.

        Raises:
            Expired, InvalidSignature, NonceReuse
        """
        _require_amount("value", value)
        _require_amount("deadline", deadline)
        owner = to_address(owner, name="owner")
        spender = to_address(spender, name="spender")
        nonce = self._nonces.get(owner)
        require_valid_permit(
            self.domain(),
            owner=owner,
            spender=spender,
            value=value,
            nonce=nonce,
            deadline=deadline,
            signature=signature,
            now=self.context.now,
            is_consumed=lambda sig: self._nonces.is_consumed(owner, sig.key()),
        )
        with self.context.atomic("permit"):
            self._nonces.consume(owner, nonce, signature.key())
            self._allowances.set((owner, spender), value)

    def __repr__(self) -> str:
        return f"AssetLedger({self.symbol}, address={self.address}, supply={self.total_supply()})"
