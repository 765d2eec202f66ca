"""
Permit creation and signing for clients.
"""

from typing import Any, Dict, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..core.batch import SwapStep
from ..core.pool import Pool
from ..state.balances import Address, Amount, to_address
from ..state.ledger import AssetLedger
from ..state.permits import PermitSignature, permit_signable

PrivateKey = Union[str, bytes, LocalAccount]


def _account(private_key: PrivateKey) -> LocalAccount:
    if isinstance(private_key, LocalAccount):
        return private_key
    return Account.from_key(private_key)


def sign_permit(
    asset: AssetLedger,
    spender: Address,
    private_key: PrivateKey,
    value: Amount,
    deadline: int,
    nonce: Union[int, None] = None,
) -> PermitSignature:
    """
    Sign an EIP-712 permit allowing `spender` to move `value` of `asset`.

    Args:
        asset: Asset ledger whose domain (name, chain id, address) is signed over
        spender: Account being authorized
        private_key: Owner's secp256k1 key (hex, bytes, or a LocalAccount)
        value: Allowance to grant
        deadline: Last timestamp at which the permit is valid
        nonce: Nonce to sign over (defaults to the owner's current ledger nonce)

    Returns:
        PermitSignature with v in {27, 28}
    """
    account = _account(private_key)
    owner = to_address(account.address, name="owner")
    if nonce is None:
        nonce = asset.nonce_of(owner)

    signable = permit_signable(
        asset.domain(),
        owner=owner,
        spender=to_address(spender, name="spender"),
        value=value,
        nonce=nonce,
        deadline=deadline,
    )
    signed = account.sign_message(signable)
    return PermitSignature(v=signed.v, r=signed.r, s=signed.s)


def split_signature(signature: Union[str, bytes]) -> PermitSignature:
    """
    Split a 65-byte `r || s || v` signature (hex or raw) into its components.

    A recovery id of 0/1 is shifted to 27/28.
    """
    if isinstance(signature, str):
        s = signature[2:] if signature.startswith(("0x", "0X")) else signature
        try:
            raw = bytes.fromhex(s)
        except ValueError as exc:
            raise ValueError("signature must be valid hex") from exc
    else:
        raw = bytes(signature)
    if len(raw) != 65:
        raise ValueError(f"signature must be 65 bytes, got {len(raw)}")

    r = int.from_bytes(raw[0:32], "big")
    s_val = int.from_bytes(raw[32:64], "big")
    v = raw[64]
    if v in (0, 1):
        v += 27
    return PermitSignature(v=v, r=r, s=s_val)


def build_swap_step(
    asset: AssetLedger,
    pool: Pool,
    private_key: PrivateKey,
    amount: Amount,
    deadline: int,
    nonce: Union[int, None] = None,
) -> SwapStep:
    """Sign a permit for `pool` to pull `amount` of `asset` and wrap it as a batch step."""
    sig = sign_permit(asset, pool.address, private_key, amount, deadline, nonce=nonce)
    return SwapStep(
        asset=asset,
        pool=pool,
        amount=amount,
        deadline=deadline,
        v=sig.v,
        r=sig.r,
        s=sig.s,
    )


def step_to_dict(step: SwapStep) -> Dict[str, Any]:
    """Client wire form of a step (addresses and 0x-hex scalars)."""
    return {
        "asset": step.asset.address,
        "pool": step.pool.address,
        "amount": step.amount,
        "deadline": step.deadline,
        "v": step.v,
        "r": "0x" + step.r.to_bytes(32, "big").hex(),
        "s": "0x" + step.s.to_bytes(32, "big").hex(),
    }
