"""
EIP-712 typed data for asset permits.

A permit is signed over:

    domain = {name: <asset name>, version, chainId, verifyingContract: <asset address>}
    Permit(address owner,address spender,uint256 value,uint256 nonce,uint256 deadline)

Binding the asset address and the chain id into the domain prevents a
signature for one asset (or one chain) from being replayed against another.
The message encoding is delegated to `eth_account`; signer recovery uses the
secp256k1 routines from `py_ecc`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from eth_account.messages import SignableMessage, encode_typed_data
from eth_utils import keccak, to_checksum_address
from py_ecc.secp256k1 import N as SECP256K1_N
from py_ecc.secp256k1 import ecdsa_raw_recover

from ..errors import Expired, InvalidSignature, NonceReuse
from .balances import Address, Amount


EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

PERMIT_TYPE = [
    {"name": "owner", "type": "address"},
    {"name": "spender", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
]

_HALF_N = SECP256K1_N // 2


@dataclass(frozen=True)
class PermitSignature:
    """ECDSA signature split into recovery id and the two scalars."""

    v: int
    r: int
    s: int

    def key(self) -> Tuple[int, int, int]:
        return (self.v, self.r, self.s)

    def to_bytes(self) -> bytes:
        """65-byte `r || s || v` encoding."""
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v])


@dataclass(frozen=True)
class PermitDomain:
    name: str
    version: str
    chain_id: int
    verifying_contract: Address

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }


def permit_typed_data(
    domain: PermitDomain,
    *,
    owner: Address,
    spender: Address,
    value: Amount,
    nonce: int,
    deadline: int,
) -> Dict[str, Any]:
    """Full EIP-712 message dict (the shape wallets' `signTypedData` expects)."""
    return {
        "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, "Permit": PERMIT_TYPE},
        "primaryType": "Permit",
        "domain": domain.as_dict(),
        "message": {
            "owner": owner,
            "spender": spender,
            "value": int(value),
            "nonce": int(nonce),
            "deadline": int(deadline),
        },
    }


def permit_signable(
    domain: PermitDomain,
    *,
    owner: Address,
    spender: Address,
    value: Amount,
    nonce: int,
    deadline: int,
) -> SignableMessage:
    return encode_typed_data(
        full_message=permit_typed_data(
            domain, owner=owner, spender=spender, value=value, nonce=nonce, deadline=deadline
        )
    )


def signable_digest(signable: SignableMessage) -> bytes:
    """keccak256(0x19 || version || domainSeparator || structHash)."""
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def permit_digest(
    domain: PermitDomain,
    *,
    owner: Address,
    spender: Address,
    value: Amount,
    nonce: int,
    deadline: int,
) -> bytes:
    return signable_digest(
        permit_signable(domain, owner=owner, spender=spender, value=value, nonce=nonce, deadline=deadline)
    )


def recover_signer(digest: bytes, signature: PermitSignature) -> Address:
    """
    Recover the signing address for a 32-byte digest.

    Raises:
        ValueError: If the signature is malformed, malleable (high-s) or not recoverable
    """
    if len(digest) != 32:
        raise ValueError(f"digest must be 32 bytes, got {len(digest)}")
    v, r, s = signature.v, signature.r, signature.s
    for name, value in (("v", v), ("r", r), ("s", s)):
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"signature component {name} must be an int")
    if not (0 < r < SECP256K1_N) or not (0 < s <= _HALF_N):
        raise ValueError("signature scalars out of range")

    x, y = ecdsa_raw_recover(digest, (v, r, s))
    pubkey = int(x).to_bytes(32, "big") + int(y).to_bytes(32, "big")
    return to_checksum_address(keccak(pubkey)[-20:])


def try_recover_signer(digest: bytes, signature: PermitSignature) -> Optional[Address]:
    """Like `recover_signer`, but returns None instead of raising."""
    try:
        return recover_signer(digest, signature)
    except ValueError:
        return None


def require_valid_permit(
    domain: PermitDomain,
    *,
    owner: Address,
    spender: Address,
    value: Amount,
    nonce: int,
    deadline: int,
    signature: PermitSignature,
    now: int,
    is_consumed: Callable[[PermitSignature], bool],
) -> None:
    """
    Check a permit against the owner's current nonce. Read-only.

    Raises:
        Expired: If `now > deadline`
        NonceReuse: If the signature does not match the current nonce but was
            already consumed under an earlier one
        InvalidSignature: If recovery fails or the signer is not `owner`
    """
    if now > deadline:
        raise Expired(f"permit expired: now {now} > deadline {deadline}")

    digest = permit_digest(
        domain, owner=owner, spender=spender, value=value, nonce=nonce, deadline=deadline
    )
    signer = try_recover_signer(digest, signature)
    if signer == owner:
        return
    if is_consumed(signature):
        raise NonceReuse(f"permit signature already consumed for {owner}")
    if signer is None:
        raise InvalidSignature("permit signature is not recoverable")
    raise InvalidSignature(f"permit signer {signer} does not match owner {owner}")
