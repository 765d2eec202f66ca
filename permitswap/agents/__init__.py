"""
Client-side helpers for building permit-authorized batches
"""

from .permit_signer import build_swap_step, sign_permit, split_signature, step_to_dict

__all__ = [
    "build_swap_step",
    "sign_permit",
    "split_signature",
    "step_to_dict",
]
