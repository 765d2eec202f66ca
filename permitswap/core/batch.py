"""
Atomic multi-pool swap execution authorized by permits.

Each step carries its own permit: the caller signs, off-chain, an allowance for
the step's pool to pull `amount` of the step's asset. The orchestrator applies
the permit and runs the swap, step by step in the given order. If any step
fails, every effect of the batch (nonces, allowances, balances, reserves) is
undone and `BatchStepFailed` reports the failing index.

Steps carry no minimum-output bound: each swap executes at whatever price its
pool offers when the step runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from ..errors import BatchStepFailed, InvalidAmount
from ..state.balances import Address, Amount, to_address
from ..state.context import ExecutionContext
from ..state.ledger import AssetLedger
from ..state.permits import PermitSignature
from .permit import PermitAuthorizer
from .pool import Pool

logger = logging.getLogger(__name__)


def _parse_scalar(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidAmount(f"{name} must be an int or hex string")
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    if isinstance(value, str):
        s = value.strip()
        try:
            if s.startswith(("0x", "0X")):
                return int(s, 16)
            return int(s, 10)
        except ValueError as exc:
            raise InvalidAmount(f"{name} must be an int or hex string: {value!r}") from exc
    raise InvalidAmount(f"{name} must be an int or hex string: {value!r}")


@dataclass(frozen=True)
class SwapStep:
    """One swap leg: sell `amount` of `asset` into `pool`, authorized by (v, r, s)."""

    asset: AssetLedger
    pool: Pool
    amount: Amount
    deadline: int
    v: int
    r: int
    s: int

    @property
    def signature(self) -> PermitSignature:
        return PermitSignature(v=self.v, r=self.r, s=self.s)

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        *,
        assets: Mapping[Address, AssetLedger],
        pools: Mapping[Address, Pool],
    ) -> "SwapStep":
        """
        Build a step from the client form `{asset, pool, amount, deadline, v, r, s}`.

        `asset` and `pool` are addresses resolved through the given registries
        (`token` is accepted as an alias for `asset`). Scalars may be ints or
        decimal/0x-hex strings.
        """
        missing = [k for k in ("pool", "amount", "deadline", "v", "r", "s") if k not in data]
        if "asset" not in data and "token" not in data:
            missing.insert(0, "asset")
        if missing:
            raise InvalidAmount(f"swap step missing fields: {', '.join(missing)}")

        asset_addr = to_address(data.get("asset", data.get("token")), name="asset")
        pool_addr = to_address(data["pool"], name="pool")
        by_asset = {to_address(k): v for k, v in assets.items()}
        by_pool = {to_address(k): v for k, v in pools.items()}
        if asset_addr not in by_asset:
            raise InvalidAmount(f"unknown asset: {asset_addr}")
        if pool_addr not in by_pool:
            raise InvalidAmount(f"unknown pool: {pool_addr}")

        return cls(
            asset=by_asset[asset_addr],
            pool=by_pool[pool_addr],
            amount=_parse_scalar("amount", data["amount"]),
            deadline=_parse_scalar("deadline", data["deadline"]),
            v=_parse_scalar("v", data["v"]),
            r=_parse_scalar("r", data["r"]),
            s=_parse_scalar("s", data["s"]),
        )


@dataclass(frozen=True)
class StepFill:
    index: int
    pool: Address
    asset_in: Address
    amount_in: Amount
    amount_out: Amount


@dataclass(frozen=True)
class BatchResult:
    caller: Address
    fills: Tuple[StepFill, ...]

    @property
    def total_steps(self) -> int:
        return len(self.fills)


class BatchSwapOrchestrator:
    def __init__(self, context: ExecutionContext, authorizer: Optional[PermitAuthorizer] = None) -> None:
        self.context = context
        self.authorizer = authorizer if authorizer is not None else PermitAuthorizer(context)

    def execute_batch(self, steps: Sequence[SwapStep], *, caller: Address) -> BatchResult:
        """
        Run every step or none.

        Raises:
            InvalidAmount: If `steps` is empty
            BatchStepFailed: Wrapping the first failing step's error; all effects are reverted
        """
        steps = list(steps)
        if not steps:
            raise InvalidAmount("batch must contain at least one step")
        caller = to_address(caller, name="caller")

        fills: List[StepFill] = []
        try:
            with self.context.atomic("batch"):
                for index, step in enumerate(steps):
                    fills.append(self._execute_step(index, step, caller))
        except BatchStepFailed as exc:
            logger.warning("batch by %s reverted at step %d: %s", caller, exc.index, exc.cause)
            raise

        logger.info("batch by %s executed %d step(s)", caller, len(fills))
        return BatchResult(caller=caller, fills=tuple(fills))

    def _execute_step(self, index: int, step: SwapStep, caller: Address) -> StepFill:
        try:
            if not isinstance(step, SwapStep):
                raise InvalidAmount(f"expected SwapStep, got {type(step).__name__}")
            self.authorizer.authorize(
                step.asset,
                caller,
                step.pool.address,
                step.amount,
                step.deadline,
                step.signature,
            )
            amount_out = step.pool.swap(step.asset, step.amount, caller=caller)
        except Exception as exc:
            raise BatchStepFailed(index, exc) from exc
        return StepFill(
            index=index,
            pool=step.pool.address,
            asset_in=step.asset.address,
            amount_in=step.amount,
            amount_out=amount_out,
        )
