# [TESTER] v1

from __future__ import annotations

import math

import pytest

from permitswap.core.pool import Pool, PoolStatus
from permitswap.errors import InsufficientAllowance, InvalidAmount, InvalidReserves
from permitswap.state.context import ExecutionContext
from permitswap.state.ledger import AssetLedger

E18 = 10**18
DEPLOYER = "0x" + "d0" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20


def _setup(*, usdc_decimals: int = 18) -> tuple[ExecutionContext, AssetLedger, AssetLedger, Pool]:
    ctx = ExecutionContext(timestamp=1_000)
    weth = AssetLedger.deploy(ctx, "Wrapped Ether", "WETH", deployer=DEPLOYER)
    usdc = AssetLedger.deploy(ctx, "USD Coin", "USDC", deployer=DEPLOYER, decimals=usdc_decimals)
    return ctx, weth, usdc, Pool(ctx, weth, usdc)


def _fund(asset: AssetLedger, account: str, amount: int, pool: Pool) -> None:
    asset.mint(account, amount, caller=DEPLOYER)
    asset.approve(account, pool.address, amount)


def _seeded(reserve_a: int, reserve_b: int) -> tuple[ExecutionContext, AssetLedger, AssetLedger, Pool]:
    ctx, weth, usdc, pool = _setup()
    _fund(weth, DEPLOYER, reserve_a, pool)
    _fund(usdc, DEPLOYER, reserve_b, pool)
    pool.deposit(reserve_a, reserve_b, caller=DEPLOYER)
    return ctx, weth, usdc, pool


def test_new_pool_is_empty_and_names_its_share_token() -> None:
    _, weth, usdc, pool = _setup()
    lp = pool.share_token()
    assert lp.name == "WETH/USDC Liquidity Pool Token"
    assert lp.symbol == "WETH/USDC-LP"
    assert lp.minter == pool.address
    assert pool.status() is PoolStatus.EMPTY
    assert pool.reserves() == (0, 0)
    assert (pool.asset_a_id, pool.asset_b_id) == (weth.address, usdc.address)
    assert (pool.asset_a_symbol, pool.asset_b_symbol) == ("WETH", "USDC")


def test_pool_rejects_identical_assets_and_oversized_decimals() -> None:
    ctx = ExecutionContext()
    weth = AssetLedger.deploy(ctx, "Wrapped Ether", "WETH", deployer=DEPLOYER)
    wide = AssetLedger.deploy(ctx, "Wide", "WIDE", deployer=DEPLOYER, decimals=24)
    with pytest.raises(ValueError):
        Pool(ctx, weth, weth)
    with pytest.raises(ValueError):
        Pool(ctx, weth, wide)
    with pytest.raises(TypeError):
        Pool(ctx, weth, AssetLedger.deploy(ctx, "USD Coin", "USDC", deployer=DEPLOYER), pricing=object())


def test_first_and_second_deposit_mint_expected_shares() -> None:
    _, weth, usdc, pool = _setup()
    _fund(weth, ALICE, 10 * E18, pool)
    _fund(usdc, ALICE, 20_000 * E18, pool)

    first = pool.deposit(1 * E18, 3_000 * E18, caller=ALICE)
    assert 5477 * 10**16 < first < 5478 * 10**16
    assert pool.status() is PoolStatus.FUNDED

    second = pool.deposit(2 * E18, 8_000 * E18, caller=ALICE)
    assert 10954 * 10**16 < second < 10955 * 10**16

    total = pool.share_token().total_supply()
    assert total == first + second
    assert 16431 * 10**16 < total < 16433 * 10**16
    assert pool.reserves() == (3 * E18, 11_000 * E18)
    assert weth.balance_of(pool.address) == 3 * E18
    assert pool.invariant_violations() == []


def test_excess_over_limiting_ratio_accrues_to_existing_holders() -> None:
    _, weth, usdc, pool = _seeded(1 * E18, 3_000 * E18)
    _fund(weth, BOB, 2 * E18, pool)
    _fund(usdc, BOB, 8_000 * E18, pool)

    shares = pool.deposit(2 * E18, 8_000 * E18, caller=BOB)
    out_a, out_b = pool.withdraw(shares, caller=BOB)
    assert out_a == 2 * E18
    assert out_b < 8_000 * E18
    assert usdc.balance_of(BOB) == out_b

    lp_out_a, lp_out_b = pool.withdraw(pool.share_token().balance_of(DEPLOYER), caller=DEPLOYER)
    assert lp_out_a == 1 * E18
    assert lp_out_b > 3_000 * E18


def test_withdrawing_all_shares_returns_reserves_exactly() -> None:
    _, weth, usdc, pool = _seeded(7 * E18, 21_001 * E18)
    shares = pool.share_token().balance_of(DEPLOYER)

    assert pool.withdraw(shares, caller=DEPLOYER) == (7 * E18, 21_001 * E18)
    assert pool.reserves() == (0, 0)
    assert pool.status() is PoolStatus.EMPTY
    assert weth.balance_of(DEPLOYER) == 7 * E18
    assert usdc.balance_of(DEPLOYER) == 21_001 * E18
    assert pool.invariant_violations() == []


def test_mixed_decimals_are_normalized_before_share_math() -> None:
    _, weth, usdc, pool = _setup(usdc_decimals=6)
    _fund(weth, ALICE, 1 * E18, pool)
    _fund(usdc, ALICE, 3_000 * 10**6, pool)

    shares = pool.deposit(1 * E18, 3_000 * 10**6, caller=ALICE)
    assert shares == math.isqrt(E18 * 3_000 * E18)
    assert pool.reserves() == (1 * E18, 3_000 * 10**6)


def test_deposit_without_full_allowance_changes_nothing() -> None:
    _, weth, usdc, pool = _setup()
    _fund(weth, ALICE, 1 * E18, pool)
    usdc.mint(ALICE, 3_000 * E18, caller=DEPLOYER)
    usdc.approve(ALICE, pool.address, 1_000 * E18)

    with pytest.raises(InsufficientAllowance):
        pool.deposit(1 * E18, 3_000 * E18, caller=ALICE)

    assert weth.balance_of(ALICE) == 1 * E18
    assert weth.allowance(ALICE, pool.address) == 1 * E18
    assert pool.reserves() == (0, 0)
    assert pool.share_token().total_supply() == 0


def test_deposit_rejects_non_positive_amounts() -> None:
    _, _, _, pool = _setup()
    with pytest.raises(InvalidAmount):
        pool.deposit(0, 1, caller=ALICE)
    with pytest.raises(InvalidAmount):
        pool.deposit(1, -1, caller=ALICE)


def test_withdraw_more_than_held_is_rejected() -> None:
    _, _, _, pool = _seeded(E18, E18)
    with pytest.raises(InvalidAmount):
        pool.withdraw(1, caller=ALICE)
    with pytest.raises(InvalidAmount):
        pool.withdraw(0, caller=DEPLOYER)


def test_swap_pays_quote_and_updates_reserves() -> None:
    _, weth, usdc, pool = _seeded(10_000 * E18, 30_000_000 * E18)
    _fund(weth, ALICE, 1 * E18, pool)
    k_before = pool.reserve_a() * pool.reserve_b()

    quoted = pool.quote(weth, 1 * E18)
    out = pool.swap(weth, 1 * E18, caller=ALICE)

    assert out == quoted
    assert 2980 * E18 < out < 3000 * E18
    assert weth.balance_of(ALICE) == 0
    assert usdc.balance_of(ALICE) == out
    assert pool.reserves() == (10_001 * E18, 30_000_000 * E18 - out)
    assert pool.reserve_a() * pool.reserve_b() >= k_before
    assert pool.invariant_violations() == []


def test_swap_in_reverse_direction_by_address() -> None:
    _, weth, usdc, pool = _seeded(10 * E18, 30_000 * E18)
    _fund(usdc, ALICE, 3_000 * E18, pool)

    out = pool.swap(usdc.address.lower(), 3_000 * E18, caller=ALICE)

    assert 0 < out < 1 * E18
    assert weth.balance_of(ALICE) == out
    assert pool.reserves() == (10 * E18 - out, 33_000 * E18)


def test_swap_rejects_foreign_asset_and_dust() -> None:
    ctx, weth, _, pool = _seeded(10 * E18, 30_000 * E18)
    other = AssetLedger.deploy(ctx, "Dai", "DAI", deployer=DEPLOYER)
    with pytest.raises(InvalidAmount):
        pool.swap(other, E18, caller=ALICE)

    _fund(weth, ALICE, 1, pool)
    with pytest.raises(InvalidAmount):
        pool.swap(weth, 1, caller=ALICE)
    assert weth.balance_of(ALICE) == 1


def test_swap_against_empty_pool_is_reverted() -> None:
    _, weth, _, pool = _setup()
    _fund(weth, ALICE, E18, pool)

    with pytest.raises(InvalidReserves):
        pool.swap(weth, E18, caller=ALICE)

    assert weth.balance_of(ALICE) == E18
    assert weth.allowance(ALICE, pool.address) == E18
    assert weth.balance_of(pool.address) == 0
