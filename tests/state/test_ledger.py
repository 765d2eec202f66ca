# [TESTER] v1

from __future__ import annotations

import pytest

from permitswap.errors import InsufficientAllowance, InsufficientBalance, InvalidAmount
from permitswap.state.context import ExecutionContext
from permitswap.state.ledger import MAX_UINT256, AssetLedger
from permitswap.state.nonces import NonceTable

DEPLOYER = "0x" + "d0" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20


def _ledger() -> AssetLedger:
    return AssetLedger.deploy(ExecutionContext(), "Wrapped Ether", "WETH", 1_000, deployer=DEPLOYER)


def test_deploy_credits_initial_supply() -> None:
    weth = _ledger()
    assert weth.total_supply() == 1_000
    assert weth.balance_of(DEPLOYER) == 1_000
    assert weth.balance_of(DEPLOYER.upper().replace("0X", "0x")) == 1_000


def test_transfer_moves_balance() -> None:
    weth = _ledger()
    weth.transfer(ALICE, 300, sender=DEPLOYER)
    assert weth.balance_of(ALICE) == 300
    assert weth.balance_of(DEPLOYER) == 700
    with pytest.raises(InsufficientBalance):
        weth.transfer(BOB, 301, sender=ALICE)
    with pytest.raises(InvalidAmount):
        weth.transfer(BOB, -1, sender=ALICE)


def test_transfer_from_spends_allowance() -> None:
    weth = _ledger()
    weth.approve(DEPLOYER, ALICE, 400)
    weth.transfer_from(DEPLOYER, BOB, 150, spender=ALICE)
    assert weth.allowance(DEPLOYER, ALICE) == 250
    assert weth.balance_of(BOB) == 150
    with pytest.raises(InsufficientAllowance):
        weth.transfer_from(DEPLOYER, BOB, 251, spender=ALICE)


def test_unlimited_allowance_is_not_decremented() -> None:
    weth = _ledger()
    weth.approve(DEPLOYER, ALICE, MAX_UINT256)
    weth.transfer_from(DEPLOYER, BOB, 10, spender=ALICE)
    assert weth.allowance(DEPLOYER, ALICE) == MAX_UINT256


def test_failed_transfer_from_keeps_allowance() -> None:
    weth = _ledger()
    weth.approve(ALICE, BOB, 50)
    with pytest.raises(InsufficientBalance):
        weth.transfer_from(ALICE, DEPLOYER, 50, spender=BOB)
    assert weth.allowance(ALICE, BOB) == 50


def test_only_minter_mints_and_burns() -> None:
    weth = _ledger()
    with pytest.raises(PermissionError):
        weth.mint(ALICE, 1, caller=ALICE)
    with pytest.raises(PermissionError):
        weth.burn(DEPLOYER, 1, caller=ALICE)
    weth.burn(DEPLOYER, 400, caller=DEPLOYER)
    assert weth.total_supply() == 600
    with pytest.raises(InsufficientBalance):
        weth.burn(DEPLOYER, 601, caller=DEPLOYER)


def test_balances_sum_to_supply_across_operations() -> None:
    weth = _ledger()
    assert weth.supply_is_conserved()
    weth.transfer(ALICE, 300, sender=DEPLOYER)
    weth.mint(BOB, 50, caller=DEPLOYER)
    weth.burn(ALICE, 100, caller=DEPLOYER)
    assert weth.total_supply() == 950
    assert weth.supply_is_conserved()

    weth.mint(BOB, 1, caller=DEPLOYER)
    weth._balances.add(BOB, 1)
    assert not weth.supply_is_conserved()


def test_invalid_addresses_are_rejected() -> None:
    weth = _ledger()
    with pytest.raises(ValueError):
        weth.balance_of("alice")
    with pytest.raises(ValueError):
        AssetLedger(ExecutionContext(), "", "X", minter=DEPLOYER)


def test_nonce_table_requires_sequential_nonces() -> None:
    nonces = NonceTable()
    nonces.consume(ALICE, 0, (27, 1, 2))
    assert nonces.get(ALICE) == 1
    assert nonces.is_consumed(ALICE, (27, 1, 2))
    assert not nonces.is_consumed(BOB, (27, 1, 2))
    with pytest.raises(ValueError):
        nonces.consume(ALICE, 0, (27, 3, 4))
    assert nonces.get_all() == {ALICE: 1}
