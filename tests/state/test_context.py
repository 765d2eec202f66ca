# [TESTER] v1

from __future__ import annotations

import pytest

from permitswap.config import ExchangeConfig
from permitswap.state.balances import BalanceTable, to_address
from permitswap.state.context import ExecutionContext


def test_nested_failure_rolls_back_only_the_inner_section() -> None:
    ctx = ExecutionContext()
    table = BalanceTable(journal=ctx.record)

    with ctx.atomic("outer"):
        table.set("a", 10)
        with pytest.raises(RuntimeError):
            with ctx.atomic("inner"):
                table.set("a", 99)
                table.set("b", 5)
                raise RuntimeError("boom")
        assert table.get("a") == 10
        assert table.get("b") == 0
        table.add("a", 1)

    assert table.get_all_balances() == {"a": 11}
    assert not ctx.in_atomic


def test_outer_failure_undoes_committed_inner_sections() -> None:
    ctx = ExecutionContext()
    table = BalanceTable(journal=ctx.record)
    table.set("a", 1)

    with pytest.raises(KeyError):
        with ctx.atomic():
            with ctx.atomic():
                table.set("a", 2)
                table.set("b", 3)
            raise KeyError("late failure")

    assert table.get_all_balances() == {"a": 1}


def test_writes_outside_atomic_are_final() -> None:
    ctx = ExecutionContext()
    table = BalanceTable(journal=ctx.record)
    table.set("x", 4)
    with pytest.raises(ValueError):
        with ctx.atomic():
            table.subtract("x", 5)
    assert table.get("x") == 4


def test_clock_only_moves_forward() -> None:
    ctx = ExecutionContext(timestamp=100)
    ctx.advance_time(5)
    assert ctx.now == 105
    ctx.set_time(105)
    with pytest.raises(ValueError):
        ctx.set_time(104)
    with pytest.raises(ValueError):
        ctx.advance_time(-1)


def test_allocated_addresses_are_distinct_and_deterministic() -> None:
    first = ExecutionContext(ExchangeConfig(chain_id=1))
    second = ExecutionContext(ExchangeConfig(chain_id=1))
    a1, a2 = first.allocate_address("x"), first.allocate_address("x")
    assert a1 != a2
    assert second.allocate_address("x") == a1
    assert to_address(a1.lower()) == a1
    assert ExecutionContext(ExchangeConfig(chain_id=2)).allocate_address("x") != a1


def test_config_rejects_invalid_values() -> None:
    with pytest.raises(ValueError):
        ExchangeConfig(fee_numerator=1000)
    with pytest.raises(ValueError):
        ExchangeConfig(chain_id=0)
    with pytest.raises(TypeError):
        ExchangeConfig(fee_denominator="1000")
    with pytest.raises(ValueError):
        ExchangeConfig(permit_version="")
