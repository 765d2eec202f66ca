#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from eth_account import Account

from permitswap import AssetLedger, BatchSwapOrchestrator, ExchangeConfig, ExecutionContext, Pool
from permitswap.agents import build_swap_step

E18 = 10**18


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Offline permit-authorized batch swap walkthrough.")
    parser.add_argument("--chain-id", type=int, default=31337)
    parser.add_argument("--ttl", type=int, default=3600, help="permit validity in seconds")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    deployer = Account.from_key("0x" + "01" * 32)
    user = Account.from_key("0x" + "02" * 32)
    ctx = ExecutionContext(ExchangeConfig(chain_id=args.chain_id), timestamp=1_700_000_000)

    weth = AssetLedger.deploy(ctx, "Wrapped Ether", "WETH", 1_000_000 * E18, deployer=deployer.address)
    usdc = AssetLedger.deploy(ctx, "USD Coin", "USDC", 1_000_000 * E18, deployer=deployer.address)
    wbtc = AssetLedger.deploy(ctx, "Wrapped BTC", "WBTC", 1_000_000 * E18, deployer=deployer.address)
    for asset in (weth, usdc, wbtc):
        print(f"[batch-demo] {asset.symbol} deployed at {asset.address}")

    # 1. Mint tokens for the user
    weth.mint(user.address, 10 * E18, caller=deployer.address)
    usdc.mint(user.address, 10_000 * E18, caller=deployer.address)
    wbtc.mint(user.address, 5 * E18, caller=deployer.address)
    usdc.mint(deployer.address, 10_300_000_000 * E18, caller=deployer.address)

    weth_usdc = Pool(ctx, weth, usdc)
    wbtc_usdc = Pool(ctx, wbtc, usdc)
    print(f"[batch-demo] {weth_usdc.share_token().symbol} pool at {weth_usdc.address}")
    print(f"[batch-demo] {wbtc_usdc.share_token().symbol} pool at {wbtc_usdc.address}")

    # 2. Approve and 3. deposit liquidity
    weth.approve(deployer.address, weth_usdc.address, 100_000 * E18)
    usdc.approve(deployer.address, weth_usdc.address, 300_000_000 * E18)
    wbtc.approve(deployer.address, wbtc_usdc.address, 100_000 * E18)
    usdc.approve(deployer.address, wbtc_usdc.address, 10_000_000_000 * E18)
    weth_usdc.deposit(100_000 * E18, 300_000_000 * E18, caller=deployer.address)
    wbtc_usdc.deposit(100_000 * E18, 10_000_000_000 * E18, caller=deployer.address)

    # 4. Sign one permit per leg and 5. execute the batch
    deadline = ctx.now + args.ttl
    steps = [
        build_swap_step(weth, weth_usdc, user, 1 * E18, deadline),
        build_swap_step(wbtc, wbtc_usdc, user, 1 * E18, deadline),
    ]
    before = usdc.balance_of(user.address)
    result = BatchSwapOrchestrator(ctx).execute_batch(steps, caller=user.address)
    for fill in result.fills:
        print(f"[batch-demo] step {fill.index}: in={fill.amount_in} out={fill.amount_out}")

    print(f"[batch-demo] USDC received: {usdc.balance_of(user.address) - before}")
    print(f"[batch-demo] WETH balance: {weth.balance_of(user.address)}")
    print(f"[batch-demo] WBTC balance: {wbtc.balance_of(user.address)}")
    print("[batch-demo] OK: batch executed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
