# quotebot/main.py
"""
Quote Engine CLI

THIS IS THE ENTRY POINT - Run with: python -m quotebot.main <command>

COMMANDS:
1. price BASE QUOTE    Pair price for the base reference amount
2. quote IN OUT AMOUNT Estimate a manual swap's output
3. pools               Pool registry overview
4. pool A B FEE        Factory lookup and slot0 of one pool
5. health              RPC health check
"""

import argparse
import logging
import sys
from datetime import datetime
from decimal import Decimal, DecimalException

from quotebot.config import LOG_DIR, EngineConfig, load_config
from quotebot.context import EngineContext, build_context
from quotebot.errors import NoHealthyRpcError, QuoteEngineError
from quotebot.rpc_health import RPCHealth, find_healthy_rpc
from quotebot.tokens import format_units, parse_units

logger = logging.getLogger(__name__)


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(level: str) -> None:
    LOG_DIR.mkdir(exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, level),
        format='%(asctime)s | %(levelname)-8s | %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(LOG_DIR / f"quotebot_{datetime.now().strftime('%Y%m%d')}.log"),
        ]
    )


# =============================================================================
# COMMANDS
# =============================================================================

def connect(config: EngineConfig) -> EngineContext:
    w3, rpc_url = find_healthy_rpc(config.rpc_endpoints, timeout=config.rpc_timeout_seconds)
    if w3 is None:
        raise NoHealthyRpcError(f"No healthy HyperEVM RPC endpoint among {len(config.rpc_endpoints)} tried")
    logger.info(f"✅ Connected to {rpc_url} (Chain ID: {w3.eth.chain_id})")
    return build_context(config, w3=w3)


def cmd_price(ctx: EngineContext, args) -> int:
    pair_price = ctx.prices.quote_pair(args.base, args.quote, force_fresh=args.fresh)
    if pair_price is None:
        print(f"No route for {args.base}/{args.quote}")
        return 1

    reference = format_units(pair_price.amount_in, ctx.tokens.decimals_of(pair_price.base))
    print(f"{pair_price.base}/{pair_price.quote}: {pair_price.price:.10g} per {reference} {pair_price.base}")
    print(f"  per 1 {pair_price.base}: {pair_price.unit_price:.10g} {pair_price.quote}")
    print(f"  fee tier: {pair_price.fee}  pool: {pair_price.pool_address}")
    print(f"  source:   {pair_price.source.value}")
    if pair_price.is_fallback:
        print("  ⚠️  synthetic fallback estimate - do not size trades on it")
    return 0


def cmd_quote(ctx: EngineContext, args) -> int:
    token_in = ctx.tokens.get(args.token_in)
    token_out = ctx.tokens.get(args.token_out)
    if token_in is None or token_out is None:
        print(f"Unknown token symbol: {args.token_in if token_in is None else args.token_out}")
        return 1

    try:
        amount_in = parse_units(args.amount, token_in.decimals)
    except (DecimalException, ValueError, OverflowError):
        print(f"Invalid amount: {args.amount}")
        return 1
    if amount_in <= 0:
        print(f"Amount must be positive: {args.amount}")
        return 1

    fee = args.fee
    if fee is None:
        pool = ctx.pools.optimal_pool(
            ctx.tokens.pool_symbol(token_in.symbol), ctx.tokens.pool_symbol(token_out.symbol)
        )
        if pool is None:
            print(f"No pool for {token_in.symbol}/{token_out.symbol}; pass --fee")
            return 1
        fee = pool.fee

    result = ctx.resolver.resolve(token_in.address, token_out.address, amount_in, fee)
    amount_out = format_units(result.amount_out, token_out.decimals)
    print(f"{Decimal(args.amount)} {token_in.symbol} -> {amount_out} {token_out.symbol} (fee {fee})")
    print(f"  source: {result.source.value}  gas estimate: {result.gas_estimate}")
    if result.is_fallback:
        print("  ⚠️  synthetic fallback estimate - do not size trades on it")
    return 0


def cmd_pools(ctx: EngineContext, args) -> int:
    stats = ctx.pools.pool_stats()
    print(f"Pairs: {stats.total_pairs}  Pools: {stats.total_pools}")
    print(f"TVL: ${stats.total_tvl_usd:,.0f}  Daily volume: ${stats.total_daily_volume_usd:,.0f}")
    for token_a, token_b in ctx.pools.available_pairs():
        ordered = ", ".join(p.label.split(" ")[1] for p in ctx.pools.candidate_pools(token_a, token_b))
        print(f"  {token_a}/{token_b}: {ordered}")
    return 0


def cmd_pool(ctx: EngineContext, args) -> int:
    token_a = ctx.tokens.get(args.token_a)
    token_b = ctx.tokens.get(args.token_b)
    if token_a is None or token_b is None:
        print(f"Unknown token symbol: {args.token_a if token_a is None else args.token_b}")
        return 1

    state = ctx.inspector.pool_info(token_a.address, token_b.address, args.fee)
    if state is None:
        print(f"No pool for {token_a.symbol}/{token_b.symbol} fee {args.fee}")
        return 1

    verified = ctx.pools.is_pool_verified(state.address)
    print(f"Pool {state.address} ({'registered' if verified else 'not in registry'})")
    print(f"  token0: {state.token0}  token1: {state.token1}")
    print(f"  tick: {state.tick}  liquidity: {state.liquidity}")
    if state.price is not None:
        print(f"  price token0 in token1: {state.price:.10g}")
    return 0


def cmd_health(config: EngineConfig) -> int:
    try:
        rpc = RPCHealth(config.rpc_url, timeout=config.rpc_timeout_seconds)
    except Exception as e:
        print(f"❌ {e}")
        return 1
    ok, status = rpc.check()
    print(f"{'✅' if ok else '❌'} {config.rpc_url}: {status}")
    return 0 if ok else 1


# =============================================================================
# ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="HyperSwap V3 quote engine")
    sub = parser.add_subparsers(dest="command", required=True)

    price = sub.add_parser("price", help="QUOTE received for the BASE reference amount")
    price.add_argument("base")
    price.add_argument("quote")
    price.add_argument("--fresh", action="store_true", help="Bypass the quote cache")

    quote = sub.add_parser("quote", help="Estimate swap output")
    quote.add_argument("token_in")
    quote.add_argument("token_out")
    quote.add_argument("amount", help="Human amount of token_in, e.g. 1.5")
    quote.add_argument("--fee", type=int, default=None, help="Fee tier (100/500/3000/10000)")

    pool = sub.add_parser("pool", help="Inspect a pool through the factory")
    pool.add_argument("token_a")
    pool.add_argument("token_b")
    pool.add_argument("fee", type=int)

    sub.add_parser("pools", help="Show the pool registry")
    sub.add_parser("health", help="Check RPC health")
    return parser


def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
    except QuoteEngineError as e:
        print(f"❌ {e}")
        return 1
    setup_logging(config.log_level)

    if args.command == "health":
        return cmd_health(config)
    if args.command == "pools":
        return cmd_pools(build_context(config), args)

    try:
        ctx = connect(config)
        if args.command == "price":
            return cmd_price(ctx, args)
        if args.command == "pool":
            return cmd_pool(ctx, args)
        return cmd_quote(ctx, args)
    except QuoteEngineError as e:
        logger.error(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
