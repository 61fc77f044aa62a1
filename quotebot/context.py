# quotebot/context.py
"""
Engine context: every component wired once at startup and passed around
explicitly. Nothing in the package keeps module-level state.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from web3 import Web3

from quotebot.cache import QuoteCache
from quotebot.config import EngineConfig
from quotebot.pool_inspector import PoolInspector
from quotebot.pools import PoolRegistry
from quotebot.price_service import PairPriceService
from quotebot.quote_engine import QuoteResolver
from quotebot.tokens import TokenRegistry

logger = logging.getLogger(__name__)


@dataclass
class EngineContext:
    config: EngineConfig
    tokens: TokenRegistry
    pools: PoolRegistry
    cache: QuoteCache
    resolver: QuoteResolver
    prices: PairPriceService
    inspector: PoolInspector

    def bind(self, w3: Web3) -> None:
        self.resolver.bind(w3)
        self.inspector.bind(w3)


def build_context(
    config: EngineConfig,
    w3: Optional[Web3] = None,
    tokens: Optional[TokenRegistry] = None,
    pools: Optional[PoolRegistry] = None,
    clock: Callable[[], float] = time.time,
) -> EngineContext:
    """Build registries, cache and services; bind contracts when w3 is given"""
    tokens = tokens or TokenRegistry()
    pools = pools or PoolRegistry()
    cache = QuoteCache(ttl_ms=config.cache_ttl_ms, clock=clock)
    resolver = QuoteResolver(
        tokens,
        cache,
        config.quoter_v2_address,
        fallback_numerator=config.fallback_rate_numerator,
        fallback_denominator=config.fallback_rate_denominator,
        clock=clock,
    )
    context = EngineContext(
        config=config,
        tokens=tokens,
        pools=pools,
        cache=cache,
        resolver=resolver,
        prices=PairPriceService(tokens, pools, resolver),
        inspector=PoolInspector(tokens, config.factory_address),
    )
    logger.info(
        f"Quote engine ready: {len(tokens)} tokens, "
        f"{pools.pool_stats().total_pools} pools, cache TTL {config.cache_ttl_ms}ms"
    )

    if w3 is not None:
        context.bind(w3)
    return context
