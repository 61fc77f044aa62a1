# quotebot/pools.py
"""
HyperSwap V3 Pool Registry
Known pools per unordered token pair, with a hand-assigned fee-tier
preference for each pair. Pools only exist for WHYPE, never native HYPE.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from quotebot.errors import ConfigError
from quotebot.tokens import normalize_address

logger = logging.getLogger(__name__)

SUPPORTED_FEE_TIERS: Tuple[int, ...] = (100, 500, 3000, 10000)  # 0.01%, 0.05%, 0.3%, 1%

PairKey = FrozenSet[str]


def pair_key(symbol_a: str, symbol_b: str) -> PairKey:
    return frozenset((symbol_a, symbol_b))


@dataclass(frozen=True)
class PoolInfo:
    token_a: str
    token_b: str
    fee: int                  # basis points * 100 (3000 = 0.3%)
    address: str
    tvl_usd: float = 0.0
    daily_volume_usd: float = 0.0

    @property
    def pair_key(self) -> PairKey:
        return pair_key(self.token_a, self.token_b)

    @property
    def label(self) -> str:
        return f"{self.token_a}/{self.token_b} {self.fee / 10000:g}%"


@dataclass(frozen=True)
class PoolStats:
    total_pairs: int
    total_pools: int
    total_tvl_usd: float
    total_daily_volume_usd: float


# =============================================================================
# KNOWN POOLS (HyperSwap V3 mainnet)
# =============================================================================

DEFAULT_POOLS: List[PoolInfo] = [
    # WHYPE/USDT0
    PoolInfo("WHYPE", "USDT0", 500, "0x337b56d87a6185cd46af3ac2cdf03cbc37070c30", 6_730_000, 22_950_000),
    PoolInfo("WHYPE", "USDT0", 3000, "0x56abfaf40f5b7464e9cc8cff1af13863d6914508", 10_080_000, 4_900_000),

    # WHYPE/UBTC
    PoolInfo("WHYPE", "UBTC", 3000, "0x3a36b04bcc1d5e2e303981ef643d2668e00b43e7", 7_840_000, 2_800_000),
    PoolInfo("WHYPE", "UBTC", 500, "0xbbcf8523811060e1c112a8459284a48a4b17661f", 66_000, 112_000),

    # WHYPE/USDHL
    PoolInfo("WHYPE", "USDHL", 3000, "0xa3bfe286bc067a9bd38ab0d45561213eb3012395", 3_310_000, 2_200_000),
    PoolInfo("WHYPE", "USDHL", 500, "0xcffd02379e09ef7e9270fce7287f9a0fa1527279", 41_000, 170_000),

    # USDHL/USDT0
    PoolInfo("USDHL", "USDT0", 100, "0x1aa07e8377d70b033ba139e007d51edf689b2ed3", 2_380_000, 5_500_000),
]

# Preferred fee tiers per pair, best first. Chosen by observed
# liquidity/volume, not derived from the numbers above.
DEFAULT_PREFERENCES: Dict[PairKey, Tuple[int, ...]] = {
    pair_key("WHYPE", "USDT0"): (500, 3000),
    pair_key("WHYPE", "UBTC"): (3000, 500),
    pair_key("WHYPE", "USDHL"): (3000, 500),
    pair_key("USDHL", "USDT0"): (100,),
}


# =============================================================================
# REGISTRY
# =============================================================================

class PoolRegistry:
    """Immutable pool registry with symmetric, deterministic pair lookup"""

    def __init__(
        self,
        pools: Iterable[PoolInfo] = DEFAULT_POOLS,
        preferences: Mapping[PairKey, Sequence[int]] = DEFAULT_PREFERENCES,
    ):
        by_pair: Dict[PairKey, Dict[int, PoolInfo]] = {}

        for pool in pools:
            if pool.token_a == pool.token_b:
                raise ConfigError(f"Pool {pool.address} pairs {pool.token_a} with itself")
            if pool.fee not in SUPPORTED_FEE_TIERS:
                raise ConfigError(f"{pool.label}: unsupported fee tier {pool.fee}")
            address = normalize_address(pool.address)
            if address is None:
                raise ConfigError(f"{pool.label}: invalid pool address {pool.address!r}")
            tiers = by_pair.setdefault(pool.pair_key, {})
            if pool.fee in tiers:
                raise ConfigError(f"Duplicate pool for {pool.label}")
            tiers[pool.fee] = PoolInfo(
                pool.token_a, pool.token_b, pool.fee, address, pool.tvl_usd, pool.daily_volume_usd
            )

        for key, fees in preferences.items():
            known = by_pair.get(key, {})
            for fee in fees:
                if fee not in known:
                    raise ConfigError(
                        f"Preference for {'/'.join(sorted(key))} names unknown fee tier {fee}"
                    )

        self._candidates: Dict[PairKey, Tuple[PoolInfo, ...]] = {
            key: self._order(tiers, preferences.get(key, ()))
            for key, tiers in by_pair.items()
        }
        self._by_address: Dict[str, PoolInfo] = {
            pool.address.lower(): pool
            for candidates in self._candidates.values()
            for pool in candidates
        }

    @staticmethod
    def _order(tiers: Dict[int, PoolInfo], preferred: Sequence[int]) -> Tuple[PoolInfo, ...]:
        ordered = [tiers[fee] for fee in preferred]
        rest = sorted(
            (pool for fee, pool in tiers.items() if fee not in preferred),
            key=lambda p: (-p.daily_volume_usd, p.fee),
        )
        return tuple(ordered + rest)

    def candidate_pools(self, symbol_a: str, symbol_b: str) -> List[PoolInfo]:
        """
        Pools for the pair, best first. Order does not depend on argument
        order. Unknown pair -> [] ("no route", not an error).
        """
        return list(self._candidates.get(pair_key(symbol_a, symbol_b), ()))

    def optimal_pool(self, symbol_a: str, symbol_b: str) -> Optional[PoolInfo]:
        candidates = self._candidates.get(pair_key(symbol_a, symbol_b))
        if not candidates:
            logger.warning(f"No pools found for pair {symbol_a}/{symbol_b}")
            return None
        return candidates[0]

    def pool_by_address(self, address: str) -> Optional[PoolInfo]:
        return self._by_address.get(address.lower())

    def is_pool_verified(self, address: str) -> bool:
        return self.pool_by_address(address) is not None

    def available_pairs(self) -> List[Tuple[str, str]]:
        """Pairs as (token_a, token_b) of their preferred pool"""
        return [(c[0].token_a, c[0].token_b) for c in self._candidates.values()]

    def pools_by_priority(self) -> List[PoolInfo]:
        """Optimal pool of every pair, highest daily volume first"""
        return sorted(
            (c[0] for c in self._candidates.values()),
            key=lambda p: -p.daily_volume_usd,
        )

    def pool_stats(self) -> PoolStats:
        pools = list(self._by_address.values())
        return PoolStats(
            total_pairs=len(self._candidates),
            total_pools=len(pools),
            total_tvl_usd=sum(p.tvl_usd for p in pools),
            total_daily_volume_usd=sum(p.daily_volume_usd for p in pools),
        )
