# quotebot/price_service.py
"""
Pair Price Service
Turns two token symbols into a human price by quoting a standard reference
amount through the pair's candidate pools, best first.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from quotebot.models import QuoteResult, QuoteSource
from quotebot.pools import PoolInfo, PoolRegistry
from quotebot.quote_engine import QuoteResolver
from quotebot.tokens import TokenInfo, TokenRegistry, format_units, parse_units

logger = logging.getLogger(__name__)

# Reference input per base symbol: representative of real trade sizes and
# well inside pool depth. Unlisted symbols quote 1 whole unit.
STANDARD_QUOTE_AMOUNTS: Dict[str, str] = {
    "HYPE": "1",
    "WHYPE": "1",
    "UBTC": "0.001",
    "UETH": "0.01",
    "USDT0": "100",
    "USDHL": "100",
}

# Pinned fee-tier order for the two pairs the grid trades most
WHYPE_USDT0_FEES: Tuple[int, ...] = (500, 3000)
WHYPE_UBTC_FEES: Tuple[int, ...] = (3000,)

MAX_PRICE_WORKERS = 8


@dataclass(frozen=True)
class PairPrice:
    """
    `price` is amount_out in quote units for the base reference amount
    (1 WHYPE, 0.001 UBTC, 100 USDT0, ...). `unit_price` is the same quote
    scaled to one whole base token.
    """
    base: str
    quote: str
    price: float
    unit_price: float
    amount_in: int
    amount_out: int
    fee: int
    source: QuoteSource
    pool_address: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.source is QuoteSource.FALLBACK_ESTIMATE


@dataclass(frozen=True)
class UsdPriceContext:
    hype_usd: float
    btc_usd: Optional[float]


class PairPriceService:
    def __init__(self, tokens: TokenRegistry, pools: PoolRegistry, resolver: QuoteResolver):
        self.tokens = tokens
        self.pools = pools
        self.resolver = resolver
        self._special_pairs = {
            ("WHYPE", "USDT0"): self._whype_usdt0_price,
            ("HYPE", "USDT0"): self._whype_usdt0_price,
            ("WHYPE", "UBTC"): self._whype_ubtc_price,
        }

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def price_of(self, base: str, quote: str, force_fresh: bool = False) -> Optional[float]:
        """Quote units received for the base reference amount, None without a route"""
        pair_price = self.quote_pair(base, quote, force_fresh)
        return pair_price.price if pair_price else None

    def quote_pair(self, base: str, quote: str, force_fresh: bool = False) -> Optional[PairPrice]:
        special = self._special_pairs.get((base, quote))
        if special is not None:
            return special(force_fresh)

        base_info = self.tokens.get(base)
        quote_info = self.tokens.get(quote)
        if base_info is None or quote_info is None:
            logger.error(f"Unknown token symbols: {base} or {quote}")
            return None

        candidates = self.pools.candidate_pools(
            self.tokens.pool_symbol(base), self.tokens.pool_symbol(quote)
        )
        if not candidates:
            logger.error(f"No pool configuration found for pair: {base}/{quote}")
            return None

        pair_price = self._quote_through(
            base_info, quote_info, [(p.fee, p.address) for p in candidates], force_fresh
        )
        logger.info(f"Direct {base}/{quote} price: {pair_price.price} (source: {pair_price.source.value})")
        return pair_price

    def prices_of(
        self, pairs: Iterable[Tuple[str, str]], force_fresh: bool = False
    ) -> Dict[Tuple[str, str], Optional[float]]:
        """Prices for several pairs, quoted in parallel"""
        pairs = list(pairs)
        if not pairs:
            return {}

        prices: Dict[Tuple[str, str], Optional[float]] = {}
        with ThreadPoolExecutor(max_workers=min(len(pairs), MAX_PRICE_WORKERS)) as executor:
            future_to_pair = {
                executor.submit(self.price_of, base, quote, force_fresh): (base, quote)
                for base, quote in pairs
            }
            for future in as_completed(future_to_pair):
                prices[future_to_pair[future]] = future.result()
        return prices

    def usd_price_context(self) -> Optional[UsdPriceContext]:
        """
        HYPE/USD from WHYPE/USDT0 (WHYPE = HYPE, USDT0 ~ USD) and BTC/USD
        from the WHYPE/UBTC cross. None without a HYPE/USD price.
        """
        hype_usd = self._whype_usdt0_price(False)
        if hype_usd is None or hype_usd.unit_price <= 0:
            return None

        whype_ubtc = self._whype_ubtc_price(False)
        btc_usd = None
        if whype_ubtc is not None and whype_ubtc.unit_price > 0:
            btc_usd = hype_usd.unit_price / whype_ubtc.unit_price

        return UsdPriceContext(hype_usd=hype_usd.unit_price, btc_usd=btc_usd)

    def reference_amount(self, token: TokenInfo) -> int:
        human = STANDARD_QUOTE_AMOUNTS.get(token.symbol, "1")
        return parse_units(human, token.decimals)

    # -------------------------------------------------------------------------
    # Special-cased pairs
    # -------------------------------------------------------------------------

    def _whype_usdt0_price(self, force_fresh: bool) -> Optional[PairPrice]:
        # 0.05% pool has the volume (22.95M$/day); 0.3% holds more TVL
        pair_price = self._pinned_pair_price("WHYPE", "USDT0", WHYPE_USDT0_FEES, force_fresh)
        if pair_price is not None:
            logger.info(f"WHYPE/USDT0 price: {pair_price.price:.4f} (source: {pair_price.source.value})")
        return pair_price

    def _whype_ubtc_price(self, force_fresh: bool) -> Optional[PairPrice]:
        pair_price = self._pinned_pair_price("WHYPE", "UBTC", WHYPE_UBTC_FEES, force_fresh)
        if pair_price is not None:
            logger.info(f"WHYPE/UBTC price: {pair_price.price:.8f} (source: {pair_price.source.value})")
        return pair_price

    def _pinned_pair_price(
        self, base: str, quote: str, fees: Sequence[int], force_fresh: bool
    ) -> Optional[PairPrice]:
        base_info = self.tokens.get(base)
        quote_info = self.tokens.get(quote)
        if base_info is None or quote_info is None:
            logger.error(f"Pinned pair {base}/{quote} is missing from the token registry")
            return None

        tiers = []
        for fee in fees:
            pool = self._pool_for_fee(base, quote, fee)
            tiers.append((fee, pool.address if pool else None))
        return self._quote_through(base_info, quote_info, tiers, force_fresh)

    def _pool_for_fee(self, base: str, quote: str, fee: int) -> Optional[PoolInfo]:
        for pool in self.pools.candidate_pools(base, quote):
            if pool.fee == fee:
                return pool
        return None

    # -------------------------------------------------------------------------
    # Fallback chain
    # -------------------------------------------------------------------------

    def _quote_through(
        self,
        base: TokenInfo,
        quote: TokenInfo,
        tiers: List[Tuple[int, Optional[str]]],
        force_fresh: bool,
    ) -> PairPrice:
        """
        Try each (fee, pool) in order. Stops at the first on-chain or cached
        quote; if every tier falls back, the last fallback is returned.
        """
        amount_in = self.reference_amount(base)
        result: Optional[QuoteResult] = None
        fee, pool_address = tiers[0]

        for fee, pool_address in tiers:
            result = self.resolver.resolve(
                base.address, quote.address, amount_in, fee, force_fresh=force_fresh
            )
            if not result.is_fallback:
                break
            logger.warning(f"{base.symbol}/{quote.symbol} fee {fee} fell back to estimate")

        price = format_units(result.amount_out, quote.decimals)
        unit_price = Decimal(0)
        if amount_in:
            unit_price = price / format_units(amount_in, base.decimals)
        return PairPrice(
            base=base.symbol,
            quote=quote.symbol,
            price=float(price),
            unit_price=float(unit_price),
            amount_in=amount_in,
            amount_out=result.amount_out,
            fee=fee,
            source=result.source,
            pool_address=pool_address,
        )
