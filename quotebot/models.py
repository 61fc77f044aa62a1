# quotebot/models.py
"""
Quote request/result types shared by the cache, resolver and price service
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class QuoteSource(Enum):
    ON_CHAIN = "on_chain"
    CACHE = "cache"
    FALLBACK_ESTIMATE = "fallback_estimate"


@dataclass(frozen=True)
class QuoteRequest:
    """Exact swap simulation parameters; `key` is the cache identity"""
    token_in: str
    token_out: str
    amount_in: int
    fee: int

    @property
    def key(self) -> str:
        return f"{self.token_in}-{self.token_out}-{self.amount_in}-{self.fee}"


@dataclass(frozen=True)
class QuoteResult:
    """
    Simulated swap output in base units of token_out.
    Callers must check `source` before sizing trades on it: a
    FALLBACK_ESTIMATE is synthetic, not a market price.
    """
    amount_out: int
    source: QuoteSource
    gas_estimate: Optional[int]
    observed_at_ms: int

    @property
    def is_fallback(self) -> bool:
        return self.source is QuoteSource.FALLBACK_ESTIMATE
