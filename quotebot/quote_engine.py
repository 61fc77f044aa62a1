# quotebot/quote_engine.py
"""
QuoterV2 Quote Resolver
Simulates exact-input single-pool swaps via eth_call, caches results and
converts every on-chain failure into a tagged fallback estimate.
"""

import logging
import time
from dataclasses import replace
from typing import Callable, List, Sequence

from web3 import Web3

from quotebot.cache import QuoteCache
from quotebot.config import (
    FALLBACK_GAS_ESTIMATE,
    FALLBACK_RATE_DENOMINATOR,
    FALLBACK_RATE_NUMERATOR,
)
from quotebot.errors import InvalidAddressError, UninitializedDependencyError
from quotebot.models import QuoteRequest, QuoteResult, QuoteSource
from quotebot.pools import SUPPORTED_FEE_TIERS
from quotebot.tokens import TokenRegistry, normalize_address
from quotebot.uniswap_v3 import QUOTER_V2_ABI

logger = logging.getLogger(__name__)


class QuoteResolver:
    """
    Resolves (token_in, token_out, amount_in, fee) into a QuoteResult.

    Raises only for bad input (InvalidAddressError, ValueError) and for use
    before bind(). RPC errors, reverts and malformed responses all come back
    as QuoteSource.FALLBACK_ESTIMATE.
    """

    def __init__(
        self,
        tokens: TokenRegistry,
        cache: QuoteCache,
        quoter_address: str,
        fallback_numerator: int = FALLBACK_RATE_NUMERATOR,
        fallback_denominator: int = FALLBACK_RATE_DENOMINATOR,
        clock: Callable[[], float] = time.time,
    ):
        self.tokens = tokens
        self.cache = cache
        self.quoter_address = Web3.to_checksum_address(quoter_address.lower())
        self.fallback_numerator = fallback_numerator
        self.fallback_denominator = fallback_denominator
        self._clock = clock
        self._quoter = None

    # -------------------------------------------------------------------------
    # Binding
    # -------------------------------------------------------------------------

    def bind(self, w3: Web3) -> None:
        """Bind the QuoterV2 contract to a live connection"""
        self._quoter = w3.eth.contract(address=self.quoter_address, abi=QUOTER_V2_ABI)
        logger.info(f"QuoterV2 bound at {self.quoter_address}")

    @property
    def is_bound(self) -> bool:
        return self._quoter is not None

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _normalize_request(
        self, token_in: str, token_out: str, amount_in: int, fee: int
    ) -> QuoteRequest:
        if self.tokens.is_native_address(token_in):
            logger.info("Converting native HYPE to WHYPE for quoting")
            token_in = self.tokens.wrapped_native.address
        if self.tokens.is_native_address(token_out):
            token_out = self.tokens.wrapped_native.address

        addr_in = normalize_address(token_in)
        addr_out = normalize_address(token_out)
        if addr_in is None or addr_out is None:
            raise InvalidAddressError(f"Invalid token addresses: {token_in!r}, {token_out!r}")
        if addr_in == addr_out:
            raise InvalidAddressError(f"tokenIn and tokenOut are the same: {addr_in}")

        if isinstance(amount_in, bool) or not isinstance(amount_in, int) or amount_in < 0:
            raise ValueError(f"amount_in must be a non-negative integer, got {amount_in!r}")

        return QuoteRequest(token_in=addr_in, token_out=addr_out, amount_in=amount_in, fee=int(fee))

    def resolve(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        fee: int,
        force_fresh: bool = False,
    ) -> QuoteResult:
        request = self._normalize_request(token_in, token_out, amount_in, fee)

        if self._quoter is None:
            raise UninitializedDependencyError("QuoterV2 contract not initialized; call bind() first")

        if not force_fresh:
            cached = self.cache.get(request.key)
            if cached is not None:
                return replace(cached, source=QuoteSource.CACHE)

        try:
            result = self._quote_on_chain(request)
        except Exception as e:
            logger.warning(
                f"QuoterV2 failed for {request.key}: {e!r} - using fallback estimate"
            )
            return self.fallback_estimate(request)

        self.cache.put(request.key, result)
        logger.debug(
            f"Quote {request.token_in} -> {request.token_out} fee={request.fee}: "
            f"{request.amount_in} -> {result.amount_out}"
        )
        return result

    def _quote_on_chain(self, request: QuoteRequest) -> QuoteResult:
        params = (request.token_in, request.token_out, request.amount_in, request.fee, 0)
        # .call() is an eth_call: simulated, never broadcast
        response = self._quoter.functions.quoteExactInputSingle(params).call()

        try:
            amount_out, _sqrt_price_after, _ticks_crossed, gas_estimate = response
        except (TypeError, ValueError):
            raise ValueError(f"Malformed QuoterV2 response: {response!r}") from None
        if isinstance(amount_out, bool) or not isinstance(amount_out, int) or amount_out < 0:
            raise ValueError(f"Malformed amountOut in QuoterV2 response: {amount_out!r}")

        return QuoteResult(
            amount_out=amount_out,
            source=QuoteSource.ON_CHAIN,
            gas_estimate=int(gas_estimate) if gas_estimate is not None else None,
            observed_at_ms=self._now_ms(),
        )

    def fallback_estimate(self, request: QuoteRequest) -> QuoteResult:
        """Deterministic synthetic quote: linear in amount_in, not cached"""
        return QuoteResult(
            amount_out=request.amount_in * self.fallback_numerator // self.fallback_denominator,
            source=QuoteSource.FALLBACK_ESTIMATE,
            gas_estimate=FALLBACK_GAS_ESTIMATE,
            observed_at_ms=self._now_ms(),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def resolve_many(
        self,
        token_in: str,
        token_out: str,
        amounts: Sequence[int],
        fee: int,
    ) -> List[QuoteResult]:
        """Quotes for several input sizes, in order"""
        return [self.resolve(token_in, token_out, amount, fee) for amount in amounts]

    def validate_tokens(self, token_a: str, token_b: str) -> bool:
        addr_a = normalize_address(token_a)
        addr_b = normalize_address(token_b)
        return addr_a is not None and addr_b is not None and addr_a != addr_b

    @staticmethod
    def supported_fee_tiers() -> List[int]:
        return list(SUPPORTED_FEE_TIERS)
