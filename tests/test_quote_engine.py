"""
Quote resolver tests: caching, native aliasing, validation, fallback
"""

import pytest

from quotebot.cache import QuoteCache
from quotebot.config import QUOTER_V2_ADDRESS
from quotebot.errors import InvalidAddressError, UninitializedDependencyError
from quotebot.models import QuoteSource
from quotebot.quote_engine import QuoteResolver
from quotebot.tokens import NATIVE_ADDRESS

from tests.conftest import FakeQuoter, mock_w3

ONE_WHYPE = 10 ** 18


def ok(amount_out=847, gas=90_000):
    return lambda params: (amount_out, 2 ** 96, 1, gas)


def reverts(params):
    return RuntimeError("execution reverted")


@pytest.fixture
def addrs(tokens):
    return {symbol: tokens.resolve(symbol).address for symbol in tokens.symbols}


@pytest.fixture
def make_resolver(tokens, clock):
    def _make(respond, bind=True, ttl_ms=30_000):
        resolver = QuoteResolver(tokens, QuoteCache(ttl_ms, clock), QUOTER_V2_ADDRESS, clock=clock)
        quoter = FakeQuoter(respond)
        if bind:
            resolver.bind(mock_w3(quoter))
        return resolver, quoter
    return _make


class TestResolveOnChain:
    def test_on_chain_quote(self, make_resolver, addrs, clock):
        resolver, quoter = make_resolver(ok())

        result = resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)

        assert result.amount_out == 847
        assert result.source is QuoteSource.ON_CHAIN
        assert result.gas_estimate == 90_000
        assert result.observed_at_ms == int(clock.now * 1000)
        assert quoter.calls == [(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000, 0)]

    def test_second_call_is_cache_hit(self, make_resolver, addrs):
        resolver, quoter = make_resolver(ok())

        first = resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)
        second = resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)

        assert len(quoter.calls) == 1
        assert second.source is QuoteSource.CACHE
        assert second.amount_out == first.amount_out

    def test_cache_key_includes_amount_and_fee(self, make_resolver, addrs):
        resolver, quoter = make_resolver(ok())

        resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)
        resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 500)
        resolver.resolve(addrs["WHYPE"], addrs["UBTC"], 2 * ONE_WHYPE, 3000)

        assert len(quoter.calls) == 3

    def test_force_fresh_bypasses_cache(self, make_resolver, addrs):
        resolver, quoter = make_resolver(ok())

        resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)
        fresh = resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000, force_fresh=True)

        assert len(quoter.calls) == 2
        assert fresh.source is QuoteSource.ON_CHAIN

    def test_expired_entry_is_requoted(self, make_resolver, addrs, clock):
        resolver, quoter = make_resolver(ok())

        resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)
        clock.advance_ms(30_000)
        result = resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)

        assert len(quoter.calls) == 2
        assert result.source is QuoteSource.ON_CHAIN

    def test_lowercase_addresses_share_cache_entry(self, make_resolver, addrs):
        resolver, quoter = make_resolver(ok())

        resolver.resolve(addrs["WHYPE"], addrs["UBTC"].lower(), ONE_WHYPE, 3000)
        second = resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)

        assert len(quoter.calls) == 1
        assert second.source is QuoteSource.CACHE

    def test_resolve_many(self, make_resolver, addrs):
        resolver, quoter = make_resolver(lambda params: (params[2] // 10 ** 10, 0, 0, 1))

        results = resolver.resolve_many(addrs["WHYPE"], addrs["UBTC"], [ONE_WHYPE, 2 * ONE_WHYPE], 3000)

        assert [r.amount_out for r in results] == [10 ** 8, 2 * 10 ** 8]


class TestNativeAlias:
    def test_native_matches_wrapped(self, make_resolver, addrs):
        resolver, quoter = make_resolver(ok(amount_out=12_345))

        native = resolver.resolve(NATIVE_ADDRESS, addrs["UBTC"], ONE_WHYPE, 3000, force_fresh=True)
        wrapped = resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000, force_fresh=True)

        assert native.amount_out == wrapped.amount_out
        assert native.source is QuoteSource.ON_CHAIN
        # both went on-chain with the WHYPE address
        assert [c[0] for c in quoter.calls] == [addrs["WHYPE"], addrs["WHYPE"]]

    def test_native_and_wrapped_share_cache(self, make_resolver, addrs):
        resolver, quoter = make_resolver(ok())

        resolver.resolve(NATIVE_ADDRESS, addrs["USDT0"], ONE_WHYPE, 500)
        cached = resolver.resolve(addrs["WHYPE"], addrs["USDT0"], ONE_WHYPE, 500)

        assert len(quoter.calls) == 1
        assert cached.source is QuoteSource.CACHE

    def test_native_token_out_is_rewritten(self, make_resolver, addrs):
        resolver, quoter = make_resolver(ok())

        resolver.resolve(addrs["USDT0"], NATIVE_ADDRESS, 100 * 10 ** 6, 500)

        assert quoter.calls[0][1] == addrs["WHYPE"]

    def test_native_to_wrapped_is_same_token(self, make_resolver, addrs):
        resolver, _ = make_resolver(ok())
        with pytest.raises(InvalidAddressError):
            resolver.resolve(NATIVE_ADDRESS, addrs["WHYPE"], ONE_WHYPE, 3000)


class TestValidation:
    @pytest.mark.parametrize("bad", ["0x123", "", "0xZZZZ555555555555555555555555555555555555"])
    def test_malformed_address_raises(self, make_resolver, addrs, bad):
        resolver, quoter = make_resolver(ok())
        with pytest.raises(InvalidAddressError):
            resolver.resolve(bad, addrs["UBTC"], ONE_WHYPE, 3000)
        with pytest.raises(InvalidAddressError):
            resolver.resolve(addrs["WHYPE"], bad, ONE_WHYPE, 3000)
        assert quoter.calls == []

    def test_identical_addresses_raise(self, make_resolver, addrs):
        resolver, _ = make_resolver(ok())
        with pytest.raises(InvalidAddressError):
            resolver.resolve(addrs["UBTC"], addrs["UBTC"].lower(), 100_000, 3000)

    @pytest.mark.parametrize("amount", [-1, 1.5, "100", True])
    def test_bad_amount_raises(self, make_resolver, addrs, amount):
        resolver, _ = make_resolver(ok())
        with pytest.raises(ValueError):
            resolver.resolve(addrs["WHYPE"], addrs["UBTC"], amount, 3000)

    def test_unbound_quoter_raises(self, make_resolver, addrs):
        resolver, _ = make_resolver(ok(), bind=False)
        assert not resolver.is_bound
        with pytest.raises(UninitializedDependencyError):
            resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)

    def test_validate_tokens(self, make_resolver, addrs):
        resolver, _ = make_resolver(ok())
        assert resolver.validate_tokens(addrs["WHYPE"], addrs["UBTC"])
        assert not resolver.validate_tokens(addrs["WHYPE"], addrs["WHYPE"].lower())
        assert not resolver.validate_tokens("0x123", addrs["UBTC"])

    def test_supported_fee_tiers(self):
        assert QuoteResolver.supported_fee_tiers() == [100, 500, 3000, 10000]


class TestFallback:
    def test_revert_becomes_fallback_estimate(self, make_resolver, addrs):
        resolver, _ = make_resolver(reverts)

        result = resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)

        assert result.source is QuoteSource.FALLBACK_ESTIMATE
        assert result.is_fallback
        # 1e18 * 40000 / 1e18
        assert result.amount_out == 40_000
        assert result.gas_estimate == 100_000

    def test_fallback_is_deterministic_and_linear(self, make_resolver, addrs):
        resolver, _ = make_resolver(reverts)

        one = resolver.resolve(addrs["WHYPE"], addrs["USDT0"], ONE_WHYPE, 500)
        three = resolver.resolve(addrs["WHYPE"], addrs["USDT0"], 3 * ONE_WHYPE, 500)
        again = resolver.resolve(addrs["WHYPE"], addrs["USDT0"], ONE_WHYPE, 500)

        assert three.amount_out == 3 * one.amount_out
        assert again.amount_out == one.amount_out

    def test_fallback_is_not_cached(self, make_resolver, addrs):
        resolver, quoter = make_resolver(reverts)

        resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)
        second = resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)

        assert len(resolver.cache) == 0
        assert len(quoter.calls) == 2
        assert second.source is QuoteSource.FALLBACK_ESTIMATE

    @pytest.mark.parametrize("response", [(1, 2), None, ("847", 0, 0, 1), (-5, 0, 0, 1)])
    def test_malformed_response_becomes_fallback(self, make_resolver, addrs, response):
        resolver, _ = make_resolver(lambda params: response)

        result = resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)

        assert result.source is QuoteSource.FALLBACK_ESTIMATE

    def test_timeout_is_absorbed(self, make_resolver, addrs):
        resolver, _ = make_resolver(lambda params: TimeoutError("read timed out"))

        result = resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)

        assert result.source is QuoteSource.FALLBACK_ESTIMATE

    def test_failure_is_logged_as_warning(self, make_resolver, addrs, caplog):
        resolver, _ = make_resolver(reverts)

        with caplog.at_level("WARNING", logger="quotebot.quote_engine"):
            resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)

        assert any("fallback" in r.getMessage() for r in caplog.records)

    def test_recovers_after_outage(self, make_resolver, addrs):
        outage = {"down": True}

        def respond(params):
            return RuntimeError("connection refused") if outage["down"] else (847, 0, 0, 1)

        resolver, _ = make_resolver(respond)
        assert resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000).is_fallback

        outage["down"] = False
        result = resolver.resolve(addrs["WHYPE"], addrs["UBTC"], ONE_WHYPE, 3000)
        assert result.source is QuoteSource.ON_CHAIN
        assert result.amount_out == 847
