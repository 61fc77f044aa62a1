"""
Configuration loading and engine wiring tests
"""

import pytest

from quotebot.config import (
    DEFAULT_RPC_URL,
    FACTORY_ADDRESS,
    QUOTER_V2_ADDRESS,
    RPC_ENDPOINTS,
    load_config,
)
from quotebot.context import build_context
from quotebot.errors import ConfigError

from tests.conftest import FakeQuoter, mock_w3


class TestLoadConfig:
    def test_defaults(self):
        config = load_config(environ={})

        assert config.rpc_url == DEFAULT_RPC_URL
        assert config.rpc_endpoints == tuple(RPC_ENDPOINTS)
        assert config.quoter_v2_address.lower() == QUOTER_V2_ADDRESS.lower()
        assert config.factory_address.lower() == FACTORY_ADDRESS.lower()
        assert config.cache_ttl_ms == 30_000
        assert config.fallback_rate_numerator == 40_000
        assert config.fallback_rate_denominator == 10 ** 18
        assert config.log_level == "INFO"

    def test_overrides(self):
        config = load_config(environ={
            "HYPEREVM_RPC_URL": "https://example.org/evm",
            "QUOTER_V2_ADDRESS": "0x1111111111111111111111111111111111111111",
            "PRICE_CACHE_TTL_MS": "5000",
            "RPC_TIMEOUT_SECONDS": "2.5",
            "LOG_LEVEL": "debug",
        })

        assert config.rpc_endpoints[0] == "https://example.org/evm"
        assert config.rpc_endpoints[1:] == tuple(RPC_ENDPOINTS)
        assert config.quoter_v2_address == "0x1111111111111111111111111111111111111111"
        assert config.cache_ttl_ms == 5000
        assert config.rpc_timeout_seconds == 2.5
        assert config.log_level == "DEBUG"

    @pytest.mark.parametrize("env", [
        {"PRICE_CACHE_TTL_MS": "abc"},
        {"PRICE_CACHE_TTL_MS": "0"},
        {"PRICE_CACHE_TTL_MS": "-10"},
        {"QUOTER_V2_ADDRESS": "0x1234"},
        {"FACTORY_ADDRESS": ""},
        {"FALLBACK_RATE_DENOMINATOR": "0"},
        {"RPC_TIMEOUT_SECONDS": "never"},
        {"LOG_LEVEL": "LOUD"},
        {"HYPEREVM_RPC_URL": "ws://rpc.hyperliquid.xyz"},
    ])
    def test_invalid_values_rejected_at_load(self, env):
        with pytest.raises(ConfigError):
            load_config(environ=env)

    def test_reads_env_file(self, tmp_path, monkeypatch):
        # setenv + delenv so teardown removes what load_dotenv writes
        monkeypatch.setenv("PRICE_CACHE_TTL_MS", "placeholder")
        monkeypatch.delenv("PRICE_CACHE_TTL_MS")
        env_file = tmp_path / ".env"
        env_file.write_text("PRICE_CACHE_TTL_MS=12345\n")

        config = load_config(env_path=env_file)

        assert config.cache_ttl_ms == 12345

    def test_missing_env_file_is_fine(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PRICE_CACHE_TTL_MS", raising=False)
        config = load_config(env_path=tmp_path / "missing.env")
        assert config.cache_ttl_ms == 30_000


class TestBuildContext:
    def test_unbound_without_w3(self, config):
        ctx = build_context(config)
        assert not ctx.resolver.is_bound
        assert ctx.cache.ttl_ms == config.cache_ttl_ms

    def test_components_share_registries_and_cache(self, config):
        ctx = build_context(config, w3=mock_w3(FakeQuoter(lambda params: (1, 0, 0, 1))))

        assert ctx.resolver.is_bound
        assert ctx.resolver.cache is ctx.cache
        assert ctx.prices.resolver is ctx.resolver
        assert ctx.prices.tokens is ctx.tokens
        assert ctx.prices.pools is ctx.pools

    def test_contexts_are_independent(self, config):
        first = build_context(config)
        second = build_context(config)
        assert first.cache is not second.cache

    def test_fallback_rate_from_config(self, clock):
        config = load_config(environ={"FALLBACK_RATE_NUMERATOR": "50000"})
        quoter = FakeQuoter(lambda params: RuntimeError("down"))
        ctx = build_context(config, w3=mock_w3(quoter), clock=clock)
        whype = ctx.tokens.resolve("WHYPE").address
        ubtc = ctx.tokens.resolve("UBTC").address

        result = ctx.resolver.resolve(whype, ubtc, 10 ** 18, 3000)

        assert result.amount_out == 50_000
