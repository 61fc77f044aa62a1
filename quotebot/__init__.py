# quotebot/__init__.py
"""
HyperSwap V3 Quote Engine
Read-only on-chain price discovery for the HyperEVM grid bot

Modules:
- config: Configuration and environment
- tokens: Token registry (native/wrapped aliasing, unit conversion)
- pools: Pool registry and fee-tier preference
- cache: TTL quote cache
- quote_engine: QuoterV2 resolver with fallback estimates
- price_service: Pair prices with multi-tier fallback
- pool_inspector: Factory/pool diagnostics
- context: Engine wiring
- main: CLI entry point
"""

__version__ = "1.0.0"

from quotebot.config import EngineConfig, load_config
from quotebot.context import EngineContext, build_context
from quotebot.errors import (
    ConfigError,
    InvalidAddressError,
    NoHealthyRpcError,
    QuoteEngineError,
    UninitializedDependencyError,
    UnknownSymbolError,
)
from quotebot.models import QuoteRequest, QuoteResult, QuoteSource

__all__ = [
    "EngineConfig",
    "load_config",
    "EngineContext",
    "build_context",
    "ConfigError",
    "InvalidAddressError",
    "NoHealthyRpcError",
    "QuoteEngineError",
    "UninitializedDependencyError",
    "UnknownSymbolError",
    "QuoteRequest",
    "QuoteResult",
    "QuoteSource",
]
