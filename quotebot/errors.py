# quotebot/errors.py
"""
Quote engine error taxonomy

Only validation, configuration and initialization errors propagate.
On-chain call failures never leave the resolver; they surface as
QuoteSource.FALLBACK_ESTIMATE results instead.
"""


class QuoteEngineError(Exception):
    """Base class for all quote engine errors"""


class InvalidAddressError(QuoteEngineError, ValueError):
    """Malformed token address, or tokenIn == tokenOut"""


class UnknownSymbolError(QuoteEngineError, KeyError):
    """Token symbol not present in the registry"""

    def __str__(self):
        return f"Unknown token symbol: {self.args[0]}" if self.args else "Unknown token symbol"


class UninitializedDependencyError(QuoteEngineError, RuntimeError):
    """Contract used before being bound to a live Web3 connection"""


class ConfigError(QuoteEngineError, RuntimeError):
    """Invalid static or environment configuration, raised at startup"""


class NoHealthyRpcError(QuoteEngineError, RuntimeError):
    """Every configured RPC endpoint failed its health check"""
