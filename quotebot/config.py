# quotebot/config.py
"""
Quote Engine Configuration
HyperEVM chain constants, HyperSwap V3 contract addresses and engine tuning.

Environment variables (loaded from config/.env when present) override the
defaults below. Everything is validated once in load_config(); an invalid
value stops the process at startup instead of at the first quote.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv
from web3 import Web3

from quotebot.errors import ConfigError

# -----------------------------
# Paths
# -----------------------------
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / "config" / ".env"

# -----------------------------
# Chain Configuration
# -----------------------------
CHAIN_ID = 999  # HyperEVM mainnet
CHAIN_NAME = "hyperliquid"

DEFAULT_RPC_URL = "https://rpc.hyperliquid.xyz/evm"
RPC_ENDPOINTS = [
    DEFAULT_RPC_URL,
    "https://rpc.hypurrscan.io",
    "https://hyperliquid.drpc.org",
]

# -----------------------------
# HyperSwap V3 Contracts (mainnet)
# -----------------------------
QUOTER_V2_ADDRESS = "0x03A918028f22D9E1473B7959C927AD7425A45C7C"
FACTORY_ADDRESS = "0xB1c0fa0B789320044A6F623cFe5eBda9562602E3"

# -----------------------------
# Quote Engine Parameters
# -----------------------------
PRICE_CACHE_TTL_MS = 30_000      # 30 seconds
RPC_TIMEOUT_SECONDS = 15

# Synthetic estimate used when QuoterV2 fails: amountOut = amountIn * N / D
FALLBACK_RATE_NUMERATOR = 40_000
FALLBACK_RATE_DENOMINATOR = 10 ** 18
FALLBACK_GAS_ESTIMATE = 100_000

# -----------------------------
# Safety Thresholds
# -----------------------------
MAX_RPC_LATENCY = 2.0   # seconds
MAX_BLOCK_LAG = 5       # blocks

# -----------------------------
# Logging
# -----------------------------
LOG_LEVEL = "INFO"
LOG_DIR = BASE_DIR / "logs"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class EngineConfig:
    """Validated engine configuration"""
    rpc_url: str
    rpc_endpoints: Tuple[str, ...]
    quoter_v2_address: str
    factory_address: str
    cache_ttl_ms: int = PRICE_CACHE_TTL_MS
    fallback_rate_numerator: int = FALLBACK_RATE_NUMERATOR
    fallback_rate_denominator: int = FALLBACK_RATE_DENOMINATOR
    rpc_timeout_seconds: float = RPC_TIMEOUT_SECONDS
    log_level: str = LOG_LEVEL


def _checksum(name: str, value: str) -> str:
    if not value or not Web3.is_address(value.lower()):
        raise ConfigError(f"{name} is not a valid address: {value!r}")
    return Web3.to_checksum_address(value.lower())


def _positive_int(name: str, value) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if parsed <= 0:
        raise ConfigError(f"{name} must be > 0, got {parsed}")
    return parsed


def _positive_float(name: str, value) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None
    if parsed <= 0:
        raise ConfigError(f"{name} must be > 0, got {parsed}")
    return parsed


def load_config(
    env_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> EngineConfig:
    """
    Build the engine configuration.

    When environ is None the process environment is used, after loading
    env_path (default config/.env) if that file exists.
    """
    if environ is None:
        path = env_path or ENV_PATH
        if path.exists():
            load_dotenv(path)
        environ = os.environ

    rpc_url = environ.get("HYPEREVM_RPC_URL", DEFAULT_RPC_URL).strip()
    if not rpc_url.startswith(("http://", "https://")):
        raise ConfigError(f"HYPEREVM_RPC_URL must be an http(s) URL, got {rpc_url!r}")

    # Primary endpoint first, then the public fallbacks
    endpoints = [rpc_url] + [url for url in RPC_ENDPOINTS if url != rpc_url]

    log_level = environ.get("LOG_LEVEL", LOG_LEVEL).upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}, got {log_level!r}")

    return EngineConfig(
        rpc_url=rpc_url,
        rpc_endpoints=tuple(endpoints),
        quoter_v2_address=_checksum(
            "QUOTER_V2_ADDRESS", environ.get("QUOTER_V2_ADDRESS", QUOTER_V2_ADDRESS)
        ),
        factory_address=_checksum(
            "FACTORY_ADDRESS", environ.get("FACTORY_ADDRESS", FACTORY_ADDRESS)
        ),
        cache_ttl_ms=_positive_int(
            "PRICE_CACHE_TTL_MS", environ.get("PRICE_CACHE_TTL_MS", PRICE_CACHE_TTL_MS)
        ),
        fallback_rate_numerator=_positive_int(
            "FALLBACK_RATE_NUMERATOR",
            environ.get("FALLBACK_RATE_NUMERATOR", FALLBACK_RATE_NUMERATOR),
        ),
        fallback_rate_denominator=_positive_int(
            "FALLBACK_RATE_DENOMINATOR",
            environ.get("FALLBACK_RATE_DENOMINATOR", FALLBACK_RATE_DENOMINATOR),
        ),
        rpc_timeout_seconds=_positive_float(
            "RPC_TIMEOUT_SECONDS", environ.get("RPC_TIMEOUT_SECONDS", RPC_TIMEOUT_SECONDS)
        ),
        log_level=log_level,
    )
