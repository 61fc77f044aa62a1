# quotebot/tokens.py
"""
Token Registry for HyperEVM
Symbol -> address/decimals mapping, including native HYPE and its wrapped
form WHYPE. Pools only hold WHYPE, so every on-chain interaction with the
native asset is rewritten to the wrapped address (1:1, no conversion).
"""

from dataclasses import dataclass
from decimal import Decimal, getcontext
from typing import Dict, Iterable, List, Optional, Union

from web3 import Web3

from quotebot.errors import ConfigError, UnknownSymbolError

getcontext().prec = 80

NATIVE_ADDRESS = "0x0000000000000000000000000000000000000000"
WRAPPED_NATIVE_SYMBOL = "WHYPE"


# =============================================================================
# TOKEN METADATA
# =============================================================================

@dataclass(frozen=True)
class TokenInfo:
    symbol: str
    address: str
    decimals: int
    is_native: bool = False
    name: str = ""


DEFAULT_TOKENS: List[TokenInfo] = [
    TokenInfo("HYPE", NATIVE_ADDRESS, 18, True, "Hyperliquid (Native)"),
    TokenInfo("WHYPE", "0x5555555555555555555555555555555555555555", 18, False, "Wrapped HYPE"),
    TokenInfo("UBTC", "0x9fdbda0a5e284c32744d2f17ee5c74b284993463", 8, False, "Unit Bitcoin"),
    TokenInfo("USDT0", "0xB8CE59FC3717ada4C02eaDF9682A9e934F625ebb", 6, False, "Tether USD"),
    TokenInfo("USDHL", "0xb50A96253aBDF803D85efcDce07Ad8becBc52BD5", 6, False, "USD HyperLiquid"),
    TokenInfo("UETH", "0xbe6727b535545c67d5caa73dea54865b92cf7907", 18, False, "Unit Ethereum"),
]


# =============================================================================
# UNIT CONVERSION
# =============================================================================

def parse_units(value: Union[str, int, Decimal], decimals: int) -> int:
    """Human amount -> integer base units ("0.001", 8 -> 100000)"""
    amount = Decimal(str(value))
    if not amount.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}")
    return int(amount * (Decimal(10) ** decimals))


def format_units(amount: int, decimals: int) -> Decimal:
    """Integer base units -> human amount (1500000, 6 -> 1.5)"""
    return Decimal(amount) / (Decimal(10) ** decimals)


def normalize_address(address: str) -> Optional[str]:
    """
    Checksummed form of address, or None if it is not a 20-byte hex address.
    Mixed-case input is lower-cased first so a bad checksum never rejects a
    known token.
    """
    if not isinstance(address, str):
        return None
    lowered = address.lower()
    if not Web3.is_address(lowered):
        return None
    return Web3.to_checksum_address(lowered)


# =============================================================================
# REGISTRY
# =============================================================================

class TokenRegistry:
    """
    Immutable token registry.
    Exactly one token is native; WRAPPED_NATIVE_SYMBOL must be registered.
    """

    def __init__(
        self,
        tokens: Iterable[TokenInfo] = DEFAULT_TOKENS,
        wrapped_symbol: str = WRAPPED_NATIVE_SYMBOL,
    ):
        self._by_symbol: Dict[str, TokenInfo] = {}
        self._by_address: Dict[str, TokenInfo] = {}

        for token in tokens:
            if token.symbol in self._by_symbol:
                raise ConfigError(f"Duplicate token symbol: {token.symbol}")
            if not 0 <= token.decimals <= 18:
                raise ConfigError(f"{token.symbol}: decimals out of range ({token.decimals})")
            address = normalize_address(token.address)
            if address is None:
                raise ConfigError(f"{token.symbol}: invalid address {token.address!r}")
            if address in self._by_address:
                raise ConfigError(
                    f"{token.symbol}: address already used by {self._by_address[address].symbol}"
                )
            canonical = TokenInfo(token.symbol, address, token.decimals, token.is_native, token.name)
            self._by_symbol[token.symbol] = canonical
            self._by_address[address] = canonical

        natives = [t for t in self._by_symbol.values() if t.is_native]
        if len(natives) != 1:
            raise ConfigError(f"Exactly one native token required, found {len(natives)}")
        wrapped = self._by_symbol.get(wrapped_symbol)
        if wrapped is None or wrapped.is_native:
            raise ConfigError(f"Wrapped native token {wrapped_symbol} not registered")
        if wrapped.decimals != natives[0].decimals:
            raise ConfigError(f"{wrapped_symbol} decimals differ from {natives[0].symbol}")

        self.native: TokenInfo = natives[0]
        self.wrapped_native: TokenInfo = wrapped

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._by_symbol

    def __len__(self) -> int:
        return len(self._by_symbol)

    @property
    def symbols(self) -> List[str]:
        return list(self._by_symbol)

    def get(self, symbol: str) -> Optional[TokenInfo]:
        return self._by_symbol.get(symbol)

    def resolve(self, symbol: str) -> TokenInfo:
        """Token info by symbol; raises UnknownSymbolError"""
        token = self._by_symbol.get(symbol)
        if token is None:
            raise UnknownSymbolError(symbol)
        return token

    def decimals_of(self, symbol: str) -> int:
        return self.resolve(symbol).decimals

    def by_address(self, address: str) -> Optional[TokenInfo]:
        normalized = normalize_address(address)
        return self._by_address.get(normalized) if normalized else None

    def is_native_address(self, address: str) -> bool:
        return normalize_address(address) == self.native.address

    def pool_symbol(self, symbol: str) -> str:
        """Symbol used for pool lookups (HYPE -> WHYPE)"""
        return self.wrapped_native.symbol if symbol == self.native.symbol else symbol

    def pool_address(self, address: str) -> str:
        """Address used for on-chain calls (native -> wrapped)"""
        if self.is_native_address(address):
            return self.wrapped_native.address
        return address
