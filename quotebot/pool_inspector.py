# quotebot/pool_inspector.py
"""
Pool Inspector
Diagnostics through the HyperSwap V3 factory: does a pool exist for
(tokenA, tokenB, fee), and what does its slot0 look like. Not used on the
price path; read failures are logged and reported as "no pool".
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from web3 import Web3

from quotebot.errors import InvalidAddressError, UninitializedDependencyError
from quotebot.tokens import NATIVE_ADDRESS, TokenRegistry, normalize_address
from quotebot.uniswap_v3 import FACTORY_ABI, POOL_ABI, sqrt_price_x96_to_price

logger = logging.getLogger(__name__)

ZERO_ADDRESS = NATIVE_ADDRESS


@dataclass(frozen=True)
class PoolState:
    address: str
    token0: str
    token1: str
    fee: int
    sqrt_price_x96: int
    tick: int
    liquidity: int
    price: Optional[Decimal]  # token0 in token1, None when decimals unknown


class PoolInspector:
    def __init__(self, tokens: TokenRegistry, factory_address: str):
        self.tokens = tokens
        self.factory_address = Web3.to_checksum_address(factory_address.lower())
        self.w3: Optional[Web3] = None
        self._factory = None

    def bind(self, w3: Web3) -> None:
        self.w3 = w3
        self._factory = w3.eth.contract(address=self.factory_address, abi=FACTORY_ABI)
        logger.info(f"Factory bound at {self.factory_address}")

    def _pool_token(self, address: str) -> str:
        normalized = normalize_address(self.tokens.pool_address(address))
        if normalized is None:
            raise InvalidAddressError(f"Invalid token address: {address!r}")
        return normalized

    def get_pool(self, token_a: str, token_b: str, fee: int) -> Optional[str]:
        """Pool address from the factory, None if it does not exist"""
        if self._factory is None:
            raise UninitializedDependencyError("Factory contract not initialized; call bind() first")

        addr_a = self._pool_token(token_a)
        addr_b = self._pool_token(token_b)
        try:
            pool = self._factory.functions.getPool(addr_a, addr_b, fee).call()
        except Exception as e:
            logger.error(f"Factory getPool failed for {addr_a}/{addr_b} fee={fee}: {e}")
            return None

        if not pool or pool.lower() == ZERO_ADDRESS:
            return None
        return Web3.to_checksum_address(pool.lower())

    def pool_info(self, token_a: str, token_b: str, fee: int) -> Optional[PoolState]:
        pool_address = self.get_pool(token_a, token_b, fee)
        if pool_address is None:
            return None

        try:
            pool = self.w3.eth.contract(address=pool_address, abi=POOL_ABI)
            slot0 = pool.functions.slot0().call()
            liquidity = pool.functions.liquidity().call()
            token0 = pool.functions.token0().call()
            token1 = pool.functions.token1().call()
        except Exception as e:
            logger.error(f"Failed to read pool {pool_address}: {e}")
            return None

        sqrt_price_x96, tick = slot0[0], slot0[1]
        info0 = self.tokens.by_address(token0)
        info1 = self.tokens.by_address(token1)
        price = None
        if info0 and info1:
            price = sqrt_price_x96_to_price(sqrt_price_x96, info0.decimals, info1.decimals)

        return PoolState(
            address=pool_address,
            token0=token0,
            token1=token1,
            fee=fee,
            sqrt_price_x96=sqrt_price_x96,
            tick=tick,
            liquidity=liquidity,
            price=price,
        )

    def pool_exists(self, token_a: str, token_b: str, fee: int) -> bool:
        return self.get_pool(token_a, token_b, fee) is not None
