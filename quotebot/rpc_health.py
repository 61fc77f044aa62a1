# quotebot/rpc_health.py
"""
RPC Health Monitoring
Picks a HyperEVM endpoint that answers fast, is on chain 999 and is not
lagging behind its own head block.
"""

import logging
import time
from typing import Optional, Sequence, Tuple

from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from quotebot.config import (
    CHAIN_ID,
    MAX_BLOCK_LAG,
    MAX_RPC_LATENCY,
    RPC_ENDPOINTS,
    RPC_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


class RPCHealth:
    """
    One HyperEVM endpoint. The provider timeout set here bounds every
    QuoterV2 eth_call made through `self.w3`.
    """

    def __init__(
        self,
        rpc_url: str = None,
        timeout: float = RPC_TIMEOUT_SECONDS,
        w3: Web3 = None,
        expected_chain_id: int = CHAIN_ID,
    ):
        self.rpc_url = rpc_url or RPC_ENDPOINTS[0]
        self.expected_chain_id = expected_chain_id

        if w3 is None:
            w3 = Web3(Web3.HTTPProvider(self.rpc_url, request_kwargs={"timeout": timeout}))
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self.w3 = w3

        if not self.w3.is_connected():
            raise RuntimeError(f"RPC not connected: {self.rpc_url}")

    def check(self) -> Tuple[bool, str]:
        """(healthy, status message); never raises"""
        try:
            started = time.time()
            chain_id = self.w3.eth.chain_id
            synced_block = self.w3.eth.block_number
            latency = time.time() - started
            head_block = self.w3.eth.get_block("latest").number
        except Exception as e:
            return False, str(e)

        if chain_id != self.expected_chain_id:
            return False, f"Wrong chain {chain_id} (expected {self.expected_chain_id})"
        if latency > MAX_RPC_LATENCY:
            return False, f"High latency {latency:.2f}s"

        lag = abs(head_block - synced_block)
        if lag > MAX_BLOCK_LAG:
            return False, f"Block lag {lag}"

        return True, f"OK (latency={latency:.2f}s, block={synced_block})"

    def get_chain_id(self) -> int:
        return self.w3.eth.chain_id


def find_healthy_rpc(
    endpoints: Sequence[str] = RPC_ENDPOINTS,
    timeout: float = RPC_TIMEOUT_SECONDS,
) -> Tuple[Optional[Web3], Optional[str]]:
    """
    First endpoint that passes check(), in order.
    Returns (Web3 instance, rpc_url) or (None, None) if all fail
    """
    for rpc_url in endpoints:
        try:
            rpc = RPCHealth(rpc_url, timeout=timeout)
        except Exception as e:
            logger.warning(f"RPC {rpc_url} unavailable: {e}")
            continue

        ok, status = rpc.check()
        if ok:
            logger.info(f"Using RPC {rpc_url}: {status}")
            return rpc.w3, rpc_url
        logger.warning(f"RPC {rpc_url} unhealthy: {status}")

    return None, None
