"""
Shared fixtures: a controllable clock and a scripted QuoterV2 double
"""

from unittest.mock import Mock

import pytest

from quotebot.config import load_config
from quotebot.context import build_context
from quotebot.pools import PoolRegistry
from quotebot.tokens import TokenRegistry


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: int) -> None:
        self.now += ms / 1000


class _PendingCall:
    def __init__(self, respond, params):
        self._respond = respond
        self._params = params

    def call(self):
        result = self._respond(self._params)
        if isinstance(result, Exception):
            raise result
        return result


class FakeQuoter:
    """
    Stands in for the web3 QuoterV2 contract. `respond(params)` returns the
    (amountOut, sqrtPriceX96After, ticksCrossed, gasEstimate) tuple, or an
    exception instance to raise from .call().
    """

    def __init__(self, respond):
        self.respond = respond
        self.calls = []
        self.functions = self

    def quoteExactInputSingle(self, params):
        self.calls.append(params)
        return _PendingCall(self.respond, params)

    @property
    def fees_called(self):
        return [params[3] for params in self.calls]


def mock_w3(contract) -> Mock:
    w3 = Mock()
    w3.eth.contract.return_value = contract
    return w3


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tokens():
    return TokenRegistry()


@pytest.fixture
def pools():
    return PoolRegistry()


@pytest.fixture
def config():
    return load_config(environ={})


@pytest.fixture
def make_context(config, clock):
    """Factory: engine context bound to a FakeQuoter driven by `respond`"""
    def _make(respond, **kwargs):
        quoter = FakeQuoter(respond)
        ctx = build_context(config, w3=mock_w3(quoter), clock=clock, **kwargs)
        return ctx, quoter
    return _make
