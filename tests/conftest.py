"""Shared test fixtures and utilities."""

import asyncio
import json
from unittest.mock import MagicMock

import pytest

from bitcoin_mcp.config import SystemConfig
from bitcoin_mcp.models.trade import Trade


class FakeWebSocket:
    """Mimics a websockets client connection.

    Queued messages are returned by ``recv``; afterwards ``recv`` raises
    ``then`` if given, otherwise it blocks until cancelled.
    """

    def __init__(self, messages=None, then: Exception | None = None):
        self._messages = list(messages or [])
        self._then = then
        self.closed = False

    async def recv(self):
        if self._messages:
            return self._messages.pop(0)
        if self._then is not None:
            raise self._then
        await asyncio.Event().wait()


class FakeConnect:
    """Stands in for ``websockets.connect`` and records how it was called."""

    def __init__(self, ws: FakeWebSocket | None = None, error: Exception | None = None):
        self.ws = ws or FakeWebSocket()
        self.error = error
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self

    async def __aenter__(self):
        if self.error is not None:
            raise self.error
        return self.ws

    async def __aexit__(self, exc_type, exc, tb):
        self.ws.closed = True
        return False


def make_trade_message(
    price: str = "50000.00",
    qty: str = "0.5",
    maker: bool = False,
    trade_id: int = 1,
    event_time: int = 1700000000000,
) -> str:
    """Build a raw <symbol>@trade feed message."""
    return json.dumps(
        {
            "e": "trade",
            "E": event_time,
            "s": "BTCUSDT",
            "t": trade_id,
            "p": price,
            "q": qty,
            "b": 88,
            "a": 50,
            "T": event_time - 1,
            "m": maker,
            "M": True,
        }
    )


def make_trade(price: float, quantity: float, maker: bool = False, trade_id: int = 1) -> Trade:
    return Trade(
        symbol="BTCUSDT",
        trade_id=trade_id,
        price=price,
        quantity=quantity,
        trade_time=1700000000000 + trade_id,
        is_buyer_maker=maker,
        event_time=1700000000000 + trade_id,
    )


def mock_response(status_code: int = 200, body=None, invalid_json: bool = False) -> MagicMock:
    """Create a mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    if invalid_json:
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def config():
    """Default configuration."""
    return SystemConfig()


@pytest.fixture
def fast_config():
    """Configuration with a tiny stream window so collections finish quickly."""
    return SystemConfig(max_stream_seconds=0.05)


@pytest.fixture
def mock_session():
    """Create a mock requests.Session."""
    return MagicMock()


@pytest.fixture
def ticker_payload():
    return {
        "symbol": "BTCUSDT",
        "priceChange": "1000.00",
        "priceChangePercent": "2.0",
        "lastPrice": "50000.00",
        "openPrice": "49000",
        "highPrice": "51000",
        "lowPrice": "49000",
        "volume": "100",
        "quoteVolume": "5000000",
        "openTime": 1699913600000,
        "closeTime": 1700000000000,
    }


@pytest.fixture
def book_payload():
    return {
        "symbol": "BTCUSDT",
        "bidPrice": "50000.00",
        "bidQty": "1.25",
        "askPrice": "50010.00",
        "askQty": "0.4",
    }


@pytest.fixture
def trades_payload():
    return [
        {
            "id": 101,
            "price": "50000.10",
            "qty": "0.00100000",
            "quoteQty": "50.0001",
            "time": 1700000000000,
            "isBuyerMaker": True,
            "isBestMatch": True,
        },
        {
            "id": 102,
            "price": "50001.00",
            "qty": "0.25000000",
            "quoteQty": "12500.25",
            "time": 1700000001000,
            "isBuyerMaker": False,
            "isBestMatch": True,
        },
    ]


@pytest.fixture
def klines_payload():
    return [
        [1699999200000, "49000.00", "50500.00", "48900.00", "50000.00", "120.5",
         1700002799999, "6000000.00", 4500, "60.1", "3000000.0", "0"],
        [1700002800000, "50000.00", "51000.00", "49950.00", "50800.00", "98.25",
         1700006399999, "4950000.00", 3900, "50.0", "2500000.0", "0"],
    ]
