"""Tests for the MCP tool boundary and registry."""

import asyncio
import json
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from bitcoin_mcp.config import SystemConfig
from bitcoin_mcp.ingestion.realtime_collector import TradeStreamCollector
from bitcoin_mcp.models.candle import Candle
from bitcoin_mcp.models.quote import BookTop, QuoteSnapshot
from bitcoin_mcp.models.summary import NoTradesObserved, StreamCollection
from bitcoin_mcp.server.tools import (
    FALLBACK_PROMPT,
    BitcoinMarketTools,
    create_server,
    load_prompt,
)
from bitcoin_mcp.sources.base import FetchError, Interval, MarketDataSource, StreamError
from bitcoin_mcp.sources.binance import BinanceRestSource
from tests.conftest import FakeConnect, FakeWebSocket, make_trade_message, mock_response


@pytest.fixture
def source():
    return MagicMock(spec=MarketDataSource)


@pytest.fixture
def tools(source, fast_config):
    return BitcoinMarketTools(source, TradeStreamCollector(fast_config, connect=FakeConnect()))


class TestRestTools:
    """REST-backed operations: defaults, payloads, error envelopes."""

    @pytest.mark.asyncio
    async def test_ticker_defaults_and_payload(self, tools, source, ticker_payload):
        source.get_ticker.return_value = QuoteSnapshot.from_api(ticker_payload)

        payload = await tools.get_bitcoin_ticker()

        source.get_ticker.assert_called_once_with("BTCUSDT")
        assert payload.startswith("{\n  ")
        data = json.loads(payload)
        assert data["currentPrice"] == "$50,000"
        assert data["priceChange24h"] == "$1,000 (2.0%)"

    @pytest.mark.asyncio
    async def test_empty_symbol_falls_back_to_default(self, tools, source, book_payload):
        source.get_book_ticker.return_value = BookTop.from_api(book_payload)

        data = json.loads(await tools.get_bitcoin_order_book(symbol=""))

        source.get_book_ticker.assert_called_once_with("BTCUSDT")
        assert data["spread"] == "$10"

    @pytest.mark.asyncio
    async def test_fetch_error_becomes_error_payload(self, tools, source):
        source.get_ticker.side_effect = FetchError("HTTP error! status: 500")

        data = json.loads(await tools.get_bitcoin_ticker("BTCUSDT"))

        assert data == {"error": "Failed to fetch Bitcoin ticker: HTTP error! status: 500"}

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_error_payload(self, tools, source):
        source.get_book_ticker.side_effect = RuntimeError("boom")

        data = json.loads(await tools.get_bitcoin_order_book())

        assert data == {"error": "Failed to fetch order book: boom"}

    @pytest.mark.asyncio
    async def test_recent_trades_defaults(self, tools, source):
        source.get_recent_trades.return_value = []

        data = json.loads(await tools.get_bitcoin_recent_trades())

        source.get_recent_trades.assert_called_once_with("BTCUSDT", 10)
        assert data["symbol"] == "BTCUSDT"
        assert data["trades"] == []

    @pytest.mark.asyncio
    async def test_recent_trades_error(self, tools, source):
        source.get_recent_trades.side_effect = FetchError("timeout")
        data = json.loads(await tools.get_bitcoin_recent_trades("BTCUSDT", 5))
        assert data["error"] == "Failed to fetch recent trades: timeout"

    @pytest.mark.asyncio
    async def test_price_history_defaults(self, tools, source, klines_payload):
        source.get_klines.return_value = [Candle.from_kline(row) for row in klines_payload]

        data = json.loads(await tools.get_bitcoin_price_history())

        source.get_klines.assert_called_once_with("BTCUSDT", Interval.ONE_HOUR, 24)
        assert data["interval"] == "1h"
        assert len(data["candles"]) == 2

    @pytest.mark.asyncio
    async def test_price_history_rejects_unknown_interval(self, tools, source):
        data = json.loads(await tools.get_bitcoin_price_history(interval="7m"))

        assert data["error"].startswith("Failed to fetch price history: Unsupported interval")
        source.get_klines.assert_not_called()


class TestRealtimeTool:
    """The streaming operation always resolves with a payload."""

    @pytest.mark.asyncio
    async def test_collects_and_formats(self, source, fast_config):
        connect = FakeConnect(FakeWebSocket([make_trade_message(price="50000", qty="2")]))
        tools = BitcoinMarketTools(source, TradeStreamCollector(fast_config, connect=connect))

        data = json.loads(await tools.get_realtime_bitcoin_price())

        assert connect.calls[0][0].endswith("/btcusdt@trade")
        assert data["symbol"] == "BTCUSDT"
        assert data["tradesCount"] == 1
        assert data["averagePrice"] == "$50,000"

    @pytest.mark.asyncio
    async def test_empty_window(self, tools):
        data = json.loads(await tools.get_realtime_bitcoin_price("btcusdt", 1))

        assert "error" not in data
        assert data["message"] == "No trades received during the specified period"

    @pytest.mark.asyncio
    async def test_stream_error_payload(self, source, fast_config):
        connect = FakeConnect(error=OSError("Connection refused"))
        tools = BitcoinMarketTools(source, TradeStreamCollector(fast_config, connect=connect))

        data = json.loads(await tools.get_realtime_bitcoin_price())

        assert data["error"] == "WebSocket error: Connection refused"
        assert data["partialData"]["symbol"] == "BTCUSDT"
        assert "message" in data["partialData"]

    @pytest.mark.asyncio
    async def test_unexpected_collector_failure_still_resolves(self, source, fast_config):
        collector = TradeStreamCollector(fast_config)
        collector.collect = AsyncMock(side_effect=RuntimeError("loop exploded"))
        tools = BitcoinMarketTools(source, collector)

        data = json.loads(await tools.get_realtime_bitcoin_price("ethusdt", 3))

        assert data["error"] == "WebSocket error: loop exploded"
        assert data["partialData"]["symbol"] == "ETHUSDT"

    @pytest.mark.asyncio
    async def test_collection_passed_through(self, source, fast_config):
        collector = TradeStreamCollector(fast_config)
        collector.collect = AsyncMock(
            return_value=StreamCollection(
                symbol="BTCUSDT",
                window_seconds=0.05,
                window=NoTradesObserved(symbol="BTCUSDT"),
                error=StreamError("Connection lost"),
            )
        )
        tools = BitcoinMarketTools(source, collector)

        data = json.loads(await tools.get_realtime_bitcoin_price(duration=100))

        collector.collect.assert_awaited_once_with("btcusdt", 100)
        assert data["error"] == "WebSocket error: Connection lost"

    @pytest.mark.asyncio
    async def test_out_of_range_trade_time_still_resolves(self, source, fast_config):
        """A feed timestamp beyond the datetime range renders blank instead of raising."""
        message = make_trade_message(price="50000", qty="1", event_time=10**17)
        connect = FakeConnect(FakeWebSocket([message]))
        tools = BitcoinMarketTools(source, TradeStreamCollector(fast_config, connect=connect))

        data = json.loads(await tools.get_realtime_bitcoin_price())

        assert "error" not in data
        assert data["tradesCount"] == 1
        assert data["recentTrades"][0]["time"] == ""


class TestServerRegistry:
    """Tool and prompt registration on the MCP server."""

    @pytest.mark.asyncio
    async def test_all_tools_registered(self, fast_config, source):
        server = create_server(fast_config, source=source)

        tools = {tool.name: tool for tool in await server.list_tools()}

        assert set(tools) == {
            "get_bitcoin_ticker",
            "get_bitcoin_order_book",
            "get_bitcoin_recent_trades",
            "get_bitcoin_price_history",
            "get_realtime_bitcoin_price",
        }
        history = tools["get_bitcoin_price_history"].inputSchema["properties"]
        assert history["symbol"]["default"] == "BTCUSDT"
        assert history["interval"]["default"] == "1h"
        assert history["limit"]["default"] == 24
        realtime = tools["get_realtime_bitcoin_price"].inputSchema["properties"]
        assert realtime["symbol"]["default"] == "btcusdt"
        assert realtime["duration"]["default"] == 5
        assert not tools["get_bitcoin_ticker"].inputSchema.get("required")

    @pytest.mark.asyncio
    async def test_analysis_prompt_registered(self, fast_config, source):
        server = create_server(fast_config, source=source)

        prompts = await server.list_prompts()

        assert [p.name for p in prompts] == ["bitcoin_market_analysis"]

    def test_prompt_document_loaded(self):
        assert load_prompt().startswith("# Binance Bitcoin Market Analysis Tool")

    def test_prompt_fallback_when_missing(self, tmp_path):
        assert load_prompt(tmp_path / "missing.md") == FALLBACK_PROMPT


class TestConcurrentInvocations:
    """REST and streaming tools served on the same event loop."""

    @pytest.mark.asyncio
    async def test_slow_rest_call_does_not_stretch_stream_window(self, book_payload):
        """A blocking order book fetch leaves a concurrent 0.1s window on time."""
        config = SystemConfig(max_stream_seconds=0.1)
        session = MagicMock()

        def slow_get(*args, **kwargs):
            time.sleep(1.0)
            return mock_response(200, book_payload)

        session.get.side_effect = slow_get
        server = create_server(
            config,
            source=BinanceRestSource(config, session=session),
            collector=TradeStreamCollector(config, connect=FakeConnect()),
        )

        async def timed_stream():
            started = time.monotonic()
            await server.call_tool("get_realtime_bitcoin_price", {"duration": 100})
            return time.monotonic() - started

        stream_elapsed, _ = await asyncio.gather(
            timed_stream(),
            server.call_tool("get_bitcoin_order_book", {}),
        )

        assert stream_elapsed < 0.8
        session.get.assert_called_once()
