"""MCP tool registry for the Bitcoin market data operations.

Every tool answers with a single text payload of pretty-printed JSON. Errors
never escape a tool call: they are returned as an ``error`` field in the
payload so the calling model can read them.

REST calls are blocking and run in worker threads so a concurrent trade
collection keeps its window on the event loop.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any, Dict, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from ..config import SystemConfig
from ..formatting import formatters
from ..ingestion.realtime_collector import TradeStreamCollector
from ..models.summary import NoTradesObserved, StreamCollection
from ..sources.base import MarketDataSource, parse_interval
from ..sources.binance import BinanceRestSource

logger = logging.getLogger(__name__)

SERVER_NAME = "binance-bitcoin-mcp"
PROMPT_PATH = Path(__file__).resolve().parent.parent / "prompt.md"
FALLBACK_PROMPT = (
    "# Binance Bitcoin Market Analysis Tool\n\n"
    "Use the available tools to analyze Bitcoin market data."
)

DEFAULT_SYMBOL = "BTCUSDT"
DEFAULT_STREAM_SYMBOL = "btcusdt"
DEFAULT_TRADES_LIMIT = 10
DEFAULT_INTERVAL = "1h"
DEFAULT_KLINES_LIMIT = 24
DEFAULT_STREAM_DURATION = 5

SymbolArg = Annotated[str, Field(description="Trading pair symbol, e.g. BTCUSDT")]


def to_payload(data: Dict[str, Any]) -> str:
    """Serialize a formatted record as the tool's text payload."""
    return json.dumps(data, indent=2, ensure_ascii=False)


def load_prompt(path: Path = PROMPT_PATH) -> str:
    """Read the analysis guide shipped with the server."""
    if path.exists():
        return path.read_text(encoding="utf-8")
    logger.warning(f"Prompt template not found at {path}, using fallback")
    return FALLBACK_PROMPT


class BitcoinMarketTools:
    """The five market data operations exposed to the host."""

    def __init__(self, source: MarketDataSource, collector: TradeStreamCollector):
        """Initialize the tool set.

        Args:
            source: REST market data source
            collector: Real-time trade collector
        """
        self.source = source
        self.collector = collector

    async def get_bitcoin_ticker(self, symbol: SymbolArg = DEFAULT_SYMBOL) -> str:
        """Get current Bitcoin ticker data including price, 24h change, volume, and more."""
        symbol = symbol or DEFAULT_SYMBOL
        try:
            quote = await asyncio.to_thread(self.source.get_ticker, symbol)
            return to_payload(formatters.format_ticker(quote))
        except Exception as e:
            logger.error(f"get_bitcoin_ticker({symbol}) failed: {e}")
            return to_payload(formatters.format_error("fetch Bitcoin ticker", e))

    async def get_bitcoin_order_book(self, symbol: SymbolArg = DEFAULT_SYMBOL) -> str:
        """Get current best bid and ask prices for Bitcoin."""
        symbol = symbol or DEFAULT_SYMBOL
        try:
            book = await asyncio.to_thread(self.source.get_book_ticker, symbol)
            return to_payload(formatters.format_order_book(book))
        except Exception as e:
            logger.error(f"get_bitcoin_order_book({symbol}) failed: {e}")
            return to_payload(formatters.format_error("fetch order book", e))

    async def get_bitcoin_recent_trades(
        self,
        symbol: SymbolArg = DEFAULT_SYMBOL,
        limit: Annotated[int, Field(description="Number of trades to return")] = DEFAULT_TRADES_LIMIT,
    ) -> str:
        """Get recent trades for Bitcoin."""
        symbol = symbol or DEFAULT_SYMBOL
        limit = limit or DEFAULT_TRADES_LIMIT
        try:
            trades = await asyncio.to_thread(self.source.get_recent_trades, symbol, limit)
            return to_payload(formatters.format_recent_trades(symbol, trades))
        except Exception as e:
            logger.error(f"get_bitcoin_recent_trades({symbol}, {limit}) failed: {e}")
            return to_payload(formatters.format_error("fetch recent trades", e))

    async def get_bitcoin_price_history(
        self,
        symbol: SymbolArg = DEFAULT_SYMBOL,
        interval: Annotated[
            str,
            Field(description="Candle interval: 1m 3m 5m 15m 30m 1h 2h 4h 6h 8h 12h 1d 3d 1w 1M"),
        ] = DEFAULT_INTERVAL,
        limit: Annotated[int, Field(description="Number of candles to return")] = DEFAULT_KLINES_LIMIT,
    ) -> str:
        """Get historical kline/candlestick data for Bitcoin."""
        symbol = symbol or DEFAULT_SYMBOL
        interval = interval or DEFAULT_INTERVAL
        limit = limit or DEFAULT_KLINES_LIMIT
        try:
            candles = await asyncio.to_thread(
                self.source.get_klines, symbol, parse_interval(interval), limit
            )
            return to_payload(formatters.format_price_history(symbol, interval, candles))
        except Exception as e:
            logger.error(f"get_bitcoin_price_history({symbol}, {interval}, {limit}) failed: {e}")
            return to_payload(formatters.format_error("fetch price history", e))

    async def get_realtime_bitcoin_price(
        self,
        symbol: Annotated[str, Field(description="Trading pair symbol, e.g. btcusdt")] = DEFAULT_STREAM_SYMBOL,
        duration: Annotated[
            float, Field(description="Seconds to listen to the trade feed (max 30)")
        ] = DEFAULT_STREAM_DURATION,
    ) -> str:
        """Get real-time Bitcoin price updates for a short period (5 seconds by default, 30 at most)."""
        symbol = symbol or DEFAULT_STREAM_SYMBOL
        try:
            collection = await self.collector.collect(symbol, duration)
            return to_payload(formatters.format_stream_collection(collection))
        except Exception as e:
            logger.error(f"get_realtime_bitcoin_price({symbol}) failed: {e}", exc_info=True)
            collection = StreamCollection(
                symbol=symbol.upper(),
                window_seconds=self.collector.window_for(duration),
                window=NoTradesObserved(symbol=symbol.upper()),
                error=e,
            )
            return to_payload(formatters.format_stream_collection(collection))


def create_server(
    config: SystemConfig,
    source: Optional[MarketDataSource] = None,
    collector: Optional[TradeStreamCollector] = None,
) -> FastMCP:
    """Build the MCP server with all tools and the analysis prompt registered."""
    prompt_text = load_prompt()
    tools = BitcoinMarketTools(
        source=source or BinanceRestSource(config),
        collector=collector or TradeStreamCollector(config),
    )

    server = FastMCP(SERVER_NAME, instructions=prompt_text)
    handlers = (
        tools.get_bitcoin_ticker,
        tools.get_bitcoin_order_book,
        tools.get_bitcoin_recent_trades,
        tools.get_bitcoin_price_history,
        tools.get_realtime_bitcoin_price,
    )
    for handler in handlers:
        server.add_tool(handler, name=handler.__name__, description=handler.__doc__)

    @server.prompt(
        name="bitcoin_market_analysis",
        description="Guide for analyzing Bitcoin market data with these tools",
    )
    def bitcoin_market_analysis() -> str:
        return prompt_text

    logger.info(f"Registered {len(handlers)} tools on {SERVER_NAME}")
    return server
