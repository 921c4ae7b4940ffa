"""Display formatting for market data returned to the host model.

Prices render with at most 2 fraction digits, volumes and quantities with at
most 8, both comma-grouped with trailing zeros dropped. Timestamps are
ISO-8601 UTC with millisecond precision.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..models.candle import Candle
from ..models.quote import BookTop, QuoteSnapshot
from ..models.summary import NoTradesObserved, StreamCollection, TradeWindowSummary, WindowResult
from ..models.trade import Trade

PRICE_DECIMALS = 2
VOLUME_DECIMALS = 8
PERCENT_DECIMALS = 4
RATIO_DECIMALS = 2


def format_number(value: float, max_decimals: int) -> str:
    """Format a number with thousands separators and at most ``max_decimals`` digits."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"
    text = f"{value:,.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def format_usd(value: float, max_decimals: int = PRICE_DECIMALS) -> str:
    return f"${format_number(value, max_decimals)}"


def format_volume(value: float) -> str:
    return format_number(value, VOLUME_DECIMALS)


def format_fixed(value: float, decimals: int) -> str:
    """Fixed-point rendering without grouping, e.g. ``0.0200``."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return f"{value:.{decimals}f}"


def to_iso(timestamp_ms: Optional[int]) -> str:
    """Render milliseconds since epoch as ``2023-11-14T22:13:20.000Z``."""
    if timestamp_ms is None:
        return ""
    try:
        dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        # outside the platform datetime range
        return ""
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_ticker(quote: QuoteSnapshot) -> Dict[str, Any]:
    return {
        "symbol": quote.symbol,
        "currentPrice": format_usd(quote.last_price),
        "priceChange24h": f"{format_usd(quote.price_change)} ({quote.price_change_percent}%)",
        "high24h": format_usd(quote.high_price),
        "low24h": format_usd(quote.low_price),
        "volume24h": format_volume(quote.volume),
        "quoteVolume24h": format_usd(quote.quote_volume),
        "openPrice": format_usd(quote.open_price),
        "timestamp": to_iso(quote.close_time),
    }


def format_order_book(book: BookTop) -> Dict[str, Any]:
    return {
        "symbol": book.symbol,
        "bestBid": {
            "price": format_usd(book.bid_price),
            "quantity": format_volume(book.bid_qty),
        },
        "bestAsk": {
            "price": format_usd(book.ask_price),
            "quantity": format_volume(book.ask_qty),
        },
        "spread": format_usd(book.spread),
        "spreadPercentage": f"{format_fixed(book.spread_percentage, PERCENT_DECIMALS)}%",
        "timestamp": utc_now_iso(),
    }


def format_recent_trades(symbol: str, trades: List[Trade]) -> Dict[str, Any]:
    return {
        "symbol": symbol,
        "trades": [
            {
                "id": trade.trade_id,
                "price": format_usd(trade.price),
                "quantity": format_volume(trade.quantity),
                "time": to_iso(trade.trade_time),
                "isBuyerMaker": trade.is_buyer_maker,
            }
            for trade in trades
        ],
        "timestamp": utc_now_iso(),
    }


def format_price_history(symbol: str, interval: str, candles: List[Candle]) -> Dict[str, Any]:
    return {
        "symbol": symbol,
        "interval": interval,
        "candles": [
            {
                "openTime": to_iso(candle.open_time),
                "open": format_usd(candle.open),
                "high": format_usd(candle.high),
                "low": format_usd(candle.low),
                "close": format_usd(candle.close),
                "volume": format_volume(candle.volume),
                "closeTime": to_iso(candle.close_time),
                "quoteVolume": format_usd(candle.quote_volume),
                "trades": candle.trade_count,
            }
            for candle in candles
        ],
        "timestamp": utc_now_iso(),
    }


def format_trade_window(window: WindowResult) -> Dict[str, Any]:
    """Render a window summary, or the placeholder for an empty window."""
    if isinstance(window, NoTradesObserved):
        return {
            "symbol": window.symbol,
            "message": window.message,
            "timestamp": utc_now_iso(),
        }
    return _format_summary(window)


def _format_summary(summary: TradeWindowSummary) -> Dict[str, Any]:
    return {
        "symbol": summary.symbol,
        "period": f"{to_iso(summary.first_event_time)} to {to_iso(summary.last_event_time)}",
        "tradesCount": summary.trade_count,
        "averagePrice": format_usd(summary.average_price),
        "priceRange": {
            "min": format_usd(summary.min_price),
            "max": format_usd(summary.max_price),
            "spread": format_usd(summary.price_spread),
        },
        "volume": format_volume(summary.total_volume),
        "marketActivity": {
            "buyOrders": summary.buy_count,
            "sellOrders": summary.sell_count,
            "buySellRatio": format_fixed(summary.buy_sell_ratio, RATIO_DECIMALS),
        },
        "recentTrades": [
            {
                "price": format_usd(trade.price),
                "quantity": format_volume(trade.quantity),
                "time": to_iso(trade.trade_time),
                "type": trade.side,
            }
            for trade in summary.recent_trades
        ],
        "timestamp": utc_now_iso(),
    }


def format_stream_collection(collection: StreamCollection) -> Dict[str, Any]:
    """Render a finished collection; a failed one keeps its partial data."""
    data = format_trade_window(collection.window)
    if collection.failed:
        return {
            "error": f"WebSocket error: {collection.error}",
            "partialData": data,
        }
    return data


def format_error(action: str, error: Exception) -> Dict[str, Any]:
    return {"error": f"Failed to {action}: {error}"}
