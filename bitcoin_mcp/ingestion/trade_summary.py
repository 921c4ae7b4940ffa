"""Reduction of a buffered trade window to summary statistics."""

import math
from typing import Sequence

from ..models.summary import (
    RECENT_TRADES_LIMIT,
    NoTradesObserved,
    TradeWindowSummary,
    WindowResult,
)
from ..models.trade import Trade


def summarize_trades(trades: Sequence[Trade], symbol: str) -> WindowResult:
    """Summarize trades collected during one window.

    Args:
        trades: Trades in feed arrival order
        symbol: Symbol the window was collected for

    Returns:
        TradeWindowSummary, or NoTradesObserved when the buffer is empty
    """
    symbol = symbol.upper()
    if not trades:
        return NoTradesObserved(symbol=symbol)

    prices = [t.price for t in trades]
    total_volume = sum(t.quantity for t in trades)
    weighted = sum(t.price * t.quantity for t in trades)

    buy_count = sum(1 for t in trades if not t.is_buyer_maker)
    sell_count = len(trades) - buy_count

    return TradeWindowSummary(
        symbol=symbol,
        trade_count=len(trades),
        average_price=weighted / total_volume if total_volume else math.nan,
        min_price=_extreme(min, prices),
        max_price=_extreme(max, prices),
        total_volume=total_volume,
        buy_count=buy_count,
        sell_count=sell_count,
        # A window with no sells reports buy_count rather than infinity.
        buy_sell_ratio=buy_count / max(sell_count, 1),
        first_event_time=_event_time(trades[0]),
        last_event_time=_event_time(trades[-1]),
        recent_trades=tuple(trades[-RECENT_TRADES_LIMIT:]),
    )


def _event_time(trade: Trade) -> int:
    return trade.event_time if trade.event_time is not None else trade.trade_time


def _extreme(pick, prices: Sequence[float]) -> float:
    # builtin min/max ignore NaN unless it comes first
    if any(math.isnan(p) for p in prices):
        return math.nan
    return pick(prices)
