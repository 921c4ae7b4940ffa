"""Result models for a real-time trade collection."""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from .trade import Trade

RECENT_TRADES_LIMIT = 5


@dataclass(frozen=True)
class TradeWindowSummary:
    """Statistics over the trades seen during one collection window."""

    symbol: str
    trade_count: int
    average_price: float  # volume-weighted
    min_price: float
    max_price: float
    total_volume: float
    buy_count: int
    sell_count: int
    buy_sell_ratio: float
    first_event_time: Optional[int]
    last_event_time: Optional[int]
    recent_trades: Tuple[Trade, ...] = field(default_factory=tuple)

    @property
    def price_spread(self) -> float:
        return self.max_price - self.min_price


@dataclass(frozen=True)
class NoTradesObserved:
    """Placeholder for a window in which no trade arrived."""

    symbol: str
    message: str = "No trades received during the specified period"


WindowResult = Union[TradeWindowSummary, NoTradesObserved]


@dataclass(frozen=True)
class StreamCollection:
    """Outcome of one streaming collection.

    ``error`` is set when the feed failed; ``window`` then holds whatever
    could be computed from the trades buffered before the failure.
    """

    symbol: str
    window_seconds: float
    window: WindowResult
    error: Optional[Exception] = None
    skipped_messages: int = 0

    @property
    def failed(self) -> bool:
        return self.error is not None
