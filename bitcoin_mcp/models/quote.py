"""Ticker and order book snapshots."""

import math
from dataclasses import dataclass

from .parsing import to_float


@dataclass(frozen=True)
class QuoteSnapshot:
    """Rolling 24h ticker statistics for one symbol."""

    symbol: str
    last_price: float
    open_price: float
    high_price: float
    low_price: float
    price_change: float
    # Upstream already renders the percentage; it is displayed as received.
    price_change_percent: str
    volume: float
    quote_volume: float
    open_time: int
    close_time: int

    @classmethod
    def from_api(cls, data: dict) -> "QuoteSnapshot":
        """Build a snapshot from a /ticker/24hr response body."""
        return cls(
            symbol=data.get("symbol", ""),
            last_price=to_float(data.get("lastPrice")),
            open_price=to_float(data.get("openPrice")),
            high_price=to_float(data.get("highPrice")),
            low_price=to_float(data.get("lowPrice")),
            price_change=to_float(data.get("priceChange")),
            price_change_percent=str(data.get("priceChangePercent", "NaN")),
            volume=to_float(data.get("volume")),
            quote_volume=to_float(data.get("quoteVolume")),
            open_time=int(data.get("openTime", 0)),
            close_time=int(data.get("closeTime", 0)),
        )


@dataclass(frozen=True)
class BookTop:
    """Best bid and best ask currently resting on the book."""

    symbol: str
    bid_price: float
    bid_qty: float
    ask_price: float
    ask_qty: float

    @classmethod
    def from_api(cls, data: dict) -> "BookTop":
        """Build from a /ticker/bookTicker response body."""
        return cls(
            symbol=data.get("symbol", ""),
            bid_price=to_float(data.get("bidPrice")),
            bid_qty=to_float(data.get("bidQty")),
            ask_price=to_float(data.get("askPrice")),
            ask_qty=to_float(data.get("askQty")),
        )

    @property
    def spread(self) -> float:
        return self.ask_price - self.bid_price

    @property
    def spread_percentage(self) -> float:
        # zero bid follows IEEE division (inf or nan)
        if self.bid_price == 0:
            return math.nan if self.spread == 0 else math.copysign(math.inf, self.spread)
        return self.spread / self.bid_price * 100
