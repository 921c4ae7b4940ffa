"""Base classes for market data sources."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List

from ..models.candle import Candle
from ..models.quote import BookTop, QuoteSnapshot
from ..models.trade import Trade


class MarketDataError(Exception):
    """Base exception for market data errors."""

    pass


class FetchError(MarketDataError):
    """REST request failed or returned a body that could not be decoded."""

    pass


class StreamError(MarketDataError):
    """Connection-level failure of the trade feed."""

    pass


class ParseError(MarketDataError):
    """A single feed message could not be read as a trade."""

    pass


class Interval(str, Enum):
    """Kline intervals accepted by the upstream API."""

    ONE_MINUTE = "1m"
    THREE_MINUTE = "3m"
    FIVE_MINUTE = "5m"
    FIFTEEN_MINUTE = "15m"
    THIRTY_MINUTE = "30m"
    ONE_HOUR = "1h"
    TWO_HOUR = "2h"
    FOUR_HOUR = "4h"
    SIX_HOUR = "6h"
    EIGHT_HOUR = "8h"
    TWELVE_HOUR = "12h"
    ONE_DAY = "1d"
    THREE_DAY = "3d"
    ONE_WEEK = "1w"
    ONE_MONTH = "1M"


def parse_interval(value: str) -> Interval:
    """Parse an interval string such as "1h" or "1M".

    Raises:
        ValueError: If the interval is not supported
    """
    try:
        return Interval(value.strip())
    except ValueError:
        allowed = ", ".join(i.value for i in Interval)
        raise ValueError(f"Unsupported interval: {value!r} (expected one of {allowed})")


class MarketDataSource(ABC):
    """Base class for read-only market data sources."""

    @abstractmethod
    def get_ticker(self, symbol: str) -> QuoteSnapshot:
        """Get the rolling 24h ticker for a symbol.

        Raises:
            FetchError: If unable to fetch the ticker
        """
        pass

    @abstractmethod
    def get_book_ticker(self, symbol: str) -> BookTop:
        """Get the best bid and ask for a symbol."""
        pass

    @abstractmethod
    def get_recent_trades(self, symbol: str, limit: int) -> List[Trade]:
        """Get the most recent trades for a symbol, oldest first."""
        pass

    @abstractmethod
    def get_klines(self, symbol: str, interval: Interval, limit: int) -> List[Candle]:
        """Get historical candles for a symbol, oldest first."""
        pass
