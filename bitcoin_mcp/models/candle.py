"""Canonical candle model."""

from dataclasses import dataclass
from typing import Sequence

from .parsing import to_float


@dataclass(frozen=True)
class Candle:
    """OHLCV candle for one interval bucket."""

    open_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: int
    quote_volume: float
    trade_count: int

    @classmethod
    def from_kline(cls, row: Sequence) -> "Candle":
        """Build a candle from one row of the /klines array response.

        Row layout: [open time, open, high, low, close, volume, close time,
        quote volume, number of trades, ...].
        """
        return cls(
            open_time=int(row[0]),
            open=to_float(row[1]),
            high=to_float(row[2]),
            low=to_float(row[3]),
            close=to_float(row[4]),
            volume=to_float(row[5]),
            close_time=int(row[6]),
            quote_volume=to_float(row[7]),
            trade_count=int(row[8]),
        )
