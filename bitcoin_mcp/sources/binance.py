"""Binance public REST market data source."""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..config import SystemConfig
from ..models.candle import Candle
from ..models.quote import BookTop, QuoteSnapshot
from ..models.trade import Trade
from .base import FetchError, Interval, MarketDataSource

logger = logging.getLogger(__name__)


class BinanceRestSource(MarketDataSource):
    """Read-only Binance REST source. One GET per call, no retries."""

    def __init__(self, config: SystemConfig, session: Optional[requests.Session] = None):
        """Initialize the REST source.

        Args:
            config: System configuration (base URL, user agent, timeout)
            session: Optional requests session for testing
        """
        self.config = config
        self.session = session or requests.Session()
        self.headers = {
            "User-Agent": config.user_agent,
        }

    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        """Issue a GET against the REST API and decode the JSON body.

        Raises:
            FetchError: On transport failure, non-success status or invalid JSON
        """
        url = f"{self.config.rest_base_url}{path}"
        logger.debug(f"GET {url} params={params}")

        try:
            response = self.session.get(
                url, headers=self.headers, params=params, timeout=self.config.request_timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {path} failed: {e}")
            raise FetchError(f"Request to {path} failed: {e}") from e

        if not response.ok:
            detail = self._error_detail(response)
            message = f"HTTP error! status: {response.status_code}"
            if detail:
                message = f"{message} ({detail})"
            logger.error(f"{path}: {message}")
            raise FetchError(message)

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from {path}: {e}")
            raise FetchError(f"Invalid JSON in response from {path}: {e}") from e

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        """Extract Binance's ``msg`` field from an error body, if any."""
        try:
            body = response.json()
        except ValueError:
            return ""
        if isinstance(body, dict):
            return str(body.get("msg", ""))
        return ""

    @staticmethod
    def _expect(payload: Any, kind: type, path: str) -> Any:
        if not isinstance(payload, kind):
            raise FetchError(
                f"Unexpected response shape from {path}: "
                f"expected {kind.__name__}, got {type(payload).__name__}"
            )
        return payload

    def get_ticker(self, symbol: str) -> QuoteSnapshot:
        """Get the rolling 24h ticker for a symbol."""
        path = "/ticker/24hr"
        data = self._expect(self._get(path, {"symbol": symbol}), dict, path)
        return QuoteSnapshot.from_api(data)

    def get_book_ticker(self, symbol: str) -> BookTop:
        """Get the best bid and ask for a symbol."""
        path = "/ticker/bookTicker"
        data = self._expect(self._get(path, {"symbol": symbol}), dict, path)
        return BookTop.from_api(data)

    def get_recent_trades(self, symbol: str, limit: int) -> List[Trade]:
        """Get the most recent trades for a symbol."""
        path = "/trades"
        rows = self._expect(self._get(path, {"symbol": symbol, "limit": limit}), list, path)
        trades = [Trade.from_rest(symbol, row) for row in rows]
        logger.info(f"Fetched {len(trades)} trades for {symbol}")
        return trades

    def get_klines(self, symbol: str, interval: Interval, limit: int) -> List[Candle]:
        """Get historical candles for a symbol, oldest first."""
        path = "/klines"
        params = {"symbol": symbol, "interval": Interval(interval).value, "limit": limit}
        rows = self._expect(self._get(path, params), list, path)
        try:
            candles = [Candle.from_kline(row) for row in rows]
        except (TypeError, ValueError, IndexError) as e:
            raise FetchError(f"Malformed kline row from {path}: {e}") from e
        logger.info(f"Fetched {len(candles)} {params['interval']} candles for {symbol}")
        return candles
