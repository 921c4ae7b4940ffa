"""Short-lived real-time trade collection from the Binance push feed.

A collection opens ``<symbol>@trade``, buffers every trade for a bounded
window and reduces the buffer to a summary once the window closes:

    CONNECTING -> COLLECTING -> CLOSING -> DONE

A connection failure before any data goes straight to DONE. The window timer
and the feed messages are merged into a single receive loop, and the outcome
is written once to a single-assignment result slot.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional, Union

import websockets
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException

from ..config import SystemConfig
from ..models.summary import StreamCollection
from ..models.trade import Trade, TradeEvent
from ..sources.base import ParseError, StreamError
from .trade_summary import summarize_trades

logger = logging.getLogger(__name__)

DEFAULT_DURATION_SECONDS = 5.0
PING_INTERVAL_SECONDS = 20


class CollectorState(str, Enum):
    """Lifecycle of one collection."""

    CONNECTING = "connecting"
    COLLECTING = "collecting"
    CLOSING = "closing"
    DONE = "done"


def clamp_duration(requested: Optional[float], max_seconds: float) -> float:
    """Clamp a requested window to ``max_seconds``.

    Missing, zero or negative requests use the default window.
    """
    if not requested or requested <= 0:
        requested = DEFAULT_DURATION_SECONDS
    return min(float(requested), max_seconds)


def parse_trade_message(message: Union[str, bytes]) -> Trade:
    """Parse one feed message into a Trade.

    Raises:
        ParseError: If the message is not a JSON trade event
    """
    try:
        return TradeEvent.model_validate_json(message).to_trade()
    except ValidationError as e:
        raise ParseError(f"Malformed trade message: {e.error_count()} validation error(s)") from e


class CollectionSession:
    """One collection run. Owns its buffer, state and result slot."""

    def __init__(
        self,
        config: SystemConfig,
        symbol: str,
        window_seconds: float,
        connect: Callable = websockets.connect,
    ):
        self.config = config
        self.symbol = symbol
        self.window_seconds = window_seconds
        self.url = f"{config.stream_base_url}/{symbol.lower()}@trade"
        self.state = CollectorState.CONNECTING
        self.transitions: List[CollectorState] = [CollectorState.CONNECTING]
        self.trades: List[Trade] = []
        self.skipped_messages = 0
        self._connect = connect
        self._result: Optional[asyncio.Future] = None

    def _transition(self, state: CollectorState) -> None:
        logger.debug(f"{self.url}: {self.state.value} -> {state.value}")
        self.state = state
        self.transitions.append(state)

    async def run(self) -> StreamCollection:
        """Collect for the window and return the outcome.

        Stream failures are reported in the returned collection, never raised.
        """
        loop = asyncio.get_running_loop()
        self._result = loop.create_future()
        error: Optional[StreamError] = None

        logger.info(f"📡 Collecting {self.symbol} trades for {self.window_seconds:g}s")
        try:
            async with self._connect(
                self.url,
                open_timeout=self.config.stream_open_timeout,
                close_timeout=self.config.stream_close_timeout,
                ping_interval=PING_INTERVAL_SECONDS,
            ) as ws:
                self._transition(CollectorState.COLLECTING)
                try:
                    await self._collect(ws, loop)
                except ConnectionClosedOK:
                    logger.info(f"Feed closed by server after {len(self.trades)} trades")
                except ConnectionClosed as e:
                    error = StreamError(f"Connection lost: {e}")
                self._transition(CollectorState.CLOSING)
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            error = StreamError(str(e) or type(e).__name__)

        if error is not None:
            logger.error(f"Trade stream error for {self.symbol}: {error}")

        self._transition(CollectorState.DONE)
        self._deliver(
            StreamCollection(
                symbol=self.symbol.upper(),
                window_seconds=self.window_seconds,
                window=summarize_trades(self.trades, self.symbol),
                error=error,
                skipped_messages=self.skipped_messages,
            )
        )
        return self._result.result()

    async def _collect(self, ws, loop: asyncio.AbstractEventLoop) -> None:
        deadline = loop.time() + self.window_seconds
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return
            try:
                message = await asyncio.wait_for(ws.recv(), timeout=remaining)
            except asyncio.TimeoutError:
                return
            self._buffer(message)

    def _buffer(self, message: Union[str, bytes]) -> None:
        try:
            self.trades.append(parse_trade_message(message))
        except ParseError as e:
            self.skipped_messages += 1
            logger.warning(f"Skipping feed message: {e}")

    def _deliver(self, collection: StreamCollection) -> None:
        # set_result raises InvalidStateError on a second delivery
        self._result.set_result(collection)
        logger.info(
            f"✅ Collected {len(self.trades)} trades for {self.symbol} "
            f"({self.skipped_messages} skipped, error={collection.error})"
        )


class TradeStreamCollector:
    """Runs bounded trade collections against the configured feed."""

    def __init__(self, config: SystemConfig, connect: Callable = websockets.connect):
        """Initialize the collector.

        Args:
            config: System configuration (feed URL, window cap, timeouts)
            connect: WebSocket connect factory, replaceable for testing
        """
        self.config = config
        self._connect = connect

    def window_for(self, requested: Optional[float]) -> float:
        return clamp_duration(requested, self.config.max_stream_seconds)

    async def collect(self, symbol: str, duration: Optional[float]) -> StreamCollection:
        """Collect trades for ``symbol`` for at most ``max_stream_seconds``."""
        session = CollectionSession(
            self.config, symbol, self.window_for(duration), connect=self._connect
        )
        return await session.run()
