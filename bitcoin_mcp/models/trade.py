"""Trade models for REST rows and feed messages."""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .parsing import to_float


@dataclass(frozen=True)
class Trade:
    """A single matched trade."""

    symbol: str
    trade_id: int
    price: float
    quantity: float
    trade_time: int
    is_buyer_maker: bool
    event_time: Optional[int] = None

    @property
    def side(self) -> str:
        """Side of the taker: a maker buyer means the taker sold."""
        return "SELL" if self.is_buyer_maker else "BUY"

    @classmethod
    def from_rest(cls, symbol: str, data: dict) -> "Trade":
        """Build from one element of the /trades response."""
        return cls(
            symbol=symbol,
            trade_id=int(data.get("id", 0)),
            price=to_float(data.get("price")),
            quantity=to_float(data.get("qty")),
            trade_time=int(data.get("time", 0)),
            is_buyer_maker=bool(data.get("isBuyerMaker", False)),
        )


class TradeEvent(BaseModel):
    """Validated <symbol>@trade feed message."""

    model_config = ConfigDict(populate_by_name=True)

    event_type: str = Field(..., alias="e", description="Event type")
    event_time: int = Field(..., alias="E", description="Event time (ms)")
    symbol: str = Field(..., alias="s", description="Symbol")
    trade_id: int = Field(..., alias="t", description="Trade ID")
    price: float = Field(..., alias="p", description="Price")
    quantity: float = Field(..., alias="q", description="Quantity")
    buyer_order_id: Optional[int] = Field(None, alias="b", description="Buyer order ID")
    seller_order_id: Optional[int] = Field(None, alias="a", description="Seller order ID")
    trade_time: int = Field(..., alias="T", description="Trade time (ms)")
    is_buyer_maker: bool = Field(..., alias="m", description="Is the buyer the market maker?")

    @field_validator("price", "quantity", mode="before")
    @classmethod
    def decimal_string_to_float(cls, v):
        """Non-numeric strings become NaN rather than rejecting the message."""
        return to_float(v)

    def to_trade(self) -> Trade:
        return Trade(
            symbol=self.symbol,
            trade_id=self.trade_id,
            price=self.price,
            quantity=self.quantity,
            trade_time=self.trade_time,
            is_buyer_maker=self.is_buyer_maker,
            event_time=self.event_time,
        )
