"""Request bodies for signed POST endpoints."""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_serializer

from .models import NewOrder, OrderType


class OrdersPostRequest(BaseModel):
    """Body of ``POST /api/exchange/orders``.

    Decimals serialize as plain strings; unset fields are omitted from the JSON.
    """
    model_config = ConfigDict(frozen=True)

    pair: str
    order_type: OrderType
    rate: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    market_buy_amount: Optional[Decimal] = None
    stop_loss_rate: Optional[Decimal] = None

    @field_serializer("rate", "amount", "market_buy_amount", "stop_loss_rate")
    def serialize_decimal(self, value: Optional[Decimal]) -> Optional[str]:
        return None if value is None else format(value, "f")

    @classmethod
    def from_new_order(cls, order: NewOrder) -> "OrdersPostRequest":
        """Validate the order shape for its type and build the request body.

        Raises:
            ValueError: If a field required by the order type is missing
        """
        t = OrderType(order.order_type)
        if t in (OrderType.BUY, OrderType.SELL):
            if order.rate is None or order.amount is None:
                raise ValueError(f"{t.value} order requires rate and amount")
        elif t is OrderType.MARKET_BUY:
            if order.market_buy_amount is None:
                raise ValueError("market_buy order requires market_buy_amount")
        elif t is OrderType.MARKET_SELL:
            if order.amount is None:
                raise ValueError("market_sell order requires amount")

        return cls(
            pair=order.pair,
            order_type=t,
            rate=order.rate if t in (OrderType.BUY, OrderType.SELL) else None,
            amount=order.amount if t is not OrderType.MARKET_BUY else None,
            market_buy_amount=order.market_buy_amount if t is OrderType.MARKET_BUY else None,
            stop_loss_rate=order.stop_loss_rate,
        )
