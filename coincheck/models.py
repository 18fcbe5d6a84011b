"""
Domain types returned by the Coincheck client.

Prices and amounts are Decimal; the exchange sends them as decimal strings
and float conversion would lose precision on small BTC amounts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple


class OrderType(str, Enum):
    BUY = "buy"
    SELL = "sell"
    MARKET_BUY = "market_buy"
    MARKET_SELL = "market_sell"

    @property
    def side(self) -> str:
        """Plain "buy"/"sell" side, as used by the rate endpoint."""
        if self in (OrderType.BUY, OrderType.MARKET_BUY):
            return "buy"
        return "sell"


@dataclass
class Ticker:
    last: Decimal
    bid: Decimal
    ask: Decimal
    high: Decimal
    low: Decimal
    volume: Decimal
    timestamp: int


@dataclass
class OrderBooks:
    """Order book snapshot; each level is (rate, amount)."""
    asks: List[Tuple[Decimal, Decimal]] = field(default_factory=list)
    bids: List[Tuple[Decimal, Decimal]] = field(default_factory=list)


@dataclass
class NewOrder:
    """Order to submit.

    Limit orders (buy/sell) need ``rate`` and ``amount``. ``market_buy`` is sized
    in quote currency via ``market_buy_amount``; ``market_sell`` needs ``amount``.
    """
    pair: str
    order_type: OrderType
    rate: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    market_buy_amount: Optional[Decimal] = None
    stop_loss_rate: Optional[Decimal] = None


@dataclass
class Order:
    id: int
    pair: str
    order_type: OrderType
    rate: Optional[Decimal]
    amount: Optional[Decimal]
    market_buy_amount: Optional[Decimal]
    stop_loss_rate: Optional[Decimal]
    created_at: datetime


@dataclass
class OpenOrder:
    id: int
    pair: str
    order_type: OrderType
    rate: Optional[Decimal]
    pending_amount: Optional[Decimal]
    pending_market_buy_amount: Optional[Decimal]
    stop_loss_rate: Optional[Decimal]
    created_at: datetime


@dataclass
class Balance:
    """Per-currency balance breakdown."""
    amount: Decimal
    reserved: Decimal = Decimal("0")
    lend_in_use: Decimal = Decimal("0")
    lent: Decimal = Decimal("0")
    debt: Decimal = Decimal("0")
