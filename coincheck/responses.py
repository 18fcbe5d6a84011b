"""Response schemas and the dual-path response decoder.

Every authenticated response body is decoded by trying, in order:

1. the caller's success schema,
2. the generic error schema ``{"success": false, "error": "<message>"}``,
3. otherwise the body is unparseable.

The success schema always wins: a body that satisfies both is a success.
Decoding is strict (no str->int coercion, required fields must be present);
unknown fields are ignored.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Generic, List, Literal, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from .models import Balance, OpenOrder, Order, OrderBooks, OrderType, Ticker

# The exchange mixes JSON numbers and decimal strings for the same kind of value.
Number = Union[int, float, str]

T = TypeVar("T", bound=BaseModel)

BALANCE_SUFFIXES = ("_reserved", "_lend_in_use", "_lent", "_debt", "_tsumitate")


def to_decimal(value: Optional[Number]) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def parse_timestamp(value: str) -> datetime:
    """Parse the exchange's ISO-8601 timestamps ("2015-01-10T05:55:38.000Z")."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class ApiResponse(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True)


class ErrorResponse(ApiResponse):
    """Generic failure body reported by the server."""
    success: Literal[False]
    error: str


class DecodeStatus(str, Enum):
    SUCCESS = "success"
    SERVER_ERROR = "server_error"
    UNPARSEABLE = "unparseable"


@dataclass(frozen=True)
class DecodedResponse(Generic[T]):
    """Tagged result of decoding one response body.

    Exactly one of ``value`` / ``error`` is set, except for UNPARSEABLE where
    neither is; ``raw_text`` always holds the body verbatim.
    """
    status: DecodeStatus
    raw_text: str
    value: Optional[T] = None
    error: Optional[ErrorResponse] = None


def _try_validate(schema: Type[BaseModel], text: str) -> Optional[BaseModel]:
    try:
        return schema.model_validate_json(text)
    except ValidationError:
        return None


def decode_response(text: str, schema: Type[T]) -> DecodedResponse[T]:
    """Decode ``text`` as ``schema``, falling back to the error schema."""
    value = _try_validate(schema, text)
    if value is not None:
        return DecodedResponse(status=DecodeStatus.SUCCESS, raw_text=text, value=value)

    error = _try_validate(ErrorResponse, text)
    if error is not None:
        return DecodedResponse(status=DecodeStatus.SERVER_ERROR, raw_text=text, error=error)

    return DecodedResponse(status=DecodeStatus.UNPARSEABLE, raw_text=text)


# --- Public endpoints -------------------------------------------------------

class TickerResponse(ApiResponse):
    last: Number
    bid: Number
    ask: Number
    high: Number
    low: Number
    volume: Number
    timestamp: int

    def to_model(self) -> Ticker:
        return Ticker(
            last=to_decimal(self.last),
            bid=to_decimal(self.bid),
            ask=to_decimal(self.ask),
            high=to_decimal(self.high),
            low=to_decimal(self.low),
            volume=to_decimal(self.volume),
            timestamp=self.timestamp,
        )


class OrderBooksResponse(ApiResponse):
    asks: List[List[Number]]
    bids: List[List[Number]]

    @staticmethod
    def levels(rows: List[List[Number]]):
        levels = []
        for row in rows:
            if len(row) != 2:
                raise ValueError(f"Order book level must be [rate, amount], got {row!r}")
            levels.append((to_decimal(row[0]), to_decimal(row[1])))
        return levels

    def to_model(self) -> OrderBooks:
        return OrderBooks(asks=self.levels(self.asks), bids=self.levels(self.bids))


class OrdersRateResponse(ApiResponse):
    success: bool
    rate: Number
    price: Number
    amount: Number


# --- Private endpoints ------------------------------------------------------

class OrdersPostResponse(ApiResponse):
    success: bool
    error: Optional[str] = None
    id: int
    pair: str
    order_type: str
    rate: Optional[Number] = None
    amount: Optional[Number] = None
    market_buy_amount: Optional[Number] = None
    stop_loss_rate: Optional[Number] = None
    created_at: str

    def to_model(self) -> Order:
        return Order(
            id=self.id,
            pair=self.pair,
            order_type=OrderType(self.order_type),
            rate=to_decimal(self.rate),
            amount=to_decimal(self.amount),
            market_buy_amount=to_decimal(self.market_buy_amount),
            stop_loss_rate=to_decimal(self.stop_loss_rate),
            created_at=parse_timestamp(self.created_at),
        )


class OpenOrderEntry(ApiResponse):
    id: int
    pair: str
    order_type: str
    rate: Optional[Number] = None
    pending_amount: Optional[Number] = None
    pending_market_buy_amount: Optional[Number] = None
    stop_loss_rate: Optional[Number] = None
    created_at: str

    def to_model(self) -> OpenOrder:
        return OpenOrder(
            id=self.id,
            pair=self.pair,
            order_type=OrderType(self.order_type),
            rate=to_decimal(self.rate),
            pending_amount=to_decimal(self.pending_amount),
            pending_market_buy_amount=to_decimal(self.pending_market_buy_amount),
            stop_loss_rate=to_decimal(self.stop_loss_rate),
            created_at=parse_timestamp(self.created_at),
        )


class OrdersOpensResponse(ApiResponse):
    success: bool
    orders: List[OpenOrderEntry]


class OrdersDeleteResponse(ApiResponse):
    success: bool
    id: int


class OrdersCancelStatusResponse(ApiResponse):
    success: bool
    id: int
    cancel: bool
    created_at: Optional[str] = None


class BalanceResponse(ApiResponse):
    """Account balance; one key per currency plus ``<currency>_<kind>`` breakdowns.

    ``jpy`` and ``btc`` are always present, other currencies arrive as extra keys.
    """
    model_config = ConfigDict(strict=True, frozen=True, extra="allow")

    success: bool
    jpy: Number
    btc: Number

    def currency_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"jpy": self.jpy, "btc": self.btc}
        fields.update(self.model_extra or {})
        return fields

    def to_map(self) -> Dict[str, Balance]:
        fields = self.currency_fields()
        balances: Dict[str, Balance] = {}
        for key, value in fields.items():
            if key.endswith(BALANCE_SUFFIXES) or isinstance(value, bool) or not isinstance(value, (int, float, str)):
                continue
            balances[key] = Balance(
                amount=to_decimal(value),
                reserved=to_decimal(fields.get(f"{key}_reserved", "0")),
                lend_in_use=to_decimal(fields.get(f"{key}_lend_in_use", "0")),
                lent=to_decimal(fields.get(f"{key}_lent", "0")),
                debt=to_decimal(fields.get(f"{key}_debt", "0")),
            )
        return balances
