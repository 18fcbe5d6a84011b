"""
Coincheck REST client.

Public endpoints (ticker, order books, rate) are plain GETs; private endpoints
go through the authenticated executor, which signs each attempt and retries
"Nonce must be incremented" rejections.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Callable, Dict, List, Optional, TypeVar
from urllib.parse import urlencode

from .async_executor import AsyncRequestExecutor
from .errors import ParseError, ResponseError
from .executor import serialize_body
from .logging_setup import logger
from .models import Balance, NewOrder, OpenOrder, Order, OrderBooks, OrderType, Ticker
from .request_models import OrdersPostRequest
from .responses import (
    BalanceResponse,
    OrderBooksResponse,
    OrdersCancelStatusResponse,
    OrdersDeleteResponse,
    OrdersOpensResponse,
    OrdersPostResponse,
    OrdersRateResponse,
    TickerResponse,
    to_decimal,
)
from .retry_policy import NonceRetryPolicy
from .secrets import Credentials

BASE_URL = "https://coincheck.com"

R = TypeVar("R")


def _convert(res, convert: Callable[[], R]) -> R:
    """Run a response-to-model conversion, reporting bad values as ParseError."""
    try:
        return convert()
    except (ValueError, ArithmeticError) as e:
        raise ParseError(res.model_dump_json()) from e


class ExchangeClient(ABC):
    """Abstract Coincheck client.

    Implementations raise the errors from ``coincheck.errors``; see
    ``AsyncCoincheckClient`` for the aiohttp-backed one.
    """

    @abstractmethod
    async def get_ticker(self, pair: str) -> Ticker:
        pass

    @abstractmethod
    async def get_order_books(self, pair: str) -> OrderBooks:
        pass

    @abstractmethod
    async def get_exchange_orders_rate(self, order_type: OrderType, pair: str, amount: Decimal) -> Decimal:
        """Estimated rate for trading ``amount`` of ``pair`` on the given side."""
        pass

    @abstractmethod
    async def post_exchange_orders(self, order: NewOrder) -> Order:
        pass

    @abstractmethod
    async def get_exchange_orders_opens(self) -> List[OpenOrder]:
        pass

    @abstractmethod
    async def delete_exchange_orders(self, order_id: int) -> int:
        """Cancel an order; returns the cancelled order id."""
        pass

    @abstractmethod
    async def get_exchange_orders_cancel_status(self, order_id: int) -> bool:
        pass

    @abstractmethod
    async def get_accounts_balance(self) -> Dict[str, Balance]:
        pass


class AsyncCoincheckClient(ExchangeClient):
    """aiohttp-backed Coincheck client.

    Usage:
        async with AsyncCoincheckClient.from_credentials(load_credentials()) as client:
            ticker = await client.get_ticker("btc_jpy")
    """

    def __init__(self, executor: AsyncRequestExecutor, *, base_url: str = BASE_URL):
        self.executor = executor
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_credentials(
        cls,
        credentials: Credentials,
        *,
        base_url: str = BASE_URL,
        timeout: float = 10.0,
        retry_policy: Optional[NonceRetryPolicy] = None,
    ) -> "AsyncCoincheckClient":
        executor = AsyncRequestExecutor(credentials, timeout=timeout, retry_policy=retry_policy)
        return cls(executor, base_url=base_url)

    async def __aenter__(self):
        await self.executor.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.executor.close()

    def _url(self, path: str, params: Optional[dict] = None) -> str:
        url = f"{self.base_url}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    async def get_ticker(self, pair: str) -> Ticker:
        url = self._url("/api/ticker", {"pair": pair})
        res = await self.executor.execute_public_get(url, TickerResponse)
        return _convert(res, res.to_model)

    async def get_order_books(self, pair: str) -> OrderBooks:
        url = self._url("/api/order_books", {"pair": pair})
        res = await self.executor.execute_public_get(url, OrderBooksResponse)
        return _convert(res, res.to_model)

    async def get_exchange_orders_rate(self, order_type: OrderType, pair: str, amount: Decimal) -> Decimal:
        params = {
            "order_type": OrderType(order_type).side,
            "pair": pair,
            "amount": f"{Decimal(amount):.3f}",
        }
        url = self._url("/api/exchange/orders/rate", params)
        res = await self.executor.execute_public_get(url, OrdersRateResponse)
        return _convert(res, lambda: to_decimal(res.rate))

    async def post_exchange_orders(self, order: NewOrder) -> Order:
        url = self._url("/api/exchange/orders")
        body = OrdersPostRequest.from_new_order(order)
        res = await self.executor.execute_post(url, body, OrdersPostResponse)
        if not res.success:
            raise ResponseError(message=res.error or "Order was not accepted", url=url, request=serialize_body(body))
        logger.info(f"Order placed | id={res.id} pair={res.pair} type={res.order_type}")
        return _convert(res, res.to_model)

    async def get_exchange_orders_opens(self) -> List[OpenOrder]:
        url = self._url("/api/exchange/orders/opens")
        res = await self.executor.execute_get(url, OrdersOpensResponse)
        return _convert(res, lambda: [o.to_model() for o in res.orders])

    async def delete_exchange_orders(self, order_id: int) -> int:
        url = self._url(f"/api/exchange/orders/{order_id}")
        res = await self.executor.execute_delete(url, OrdersDeleteResponse)
        logger.info(f"Order cancelled | id={res.id}")
        return res.id

    async def get_exchange_orders_cancel_status(self, order_id: int) -> bool:
        url = self._url("/api/exchange/orders/cancel_status", {"id": order_id})
        res = await self.executor.execute_get(url, OrdersCancelStatusResponse)
        return res.cancel

    async def get_accounts_balance(self) -> Dict[str, Balance]:
        url = self._url("/api/accounts/balance")
        res = await self.executor.execute_get(url, BalanceResponse)
        return _convert(res, res.to_map)
