"""Asyncio authenticated request executor backed by aiohttp."""
import asyncio
from typing import Any, Optional, Type

import aiohttp

from .errors import CoincheckError, TransportError
from .executor import RETRY, BaseRequestExecutor
from .responses import T, decode_response
from .secrets import Credentials


class AsyncRequestExecutor(BaseRequestExecutor):
    """Async executor using aiohttp; the retry delay suspends instead of blocking.

    Cancelling a call (including during its retry wait) leaves the executor
    usable: no per-call state lives on the instance.

    Usage:
        async with AsyncRequestExecutor(credentials) as executor:
            res = await executor.execute_get(url, OrdersOpensResponse)
    """

    def __init__(self, credentials: Credentials, *, session: Optional[aiohttp.ClientSession] = None, **kwargs):
        super().__init__(credentials, **kwargs)
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self):
        if self.session is None:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self.session is not None and self._owns_session:
            await self.session.close()
            self.session = None

    async def execute_get(self, url: str, schema: Type[T]) -> T:
        return await self._execute("GET", url, schema)

    async def execute_post(self, url: str, body: Any, schema: Type[T]) -> T:
        return await self._execute("POST", url, schema, body=body)

    async def execute_delete(self, url: str, schema: Type[T]) -> T:
        return await self._execute("DELETE", url, schema)

    async def execute_public_get(self, url: str, schema: Type[T]) -> T:
        text = await self._send("GET", url, headers={}, body_text="")
        return self._resolve_public(text, schema, url)

    async def _send(self, method: str, url: str, headers: dict, body_text: str) -> str:
        if self.session is None:
            raise CoincheckError("Session not initialized; use 'async with' context manager")

        data = body_text.encode("utf-8") if method == "POST" else None
        try:
            async with self.session.request(method, url, headers=headers, data=data, timeout=aiohttp.ClientTimeout(total=self.timeout)) as resp:
                raw = await resp.read()
        except asyncio.TimeoutError as e:
            raise TransportError(f"{method} {url} timed out: {e}") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        # Undecodable bytes must still reach the decoder and end up as ParseError.
        return raw.decode("utf-8", errors="replace")

    async def _execute(self, method: str, url: str, schema: Type[T], body: Any = None) -> T:
        state = self._new_state()
        while True:
            state.start_attempt()
            body_text, headers = self._prepare_attempt(method, url, body)
            text = await self._send(method, url, headers, body_text)
            outcome = self._resolve(decode_response(text, schema), state, url, body_text)
            if outcome is not RETRY:
                return outcome
            await asyncio.sleep(self.retry_policy.interval_seconds)
