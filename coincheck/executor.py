"""
Authenticated request execution.

One logical call runs as a bounded loop of attempts. Each attempt takes a
fresh nonce, re-serializes the POST body, signs exactly the bytes it sends,
reads the whole response as text and decodes it. A server error is retried
only if the retry policy recognises it and the budget allows; every other
outcome ends the call.

``RequestExecutor`` blocks the calling thread (requests); the asyncio variant
lives in ``async_executor``. Both share the per-attempt logic below.
"""

import json
import time
from typing import Any, Optional, Tuple, Type

import requests
from requests.adapters import HTTPAdapter

from .errors import ParseError, ResponseError, TransportError
from .logging_setup import logger
from .responses import DecodedResponse, DecodeStatus, T, decode_response
from .retry_policy import NonceRetryPolicy, RetryState
from .secrets import Credentials
from .signing import NonceSource, build_auth_headers

# Returned by _resolve when the attempt loop should go round again.
RETRY = object()


def serialize_body(body: Any) -> str:
    """Serialize a POST body to the exact JSON text that is signed and sent."""
    if hasattr(body, "model_dump_json"):
        return body.model_dump_json(exclude_none=True)
    return json.dumps(body)


class BaseRequestExecutor:
    """Shared signing, decoding and retry decisions for both executors.

    Holds no mutable state between calls besides the transport session, so
    concurrent calls on one instance are independent.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        timeout: float = 10.0,
        retry_policy: Optional[NonceRetryPolicy] = None,
        nonce_source: Optional[NonceSource] = None,
    ):
        self.credentials = credentials
        self.timeout = timeout
        self.retry_policy = retry_policy or NonceRetryPolicy()
        self.nonce_source = nonce_source or NonceSource()

    def _new_state(self) -> RetryState:
        return RetryState(policy=self.retry_policy)

    def _prepare_attempt(self, method: str, url: str, body: Any) -> Tuple[str, dict]:
        nonce = self.nonce_source.next_nonce()
        is_post = method == "POST"
        body_text = serialize_body(body) if is_post else ""
        headers = build_auth_headers(self.credentials, nonce, url, body_text, json_body=is_post)
        logger.debug(f"Signed request | method={method} url={url} nonce={nonce}")
        return body_text, headers

    def _resolve(self, decoded: DecodedResponse, state: RetryState, url: str, request_text: str):
        """Turn a decoded body into a value, RETRY, or a raised error."""
        if decoded.status is DecodeStatus.SUCCESS:
            return decoded.value

        if decoded.status is DecodeStatus.SERVER_ERROR:
            error = decoded.error
            if state.record_server_error(error):
                logger.warning(
                    f"Server error, retrying request | url={url} "
                    f"retry={state.retries + 1}/{self.retry_policy.max_retries} error={error.error}"
                )
                return RETRY
            logger.error(f"Request failed | url={url} attempts={state.attempt} error={error.error}")
            raise ResponseError(message=error.error, url=url, request=request_text)

        logger.warning(f"Unparseable response | url={url} body={decoded.raw_text[:200]!r}")
        raise ParseError(decoded.raw_text)

    def _resolve_public(self, text: str, schema: Type[T], url: str) -> T:
        """Public endpoints are unsigned and never retried."""
        decoded = decode_response(text, schema)
        if decoded.status is DecodeStatus.SUCCESS:
            return decoded.value
        if decoded.status is DecodeStatus.SERVER_ERROR:
            raise ResponseError(message=decoded.error.error, url=url)
        raise ParseError(decoded.raw_text)


class RequestExecutor(BaseRequestExecutor):
    """Blocking executor backed by a pooled ``requests.Session``.

    No transport-level retries are mounted: timeouts and connection errors
    surface as TransportError on the first occurrence.

    Usage:
        with RequestExecutor(credentials) as executor:
            res = executor.execute_get(url, OrdersOpensResponse)
    """

    def __init__(self, credentials: Credentials, *, session: Optional[requests.Session] = None, **kwargs):
        super().__init__(credentials, **kwargs)
        if session is None:
            session = requests.Session()
            session.mount("https://", HTTPAdapter(max_retries=0))
            session.mount("http://", HTTPAdapter(max_retries=0))
        self.session = session

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        self.session.close()

    def execute_get(self, url: str, schema: Type[T]) -> T:
        return self._execute("GET", url, schema)

    def execute_post(self, url: str, body: Any, schema: Type[T]) -> T:
        return self._execute("POST", url, schema, body=body)

    def execute_delete(self, url: str, schema: Type[T]) -> T:
        return self._execute("DELETE", url, schema)

    def execute_public_get(self, url: str, schema: Type[T]) -> T:
        text = self._send("GET", url, headers={}, body_text="")
        return self._resolve_public(text, schema, url)

    def _send(self, method: str, url: str, headers: dict, body_text: str) -> str:
        data = body_text.encode("utf-8") if method == "POST" else None
        try:
            resp = self.session.request(method, url, headers=headers, data=data, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        return resp.text

    def _execute(self, method: str, url: str, schema: Type[T], body: Any = None) -> T:
        state = self._new_state()
        while True:
            state.start_attempt()
            body_text, headers = self._prepare_attempt(method, url, body)
            text = self._send(method, url, headers, body_text)
            outcome = self._resolve(decode_response(text, schema), state, url, body_text)
            if outcome is not RETRY:
                return outcome
            time.sleep(self.retry_policy.interval_seconds)
