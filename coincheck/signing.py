"""Request signing and nonce generation for authenticated Coincheck calls.

The signature is HMAC-SHA256 over ``nonce + url + body`` keyed by the secret
key, rendered as lowercase hex. The nonce is wall-clock milliseconds, so it is
non-decreasing under normal clock behavior; the server rejects any nonce that
is not strictly greater than the last accepted one for the same key.

Examples:
    >>> make_signature(12345, "https://example.com", "hoge=foo", "abcdefg")
    '65a5d4bf76d4266e2f56582c31ca3e9ac163c80745e84357ead5a2899a37e218'
"""
import hashlib
import hmac
import time
from typing import Callable, Dict, Optional, Union

from .errors import ConfigurationError
from .secrets import Credentials

ACCESS_KEY_HEADER = "ACCESS-KEY"
ACCESS_NONCE_HEADER = "ACCESS-NONCE"
ACCESS_SIGNATURE_HEADER = "ACCESS-SIGNATURE"


def _key_bytes(secret: Union[str, bytes]) -> bytes:
    if isinstance(secret, bytes):
        return secret
    if isinstance(secret, str):
        try:
            return secret.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ConfigurationError(f"Secret key is not usable as HMAC key material: {e}") from e
    raise ConfigurationError(f"Secret key must be str or bytes, got {type(secret).__name__}")


def make_signature(nonce: int, url: str, body: str, secret: Union[str, bytes]) -> str:
    """Compute the ACCESS-SIGNATURE value for one request attempt.

    Args:
        nonce: Non-negative nonce, rendered as its decimal string
        url: Absolute URL exactly as sent (including query string)
        body: Exact request body text ("" for GET/DELETE)
        secret: Secret key

    Returns:
        64-character lowercase hex digest

    Raises:
        ConfigurationError: If the secret cannot be used as a key or the nonce is negative
    """
    if nonce < 0:
        raise ConfigurationError(f"Nonce must be non-negative, got {nonce}")
    key = _key_bytes(secret)
    message = f"{nonce}{url}{body}".encode("utf-8")
    return hmac.new(key, message, hashlib.sha256).hexdigest()


class NonceSource:
    """Produces millisecond nonces from a wall clock.

    ``clock`` returns nanoseconds since the epoch (``time.time_ns`` by default).
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or time.time_ns

    def next_nonce(self) -> int:
        now_ns = self._clock()
        if now_ns < 0:
            raise ConfigurationError("System clock reports a time before the Unix epoch")
        return now_ns // 1_000_000


def build_auth_headers(
    credentials: Credentials,
    nonce: int,
    url: str,
    body: str = "",
    *,
    json_body: bool = False,
) -> Dict[str, str]:
    """Build the authentication headers for a single attempt."""
    signature = make_signature(nonce, url, body, credentials.secret_key)
    headers = {
        ACCESS_KEY_HEADER: credentials.access_key,
        ACCESS_NONCE_HEADER: str(nonce),
        ACCESS_SIGNATURE_HEADER: signature,
    }
    if json_body:
        headers["Content-Type"] = "application/json"
    return headers
