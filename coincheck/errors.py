"""Exception hierarchy for the Coincheck client.

Every failure of an authenticated call surfaces as exactly one of these.
Retries happen inside the executor and never leak out as exceptions.
"""


class CoincheckError(Exception):
    pass


class TransportError(CoincheckError):
    """Network or connection failure (DNS, TLS, timeout, reset). Never retried."""
    pass


class ConfigurationError(CoincheckError):
    """Signing or nonce generation is impossible with the current inputs or clock."""
    pass


class ParseError(CoincheckError):
    """Response text matched neither the expected schema nor the error schema."""

    def __init__(self, raw_text: str):
        super().__init__(f"Failed to parse response: {raw_text!r}")
        self.raw_text = raw_text


class ResponseError(CoincheckError):
    """The server reported ``success: false`` and the call will not be retried.

    Attributes:
        message: Error message reported by the server
        url: Request URL exactly as sent
        request: Request body text (empty for GET/DELETE)
    """

    def __init__(self, message: str, url: str, request: str = ""):
        super().__init__(f"{message} (url={url})")
        self.message = message
        self.url = url
        self.request = request
