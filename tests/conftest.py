import pytest

from coincheck.secrets import Credentials
from coincheck.signing import NonceSource

FIXED_NONCE = 1700000000000


class FakeResponse:
    """Stands in for an aiohttp response context manager."""

    def __init__(self, body):
        self._body = body

    async def read(self):
        if isinstance(self._body, bytes):
            return self._body
        return self._body.encode("utf-8")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """Minimal aiohttp.ClientSession replacement that replays canned bodies.

    The last body is repeated once the queue is drained. A body that is an
    exception instance is raised instead of returned.
    """

    def __init__(self, bodies):
        self.bodies = list(bodies)
        self.calls = []
        self.closed = False

    def request(self, method, url, headers=None, data=None, timeout=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "data": data, "timeout": timeout})
        body = self.bodies.pop(0) if len(self.bodies) > 1 else self.bodies[0]
        if isinstance(body, BaseException):
            raise body
        return FakeResponse(body)

    async def close(self):
        self.closed = True


@pytest.fixture
def credentials():
    return Credentials(access_key="test_access", secret_key="test_secret")


@pytest.fixture
def fixed_nonce_source():
    return NonceSource(clock=lambda: FIXED_NONCE * 1_000_000)


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def fixed_nonce():
    return FIXED_NONCE
