"""Retry policy: re-send a signed request when the server rejects its nonce."""
from dataclasses import dataclass
from typing import Optional

from .responses import ErrorResponse

NONCE_ERROR_MESSAGE = "Nonce must be incremented"


@dataclass(frozen=True)
class NonceRetryPolicy:
    """Which server errors are retried, how often, and how far apart."""
    max_retries: int = 5            # retries after the initial attempt
    interval_seconds: float = 0.01  # fixed delay, no backoff growth
    recoverable_message: str = NONCE_ERROR_MESSAGE

    def should_retry(self, error: ErrorResponse) -> bool:
        """Exact, case- and whitespace-sensitive match on the server message."""
        return error.error == self.recoverable_message


@dataclass
class RetryState:
    """Per-call retry bookkeeping: attempts made and the last server error."""
    policy: NonceRetryPolicy
    attempt: int = 0
    last_error: Optional[ErrorResponse] = None

    @property
    def retries(self) -> int:
        return max(0, self.attempt - 1)

    def start_attempt(self) -> int:
        self.attempt += 1
        return self.attempt

    def record_server_error(self, error: ErrorResponse) -> bool:
        """Record a server error; return True if another attempt is allowed."""
        self.last_error = error
        if not self.policy.should_retry(error):
            return False
        return self.retries < self.policy.max_retries
