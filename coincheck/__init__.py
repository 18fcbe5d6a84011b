"""
Coincheck signed-request client.

Authenticated REST calls against Coincheck featuring:
- HMAC-SHA256 request signing (ACCESS-KEY / ACCESS-NONCE / ACCESS-SIGNATURE)
- Millisecond nonces, recomputed on every attempt
- Dual-schema response decoding (expected schema, then server error schema)
- Bounded retry of "Nonce must be incremented" rejections
- Blocking (requests) and asyncio (aiohttp) executors
- Structured logging via loguru
- Configuration-driven (YAML)

Core Modules:
    signing: Signature, nonce source and auth headers
    responses: Response schemas and the response decoder
    retry_policy: Nonce retry policy and per-call retry state
    executor: Blocking authenticated request executor
    async_executor: Asyncio authenticated request executor
    client: Coincheck endpoint client
    errors: Exception hierarchy
    config: Configuration loading
    secrets: Credential management

Example:
    >>> from coincheck.client import AsyncCoincheckClient
    >>> from coincheck.secrets import load_credentials
    >>>
    >>> async with AsyncCoincheckClient.from_credentials(load_credentials()) as client:
    ...     balances = await client.get_accounts_balance()
"""

__version__ = "0.1.0"
__all__ = [
    "signing",
    "responses",
    "request_models",
    "retry_policy",
    "executor",
    "async_executor",
    "client",
    "models",
    "errors",
    "config",
    "secrets",
    "logging_setup",
]
