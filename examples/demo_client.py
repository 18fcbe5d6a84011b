"""End-to-end demo of the Coincheck client.

Shows:
1. Loading configuration and credentials
2. Public market data (ticker, order books)
3. Signed calls (balance, open orders) with nonce retry
"""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path so we can import the coincheck package
sys.path.insert(0, str(Path(__file__).parent.parent))

from coincheck.client import AsyncCoincheckClient
from coincheck.config import ClientConfig
from coincheck.errors import CoincheckError
from coincheck.logging_setup import logger, setup_logging
from coincheck.secrets import load_credentials

PAIR = "btc_jpy"


async def main():
    config_file = Path(__file__).parent.parent / "config.yaml"
    config = ClientConfig.from_yaml(str(config_file)) if config_file.exists() else ClientConfig()
    setup_logging(
        log_file=config.logging.log_file,
        level=config.logging.log_level,
        enable_console=config.logging.enable_console,
    )

    try:
        creds = load_credentials()
    except ValueError as e:
        logger.error(f"Failed to load credentials: {e}")
        return 1

    client = AsyncCoincheckClient.from_credentials(
        creds,
        base_url=config.exchange.base_url,
        timeout=config.exchange.timeout,
        retry_policy=config.retry.to_policy(),
    )
    async with client:
        try:
            ticker = await client.get_ticker(PAIR)
            logger.info(f"get_ticker() => {ticker}")

            books = await client.get_order_books(PAIR)
            logger.info(f"get_order_books() => asks:{books.asks[:3]} bids:{books.bids[:3]}")

            balances = await client.get_accounts_balance()
            for currency, balance in balances.items():
                logger.info(f"  {currency}: {balance.amount} (reserved {balance.reserved})")

            opens = await client.get_exchange_orders_opens()
            logger.info(f"{len(opens)} open orders")
        except CoincheckError as e:
            logger.error(f"Demo error: {e}")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
