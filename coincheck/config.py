"""Configuration loader for the Coincheck client.

Supports YAML format with environment variable interpolation.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .retry_policy import NONCE_ERROR_MESSAGE, NonceRetryPolicy


@dataclass
class ExchangeConfig:
    """Endpoint and transport settings."""
    base_url: str = "https://coincheck.com"
    timeout: float = 10.0


@dataclass
class RetryConfig:
    """Nonce retry settings."""
    max_retries: int = 5
    interval_ms: int = 10
    recoverable_message: str = NONCE_ERROR_MESSAGE

    def to_policy(self) -> NonceRetryPolicy:
        return NonceRetryPolicy(
            max_retries=self.max_retries,
            interval_seconds=self.interval_ms / 1000.0,
            recoverable_message=self.recoverable_message,
        )


@dataclass
class LoggingConfig:
    log_file: Optional[str] = "coincheck.log"
    log_level: str = "INFO"
    enable_console: bool = True


@dataclass
class ClientConfig:
    """Complete client configuration."""
    exchange: ExchangeConfig = field(default_factory=ExchangeConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, config_path: str) -> "ClientConfig":
        """Load configuration from YAML file with env var interpolation.

        Example YAML:
            exchange:
              base_url: https://coincheck.com
              timeout: 10
            retry:
              max_retries: 5
              interval_ms: 10
            logging:
              log_file: "${LOG_DIR}/coincheck.log"
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with config_file.open("r") as f:
            raw = f.read()

        # Interpolate environment variables: ${VAR_NAME}
        for key, value in os.environ.items():
            raw = raw.replace(f"${{{key}}}", value)

        data = yaml.safe_load(raw) or {}

        return cls(
            exchange=ExchangeConfig(**(data.get("exchange") or {})),
            retry=RetryConfig(**(data.get("retry") or {})),
            logging=LoggingConfig(**(data.get("logging") or {})),
        )

    def to_yaml(self, output_path: str) -> None:
        """Save configuration to YAML file."""
        data = {
            "exchange": {
                "base_url": self.exchange.base_url,
                "timeout": self.exchange.timeout,
            },
            "retry": {
                "max_retries": self.retry.max_retries,
                "interval_ms": self.retry.interval_ms,
                "recoverable_message": self.retry.recoverable_message,
            },
            "logging": {
                "log_file": self.logging.log_file,
                "log_level": self.logging.log_level,
                "enable_console": self.logging.enable_console,
            },
        }

        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with output_file.open("w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
