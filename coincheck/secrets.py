"""Credential loading: access key and secret key from environment or config file.

Priority order:
1. Environment variables: COINCHECK_ACCESS_KEY, COINCHECK_SECRET_KEY
2. Config file: ~/.coincheck_config.json or custom path via ENV COINCHECK_CONFIG_PATH
"""
import json
import os
from pathlib import Path
from typing import NamedTuple, Optional


class Credentials(NamedTuple):
    """Immutable access/secret key pair, shared read-only by every call."""
    access_key: str
    secret_key: str

    def __repr__(self) -> str:
        return f"Credentials(access_key={self.access_key!r}, secret_key='***')"


def load_credentials(
    config_path: Optional[str] = None,
) -> Credentials:
    """Load Coincheck credentials from env or config file.

    Args:
        config_path: Optional override path to config file. If not provided,
                     checks COINCHECK_CONFIG_PATH env var, then ~/.coincheck_config.json

    Returns:
        Credentials with access_key, secret_key

    Raises:
        ValueError: If credentials are not found or incomplete
    """
    access_key = os.getenv("COINCHECK_ACCESS_KEY")
    secret_key = os.getenv("COINCHECK_SECRET_KEY")

    if access_key and secret_key:
        return Credentials(access_key=access_key, secret_key=secret_key)

    if config_path is None:
        config_path = os.getenv("COINCHECK_CONFIG_PATH")
    if config_path is None:
        config_path = str(Path.home() / ".coincheck_config.json")

    config_file = Path(config_path)
    if config_file.exists():
        try:
            with config_file.open("r") as f:
                cfg = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}") from e
        access_key = cfg.get("access_key") or access_key
        secret_key = cfg.get("secret_key") or secret_key

    if not access_key or not secret_key:
        raise ValueError(
            "Missing Coincheck credentials. Provide via:\n"
            "  - Environment: COINCHECK_ACCESS_KEY, COINCHECK_SECRET_KEY\n"
            f"  - Config file: {config_path}\n"
            "  - COINCHECK_CONFIG_PATH env var to override config location"
        )

    return Credentials(access_key=access_key, secret_key=secret_key)


def save_config(
    config_path: str,
    access_key: str,
    secret_key: str,
) -> None:
    """Save credentials to a config file for later use.

    WARNING: Stores secrets in plaintext. The file is restricted to mode 600 where supported.
    """
    cfg_file = Path(config_path)
    cfg_file.parent.mkdir(parents=True, exist_ok=True)

    with cfg_file.open("w") as f:
        json.dump({"access_key": access_key, "secret_key": secret_key}, f, indent=2)

    try:
        cfg_file.chmod(0o600)
    except OSError:
        pass  # Windows doesn't support chmod
