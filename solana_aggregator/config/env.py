"""
Environment variable loading for the Solana aggregator.

- SOLANA_RPC_URL: RPC endpoint (overrides rpc_url from config.toml)
- RETRY_ATTEMPTS: extra getBlock attempts per slot (0-255)
- SERVER_ADDRESS: host:port for the read API
- DB_PATH: SQLite file path
- AGGREGATOR_CONFIG: path of the TOML config file (default: config.toml)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is solana_aggregator/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"


def load_aggregator_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides set vars."""
    load_dotenv(_ENV_PATH, override=False)


def get_env(name: str) -> str | None:
    """Return a stripped env value, or None when unset or blank."""
    load_aggregator_env()
    raw = (os.getenv(name) or "").strip()
    return raw or None


def get_config_path() -> Path:
    """Return AGGREGATOR_CONFIG or config.toml in the working directory."""
    return Path(get_env("AGGREGATOR_CONFIG") or "config.toml")


def mask_rpc_url(url: str) -> str:
    """Mask an API key embedded in an RPC URL before logging it."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
