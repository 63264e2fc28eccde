"""
Application settings.

Responsibilities:
- Load configuration from an optional TOML file (config.toml) and from
  environment variables / .env, env taking precedence.
- Validate values and provide defaults for optional ones.
- Expose a typed, immutable Settings object used by main.py, the API
  lifespan, and the ingestion worker.
"""

from __future__ import annotations

import functools
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from solana_aggregator.config.env import MAINNET_RPC_URL, get_config_path, get_env
from solana_aggregator.core.exceptions import ConfigError

DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_SERVER_ADDRESS = "127.0.0.1:3000"
DEFAULT_DB_PATH = "solana.db"
MAX_RETRY_ATTEMPTS = 255


@dataclass(frozen=True)
class Settings:
    """Service configuration. Only rpc_url and retry_attempts affect ingestion."""

    rpc_url: str = MAINNET_RPC_URL
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    server_address: str = DEFAULT_SERVER_ADDRESS
    db_path: Path = field(default_factory=lambda: Path(DEFAULT_DB_PATH))
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.rpc_url.strip():
            raise ConfigError("rpc_url must be non-empty")
        if not (0 <= self.retry_attempts <= MAX_RETRY_ATTEMPTS):
            raise ConfigError(
                f"retry_attempts must be between 0 and {MAX_RETRY_ATTEMPTS}, got {self.retry_attempts}"
            )
        self.server_host_port()

    def server_host_port(self) -> tuple[str, int]:
        """Split server_address ("host:port") for uvicorn."""
        host, sep, port = self.server_address.rpartition(":")
        if not sep or not host:
            raise ConfigError(f"server_address must be host:port, got {self.server_address!r}")
        try:
            port_num = int(port)
        except ValueError as e:
            raise ConfigError(f"server_address port is not a number: {port!r}") from e
        if not (0 < port_num < 65536):
            raise ConfigError(f"server_address port out of range: {port_num}")
        return host.strip("[]"), port_num


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def _as_int(name: str, value: Any) -> int:
    """Integers from TOML as-is; env strings parsed as base-10. Floats and bools are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e


def load_settings(config_path: str | Path | None = None) -> Settings:
    """
    Build Settings from config.toml (if present) overridden by env vars.

    Args:
        config_path: TOML file; defaults to AGGREGATOR_CONFIG or ./config.toml.
            A missing file is not an error; defaults and env apply.

    Raises:
        ConfigError: on unparsable TOML or invalid values.
    """
    path = Path(config_path) if config_path is not None else get_config_path()
    values: dict[str, Any] = _read_toml(path) if path.is_file() else {}

    rpc_url = get_env("SOLANA_RPC_URL") or values.get("rpc_url") or MAINNET_RPC_URL
    retry_raw = get_env("RETRY_ATTEMPTS") or values.get("retry_attempts", DEFAULT_RETRY_ATTEMPTS)
    server_address = get_env("SERVER_ADDRESS") or values.get("server_address") or DEFAULT_SERVER_ADDRESS
    db_path = get_env("DB_PATH") or values.get("db_path") or DEFAULT_DB_PATH
    log_level = get_env("LOG_LEVEL") or values.get("log_level") or "INFO"

    return Settings(
        rpc_url=str(rpc_url),
        retry_attempts=_as_int("retry_attempts", retry_raw),
        server_address=str(server_address),
        db_path=Path(db_path),
        log_level=str(log_level).upper(),
    )


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings (loaded once)."""
    return load_settings()
