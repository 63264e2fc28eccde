"""
Tests for settings loading: config.toml, env overrides and validation.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from solana_aggregator.config.env import mask_rpc_url
from solana_aggregator.config.settings import Settings, load_settings
from solana_aggregator.core.exceptions import ConfigError

_ENV_VARS = ("SOLANA_RPC_URL", "RETRY_ATTEMPTS", "SERVER_ADDRESS", "DB_PATH", "LOG_LEVEL", "AGGREGATOR_CONFIG")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(body, encoding="utf-8")
    return path


def test_load_from_toml(tmp_path):
    path = _write_config(
        tmp_path,
        'rpc_url = "http://localhost:8899"\n'
        "retry_attempts = 5\n"
        'server_address = "0.0.0.0:8080"\n'
        'db_path = "data/chain.db"\n',
    )
    settings = load_settings(path)
    assert settings.rpc_url == "http://localhost:8899"
    assert settings.retry_attempts == 5
    assert settings.server_host_port() == ("0.0.0.0", 8080)
    assert settings.db_path == Path("data/chain.db")


def test_env_overrides_toml(tmp_path, monkeypatch):
    path = _write_config(tmp_path, 'rpc_url = "http://localhost:8899"\nretry_attempts = 5\n')
    monkeypatch.setenv("SOLANA_RPC_URL", "https://rpc.example.com/?api-key=abc")
    monkeypatch.setenv("RETRY_ATTEMPTS", "0")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings = load_settings(path)
    assert settings.rpc_url == "https://rpc.example.com/?api-key=abc"
    assert settings.retry_attempts == 0
    assert settings.log_level == "DEBUG"


def test_missing_file_uses_defaults(tmp_path):
    settings = load_settings(tmp_path / "absent.toml")
    assert settings == Settings()
    assert settings.retry_attempts == 3
    assert settings.server_address == "127.0.0.1:3000"


def test_config_path_from_env(tmp_path, monkeypatch):
    path = _write_config(tmp_path, "retry_attempts = 7\n")
    monkeypatch.setenv("AGGREGATOR_CONFIG", str(path))
    assert load_settings().retry_attempts == 7


@pytest.mark.parametrize("value", ["-1", "256", "three"])
def test_invalid_retry_attempts(tmp_path, monkeypatch, value):
    monkeypatch.setenv("RETRY_ATTEMPTS", value)
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "absent.toml")


def test_float_retry_attempts_rejected(tmp_path):
    path = _write_config(tmp_path, "retry_attempts = 3.5\n")
    with pytest.raises(ConfigError):
        load_settings(path)


def test_invalid_toml(tmp_path):
    path = _write_config(tmp_path, "retry_attempts = \n")
    with pytest.raises(ConfigError):
        load_settings(path)


@pytest.mark.parametrize("address", ["3000", ":3000", "localhost:http", "localhost:70000"])
def test_invalid_server_address(address):
    with pytest.raises(ConfigError):
        Settings(server_address=address)


def test_ipv6_server_address():
    assert Settings(server_address="[::1]:3000").server_host_port() == ("::1", 3000)


def test_mask_rpc_url():
    assert mask_rpc_url("https://mainnet.helius-rpc.com/?api-key=secret") == "https://mainnet.helius-rpc.com/?api-key=***"
    assert mask_rpc_url("https://api.mainnet-beta.solana.com") == "https://api.mainnet-beta.solana.com"
