"""
Configuration management for the Solana aggregator.

Loads and validates settings from config.toml, environment variables and
.env. Exposes a single source of truth for service configuration.
"""

from solana_aggregator.config.settings import Settings, get_settings, load_settings  # noqa: F401

__all__ = ["Settings", "get_settings", "load_settings"]
