"""
FastAPI/ASGI application entrypoint.

Settings are loaded in the lifespan (config.toml, env, .env).
Run with: uvicorn solana_aggregator.api_server.app:app --host 127.0.0.1 --port 3000
"""

from solana_aggregator.api_server.server import create_app

app = create_app()

__all__ = ["app"]
