"""
Main entrypoint: FastAPI read API with the epoch ingestion sweep as a background task.

The sweep is started by the API lifespan on the same event loop; the read
endpoints stay responsive while blocks are fetched and stored. A failed sweep
is logged and reported on GET /health; the API keeps serving.

Config: config.toml (rpc_url, retry_attempts, server_address, db_path) and env
(SOLANA_RPC_URL, RETRY_ATTEMPTS, SERVER_ADDRESS, DB_PATH, LOG_LEVEL, LOG_FORMAT).

ASGI app (settings from config.toml and env): uvicorn solana_aggregator.api_server.app:app --host 127.0.0.1 --port 3000
"""

import sys

# Configure structured JSON logging before other imports that may log
from solana_aggregator.aggregator_logging import configure_structlog, get_logger
from solana_aggregator.core.exceptions import ConfigError

logger = get_logger("main")


def main() -> None:
    """Load settings, then run the API server (which starts the sweep) in the main thread."""
    from solana_aggregator.config.env import mask_rpc_url
    from solana_aggregator.config.settings import load_settings

    try:
        settings = load_settings()
    except ConfigError as e:
        logger.error("main_config_error", error=str(e))
        sys.exit(1)

    configure_structlog(settings.log_level)
    host, port = settings.server_host_port()
    logger.info(
        "main_settings_loaded",
        rpc_url=mask_rpc_url(settings.rpc_url),
        retry_attempts=settings.retry_attempts,
        server_address=settings.server_address,
        db_path=str(settings.db_path),
    )

    from solana_aggregator.api_server.server import create_app
    import uvicorn

    app = create_app(settings)
    logger.info("main_server_starting", host=host, port=port)
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
