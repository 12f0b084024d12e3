"""
app.py

Responsibility: Builds the FastAPI application, owns the lifespan of shared
resources (HTTP client, stats database) and provides the process entry point.
Does NOT: contain route handlers or reconciliation logic.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI

from config import WebhookConfig
from db.database import init_db
from exceptions import ConfigurationError
from logger import configure_logging
from routes import api_routes, webhook_routes

logger = logging.getLogger(__name__)

__version__ = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Creates the shared httpx.AsyncClient and the stats tables on startup.

    The client is closed again on shutdown.
    """
    config: WebhookConfig = app.state.config
    init_db()

    async with httpx.AsyncClient(timeout=config.request_timeout) as client:
        app.state.http_client = client
        logger.info(
            "Started external-dns Porkbun webhook for %s (dry run: %s)",
            ", ".join(config.domain_filter),
            config.dry_run,
        )
        yield

    logger.info("Webhook stopped.")


def create_app(config: WebhookConfig | None = None) -> FastAPI:
    """
    Builds the webhook application.

    Args:
        config: The process configuration; read from the environment when None.

    Returns:
        A FastAPI app with the webhook and operational routes registered.

    Raises:
        ConfigurationError: If no config is given and the environment is invalid.
    """
    app = FastAPI(
        title="external-dns-porkbun-webhook",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config or WebhookConfig.from_env()
    app.include_router(webhook_routes.router)
    app.include_router(api_routes.router)
    return app


def main() -> None:
    """Console entry point: read the environment and serve until stopped."""
    try:
        config = WebhookConfig.from_env()
    except ConfigurationError as exc:
        print(f"Failed to create provider: {exc}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config.log_level)
    logger.info("starting external-dns Porkbun webhook plugin, version %s", __version__)
    logger.debug("configuration: %r", config)

    uvicorn.run(
        create_app(config),
        host=config.listen_host,
        port=config.listen_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
