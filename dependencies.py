"""
dependencies.py

Responsibility: Declares all FastAPI Depends() provider functions for
services and repositories used throughout the application.
Does NOT: contain business logic, HTTP handlers, or DB schema definitions.
"""

from __future__ import annotations

import httpx
from fastapi import Depends, Request
from sqlmodel import Session

from config import WebhookConfig
from db.database import get_session
from porkbun.dns_provider import DNSProvider
from porkbun.porkbun_client import PorkbunClient
from repositories.stats_repository import StatsRepository
from services.reconcile_service import ReconcileService
from services.stats_service import StatsService

# ---------------------------------------------------------------------------
# Infrastructure: shared app-level resources
# ---------------------------------------------------------------------------


def get_config(request: Request) -> WebhookConfig:
    """
    Returns the WebhookConfig stored on app.state by create_app().

    Args:
        request: The current FastAPI Request (injected automatically).

    Returns:
        The process-wide, immutable configuration.
    """
    return request.app.state.config


def get_http_client(request: Request) -> httpx.AsyncClient:
    """
    Returns the shared httpx.AsyncClient stored on app.state.

    The client is created once during the FastAPI lifespan and reused for
    all requests to avoid connection-pool overhead.

    Args:
        request: The current FastAPI Request (injected automatically).

    Returns:
        The application-level httpx.AsyncClient.
    """
    return request.app.state.http_client


# ---------------------------------------------------------------------------
# Repository providers
# ---------------------------------------------------------------------------


def get_stats_repo(session: Session = Depends(get_session)) -> StatsRepository:
    return StatsRepository(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------


def get_stats_service(
    stats_repo: StatsRepository = Depends(get_stats_repo),
) -> StatsService:
    """
    Provides a StatsService backed by the current request's DB session.

    Args:
        stats_repo: The repository injected by get_stats_repo.

    Returns:
        A StatsService instance.
    """
    return StatsService(stats_repo)


def get_dns_provider(
    config: WebhookConfig = Depends(get_config),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> DNSProvider:
    """
    Provides a PorkbunClient using the configured credentials.

    Args:
        config: The process configuration.
        http_client: The application-level httpx.AsyncClient.

    Returns:
        A PorkbunClient instance satisfying the DNSProvider protocol.
    """
    return PorkbunClient(
        http_client=http_client,
        api_key=config.api_key,
        api_secret=config.api_secret,
        base_url=config.api_base_url,
    )


def get_reconcile_service(
    config: WebhookConfig = Depends(get_config),
    dns_provider: DNSProvider = Depends(get_dns_provider),
    stats_service: StatsService = Depends(get_stats_service),
) -> ReconcileService:
    """
    Provides a fully wired ReconcileService for the current request.

    The service holds no state between requests; every call re-reads the
    provider.

    Args:
        config: Supplies the domain filter and the dry-run flag.
        dns_provider: The active DNSProvider implementation.
        stats_service: Records per-zone apply outcomes.

    Returns:
        A ReconcileService instance ready to use.
    """
    return ReconcileService(
        dns_provider,
        config.domain_filter,
        dry_run=config.dry_run,
        stats_service=stats_service,
    )
