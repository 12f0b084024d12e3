"""
routes/webhook_routes.py

Responsibility: Implements the external-dns webhook provider protocol:
negotiation, record listing, change application and endpoint adjustment.
Does NOT: plan changes, match records, or call Porkbun directly; all of that
is delegated to ReconcileService.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from config import WebhookConfig
from dependencies import get_config, get_reconcile_service
from exceptions import DnsProviderError
from routes.schemas import ChangesModel, EndpointModel, WebhookJSONResponse, endpoints_payload
from services.reconcile_service import ReconcileService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=WebhookJSONResponse)
async def negotiate(config: WebhookConfig = Depends(get_config)) -> WebhookJSONResponse:
    """
    Answers external-dns' startup negotiation with the managed domain filter.

    Args:
        config: Provides the configured zones.

    Returns:
        The domain filter as {"include": [...]}.
    """
    return WebhookJSONResponse(
        content={"include": list(config.domain_filter)},
        headers={"Vary": "Content-Type"},
    )


@router.get("/records", response_class=WebhookJSONResponse)
async def get_records(
    service: ReconcileService = Depends(get_reconcile_service),
) -> WebhookJSONResponse:
    """
    Returns the current records of all managed zones as endpoints.

    Args:
        service: The reconciliation engine for this request.

    Returns:
        A JSON list of endpoints.

    Raises:
        HTTPException: 500 when the provider cannot be queried at all.
    """
    try:
        endpoints = await service.list_current_state()
    except DnsProviderError as exc:
        logger.error("failed to list records: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return WebhookJSONResponse(content=endpoints_payload(endpoints))


@router.post("/records", status_code=204)
async def apply_changes(
    changes: ChangesModel,
    service: ReconcileService = Depends(get_reconcile_service),
) -> Response:
    """
    Applies a change batch computed by external-dns.

    Args:
        changes: The create/updateOld/updateNew/delete lists.
        service: The reconciliation engine for this request.

    Returns:
        204 No Content when every zone applied cleanly.

    Raises:
        HTTPException: 500 with the first zone error when any zone failed.
    """
    try:
        result = await service.apply_changes(changes.to_change_batch())
    except DnsProviderError as exc:
        logger.error("failed to apply changes: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    if result.error is not None:
        logger.error("changes failed for zone(s) %s", ", ".join(result.failed_zones))
        raise HTTPException(status_code=500, detail=str(result.error))

    return Response(status_code=204)


@router.post("/adjustendpoints", response_class=WebhookJSONResponse)
async def adjust_endpoints(endpoints: list[EndpointModel]) -> WebhookJSONResponse:
    """
    Returns the proposed endpoints unchanged; Porkbun needs no adjustment.

    Args:
        endpoints: The endpoints external-dns intends to plan with.

    Returns:
        The same endpoints.
    """
    return WebhookJSONResponse(content=[ep.model_dump(by_alias=True) for ep in endpoints])
