"""
routes/schemas.py

Responsibility: Pydantic models for the external-dns webhook wire format and
their conversion to and from the domain dataclasses.
Does NOT: contain reconciliation logic or talk to the provider.
"""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from domain.endpoint import ChangeBatch, Endpoint

WEBHOOK_MEDIA_TYPE = "application/external.dns.webhook+json;version=1"


class WebhookJSONResponse(JSONResponse):
    """JSON response carrying the versioned external-dns webhook media type."""

    media_type = WEBHOOK_MEDIA_TYPE


class ProviderSpecificProperty(BaseModel):
    name: str
    value: str = ""


class EndpointModel(BaseModel):
    """One endpoint as external-dns serialises it."""

    model_config = ConfigDict(populate_by_name=True)

    dns_name: str = Field(alias="dnsName")
    targets: list[str] = Field(default_factory=list)
    record_type: str = Field(alias="recordType")
    set_identifier: str = Field(default="", alias="setIdentifier")
    record_ttl: int = Field(default=0, alias="recordTTL")
    labels: dict[str, str] = Field(default_factory=dict)
    provider_specific: list[ProviderSpecificProperty] = Field(
        default_factory=list, alias="providerSpecific"
    )

    # external-dns sends null for empty slices and maps
    @field_validator("targets", "labels", "provider_specific", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return {} if info.field_name == "labels" else []
        return value

    def to_endpoint(self) -> Endpoint:
        return Endpoint(
            dns_name=self.dns_name,
            record_type=self.record_type,
            targets=tuple(self.targets),
            ttl=self.record_ttl,
        )

    @classmethod
    def from_endpoint(cls, ep: Endpoint) -> EndpointModel:
        return cls(
            dns_name=ep.dns_name,
            targets=list(ep.targets),
            record_type=ep.record_type,
            record_ttl=ep.ttl,
        )


class ChangesModel(BaseModel):
    """
    The change batch posted to /records.

    Accepts both the lower-camel field names of current external-dns
    releases and the capitalised names of older ones.
    """

    create: list[EndpointModel] | None = Field(
        default=None, validation_alias=AliasChoices("create", "Create")
    )
    update_old: list[EndpointModel] | None = Field(
        default=None, validation_alias=AliasChoices("updateOld", "UpdateOld")
    )
    update_new: list[EndpointModel] | None = Field(
        default=None, validation_alias=AliasChoices("updateNew", "UpdateNew")
    )
    delete: list[EndpointModel] | None = Field(
        default=None, validation_alias=AliasChoices("delete", "Delete")
    )

    def to_change_batch(self) -> ChangeBatch:
        return ChangeBatch(
            create=[m.to_endpoint() for m in self.create or []],
            update_old=[m.to_endpoint() for m in self.update_old or []],
            update_new=[m.to_endpoint() for m in self.update_new or []],
            delete=[m.to_endpoint() for m in self.delete or []],
        )


def endpoints_payload(endpoints: list[Endpoint]) -> list[dict[str, Any]]:
    """Serialises endpoints to the JSON shape external-dns expects."""
    return [EndpointModel.from_endpoint(ep).model_dump(by_alias=True) for ep in endpoints]
