"""
porkbun/dns_provider.py

Responsibility: Defines the DNSProvider Protocol and the ProviderRecord value object.
Does NOT: make HTTP calls, match records, or implement any provider logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Value object: stable shape returned by all DNSProvider implementations
# ---------------------------------------------------------------------------


@dataclass
class ProviderRecord:
    """
    Represents a single DNS record in the provider's native shape.

    Used both for records listed from the provider and for records about to
    be written. The provider does not support multi-value records, so
    content is a single string.
    """

    # Provider-assigned identifier; empty until the record exists
    id: str

    # Zone-relative name, e.g. "www"; empty string denotes the zone apex
    name: str

    # Record type, e.g. "A", "TXT", "CNAME"
    type: str

    # Record value, e.g. "1.2.3.4"
    content: str

    # TTL in seconds, string-encoded as the provider expects it
    ttl: str


# ---------------------------------------------------------------------------
# Abstract interface: the only way the core talks to a DNS host
# ---------------------------------------------------------------------------


@runtime_checkable
class DNSProvider(Protocol):
    """
    Abstract protocol for zone-scoped DNS record CRUD.

    ReconcileService depends on this abstraction, never on a concrete
    implementation. Network access, authentication, retries and timeouts
    are properties of the implementation.
    """

    async def ping(self) -> str:
        """
        Verifies that the configured credentials are accepted.

        Returns:
            The caller's public IP as reported by the provider.

        Raises:
            DnsProviderError: If the credentials are rejected or the call fails.
        """
        ...

    async def list_records(self, zone: str) -> list[ProviderRecord]:
        """
        Returns every record in the given zone, in provider order.

        Args:
            zone: The zone name, e.g. "example.com".

        Returns:
            A list of ProviderRecord instances with zone-relative names.

        Raises:
            DnsProviderError: If the API call fails.
        """
        ...

    async def create_record(self, zone: str, record: ProviderRecord) -> str:
        """
        Creates a new record in the given zone.

        Args:
            zone: The zone name.
            record: The record to create; its id is ignored.

        Returns:
            The identifier assigned by the provider.

        Raises:
            DnsProviderError: If the API call fails.
        """
        ...

    async def update_record(self, zone: str, record_id: int, record: ProviderRecord) -> None:
        """
        Overwrites an existing record.

        Args:
            zone: The zone name.
            record_id: The provider identifier of the record to edit.
            record: The desired record state.

        Raises:
            DnsProviderError: If the API call fails.
        """
        ...

    async def delete_record(self, zone: str, record_id: int) -> None:
        """
        Deletes a record from the given zone.

        Args:
            zone: The zone name.
            record_id: The provider identifier of the record to delete.

        Raises:
            DnsProviderError: If the API call fails.
        """
        ...
