"""
exceptions.py

Responsibility: Defines all custom exception classes used across the application.
Does NOT: contain business logic, logging, or HTTP handling.
"""

from __future__ import annotations


class ConfigurationError(Exception):
    """
    Raised when the webhook cannot be constructed from the given settings.

    Covers an empty domain filter, blank Porkbun credentials, an unknown log
    level or a malformed listen address. Always fatal at startup.
    """


class DnsProviderError(Exception):
    """
    Raised by any DNSProvider implementation when a DNS API call fails.

    Includes a human-readable message describing the failure. Callers
    (typically ReconcileService) catch this and record it as the failure of
    the zone being processed.
    """


class InvalidRecordIdError(DnsProviderError):
    """
    Raised when a record identifier cannot be used for an update or delete.

    Porkbun identifiers are decimal integers; an empty identifier (no
    matching existing record) or any other non-numeric value ends up here.
    """


class ZoneApplyError(DnsProviderError):
    """
    Raised when applying the changes of a single zone fails.

    The original provider error is chained as __cause__.
    """

    def __init__(self, zone: str, stage: str, message: str) -> None:
        super().__init__(message)
        self.zone = zone
        # One of "list", "delete", "create", "update"
        self.stage = stage
