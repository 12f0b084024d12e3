"""
services/record_mapper.py

Responsibility: Translates between the generic Endpoint model and the
provider's ProviderRecord model: zone assignment, record id lookup, and the
conversions in both directions.
Does NOT: make provider calls, filter change batches, or log to the UI.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from domain.endpoint import RECORD_TYPE_TXT, Endpoint
from porkbun.dns_provider import ProviderRecord

logger = logging.getLogger(__name__)

# Porkbun's minimum TTL; used when a listed record carries an unparsable TTL.
DEFAULT_TTL = 600

# Marker the orchestrator uses for its ownership TXT records.
_HERITAGE_PREFIX = '"heritage='

# Porkbun's root marker for apex records.
_APEX_MARKER = "@"


def zone_for(name: str, zones: Iterable[str]) -> str | None:
    """
    Picks the zone owning a DNS name by longest suffix match.

    An exact match (name == zone) counts as a suffix, so apex records are
    assigned to their own zone. No case-folding or trailing-dot handling is
    applied; callers normalise names first if they need to.

    Args:
        name: A fully-qualified DNS name, e.g. "foo.sub.example.com".
        zones: The managed zone suffixes.

    Returns:
        The longest zone that is a suffix of name, or None when none is.
    """
    match = ""
    for zone in zones:
        if name.endswith(zone) and len(zone) > len(match):
            match = zone
    return match or None


def find_record_id(
    name: str,
    target: str,
    record_type: str,
    records: Iterable[ProviderRecord],
    strict: bool,
) -> str | None:
    """
    Returns the id of the first existing record matching name and type.

    In strict mode the record content must also equal target. Relaxed mode
    returns the first name+type match in provider order, which is ambiguous
    when several records share name and type (round-robin A records).

    Args:
        name: Zone-relative record name ("" for apex).
        target: Desired content; only compared when strict is set.
        record_type: Record type, e.g. "A".
        records: Records listed from the provider in this pass.
        strict: Require content equality as well.

    Returns:
        The matching record's id, or None when nothing matches.
    """
    for record in records:
        if record.type != record_type or record.name != name:
            continue
        if strict and record.content != target:
            continue
        return record.id
    return None


def relative_name(dns_name: str, zone: str) -> str:
    """Strips the zone suffix from a DNS name; the apex becomes ""."""
    if dns_name == zone:
        return ""
    suffix = "." + zone
    if dns_name.endswith(suffix):
        return dns_name[: -len(suffix)]
    return dns_name


def endpoints_to_records(
    existing: Sequence[ProviderRecord],
    endpoints: Iterable[Endpoint],
    zone: str,
    strict: bool,
) -> list[ProviderRecord]:
    """
    Converts endpoints of one zone into provider records ready to write.

    Only the first target of each endpoint is used; the provider has no
    multi-value records. Endpoints without targets are skipped. Ids are
    resolved against existing, the snapshot listed for this pass.

    Args:
        existing: The zone's current records, as listed from the provider.
        endpoints: The endpoints to convert, all belonging to zone.
        zone: The owning zone.
        strict: Match ids on content as well (used for deletes).

    Returns:
        One ProviderRecord per endpoint that has at least one target.
    """
    records: list[ProviderRecord] = []

    for ep in endpoints:
        name = relative_name(ep.dns_name, zone)

        if not ep.targets:
            logger.debug("endpoint has no targets, skipping: %s %s", ep.dns_name, ep.record_type)
            continue

        target = ep.targets[0]
        if ep.record_type == RECORD_TYPE_TXT and target.startswith(_HERITAGE_PREFIX):
            target = target.strip('"')

        record_id = find_record_id(name, target, ep.record_type, existing, strict)

        records.append(
            ProviderRecord(
                id=record_id or "",
                name=name,
                type=ep.record_type,
                content=target,
                ttl=str(ep.ttl),
            )
        )

    return records


def records_to_endpoints(records: Iterable[ProviderRecord], zone: str) -> list[Endpoint]:
    """
    Projects a zone's provider records into the generic Endpoint model.

    Args:
        records: Records listed from the provider for zone.
        zone: The zone the records were listed from.

    Returns:
        One single-target Endpoint per record.
    """
    endpoints: list[Endpoint] = []

    for record in records:
        if not record.name or record.name.split(".")[0] == _APEX_MARKER:
            dns_name = zone
        else:
            dns_name = f"{record.name}.{zone}"

        try:
            ttl = int(record.ttl)
        except ValueError:
            logger.warning(
                "unable to parse TTL %r of %s, using default %d", record.ttl, dns_name, DEFAULT_TTL
            )
            ttl = DEFAULT_TTL

        endpoints.append(Endpoint(dns_name, record.type, (record.content,), ttl))

    return endpoints
