"""
services/reconcile_service.py

Responsibility: Reconciles desired endpoints against the records held by the
DNS provider: projects the current state for the orchestrator and applies
change batches zone by zone.
Does NOT: make HTTP calls directly, parse the webhook wire format, or read
configuration from the environment.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from domain.endpoint import ApplyResult, ChangeBatch, Endpoint, ZoneOutcome
from exceptions import (
    ConfigurationError,
    DnsProviderError,
    InvalidRecordIdError,
    ZoneApplyError,
)
from porkbun.dns_provider import DNSProvider, ProviderRecord
from services.change_filter import remove_noop_txt_updates
from services.record_mapper import endpoints_to_records, records_to_endpoints, zone_for
from services.stats_service import StatsService

logger = logging.getLogger(__name__)

# Attribute names of ChangeBatch, in the order endpoints are routed to zones.
_CHANGE_KINDS = ("create", "update_old", "update_new", "delete")


class ReconcileService:
    """
    Converges the provider's records towards the orchestrator's desired state.

    Zones are processed one after another and every provider call is awaited
    before the next one is issued. A failure inside one zone aborts only
    that zone; the remaining zones are still attempted. Nothing is cached
    between calls: every pass lists the zone again.

    Collaborators:
        - DNSProvider: record CRUD against the DNS host (e.g. PorkbunClient)
        - StatsService: optional; records per-zone apply outcomes
    """

    def __init__(
        self,
        dns_provider: DNSProvider,
        zones: Sequence[str],
        dry_run: bool = False,
        stats_service: StatsService | None = None,
    ) -> None:
        """
        Initialises the service with its provider and the managed zones.

        Args:
            dns_provider: Any DNSProvider implementation.
            zones: The managed zone suffixes (the domain filter), in order.
            dry_run: When True, never contact the provider.
            stats_service: Receives one ZoneOutcome per attempted zone.

        Raises:
            ConfigurationError: If zones is empty.
        """
        if not zones:
            raise ConfigurationError(
                "porkbun provider requires at least one configured domain in the domain filter"
            )

        self._provider = dns_provider
        self._zones = tuple(zones)
        self._dry_run = dry_run
        self._stats = stats_service

    @property
    def zones(self) -> tuple[str, ...]:
        return self._zones

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    async def list_current_state(self) -> list[Endpoint]:
        """
        Returns the current records of every managed zone as endpoints.

        A zone whose listing fails is logged and left out; the other zones
        are still returned.

        Returns:
            A flat list of endpoints across all zones; empty in dry-run mode.

        Raises:
            DnsProviderError: If the provider rejects the credentials.
        """
        endpoints: list[Endpoint] = []

        if self._dry_run:
            logger.debug("dry run - skipping login")
            return endpoints

        await self._provider.ping()

        for zone in self._zones:
            try:
                records = await self._provider.list_records(zone)
            except DnsProviderError as exc:
                logger.error("unable to query DNS zone records for %s: %s", zone, exc)
                continue

            logger.info("got %d DNS record(s) for zone %s", len(records), zone)
            endpoints.extend(records_to_endpoints(records, zone))

        for ep in endpoints:
            logger.debug("endpoint collected: %s", ep)

        return endpoints

    async def apply_changes(self, changes: ChangeBatch) -> ApplyResult:
        """
        Applies a change batch, zone by zone.

        Per zone: drop no-op TXT updates, list the zone once, convert the
        deletes (strict matching) and the creates and updates (relaxed
        matching) against that snapshot, then issue deletes, creates and
        updates in that order.

        Args:
            changes: The batch submitted by the orchestrator; not modified.

        Returns:
            An ApplyResult with one ZoneOutcome per zone that had changes.
            result.error is the first zone failure, or None.

        Raises:
            DnsProviderError: If the provider rejects the credentials, in
                which case no zone is attempted.
        """
        result = ApplyResult()

        if not changes.has_changes():
            logger.debug("no changes detected - nothing to do")
            return result

        if self._dry_run:
            logger.debug("dry run - skipping login")
        else:
            await self._provider.ping()

        per_zone = self.partition_by_zone(changes)

        if self._dry_run:
            for zone, zone_changes in per_zone.items():
                if zone_changes.has_changes():
                    logger.info(
                        "dry run - would apply to zone %s: %d create(s), %d update(s), %d delete(s)",
                        zone,
                        len(zone_changes.create),
                        len(zone_changes.update_new),
                        len(zone_changes.delete),
                    )
            logger.info("dry run - not applying changes")
            return result

        for zone, zone_changes in per_zone.items():
            if not zone_changes.has_changes():
                continue

            outcome = ZoneOutcome(zone=zone)
            try:
                await self._apply_zone(zone, zone_changes, outcome)
            except DnsProviderError as exc:
                logger.error("unable to apply changes to zone %s, skipping: %s", zone, exc)
                outcome.error = exc

            result.outcomes.append(outcome)
            if self._stats is not None:
                await self._stats.record_outcome(outcome)

        logger.debug("update(s) completed")
        return result

    def partition_by_zone(self, changes: ChangeBatch) -> dict[str, ChangeBatch]:
        """
        Splits a change batch into one batch per managed zone.

        Endpoints whose name matches no zone are dropped and logged. Input
        order is preserved within each zone.

        Args:
            changes: The batch to split.

        Returns:
            A dict with one entry per managed zone, in configuration order;
            zones without changes map to an empty ChangeBatch.
        """
        per_zone = {zone: ChangeBatch() for zone in self._zones}

        for kind in _CHANGE_KINDS:
            for ep in getattr(changes, kind):
                zone = zone_for(ep.dns_name, self._zones)
                if zone is None:
                    logger.debug("ignoring %s change since it did not match any zone: %s", kind, ep)
                    continue
                logger.debug("planning %s in zone %s: %s", kind, zone, ep)
                getattr(per_zone[zone], kind).append(ep)

        return per_zone

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _apply_zone(self, zone: str, changes: ChangeBatch, outcome: ZoneOutcome) -> None:
        """
        Applies the changes of a single zone, recording progress on outcome.

        Args:
            zone: The zone being applied.
            changes: The zone's batch; update_new is filtered in place.
            outcome: Receives the per-operation counters.

        Raises:
            ZoneApplyError: On the first failing provider call; the remaining
                operations of the zone are not attempted.
        """
        remove_noop_txt_updates(changes)
        if not (changes.create or changes.delete or changes.update_new):
            logger.debug("zone %s has only no-op updates, skipping", zone)
            outcome.skipped = True
            return

        # NOTE: ids are resolved against a single snapshot taken before any write.
        try:
            existing = await self._provider.list_records(zone)
        except DnsProviderError as exc:
            raise ZoneApplyError(zone, "list", f"unable to get DNS records: {exc}") from exc

        to_delete = endpoints_to_records(existing, changes.delete, zone, strict=True)
        to_create = endpoints_to_records(existing, changes.create, zone, strict=False)
        to_update = endpoints_to_records(existing, changes.update_new, zone, strict=False)

        for record in to_delete:
            try:
                await self._provider.delete_record(zone, _parse_record_id(record))
            except DnsProviderError as exc:
                raise ZoneApplyError(zone, "delete", f"unable to delete records: {exc}") from exc
            outcome.deleted += 1

        for record in to_create:
            try:
                await self._provider.create_record(zone, record)
            except DnsProviderError as exc:
                raise ZoneApplyError(zone, "create", f"unable to create records: {exc}") from exc
            outcome.created += 1

        for record in to_update:
            try:
                await self._provider.update_record(zone, _parse_record_id(record), record)
            except DnsProviderError as exc:
                raise ZoneApplyError(zone, "update", f"unable to update records: {exc}") from exc
            outcome.updated += 1

        logger.info(
            "zone %s applied: %d deleted, %d created, %d updated",
            zone,
            outcome.deleted,
            outcome.created,
            outcome.updated,
        )


def _parse_record_id(record: ProviderRecord) -> int:
    """
    Returns the numeric provider id of a record about to be edited or deleted.

    Raises:
        InvalidRecordIdError: If the id is empty or not a decimal integer.
    """
    if not (record.id.isascii() and record.id.isdigit()):
        raise InvalidRecordIdError(
            f"unable to parse record ID {record.id!r} of {record.type} record {record.name!r}"
        )
    return int(record.id)
