"""
repositories/stats_repository.py

Responsibility: Provides low-level read/write access to the ZoneStats table
in SQLite via SQLModel.
Does NOT: contain business logic, provider calls, or change planning.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlmodel import Session, select

from db.models import ZoneStats

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StatsRepository:
    """
    Manages persistence of per-zone reconciliation statistics.

    One ZoneStats row per zone. Rows are created on first access and updated
    after every apply pass by StatsService.

    Collaborators:
        - Session: SQLModel DB session injected at construction time
    """

    def __init__(self, session: Session) -> None:
        """
        Initialises the repository with an active DB session.

        Args:
            session: An open SQLModel Session for the current request.
        """
        self._session = session

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    def get_or_create(self, zone: str) -> ZoneStats:
        """
        Returns the ZoneStats row for the given zone, creating it if absent.

        Args:
            zone: The managed zone, e.g. "example.com".

        Returns:
            The ZoneStats ORM instance for the zone.
        """
        stats = self.get_by_zone(zone)

        if stats is None:
            logger.debug("Creating ZoneStats row for %s.", zone)
            stats = ZoneStats(zone=zone)
            self.save(stats)

        return stats

    def get_all(self) -> list[ZoneStats]:
        """
        Returns all ZoneStats rows ordered by zone.

        Returns:
            A list of ZoneStats instances, possibly empty.
        """
        statement = select(ZoneStats).order_by(ZoneStats.zone)
        return list(self._session.exec(statement).all())

    def get_by_zone(self, zone: str) -> ZoneStats | None:
        statement = select(ZoneStats).where(ZoneStats.zone == zone)
        return self._session.exec(statement).first()

    def save(self, stats: ZoneStats) -> ZoneStats:
        self._session.add(stats)
        self._session.commit()
        self._session.refresh(stats)
        return stats

    def rollback(self) -> None:
        self._session.rollback()

    def record_apply(self, zone: str, created: int, updated: int, deleted: int) -> ZoneStats:
        """
        Counts a successful apply pass and the records it wrote.

        Args:
            zone: The zone that was applied.
            created: Number of records created.
            updated: Number of records updated.
            deleted: Number of records deleted.

        Returns:
            The updated ZoneStats instance.
        """
        stats = self.get_or_create(zone)
        stats.applies += 1
        stats.last_applied = _utcnow()
        stats.last_error = ""
        self._add_counts(stats, created, updated, deleted)
        return self.save(stats)

    def record_failure(
        self, zone: str, message: str, created: int = 0, updated: int = 0, deleted: int = 0
    ) -> ZoneStats:
        """
        Counts a failed apply pass.

        Writes that succeeded before the failure are still counted since they
        are not rolled back.

        Args:
            zone: The zone whose apply failed.
            message: The error message to keep as last_error.
            created: Records created before the failure.
            updated: Records updated before the failure.
            deleted: Records deleted before the failure.

        Returns:
            The updated ZoneStats instance.
        """
        stats = self.get_or_create(zone)
        stats.failures += 1
        stats.last_failed = _utcnow()
        stats.last_error = message
        self._add_counts(stats, created, updated, deleted)
        return self.save(stats)

    @staticmethod
    def _add_counts(stats: ZoneStats, created: int, updated: int, deleted: int) -> None:
        stats.records_created += created
        stats.records_updated += updated
        stats.records_deleted += deleted
