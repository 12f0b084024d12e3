"""
services/stats_service.py

Responsibility: Provides a business-level API for recording and retrieving
per-zone reconciliation statistics. Delegates all persistence to
StatsRepository.
Does NOT: make provider calls, read configuration, or plan changes.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from db.models import ZoneStats
from domain.endpoint import ZoneOutcome
from repositories.stats_repository import StatsRepository

logger = logging.getLogger(__name__)


class StatsService:
    """
    Records and retrieves per-zone apply statistics.

    Wraps StatsRepository with intent-named methods called by
    ReconcileService after each zone has been processed.

    Collaborators:
        - StatsRepository: handles all database access for ZoneStats rows
    """

    def __init__(self, stats_repo: StatsRepository) -> None:
        """
        Initialises the service with a stats repository.

        Args:
            stats_repo: An initialised StatsRepository for the current session.
        """
        self._repo = stats_repo

    async def record_outcome(self, outcome: ZoneOutcome) -> ZoneStats | None:
        """
        Stores the outcome of one zone's apply pass.

        Skipped zones never reached the provider and are not counted. A
        database error is logged and rolled back; the DNS changes it describes
        have already been applied.

        Args:
            outcome: The ZoneOutcome produced by ReconcileService.

        Returns:
            The updated ZoneStats instance, or None for a skipped zone or a
            failed write.
        """
        if outcome.skipped:
            return None

        try:
            if outcome.error is not None:
                logger.warning("Stats: failure recorded for zone %s.", outcome.zone)
                return self._repo.record_failure(
                    outcome.zone,
                    str(outcome.error),
                    outcome.created,
                    outcome.updated,
                    outcome.deleted,
                )

            logger.debug("Stats: apply recorded for zone %s.", outcome.zone)
            return self._repo.record_apply(
                outcome.zone, outcome.created, outcome.updated, outcome.deleted
            )
        except SQLAlchemyError as exc:
            logger.error("Stats: unable to record outcome for zone %s: %s", outcome.zone, exc)
            self._repo.rollback()
            return None

    async def get_all(self) -> list[ZoneStats]:
        """
        Returns all ZoneStats rows ordered by zone.

        Returns:
            A list of ZoneStats instances.
        """
        return self._repo.get_all()

    async def get_for_zone(self, zone: str) -> ZoneStats | None:
        """
        Returns stats for a specific zone, or None if it was never applied.

        Args:
            zone: The managed zone to look up.

        Returns:
            The ZoneStats instance, or None.
        """
        return self._repo.get_by_zone(zone)
