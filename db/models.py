"""
db/models.py

Responsibility: Defines all SQLModel table models used by the application.
Does NOT: contain business logic, repositories, or session management.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

# ---------------------------------------------------------------------------
# ZoneStats: per-zone reconciliation counters
# ---------------------------------------------------------------------------


class ZoneStats(SQLModel, table=True):
    """
    Tracks apply and failure counts for each managed zone.

    One row per zone. Updated by StatsRepository after every apply pass that
    actually reached the provider for that zone.
    """

    id: Optional[int] = Field(default=None, primary_key=True)

    # Managed zone suffix, e.g. "example.com"
    zone: str = Field(unique=True, index=True)

    # Stored timezone-aware, in UTC
    last_applied: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    last_failed: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    # Cumulative counters since the process started tracking the zone
    applies: int = Field(default=0)
    failures: int = Field(default=0)
    records_created: int = Field(default=0)
    records_updated: int = Field(default=0)
    records_deleted: int = Field(default=0)

    # Message of the most recent failure, empty after a clean apply
    last_error: str = Field(default="")
