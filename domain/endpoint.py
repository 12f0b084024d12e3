"""
domain/endpoint.py

Responsibility: Defines the generic desired-state DNS model shared with the
orchestrator (Endpoint, ChangeBatch) and the result types of a
reconciliation pass (ZoneOutcome, ApplyResult).
Does NOT: talk to a provider, parse wire formats, or know about Porkbun.
"""

from __future__ import annotations

from dataclasses import dataclass, field

RECORD_TYPE_A = "A"
RECORD_TYPE_AAAA = "AAAA"
RECORD_TYPE_CNAME = "CNAME"
RECORD_TYPE_TXT = "TXT"


@dataclass(frozen=True)
class Endpoint:
    """
    A desired DNS record as produced by the orchestrator.

    Owned by the caller and never modified by the reconciliation engine.
    """

    # Fully-qualified DNS name, e.g. "www.example.com"
    dns_name: str

    record_type: str

    # Ordered target values; may be empty
    targets: tuple[str, ...] = ()

    # TTL in seconds; 0 means "not set"
    ttl: int = 0

    def __str__(self) -> str:
        return f"{self.dns_name} {self.ttl} IN {self.record_type} {' '.join(self.targets)}".rstrip()


@dataclass
class ChangeBatch:
    """
    One reconciliation pass worth of changes.

    update_old holds the state before the desired update in update_new; it is
    reference data only and is never written to the provider.
    """

    create: list[Endpoint] = field(default_factory=list)
    update_old: list[Endpoint] = field(default_factory=list)
    update_new: list[Endpoint] = field(default_factory=list)
    delete: list[Endpoint] = field(default_factory=list)

    def has_changes(self) -> bool:
        # An update whose new state equals its old state changes nothing.
        return bool(self.create or self.delete) or self.update_new != self.update_old


@dataclass
class ZoneOutcome:
    """
    What happened to one zone during apply.

    Counters reflect the provider calls that succeeded, also when a later
    call in the same zone failed.
    """

    zone: str
    created: int = 0
    updated: int = 0
    deleted: int = 0

    # True when the zone had nothing left to do after no-op suppression
    skipped: bool = False

    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ApplyResult:
    """
    Aggregated outcome of apply_changes across all zones.

    error is the first zone failure in processing order; every failure is
    available through outcomes.
    """

    outcomes: list[ZoneOutcome] = field(default_factory=list)

    @property
    def error(self) -> Exception | None:
        for outcome in self.outcomes:
            if outcome.error is not None:
                return outcome.error
        return None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def failed_zones(self) -> list[str]:
        return [o.zone for o in self.outcomes if o.error is not None]
