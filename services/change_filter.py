"""
services/change_filter.py

Responsibility: Removes update operations that would not change anything at
the provider, before any provider call is made.
Does NOT: partition by zone, convert records, or talk to the provider.
"""

from __future__ import annotations

import logging

from domain.endpoint import RECORD_TYPE_TXT, ChangeBatch, Endpoint

logger = logging.getLogger(__name__)


def remove_noop_txt_updates(changes: ChangeBatch) -> None:
    """
    Drops unchanged TXT updates from changes.update_new, in place.

    The orchestrator re-issues its ownership TXT records on every pass even
    when nothing changed. A TXT entry in update_new is dropped when
    update_old holds a TXT entry with the same DNS name, the same first
    target and the same TTL. Everything else is kept, including entries
    with a different first target (different key, so no prior entry).

    update_old is left untouched.

    Args:
        changes: The batch to filter.

    Returns:
        None
    """
    if not changes.update_old or not changes.update_new:
        return

    previous: dict[tuple[str, str], Endpoint] = {}
    for ep in changes.update_old:
        if ep.record_type != RECORD_TYPE_TXT or not ep.targets:
            continue
        previous[(ep.dns_name, ep.targets[0])] = ep

    kept: list[Endpoint] = []
    for ep in changes.update_new:
        if ep.record_type != RECORD_TYPE_TXT or not ep.targets:
            kept.append(ep)
            continue

        old = previous.get((ep.dns_name, ep.targets[0]))
        if old is not None and old.ttl == ep.ttl:
            logger.debug("dropping no-op TXT update for %s", ep.dns_name)
            continue

        kept.append(ep)

    changes.update_new = kept
