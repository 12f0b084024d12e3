"""
tests/unit/test_reconcile_service.py

Unit tests for services/reconcile_service.py.
The DNS provider is the in-memory fake from conftest.py; stats use the
in-memory SQLite db_session fixture.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from domain.endpoint import ChangeBatch, Endpoint
from exceptions import ConfigurationError, DnsProviderError, InvalidRecordIdError, ZoneApplyError
from porkbun.dns_provider import ProviderRecord
from repositories.stats_repository import StatsRepository
from services.reconcile_service import ReconcileService
from services.stats_service import StatsService

_ZONES = ("bar.org", "baz.org")


def _make_service(provider, dry_run=False, stats_service=None):
    return ReconcileService(provider, _ZONES, dry_run=dry_run, stats_service=stats_service)


def _a(name, target, ttl=600):
    return Endpoint(name, "A", (target,), ttl)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_constructor_rejects_empty_zones(fake_provider):
    with pytest.raises(ConfigurationError):
        ReconcileService(fake_provider, [])


# ---------------------------------------------------------------------------
# list_current_state
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_list_current_state_projects_all_zones(fake_provider):
    fake_provider.records = {
        "bar.org": [ProviderRecord("1", "www", "A", "1.2.3.4", "600")],
        "baz.org": [ProviderRecord("2", "", "TXT", "hello", "300")],
    }
    service = _make_service(fake_provider)

    endpoints = await service.list_current_state()

    assert endpoints == [
        Endpoint("www.bar.org", "A", ("1.2.3.4",), 600),
        Endpoint("baz.org", "TXT", ("hello",), 300),
    ]
    assert fake_provider.calls[0] == ("ping",)


@pytest.mark.asyncio
async def test_list_current_state_skips_failing_zone(fake_provider):
    """A zone that cannot be listed is left out; the others are still returned."""
    fake_provider.records = {"baz.org": [ProviderRecord("2", "x", "A", "1.1.1.1", "600")]}
    fake_provider.fail_on.add(("list", "bar.org"))
    service = _make_service(fake_provider)

    endpoints = await service.list_current_state()

    assert [ep.dns_name for ep in endpoints] == ["x.baz.org"]


@pytest.mark.asyncio
async def test_list_current_state_dry_run_makes_no_calls(fake_provider):
    service = _make_service(fake_provider, dry_run=True)

    assert await service.list_current_state() == []
    assert fake_provider.calls == []


@pytest.mark.asyncio
async def test_list_current_state_raises_on_ping_failure(fake_provider):
    fake_provider.ping_error = DnsProviderError("invalid api key")
    service = _make_service(fake_provider)

    with pytest.raises(DnsProviderError):
        await service.list_current_state()
    assert ("list", "bar.org") not in fake_provider.calls


# ---------------------------------------------------------------------------
# partition_by_zone
# ---------------------------------------------------------------------------


def test_partition_routes_by_longest_suffix_and_drops_unmatched(fake_provider):
    service = ReconcileService(fake_provider, ("bar.org", "sub.bar.org"))
    changes = ChangeBatch(
        create=[_a("a.bar.org", "1.1.1.1"), _a("b.sub.bar.org", "2.2.2.2"), _a("c.example.com", "3.3.3.3")],
        delete=[_a("d.sub.bar.org", "4.4.4.4")],
    )

    per_zone = service.partition_by_zone(changes)

    assert list(per_zone) == ["bar.org", "sub.bar.org"]
    assert per_zone["bar.org"].create == [_a("a.bar.org", "1.1.1.1")]
    assert per_zone["sub.bar.org"].create == [_a("b.sub.bar.org", "2.2.2.2")]
    assert per_zone["sub.bar.org"].delete == [_a("d.sub.bar.org", "4.4.4.4")]
    # The caller's batch is left as it was.
    assert len(changes.create) == 3


# ---------------------------------------------------------------------------
# apply_changes
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_apply_empty_batch_makes_no_calls(fake_provider):
    service = _make_service(fake_provider)

    result = await service.apply_changes(ChangeBatch())

    assert result.ok
    assert result.outcomes == []
    assert fake_provider.calls == []


@pytest.mark.asyncio
async def test_apply_dry_run_makes_no_calls(fake_provider):
    service = _make_service(fake_provider, dry_run=True)

    result = await service.apply_changes(ChangeBatch(create=[_a("a.bar.org", "1.1.1.1")]))

    assert result.ok
    assert fake_provider.calls == []


@pytest.mark.asyncio
async def test_apply_issues_delete_create_update_in_order(fake_provider):
    fake_provider.records = {
        "bar.org": [
            ProviderRecord("10", "old", "A", "1.1.1.1", "600"),
            ProviderRecord("11", "www", "A", "2.2.2.2", "600"),
        ]
    }
    service = _make_service(fake_provider)
    changes = ChangeBatch(
        create=[_a("new.bar.org", "3.3.3.3")],
        update_old=[_a("www.bar.org", "2.2.2.2")],
        update_new=[_a("www.bar.org", "4.4.4.4")],
        delete=[_a("old.bar.org", "1.1.1.1")],
    )

    result = await service.apply_changes(changes)

    assert result.ok
    assert fake_provider.write_calls() == [
        ("delete", "bar.org", 10),
        ("create", "bar.org", "new", "A", "3.3.3.3"),
        ("update", "bar.org", 11, "4.4.4.4"),
    ]
    outcome = result.outcomes[0]
    assert (outcome.deleted, outcome.created, outcome.updated) == (1, 1, 1)


@pytest.mark.asyncio
async def test_apply_lists_each_zone_once(fake_provider):
    service = _make_service(fake_provider)
    changes = ChangeBatch(create=[_a("a.bar.org", "1.1.1.1"), _a("b.bar.org", "2.2.2.2")])

    await service.apply_changes(changes)

    assert fake_provider.calls.count(("list", "bar.org")) == 1
    assert ("list", "baz.org") not in fake_provider.calls


@pytest.mark.asyncio
async def test_apply_failure_in_one_zone_does_not_stop_the_next(fake_provider):
    fake_provider.fail_on.add(("create", "bar.org"))
    service = _make_service(fake_provider)
    changes = ChangeBatch(
        create=[_a("a.bar.org", "1.1.1.1"), _a("b.bar.org", "2.2.2.2"), _a("c.baz.org", "3.3.3.3")]
    )

    result = await service.apply_changes(changes)

    assert not result.ok
    assert result.failed_zones == ["bar.org"]
    assert isinstance(result.error, ZoneApplyError)
    assert result.error.zone == "bar.org"
    assert result.error.stage == "create"
    # The rest of bar.org is abandoned but baz.org is still applied.
    assert fake_provider.calls.count(("create", "bar.org", "a", "A", "1.1.1.1")) == 1
    assert ("create", "bar.org", "b", "A", "2.2.2.2") not in fake_provider.calls
    assert ("create", "baz.org", "c", "A", "3.3.3.3") in fake_provider.calls


@pytest.mark.asyncio
async def test_apply_reports_first_error_in_zone_order(fake_provider):
    fake_provider.fail_on.update({("list", "bar.org"), ("list", "baz.org")})
    service = _make_service(fake_provider)
    changes = ChangeBatch(create=[_a("a.baz.org", "1.1.1.1"), _a("a.bar.org", "1.1.1.1")])

    result = await service.apply_changes(changes)

    assert result.failed_zones == ["bar.org", "baz.org"]
    assert result.error.zone == "bar.org"
    assert result.error.stage == "list"


@pytest.mark.asyncio
async def test_apply_delete_without_matching_record_fails_zone(fake_provider):
    """A delete whose record cannot be found has no usable id."""
    fake_provider.records = {"bar.org": [ProviderRecord("10", "a", "A", "1.1.1.1", "600")]}
    service = _make_service(fake_provider)

    result = await service.apply_changes(ChangeBatch(delete=[_a("a.bar.org", "9.9.9.9")]))

    assert isinstance(result.error, ZoneApplyError)
    assert result.error.stage == "delete"
    assert isinstance(result.error.__cause__, InvalidRecordIdError)
    assert fake_provider.write_calls() == []


@pytest.mark.asyncio
async def test_apply_update_with_non_numeric_id_fails_zone(fake_provider):
    fake_provider.records = {"bar.org": [ProviderRecord("abc", "a", "A", "1.1.1.1", "600")]}
    service = _make_service(fake_provider)
    changes = ChangeBatch(update_old=[_a("a.bar.org", "1.1.1.1")], update_new=[_a("a.bar.org", "2.2.2.2")])

    result = await service.apply_changes(changes)

    assert result.error.stage == "update"
    assert isinstance(result.error.__cause__, InvalidRecordIdError)


@pytest.mark.asyncio
async def test_apply_only_noop_txt_updates_skips_zone(fake_provider):
    """Reordered but unchanged TXT updates are suppressed before the zone is listed."""
    first = Endpoint("a.bar.org", "TXT", ('"heritage=external-dns"',), 600)
    second = Endpoint("b.bar.org", "TXT", ('"heritage=external-dns"',), 600)
    service = _make_service(fake_provider)

    result = await service.apply_changes(
        ChangeBatch(update_old=[first, second], update_new=[second, first])
    )

    assert result.ok
    assert result.outcomes[0].skipped
    assert fake_provider.calls == [("ping",)]


@pytest.mark.asyncio
async def test_apply_identical_update_pair_makes_no_calls(fake_provider):
    fake_provider.records = {"bar.org": [ProviderRecord("10", "a", "A", "1.1.1.1", "600")]}
    service = _make_service(fake_provider)
    unchanged = _a("a.bar.org", "1.1.1.1")

    result = await service.apply_changes(ChangeBatch(update_old=[unchanged], update_new=[unchanged]))

    assert result.ok
    assert result.outcomes == []
    assert fake_provider.calls == []


@pytest.mark.asyncio
async def test_apply_skips_zone_whose_updates_are_identical(fake_provider):
    """A zone with only identical update pairs is not listed while another zone is applied."""
    fake_provider.records = {"bar.org": [ProviderRecord("10", "a", "A", "1.1.1.1", "600")]}
    service = _make_service(fake_provider)
    unchanged = _a("a.bar.org", "1.1.1.1")
    changes = ChangeBatch(
        create=[_a("c.baz.org", "3.3.3.3")],
        update_old=[unchanged],
        update_new=[unchanged],
    )

    result = await service.apply_changes(changes)

    assert [o.zone for o in result.outcomes] == ["baz.org"]
    assert ("list", "bar.org") not in fake_provider.calls
    assert fake_provider.write_calls() == [("create", "baz.org", "c", "A", "3.3.3.3")]


@pytest.mark.asyncio
async def test_apply_drops_unmatched_endpoints(fake_provider):
    service = _make_service(fake_provider)

    result = await service.apply_changes(ChangeBatch(create=[_a("a.example.com", "1.1.1.1")]))

    assert result.ok
    assert result.outcomes == []
    assert fake_provider.write_calls() == []


@pytest.mark.asyncio
async def test_applied_records_show_up_in_next_listing(fake_provider):
    fake_provider.records = {"bar.org": [ProviderRecord("10", "a", "A", "1.1.1.1", "600")]}
    service = _make_service(fake_provider)
    changes = ChangeBatch(create=[_a("b.bar.org", "2.2.2.2")])

    result = await service.apply_changes(changes)
    state = await service.list_current_state()

    assert result.ok
    assert Endpoint("b.bar.org", "A", ("2.2.2.2",), 600) in state


@pytest.mark.asyncio
async def test_apply_raises_on_ping_failure(fake_provider):
    fake_provider.ping_error = DnsProviderError("invalid api key")
    service = _make_service(fake_provider)

    with pytest.raises(DnsProviderError):
        await service.apply_changes(ChangeBatch(create=[_a("a.bar.org", "1.1.1.1")]))
    assert fake_provider.write_calls() == []


@pytest.mark.asyncio
async def test_apply_propagates_cancellation():
    provider = AsyncMock()
    provider.ping.return_value = "203.0.113.1"
    provider.list_records.side_effect = asyncio.CancelledError()
    service = _make_service(provider)

    with pytest.raises(asyncio.CancelledError):
        await service.apply_changes(ChangeBatch(create=[_a("a.bar.org", "1.1.1.1")]))
    provider.create_record.assert_not_called()


@pytest.mark.asyncio
async def test_apply_records_outcomes_in_stats(fake_provider, db_session):
    fake_provider.fail_on.add(("create", "baz.org"))
    stats = StatsService(StatsRepository(db_session))
    service = _make_service(fake_provider, stats_service=stats)
    changes = ChangeBatch(create=[_a("a.bar.org", "1.1.1.1"), _a("a.baz.org", "1.1.1.1")])

    await service.apply_changes(changes)

    bar = await stats.get_for_zone("bar.org")
    baz = await stats.get_for_zone("baz.org")
    assert (bar.applies, bar.records_created) == (1, 1)
    assert baz.failures == 1
    assert "unable to create records" in baz.last_error


@pytest.mark.asyncio
async def test_apply_continues_when_stats_cannot_be_written(fake_provider, db_session):
    repo = StatsRepository(db_session)
    repo.record_apply = MagicMock(
        side_effect=OperationalError("UPDATE zonestats", {}, Exception("database is locked"))
    )
    service = _make_service(fake_provider, stats_service=StatsService(repo))
    changes = ChangeBatch(create=[_a("a.bar.org", "1.1.1.1"), _a("a.baz.org", "2.2.2.2")])

    result = await service.apply_changes(changes)

    assert result.ok
    assert [o.zone for o in result.outcomes] == ["bar.org", "baz.org"]
    assert fake_provider.write_calls() == [
        ("create", "bar.org", "a", "A", "1.1.1.1"),
        ("create", "baz.org", "a", "A", "2.2.2.2"),
    ]


@pytest.mark.asyncio
async def test_second_apply_of_unchanged_txt_updates_writes_nothing(fake_provider):
    fake_provider.records = {
        "bar.org": [ProviderRecord("10", "a", "TXT", "heritage=external-dns", "600")]
    }
    service = _make_service(fake_provider)
    owner = Endpoint("a.bar.org", "TXT", ('"heritage=external-dns"',), 600)
    spf = Endpoint("bar.org", "TXT", ('"v=spf1 -all"',), 300)

    def changes():
        return ChangeBatch(update_old=[owner, spf], update_new=[spf, owner])

    first = await service.apply_changes(changes())
    writes_after_first = list(fake_provider.write_calls())
    second = await service.apply_changes(changes())

    assert first.ok and second.ok
    assert fake_provider.write_calls() == writes_after_first
    assert writes_after_first == []
