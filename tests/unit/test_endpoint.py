"""
tests/unit/test_endpoint.py

Unit tests for domain/endpoint.py.
"""

from __future__ import annotations

from domain.endpoint import ApplyResult, ChangeBatch, Endpoint, ZoneOutcome

_OLD = Endpoint("a.bar.org", "A", ("1.1.1.1",), 600)
_NEW = Endpoint("a.bar.org", "A", ("2.2.2.2",), 600)


def test_empty_batch_has_no_changes():
    assert not ChangeBatch().has_changes()


def test_creates_and_deletes_are_changes():
    assert ChangeBatch(create=[_NEW]).has_changes()
    assert ChangeBatch(delete=[_OLD]).has_changes()


def test_identical_update_pair_is_not_a_change():
    assert not ChangeBatch(update_old=[_OLD], update_new=[_OLD]).has_changes()


def test_differing_update_pair_is_a_change():
    assert ChangeBatch(update_old=[_OLD], update_new=[_NEW]).has_changes()
    assert ChangeBatch(update_old=[_OLD], update_new=[]).has_changes()


def test_apply_result_reports_first_failure():
    first = RuntimeError("first")
    result = ApplyResult(
        outcomes=[
            ZoneOutcome("bar.org", created=1),
            ZoneOutcome("baz.org", error=first),
            ZoneOutcome("qux.org", error=RuntimeError("second")),
        ]
    )

    assert result.error is first
    assert result.failed_zones == ["baz.org", "qux.org"]
    assert not result.ok
