"""
tests/conftest.py

Shared pytest fixtures used by both unit and integration test suites.
All DB fixtures use in-memory SQLite (StaticPool) and all HTTP fixtures
use respx.mock: no real network calls are made in any test.
"""

from __future__ import annotations

import os

import httpx
import pytest
import respx
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

# Keep the app-level stats DB in memory for every test run.
os.environ["DB_PATH"] = ""

# NOTE: Models must be imported before SQLModel.metadata.create_all so that
# all table definitions are registered in the metadata before we call create_all.
import db.models  # noqa: E402,F401  side-effect import to register table metadata
from config import WebhookConfig  # noqa: E402
from exceptions import DnsProviderError  # noqa: E402
from porkbun.dns_provider import ProviderRecord  # noqa: E402

# ---------------------------------------------------------------------------
# Database fixture: in-memory SQLite, isolated per test
# ---------------------------------------------------------------------------


@pytest.fixture(name="db_session")
def db_session_fixture():
    """
    Yields a fresh in-memory SQLite session for each test.

    Tables are created before the test and dropped after, ensuring full
    isolation between tests.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


# ---------------------------------------------------------------------------
# HTTP mock fixture: intercepts all httpx calls
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_http():
    """
    Yields a respx router that intercepts all httpx.AsyncClient calls.

    No real network traffic is allowed during tests. Use this fixture
    wherever a service or client would normally make an outbound request.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


# ---------------------------------------------------------------------------
# Shared httpx.AsyncClient fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
async def http_client():
    """
    Yields a real httpx.AsyncClient instance for use in tests.

    Pair with the mock_http fixture so all requests are intercepted by respx.
    The client is closed after each test.
    """
    async with httpx.AsyncClient() as client:
        yield client


# ---------------------------------------------------------------------------
# Webhook configuration
# ---------------------------------------------------------------------------


@pytest.fixture()
def webhook_config() -> WebhookConfig:
    """A valid configuration managing example.com and example.org."""
    return WebhookConfig(
        domain_filter=("example.com", "example.org"),
        api_key="pk1_test",
        api_secret="sk1_test",
    )


# ---------------------------------------------------------------------------
# In-memory DNS provider
# ---------------------------------------------------------------------------


class FakeDnsProvider:
    """
    A DNSProvider holding records in memory and logging every call.

    Numeric ids are assigned on create. Add a (method, zone) tuple to fail_on
    to make that call raise DnsProviderError.
    """

    def __init__(self, records: dict[str, list[ProviderRecord]] | None = None) -> None:
        self.records = {zone: list(recs) for zone, recs in (records or {}).items()}
        self.calls: list[tuple] = []
        self.fail_on: set[tuple[str, str]] = set()
        self.ping_error: Exception | None = None
        self._next_id = 1000

    def _check(self, method: str, zone: str) -> None:
        if (method, zone) in self.fail_on:
            raise DnsProviderError(f"{method} failed for {zone}")

    async def ping(self) -> str:
        self.calls.append(("ping",))
        if self.ping_error is not None:
            raise self.ping_error
        return "203.0.113.1"

    async def list_records(self, zone: str) -> list[ProviderRecord]:
        self.calls.append(("list", zone))
        self._check("list", zone)
        return [ProviderRecord(r.id, r.name, r.type, r.content, r.ttl) for r in self.records.get(zone, [])]

    async def create_record(self, zone: str, record: ProviderRecord) -> str:
        self.calls.append(("create", zone, record.name, record.type, record.content))
        self._check("create", zone)
        self._next_id += 1
        new_id = str(self._next_id)
        self.records.setdefault(zone, []).append(
            ProviderRecord(new_id, record.name, record.type, record.content, record.ttl)
        )
        return new_id

    async def update_record(self, zone: str, record_id: int, record: ProviderRecord) -> None:
        self.calls.append(("update", zone, record_id, record.content))
        self._check("update", zone)
        for existing in self.records.get(zone, []):
            if existing.id == str(record_id):
                existing.name = record.name
                existing.type = record.type
                existing.content = record.content
                existing.ttl = record.ttl

    async def delete_record(self, zone: str, record_id: int) -> None:
        self.calls.append(("delete", zone, record_id))
        self._check("delete", zone)
        self.records[zone] = [r for r in self.records.get(zone, []) if r.id != str(record_id)]

    def write_calls(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("create", "update", "delete")]


@pytest.fixture()
def fake_provider() -> FakeDnsProvider:
    return FakeDnsProvider()
