"""Unit tests for the fail-soft external table client."""

from __future__ import annotations

import typing as typ

import httpx
import pytest

from tallyman.http import CachingFetcher, RateLimiterRegistry
from tallyman.tables import ExternalTableClient, TableConfig, TableRow
from tallyman.tables import client as client_module
from tests.helpers import FakeLogger

_CONFIG = TableConfig(
    api_key="key123", app_id="appXYZ", base_url="https://tables.example.test"
)


class _StaticFallback:
    """Fallback provider recording the tables it was asked for."""

    def __init__(self) -> None:
        self.requested: list[str] = []

    def provide(self, table_name: str) -> list[TableRow]:
        self.requested.append(table_name)
        return [TableRow(id=f"placeholder-{table_name}-1", placeholder=True)]


def _record(record_id: str) -> dict[str, typ.Any]:
    return {
        "id": record_id,
        "fields": {"Name": record_id},
        "createdTime": "2026-10-01T00:00:00.000Z",
    }


def _make_client(
    handler: typ.Callable[[httpx.Request], httpx.Response],
    *,
    config: TableConfig = _CONFIG,
) -> tuple[ExternalTableClient, _StaticFallback]:
    fetcher = CachingFetcher(
        "airtable",
        limiters=RateLimiterRegistry(1000),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    fallback = _StaticFallback()
    return ExternalTableClient(config, fetcher=fetcher, fallback=fallback), fallback


@pytest.fixture
def fake_logger(monkeypatch: pytest.MonkeyPatch) -> FakeLogger:
    """Capture warnings emitted by the table client."""
    logger = FakeLogger()
    monkeypatch.setattr(client_module, "logger", logger)
    return logger


@pytest.mark.asyncio
async def test_unconfigured_client_falls_back_without_network(
    fake_logger: FakeLogger,
) -> None:
    """Missing credentials serve fallback rows and never touch the network."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"records": []})

    client, fallback = _make_client(handler, config=TableConfig(api_key="key"))

    rows = await client.records("Copy")

    assert [row.placeholder for row in rows] == [True], "Expected placeholder rows"
    assert fallback.requested == ["Copy"], "Expected the fallback to be consulted"
    assert requests == [], "Expected no network traffic when unconfigured"
    assert len(fake_logger.messages("WARNING")) == 1, "Expected exactly one warning"


@pytest.mark.asyncio
async def test_healthy_table_paginates_with_offset(fake_logger: FakeLogger) -> None:
    """Rows from every page are returned after a successful probe."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        params = request.url.params
        if params.get("maxRecords") == "1":
            return httpx.Response(200, json={"records": [_record("rec1")]})
        if params.get("offset") == "page2":
            return httpx.Response(200, json={"records": [_record("rec3")]})
        return httpx.Response(
            200,
            json={"records": [_record("rec1"), _record("rec2")], "offset": "page2"},
        )

    client, fallback = _make_client(handler)

    rows = await client.records("Copy")

    assert [row.id for row in rows] == ["rec1", "rec2", "rec3"], "Expected all pages"
    assert rows[0].created_time == "2026-10-01T00:00:00.000Z", (
        "Expected createdTime to map onto created_time"
    )
    assert not any(row.placeholder for row in rows), "Expected upstream rows"
    assert fallback.requested == [], "Expected no fallback"
    assert fake_logger.calls == [], "Expected no warnings on success"
    assert seen[0].url.path == "/v0/appXYZ/Copy", "Expected the records endpoint"


@pytest.mark.asyncio
async def test_requests_carry_identity_headers() -> None:
    """Bearer auth, client identity and API version go on every request."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"records": []})

    client, _ = _make_client(handler)

    await client.records("Copy")

    headers = seen[0].headers
    assert headers["Authorization"] == "Bearer key123", "Expected bearer auth"
    assert headers["User-Agent"].startswith("tallyman/"), "Expected client identity"
    assert headers["X-API-VERSION"] == "0.1.0", "Expected the API version header"


@pytest.mark.asyncio
async def test_redirecting_probe_counts_as_healthy() -> None:
    """A probe answered with 302 is healthy."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("maxRecords") == "1":
            return httpx.Response(302, headers={"Location": "https://login.test/"})
        return httpx.Response(200, json={"records": [_record("rec9")]})

    client, fallback = _make_client(handler)

    assert await client.health_check("Copy") is True, "Expected 302 to be healthy"
    rows = await client.records("Copy")
    assert [row.id for row in rows] == ["rec9"], "Expected upstream rows"
    assert fallback.requested == [], "Expected no fallback"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [204, 301, 500])
async def test_unhealthy_probe_falls_back(fake_logger: FakeLogger, status: int) -> None:
    """Any probe status other than 200 or 302 serves fallback rows."""
    client, fallback = _make_client(lambda _r: httpx.Response(status))

    rows = await client.records("Copy")

    assert rows[0].placeholder, f"Expected placeholder rows for HTTP {status}"
    assert fallback.requested == ["Copy"], "Expected the fallback to be consulted"
    assert await client.health_check("Copy") is False, "Expected an unhealthy probe"
    assert len(fake_logger.messages("WARNING")) == 1, "Expected one warning per call"


@pytest.mark.asyncio
async def test_failure_mid_read_falls_back(fake_logger: FakeLogger) -> None:
    """An upstream error while paging still resolves to fallback rows."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("maxRecords") == "1":
            return httpx.Response(200, json={"records": []})
        raise httpx.ReadTimeout("slow", request=request)

    client, fallback = _make_client(handler)

    rows = await client.records("Copy")

    assert rows[0].placeholder, "Expected placeholder rows"
    assert fallback.requested == ["Copy"], "Expected the fallback to be consulted"


@pytest.mark.asyncio
async def test_malformed_page_falls_back(fake_logger: FakeLogger) -> None:
    """A page without a records list is treated as a failure."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("maxRecords") == "1":
            return httpx.Response(200, json={"records": []})
        return httpx.Response(200, json={"unexpected": True})

    client, fallback = _make_client(handler)

    rows = await client.records("Copy")

    assert rows[0].placeholder, "Expected placeholder rows for a malformed page"
    assert "missing field" in fake_logger.messages("WARNING")[0], (
        "Expected the warning to explain the shape problem"
    )


@pytest.mark.asyncio
async def test_unbuildable_table_url_falls_back(fake_logger: FakeLogger) -> None:
    """A table name httpx cannot put in a URL serves fallback rows."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"records": []})

    client, fallback = _make_client(handler)

    rows = await client.records("Meetups\n")

    assert rows[0].placeholder, "Expected placeholder rows"
    assert fallback.requested == ["Meetups\n"], "Expected the fallback to be consulted"
    assert requests == [], "Expected no network traffic"
    assert len(fake_logger.messages("WARNING")) == 1, "Expected one warning"
