"""Fail-soft client for the external content table service."""

from __future__ import annotations

import typing as typ

import msgspec

from tallyman.http import FetchError, RequestSpec
from tallyman.logging import get_logger, log_warning
from tallyman.tables.errors import (
    TableError,
    TableResponseShapeError,
    TableUnconfiguredError,
    TableUnhealthyError,
)
from tallyman.tables.models import RecordsPage, TableRow

if typ.TYPE_CHECKING:
    from tallyman.http import CachingFetcher
    from tallyman.http.query import QueryParams
    from tallyman.tables.config import TableConfig
    from tallyman.tables.fallback import FallbackProvider

logger = get_logger(__name__)

HEALTHY_STATUSES = frozenset({200, 302})
_PROBE_PARAMS: dict[str, typ.Any] = {"maxRecords": 1}
_MAX_PAGES = 50


class ExternalTableClient:
    """Read rows from a named table, degrading to placeholder content.

    Every read is routed through the shared :class:`CachingFetcher`, so
    repeated reads of a table inside the cache TTL neither hit the network
    nor wait on the rate limiter. Missing credentials, a failing health
    probe, or an upstream error while paging all resolve to the fallback
    provider's rows; callers never see an exception from :meth:`records`.

    Parameters
    ----------
    config
        Credentials and endpoint. Unconfigured clients never touch the
        network.
    fetcher
        Cached, rate-limited fetch path for the table host.
    fallback
        Provider of substitute rows.

    """

    def __init__(
        self,
        config: TableConfig,
        *,
        fetcher: CachingFetcher,
        fallback: FallbackProvider,
    ) -> None:
        """Store collaborators; no I/O happens until the first read."""
        self._config = config
        self._fetcher = fetcher
        self._fallback = fallback

    @property
    def configured(self) -> bool:
        """Return True when both credentials are available."""
        return self._config.configured

    async def records(
        self,
        table_name: str,
        *,
        params: QueryParams | None = None,
    ) -> list[TableRow]:
        """Return every row of ``table_name`` or placeholder rows.

        Parameters
        ----------
        table_name
            Name (or id) of the table to read.
        params
            Extra list parameters such as ``view``, ``fields`` or ``sort``.

        Returns
        -------
        list[TableRow]
            Upstream rows, or the fallback provider's rows when the table is
            unconfigured, unhealthy or failing.

        """
        try:
            return await self._read_all(table_name, params)
        except TableError as exc:
            log_warning(
                logger,
                "Serving placeholder rows for table %s: %s",
                table_name,
                exc,
            )
            return self._fallback.provide(table_name)

    async def health_check(self, table_name: str) -> bool:
        """Return True when the table answers its probe with 200 or 302."""
        if not self.configured:
            return False
        try:
            await self._probe(table_name)
        except TableUnhealthyError:
            return False
        return True

    async def _probe(self, table_name: str) -> None:
        spec = self._spec(table_name, _PROBE_PARAMS)
        try:
            result = await self._fetcher.fetch(spec)
        except FetchError as exc:
            raise TableUnhealthyError.unreachable(table_name, str(exc)) from exc
        if result.status not in HEALTHY_STATUSES:
            raise TableUnhealthyError.unexpected_status(table_name, result.status)

    async def _read_all(
        self, table_name: str, params: QueryParams | None
    ) -> list[TableRow]:
        if not self.configured:
            raise TableUnconfiguredError.missing_credentials(table_name)
        await self._probe(table_name)

        rows: list[TableRow] = []
        offset: str | None = None
        for _ in range(_MAX_PAGES):
            page = await self._read_page(table_name, params, offset)
            rows.extend(page.rows())
            if not page.offset or page.offset == offset:
                break
            offset = page.offset
        return rows

    async def _read_page(
        self,
        table_name: str,
        params: QueryParams | None,
        offset: str | None,
    ) -> RecordsPage:
        query: dict[str, typ.Any] = dict(params or {})
        query["offset"] = offset
        try:
            result = await self._fetcher.fetch(self._spec(table_name, query))
        except FetchError as exc:
            raise TableUnhealthyError.unreachable(table_name, str(exc)) from exc
        try:
            return msgspec.convert(result.payload, type=RecordsPage)
        except msgspec.ValidationError as exc:
            raise TableResponseShapeError.missing(table_name, str(exc)) from exc

    def _spec(self, table_name: str, params: QueryParams | None) -> RequestSpec:
        return RequestSpec(
            url=self._config.table_url(table_name),
            params=params,
            headers=self._config.headers(),
        )
