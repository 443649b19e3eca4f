"""Content table resource.

``GET /content/{table}`` returns the rows of an external content table, or
placeholder rows when the table is unconfigured or unreachable. An optional
``view`` query parameter is forwarded to the table service.
"""

from __future__ import annotations

import re
import typing as typ

import falcon

from tallyman.api.errors import InvalidInputError
from tallyman.tables.models import to_json

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from tallyman.tables.client import ExternalTableClient

__all__ = ["ContentResource"]

_TABLE_NAME = re.compile(r"[A-Za-z0-9][A-Za-z0-9 _-]{0,63}")


class ContentResource:
    """Resource serving content table rows."""

    def __init__(self, table_client: ExternalTableClient) -> None:
        """Attach the fail-soft table client."""
        self._table_client = table_client

    async def on_get(self, req: Request, resp: Response, *, table: str) -> None:
        """Handle GET /content/{table} requests.

        Raises
        ------
        InvalidInputError
            If ``table`` is not a plausible table name.

        """
        if not _TABLE_NAME.fullmatch(table):
            raise InvalidInputError("unsupported table name", field="table")
        view = req.get_param("view")
        params = {"view": view} if view else None
        rows = await self._table_client.records(table, params=params)
        resp.media = {
            "table": table,
            "placeholder": any(row.placeholder for row in rows),
            "records": [to_json(row) for row in rows],
        }
        resp.status = falcon.HTTP_200
