"""Liveness and readiness probe resources.

``/health`` never touches collaborators. ``/ready`` reports whether the
content table is configured, but still answers 200 since placeholder
content keeps the service usable without it.
"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from tallyman.tables.client import ExternalTableClient

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness probe resource returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe resource returning ``{"status": "ready"}``."""

    def __init__(self, table_client: ExternalTableClient | None = None) -> None:
        """Optionally attach the table client whose configuration is reported."""
        self._table_client = table_client

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests."""
        media: dict[str, typ.Any] = {"status": "ready"}
        if self._table_client is not None:
            media["content_source"] = (
                "table" if self._table_client.configured else "placeholder"
            )
        resp.media = media
        resp.status = HTTPStatus.OK
