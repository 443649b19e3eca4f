"""Row structures returned by the table client."""

from __future__ import annotations

import typing as typ

import msgspec


class TableRow(msgspec.Struct, kw_only=True, frozen=True):
    """One row of an external content table.

    Attributes
    ----------
    id
        Upstream record id (``placeholder-<table>-<n>`` for fallback rows).
    fields
        Column values keyed by column name.
    created_time
        Upstream creation timestamp, verbatim.
    placeholder
        True when produced by the fallback provider.

    """

    id: str
    fields: dict[str, typ.Any] = msgspec.field(default_factory=dict)
    created_time: str | None = None
    placeholder: bool = False


class _UpstreamRecord(msgspec.Struct, kw_only=True, rename="camel"):
    id: str
    fields: dict[str, typ.Any] = msgspec.field(default_factory=dict)
    created_time: str | None = None


class RecordsPage(msgspec.Struct, kw_only=True):
    """One page of a records listing."""

    records: list[_UpstreamRecord]
    offset: str | None = None

    def rows(self) -> list[TableRow]:
        """Convert the upstream records to :class:`TableRow` values."""
        return [
            TableRow(id=record.id, fields=record.fields, created_time=record.created_time)
            for record in self.records
        ]


def to_json(row: TableRow) -> dict[str, typ.Any]:
    """Return a JSON-ready mapping for ``row``."""
    return {
        "id": row.id,
        "fields": dict(row.fields),
        "created_time": row.created_time,
        "placeholder": row.placeholder,
    }
