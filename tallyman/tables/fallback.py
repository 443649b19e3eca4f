"""Placeholder content served when the table service cannot be used.

The provider never raises: a missing or broken placeholder file degrades to
built-in rows so callers always receive some content for a table.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from tallyman.logging import get_logger, log_warning
from tallyman.tables.models import TableRow

logger = get_logger(__name__)

YAML_VERSION = (1, 2)
_BUILTIN_ROW_COUNT = 3

type PlaceholderTables = dict[str, list[dict[str, typ.Any]]]
_PLACEHOLDER_SCHEMA = dict[str, list[dict[str, typ.Any]]]


@typ.runtime_checkable
class FallbackProvider(typ.Protocol):
    """Source of substitute rows for an unavailable table."""

    def provide(self, table_name: str) -> list[TableRow]:
        """Return placeholder rows for ``table_name``; never raises."""
        ...


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml


def _builtin_rows(table_name: str) -> list[TableRow]:
    return [
        TableRow(
            id=f"placeholder-{table_name}-{index}",
            fields={
                "Name": f"{table_name} {index}",
                "Description": "Content is temporarily unavailable.",
            },
            placeholder=True,
        )
        for index in range(1, _BUILTIN_ROW_COUNT + 1)
    ]


class PlaceholderContentProvider:
    """Serve placeholder rows from a YAML file or built-in defaults.

    The YAML document maps table names to lists of field mappings::

        Meetups:
          - Name: Community meetup
            Location: Online

    Tables absent from the file get generic built-in rows.

    Parameters
    ----------
    path
        Optional YAML file. Loaded lazily on first use and kept for the
        lifetime of the provider.

    """

    def __init__(self, path: Path | str | None = None) -> None:
        """Remember where to load placeholder content from."""
        self._path = Path(path) if path is not None else None
        self._tables: PlaceholderTables | None = None

    def provide(self, table_name: str) -> list[TableRow]:
        """Return placeholder rows for ``table_name``."""
        configured = self._load().get(table_name)
        if not configured:
            return _builtin_rows(table_name)
        return [
            TableRow(
                id=f"placeholder-{table_name}-{index}",
                fields=dict(fields),
                placeholder=True,
            )
            for index, fields in enumerate(configured, start=1)
        ]

    def _load(self) -> PlaceholderTables:
        if self._tables is None:
            self._tables = self._read_file()
        return self._tables

    def _read_file(self) -> PlaceholderTables:
        if self._path is None:
            return {}
        try:
            loaded = _yaml().load(self._path.read_text(encoding="utf-8"))
            if loaded is None:
                return {}
            return msgspec.convert(loaded, type=_PLACEHOLDER_SCHEMA)
        except (OSError, YAMLError, msgspec.ValidationError) as exc:
            log_warning(
                logger,
                "Ignoring placeholder file %s, using built-in rows: %s",
                self._path,
                exc,
            )
            return {}
