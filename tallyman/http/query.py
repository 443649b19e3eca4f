"""Query-string encoding with nested array/object parameters.

The table API expects Rails-style brackets rather than repeated keys:

>>> encode_query({"fields": ["Name", "Date"], "maxRecords": 3})
'fields%5B%5D=Name&fields%5B%5D=Date&maxRecords=3'
>>> encode_query({"sort": [{"field": "Date", "direction": "desc"}]})
'sort%5B0%5D%5Bfield%5D=Date&sort%5B0%5D%5Bdirection%5D=desc'

Keys keep their insertion order so equal parameter mappings always encode
to the same string, which the fetcher relies on for cache keys.
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ
from urllib.parse import quote

type QueryParams = cabc.Mapping[str, typ.Any]


def _scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _pairs(key: str, value: object) -> cabc.Iterator[tuple[str, str]]:
    if value is None:
        return
    if isinstance(value, cabc.Mapping):
        for sub_key, sub_value in value.items():
            yield from _pairs(f"{key}[{sub_key}]", sub_value)
        return
    if isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            if isinstance(item, (cabc.Mapping, list, tuple)):
                yield from _pairs(f"{key}[{index}]", item)
            elif item is not None:
                yield (f"{key}[]", _scalar(item))
        return
    yield (key, _scalar(value))


def flatten_query(params: QueryParams | None) -> list[tuple[str, str]]:
    """Flatten nested ``params`` into ordered ``(key, value)`` pairs.

    ``None`` values are omitted so optional parameters can be passed through
    unconditionally.
    """
    if not params:
        return []
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        pairs.extend(_pairs(str(key), value))
    return pairs


def encode_query(params: QueryParams | None) -> str:
    """Encode ``params`` into a percent-escaped query string."""
    return "&".join(
        f"{quote(key, safe='')}={quote(value, safe='')}"
        for key, value in flatten_query(params)
    )
