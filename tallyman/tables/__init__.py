"""External content tables with placeholder fallback."""

from __future__ import annotations

from .client import HEALTHY_STATUSES, ExternalTableClient
from .config import TableConfig
from .errors import (
    TableError,
    TableResponseShapeError,
    TableUnconfiguredError,
    TableUnhealthyError,
)
from .fallback import FallbackProvider, PlaceholderContentProvider
from .models import TableRow

__all__ = [
    "HEALTHY_STATUSES",
    "ExternalTableClient",
    "FallbackProvider",
    "PlaceholderContentProvider",
    "TableConfig",
    "TableError",
    "TableResponseShapeError",
    "TableRow",
    "TableUnconfiguredError",
    "TableUnhealthyError",
]
