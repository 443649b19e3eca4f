"""Errors raised, and absorbed, by the external table client."""

from __future__ import annotations


class TableError(Exception):
    """Base class for table client failures that trigger the fallback."""

    def __init__(self, message: str, *, table_name: str) -> None:
        """Initialise with a message and the table concerned."""
        self.table_name = table_name
        super().__init__(message)


class TableUnconfiguredError(TableError):
    """Raised when the API key or app id is missing."""

    @classmethod
    def missing_credentials(cls, table_name: str) -> TableUnconfiguredError:
        """Return an error naming the variables that must be set."""
        return cls(
            "TALLYMAN_AIRTABLE_API_KEY and TALLYMAN_AIRTABLE_APP_ID are required "
            f"to read table {table_name!r}",
            table_name=table_name,
        )


class TableUnhealthyError(TableError):
    """Raised when the health probe does not report success."""

    def __init__(
        self, message: str, *, table_name: str, status_code: int | None = None
    ) -> None:
        """Initialise with the probe status, when one was received."""
        self.status_code = status_code
        super().__init__(message, table_name=table_name)

    @classmethod
    def unexpected_status(cls, table_name: str, status_code: int) -> TableUnhealthyError:
        """Return an error for a probe answered with a non-healthy status."""
        return cls(
            f"Health probe for table {table_name!r} returned HTTP {status_code}",
            table_name=table_name,
            status_code=status_code,
        )

    @classmethod
    def unreachable(cls, table_name: str, detail: str) -> TableUnhealthyError:
        """Return an error for a probe that failed at the transport level."""
        return cls(
            f"Health probe for table {table_name!r} failed: {detail}",
            table_name=table_name,
        )


class TableResponseShapeError(TableError):
    """Raised when a records page is missing expected fields."""

    @classmethod
    def missing(cls, table_name: str, field: str) -> TableResponseShapeError:
        """Return an error for a missing response field."""
        return cls(
            f"Records response for table {table_name!r} missing field: {field}",
            table_name=table_name,
        )
