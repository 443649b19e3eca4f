"""Errors for pull-request retrieval and classification."""

from __future__ import annotations


class PullRequestFetchError(RuntimeError):
    """Raised when pull requests could not be retrieved at all.

    This is distinct from an empty result: callers must not treat it as
    "zero eligible pull requests".
    """

    def __init__(self, message: str, *, login: str) -> None:
        """Initialise with a message and the login being fetched."""
        self.login = login
        super().__init__(message)

    @classmethod
    def upstream(cls, login: str, detail: str) -> PullRequestFetchError:
        """Return an error wrapping an upstream fetch failure."""
        return cls(f"Could not fetch pull requests for {login}: {detail}", login=login)

    @classmethod
    def malformed_listing(cls, login: str, field: str) -> PullRequestFetchError:
        """Return an error for a listing missing its item collection."""
        return cls(
            f"Pull request listing for {login} missing expected field: {field}",
            login=login,
        )


class ClassificationError(ValueError):
    """Raised when a single upstream record cannot be interpreted."""

    def __init__(self, message: str, *, record_id: object = None) -> None:
        """Initialise with a message and the offending record's id, if known."""
        self.record_id = record_id
        super().__init__(message)

    @classmethod
    def malformed(cls, detail: str, *, record_id: object = None) -> ClassificationError:
        """Return an error describing why the record was rejected."""
        return cls(f"Malformed pull request record: {detail}", record_id=record_id)
