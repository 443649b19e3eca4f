"""Errors raised by the outbound fetch path."""

from __future__ import annotations


class FetchError(RuntimeError):
    """Base class for failed upstream fetches.

    Attributes
    ----------
    url
        The URL that was requested.
    status_code
        HTTP status from the upstream, when a response was received.

    """

    def __init__(self, message: str, *, url: str, status_code: int | None = None) -> None:
        """Initialise with a message, the requested URL and optional status."""
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class UpstreamTimeoutError(FetchError):
    """Raised when the connect or total timeout elapses."""

    @classmethod
    def for_url(cls, url: str) -> UpstreamTimeoutError:
        """Return a timeout error for ``url``."""
        return cls(f"Upstream request timed out: {url}", url=url)


class UpstreamError(FetchError):
    """Raised for transport failures and non-2xx/3xx responses."""

    @classmethod
    def http_error(cls, url: str, status_code: int) -> UpstreamError:
        """Return an error for an unsuccessful HTTP status."""
        return cls(
            f"Upstream HTTP {status_code} for {url}",
            url=url,
            status_code=status_code,
        )

    @classmethod
    def network_error(cls, url: str, detail: str) -> UpstreamError:
        """Return an error for DNS, connection or TLS failures."""
        return cls(f"Upstream network error for {url}: {detail}", url=url)

    @classmethod
    def invalid_url(cls, url: str, detail: str) -> UpstreamError:
        """Return an error for a URL the HTTP client refuses to build."""
        return cls(f"Invalid upstream URL {url!r}: {detail}", url=url)
