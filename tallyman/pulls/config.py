"""Configuration for the GitHub pull-request source."""

from __future__ import annotations

import dataclasses

from tallyman import __version__
from tallyman.config import env_str

_DEFAULT_API_URL = "https://api.github.com"
_API_VERSION = "2022-11-28"


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubConfig:
    """Settings for the GitHub REST search API.

    The token is optional at construction: its absence is surfaced through
    :attr:`token_present`, which gates evaluation instead of failing startup.
    """

    token: str | None = None
    api_url: str = _DEFAULT_API_URL
    user_agent: str = f"tallyman/{__version__}"
    per_page: int = 100
    max_pages: int = 10

    @property
    def token_present(self) -> bool:
        """Return True when a GitHub token is configured."""
        return bool(self.token and self.token.strip())

    @property
    def search_url(self) -> str:
        """Return the issue search endpoint."""
        return f"{self.api_url.rstrip('/')}/search/issues"

    def headers(self) -> dict[str, str]:
        """Return headers for authenticated search requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": self.user_agent,
            "X-GitHub-Api-Version": _API_VERSION,
        }
        if self.token_present:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @classmethod
    def from_env(cls) -> GitHubConfig:
        """Read ``TALLYMAN_GITHUB_TOKEN`` and ``TALLYMAN_GITHUB_API_URL``."""
        return cls(
            token=env_str("TALLYMAN_GITHUB_TOKEN"),
            api_url=env_str("TALLYMAN_GITHUB_API_URL") or _DEFAULT_API_URL,
        )
