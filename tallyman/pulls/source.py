"""Sources of raw pull request records for a participant."""

from __future__ import annotations

import typing as typ

from tallyman.http import FetchError, RequestSpec
from tallyman.logging import get_logger, log_debug
from tallyman.pulls.errors import PullRequestFetchError

if typ.TYPE_CHECKING:
    from tallyman.config import CampaignConfig
    from tallyman.http import CachingFetcher
    from tallyman.pulls.config import GitHubConfig

logger = get_logger(__name__)

_SEARCH_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class PullRequestSource(typ.Protocol):
    """Interface for retrieving a participant's raw pull request records."""

    async def fetch_pull_requests(self, login: str) -> list[dict[str, typ.Any]]:
        """Return every raw record authored by ``login``.

        Raises
        ------
        PullRequestFetchError
            If the records could not be retrieved. An empty list always means
            the participant genuinely has no pull requests.

        """
        ...


class GitHubPullRequestSource:
    """Pull request search backed by the GitHub REST issue search API.

    Requests go through the shared :class:`~tallyman.http.CachingFetcher`,
    so repeated evaluations inside the cache TTL are served locally and
    misses respect the per-host rate limit.
    """

    def __init__(
        self,
        config: GitHubConfig,
        *,
        fetcher: CachingFetcher,
        campaign: CampaignConfig,
    ) -> None:
        """Store the configuration, fetcher and campaign window."""
        self._config = config
        self._fetcher = fetcher
        self._campaign = campaign

    def search_query(self, login: str) -> str:
        """Return the search expression selecting ``login``'s pull requests."""
        terms = ["type:pr", f"author:{login}"]
        start, end = self._campaign.start, self._campaign.end
        if start is not None or end is not None:
            lower = start.strftime(_SEARCH_DATE_FORMAT) if start else "*"
            upper = end.strftime(_SEARCH_DATE_FORMAT) if end else "*"
            terms.append(f"created:{lower}..{upper}")
        return " ".join(terms)

    async def fetch_pull_requests(self, login: str) -> list[dict[str, typ.Any]]:
        """Page through the search results for ``login``."""
        records: list[dict[str, typ.Any]] = []
        for page in range(1, self._config.max_pages + 1):
            items, total = await self._fetch_page(login, page)
            records.extend(items)
            if len(items) < self._config.per_page or len(records) >= total:
                break
        log_debug(logger, "Fetched %d pull request records for %s", len(records), login)
        return records

    async def _fetch_page(
        self, login: str, page: int
    ) -> tuple[list[dict[str, typ.Any]], int]:
        spec = RequestSpec(
            url=self._config.search_url,
            params={
                "q": self.search_query(login),
                "per_page": self._config.per_page,
                "page": page,
            },
            headers=self._config.headers(),
        )
        try:
            result = await self._fetcher.fetch(spec)
        except FetchError as exc:
            raise PullRequestFetchError.upstream(login, str(exc)) from exc

        payload = result.payload
        if not isinstance(payload, dict):
            raise PullRequestFetchError.malformed_listing(login, "items")
        items = payload.get("items")
        if not isinstance(items, list):
            raise PullRequestFetchError.malformed_listing(login, "items")
        total = payload.get("total_count")
        if not isinstance(total, int):
            total = len(items)
        return items, total
