"""Partition a participant's pull requests into scoring and non-scoring sets."""

from __future__ import annotations

import dataclasses
import typing as typ

from tallyman.logging import get_logger, log_warning
from tallyman.pulls.errors import ClassificationError
from tallyman.pulls.models import PullRequest, parse_pull_request

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from tallyman.pulls.rules import ClassificationRules
    from tallyman.pulls.source import PullRequestSource

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class ClassifiedPullRequests:
    """Result of classifying one participant's pull requests.

    Every tuple is ordered most recent first. ``scoring`` and ``non_scoring``
    partition the non-spam pull requests; ``spam`` holds the rest.
    ``rejected`` counts upstream records that could not be parsed.
    """

    scoring: tuple[PullRequest, ...] = ()
    non_scoring: tuple[PullRequest, ...] = ()
    spam: tuple[PullRequest, ...] = ()
    rejected: int = 0


def _recency_key(pull_request: PullRequest) -> tuple[float, int]:
    return (pull_request.created_at.timestamp(), pull_request.id)


def most_recent_first(
    pull_requests: cabc.Iterable[PullRequest],
) -> list[PullRequest]:
    """Sort by creation time descending, breaking ties by id descending."""
    return sorted(pull_requests, key=_recency_key, reverse=True)


class PullRequestClassifier:
    """Fetches and classifies pull requests for a login.

    Classification is recomputed from the raw records on every call; nothing
    about a pull request's spam or validity status is stored.
    """

    def __init__(self, source: PullRequestSource, rules: ClassificationRules) -> None:
        """Bind the record source and the classification rules."""
        self._source = source
        self._rules = rules

    @property
    def rules(self) -> ClassificationRules:
        """Rules applied during classification."""
        return self._rules

    async def classify(self, login: str) -> ClassifiedPullRequests:
        """Fetch and classify every pull request authored by ``login``.

        Raises
        ------
        PullRequestFetchError
            Propagated from the source when retrieval fails.

        """
        raw_records = await self._source.fetch_pull_requests(login)
        parsed, rejected = self._parse_all(raw_records, login=login)
        return self.partition(parsed, rejected=rejected)

    def partition(
        self, pull_requests: cabc.Iterable[PullRequest], *, rejected: int = 0
    ) -> ClassifiedPullRequests:
        """Split already-parsed pull requests by the configured rules."""
        scoring: list[PullRequest] = []
        non_scoring: list[PullRequest] = []
        spam: list[PullRequest] = []
        for pull_request in most_recent_first(pull_requests):
            if self._rules.is_spammy(pull_request):
                spam.append(pull_request)
            elif self._rules.is_valid(pull_request):
                scoring.append(pull_request)
            else:
                non_scoring.append(pull_request)
        return ClassifiedPullRequests(
            scoring=tuple(scoring),
            non_scoring=tuple(non_scoring),
            spam=tuple(spam),
            rejected=rejected,
        )

    @staticmethod
    def _parse_all(
        raw_records: cabc.Iterable[typ.Any], *, login: str
    ) -> tuple[list[PullRequest], int]:
        parsed: dict[int, PullRequest] = {}
        rejected = 0
        for raw in raw_records:
            try:
                pull_request = parse_pull_request(raw)
            except ClassificationError as exc:
                rejected += 1
                log_warning(
                    logger,
                    "Skipping pull request record %s for %s: %s",
                    exc.record_id,
                    login,
                    exc,
                )
                continue
            parsed[pull_request.id] = pull_request
        return list(parsed.values()), rejected
