"""Unit tests for pull request classification."""

from __future__ import annotations

import datetime as dt

import pytest

from tallyman.pulls import ClassificationRules, PullRequestClassifier, PullRequestFetchError
from tallyman.pulls import classifier as classifier_module
from tests.fixtures.pull_requests import SearchItemSpec, StubPullRequestSource
from tests.helpers import FakeLogger

_T0 = dt.datetime(2026, 10, 10, 12, 0, tzinfo=dt.UTC)


@pytest.mark.asyncio
async def test_partitions_into_buckets() -> None:
    """Records land in exactly one of scoring, non-scoring or spam."""
    source = StubPullRequestSource(
        [
            SearchItemSpec(pr_id=1).build(),
            SearchItemSpec(pr_id=2, merged=False, state="open").build(),
            SearchItemSpec(pr_id=3, labels=("spam",)).build(),
        ]
    )
    classifier = PullRequestClassifier(source, ClassificationRules())

    result = await classifier.classify("octocat")

    assert [pr.id for pr in result.scoring] == [1], "Expected the merged PR to score"
    assert [pr.id for pr in result.non_scoring] == [2], "Expected the open PR"
    assert [pr.id for pr in result.spam] == [3], "Expected the spam-labelled PR"
    assert source.logins == ["octocat"], "Expected the login passed to the source"


@pytest.mark.asyncio
async def test_orders_most_recent_first_with_id_tiebreak() -> None:
    """Buckets are sorted by created_at descending, then id descending."""
    source = StubPullRequestSource(
        [
            SearchItemSpec(pr_id=5, created_at=_T0).build(),
            SearchItemSpec(pr_id=9, created_at=_T0).build(),
            SearchItemSpec(pr_id=7, created_at=_T0 + dt.timedelta(days=1)).build(),
            SearchItemSpec(pr_id=1, created_at=_T0 - dt.timedelta(days=1)).build(),
        ]
    )
    classifier = PullRequestClassifier(source, ClassificationRules())

    result = await classifier.classify("octocat")

    assert [pr.id for pr in result.scoring] == [7, 9, 5, 1], (
        "Expected newest first with higher ids winning ties"
    )


@pytest.mark.asyncio
async def test_malformed_record_skipped_and_logged(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """One bad record is excluded while the rest are classified."""
    logger = FakeLogger()
    monkeypatch.setattr(classifier_module, "logger", logger)
    broken = SearchItemSpec(pr_id=2).build()
    broken["created_at"] = "not-a-date"
    source = StubPullRequestSource([SearchItemSpec(pr_id=1).build(), broken])
    classifier = PullRequestClassifier(source, ClassificationRules())

    result = await classifier.classify("octocat")

    assert [pr.id for pr in result.scoring] == [1], "Expected the good record kept"
    assert result.rejected == 1, "Expected one rejected record"
    warnings = logger.messages("WARNING")
    assert len(warnings) == 1, "Expected a warning for the bad record"
    assert "2" in warnings[0], "Expected the record id in the warning"


@pytest.mark.asyncio
async def test_duplicate_records_counted_once() -> None:
    """The same pull request returned twice is classified once."""
    item = SearchItemSpec(pr_id=4).build()
    classifier = PullRequestClassifier(
        StubPullRequestSource([item, dict(item)]), ClassificationRules()
    )

    result = await classifier.classify("octocat")

    assert [pr.id for pr in result.scoring] == [4], "Expected a single entry"


@pytest.mark.asyncio
async def test_fetch_failure_propagates() -> None:
    """Fetch failures are not turned into empty classifications."""
    error = PullRequestFetchError.upstream("octocat", "timeout")
    classifier = PullRequestClassifier(
        StubPullRequestSource(error=error), ClassificationRules()
    )

    with pytest.raises(PullRequestFetchError):
        await classifier.classify("octocat")


@pytest.mark.asyncio
async def test_classification_is_deterministic() -> None:
    """Unchanged upstream data yields identical buckets."""
    records = [SearchItemSpec(pr_id=i).build() for i in range(1, 6)]
    classifier = PullRequestClassifier(StubPullRequestSource(records), ClassificationRules())

    first = await classifier.classify("octocat")
    second = await classifier.classify("octocat")

    assert first == second, "Expected repeated classification to agree"
