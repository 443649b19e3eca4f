"""Unit tests for parsing raw pull request records."""

from __future__ import annotations

import datetime as dt

import pytest

from tallyman.pulls import ClassificationError, PullRequestState, parse_pull_request
from tests.fixtures.pull_requests import SearchItemSpec


def test_parse_merged_pull_request() -> None:
    """A merged search item becomes a MERGED pull request."""
    created = dt.datetime(2026, 10, 3, 9, 30, tzinfo=dt.UTC)
    raw = SearchItemSpec(
        pr_id=42,
        repository="Octo/Reef",
        created_at=created,
        labels=("Hacktoberfest-Accepted",),
    ).build()

    pull_request = parse_pull_request(raw)

    assert pull_request.state is PullRequestState.MERGED, "Expected a merged state"
    assert pull_request.merged, "Expected the merged property"
    assert pull_request.repository == "octo/reef", "Expected a lower-cased slug"
    assert pull_request.created_at == created, "Expected an aware UTC created_at"
    assert pull_request.merged_at == created + dt.timedelta(hours=1), (
        "Expected the merge timestamp"
    )
    assert pull_request.labels == ("hacktoberfest-accepted",), (
        "Expected lower-cased labels"
    )
    assert pull_request.author_login == "octocat", "Expected the author login"


def test_parse_open_draft() -> None:
    """Unmerged items keep their upstream state and draft flag."""
    raw = SearchItemSpec(pr_id=7, state="open", merged=False, draft=True).build()

    pull_request = parse_pull_request(raw)

    assert pull_request.state is PullRequestState.OPEN, "Expected an open state"
    assert pull_request.is_draft, "Expected the draft flag"
    assert pull_request.merged_at is None, "Expected no merge time"


@pytest.mark.parametrize(
    ("mutate", "fragment"),
    [
        (lambda raw: raw.pop("created_at"), "created_at"),
        (lambda raw: raw.update(created_at="yesterday"), "created_at"),
        (lambda raw: raw.update(pull_request=None), "not a pull request"),
        (lambda raw: raw.update(state="reopened"), "unknown state"),
        (lambda raw: raw.update(repository_url="https://example.test/x"), "repository"),
    ],
)
def test_malformed_records_raise(mutate: object, fragment: str) -> None:
    """Malformed items raise ClassificationError naming the record."""
    raw = SearchItemSpec(pr_id=99, merged=False).build()
    mutate(raw)  # type: ignore[operator]

    with pytest.raises(ClassificationError, match=fragment) as excinfo:
        parse_pull_request(raw)

    assert excinfo.value.record_id == 99, "Expected the offending record id"


def test_non_mapping_record_raises() -> None:
    """Records that are not objects are rejected."""
    with pytest.raises(ClassificationError):
        parse_pull_request(["not", "a", "record"])
