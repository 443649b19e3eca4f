"""Eligibility verdict types and campaign thresholds."""

from __future__ import annotations

import datetime as dt

import msgspec

from tallyman.pulls.models import PullRequest

COMPLETION_THRESHOLD = 4
WAITING_PERIOD = dt.timedelta(days=7)


class EligibilityVerdict(msgspec.Struct, kw_only=True, frozen=True):
    """Outcome of evaluating one participant at one instant.

    Attributes
    ----------
    score
        Eligible count capped at :data:`COMPLETION_THRESHOLD`.
    eligible_count
        Number of scoring pull requests, uncapped.
    is_waiting_period_satisfied
        True only for a waiting participant whose waiting period has elapsed.
    scoring_pull_requests
        Pull requests counted toward the score, most recent first.
    non_scoring_pull_requests
        Non-spam pull requests that do not count, most recent first.
    spam_pull_requests
        Pull requests flagged as spam, most recent first.
    evaluated_at
        Instant the verdict was computed for.

    """

    score: int
    eligible_count: int
    is_waiting_period_satisfied: bool
    evaluated_at: dt.datetime
    scoring_pull_requests: tuple[PullRequest, ...] = ()
    non_scoring_pull_requests: tuple[PullRequest, ...] = ()
    spam_pull_requests: tuple[PullRequest, ...] = ()

    @property
    def meets_threshold(self) -> bool:
        """Return True when the score reaches the completion threshold."""
        return self.score >= COMPLETION_THRESHOLD
