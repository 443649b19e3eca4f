"""Compute eligibility verdicts from classified pull requests."""

from __future__ import annotations

import typing as typ

from tallyman.common.time import ensure_utc, utcnow
from tallyman.eligibility.models import (
    COMPLETION_THRESHOLD,
    WAITING_PERIOD,
    EligibilityVerdict,
)
from tallyman.logging import get_logger, log_warning
from tallyman.participants.models import ParticipantState

if typ.TYPE_CHECKING:
    import datetime as dt

    from tallyman.common.time import Clock
    from tallyman.participants.models import Participant
    from tallyman.pulls.classifier import PullRequestClassifier

logger = get_logger(__name__)


def waiting_period_satisfied(participant: Participant, now: dt.datetime) -> bool:
    """Return True when ``participant`` has waited at least the full period."""
    if participant.state is not ParticipantState.WAITING:
        return False
    if participant.waiting_since is None:
        return False
    return now - participant.waiting_since >= WAITING_PERIOD


class EligibilityEngine:
    """Turns a participant's pull requests into an :class:`EligibilityVerdict`."""

    def __init__(
        self, classifier: PullRequestClassifier, *, clock: Clock = utcnow
    ) -> None:
        """Bind the classifier and the clock used when ``now`` is omitted."""
        self._classifier = classifier
        self._clock = clock

    async def evaluate(
        self, participant: Participant, *, now: dt.datetime | None = None
    ) -> EligibilityVerdict:
        """Classify the participant's pull requests and score them.

        Raises
        ------
        PullRequestFetchError
            When pull requests could not be retrieved; no partial verdict is
            produced.

        """
        moment = ensure_utc(now, field="now") if now is not None else self._clock()
        classified = await self._classifier.classify(participant.github_login)
        if classified.rejected:
            log_warning(
                logger,
                "Scored %s without %d unreadable pull request records",
                participant.identity,
                classified.rejected,
            )
        eligible_count = len(classified.scoring)
        return EligibilityVerdict(
            score=min(eligible_count, COMPLETION_THRESHOLD),
            eligible_count=eligible_count,
            is_waiting_period_satisfied=waiting_period_satisfied(participant, moment),
            evaluated_at=moment,
            scoring_pull_requests=classified.scoring,
            non_scoring_pull_requests=classified.non_scoring,
            spam_pull_requests=classified.spam,
        )
