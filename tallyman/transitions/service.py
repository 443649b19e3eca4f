"""Drive participants through registered, waiting and completed."""

from __future__ import annotations

import typing as typ

from tallyman.common.time import utcnow
from tallyman.logging import get_logger, log_exception, log_info
from tallyman.participants.errors import ParticipantStateConflictError
from tallyman.participants.models import ParticipantState
from tallyman.pulls.errors import PullRequestFetchError
from tallyman.transitions.errors import EvaluationIncompleteError
from tallyman.transitions.models import (
    CAMPAIGN_ENDED_NOTICE,
    EVALUATION_UNAVAILABLE_NOTICE,
    ParticipantStatus,
    Transition,
    shown_scoring,
)

if typ.TYPE_CHECKING:
    import datetime as dt

    from tallyman.common.time import Clock
    from tallyman.config import CampaignConfig
    from tallyman.eligibility.engine import EligibilityEngine
    from tallyman.eligibility.models import EligibilityVerdict
    from tallyman.participants.models import Participant
    from tallyman.participants.storage import ParticipantRepository
    from tallyman.pulls.config import GitHubConfig

logger = get_logger(__name__)


def decide_transition(
    participant: Participant,
    verdict: EligibilityVerdict,
    now: dt.datetime,
) -> Transition | None:
    """Return the transition the verdict calls for, or ``None``.

    ``completed`` is terminal. A registered participant with a full score
    completes immediately; with a partial score they start waiting. A
    waiting participant completes only once the waiting period has elapsed
    and the score is still full.
    """
    match participant.state:
        case ParticipantState.REGISTERED if verdict.meets_threshold:
            return Transition(
                source=ParticipantState.REGISTERED, target=ParticipantState.COMPLETED
            )
        case ParticipantState.REGISTERED if verdict.score > 0:
            return Transition(
                source=ParticipantState.REGISTERED,
                target=ParticipantState.WAITING,
                waiting_since=now,
            )
        case ParticipantState.WAITING if (
            verdict.meets_threshold and verdict.is_waiting_period_satisfied
        ):
            return Transition(
                source=ParticipantState.WAITING, target=ParticipantState.COMPLETED
            )
        case _:
            return None


def _status_from_verdict(
    participant: Participant, verdict: EligibilityVerdict
) -> ParticipantStatus:
    return ParticipantStatus(
        identity=participant.identity,
        state=participant.state,
        evaluated=True,
        waiting_since=participant.waiting_since,
        score=verdict.score,
        eligible_count=verdict.eligible_count,
        scoring_pull_requests=shown_scoring(verdict.scoring_pull_requests),
        non_scoring_pull_requests=verdict.non_scoring_pull_requests,
    )


def _unevaluated_status(participant: Participant, notice: str) -> ParticipantStatus:
    return ParticipantStatus(
        identity=participant.identity,
        state=participant.state,
        evaluated=False,
        waiting_since=participant.waiting_since,
        notice=notice,
    )


class StateTransitionService:
    """Evaluates a participant and persists any resulting state change.

    Every call runs the eligibility engine, even when no transition follows,
    so the returned status always reflects current upstream data. State is
    only written after a complete verdict.
    """

    def __init__(  # noqa: PLR0913
        self,
        repository: ParticipantRepository,
        engine: EligibilityEngine,
        *,
        campaign: CampaignConfig,
        github: GitHubConfig,
        clock: Clock = utcnow,
    ) -> None:
        """Wire the repository, engine and campaign gate inputs."""
        self._repository = repository
        self._engine = engine
        self._campaign = campaign
        self._github = github
        self._clock = clock

    def gate_notice(self, now: dt.datetime) -> str | None:
        """Return why evaluation is skipped at ``now``, or ``None`` to proceed."""
        if self._campaign.has_ended(now):
            return CAMPAIGN_ENDED_NOTICE
        if not self._github.token_present:
            return EVALUATION_UNAVAILABLE_NOTICE
        return None

    async def evaluate_and_transition(self, identity: str) -> ParticipantStatus:
        """Evaluate ``identity`` and apply at most one transition.

        Raises
        ------
        ParticipantNotFoundError
            If ``identity`` is not registered.
        EvaluationIncompleteError
            If pull requests could not be fetched; stored state is unchanged.

        """
        participant = await self._repository.get(identity)
        now = self._clock()

        notice = self.gate_notice(now)
        if notice is not None:
            return _unevaluated_status(participant, notice)

        try:
            verdict = await self._engine.evaluate(participant, now=now)
        except PullRequestFetchError as exc:
            log_exception(logger, f"Evaluation of {identity} aborted", exc)
            raise EvaluationIncompleteError(participant, str(exc)) from exc

        transition = decide_transition(participant, verdict, now)
        if transition is not None:
            participant = await self._apply(participant, transition)
        return _status_from_verdict(participant, verdict)

    async def _apply(
        self, participant: Participant, transition: Transition
    ) -> Participant:
        try:
            updated = await self._repository.apply_transition(
                participant.identity,
                expected=transition.source,
                target=transition.target,
                waiting_since=transition.waiting_since,
            )
        except ParticipantStateConflictError as exc:
            log_info(
                logger,
                "Transition %s -> %s for %s superseded by concurrent write (now %s)",
                transition.source.value,
                transition.target.value,
                participant.identity,
                exc.actual.value,
            )
            return await self._repository.get(participant.identity)
        log_info(
            logger,
            "Participant %s moved %s -> %s",
            participant.identity,
            transition.source.value,
            transition.target.value,
        )
        return updated
