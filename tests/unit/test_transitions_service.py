"""Unit tests for the state transition service."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import typing as typ

import pytest
import pytest_asyncio

from tallyman.config import CampaignConfig
from tallyman.eligibility import EligibilityEngine
from tallyman.participants import (
    Participant,
    ParticipantNotFoundError,
    ParticipantRepository,
    ParticipantState,
)
from tallyman.pulls import (
    ClassificationRules,
    GitHubConfig,
    PullRequestClassifier,
    PullRequestFetchError,
)
from tallyman.transitions import (
    CAMPAIGN_ENDED_NOTICE,
    EVALUATION_UNAVAILABLE_NOTICE,
    EvaluationIncompleteError,
    StateTransitionService,
)
from tallyman.transitions import service as service_module
from tests.fixtures.pull_requests import StubPullRequestSource, merged_items
from tests.helpers import FakeLogger

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

_T0 = dt.datetime(2026, 10, 10, 12, 0, tzinfo=dt.UTC)


@dc.dataclass(slots=True)
class _Clock:
    now: dt.datetime = _T0

    def __call__(self) -> dt.datetime:
        return self.now


@dc.dataclass(slots=True)
class _Harness:
    service: StateTransitionService
    repository: ParticipantRepository
    source: StubPullRequestSource
    clock: _Clock


def _build(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    campaign: CampaignConfig | None = None,
    token: str | None = "ghp_test",
    repository_cls: type[ParticipantRepository] = ParticipantRepository,
) -> _Harness:
    clock = _Clock()
    source = StubPullRequestSource()
    repository = repository_cls(session_factory, clock=clock)
    engine = EligibilityEngine(
        PullRequestClassifier(source, ClassificationRules()), clock=clock
    )
    service = StateTransitionService(
        repository,
        engine,
        campaign=campaign or CampaignConfig(),
        github=GitHubConfig(token=token),
        clock=clock,
    )
    return _Harness(service=service, repository=repository, source=source, clock=clock)


@pytest_asyncio.fixture
async def harness(session_factory: async_sessionmaker[AsyncSession]) -> _Harness:
    """Service over a registered participant ``user-1``."""
    built = _build(session_factory)
    await built.repository.register("user-1", "octocat")
    return built


@pytest.mark.asyncio
async def test_zero_score_stays_registered(harness: _Harness) -> None:
    """Without pull requests the participant stays registered."""
    status = await harness.service.evaluate_and_transition("user-1")

    assert status.state is ParticipantState.REGISTERED, "Expected registered"
    assert (status.score, status.eligible_count) == (0, 0), "Expected a zero score"
    assert status.evaluated, "Expected an evaluation to have run"


@pytest.mark.asyncio
async def test_partial_score_enters_waiting(harness: _Harness) -> None:
    """A partial score moves the participant to waiting at the current time."""
    harness.source.records = merged_items(2)

    status = await harness.service.evaluate_and_transition("user-1")
    stored = await harness.repository.get("user-1")

    assert status.state is ParticipantState.WAITING, "Expected waiting"
    assert status.waiting_since == _T0, "Expected waiting_since to be now"
    assert stored.state is ParticipantState.WAITING, "Expected the state persisted"


@pytest.mark.asyncio
async def test_five_pull_requests_complete_with_capped_score(harness: _Harness) -> None:
    """Five eligible pull requests complete at once with score four."""
    harness.source.records = merged_items(5)

    status = await harness.service.evaluate_and_transition("user-1")

    assert status.state is ParticipantState.COMPLETED, "Expected completed"
    assert (status.score, status.eligible_count) == (4, 5), "Expected capped score"
    assert len(status.scoring_pull_requests) == 4, "Expected four PRs shown"
    assert [pr.id for pr in status.scoring_pull_requests] == [5, 4, 3, 2], (
        "Expected the most recent scoring PRs"
    )


@pytest.mark.asyncio
async def test_waiting_completes_only_after_period(harness: _Harness) -> None:
    """Waiting participants complete once seven days pass with four PRs."""
    harness.source.records = merged_items(2)
    await harness.service.evaluate_and_transition("user-1")

    harness.source.records = merged_items(4)
    harness.clock.now = _T0 + dt.timedelta(days=3)
    early = await harness.service.evaluate_and_transition("user-1")

    harness.clock.now = _T0 + dt.timedelta(days=8)
    late = await harness.service.evaluate_and_transition("user-1")

    assert early.state is ParticipantState.WAITING, "Expected waiting before 7 days"
    assert early.score == 4, "Expected the score still reported"
    assert late.state is ParticipantState.COMPLETED, "Expected completion after 7 days"
    assert late.waiting_since is None, "Expected waiting_since cleared"


@pytest.mark.asyncio
async def test_completed_is_idempotent(harness: _Harness) -> None:
    """Later evaluations of a completed participant change nothing."""
    harness.source.records = merged_items(4)
    await harness.service.evaluate_and_transition("user-1")
    before = await harness.repository.get("user-1")

    harness.source.records = []
    harness.clock.now = _T0 + dt.timedelta(days=1)
    status = await harness.service.evaluate_and_transition("user-1")
    after = await harness.repository.get("user-1")

    assert status.state is ParticipantState.COMPLETED, "Expected completed kept"
    assert status.score == 0, "Expected the current score still evaluated"
    assert after == before, "Expected no write for a completed participant"


@pytest.mark.asyncio
async def test_fetch_failure_leaves_state_unchanged(
    harness: _Harness, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Retrieval failures abort with the last-known state."""
    harness.source.records = merged_items(2)
    await harness.service.evaluate_and_transition("user-1")
    logger = FakeLogger()
    monkeypatch.setattr(service_module, "logger", logger)
    harness.source.error = PullRequestFetchError.upstream("octocat", "timeout")

    with pytest.raises(EvaluationIncompleteError) as excinfo:
        await harness.service.evaluate_and_transition("user-1")

    stored = await harness.repository.get("user-1")
    assert excinfo.value.participant == stored, "Expected the last-known snapshot"
    assert stored.state is ParticipantState.WAITING, "Expected no downgrade"
    assert [call[0] for call in logger.calls] == ["ERROR"], "Expected an error log"


@pytest.mark.asyncio
async def test_unknown_participant_raises(harness: _Harness) -> None:
    """Unknown identities propagate ParticipantNotFoundError."""
    with pytest.raises(ParticipantNotFoundError):
        await harness.service.evaluate_and_transition("ghost")


@pytest.mark.asyncio
async def test_campaign_end_short_circuits(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """After the campaign ends the stored state is returned unevaluated."""
    built = _build(session_factory, campaign=CampaignConfig(end=_T0 - dt.timedelta(days=1)))
    await built.repository.register("user-1", "octocat")
    built.source.records = merged_items(5)

    status = await built.service.evaluate_and_transition("user-1")

    assert not status.evaluated, "Expected evaluation to be skipped"
    assert status.notice == CAMPAIGN_ENDED_NOTICE, "Expected the closed notice"
    assert status.state is ParticipantState.REGISTERED, "Expected the stored state"
    assert status.score is None, "Expected no score without evaluation"
    assert built.source.logins == [], "Expected no pull request fetch"


@pytest.mark.asyncio
async def test_missing_token_short_circuits(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Without a GitHub token no evaluation is attempted."""
    built = _build(session_factory, token=None)
    await built.repository.register("user-1", "octocat")

    status = await built.service.evaluate_and_transition("user-1")

    assert not status.evaluated, "Expected evaluation to be skipped"
    assert status.notice == EVALUATION_UNAVAILABLE_NOTICE, "Expected the notice"
    assert built.source.logins == [], "Expected no pull request fetch"


class _StaleFirstReadRepository(ParticipantRepository):
    """Repository whose first read predates a concurrent completion."""

    stale_reads = 1

    async def get(self, identity: str) -> Participant:
        current = await super().get(identity)
        if self.stale_reads:
            self.stale_reads -= 1
            return dc.replace(
                current, state=ParticipantState.REGISTERED, waiting_since=None
            )
        return current


@pytest.mark.asyncio
async def test_lost_compare_and_set_reports_stored_state(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """A transition beaten by a concurrent writer is not applied twice."""
    built = _build(session_factory, repository_cls=_StaleFirstReadRepository)
    await built.repository.register("user-1", "octocat")
    await built.repository.apply_transition(
        "user-1",
        expected=ParticipantState.REGISTERED,
        target=ParticipantState.COMPLETED,
    )
    built.source.records = merged_items(2)

    status = await built.service.evaluate_and_transition("user-1")
    stored = await built.repository.get("user-1")

    assert status.state is ParticipantState.COMPLETED, "Expected the winning state"
    assert stored.state is ParticipantState.COMPLETED, "Expected no waiting write"
