"""Consumer-facing participant status and transition descriptors."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import typing as typ

import msgspec

from tallyman.eligibility.models import COMPLETION_THRESHOLD
from tallyman.participants.models import ParticipantState
from tallyman.pulls.models import PullRequest
from tallyman.pulls.models import to_json as pull_request_to_json

CAMPAIGN_ENDED_NOTICE = "Registrations are now closed."
EVALUATION_UNAVAILABLE_NOTICE = (
    "Progress updates are unavailable right now; showing your last known state."
)


@dc.dataclass(frozen=True, slots=True)
class Transition:
    """A state change the service intends to write."""

    source: ParticipantState
    target: ParticipantState
    waiting_since: dt.datetime | None = None


class ParticipantStatus(msgspec.Struct, kw_only=True, frozen=True):
    """What a participant sees after an evaluation request.

    ``score`` and ``eligible_count`` are ``None`` when evaluation did not
    run, in which case ``notice`` explains why.
    """

    identity: str
    state: ParticipantState
    evaluated: bool
    waiting_since: dt.datetime | None = None
    score: int | None = None
    eligible_count: int | None = None
    scoring_pull_requests: tuple[PullRequest, ...] = ()
    non_scoring_pull_requests: tuple[PullRequest, ...] = ()
    notice: str | None = None


def shown_scoring(pull_requests: tuple[PullRequest, ...]) -> tuple[PullRequest, ...]:
    """Return the scoring pull requests displayed to the participant."""
    return pull_requests[:COMPLETION_THRESHOLD]


def to_json(status: ParticipantStatus) -> dict[str, typ.Any]:
    """Return a JSON-ready mapping for ``status``."""
    return {
        "identity": status.identity,
        "state": status.state.value,
        "evaluated": status.evaluated,
        "waiting_since": (
            status.waiting_since.isoformat() if status.waiting_since else None
        ),
        "score": status.score,
        "eligible_count": status.eligible_count,
        "scoring_pull_requests": [
            pull_request_to_json(pr) for pr in status.scoring_pull_requests
        ],
        "non_scoring_pull_requests": [
            pull_request_to_json(pr) for pr in status.non_scoring_pull_requests
        ],
        "notice": status.notice,
    }
