"""Participant snapshot builders for unit tests."""

from __future__ import annotations

import datetime as dt

from tallyman.participants import Participant, ParticipantState

REGISTERED_AT = dt.datetime(2026, 10, 1, 8, 0, tzinfo=dt.UTC)


def participant(
    state: ParticipantState = ParticipantState.REGISTERED,
    *,
    waiting_since: dt.datetime | None = None,
    identity: str = "user-1",
    github_login: str = "octocat",
) -> Participant:
    """Return a participant snapshot in ``state``."""
    return Participant(
        identity=identity,
        github_login=github_login,
        state=state,
        waiting_since=waiting_since,
        created_at=REGISTERED_AT,
        updated_at=REGISTERED_AT,
    )
