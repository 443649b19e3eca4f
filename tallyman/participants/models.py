"""Participant state and snapshot types."""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

if typ.TYPE_CHECKING:
    import datetime as dt


class ParticipantState(enum.StrEnum):
    """Campaign progress of a participant.

    ``registered`` is initial and ``completed`` is terminal.
    """

    REGISTERED = "registered"
    WAITING = "waiting"
    COMPLETED = "completed"


@dc.dataclass(frozen=True, slots=True)
class Participant:
    """Immutable snapshot of a stored participant.

    ``waiting_since`` is set exactly when ``state`` is ``waiting``.
    """

    identity: str
    github_login: str
    state: ParticipantState
    created_at: dt.datetime
    updated_at: dt.datetime
    waiting_since: dt.datetime | None = None
