"""Participant registration, state and compare-and-set persistence."""

from __future__ import annotations

from .errors import (
    InvalidTransitionError,
    ParticipantAlreadyRegisteredError,
    ParticipantNotFoundError,
    ParticipantStateConflictError,
    TimezoneAwareRequiredError,
)
from .models import Participant, ParticipantState
from .storage import (
    Base,
    ParticipantRecord,
    ParticipantRepository,
    UTCDateTime,
    init_participant_storage,
)

__all__ = [
    "Base",
    "InvalidTransitionError",
    "Participant",
    "ParticipantAlreadyRegisteredError",
    "ParticipantNotFoundError",
    "ParticipantRecord",
    "ParticipantRepository",
    "ParticipantState",
    "ParticipantStateConflictError",
    "TimezoneAwareRequiredError",
    "UTCDateTime",
    "init_participant_storage",
]
