"""Participant state machine driven by eligibility verdicts."""

from __future__ import annotations

from .errors import EvaluationIncompleteError
from .models import (
    CAMPAIGN_ENDED_NOTICE,
    EVALUATION_UNAVAILABLE_NOTICE,
    ParticipantStatus,
    Transition,
)
from .service import StateTransitionService, decide_transition

__all__ = [
    "CAMPAIGN_ENDED_NOTICE",
    "EVALUATION_UNAVAILABLE_NOTICE",
    "EvaluationIncompleteError",
    "ParticipantStatus",
    "StateTransitionService",
    "Transition",
    "decide_transition",
]
