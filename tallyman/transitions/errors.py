"""Errors raised by the state transition service."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from tallyman.participants.models import Participant


class EvaluationIncompleteError(RuntimeError):
    """Raised when an evaluation aborted before a verdict was reached.

    The participant's stored state is untouched; ``participant`` carries that
    last-known snapshot so callers can still show it.
    """

    def __init__(self, participant: Participant, reason: str) -> None:
        """Attach the last-known participant and a short reason."""
        self.participant = participant
        self.reason = reason
        super().__init__(
            f"evaluation of {participant.identity!r} incomplete: {reason}"
        )
