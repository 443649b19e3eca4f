"""Falcon error handlers translating domain failures into HTTP responses.

Usage
-----
Register the handlers on the Falcon app::

    app.add_error_handler(ParticipantNotFoundError, handle_participant_not_found)
    app.add_error_handler(EvaluationIncompleteError, handle_evaluation_incomplete)
    app.add_error_handler(InvalidInputError, handle_invalid_input)

"""

from __future__ import annotations

import typing as typ

import falcon

from tallyman.participants.errors import ParticipantNotFoundError
from tallyman.transitions.errors import EvaluationIncompleteError
from tallyman.transitions.models import EVALUATION_UNAVAILABLE_NOTICE

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = [
    "EvaluationIncompleteError",
    "InvalidInputError",
    "ParticipantNotFoundError",
    "handle_evaluation_incomplete",
    "handle_invalid_input",
    "handle_participant_not_found",
]


class InvalidInputError(Exception):
    """Raised for client validation errors that should map to HTTP 400.

    Attributes
    ----------
    reason
        Human-readable description of the validation failure.
    field
        Optional name of the input field that failed validation.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialize with a validation reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)


async def handle_participant_not_found(
    _req: Request,
    resp: Response,
    ex: ParticipantNotFoundError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``ParticipantNotFoundError`` to an HTTP 404 JSON response."""
    resp.status = falcon.HTTP_404
    resp.media = {
        "title": "Participant not found",
        "description": str(ex),
    }


async def handle_evaluation_incomplete(
    _req: Request,
    resp: Response,
    ex: EvaluationIncompleteError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``EvaluationIncompleteError`` to HTTP 503 with the last-known state.

    The body carries the stored state so clients can keep showing progress
    without mistaking the failure for a score of zero.
    """
    participant = ex.participant
    resp.status = falcon.HTTP_503
    resp.set_header("Retry-After", "60")
    resp.media = {
        "title": "Evaluation incomplete",
        "description": EVALUATION_UNAVAILABLE_NOTICE,
        "identity": participant.identity,
        "state": participant.state.value,
        "waiting_since": (
            participant.waiting_since.isoformat() if participant.waiting_since else None
        ),
        "evaluated": False,
    }


async def handle_invalid_input(
    _req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidInputError`` to an HTTP 400 JSON response."""
    resp.status = falcon.HTTP_400
    media: dict[str, str] = {
        "title": "Invalid input",
        "description": ex.reason,
    }
    if ex.field is not None:
        media["field"] = ex.field
    resp.media = media
