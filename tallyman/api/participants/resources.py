"""Participant status resource.

``GET /participants/{identity}/status`` evaluates the participant and
returns their (possibly just advanced) state. Unknown identities and
incomplete evaluations are mapped to 404 and 503 by the handlers in
:mod:`tallyman.api.errors`.
"""

from __future__ import annotations

import typing as typ

import falcon

from tallyman.transitions.models import to_json

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from tallyman.transitions.service import StateTransitionService

__all__ = ["ParticipantStatusResource"]


class ParticipantStatusResource:
    """Resource serving evaluated participant status."""

    def __init__(self, transition_service: StateTransitionService) -> None:
        """Attach the service that evaluates and transitions participants."""
        self._transition_service = transition_service

    async def on_get(self, _req: Request, resp: Response, *, identity: str) -> None:
        """Handle GET /participants/{identity}/status requests."""
        status = await self._transition_service.evaluate_and_transition(identity)
        resp.media = to_json(status)
        resp.status = falcon.HTTP_200
