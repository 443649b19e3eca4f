"""Application factory for the tallyman Falcon ASGI application.

``create_app()`` always registers the health probes. Participant and
content endpoints are added when their collaborators are supplied.

Usage
-----
Create a health-only app::

    app = create_app()

Create a full app::

    from tallyman.api.app import AppDependencies, create_app

    deps = AppDependencies(
        transition_service=services.transition_service,
        table_client=services.table_client,
    )
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from tallyman.api.errors import (
    EvaluationIncompleteError,
    InvalidInputError,
    ParticipantNotFoundError,
    handle_evaluation_incomplete,
    handle_invalid_input,
    handle_participant_not_found,
)
from tallyman.api.health.resources import HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    from tallyman.tables.client import ExternalTableClient
    from tallyman.transitions.service import StateTransitionService

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Collaborators for the domain endpoints.

    Attributes
    ----------
    transition_service
        Enables ``GET /participants/{identity}/status``.
    table_client
        Enables ``GET /content/{table}``.

    """

    transition_service: StateTransitionService | None = None
    table_client: ExternalTableClient | None = None


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional collaborators. When ``None``, only ``/health`` and
        ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    deps = dependencies or AppDependencies()
    app = falcon.asgi.App()  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(deps.table_client))

    if deps.transition_service is not None:
        from tallyman.api.participants.resources import ParticipantStatusResource

        app.add_route(
            "/participants/{identity}/status",
            ParticipantStatusResource(deps.transition_service),
        )

    if deps.table_client is not None:
        from tallyman.api.content.resources import ContentResource

        app.add_route("/content/{table}", ContentResource(deps.table_client))

    app.add_error_handler(ParticipantNotFoundError, handle_participant_not_found)
    app.add_error_handler(EvaluationIncompleteError, handle_evaluation_incomplete)
    app.add_error_handler(InvalidInputError, handle_invalid_input)

    return app
