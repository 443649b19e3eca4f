"""Tallyman HTTP API layer.

Public API
----------
create_app
    Application factory that configures the Falcon ASGI app with health
    endpoints and, when collaborators are provided, the participant status
    and content endpoints.
"""

from tallyman.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
