"""Tallyman runtime entrypoint.

``tallyman.runtime:create_app`` is the Granian factory. Health probes and
``/content/{table}`` are always served. When ``TALLYMAN_DATABASE_URL`` is
set the participant status endpoint is added as well. Participants are
registered by an external system writing to the ``participants`` table
(see :meth:`tallyman.participants.ParticipantRepository.register`); this
service only evaluates and advances them.

Configuration is driven by environment variables:

- ``TALLYMAN_HOST``: Bind address (default ``0.0.0.0``)
- ``TALLYMAN_PORT``: Listen port (default ``8080``)
- ``TALLYMAN_LOG_LEVEL``: Log level (default ``INFO``)
- ``TALLYMAN_DATABASE_URL``: Database connection URL (optional)

Run the service directly with ``python -m tallyman.runtime``.
"""

from __future__ import annotations

import asyncio
import os
import typing as typ

from tallyman.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid TALLYMAN_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application from the environment."""
    from tallyman.api.app import AppDependencies
    from tallyman.api.app import create_app as _create_api_app
    from tallyman.factory import build_services

    database_url = os.environ.get("TALLYMAN_DATABASE_URL")
    session_factory = None
    if database_url is not None:
        from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

        engine = create_async_engine(database_url)
        session_factory = async_sessionmaker(engine, expire_on_commit=False)

    services = build_services(session_factory)
    return _create_api_app(
        AppDependencies(
            transition_service=services.transition_service,
            table_client=services.table_client,
        )
    )


async def _prepare_storage(database_url: str) -> None:
    from sqlalchemy.ext.asyncio import create_async_engine

    from tallyman.participants import init_participant_storage

    engine = create_async_engine(database_url)
    try:
        await init_participant_storage(engine)
    finally:
        await engine.dispose()


def main() -> None:
    """Start the tallyman server using Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("TALLYMAN_HOST", "0.0.0.0")  # noqa: S104 - bind all interfaces for container
    port = _parse_port(os.environ.get("TALLYMAN_PORT", "8080"))
    log_level_str = os.environ.get("TALLYMAN_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid TALLYMAN_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    database_url = os.environ.get("TALLYMAN_DATABASE_URL")
    if database_url is not None:
        asyncio.run(_prepare_storage(database_url))

    log_info(
        logger,
        "Starting tallyman on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "tallyman.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
