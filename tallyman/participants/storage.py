"""Persistence for participants and their campaign state."""

from __future__ import annotations

import datetime as dt
import typing as typ

from sqlalchemy import CheckConstraint, DateTime, String, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from tallyman.common.time import utcnow
from tallyman.participants.errors import (
    InvalidTransitionError,
    ParticipantAlreadyRegisteredError,
    ParticipantNotFoundError,
    ParticipantStateConflictError,
    TimezoneAwareRequiredError,
)
from tallyman.participants.models import Participant, ParticipantState

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

    from tallyman.common.time import Clock


class Base(DeclarativeBase):
    """Base declarative class for participant models."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """DateTime wrapper that round-trips UTC tzinfo even on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Force bound datetime values to UTC with tzinfo."""
        if value is None:
            return None
        if value.tzinfo is None:
            raise TimezoneAwareRequiredError.for_column()
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Ensure result datetimes are UTC and timezone aware."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


class ParticipantRecord(Base):
    """Registered participant and their current campaign state."""

    __tablename__ = "participants"
    __table_args__ = (
        CheckConstraint(
            "(state = 'waiting' AND waiting_since IS NOT NULL)"
            " OR (state != 'waiting' AND waiting_since IS NULL)",
            name="ck_participants_waiting_since",
        ),
    )

    identity: Mapped[str] = mapped_column(String(255), primary_key=True)
    github_login: Mapped[str] = mapped_column(String(255))
    state: Mapped[str] = mapped_column(
        String(16), default=ParticipantState.REGISTERED.value
    )
    waiting_since: Mapped[dt.datetime | None] = mapped_column(
        UTCDateTime(), default=None
    )
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)

    def snapshot(self) -> Participant:
        """Return an immutable copy detached from the session."""
        return Participant(
            identity=self.identity,
            github_login=self.github_login,
            state=ParticipantState(self.state),
            waiting_since=self.waiting_since,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


async def init_participant_storage(engine: AsyncEngine) -> None:
    """Create all tables registered with Base if they are absent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def _check_waiting_since(
    target: ParticipantState, waiting_since: dt.datetime | None
) -> None:
    if target is ParticipantState.WAITING and waiting_since is None:
        raise InvalidTransitionError.waiting_since_required()
    if target is not ParticipantState.WAITING and waiting_since is not None:
        raise InvalidTransitionError.waiting_since_forbidden(target)
    if waiting_since is not None and waiting_since.tzinfo is None:
        raise TimezoneAwareRequiredError("waiting_since")


class ParticipantRepository:
    """Reads participants and applies state transitions atomically.

    Transitions are compare-and-set: the row is only updated while its
    stored state still equals the state the caller evaluated against, so
    concurrent evaluations of one participant cannot both apply.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Clock = utcnow,
    ) -> None:
        """Store the session factory and the clock used for timestamps."""
        self._session_factory = session_factory
        self._clock = clock

    async def register(self, identity: str, github_login: str) -> Participant:
        """Create a participant in the ``registered`` state.

        Raises
        ------
        ParticipantAlreadyRegisteredError
            If ``identity`` is already stored.

        """
        now = self._clock()
        async with self._session_factory() as session:
            record = ParticipantRecord(
                identity=identity,
                github_login=github_login,
                state=ParticipantState.REGISTERED.value,
                waiting_since=None,
                created_at=now,
                updated_at=now,
            )
            session.add(record)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ParticipantAlreadyRegisteredError(identity) from exc
            await session.refresh(record)
            return record.snapshot()

    async def get(self, identity: str) -> Participant:
        """Return the stored participant for ``identity``.

        Raises
        ------
        ParticipantNotFoundError
            If no participant is registered under ``identity``.

        """
        async with self._session_factory() as session:
            record = await session.get(ParticipantRecord, identity)
            if record is None:
                raise ParticipantNotFoundError(identity)
            return record.snapshot()

    async def apply_transition(
        self,
        identity: str,
        *,
        expected: ParticipantState,
        target: ParticipantState,
        waiting_since: dt.datetime | None = None,
    ) -> Participant:
        """Move ``identity`` from ``expected`` to ``target``.

        Raises
        ------
        InvalidTransitionError
            If ``waiting_since`` does not agree with ``target``.
        ParticipantNotFoundError
            If the participant vanished.
        ParticipantStateConflictError
            If the stored state is no longer ``expected``.

        """
        _check_waiting_since(target, waiting_since)
        stmt = (
            update(ParticipantRecord)
            .where(
                ParticipantRecord.identity == identity,
                ParticipantRecord.state == expected.value,
            )
            .values(
                state=target.value,
                waiting_since=waiting_since,
                updated_at=self._clock(),
            )
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            if result.rowcount == 0:
                current = await self._load(session, identity)
                if current is None:
                    raise ParticipantNotFoundError(identity)
                raise ParticipantStateConflictError(
                    identity,
                    expected=expected,
                    actual=ParticipantState(current.state),
                )
            record = await self._load(session, identity)
            if record is None:
                raise ParticipantNotFoundError(identity)
            return record.snapshot()

    @staticmethod
    async def _load(session: AsyncSession, identity: str) -> ParticipantRecord | None:
        stmt = select(ParticipantRecord).where(ParticipantRecord.identity == identity)
        return await session.scalar(stmt)
