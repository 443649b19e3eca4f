"""Participant persistence error types."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from tallyman.participants.models import ParticipantState


class ParticipantNotFoundError(LookupError):
    """Raised when no participant is registered under an identity."""

    def __init__(self, identity: str) -> None:
        """Record the identity that was looked up."""
        self.identity = identity
        super().__init__(f"participant {identity!r} is not registered")


class ParticipantAlreadyRegisteredError(ValueError):
    """Raised when registering an identity that already exists."""

    def __init__(self, identity: str) -> None:
        """Record the duplicate identity."""
        self.identity = identity
        super().__init__(f"participant {identity!r} is already registered")


class ParticipantStateConflictError(RuntimeError):
    """Raised when a transition's expected state no longer matches storage."""

    def __init__(
        self,
        identity: str,
        *,
        expected: ParticipantState,
        actual: ParticipantState,
    ) -> None:
        """Record the state the writer expected and the one it found."""
        self.identity = identity
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"participant {identity!r} is {actual.value}, expected {expected.value}"
        )


class InvalidTransitionError(ValueError):
    """Raised when a write would break the waiting_since invariant."""

    @classmethod
    def waiting_since_required(cls) -> InvalidTransitionError:
        """Return an error for entering waiting without a timestamp."""
        return cls("waiting_since is required when entering the waiting state")

    @classmethod
    def waiting_since_forbidden(cls, target: ParticipantState) -> InvalidTransitionError:
        """Return an error for carrying waiting_since outside waiting."""
        return cls(f"waiting_since must be empty for state {target.value}")


class TimezoneAwareRequiredError(ValueError):
    """Raised when datetime inputs lack timezone information."""

    def __init__(self, context: str) -> None:
        """Attach a consistent message for the failing context."""
        super().__init__(f"{context} must be timezone aware")

    @classmethod
    def for_column(cls) -> TimezoneAwareRequiredError:
        """Return an error for a naive value bound to a datetime column."""
        return cls("stored datetime values")
