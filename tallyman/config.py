"""Process-level configuration shared by the tallyman packages.

Each concern owns a frozen dataclass with a ``from_env`` classmethod; this
module holds the campaign window plus the small environment parsing helpers
the other config modules reuse.

Usage
-----
>>> import os
>>> os.environ["TALLYMAN_CAMPAIGN_END"] = "2026-10-31T23:59:59Z"
>>> config = CampaignConfig.from_env()
>>> config.end.isoformat()
'2026-10-31T23:59:59+00:00'

"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ

from tallyman.common.time import parse_iso_datetime

if typ.TYPE_CHECKING:
    import datetime as dt

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class TallymanConfigError(ValueError):
    """Raised when an environment variable holds a malformed value."""

    @classmethod
    def invalid_value(cls, env_var: str, raw: str, constraint: str) -> TallymanConfigError:
        """Return an error describing the offending variable and constraint."""
        return cls(f"{env_var} {constraint}, got: {raw!r}")

    @classmethod
    def inverted_window(cls) -> TallymanConfigError:
        """Return an error for a campaign that ends before it starts."""
        return cls("TALLYMAN_CAMPAIGN_END must be after TALLYMAN_CAMPAIGN_START")


def env_str(env_var: str) -> str | None:
    """Return the stripped value of ``env_var`` or ``None`` when blank."""
    raw = os.environ.get(env_var, "").strip()
    return raw or None


def env_positive_float(env_var: str, default: float) -> float:
    """Read a strictly positive float, falling back to ``default``."""
    raw = env_str(env_var)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise TallymanConfigError.invalid_value(env_var, raw, "must be a number") from exc
    if value <= 0:
        raise TallymanConfigError.invalid_value(env_var, raw, "must be positive")
    return value


def env_bool(env_var: str, *, default: bool) -> bool:
    """Read a boolean flag such as ``true``/``0``/``off``."""
    raw = env_str(env_var)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise TallymanConfigError.invalid_value(env_var, raw, "must be a boolean")


def env_csv(env_var: str) -> tuple[str, ...]:
    """Split a comma-separated variable into trimmed, non-empty items."""
    raw = env_str(env_var)
    if raw is None:
        return ()
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _env_datetime(env_var: str) -> dt.datetime | None:
    raw = env_str(env_var)
    if raw is None:
        return None
    try:
        return parse_iso_datetime(raw)
    except ValueError as exc:
        raise TallymanConfigError.invalid_value(
            env_var, raw, "must be an ISO-8601 timestamp with timezone"
        ) from exc


@dc.dataclass(frozen=True, slots=True)
class CampaignConfig:
    """Campaign window used to gate evaluation and filter pull requests.

    Attributes
    ----------
    start
        Earliest creation time for a pull request to count. ``None`` means
        unbounded.
    end
        Campaign close. Once passed, evaluation is short-circuited and
        participants see their last stored state.

    """

    start: dt.datetime | None = None
    end: dt.datetime | None = None

    def __post_init__(self) -> None:
        """Reject windows that close before they open."""
        if self.start is not None and self.end is not None and self.end <= self.start:
            raise TallymanConfigError.inverted_window()

    def has_ended(self, now: dt.datetime) -> bool:
        """Return True once ``now`` is past the campaign end."""
        return self.end is not None and now > self.end

    def contains(self, moment: dt.datetime) -> bool:
        """Return True when ``moment`` falls inside the campaign window."""
        if self.start is not None and moment < self.start:
            return False
        return self.end is None or moment <= self.end

    @classmethod
    def from_env(cls) -> CampaignConfig:
        """Build the window from ``TALLYMAN_CAMPAIGN_START``/``_END``."""
        return cls(
            start=_env_datetime("TALLYMAN_CAMPAIGN_START"),
            end=_env_datetime("TALLYMAN_CAMPAIGN_END"),
        )


__all__ = [
    "CampaignConfig",
    "TallymanConfigError",
    "env_bool",
    "env_csv",
    "env_positive_float",
    "env_str",
]
