"""Pull request value types and upstream record parsing."""

from __future__ import annotations

import datetime as dt
import enum
import typing as typ

import msgspec

from tallyman.common.time import parse_iso_datetime
from tallyman.pulls.errors import ClassificationError

_REPOS_PATH_MARKER = "/repos/"


class PullRequestState(enum.StrEnum):
    """Lifecycle state of a pull request."""

    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"


class PullRequest(msgspec.Struct, kw_only=True, frozen=True):
    """One contribution record.

    Only immutable upstream facts live here. Whether a pull request is spam
    or valid is decided by :class:`~tallyman.pulls.rules.ClassificationRules`
    on every evaluation.

    Attributes
    ----------
    id
        Provider-wide identifier, used to break ordering ties.
    number
        Number within its repository.
    title
        Pull request title.
    url
        Browser URL.
    repository
        ``owner/name`` slug, lower-cased.
    author_login
        Login of the author, when known.
    created_at
        Creation time (aware UTC).
    state
        Open, closed or merged.
    merged_at
        Merge time, if merged.
    labels
        Label names, lower-cased.
    is_draft
        Whether the pull request is still a draft.

    """

    id: int
    number: int
    title: str
    url: str
    repository: str
    created_at: dt.datetime
    state: PullRequestState
    author_login: str | None = None
    merged_at: dt.datetime | None = None
    labels: tuple[str, ...] = ()
    is_draft: bool = False

    @property
    def merged(self) -> bool:
        """Return True once the pull request has been merged."""
        return self.state is PullRequestState.MERGED


class _Label(msgspec.Struct):
    name: str


class _User(msgspec.Struct):
    login: str


class _PullRequestLinks(msgspec.Struct):
    merged_at: str | None = None


class _SearchItem(msgspec.Struct):
    """Subset of a GitHub issue-search item describing a pull request."""

    id: int
    number: int
    title: str
    html_url: str
    state: str
    created_at: str
    repository_url: str
    labels: list[_Label] = msgspec.field(default_factory=list)
    user: _User | None = None
    draft: bool = False
    pull_request: _PullRequestLinks | None = None


def _repository_slug(repository_url: str, *, record_id: int) -> str:
    _, marker, slug = repository_url.partition(_REPOS_PATH_MARKER)
    if not marker or slug.count("/") != 1:
        raise ClassificationError.malformed(
            f"unrecognised repository_url {repository_url!r}", record_id=record_id
        )
    return slug.lower()


def _state_for(item: _SearchItem, merged_at: dt.datetime | None) -> PullRequestState:
    if merged_at is not None:
        return PullRequestState.MERGED
    try:
        return PullRequestState(item.state.lower())
    except ValueError as exc:
        raise ClassificationError.malformed(
            f"unknown state {item.state!r}", record_id=item.id
        ) from exc


def _parse_timestamp(value: str, *, field: str, record_id: int) -> dt.datetime:
    try:
        return parse_iso_datetime(value)
    except ValueError as exc:
        raise ClassificationError.malformed(
            f"invalid {field} {value!r}", record_id=record_id
        ) from exc


def parse_pull_request(raw: typ.Any) -> PullRequest:  # noqa: ANN401
    """Build a :class:`PullRequest` from one GitHub search item.

    Raises
    ------
    ClassificationError
        If the record is not a pull request or lacks required fields.

    """
    record_id = raw.get("id") if isinstance(raw, dict) else None
    try:
        item = msgspec.convert(raw, type=_SearchItem)
    except msgspec.ValidationError as exc:
        raise ClassificationError.malformed(str(exc), record_id=record_id) from exc
    if item.pull_request is None:
        raise ClassificationError.malformed("record is not a pull request", record_id=item.id)

    merged_at = (
        _parse_timestamp(item.pull_request.merged_at, field="merged_at", record_id=item.id)
        if item.pull_request.merged_at
        else None
    )
    return PullRequest(
        id=item.id,
        number=item.number,
        title=item.title,
        url=item.html_url,
        repository=_repository_slug(item.repository_url, record_id=item.id),
        created_at=_parse_timestamp(item.created_at, field="created_at", record_id=item.id),
        state=_state_for(item, merged_at),
        author_login=item.user.login if item.user else None,
        merged_at=merged_at,
        labels=tuple(label.name.strip().lower() for label in item.labels),
        is_draft=item.draft,
    )


def to_json(pull_request: PullRequest) -> dict[str, typ.Any]:
    """Return a JSON-ready mapping for ``pull_request``."""
    return {
        "id": pull_request.id,
        "number": pull_request.number,
        "title": pull_request.title,
        "url": pull_request.url,
        "repository": pull_request.repository,
        "state": pull_request.state.value,
        "created_at": pull_request.created_at.isoformat(),
        "merged_at": pull_request.merged_at.isoformat() if pull_request.merged_at else None,
        "labels": list(pull_request.labels),
    }
