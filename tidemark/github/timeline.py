"""Derive the last actor and last activity time of an issue or pull request.

Timeline events spread the "who" and the "when" across different fields
depending on their kind. Each derived value is read through an ordered
chain of sources, and the first source yielding a value wins.
"""

from __future__ import annotations

import collections.abc as cabc
import datetime as dt
import typing as typ

from .models import AnnotatedItem, LastActivity

if typ.TYPE_CHECKING:
    from .models import Commit, RemoteItem, TimelineEvent

_COMMIT_PUSH_TYPENAME = "PullRequestCommit"

_OLDEST = dt.datetime.min.replace(tzinfo=dt.UTC)


def _commit_author_login(commit: Commit | None) -> str | None:
    if commit is None or commit.author is None or commit.author.user is None:
        return None
    return commit.author.user.login


def _commit_pushed_date(commit: Commit | None) -> dt.datetime | None:
    return None if commit is None else commit.pushed_date


def _last_comment_editor(event: TimelineEvent) -> str | None:
    comment = event.last_comment
    if comment is None or comment.editor is None:
        return None
    return comment.editor.login


def _last_comment_author(event: TimelineEvent) -> str | None:
    comment = event.last_comment
    if comment is None or comment.author is None:
        return None
    return comment.author.login


def _last_comment_updated_at(event: TimelineEvent) -> dt.datetime | None:
    comment = event.last_comment
    return None if comment is None else comment.updated_at


def _last_comment_created_at(event: TimelineEvent) -> dt.datetime | None:
    comment = event.last_comment
    return None if comment is None else comment.created_at


ActorSource = tuple[str, cabc.Callable[["TimelineEvent"], str | None]]
TimestampSource = tuple[str, cabc.Callable[["TimelineEvent"], dt.datetime | None]]

ACTOR_SOURCES: tuple[ActorSource, ...] = (
    ("actor.login", lambda event: event.actor and event.actor.login),
    ("editor.login", lambda event: event.editor and event.editor.login),
    ("author.login", lambda event: event.author and event.author.login),
    ("commit.author.user.login", lambda event: _commit_author_login(event.commit)),
    ("comments.last.editor.login", _last_comment_editor),
    ("comments.last.author.login", _last_comment_author),
    (
        "lastSeenCommit.author.user.login",
        lambda event: _commit_author_login(event.last_seen_commit),
    ),
)
"""Where the acting user's login is read from, in priority order."""

TIMESTAMP_SOURCES: tuple[TimestampSource, ...] = (
    ("updatedAt", lambda event: event.updated_at),
    ("createdAt", lambda event: event.created_at),
    ("commit.pushedDate", lambda event: _commit_pushed_date(event.commit)),
    ("comments.last.updatedAt", _last_comment_updated_at),
    ("comments.last.createdAt", _last_comment_created_at),
    (
        "lastSeenCommit.pushedDate",
        lambda event: _commit_pushed_date(event.last_seen_commit),
    ),
)
"""Where the event time is read from, in priority order."""


def extract_actor(event: TimelineEvent) -> str:
    """Return the login of the user behind ``event``, or ``""`` if unknown."""
    for _source, accessor in ACTOR_SOURCES:
        login = accessor(event)
        if login:
            return login
    return ""


def extract_timestamp(event: TimelineEvent) -> dt.datetime | None:
    """Return when ``event`` happened, or ``None`` if no source carries a time."""
    for _source, accessor in TIMESTAMP_SOURCES:
        value = accessor(event)
        if value is not None:
            return value
    return None


def _item_own_activity(item: RemoteItem) -> LastActivity:
    return LastActivity(actor_login=item.author_login, activity_at=item.updated_at)


def resolve_last_activity(item: RemoteItem) -> LastActivity:
    """Return who last touched ``item`` and when.

    An item without timeline events only has its description, so its author
    and ``updatedAt`` are reported. Otherwise the newest event wins; ties go
    to the event listed first and events without a time rank last.

    A ``PullRequestCommit`` pushed before the item's own ``updatedAt`` is
    ignored in favour of the item itself: GitHub stamps commits included at
    pull request creation with push times older than the pull request.
    """
    events = item.timeline_items.nodes
    if not events:
        return _item_own_activity(item)

    latest = max(events, key=lambda event: extract_timestamp(event) or _OLDEST)
    latest_at = extract_timestamp(latest)

    if latest.typename == _COMMIT_PUSH_TYPENAME and (
        latest_at is None or latest_at < item.updated_at
    ):
        return _item_own_activity(item)

    return LastActivity(actor_login=extract_actor(latest), activity_at=latest_at)


def annotate_last_activity(item: RemoteItem) -> AnnotatedItem:
    """Pair ``item`` with its resolved last activity."""
    return AnnotatedItem(item=item, last_activity=resolve_last_activity(item))
