"""Typed views of the GraphQL ``nodes`` response.

Remote items are a tagged union on ``__typename``. Timeline events share one
struct with every field optional: each fragment in the query populates only
its own subset, and event kinds the query does not name still decode with
just ``typename`` set.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import enum
import typing as typ

import msgspec

from .errors import GitHubResponseShapeError

# Timestamps are compared across events, so naive values are rejected.
AwareDatetime = typ.Annotated[dt.datetime, msgspec.Meta(tz=True)]


class ReviewState(enum.StrEnum):
    """Pull request review states reported by GitHub."""

    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"


class ActorRef(msgspec.Struct, frozen=True):
    """A ``{login}`` selection on an actor, author or editor."""

    login: str | None = None


class GitActor(msgspec.Struct, frozen=True):
    """Git author of a commit, linked to a GitHub user when one matches."""

    user: ActorRef | None = None


class Commit(msgspec.Struct, frozen=True, rename="camel"):
    pushed_date: AwareDatetime | None = None
    author: GitActor | None = None


class Comment(msgspec.Struct, frozen=True, rename="camel"):
    created_at: AwareDatetime | None = None
    updated_at: AwareDatetime | None = None
    author: ActorRef | None = None
    editor: ActorRef | None = None


class CommentConnection(msgspec.Struct, frozen=True):
    nodes: tuple[Comment, ...] = ()


class TimelineEvent(msgspec.Struct, frozen=True, rename="camel"):
    """One entry of an issue or pull request ``timelineItems`` connection."""

    typename: str = msgspec.field(name="__typename")
    actor: ActorRef | None = None
    editor: ActorRef | None = None
    author: ActorRef | None = None
    commit: Commit | None = None
    comments: CommentConnection | None = None
    last_seen_commit: Commit | None = None
    created_at: AwareDatetime | None = None
    updated_at: AwareDatetime | None = None

    @property
    def last_comment(self) -> Comment | None:
        """Return the newest comment of a thread event, if one was fetched."""
        if self.comments is None or not self.comments.nodes:
            return None
        return self.comments.nodes[-1]


class TimelineConnection(msgspec.Struct, frozen=True):
    nodes: tuple[TimelineEvent, ...] = ()


class RepositoryRef(msgspec.Struct, frozen=True, rename="camel"):
    name_with_owner: str
    is_private: bool


class GitHubUser(msgspec.Struct, frozen=True, rename="camel"):
    login: str
    name: str | None = None
    avatar_url: str | None = None


class UserConnection(msgspec.Struct, frozen=True):
    nodes: tuple[GitHubUser, ...] = ()


class ProjectRef(msgspec.Struct, frozen=True):
    url: str
    name: str


class ProjectColumnRef(msgspec.Struct, frozen=True):
    name: str | None = None


class ProjectCard(msgspec.Struct, frozen=True):
    project: ProjectRef | None = None
    column: ProjectColumnRef | None = None


class ProjectCardConnection(msgspec.Struct, frozen=True):
    nodes: tuple[ProjectCard, ...] = ()


class RequestedReviewer(msgspec.Struct, frozen=True, rename="camel"):
    """A review request target; teams populate the ``team_`` fields."""

    login: str | None = None
    name: str | None = None
    avatar_url: str | None = None
    team_login: str | None = None
    team_name: str | None = None
    team_avatar_url: str | None = None


class ReviewRequest(msgspec.Struct, frozen=True, rename="camel"):
    requested_reviewer: RequestedReviewer | None = None


class ReviewRequestConnection(msgspec.Struct, frozen=True):
    nodes: tuple[ReviewRequest, ...] = ()


class ReviewAuthor(msgspec.Struct, frozen=True, rename="camel"):
    login: str | None = None
    avatar_url: str | None = None


class Review(msgspec.Struct, frozen=True, rename="camel"):
    """A submitted pull request review."""

    state: ReviewState
    updated_at: AwareDatetime
    author: ReviewAuthor | None = None


class ReviewConnection(msgspec.Struct, frozen=True):
    nodes: tuple[Review, ...] = ()


class _RemoteItemBase(
    msgspec.Struct, frozen=True, kw_only=True, rename="camel", tag_field="__typename"
):
    node_id: str = msgspec.field(name="id")
    updated_at: AwareDatetime
    repository: RepositoryRef
    author: ActorRef | None = None
    number: int | None = None
    participants: UserConnection = msgspec.field(default_factory=UserConnection)
    project_cards: ProjectCardConnection = msgspec.field(
        default_factory=ProjectCardConnection
    )
    timeline_items: TimelineConnection = msgspec.field(
        default_factory=TimelineConnection
    )

    @property
    def author_login(self) -> str:
        """Return the author's login, or ``""`` for deleted accounts."""
        if self.author is None or self.author.login is None:
            return ""
        return self.author.login


class RemoteIssue(_RemoteItemBase, tag="Issue"):
    """An issue node."""


class RemotePullRequest(_RemoteItemBase, tag="PullRequest"):
    """A pull request node.

    ``is_draft`` is absent on servers that predate draft pull requests.
    """

    is_draft: bool | None = None
    merged_at: AwareDatetime | None = None
    review_requests: ReviewRequestConnection = msgspec.field(
        default_factory=ReviewRequestConnection
    )
    reviews: ReviewConnection = msgspec.field(default_factory=ReviewConnection)


RemoteItem = RemoteIssue | RemotePullRequest


@dataclasses.dataclass(frozen=True, slots=True)
class LastActivity:
    """Who last touched an item, and when."""

    actor_login: str
    activity_at: dt.datetime | None


@dataclasses.dataclass(frozen=True, slots=True)
class AnnotatedItem:
    """A fetched item paired with its derived last activity."""

    item: RemoteItem
    last_activity: LastActivity

    @property
    def node_id(self) -> str:
        """Return the node id of the wrapped item."""
        return self.item.node_id


def decode_remote_item(raw: dict[str, typ.Any]) -> RemoteItem:
    """Convert one raw ``nodes`` entry into a typed remote item.

    Raises
    ------
    GitHubResponseShapeError
        If the entry does not match the issue or pull request shape.

    """
    try:
        return msgspec.convert(raw, RemoteItem)
    except msgspec.ValidationError as exc:
        raise GitHubResponseShapeError.undecodable("nodes", str(exc)) from exc
