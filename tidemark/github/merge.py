"""Write fetched GraphQL facts onto the caller's canonical issue records."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import typing as typ

from .models import RemotePullRequest
from .observability import FetchEventLogger
from .reviews import resolve_verdicts

if typ.TYPE_CHECKING:
    import datetime as dt

    from .models import (
        AnnotatedItem,
        ProjectCard,
        RequestedReviewer,
        Review,
        ReviewState,
    )


@dataclasses.dataclass(frozen=True, slots=True)
class Participant:
    """A user involved in an issue."""

    login: str
    name: str | None = None
    avatar_url: str | None = None


class ParticipantSet:
    """Participants keyed by login, iterated in insertion order.

    Adding a login that is already present keeps the first entry.
    """

    __slots__ = ("_by_login",)

    def __init__(self, participants: cabc.Iterable[Participant] = ()) -> None:
        """Seed the set, dropping repeated logins."""
        self._by_login: dict[str, Participant] = {}
        for participant in participants:
            self.add(participant)

    def add(self, participant: Participant) -> bool:
        """Add ``participant`` unless its login is present; report whether added."""
        if participant.login in self._by_login:
            return False
        self._by_login[participant.login] = participant
        return True

    def __contains__(self, login: object) -> bool:
        """Return whether a participant with ``login`` is present."""
        return login in self._by_login

    def __iter__(self) -> cabc.Iterator[Participant]:
        """Iterate participants in insertion order."""
        return iter(self._by_login.values())

    def __len__(self) -> int:
        """Return the number of distinct participants."""
        return len(self._by_login)

    def __repr__(self) -> str:
        """Return a debug representation listing logins."""
        return f"ParticipantSet({list(self._by_login)!r})"

    def as_list(self) -> list[Participant]:
        """Return the participants as an ordered list."""
        return list(self._by_login.values())

    def logins(self) -> list[str]:
        """Return participant logins in insertion order."""
        return list(self._by_login)


@dataclasses.dataclass(frozen=True, slots=True)
class ProjectAssociation:
    """A project board card placement; ``column_name`` is empty when unset."""

    url: str
    name: str
    column_name: str = ""


@dataclasses.dataclass(frozen=True, slots=True)
class ReviewVerdict:
    """The single review state retained for a reviewer."""

    login: str
    avatar_url: str | None
    state: ReviewState
    updated_at: dt.datetime


@dataclasses.dataclass(slots=True)
class CanonicalIssue:
    """An issue or pull request record owned by the caller.

    Only ``node_id`` is required. The remaining attributes are filled in by
    :func:`merge_remote_items`; pull request attributes stay at their
    defaults for plain issues.
    """

    node_id: str
    is_private: bool | None = None
    involved_users: ParticipantSet = dataclasses.field(default_factory=ParticipantSet)
    last_actor_login: str | None = None
    last_activity_at: dt.datetime | None = None
    project_associations: list[ProjectAssociation] = dataclasses.field(
        default_factory=list
    )
    is_pull_request: bool = False
    merged_at: dt.datetime | None = None
    is_draft: bool | None = None
    requested_reviewers: list[Participant] = dataclasses.field(default_factory=list)
    review_verdicts: list[ReviewVerdict] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(frozen=True, slots=True)
class MergeSummary:
    """Counts from one merge pass."""

    merged: int
    missing: tuple[str, ...]


def _project_association(card: ProjectCard) -> ProjectAssociation | None:
    if card.project is None:
        return None
    column_name = card.column.name if card.column is not None else None
    return ProjectAssociation(
        url=card.project.url,
        name=card.project.name,
        column_name=column_name or "",
    )


def _requested_reviewer(reviewer: RequestedReviewer | None) -> Participant | None:
    """Map a user or team review request target onto a participant."""
    if reviewer is None:
        return None
    login = reviewer.login or reviewer.team_login
    if not login:
        return None
    return Participant(
        login=login,
        name=reviewer.name or reviewer.team_name,
        avatar_url=reviewer.avatar_url or reviewer.team_avatar_url,
    )


def _review_verdict(review: Review) -> ReviewVerdict:
    author = review.author
    if author is None or not author.login:
        msg = "review verdicts require an author login"
        raise ValueError(msg)
    return ReviewVerdict(
        login=author.login,
        avatar_url=author.avatar_url,
        state=review.state,
        updated_at=review.updated_at,
    )


def _merge_pull_request(issue: CanonicalIssue, item: RemotePullRequest) -> None:
    issue.is_pull_request = True
    issue.merged_at = item.merged_at
    issue.is_draft = item.is_draft
    issue.requested_reviewers = [
        reviewer
        for request in item.review_requests.nodes
        if (reviewer := _requested_reviewer(request.requested_reviewer)) is not None
    ]
    issue.review_verdicts = [
        _review_verdict(review) for review in resolve_verdicts(item.reviews.nodes)
    ]


def reconcile_participants(issue: CanonicalIssue) -> None:
    """Add requested reviewers missing from the issue's participants.

    GitHub's participant list omits users who were only asked for a review.
    Users who were only mentioned are not added.
    """
    for reviewer in issue.requested_reviewers:
        issue.involved_users.add(reviewer)


def merge_item(issue: CanonicalIssue, annotated: AnnotatedItem) -> None:
    """Overwrite the derived attributes of ``issue`` from ``annotated``."""
    item = annotated.item
    issue.is_private = item.repository.is_private
    issue.involved_users = ParticipantSet(
        Participant(login=user.login, name=user.name, avatar_url=user.avatar_url)
        for user in item.participants.nodes
    )
    issue.last_actor_login = annotated.last_activity.actor_login
    issue.last_activity_at = annotated.last_activity.activity_at
    issue.project_associations = [
        association
        for card in item.project_cards.nodes
        if (association := _project_association(card)) is not None
    ]
    if isinstance(item, RemotePullRequest):
        _merge_pull_request(issue, item)
    reconcile_participants(issue)


def merge_remote_items(
    annotated_items: cabc.Iterable[AnnotatedItem],
    canonical_issues: cabc.Iterable[CanonicalIssue],
    *,
    event_logger: FetchEventLogger | None = None,
) -> MergeSummary:
    """Merge fetched items into ``canonical_issues`` in place, matched by node id.

    Issues without a fetched counterpart are logged and left untouched, so a
    partial result set never clears previously merged values.
    """
    events = event_logger or FetchEventLogger()
    by_node_id: dict[str, AnnotatedItem] = {}
    for annotated in annotated_items:
        by_node_id.setdefault(annotated.node_id, annotated)

    merged = 0
    missing: list[str] = []
    for issue in canonical_issues:
        annotated = by_node_id.get(issue.node_id)
        if annotated is None:
            events.log_item_missing(issue.node_id)
            missing.append(issue.node_id)
            continue
        merge_item(issue, annotated)
        merged += 1
    return MergeSummary(merged=merged, missing=tuple(missing))
