"""Builders for raw GraphQL ``nodes`` entries used across tests.

Each builder returns plain dicts shaped like the GitHub response so tests
exercise the msgspec decoding path as well as the domain logic.
"""

from __future__ import annotations

import dataclasses
import typing as typ


def actor_event(typename: str, created_at: str, login: str) -> dict[str, typ.Any]:
    """Return an ``actor``-style timeline event such as ``LabeledEvent``."""
    return {"__typename": typename, "createdAt": created_at, "actor": {"login": login}}


def comment_event(
    created_at: str,
    author: str,
    *,
    updated_at: str | None = None,
    editor: str | None = None,
) -> dict[str, typ.Any]:
    """Return an ``IssueComment`` timeline event."""
    return {
        "__typename": "IssueComment",
        "createdAt": created_at,
        "updatedAt": updated_at or created_at,
        "author": {"login": author},
        "editor": {"login": editor} if editor else None,
    }


def commit_event(pushed_date: str | None, login: str) -> dict[str, typ.Any]:
    """Return a ``PullRequestCommit`` timeline event."""
    return {
        "__typename": "PullRequestCommit",
        "commit": {"pushedDate": pushed_date, "author": {"user": {"login": login}}},
    }


def review_node(
    login: str | None,
    state: str,
    updated_at: str,
    *,
    avatar_url: str | None = None,
) -> dict[str, typ.Any]:
    """Return a ``reviews.nodes`` entry."""
    author = None
    if login is not None:
        author = {
            "login": login,
            "avatarUrl": avatar_url or f"https://avatars.test/{login}",
        }
    return {"author": author, "state": state, "updatedAt": updated_at}


def user_reviewer(login: str, name: str | None = None) -> dict[str, typ.Any]:
    """Return a review request targeting a user."""
    return {
        "requestedReviewer": {
            "login": login,
            "name": name,
            "avatarUrl": f"https://avatars.test/{login}",
        }
    }


def team_reviewer(slug: str, name: str) -> dict[str, typ.Any]:
    """Return a review request targeting a team."""
    return {
        "requestedReviewer": {
            "teamLogin": slug,
            "teamName": name,
            "teamAvatarUrl": f"https://avatars.test/teams/{slug}",
        }
    }


def participant(login: str, name: str | None = None) -> dict[str, typ.Any]:
    """Return a ``participants.nodes`` entry."""
    return {"login": login, "name": name, "avatarUrl": f"https://avatars.test/{login}"}


@dataclasses.dataclass(slots=True)
class NodeSpec:
    """Specification for a raw issue or pull request node."""

    node_id: str
    updated_at: str = "2024-05-01T10:00:00Z"
    author: str | None = "octo"
    typename: typ.Literal["Issue", "PullRequest"] = "Issue"
    number: int = 1
    name_with_owner: str = "octo/reef"
    is_private: bool = False
    participants: list[dict[str, typ.Any]] = dataclasses.field(default_factory=list)
    project_cards: list[dict[str, typ.Any]] = dataclasses.field(default_factory=list)
    timeline: list[dict[str, typ.Any]] = dataclasses.field(default_factory=list)
    is_draft: bool | None = False
    merged_at: str | None = None
    review_requests: list[dict[str, typ.Any]] = dataclasses.field(
        default_factory=list
    )
    reviews: list[dict[str, typ.Any]] = dataclasses.field(default_factory=list)


def make_node(spec: NodeSpec) -> dict[str, typ.Any]:
    """Create a raw GraphQL node from ``spec``."""
    node: dict[str, typ.Any] = {
        "__typename": spec.typename,
        "id": spec.node_id,
        "updatedAt": spec.updated_at,
        "author": {"login": spec.author} if spec.author else None,
        "number": spec.number,
        "repository": {
            "nameWithOwner": spec.name_with_owner,
            "isPrivate": spec.is_private,
        },
        "participants": {"nodes": spec.participants},
        "projectCards": {"nodes": spec.project_cards},
        "timelineItems": {"nodes": spec.timeline},
    }
    if spec.typename == "PullRequest":
        node.update(
            {
                "isDraft": spec.is_draft,
                "mergedAt": spec.merged_at,
                "reviewRequests": {"nodes": spec.review_requests},
                "reviews": {"nodes": spec.reviews},
            }
        )
    return node


def nodes_response(nodes: list[dict[str, typ.Any] | None]) -> dict[str, typ.Any]:
    """Wrap nodes in the ``data`` object a transport returns."""
    return {"nodes": nodes}
