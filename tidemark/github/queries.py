"""GraphQL documents for fetching issue and pull request nodes.

The node query is assembled from named fragments. Older GitHub Enterprise
Server releases reject documents that mention types or fields they do not
know, so the builder drops every fragment whose name is gated for the
target server version.

Example:
>>> template = build_query_template(is_primary_host=False, server_version="2.19.5")
>>> "ConnectedEvent" in template
False
>>> render_query(template, ["I_1", "PR_2"]).count('"')
4

"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import typing as typ

import msgspec

from tidemark.logging import get_logger, log_warning

from .errors import ServerVersionError
from .observability import FetchEventType

logger = get_logger(__name__)

NODE_IDS_PLACEHOLDER = "__NODE_IDS__"

_INDENT = "  "


@dataclasses.dataclass(frozen=True, slots=True, order=True)
class ServerVersion:
    """A GitHub Enterprise Server release number."""

    major: int
    minor: int
    patch: int = 0

    @classmethod
    def parse(cls, raw: str) -> ServerVersion:
        """Parse ``major.minor`` or ``major.minor.patch``.

        Raises
        ------
        ServerVersionError
            If the text has the wrong number of parts or a part is not a
            non-negative integer.

        """
        parts = raw.strip().split(".")
        well_formed = len(parts) in {2, 3} and all(
            part.isascii() and part.isdigit() for part in parts
        )
        if not well_formed:
            raise ServerVersionError.unparseable(raw)
        numbers = [int(part) for part in parts]
        return cls(*numbers)

    def __str__(self) -> str:
        """Return the dotted version string."""
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclasses.dataclass(frozen=True, slots=True)
class QueryFragment:
    """A named, independently gated unit of query text.

    ``name`` is the GraphQL type or field the fragment introduces and is the
    key looked up in the capability gates.
    """

    name: str
    lines: tuple[str, ...]


def _actor_event(type_name: str) -> QueryFragment:
    return QueryFragment(
        type_name,
        (f"... on {type_name} {{__typename createdAt actor {{login}}}}",),
    )


def _fragment(name: str, text: str) -> QueryFragment:
    return QueryFragment(name, tuple(text.strip("\n").splitlines()))


# Releases at or below the given minor version (on the 2.x line) lack the
# listed types and fields. Append new rows as older servers are supported.
CAPABILITY_GATES: tuple[tuple[int, frozenset[str]], ...] = (
    (
        20,
        frozenset(
            {
                "ConnectedEvent",
                "DisconnectedEvent",
                "UnmarkedAsDuplicateEvent",
                "ConvertToDraftEvent",
                "isDraft",
            }
        ),
    ),
    (
        21,
        frozenset(
            {
                "AutomaticBaseChangeFailedEvent",
                "AutomaticBaseChangeSucceededEvent",
            }
        ),
    ),
)

_FULLY_SUPPORTED_MAJOR = 3

_COMMON_FIELDS = _fragment(
    "common",
    """
__typename
id
updatedAt
author {
  login
}
number
repository {
  nameWithOwner
  isPrivate
}
participants(first: 100) {
  nodes {
    login
    avatarUrl
    name
  }
}
projectCards(first: 100) {
  nodes {
    project {
      url
      name
    }
    column {
      name
    }
  }
}
""",
)

_ISSUE_COMMENT = _fragment(
    "IssueComment",
    "... on IssueComment {__typename createdAt updatedAt author {login} "
    "editor {login}}",
)

# https://docs.github.com/en/graphql/reference/unions#issuetimelineitems
ISSUE_TIMELINE_FRAGMENTS: tuple[QueryFragment, ...] = (
    _actor_event("AddedToProjectEvent"),
    _actor_event("AssignedEvent"),
    _actor_event("ClosedEvent"),
    _actor_event("CommentDeletedEvent"),
    _actor_event("ConnectedEvent"),
    _actor_event("ConvertedNoteToIssueEvent"),
    _actor_event("CrossReferencedEvent"),
    _actor_event("DemilestonedEvent"),
    _actor_event("DisconnectedEvent"),
    _ISSUE_COMMENT,
    _actor_event("LabeledEvent"),
    _actor_event("LockedEvent"),
    _actor_event("MarkedAsDuplicateEvent"),
    _actor_event("MentionedEvent"),
    _actor_event("MilestonedEvent"),
    _actor_event("MovedColumnsInProjectEvent"),
    _actor_event("PinnedEvent"),
    _actor_event("ReferencedEvent"),
    _actor_event("RemovedFromProjectEvent"),
    _actor_event("RenamedTitleEvent"),
    _actor_event("ReopenedEvent"),
    _actor_event("SubscribedEvent"),
    _actor_event("TransferredEvent"),
    _actor_event("UnassignedEvent"),
    _actor_event("UnlabeledEvent"),
    _actor_event("UnlockedEvent"),
    _actor_event("UnmarkedAsDuplicateEvent"),
    _actor_event("UnpinnedEvent"),
    _actor_event("UnsubscribedEvent"),
    _actor_event("UserBlockedEvent"),
)

# https://docs.github.com/en/graphql/reference/unions#pullrequesttimelineitems
PULL_REQUEST_TIMELINE_FRAGMENTS: tuple[QueryFragment, ...] = (
    _actor_event("AddedToProjectEvent"),
    _actor_event("AssignedEvent"),
    _actor_event("AutomaticBaseChangeFailedEvent"),
    _actor_event("AutomaticBaseChangeSucceededEvent"),
    _actor_event("BaseRefChangedEvent"),
    _actor_event("BaseRefForcePushedEvent"),
    _actor_event("ClosedEvent"),
    _actor_event("CommentDeletedEvent"),
    _actor_event("ConnectedEvent"),
    _actor_event("ConvertToDraftEvent"),
    _actor_event("ConvertedNoteToIssueEvent"),
    _actor_event("CrossReferencedEvent"),
    _actor_event("DemilestonedEvent"),
    _actor_event("DeployedEvent"),
    _actor_event("DeploymentEnvironmentChangedEvent"),
    _actor_event("DisconnectedEvent"),
    _actor_event("HeadRefDeletedEvent"),
    _actor_event("HeadRefForcePushedEvent"),
    _actor_event("HeadRefRestoredEvent"),
    _ISSUE_COMMENT,
    _actor_event("LabeledEvent"),
    _actor_event("LockedEvent"),
    _actor_event("MarkedAsDuplicateEvent"),
    _actor_event("MentionedEvent"),
    _actor_event("MergedEvent"),
    _actor_event("MilestonedEvent"),
    _actor_event("MovedColumnsInProjectEvent"),
    _actor_event("PinnedEvent"),
    _fragment(
        "PullRequestCommit",
        "... on PullRequestCommit {__typename commit {pushedDate author "
        "{user {login}}}}",
    ),
    _fragment(
        "PullRequestCommitCommentThread",
        "... on PullRequestCommitCommentThread {__typename comments(last: 1) "
        "{nodes {createdAt updatedAt author {login} editor {login}}}}",
    ),
    _fragment(
        "PullRequestReview",
        "... on PullRequestReview {__typename createdAt updatedAt author "
        "{login} editor {login}}",
    ),
    _fragment(
        "PullRequestReviewThread",
        "... on PullRequestReviewThread {__typename comments(last: 1) "
        "{nodes {createdAt updatedAt author {login} editor {login}}}}",
    ),
    _fragment(
        "PullRequestRevisionMarker",
        "... on PullRequestRevisionMarker {__typename lastSeenCommit "
        "{pushedDate author {user {login}}}}",
    ),
    _actor_event("ReadyForReviewEvent"),
    _actor_event("ReferencedEvent"),
    _actor_event("RemovedFromProjectEvent"),
    _actor_event("RenamedTitleEvent"),
    _actor_event("ReopenedEvent"),
    _actor_event("ReviewDismissedEvent"),
    _actor_event("ReviewRequestRemovedEvent"),
    _actor_event("ReviewRequestedEvent"),
    _actor_event("SubscribedEvent"),
    _actor_event("TransferredEvent"),
    _actor_event("UnassignedEvent"),
    _actor_event("UnlabeledEvent"),
    _actor_event("UnlockedEvent"),
    _actor_event("UnmarkedAsDuplicateEvent"),
    _actor_event("UnpinnedEvent"),
    _actor_event("UnsubscribedEvent"),
    _actor_event("UserBlockedEvent"),
)

PULL_REQUEST_FIELD_FRAGMENTS: tuple[QueryFragment, ...] = (
    _fragment("isDraft", "isDraft"),
    _fragment("mergedAt", "mergedAt"),
    _fragment(
        "reviewRequests",
        """
reviewRequests(first: 100) {
  nodes {
    requestedReviewer {
      ... on User {
        login
        avatarUrl
        name
      }
      ... on Team {
        teamLogin: combinedSlug
        teamName: name
        teamAvatarUrl: avatarUrl
      }
    }
  }
}
""",
    ),
    _fragment(
        "reviews",
        """
reviews(first: 100) {
  nodes {
    author {
      login
      avatarUrl
    }
    state
    updatedAt
  }
}
""",
    ),
)


def _indent(lines: cabc.Iterable[str], depth: int) -> list[str]:
    prefix = _INDENT * depth
    return [f"{prefix}{line}" for line in lines]


def _select(
    fragments: cabc.Iterable[QueryFragment], unsupported: frozenset[str]
) -> list[str]:
    lines: list[str] = []
    for fragment in fragments:
        if fragment.name in unsupported:
            continue
        lines.extend(fragment.lines)
    return lines


def _timeline_block(
    fragments: cabc.Iterable[QueryFragment], unsupported: frozenset[str]
) -> list[str]:
    return [
        "timelineItems(last: 100) {",
        *_indent(["nodes {"], 1),
        *_indent(["__typename", *_select(fragments, unsupported)], 2),
        *_indent(["}"], 1),
        "}",
    ]


def compose_query(unsupported: frozenset[str] = frozenset()) -> str:
    """Assemble the node query, omitting every fragment named in ``unsupported``."""
    issue_body = [
        *_COMMON_FIELDS.lines,
        *_timeline_block(ISSUE_TIMELINE_FRAGMENTS, unsupported),
    ]
    pull_request_body = [
        *_COMMON_FIELDS.lines,
        *_select(PULL_REQUEST_FIELD_FRAGMENTS, unsupported),
        *_timeline_block(PULL_REQUEST_TIMELINE_FRAGMENTS, unsupported),
    ]
    lines = [
        "query {",
        *_indent([f"nodes(ids: [{NODE_IDS_PLACEHOLDER}]) {{"], 1),
        *_indent(["... on Issue {"], 2),
        *_indent(issue_body, 3),
        *_indent(["}", "... on PullRequest {"], 2),
        *_indent(pull_request_body, 3),
        *_indent(["}"], 2),
        *_indent(["}"], 1),
        "}",
    ]
    return "\n".join(lines) + "\n"


FULL_QUERY_TEMPLATE = compose_query()


def unsupported_capabilities(version: ServerVersion) -> frozenset[str]:
    """Return the fragment names a server at ``version`` cannot resolve."""
    if version.major >= _FULLY_SUPPORTED_MAJOR:
        return frozenset()
    unsupported: set[str] = set()
    for max_minor, names in CAPABILITY_GATES:
        if version.minor <= max_minor:
            unsupported.update(names)
    return frozenset(unsupported)


def build_query_template(*, is_primary_host: bool, server_version: str | None) -> str:
    """Return a node query template the target server can execute.

    github.com always receives the full template. Enterprise servers receive
    the template minus the fragments gated for their version. A missing or
    unparseable version also yields the full template, and is logged.
    """
    if is_primary_host:
        return FULL_QUERY_TEMPLATE

    try:
        version = ServerVersion.parse(server_version or "")
    except ServerVersionError:
        log_warning(
            logger,
            "[%s] server_version=%r fallback=full_template",
            FetchEventType.VERSION_UNPARSEABLE,
            server_version,
        )
        return FULL_QUERY_TEMPLATE

    unsupported = unsupported_capabilities(version)
    if not unsupported:
        return FULL_QUERY_TEMPLATE
    return compose_query(unsupported)


def render_query(template: str, node_ids: typ.Iterable[str]) -> str:
    """Substitute double-quoted, comma-joined ``node_ids`` into ``template``."""
    joined = ",".join(msgspec.json.encode(node_id).decode() for node_id in node_ids)
    return template.replace(NODE_IDS_PLACEHOLDER, joined)
