"""GitHub GraphQL fetching, timeline reconciliation and issue merging."""

from __future__ import annotations

from .client import GitHubGraphQLClient, GitHubGraphQLConfig, GraphQLTransport
from .fetcher import BATCH_SIZE, BatchFetcher, chunk_node_ids
from .merge import (
    CanonicalIssue,
    MergeSummary,
    Participant,
    ParticipantSet,
    ProjectAssociation,
    ReviewVerdict,
    merge_remote_items,
    reconcile_participants,
)
from .models import (
    AnnotatedItem,
    LastActivity,
    RemoteIssue,
    RemoteItem,
    RemotePullRequest,
    Review,
    ReviewState,
    TimelineEvent,
)
from .observability import ErrorCategory, FetchEventLogger, FetchEventType
from .queries import (
    FULL_QUERY_TEMPLATE,
    ServerVersion,
    build_query_template,
    render_query,
    unsupported_capabilities,
)
from .reviews import resolve_verdicts
from .service import IssueAnnotationService
from .timeline import extract_actor, extract_timestamp, resolve_last_activity

__all__ = [
    "BATCH_SIZE",
    "FULL_QUERY_TEMPLATE",
    "AnnotatedItem",
    "BatchFetcher",
    "CanonicalIssue",
    "ErrorCategory",
    "FetchEventLogger",
    "FetchEventType",
    "GitHubGraphQLClient",
    "GitHubGraphQLConfig",
    "GraphQLTransport",
    "IssueAnnotationService",
    "LastActivity",
    "MergeSummary",
    "Participant",
    "ParticipantSet",
    "ProjectAssociation",
    "RemoteIssue",
    "RemoteItem",
    "RemotePullRequest",
    "Review",
    "ReviewState",
    "ReviewVerdict",
    "ServerVersion",
    "TimelineEvent",
    "build_query_template",
    "chunk_node_ids",
    "extract_actor",
    "extract_timestamp",
    "merge_remote_items",
    "reconcile_participants",
    "render_query",
    "resolve_last_activity",
    "resolve_verdicts",
    "unsupported_capabilities",
]
