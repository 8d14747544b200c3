"""Fetch GraphQL facts for canonical issues and merge them in one call."""

from __future__ import annotations

import collections.abc as cabc
import datetime as dt
import typing as typ

from .fetcher import BatchFetcher, chunk_node_ids
from .merge import merge_remote_items
from .observability import FetchEventLogger, FetchRunContext
from .queries import build_query_template

if typ.TYPE_CHECKING:
    from .client import GraphQLTransport
    from .merge import CanonicalIssue, MergeSummary


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class IssueAnnotationService:
    """Annotate canonical issues with last activity, reviews and participants.

    The query template is resolved once per service from the target server's
    capabilities and reused for every run.
    """

    def __init__(
        self,
        transport: GraphQLTransport,
        *,
        is_primary_host: bool,
        server_version: str | None = None,
        event_logger: FetchEventLogger | None = None,
        clock: cabc.Callable[[], dt.datetime] = _utcnow,
    ) -> None:
        """Resolve the query template and prepare the batch fetcher."""
        self._events = event_logger or FetchEventLogger()
        self._clock = clock
        self._query_template = build_query_template(
            is_primary_host=is_primary_host, server_version=server_version
        )
        self._fetcher = BatchFetcher(
            transport, self._query_template, event_logger=self._events
        )

    @property
    def query_template(self) -> str:
        """Return the server-safe query template in use."""
        return self._query_template

    async def annotate(
        self, canonical_issues: cabc.Iterable[CanonicalIssue]
    ) -> MergeSummary:
        """Fetch every issue's node and merge the results in place.

        Fetch failures propagate before any issue is modified.
        """
        issues = list(canonical_issues)
        node_ids = [issue.node_id for issue in issues]
        chunks = chunk_node_ids(node_ids)
        context = FetchRunContext(
            node_count=sum(len(chunk) for chunk in chunks),
            chunk_count=len(chunks),
            started_at=self._clock(),
        )
        self._events.log_run_started(context)

        try:
            items = await self._fetcher.fetch_all(node_ids)
        except Exception as exc:
            self._events.log_run_failed(
                context, exc, self._clock() - context.started_at
            )
            raise

        summary = merge_remote_items(items, issues, event_logger=self._events)
        self._events.log_run_completed(
            context,
            items_fetched=len(items),
            issues_merged=summary.merged,
            issues_missing=len(summary.missing),
            duration=self._clock() - context.started_at,
        )
        return summary
