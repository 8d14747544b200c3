"""Structured log events for node fetches and canonical issue merges.

Every event is emitted as ``[event.type] key=value ...`` so log aggregators
can parse fetch throughput, failures and unmatched issues without a metrics
backend.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

import httpx

from tidemark.logging import get_logger, log_error, log_info, log_warning

from .errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
    ServerVersionError,
)

if typ.TYPE_CHECKING:
    import datetime as dt

logger = get_logger(__name__)

# HTTP status code threshold for server errors (5xx)
_HTTP_SERVER_ERROR_THRESHOLD = 500


class FetchEventType(enum.StrEnum):
    """Structured log event types for fetch and merge observability."""

    RUN_STARTED = "fetch.run.started"
    RUN_COMPLETED = "fetch.run.completed"
    RUN_FAILED = "fetch.run.failed"
    CHUNK_FAILED = "fetch.chunk.failed"
    ITEM_MISSING = "merge.item.missing"
    VERSION_UNPARSEABLE = "query.version.unparseable"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    UNKNOWN = "unknown"


@dataclasses.dataclass(frozen=True, slots=True)
class FetchRunContext:
    """Shared context for a single annotation run."""

    node_count: int
    chunk_count: int
    started_at: dt.datetime


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (GitHubResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (GitHubConfigError, ErrorCategory.CONFIGURATION),
    (ServerVersionError, ErrorCategory.CONFIGURATION),
    (httpx.HTTPError, ErrorCategory.TRANSPORT),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alerting purposes.

    Returns:
        ErrorCategory indicating the type of failure for alert routing.

    """
    if isinstance(exc, GitHubAPIError):
        if (
            exc.status_code is not None
            and exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD
        ):
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class FetchEventLogger:
    """Emit structured fetch and merge events.

    Success is logged at INFO, unmatched canonical issues at WARNING, and
    failures at ERROR.
    """

    def log_run_started(self, context: FetchRunContext) -> None:
        """Log the start of an annotation run."""
        log_info(
            logger,
            "[%s] node_count=%d chunk_count=%d started_at=%s",
            FetchEventType.RUN_STARTED,
            context.node_count,
            context.chunk_count,
            context.started_at.isoformat(),
        )

    def log_run_completed(
        self,
        context: FetchRunContext,
        *,
        items_fetched: int,
        issues_merged: int,
        issues_missing: int,
        duration: dt.timedelta,
    ) -> None:
        """Log a completed annotation run with merge counts."""
        log_info(
            logger,
            "[%s] node_count=%d chunk_count=%d duration_seconds=%.3f "
            "items_fetched=%d issues_merged=%d issues_missing=%d",
            FetchEventType.RUN_COMPLETED,
            context.node_count,
            context.chunk_count,
            duration.total_seconds(),
            items_fetched,
            issues_merged,
            issues_missing,
        )

    def log_run_failed(
        self,
        context: FetchRunContext,
        error: BaseException,
        duration: dt.timedelta,
    ) -> None:
        """Log a failed annotation run with error categorization."""
        log_error(
            logger,
            "[%s] node_count=%d chunk_count=%d duration_seconds=%.3f "
            "error_type=%s error_category=%s error_message=%s",
            FetchEventType.RUN_FAILED,
            context.node_count,
            context.chunk_count,
            duration.total_seconds(),
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_chunk_failed(
        self, chunk_index: int, chunk_size: int, error: BaseException
    ) -> None:
        """Log one failed chunk; the run reports only the first failure."""
        log_warning(
            logger,
            "[%s] chunk_index=%d chunk_size=%d error_type=%s error_category=%s",
            FetchEventType.CHUNK_FAILED,
            chunk_index,
            chunk_size,
            type(error).__name__,
            categorize_error(error),
        )

    def log_item_missing(self, node_id: str) -> None:
        """Log a canonical issue with no fetched counterpart."""
        log_warning(
            logger,
            "[%s] node_id=%s",
            FetchEventType.ITEM_MISSING,
            node_id,
        )
