"""Unit tests for fetch and merge observability."""

from __future__ import annotations

import datetime as dt

import httpx
import pytest

from tests.helpers.femtologging_capture import capture_femto_logs
from tidemark.github.errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
    ServerVersionError,
)
from tidemark.github.observability import (
    ErrorCategory,
    FetchEventLogger,
    FetchEventType,
    FetchRunContext,
    categorize_error,
)

_LOGGER_NAME = "tidemark.github.observability"


class TestCategorizeError:
    """Tests for error categorization."""

    @pytest.mark.parametrize("status", [500, 502, 503])
    def test_github_api_error_5xx_is_transient(self, status: int) -> None:
        """GitHub 5xx errors are classified as transient."""
        exc = GitHubAPIError.http_error(status)
        assert categorize_error(exc) == ErrorCategory.TRANSIENT

    def test_github_api_error_4xx_is_client_error(self) -> None:
        """GitHub 4xx errors are classified as client errors."""
        exc = GitHubAPIError.http_error(401)
        assert categorize_error(exc) == ErrorCategory.CLIENT_ERROR

    def test_graphql_errors_are_client_errors(self) -> None:
        """GraphQL errors without a status code are client errors."""
        exc = GitHubAPIError.graphql_errors([{"message": "Bad request"}])
        assert categorize_error(exc) == ErrorCategory.CLIENT_ERROR

    def test_response_shape_error_is_schema_drift(self) -> None:
        """Missing response fields indicate schema drift."""
        exc = GitHubResponseShapeError.missing("nodes")
        assert categorize_error(exc) == ErrorCategory.SCHEMA_DRIFT

    @pytest.mark.parametrize(
        "exc",
        [GitHubConfigError.missing_token(), ServerVersionError.unparseable("x")],
    )
    def test_configuration_errors(self, exc: Exception) -> None:
        """Token and server version problems are configuration errors."""
        assert categorize_error(exc) == ErrorCategory.CONFIGURATION

    def test_httpx_error_is_transport(self) -> None:
        """Connection failures raised by httpx are transport errors."""
        exc = httpx.ConnectError("connection refused")
        assert categorize_error(exc) == ErrorCategory.TRANSPORT

    def test_unknown_exception_is_unknown(self) -> None:
        """Unknown exception types default to unknown category."""
        assert categorize_error(RuntimeError("unexpected")) == ErrorCategory.UNKNOWN


class TestFetchEventLogger:
    """Tests for FetchEventLogger structured logging."""

    @pytest.fixture
    def context(self) -> FetchRunContext:
        """Return a sample run context."""
        return FetchRunContext(
            node_count=30,
            chunk_count=2,
            started_at=dt.datetime(2025, 1, 15, 12, 0, 0, tzinfo=dt.UTC),
        )

    def test_log_run_started_emits_info(self, context: FetchRunContext) -> None:
        """Run started events carry node and chunk counts."""
        with capture_femto_logs(_LOGGER_NAME) as capture:
            FetchEventLogger().log_run_started(context)
            capture.wait_for_count(1)

        record = capture.records[0]
        assert record.level == "INFO"
        assert FetchEventType.RUN_STARTED in record.message
        assert "node_count=30" in record.message
        assert "chunk_count=2" in record.message

    def test_log_run_completed_includes_counts(self, context: FetchRunContext) -> None:
        """Run completed events include fetch and merge counts."""
        with capture_femto_logs(_LOGGER_NAME) as capture:
            FetchEventLogger().log_run_completed(
                context,
                items_fetched=28,
                issues_merged=27,
                issues_missing=3,
                duration=dt.timedelta(seconds=1.5),
            )
            capture.wait_for_count(1)

        message = capture.records[0].message
        assert FetchEventType.RUN_COMPLETED in message
        assert "items_fetched=28" in message
        assert "issues_merged=27" in message
        assert "issues_missing=3" in message
        assert "duration_seconds=1.500" in message

    def test_log_run_failed_includes_error_details(
        self, context: FetchRunContext
    ) -> None:
        """Run failed events include error type and category."""
        error = GitHubAPIError.http_error(502)

        with capture_femto_logs(_LOGGER_NAME) as capture:
            FetchEventLogger().log_run_failed(context, error, dt.timedelta(seconds=2))
            capture.wait_for_count(1)

        record = capture.records[0]
        assert record.level == "ERROR"
        assert FetchEventType.RUN_FAILED in record.message
        assert "error_type=GitHubAPIError" in record.message
        assert "error_category=transient" in record.message
        assert "GitHub HTTP 502" in record.message

    def test_log_chunk_failed_emits_warning(self) -> None:
        """Chunk failures are logged at WARN with their position."""
        with capture_femto_logs(_LOGGER_NAME) as capture:
            FetchEventLogger().log_chunk_failed(1, 5, GitHubAPIError.http_error(503))
            capture.wait_for_count(1)

        record = capture.records[0]
        assert record.level == "WARN"
        assert FetchEventType.CHUNK_FAILED in record.message
        assert "chunk_index=1" in record.message
        assert "chunk_size=5" in record.message

    def test_log_item_missing_names_node(self) -> None:
        """Unmatched canonical issues are reported by node id."""
        with capture_femto_logs(_LOGGER_NAME) as capture:
            FetchEventLogger().log_item_missing("I_kwDO1")
            capture.wait_for_count(1)

        assert capture.messages() == [
            f"[{FetchEventType.ITEM_MISSING}] node_id=I_kwDO1"
        ]


def test_event_type_values() -> None:
    """Event types follow the dotted naming convention."""
    assert FetchEventType.RUN_STARTED == "fetch.run.started"
    assert FetchEventType.CHUNK_FAILED == "fetch.chunk.failed"
    assert FetchEventType.ITEM_MISSING == "merge.item.missing"
    assert FetchEventType.VERSION_UNPARSEABLE == "query.version.unparseable"
