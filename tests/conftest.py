"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import pytest

_TIDEMARK_ENV = (
    "TIDEMARK_GITHUB_TOKEN",
    "TIDEMARK_GITHUB_GRAPHQL_URL",
    "TIDEMARK_GITHUB_SERVER_VERSION",
    "TIDEMARK_GITHUB_TIMEOUT_S",
    "TIDEMARK_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_tidemark_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer shell settings out of configuration tests."""
    for name in _TIDEMARK_ENV:
        monkeypatch.delenv(name, raising=False)
