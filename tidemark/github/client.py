"""HTTP transport for GitHub GraphQL node queries."""

from __future__ import annotations

import dataclasses
import os
import typing as typ

import httpx

from .errors import GitHubAPIError, GitHubConfigError, GitHubResponseShapeError

PRIMARY_API_HOST = "api.github.com"
_DEFAULT_ENDPOINT = f"https://{PRIMARY_API_HOST}/graphql"
_ENTERPRISE_META_PATH = "/api/v3/meta"
_DEFAULT_TIMEOUT_S = 20.0
_HTTP_ERROR_STATUS_THRESHOLD = 400


class GraphQLTransport(typ.Protocol):
    """Executes a GraphQL document and returns its ``data`` object."""

    async def request(self, query: str) -> dict[str, typ.Any]:
        """Run ``query`` and return the response ``data``.

        Implementations raise on transport or GraphQL errors rather than
        returning partial data.
        """
        ...


def _parse_timeout(raw: str, default: float) -> float:
    if not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise GitHubConfigError.invalid_timeout(raw) from exc
    if value <= 0:
        raise GitHubConfigError.invalid_timeout(raw)
    return value


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubGraphQLConfig:
    """Configuration for the GitHub GraphQL API client.

    Attributes
    ----------
    token
        Bearer token sent with every request.
    endpoint
        GraphQL endpoint. GitHub Enterprise Server uses
        ``https://<host>/api/graphql``.
    timeout_s
        Per-request timeout handed to httpx.
    user_agent
        ``User-Agent`` header value.
    server_version
        GitHub Enterprise Server version such as ``"2.21.3"``. Ignored for
        github.com; discovered from the server when left unset.

    """

    token: str
    endpoint: str = _DEFAULT_ENDPOINT
    timeout_s: float = _DEFAULT_TIMEOUT_S
    user_agent: str = "tidemark/0.1"
    server_version: str | None = None

    @property
    def is_primary_host(self) -> bool:
        """Return whether the endpoint is github.com rather than an Enterprise host."""
        return httpx.URL(self.endpoint).host == PRIMARY_API_HOST

    @classmethod
    def from_env(cls) -> GitHubGraphQLConfig:
        """Build configuration from environment variables.

        Reads ``TIDEMARK_GITHUB_TOKEN`` (required),
        ``TIDEMARK_GITHUB_GRAPHQL_URL``, ``TIDEMARK_GITHUB_SERVER_VERSION``
        and ``TIDEMARK_GITHUB_TIMEOUT_S``.

        Raises
        ------
        GitHubConfigError
            If the token is missing or the timeout is not a positive number.

        """
        token = os.environ.get("TIDEMARK_GITHUB_TOKEN", "").strip()
        if not token:
            raise GitHubConfigError.missing_token()
        endpoint = (
            os.environ.get("TIDEMARK_GITHUB_GRAPHQL_URL", "").strip()
            or _DEFAULT_ENDPOINT
        )
        server_version = (
            os.environ.get("TIDEMARK_GITHUB_SERVER_VERSION", "").strip() or None
        )
        timeout_s = _parse_timeout(
            os.environ.get("TIDEMARK_GITHUB_TIMEOUT_S", ""), _DEFAULT_TIMEOUT_S
        )
        return cls(
            token=token,
            endpoint=endpoint,
            timeout_s=timeout_s,
            server_version=server_version,
        )


def _validate_string_keyed_dict(
    raw_dict: dict[typ.Any, typ.Any],
    *,
    field_name: str,
) -> dict[str, typ.Any]:
    result: dict[str, typ.Any] = {}
    for key, value in raw_dict.items():
        if not isinstance(key, str):
            raise GitHubResponseShapeError.missing(field_name)
        result[key] = value
    return result


def _parse_graphql_payload(payload_raw: object) -> dict[str, typ.Any]:
    """Validate a GraphQL response payload and return its ``data`` field."""
    if not isinstance(payload_raw, dict):
        raise GitHubResponseShapeError.missing("response")

    payload = _validate_string_keyed_dict(payload_raw, field_name="response")

    errors = payload.get("errors")
    if errors:
        raise GitHubAPIError.graphql_errors(errors)

    data = payload.get("data")
    if not isinstance(data, dict):
        raise GitHubResponseShapeError.missing("data")

    return _validate_string_keyed_dict(data, field_name="data")


class GitHubGraphQLClient:
    """httpx implementation of :class:`GraphQLTransport`."""

    def __init__(
        self,
        config: GitHubGraphQLConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            headers={
                "Authorization": f"Bearer {config.token}",
                "User-Agent": config.user_agent,
                "Accept": "application/json",
            },
        )

    @property
    def config(self) -> GitHubGraphQLConfig:
        """Return the configuration this client was built with."""
        return self._config

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def request(self, query: str) -> dict[str, typ.Any]:
        """Execute a GraphQL query and return the validated data field."""
        response = await self._client.post(
            self._config.endpoint,
            json={"query": query},
        )
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(response.status_code)
        return _parse_graphql_payload(response.json())

    async def discover_server_version(self) -> str | None:
        """Return the installed GitHub Enterprise Server version.

        github.com has no version, so ``None`` is returned without a request.
        ``None`` is also returned when the meta endpoint omits the field.
        """
        if self._config.is_primary_host:
            return None

        meta_url = httpx.URL(self._config.endpoint).copy_with(
            path=_ENTERPRISE_META_PATH
        )
        response = await self._client.get(meta_url)
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(response.status_code)
        payload = response.json()
        if not isinstance(payload, dict):
            raise GitHubResponseShapeError.missing("meta")
        version = payload.get("installed_version")
        return version if isinstance(version, str) and version else None
