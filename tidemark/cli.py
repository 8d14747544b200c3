"""Command-line entry point for inspecting queries and fetching node activity."""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
import typing as typ

import httpx
import msgspec

from tidemark.github import (
    BatchFetcher,
    GitHubGraphQLClient,
    GitHubGraphQLConfig,
    RemotePullRequest,
    build_query_template,
)
from tidemark.github.errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
)
from tidemark.logging import (
    configure_logging,
    get_logger,
    log_exception,
    log_warning,
)

if typ.TYPE_CHECKING:
    from tidemark.github import AnnotatedItem

logger = get_logger(__name__)


def _item_record(annotated: AnnotatedItem) -> dict[str, typ.Any]:
    item = annotated.item
    return {
        "node_id": item.node_id,
        "typename": "PullRequest" if isinstance(item, RemotePullRequest) else "Issue",
        "repository": item.repository.name_with_owner,
        "number": item.number,
        "last_actor_login": annotated.last_activity.actor_login,
        "last_activity_at": annotated.last_activity.activity_at,
    }


async def run_fetch(
    client: GitHubGraphQLClient, node_ids: typ.Sequence[str]
) -> list[dict[str, typ.Any]]:
    """Fetch ``node_ids`` through ``client`` and return one record per item.

    The server version is discovered from the host when the configuration
    does not pin one.
    """
    config = client.config
    server_version = config.server_version
    if not config.is_primary_host and server_version is None:
        server_version = await client.discover_server_version()
    template = build_query_template(
        is_primary_host=config.is_primary_host, server_version=server_version
    )
    items = await BatchFetcher(client, template).fetch_all(node_ids)
    return [_item_record(annotated) for annotated in items]


async def _fetch_with_env_config(
    node_ids: typ.Sequence[str],
) -> list[dict[str, typ.Any]]:
    client = GitHubGraphQLClient(GitHubGraphQLConfig.from_env())
    try:
        return await run_fetch(client, node_ids)
    finally:
        await client.aclose()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tidemark", description=__doc__)
    commands = parser.add_subparsers(dest="command", required=True)

    query = commands.add_parser(
        "query", help="Print the node query template for a target server"
    )
    query.add_argument(
        "--server-version",
        default=None,
        help="GitHub Enterprise Server version, e.g. 2.21.3",
    )
    query.add_argument(
        "--primary",
        action="store_true",
        help="Target github.com instead of an Enterprise server",
    )

    fetch = commands.add_parser(
        "fetch", help="Fetch nodes and print their last activity as JSON lines"
    )
    fetch.add_argument("node_ids", nargs="+", help="GraphQL node ids")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the ``tidemark`` command.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 when configuration or fetching fails.

    """
    args = _build_parser().parse_args(argv)

    raw_level = os.environ.get("TIDEMARK_LOG_LEVEL", "WARNING")
    normalized_level, invalid_level = configure_logging(raw_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid TIDEMARK_LOG_LEVEL %r, falling back to %s",
            raw_level,
            normalized_level,
        )

    if args.command == "query":
        template = build_query_template(
            is_primary_host=args.primary, server_version=args.server_version
        )
        sys.stdout.write(template)
        return 0

    try:
        records = asyncio.run(_fetch_with_env_config(args.node_ids))
    except (
        GitHubAPIError,
        GitHubConfigError,
        GitHubResponseShapeError,
        httpx.HTTPError,
    ) as exc:
        log_exception(logger, "tidemark fetch failed", exc)
        print(f"tidemark fetch failed: {exc}", file=sys.stderr)
        return 1

    for record in records:
        sys.stdout.write(msgspec.json.encode(record).decode() + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
