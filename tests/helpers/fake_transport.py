"""In-memory GraphQL transport for fetcher and service tests."""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import re
import typing as typ

import msgspec

from tests.helpers.graphql_nodes import NodeSpec, make_node, nodes_response

_NODE_IDS_PATTERN = re.compile(r"nodes\(ids: \[(?P<ids>.*?)\]\)")

Responder = cabc.Callable[[list[str]], dict[str, typ.Any] | Exception]


def requested_node_ids(query: str) -> list[str]:
    """Return the node ids substituted into a rendered node query."""
    match = _NODE_IDS_PATTERN.search(query)
    assert match is not None, "query has no nodes(ids: [...]) selection"
    return msgspec.json.decode(f"[{match.group('ids')}]", type=list[str])


def echo_issues(node_ids: list[str]) -> dict[str, typ.Any]:
    """Answer every requested id with a minimal issue node."""
    return nodes_response([make_node(NodeSpec(node_id=nid)) for nid in node_ids])


class FakeTransport:
    """Record requests and answer them through ``responder``.

    Each request yields to the event loop once, so concurrently issued
    requests interleave the way real HTTP calls would.
    """

    def __init__(self, responder: Responder = echo_issues) -> None:
        """Store the responder used to answer each request."""
        self.responder = responder
        self.calls: list[list[str]] = []
        self.queries: list[str] = []

    async def request(self, query: str) -> dict[str, typ.Any]:
        """Answer ``query`` with the responder's result or raise its error."""
        node_ids = requested_node_ids(query)
        self.calls.append(node_ids)
        self.queries.append(query)
        await asyncio.sleep(0)
        result = self.responder(node_ids)
        if isinstance(result, Exception):
            raise result
        return result
