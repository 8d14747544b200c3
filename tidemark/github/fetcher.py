"""Fetch issue and pull request nodes in fixed-size concurrent batches."""

from __future__ import annotations

import asyncio
import typing as typ

from .errors import GitHubResponseShapeError
from .models import decode_remote_item
from .observability import FetchEventLogger
from .queries import render_query
from .timeline import annotate_last_activity

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .client import GraphQLTransport
    from .models import AnnotatedItem

BATCH_SIZE = 25
"""Node ids per request; keeps each query under GitHub's node complexity limit."""


def chunk_node_ids(
    node_ids: cabc.Iterable[str | None], size: int = BATCH_SIZE
) -> list[list[str]]:
    """Drop empty ids and split the rest into consecutive chunks of ``size``."""
    valid = [node_id for node_id in node_ids if node_id]
    return [valid[start : start + size] for start in range(0, len(valid), size)]


def _decode_nodes(data: dict[str, typ.Any]) -> list[AnnotatedItem]:
    nodes = data.get("nodes")
    if not isinstance(nodes, list):
        raise GitHubResponseShapeError.missing("nodes")
    # Unknown ids come back as null; ids of other node types carry no fields.
    return [
        annotate_last_activity(decode_remote_item(node))
        for node in nodes
        if isinstance(node, dict) and "__typename" in node
    ]


class BatchFetcher:
    """Fetch many nodes through a GraphQL transport, one request per chunk.

    All chunk requests run concurrently and are awaited to completion. If any
    chunk fails, the failure of the earliest such chunk is raised and the
    data of every other chunk is discarded.
    """

    def __init__(
        self,
        transport: GraphQLTransport,
        query_template: str,
        *,
        event_logger: FetchEventLogger | None = None,
    ) -> None:
        """Bind the fetcher to a transport and a server-safe query template."""
        self._transport = transport
        self._query_template = query_template
        self._events = event_logger or FetchEventLogger()

    async def _fetch_chunk(self, node_ids: list[str]) -> list[AnnotatedItem]:
        query = render_query(self._query_template, node_ids)
        data = await self._transport.request(query)
        return _decode_nodes(data)

    async def fetch_all(
        self, node_ids: cabc.Iterable[str | None]
    ) -> list[AnnotatedItem]:
        """Return annotated items for ``node_ids`` in request order.

        Raises
        ------
        Exception
            The error of the first failed chunk, after every chunk finished.

        """
        chunks = chunk_node_ids(node_ids)
        if not chunks:
            return []

        results = await asyncio.gather(
            *(self._fetch_chunk(chunk) for chunk in chunks),
            return_exceptions=True,
        )

        items: list[AnnotatedItem] = []
        first_error: Exception | None = None
        for index, (chunk, result) in enumerate(zip(chunks, results, strict=True)):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                self._events.log_chunk_failed(index, len(chunk), result)
                if first_error is None:
                    first_error = result
                continue
            items.extend(result)

        if first_error is not None:
            raise first_error
        return items
