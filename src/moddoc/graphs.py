"""Per-root cache of merged documentation graphs.

A miss hands the Loader to the extractor, merges the flat node list and stores
the result under the exact root URL string (no normalisation). Concurrent
misses on the same root share a single build. Failed builds are never cached.
"""

from __future__ import annotations

import asyncio
import functools
import time
from collections import OrderedDict
from typing import TYPE_CHECKING

import structlog

from moddoc.errors import ErrorCode, ModDocError
from moddoc.extractor import UNABLE_TO_LOAD, ExtractionError
from moddoc.merge import merge_entries
from moddoc.models.nodes import parse_doc_nodes

if TYPE_CHECKING:
    from moddoc.models.nodes import DocNode
    from moddoc.models.resources import CachedResource
    from moddoc.protocols import ExtractorProtocol, LoaderProtocol

log = structlog.get_logger()


class _TimedLoad:
    """Load callback for one build; records when the last load returned.

    Lives for a single build so concurrent builds never see each other's timings.
    """

    def __init__(self, loader: LoaderProtocol) -> None:
        self._loader = loader
        self.last_load: float | None = None
        self.calls = 0

    async def __call__(self, specifier: str) -> CachedResource | None:
        self.calls += 1
        try:
            return await self._loader.load(specifier)
        finally:
            self.last_load = time.perf_counter()


class GraphCache:
    """Root URL → merged DocGraph, optionally bounded by entry count."""

    def __init__(
        self,
        extractor: ExtractorProtocol,
        loader: LoaderProtocol,
        *,
        max_entries: int = 0,
    ) -> None:
        self._extractor = extractor
        self._loader = loader
        self._max_entries = max_entries
        self._graphs: OrderedDict[str, list[DocNode]] = OrderedDict()
        self._in_flight: dict[str, asyncio.Task[list[DocNode]]] = {}

    def __len__(self) -> int:
        return len(self._graphs)

    def __contains__(self, root_url: object) -> bool:
        return root_url in self._graphs

    def get(self, root_url: str) -> list[DocNode] | None:
        """Return the stored graph for ``root_url`` without building."""
        graph = self._graphs.get(root_url)
        if graph is not None:
            self._graphs.move_to_end(root_url)
        return graph

    def clear(self) -> None:
        self._graphs.clear()

    async def get_or_build(self, root_url: str) -> list[DocNode]:
        """Return the graph for ``root_url``, building it on a miss.

        Raises ModDocError (MODULE_NOT_FOUND / INVALID_MODULE) when the
        extractor rejects the module. Anything else propagates unchanged.
        """
        graph = self.get(root_url)
        if graph is not None:
            log.debug("graph_cache_hit", url=root_url)
            return graph

        task = self._in_flight.get(root_url)
        if task is None:
            log.info("graph_cache_miss", url=root_url)
            task = asyncio.create_task(self._build(root_url))
            self._in_flight[root_url] = task
            task.add_done_callback(functools.partial(self._settle, root_url))
        else:
            log.info("graph_build_joined", url=root_url)

        # Shielded so one cancelled request does not cancel a build others await
        return await asyncio.shield(task)

    def _settle(self, root_url: str, task: asyncio.Task[list[DocNode]]) -> None:
        self._in_flight.pop(root_url, None)
        if not task.cancelled():
            # Every caller may have been cancelled; mark a failure as retrieved
            task.exception()

    async def _build(self, root_url: str) -> list[DocNode]:
        timed_load = _TimedLoad(self._loader)
        start = time.perf_counter()

        try:
            raw = await self._extractor.extract(root_url, timed_load)
        except ExtractionError as exc:
            raise _classify(root_url, exc) from exc

        end = time.perf_counter()
        last_load = timed_load.last_load if timed_load.last_load is not None else start
        graph = merge_entries(parse_doc_nodes(raw))

        log.info(
            "graph_built",
            url=root_url,
            graph_ms=round((last_load - start) * 1000),
            doc_ms=round((end - last_load) * 1000),
            loads=timed_load.calls,
            nodes=len(graph),
        )
        self._store(root_url, graph)
        return graph

    def _store(self, root_url: str, graph: list[DocNode]) -> None:
        self._graphs[root_url] = graph
        self._graphs.move_to_end(root_url)
        if self._max_entries <= 0:
            return
        while len(self._graphs) > self._max_entries:
            evicted, _ = self._graphs.popitem(last=False)
            log.info("graph_cache_evicted", url=evicted)


def _classify(root_url: str, exc: ExtractionError) -> ModDocError:
    message = str(exc)
    if UNABLE_TO_LOAD in message:
        return ModDocError(
            code=ErrorCode.MODULE_NOT_FOUND,
            message=f'The module "{root_url}" cannot be found.',
            suggestion="Check that the module URL is correct and publicly reachable.",
            recoverable=False,
        )
    return ModDocError(
        code=ErrorCode.INVALID_MODULE,
        message=f"Bad request: {message}",
        suggestion="The module could not be analysed; check it for syntax errors.",
        recoverable=False,
    )
