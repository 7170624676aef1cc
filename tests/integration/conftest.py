"""Integration test fixtures.

Provides a fully wired AppState: real ResourceCache, Loader and GraphCache
around an in-memory extractor, so no deno binary or network is needed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import pytest

from moddoc.config import Settings
from moddoc.graphs import GraphCache
from moddoc.loader import Loader
from moddoc.resources import ResourceCache
from moddoc.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable


@pytest.fixture()
async def http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture()
def make_state(http_client: httpx.AsyncClient) -> Callable[[Any], AppState]:
    """Return a factory wiring a fresh AppState around the given extractor."""

    def _make(extractor: Any) -> AppState:
        settings = Settings()
        resources = ResourceCache(settings.cache.max_bytes)
        loader = Loader(http_client, resources)
        return AppState(
            settings=settings,
            http_client=http_client,
            resources=resources,
            loader=loader,
            extractor=extractor,
            graphs=GraphCache(extractor, loader, max_entries=settings.graph_cache.max_entries),
        )

    return _make


@pytest.fixture()
def app_state(make_state: Callable[[Any], AppState], fake_extractor: Any) -> AppState:
    """AppState whose extractor returns the shared ``raw_nodes`` graph."""
    return make_state(fake_extractor)
