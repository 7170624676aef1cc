"""Application state container.

AppState is created once at server startup (inside the Starlette lifespan
context manager) and passed explicitly to every request handler. Nothing in
the core reads request context from module-level state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from moddoc.config import Settings
    from moddoc.graphs import GraphCache
    from moddoc.protocols import ExtractorProtocol, LoaderProtocol
    from moddoc.resources import ResourceCache


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every request handler."""

    settings: Settings
    http_client: httpx.AsyncClient
    resources: ResourceCache
    loader: LoaderProtocol
    extractor: ExtractorProtocol
    graphs: GraphCache
