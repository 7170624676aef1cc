"""HTTP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the Starlette lifespan context manager
- Register routes and translate handler errors into JSON error responses
- Start uvicorn
"""

from __future__ import annotations

import logging
import re
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.applications import Starlette
from starlette.responses import JSONResponse, RedirectResponse
from starlette.routing import Route

import moddoc.handlers.doc_page as h_doc_page
from moddoc import __version__
from moddoc.config import Settings
from moddoc.errors import ErrorCode, ModDocError
from moddoc.extractor import BUILTIN_PREFIX, DenoDocExtractor
from moddoc.graphs import GraphCache
from moddoc.loader import Loader, build_http_client
from moddoc.resources import ResourceCache
from moddoc.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# State and lifespan
# ---------------------------------------------------------------------------


def build_state(settings: Settings) -> AppState:
    """Wire the caches, loader and extractor for one server process."""
    http_client = build_http_client(settings.fetcher)
    resources = ResourceCache(settings.cache.max_bytes)
    loader = Loader(
        http_client,
        resources,
        max_redirects=settings.fetcher.max_redirects,
        block_private_networks=settings.fetcher.block_private_networks,
    )
    extractor = DenoDocExtractor(settings.extractor)
    graphs = GraphCache(extractor, loader, max_entries=settings.graph_cache.max_entries)
    return AppState(
        settings=settings,
        http_client=http_client,
        resources=resources,
        loader=loader,
        extractor=extractor,
        graphs=graphs,
    )


@asynccontextmanager
async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings: Settings = app.state.settings
    state = build_state(settings)
    app.state.moddoc = state

    log.info(
        "server_started",
        version=__version__,
        resource_cache_max_bytes=settings.cache.max_bytes,
        graph_cache_max_entries=settings.graph_cache.max_entries,
    )

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

# Path-style module URLs: /https://deno.land/std/path/mod.ts/~/join
# Proxies may collapse the double slash after the scheme.
_PATH_URL = re.compile(r"^(https?):/+(.+)$")
# Built-in type libraries: /deno//stable/~/Deno.readFile
_BUILTIN_PATH = re.compile(r"^deno/+([^/]+)/?$")
_ITEM_SEPARATOR = "/~/"

_INTERNAL_ERROR = ModDocError(
    code=ErrorCode.INTERNAL_ERROR,
    message="Internal server error.",
    suggestion="Retry later; if the problem persists, report the module URL.",
    recoverable=True,
)


def split_path_url(target: str) -> tuple[str, str | None] | None:
    """Split ``https://host/mod.ts/~/Item.path`` into module URL and item path.

    ``deno//<library>[/~/Item.path]`` names a built-in type library.
    """
    item: str | None = None
    if _ITEM_SEPARATOR in target:
        target, item = target.split(_ITEM_SEPARATOR, 1)

    match = _PATH_URL.match(target)
    if match is not None:
        scheme, rest = match.groups()
        return f"{scheme}://{rest}", item

    builtin = _BUILTIN_PATH.match(target)
    if builtin is not None:
        return f"{BUILTIN_PREFIX}{builtin.group(1)}", item
    return None


async def _run_doc_page(request: Request, url: str, item: str | None) -> JSONResponse:
    state: AppState = request.app.state.moddoc
    try:
        result = await h_doc_page.handle(url, item, state)
    except ModDocError as exc:
        log.warning(
            "request_error",
            url=url,
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)
    except Exception:
        # Includes invariant violations; details stay in the log
        log.error("request_unexpected_error", url=url, item=item, exc_info=True)
        return JSONResponse(_INTERNAL_ERROR.to_dict(), status_code=_INTERNAL_ERROR.status_code)
    return JSONResponse(result)


async def doc_query(request: Request) -> JSONResponse:
    """``GET /doc?url=<module>&item=<dotted.path>``"""
    url = request.query_params.get("url", "")
    item = request.query_params.get("item")
    return await _run_doc_page(request, url, item)


async def doc_path(request: Request) -> JSONResponse:
    """``GET /<module url>[/~/<dotted.path>]``"""
    parsed = split_path_url(request.path_params["target"])
    if parsed is None:
        error = ModDocError(
            code=ErrorCode.INVALID_INPUT,
            message=f"Not a module URL: /{request.path_params['target']}",
            suggestion="Use /https://host/path/mod.ts, /deno//stable or /doc?url=...",
            recoverable=False,
        )
        return JSONResponse(error.to_dict(), status_code=error.status_code)
    url, item = parsed
    if request.url.query and not url.startswith(BUILTIN_PREFIX):
        # The query string belongs to the module URL
        url = f"{url}?{request.url.query}"
    return await _run_doc_page(request, url, item)


async def legacy_builtin(request: Request) -> RedirectResponse:
    """``GET /builtin/stable`` from the old documentation site."""
    return RedirectResponse("/deno//stable", status_code=302)


async def health(request: Request) -> JSONResponse:
    state: AppState = request.app.state.moddoc
    return JSONResponse(
        {
            "status": "ok",
            "version": __version__,
            "graphs": len(state.graphs),
            "resources": len(state.resources),
            "resource_bytes": state.resources.current_bytes,
        }
    )


def create_app(settings: Settings | None = None, *, state: AppState | None = None) -> Starlette:
    """Build the ASGI app.

    Passing a prebuilt ``state`` skips the lifespan wiring (used by tests).
    """
    app = Starlette(
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/doc", doc_query, methods=["GET"]),
            Route("/builtin/stable", legacy_builtin, methods=["GET"]),
            Route("/{target:path}", doc_path, methods=["GET"]),
        ],
        lifespan=None if state is not None else lifespan,
    )
    if state is not None:
        app.state.settings = state.settings
        app.state.moddoc = state
    else:
        app.state.settings = settings or Settings()
    return app


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()
    _setup_logging(settings)
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )


if __name__ == "__main__":
    main()
