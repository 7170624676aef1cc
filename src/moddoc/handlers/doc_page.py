"""Request handler for documentation pages.

Receives AppState, orchestrates graph lookup / build and optional item path
resolution, and returns a structured dict. No Starlette imports;
server.py handles the HTTP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from moddoc.errors import ErrorCode, ModDocError
from moddoc.models.nodes import dump_doc_nodes
from moddoc.models.requests import DocEntryOutput, DocPageInput, DocPageOutput
from moddoc.paths import resolve_path

if TYPE_CHECKING:
    from moddoc.state import AppState


async def handle(url: str, item: str | None, state: AppState) -> dict:
    """Handle a documentation page request."""
    log = structlog.get_logger().bind(handler="doc_page", url=url, item=item)
    log.info("handler_called")

    # Validate input
    try:
        validated = DocPageInput(url=url, item=item)
    except ValueError as exc:
        raise ModDocError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion=(
                "Provide an http(s) module URL or deno//<library> and, optionally, "
                "a dotted item path."
            ),
            recoverable=False,
        ) from exc

    graph = await state.graphs.get_or_build(validated.url)

    if validated.item is None:
        output = DocPageOutput(url=validated.url, nodes=dump_doc_nodes(graph))
        return output.model_dump(mode="json")

    group = resolve_path(validated.item, graph)
    if group is None:
        log.info("entry_not_found")
        entry = DocEntryOutput(
            url=validated.url,
            item=validated.item,
            found=False,
            message=(
                f'The document entry named "{validated.item}" was not found '
                f'in specifier "{validated.url}".'
            ),
        )
        return entry.model_dump(mode="json")

    log.info("entry_resolved", kind=group.kind, overloads=len(group.nodes))
    entry = DocEntryOutput(
        url=validated.url,
        item=validated.item,
        found=True,
        kind=group.kind,
        nodes=dump_doc_nodes(group.nodes),
    )
    return entry.model_dump(mode="json")
