"""Protocol interfaces for swappable components.

GraphCache and AppState reference these protocols, not the concrete
implementations. This allows:
- Tests to use lightweight in-memory extractors and loaders
- Other documentation backends to be swapped in without touching the caches
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from moddoc.models.resources import CachedResource

# The callback an extractor invokes once per import edge. Never raises;
# ``None`` means "this specifier cannot be resolved".
LoadFn = Callable[[str], Awaitable["CachedResource | None"]]


class LoaderProtocol(Protocol):
    """Interface for the module source loader."""

    async def load(self, specifier: str) -> CachedResource | None: ...


class ExtractorProtocol(Protocol):
    """Interface for the documentation extraction backend.

    Returns the raw, flat node list for ``root``. Rejections caused by the
    analysed module are raised as ``moddoc.extractor.ExtractionError``; a
    message containing ``"Unable to load specifier"`` means the root itself
    could not be loaded.
    """

    async def extract(self, root: str, load: LoadFn) -> list[dict[str, Any]]: ...
