from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CachedResource(BaseModel):
    """A fetched module source, as handed to the extractor's load callback."""

    model_config = ConfigDict(frozen=True)

    specifier: str  # As requested by the extractor (cache key)
    final_url: str  # After redirects
    headers: dict[str, str]  # Lowercased header names
    content: str
    size_bytes: int  # Raw body length, counted against the cache bound
