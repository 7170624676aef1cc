from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator

from moddoc.extractor import BUILTIN_PREFIX


class DocPageInput(BaseModel):
    url: str
    item: str | None = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("url must not be empty")
        if len(v) > 2048:
            raise ValueError("url must not exceed 2048 characters")
        if v.startswith(BUILTIN_PREFIX):
            library = v[len(BUILTIN_PREFIX) :].rstrip("/")
            if not library or "/" in library:
                raise ValueError(f"Invalid builtin library: {v!r}")
            return BUILTIN_PREFIX + library
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must use the http or https scheme, or name a deno// library")
        return v

    @field_validator("item")
    @classmethod
    def validate_item(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if any(not segment for segment in v.split(".")):
            raise ValueError(f"Invalid item path: {v!r}")
        return v


class DocPageOutput(BaseModel):
    url: str
    nodes: list[dict[str, Any]]


class DocEntryOutput(BaseModel):
    url: str
    item: str
    found: bool
    kind: str | None = None
    nodes: list[dict[str, Any]] = []
    message: str | None = None
