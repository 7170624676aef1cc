"""Shared test fixtures for the moddoc test suite."""

from __future__ import annotations

from typing import Any

import pytest

from moddoc.models.resources import CachedResource


def make_resource(specifier: str, size_bytes: int, content: str = "") -> CachedResource:
    """Build a CachedResource with an explicit size for cache accounting tests."""
    return CachedResource(
        specifier=specifier,
        final_url=specifier,
        headers={"content-type": "application/typescript"},
        content=content,
        size_bytes=size_bytes,
    )


class FakeExtractor:
    """In-memory ExtractorProtocol implementation.

    Loads every specifier in ``imports`` through the callback (like the real
    extractor walking import edges), then returns a copy of the canned nodes.
    """

    def __init__(
        self,
        nodes: list[dict[str, Any]],
        *,
        imports: list[str] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.nodes = nodes
        self.imports = imports or []
        self.error = error
        self.calls: list[str] = []
        self.loaded: list[Any] = []

    async def extract(self, root: str, load: Any) -> list[dict[str, Any]]:
        self.calls.append(root)
        for specifier in self.imports:
            self.loaded.append(await load(specifier))
        if self.error is not None:
            raise self.error
        return [dict(node) for node in self.nodes]


class FakeLoader:
    """LoaderProtocol implementation that resolves nothing."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def load(self, specifier: str) -> CachedResource | None:
        self.calls.append(specifier)
        return None


@pytest.fixture()
def raw_nodes() -> list[dict[str, Any]]:
    """A small extractor output with a split namespace and an overload pair."""
    return [
        {"kind": "moduleDoc", "name": "", "jsDoc": {"doc": "Path utilities."}},
        {
            "kind": "namespace",
            "name": "posix",
            "namespaceDef": {
                "elements": [
                    {"kind": "function", "name": "join", "functionDef": {"params": []}},
                ]
            },
        },
        {"kind": "class", "name": "Path", "classDef": {"isAbstract": False}},
        {
            "kind": "namespace",
            "name": "posix",
            "jsDoc": {"doc": "POSIX path helpers."},
            "namespaceDef": {
                "elements": [
                    {"kind": "variable", "name": "sep", "variableDef": {"kind": "const"}},
                ]
            },
        },
        {"kind": "function", "name": "resolve", "functionDef": {"params": []}},
        {"kind": "function", "name": "resolve", "functionDef": {"params": [{"name": "a"}]}},
        {
            "kind": "import",
            "name": "Path",
            "importDef": {"src": "https://example.com/path.ts", "imported": "Path"},
        },
    ]


@pytest.fixture()
def fake_extractor(raw_nodes: list[dict[str, Any]]) -> FakeExtractor:
    return FakeExtractor(raw_nodes)


@pytest.fixture()
def resource_factory() -> Any:
    return make_resource


@pytest.fixture()
def extractor_factory() -> type[FakeExtractor]:
    return FakeExtractor


@pytest.fixture()
def fake_loader() -> FakeLoader:
    return FakeLoader()
