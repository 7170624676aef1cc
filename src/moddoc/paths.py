"""Dotted item path resolution.

Pure business logic: receives a documentation graph, returns the node group
an item path refers to. No knowledge of AppState, HTTP, or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from moddoc.errors import InvariantViolation
from moddoc.models.nodes import NamespaceNode

if TYPE_CHECKING:
    from moddoc.models.nodes import DocNode


@dataclass
class ResolvedGroup:
    """Nodes an item path resolved to.

    ``nodes`` holds a single node, except for kind ``function`` where it holds
    every overload of the name.
    """

    name: str
    kind: str
    path: list[str]  # Namespace segments actually descended to reach ``name``
    nodes: list[DocNode]


def resolve_path(path: str, graph: list[DocNode]) -> ResolvedGroup | None:
    """Resolve ``"A.B.c"`` to the node(s) named ``c`` inside namespace ``A.B``.

    Descent is forgiving: a prefix segment that names no namespace in the
    current list is skipped and the search carries on from the last list
    reached, so ``"X.c"`` finds a top-level ``c`` when there is no ``X``.
    Import nodes never match.

    Returns ``None`` when nothing matches. Raises InvariantViolation when more
    than one non-function node shares the name.
    """
    *prefix, name = path.split(".")

    entries = graph
    descended: list[str] = []
    for segment in prefix:
        namespace = next(
            (n for n in entries if isinstance(n, NamespaceNode) and n.name == segment),
            None,
        )
        if namespace is not None:
            entries = namespace.namespace_def.elements
            descended.append(segment)

    nodes = [n for n in entries if n.name == name and n.kind != "import"]
    if not nodes:
        return None

    if all(n.kind == "function" for n in nodes):
        return ResolvedGroup(name=name, kind="function", path=descended, nodes=nodes)

    if len(nodes) != 1:
        kinds = ", ".join(n.kind for n in nodes)
        raise InvariantViolation(f"Expected a single node named {path!r}, found: {kinds}")

    return ResolvedGroup(name=name, kind=nodes[0].kind, path=descended, nodes=nodes)
