"""Collapse duplicate top-level namespace and interface declarations.

TypeScript allows a namespace or interface to be declared several times (in
one module or across re-exports); the extractor reports each declaration as a
separate node. Pure business logic, no I/O.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from moddoc.models.nodes import InterfaceNode, NamespaceNode

if TYPE_CHECKING:
    from moddoc.models.nodes import DocNode


def merge_entries(nodes: list[DocNode]) -> list[DocNode]:
    """Merge same-named top-level namespaces and interfaces into the first one.

    Single left-to-right pass. The first node of a given name is canonical and
    keeps its position; later duplicates are folded into it in place and
    dropped from the output. Only the top level is merged; elements nested
    inside a namespace are left as they are. All other kinds pass through,
    duplicates included.
    """
    namespaces: dict[str, NamespaceNode] = {}
    interfaces: dict[str, InterfaceNode] = {}
    merged: list[DocNode] = []

    for node in nodes:
        if isinstance(node, NamespaceNode):
            canonical = namespaces.get(node.name)
            if canonical is None:
                namespaces[node.name] = node
                merged.append(node)
                continue
            canonical.namespace_def.elements.extend(node.namespace_def.elements)
            _backfill_js_doc(canonical, node)

        elif isinstance(node, InterfaceNode):
            canonical_iface = interfaces.get(node.name)
            if canonical_iface is None:
                interfaces[node.name] = node
                merged.append(node)
                continue
            target = canonical_iface.interface_def
            source = node.interface_def
            target.call_signatures.extend(source.call_signatures)
            target.index_signatures.extend(source.index_signatures)
            target.methods.extend(source.methods)
            target.properties.extend(source.properties)
            _backfill_js_doc(canonical_iface, node)

        else:
            merged.append(node)

    return merged


def _backfill_js_doc(canonical: NamespaceNode | InterfaceNode, duplicate: DocNode) -> None:
    if canonical.js_doc is None and duplicate.js_doc is not None:
        canonical.js_doc = duplicate.js_doc
