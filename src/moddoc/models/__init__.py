from __future__ import annotations

from moddoc.models.nodes import (
    ClassNode,
    DocNode,
    EnumNode,
    FunctionNode,
    ImportDef,
    ImportNode,
    InterfaceDef,
    InterfaceNode,
    JsDoc,
    Location,
    ModuleDocNode,
    NamespaceDef,
    NamespaceNode,
    NodeKind,
    TypeAliasNode,
    VariableNode,
)
from moddoc.models.requests import DocEntryOutput, DocPageInput, DocPageOutput
from moddoc.models.resources import CachedResource

__all__ = [
    # nodes
    "DocNode",
    "NodeKind",
    "JsDoc",
    "Location",
    "ModuleDocNode",
    "ImportDef",
    "ImportNode",
    "NamespaceDef",
    "NamespaceNode",
    "InterfaceDef",
    "InterfaceNode",
    "ClassNode",
    "EnumNode",
    "VariableNode",
    "FunctionNode",
    "TypeAliasNode",
    # resources
    "CachedResource",
    # requests
    "DocPageInput",
    "DocPageOutput",
    "DocEntryOutput",
]
