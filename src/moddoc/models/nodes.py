"""Documentation node models.

Mirrors the JSON emitted by the documentation extractor: a flat list of nodes,
each tagged by ``kind``. Payloads the core never inspects (class members,
function signatures, ...) are kept as opaque dicts so they round-trip to the
presentation layer untouched.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

NodeKind = Literal[
    "moduleDoc",
    "import",
    "namespace",
    "class",
    "enum",
    "variable",
    "function",
    "interface",
    "typeAlias",
]


class JsDoc(BaseModel):
    model_config = ConfigDict(extra="allow")

    doc: str | None = None
    tags: list[dict[str, Any]] = []


class Location(BaseModel):
    filename: str
    line: int
    col: int = 0


class _BaseNode(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    js_doc: JsDoc | None = Field(default=None, alias="jsDoc")
    location: Location | None = None

    @field_validator("js_doc", mode="before")
    @classmethod
    def coerce_js_doc(cls, v: Any) -> Any:
        # Older extractor output carries the doc comment as a bare string
        if isinstance(v, str):
            return {"doc": v}
        return v


class ModuleDocNode(_BaseNode):
    kind: Literal["moduleDoc"] = "moduleDoc"


class ImportDef(BaseModel):
    model_config = ConfigDict(extra="allow")

    src: str
    imported: str | None = None


class ImportNode(_BaseNode):
    kind: Literal["import"] = "import"
    import_def: ImportDef = Field(alias="importDef")


class NamespaceDef(BaseModel):
    model_config = ConfigDict(extra="allow")

    elements: list[DocNode] = []


class NamespaceNode(_BaseNode):
    kind: Literal["namespace"] = "namespace"
    namespace_def: NamespaceDef = Field(default_factory=NamespaceDef, alias="namespaceDef")


class InterfaceDef(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    call_signatures: list[dict[str, Any]] = Field(default=[], alias="callSignatures")
    index_signatures: list[dict[str, Any]] = Field(default=[], alias="indexSignatures")
    methods: list[dict[str, Any]] = []
    properties: list[dict[str, Any]] = []


class InterfaceNode(_BaseNode):
    kind: Literal["interface"] = "interface"
    interface_def: InterfaceDef = Field(default_factory=InterfaceDef, alias="interfaceDef")


class ClassNode(_BaseNode):
    kind: Literal["class"] = "class"
    class_def: dict[str, Any] = Field(default_factory=dict, alias="classDef")


class EnumNode(_BaseNode):
    kind: Literal["enum"] = "enum"
    enum_def: dict[str, Any] = Field(default_factory=dict, alias="enumDef")


class VariableNode(_BaseNode):
    kind: Literal["variable"] = "variable"
    variable_def: dict[str, Any] = Field(default_factory=dict, alias="variableDef")


class FunctionNode(_BaseNode):
    kind: Literal["function"] = "function"
    function_def: dict[str, Any] = Field(default_factory=dict, alias="functionDef")


class TypeAliasNode(_BaseNode):
    kind: Literal["typeAlias"] = "typeAlias"
    type_alias_def: dict[str, Any] = Field(default_factory=dict, alias="typeAliasDef")


DocNode = Annotated[
    ModuleDocNode
    | ImportNode
    | NamespaceNode
    | ClassNode
    | EnumNode
    | VariableNode
    | FunctionNode
    | InterfaceNode
    | TypeAliasNode,
    Field(discriminator="kind"),
]

NamespaceDef.model_rebuild()
NamespaceNode.model_rebuild()

_DOC_GRAPH = TypeAdapter(list[DocNode])


def parse_doc_nodes(raw: list[dict[str, Any]]) -> list[DocNode]:
    """Validate raw extractor output into typed nodes.

    Raises ``pydantic.ValidationError`` for malformed shapes, including any
    ``kind`` outside the closed set.
    """
    return _DOC_GRAPH.validate_python(raw)


def dump_doc_nodes(nodes: list[DocNode]) -> list[dict[str, Any]]:
    """Serialise nodes back to the extractor's camelCase JSON shape."""
    return _DOC_GRAPH.dump_python(nodes, mode="json", by_alias=True, exclude_none=True)
