"""Data models shared by every step of IR construction.

The raw document stays a plain dict (it is mutated in place); everything
the pipeline derives from it is described by these models and handed to
renderers together with the document.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from sdk_ir.ir.registry import SchemaRegistry

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


class SchemaKind(str, Enum):
    """Closed set of schema shapes the pipeline distinguishes."""

    REF = "ref"
    ONE_OF = "oneOf"
    ANY_OF = "anyOf"
    ALL_OF = "allOf"
    OBJECT = "object"
    ARRAY = "array"
    PRIMITIVE = "primitive"
    EMPTY = "empty"


def classify_schema(schema: dict) -> SchemaKind:
    """Return the kind of a (possibly unresolved) schema node.

    Boolean schemas (`true`/`false`) and other non-mapping nodes are EMPTY.
    """
    if not isinstance(schema, dict) or not schema:
        return SchemaKind.EMPTY
    if "$ref" in schema:
        return SchemaKind.REF
    if schema.get("oneOf"):
        return SchemaKind.ONE_OF
    if schema.get("anyOf"):
        return SchemaKind.ANY_OF
    if schema.get("allOf"):
        return SchemaKind.ALL_OF
    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        schema_type = next((t for t in schema_type if t != "null"), None)
    if schema_type == "array" or "items" in schema:
        return SchemaKind.ARRAY
    if schema_type == "object" or "properties" in schema or "additionalProperties" in schema:
        return SchemaKind.OBJECT
    if schema_type is None and "const" not in schema and "enum" not in schema:
        return SchemaKind.EMPTY
    return SchemaKind.PRIMITIVE


class Param(BaseModel):
    """A parameter of a tuned operation, declared or synthesized from security."""

    name: str
    location: str  # query / path / header / cookie / input
    required: bool = False
    param_schema: dict = {}
    description: str = ""
    source: str = "parameter"  # parameter / security

    @property
    def key(self) -> tuple[str, str]:
        return self.name, self.location


class OperationEntry(BaseModel):
    """Identity of one HTTP method bound to one path."""

    method: str
    path: str
    tag: str


class ResponseRecord(BaseModel):
    """A resolved response of a tuned operation."""

    status: str
    description: str = ""
    response_name: str | None = None
    content: dict[str, str | None] = {}  # content type -> $ref (None when not synthesized)


class TunedOperation(OperationEntry):
    """An operation with its canonical identity and synthesized input."""

    canonical_name: str
    parameters: list[Param]
    security: list[Param]
    request_schema_ref: str
    request_content: dict[str, str]
    responses: dict[str, ResponseRecord] = {}


class Variant(BaseModel):
    tag: str | None = None
    kind: str | None = None  # structural label, e.g. textContent, intList, list
    schema_ref: str | None = None
    variant_schema: dict | bool = {}


class VariantSet(BaseModel):
    """The branches of a oneOf/anyOf schema and how to tell them apart."""

    kind: str  # oneOf / anyOf
    discriminant_property: str | None = None
    variants: list[Variant]


class PaginationHint(BaseModel):
    """How a list operation pages through its results.

    `type` is offset, page, cursor or none. The `*_param` fields name the
    request inputs driving the pagination, the `*_field` ones the response
    properties carrying the page. `source` is `declared` when the operation
    carried its own `x-pagination`.
    """

    operation_name: str
    confidence: bool
    type: str = "none"
    source: str = "guessed"
    items_field: str | None = None
    cursor_field: str | None = None
    has_more_field: str | None = None
    offset_param: str | None = None
    limit_param: str | None = None
    page_param: str | None = None
    page_size_param: str | None = None
    cursor_param: str | None = None


class ResponseItem(BaseModel):
    """One response a server handler can produce, as reported by an analyzer."""

    status_code: str = "200"
    content_type: str = "application/json"
    headers: list[str] = []
    body_schema: dict | None = None


class IR(BaseModel):
    """The finalized intermediate representation handed to a renderer."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    document: dict
    operations: list[TunedOperation]
    registry: SchemaRegistry = Field(exclude=True)
    pagination: dict[str, PaginationHint] = {}
    variants: dict[str, VariantSet] = {}
    compositions: dict[str, dict] = {}
    security_options: list[Param] = []
    warnings: list[str] = []

    @property
    def schemas(self) -> dict:
        return self.registry.schemas

    def operation(self, canonical_name: str) -> TunedOperation | None:
        for op in self.operations:
            if op.canonical_name == canonical_name:
                return op
        return None
