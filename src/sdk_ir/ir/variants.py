"""Classification of polymorphic schemas.

`oneOf`/`anyOf` schemas become variant sets, optionally discriminated by a
property. `allOf` schemas are compositions and are merged into one shape.
"""

import logging

from sdk_ir.ir.context import BuildContext
from sdk_ir.ir.models import SchemaKind, Variant, VariantSet, classify_schema
from sdk_ir.ir.naming import camelcase
from sdk_ir.ir.ref import is_ref, ref_name
from sdk_ir.ir.registry import ref_to

logger = logging.getLogger(__name__)

UNION_KINDS = (SchemaKind.ONE_OF, SchemaKind.ANY_OF)


def _normalize_mapping(mapping: dict) -> dict[str, str]:
    """Map `$ref` -> tag; bare schema names in the mapping become refs."""
    by_ref = {}
    for tag, target in (mapping or {}).items():
        target = str(target)
        ref = target if target.startswith("#/") else ref_to(target)
        by_ref.setdefault(ref, str(tag))
    return by_ref


def _own_tag(ctx: BuildContext, branch: dict, discriminant: str) -> str | None:
    """Tag of a branch absent from the mapping: title, ref name, then constant value."""
    resolved = ctx.resolver.follow(branch)
    if not isinstance(resolved, dict):
        return None
    if resolved.get("title"):
        return str(resolved["title"])
    if is_ref(branch):
        return ref_name(branch["$ref"])
    prop = ctx.resolver.follow((resolved.get("properties") or {}).get(discriminant) or {})
    if not isinstance(prop, dict):
        return None
    if "const" in prop:
        return str(prop["const"])
    enum = prop.get("enum") or []
    if len(enum) == 1:
        return str(enum[0])
    return None


def _primary_type(schema: dict) -> str | None:
    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        schema_type = next((t for t in schema_type if t != "null"), None)
    if schema_type is None and "const" in schema:
        const = schema["const"]
        if isinstance(const, bool):
            return "boolean"
        if isinstance(const, (int, float)):
            return "number"
        if isinstance(const, str):
            return "string"
    return schema_type


def _scalar_kind(schema: dict, schema_type: str | None) -> str | None:
    if schema_type == "string":
        if "const" in schema:
            return str(schema["const"]) or "empty"
        if schema.get("format"):
            return camelcase(str(schema["format"])) or "textContent"
        return "textContent"
    if schema_type in ("number", "integer"):
        return {"int64": "integer", "float": "float", "double": "double"}.get(schema.get("format"), "number")
    if schema_type in ("boolean", "null"):
        return schema_type
    return None


_LIST_KINDS = {"string": "textList", "number": "numList", "integer": "intList"}


def variant_kind(ctx: BuildContext, branch, _depth: int = 0) -> str | None:
    """Structural label of a union branch, used when no tag distinguishes it."""
    schema = ctx.resolver.follow(branch)
    kind = classify_schema(schema)
    if kind == SchemaKind.ARRAY:
        items = schema.get("items")
        if not items:
            return "any"
        items = ctx.resolver.follow(items)
        if classify_schema(items) == SchemaKind.ARRAY and _depth < 4:
            return f"{variant_kind(ctx, items, _depth + 1)}Matrix"
        return _LIST_KINDS.get(_primary_type(items) if isinstance(items, dict) else None, "list")
    if kind == SchemaKind.OBJECT:
        return "object"
    if kind in UNION_KINDS:
        return "union"
    if kind == SchemaKind.PRIMITIVE:
        return _scalar_kind(schema, _primary_type(schema))
    return None


def _object_kinds(ctx: BuildContext, branches: list) -> dict[int, str]:
    """Label object branches by the first property no sibling object declares."""
    properties = {}
    for position, branch in enumerate(branches):
        schema = ctx.resolver.follow(branch)
        if classify_schema(schema) == SchemaKind.OBJECT and schema.get("properties"):
            properties[position] = list(schema["properties"])
    kinds = {}
    for position, names in properties.items():
        others = {name for other, rest in properties.items() if other != position for name in rest}
        unique = next((name for name in names if name not in others), None)
        if unique is not None:
            kinds[position] = unique
    return kinds


def detect_variants(ctx: BuildContext, schema: dict) -> VariantSet | None:
    """Variant set of a oneOf/anyOf schema, or None for any other kind."""
    kind = classify_schema(schema)
    if kind not in UNION_KINDS:
        return None
    branches = schema[kind.value]
    discriminator = schema.get("discriminator") or {}
    discriminant = discriminator.get("propertyName")
    object_kinds = _object_kinds(ctx, branches)

    variants = []
    mapping = _normalize_mapping(discriminator.get("mapping")) if discriminant else {}
    for position, branch in enumerate(branches):
        ref = branch.get("$ref") if is_ref(branch) else None
        tag = None
        if discriminant:
            tag = mapping.get(ref) if ref else None
            if tag is None:
                tag = _own_tag(ctx, branch, discriminant)
        variants.append(
            Variant(
                tag=tag,
                kind=object_kinds.get(position) or variant_kind(ctx, branch),
                schema_ref=ref,
                variant_schema=branch,
            )
        )

    return VariantSet(kind=kind.value, discriminant_property=discriminant, variants=variants)


def merge_all_of(ctx: BuildContext, schema: dict, _seen: frozenset[str] = frozenset()) -> dict:
    """Merge the branches of an allOf into one object shape.

    Properties are merged in document order, so the last branch declaring a
    property wins. A oneOf/anyOf found in a branch is kept in the merged
    shape as a nested variant field.
    """
    merged: dict = {key: value for key, value in schema.items() if key not in ("allOf", "properties", "required")}
    merged["type"] = "object"
    properties: dict = {}
    required: list[str] = []

    def absorb(part: dict) -> None:
        properties.update(part.get("properties") or {})
        for name in part.get("required") or []:
            if name not in required:
                required.append(name)

    for branch in schema.get("allOf") or []:
        seen = _seen
        if is_ref(branch):
            ref = branch["$ref"]
            if ref in seen:
                logger.debug("Skipping recursive allOf branch %s", ref)
                continue
            seen = seen | {ref}
        resolved = ctx.resolver.follow(branch)
        if not isinstance(resolved, dict):
            continue
        if classify_schema(resolved) == SchemaKind.ALL_OF:
            resolved = merge_all_of(ctx, resolved, seen)
        nested = detect_variants(ctx, resolved)
        if nested is not None:
            merged[nested.kind] = resolved[nested.kind]
            if resolved.get("discriminator"):
                merged["discriminator"] = resolved["discriminator"]
            merged["x-variants"] = nested.model_dump()
        for key, value in resolved.items():
            if key not in ("properties", "required", "allOf", "oneOf", "anyOf", "discriminator", "type", "title"):
                merged.setdefault(key, value)
        absorb(resolved)

    absorb(schema)
    merged["properties"] = properties
    if required:
        merged["required"] = required
    return merged


def classify_registry(ctx: BuildContext) -> tuple[dict[str, VariantSet], dict[str, dict]]:
    """Variant sets and merged compositions for every named schema."""
    variants: dict[str, VariantSet] = {}
    compositions: dict[str, dict] = {}
    for name in ctx.registry.names():
        schema = ctx.registry[name]
        kind = classify_schema(schema)
        if kind in UNION_KINDS:
            variants[name] = detect_variants(ctx, schema)
        elif kind == SchemaKind.ALL_OF:
            compositions[name] = merge_all_of(ctx, schema, frozenset({ref_to(name)}))
    return variants, compositions
