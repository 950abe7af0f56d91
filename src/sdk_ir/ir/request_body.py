"""Synthesis of one named input schema per operation.

The input schema unites the request body, the operation parameters and
the security parameters so that a renderer can expose a single typed
argument per operation.
"""

import copy
import logging

from sdk_ir.ir.context import BuildContext
from sdk_ir.ir.errors import EmptyMediaTypeWarning
from sdk_ir.ir.models import Param, SchemaKind, classify_schema
from sdk_ir.ir.ref import is_ref
from sdk_ir.ir.variants import merge_all_of

logger = logging.getLogger(__name__)

EMPTY_BODY_CONTENT_TYPE = "application/empty"
INPUT_SUFFIXES = ("Input", "Payload", "Request")
WRAPPED_BODY_PROPERTY = "body"


def input_candidates(operation_name: str) -> list[str]:
    return [f"{operation_name}{suffix}" for suffix in INPUT_SUFFIXES]


def patch_parameters(schema: dict, parameters: list[Param], security: list[Param]) -> dict:
    """Add parameter and security properties to `schema` and fix its required set."""
    properties = dict(schema.get("properties") or {})
    required = list(schema.get("required") or [])

    for param in parameters:
        prop = {**param.param_schema, "x-in": param.location}
        if param.description:
            prop.setdefault("description", param.description)
        properties[param.name] = prop
        if param.required and param.name not in required:
            required.append(param.name)

    security_names = set()
    for param in security:
        properties[param.name] = {**param.param_schema, "x-in": param.location, "x-security": True}
        security_names.add(param.name)

    schema["properties"] = properties
    # security-derived fields are never required
    schema["required"] = [name for name in required if name not in security_names]
    return schema


def _body_shape(ctx: BuildContext, raw_schema: dict, body_required: bool) -> dict:
    """Object view of a body schema; non-object bodies are wrapped in one property."""
    resolved = ctx.resolver.follow(raw_schema)
    kind = classify_schema(resolved)
    if kind == SchemaKind.ALL_OF:
        shape = merge_all_of(ctx, resolved)
    elif kind in (SchemaKind.OBJECT, SchemaKind.EMPTY):
        shape = dict(resolved)
        shape["type"] = "object"
    else:
        shape = {
            "type": "object",
            "properties": {WRAPPED_BODY_PROPERTY: raw_schema},
            "required": [WRAPPED_BODY_PROPERTY] if body_required else [],
            "x-body-property": WRAPPED_BODY_PROPERTY,
        }
    if is_ref(raw_schema):
        shape["x-source-schema"] = raw_schema["$ref"]
    return shape


def synthesize_request_body(
    ctx: BuildContext,
    operation_name: str,
    operation: dict,
    parameters: list[Param],
    security: list[Param],
) -> tuple[dict, dict[str, str]]:
    """Return the rewritten request body and a content type -> `$ref` map."""
    raw = operation.get("requestBody")
    request_body = copy.deepcopy(ctx.resolver.follow(raw)) if raw else {"content": {}, "required": False}
    content = request_body.get("content") or {}

    if not content:
        schema = patch_parameters({"type": "object"}, parameters, security)
        name, ref = _register(ctx, operation_name, schema)
        request_body["content"] = {EMPTY_BODY_CONTENT_TYPE: {"schema": {"$ref": ref}}}
        return request_body, {EMPTY_BODY_CONTENT_TYPE: ref}

    refs = {}
    for content_type, media_type in content.items():
        media_type = media_type if isinstance(media_type, dict) else {}
        raw_schema = media_type.get("schema")
        if not raw_schema:
            ctx.warn(EmptyMediaTypeWarning(operation_name, content_type))
            raw_schema = {"type": "object"}
        shape = _body_shape(ctx, raw_schema, bool(request_body.get("required")))
        schema = patch_parameters(shape, parameters, security)
        name, ref = _register(ctx, operation_name, schema)
        content[content_type] = {**media_type, "schema": {"$ref": ref}}
        refs[content_type] = ref
    request_body["content"] = content
    return request_body, refs


def _register(ctx: BuildContext, operation_name: str, schema: dict) -> tuple[str, str]:
    name = ctx.allocator.allocate(input_candidates(operation_name))
    schema["x-requestbody"] = True
    schema["x-inputname"] = name
    logger.debug("Synthesized input schema %s for %s", name, operation_name)
    return name, ctx.registry.register(name, schema)
