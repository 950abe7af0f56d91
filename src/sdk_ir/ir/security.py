"""Security requirements turned into synthetic authentication parameters.

Only the first scheme named by each requirement object is honoured, so a
requirement like `{apiKey: [], oauth: []}` behaves as `{apiKey: []}`.
AND/OR combinations of schemes are not modelled.
"""

import logging

from sdk_ir.ir.context import BuildContext
from sdk_ir.ir.errors import MissingSchemeFieldError, UnresolvedRefError
from sdk_ir.ir.models import Param
from sdk_ir.ir.operations import iter_operations

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "authorization"


def scheme_parameter(ctx: BuildContext, scheme_name: str, location: str | None = None) -> Param | None:
    """Build the parameter for one named scheme, or None for unsupported types."""
    if scheme_name not in ctx.security_schemes:
        raise UnresolvedRefError(f"#/components/securitySchemes/{scheme_name}")
    scheme = ctx.resolver.follow(ctx.security_schemes[scheme_name])
    scheme_type = scheme.get("type")

    if scheme_type == "http":
        return Param(
            name=AUTHORIZATION_HEADER,
            location=location or "header",
            param_schema={"type": "string"},
            description=scheme.get("description", ""),
            source="security",
        )
    if scheme_type == "apiKey":
        for field in ("in", "name"):
            if not scheme.get(field):
                raise MissingSchemeFieldError(scheme_name, field)
        return Param(
            name=scheme["name"],
            location=location or scheme["in"],
            param_schema={"type": "string"},
            description=scheme.get("description", ""),
            source="security",
        )

    logger.debug("Skipping security scheme %s of type %s", scheme_name, scheme_type)
    return None


def security_parameters(ctx: BuildContext, requirements: list[dict], location: str | None = None) -> list[Param]:
    """Parameters for a list of requirement objects (first scheme of each)."""
    params = []
    for requirement in requirements or []:
        if not requirement:
            # an empty requirement object makes authentication optional
            continue
        scheme_name = next(iter(requirement))
        param = scheme_parameter(ctx, scheme_name, location)
        if param is not None:
            params.append(param)
    return params


def compose_security(ctx: BuildContext, operation: dict) -> list[Param]:
    """Global security merged with the operation's own; operation entries win."""
    merged: dict[tuple[str, str], Param] = {}
    for param in security_parameters(ctx, ctx.document.get("security") or []):
        merged[param.key] = param
    for param in security_parameters(ctx, operation.get("security") or []):
        merged[param.key] = param
    return list(merged.values())


def client_security_options(ctx: BuildContext) -> list[Param]:
    """Authentication options a generated client should expose.

    Globally required schemes keep their declared location; schemes only
    used by individual operations are passed per call (location `input`).
    """
    options: dict[str, Param] = {}
    for param in security_parameters(ctx, ctx.document.get("security") or []):
        options[param.name] = param
    for _, _, _, operation in iter_operations(ctx.document["paths"]):
        for param in security_parameters(ctx, operation.get("security") or [], "input"):
            options.setdefault(param.name, param)
    return list(options.values())
