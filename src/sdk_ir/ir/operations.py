"""Operation identity: canonical names, tags and merged parameters."""

import logging
import re
from collections.abc import Iterator

from sdk_ir.ir.context import BuildContext
from sdk_ir.ir.models import HTTP_METHODS, Param
from sdk_ir.ir.naming import RESERVED_KEYWORDS, RESERVED_SDK_NAMES, camelcase, split_words

logger = logging.getLogger(__name__)

_EXPRESS_PARAM = re.compile(r":([^/]+)")
_VERSION_SEGMENT = re.compile(r"^[vV]\d+$")
_DASH_BEFORE_DIGIT = re.compile(r"-(?=\d)")

DEFAULT_TAG = "default"


def normalize_path(path: str) -> str:
    """Convert Express-style `:param` segments to `{param}`."""
    return _EXPRESS_PARAM.sub(r"{\1}", path)


def iter_operations(paths: dict) -> Iterator[tuple[str, str, dict, dict]]:
    """Yield `(path, method, path_item, operation)` for every supported method."""
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        for method, operation in path_item.items():
            if method.lower() not in HTTP_METHODS or not isinstance(operation, dict):
                continue
            yield path, method.lower(), path_item, operation


def clean_operation_id(operation_id: str) -> str:
    """`billing#list-2` -> `list2`; `list_pets` -> `listPets`."""
    local = operation_id.split("#")[-1]
    return camelcase(_DASH_BEFORE_DIGIT.sub("", local))


def derive_operation_name(method: str, path: str) -> str:
    """`get /users/{id}/orders` -> `getUsersIdOrders`."""
    return camelcase(" ".join([method, *re.split(r"[/{}]", path)]))


def sanitize_tag(tag: str) -> str:
    if re.match(r"^\d", tag):
        return f"_{tag}"
    if tag in RESERVED_KEYWORDS or tag in RESERVED_SDK_NAMES:
        return f"${tag}"
    cleaned = re.sub(r"[()]", "", tag).replace("--", "")
    return " ".join(cleaned.split())


def generic_tag(path: str) -> str:
    """Tag for untagged operations: the first static, non-version path segment."""
    for segment in path.split("/"):
        if not segment or segment.startswith("{") or segment.endswith("}"):
            continue
        if _VERSION_SEGMENT.match(segment) or segment.startswith("@"):
            continue
        tag = camelcase(segment)
        if tag:
            return sanitize_tag(tag)
    return DEFAULT_TAG


def operation_tag(operation: dict, path: str) -> str:
    tags = operation.get("tags") or []
    if tags and str(tags[0]).strip():
        return sanitize_tag(str(tags[0]))
    return generic_tag(path)


class OperationNamer:
    """Keeps canonical names unique within one document.

    Clashes are resolved by prefixing the tag, then the method, then the
    joined path segments, and finally by numbering; the outcome depends only
    on document order.
    """

    def __init__(self):
        self.used: set[str] = set()

    def canonical_name(self, operation: dict, method: str, path: str, tag: str) -> str:
        operation_id = str(operation.get("operationId") or "").strip()
        base = clean_operation_id(operation_id) if operation_id else ""
        base = base or derive_operation_name(method, path)

        candidates = [
            base,
            camelcase(f"{tag} {base}"),
            camelcase(f"{method} {base}"),
            camelcase(" ".join([*split_words(path), base])),
        ]
        for candidate in candidates:
            if candidate and candidate not in self.used:
                self.used.add(candidate)
                return candidate
        n = 2
        while f"{candidates[-1]}{n}" in self.used:
            n += 1
        name = f"{candidates[-1]}{n}"
        self.used.add(name)
        return name


def merge_parameters(ctx: BuildContext, path_item: dict, operation: dict) -> list[dict]:
    """Path-level parameters overlaid by operation-level ones, keyed by `(name, in)`."""
    merged: dict[tuple[str, str], dict] = {}
    for raw in [*(path_item.get("parameters") or []), *(operation.get("parameters") or [])]:
        parameter = ctx.resolver.follow(raw)
        name = str(parameter.get("name", "")).strip()
        if not name:
            logger.debug("Skipping unnamed parameter %r", parameter)
            continue
        merged[(name, parameter.get("in", "query"))] = parameter
    return list(merged.values())


def to_param(ctx: BuildContext, parameter: dict) -> Param:
    location = parameter.get("in", "query")
    schema = parameter.get("schema")
    if schema is None and parameter.get("content"):
        schema = next(iter(parameter["content"].values())).get("schema")
    return Param(
        name=str(parameter["name"]).strip(),
        location=location,
        # path parameters are always required
        required=bool(parameter.get("required")) or location == "path",
        param_schema=dict(ctx.resolver.follow(schema)) if schema else {"type": "string"},
        description=parameter.get("description", ""),
    )
