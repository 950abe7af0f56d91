"""Best-effort detection of paginated list operations.

The heuristics are data (`pagination_rules.yaml`) so they can be tuned
without touching the pipeline. Nothing in here is fatal: an operation
that cannot be analysed is simply reported as not paginated.

An operation is paginated when it is a collection fetch, its success
response holds an items array next to a cursor or has-more sibling, and
its request inputs (or, failing that, the response cursor) tell how to ask
for the next page: offset/limit, page/size or cursor/limit.
"""

import logging
import re
from pathlib import Path

import yaml
from pydantic import BaseModel

from sdk_ir.ir.context import BuildContext
from sdk_ir.ir.models import PaginationHint, SchemaKind, TunedOperation, classify_schema
from sdk_ir.ir.responses import is_json_content_type, is_success_status
from sdk_ir.ir.variants import merge_all_of

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "pagination_rules.yaml"

# `x-pagination` keys written by other generators, mapped onto hint fields
DECLARED_ALIASES = {
    "items": "items_field",
    "hasMore": "has_more_field",
    "offsetParamName": "offset_param",
    "limitParamName": "limit_param",
    "pageNumberParamName": "page_param",
    "pageSizeParamName": "page_size_param",
    "cursorParamName": "cursor_param",
}


class PaginationRules(BaseModel):
    list_prefixes: list[str] = []
    plural_exceptions: list[str] = []
    items_keywords: list[str] = []
    items_exclusions: list[str] = []
    cursor_keywords: list[str] = []
    has_more_keywords: list[str] = []
    has_more_patterns: list[str] = []
    has_more_inverted_keywords: list[str] = []
    has_more_inverted_patterns: list[str] = []
    offset_param_patterns: list[str] = []
    limit_param_patterns: list[str] = []
    page_param_patterns: list[str] = []
    page_size_param_patterns: list[str] = []
    cursor_param_patterns: list[str] = []
    cursor_limit_param_patterns: list[str] = []


def load_rules(path: Path | None = None) -> PaginationRules:
    """Load pagination heuristics from YAML (the packaged file by default)."""
    path = path or DEFAULT_RULES_PATH
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    return PaginationRules(**data)


def _norm(name: str) -> str:
    return name.lower().replace("_", "").replace("-", "")


def _matches(name: str, patterns: list[str]) -> bool:
    return any(re.search(pattern, name, re.IGNORECASE) for pattern in patterns)


def _types(schema) -> list:
    if not isinstance(schema, dict):
        return []
    schema_type = schema.get("type")
    return schema_type if isinstance(schema_type, list) else [schema_type]


def _is_numeric(schema) -> bool:
    return any(t in ("integer", "number") for t in _types(schema))


def _find_input(inputs: list[tuple[str, dict]], patterns: list[str], exclude: str | None = None) -> str | None:
    """First input (in declaration order) whose name matches any pattern."""
    for name, _ in inputs:
        if name != exclude and _matches(name, patterns):
            return name
    return None


class PaginationInferencer:
    def __init__(self, ctx: BuildContext, rules: PaginationRules):
        self.ctx = ctx
        self.rules = rules

    def infer(self, operation: TunedOperation, tuned: dict) -> PaginationHint:
        """Hint for one operation; `tuned` is the operation as written to the document."""
        try:
            declared = tuned.get("x-pagination")
            if isinstance(declared, dict):
                return self.from_declared(operation, declared)
            return self._infer(operation, tuned)
        except Exception:
            logger.debug("Pagination analysis skipped for %s", operation.canonical_name, exc_info=True)
            return PaginationHint(operation_name=operation.canonical_name, confidence=False)

    def from_declared(self, operation: TunedOperation, declared: dict) -> PaginationHint:
        """Hint built from an operation's own `x-pagination`, taken as is."""
        fields = {}
        for key, value in declared.items():
            key = DECLARED_ALIASES.get(key, key)
            if key in PaginationHint.model_fields and key not in ("operation_name", "confidence", "source"):
                fields[key] = value
        pagination_type = str(fields.pop("type", "none"))
        return PaginationHint(
            operation_name=operation.canonical_name,
            confidence=pagination_type != "none",
            type=pagination_type,
            source="declared",
            **fields,
        )

    def _infer(self, operation: TunedOperation, tuned: dict) -> PaginationHint:
        none = PaginationHint(operation_name=operation.canonical_name, confidence=False)
        if not self.is_collection(operation):
            return none
        properties = self._success_properties(tuned)
        items_field = self._items_field(properties)
        if items_field is None:
            return none
        siblings = {name: prop for name, prop in properties.items() if name != items_field}
        cursor_field = self._cursor_field(siblings)
        has_more_field = self.has_more_field(siblings)
        if cursor_field is None and has_more_field is None:
            return none

        style = self.request_style(self._request_inputs(operation))
        if style is None and cursor_field is not None:
            # the response cursor is echoed back; the input is not named
            style = {"type": "cursor"}
        if style is None:
            return none
        return PaginationHint(
            operation_name=operation.canonical_name,
            confidence=True,
            items_field=items_field,
            cursor_field=cursor_field,
            has_more_field=has_more_field,
            **style,
        )

    def is_collection(self, operation: TunedOperation) -> bool:
        """No trailing identifier segment, and a list-like name or a plural last segment."""
        segments = [s for s in operation.path.split("/") if s]
        if segments and segments[-1].startswith("{"):
            return False
        name = _norm(operation.canonical_name)
        if any(name.startswith(prefix) for prefix in self.rules.list_prefixes):
            return True
        if not segments:
            return False
        last = _norm(segments[-1])
        return last.endswith("s") and not last.endswith("ss") and last not in self.rules.plural_exceptions

    def request_style(self, inputs: list[tuple[str, dict]]) -> dict | None:
        """Offset, page or cursor parameters among the request inputs, tried in that order."""
        rules = self.rules
        numeric = [(name, schema) for name, schema in inputs if _is_numeric(schema)]

        offset = _find_input(numeric, rules.offset_param_patterns)
        if offset is not None:
            limit = _find_input(numeric, rules.limit_param_patterns, exclude=offset)
            if limit is not None:
                return {"type": "offset", "offset_param": offset, "limit_param": limit}

        if len(numeric) >= 2:
            page = _find_input(numeric, rules.page_param_patterns)
            if page is not None:
                size = _find_input(numeric, rules.page_size_param_patterns, exclude=page)
                if size is not None:
                    return {"type": "page", "page_param": page, "page_size_param": size}

        if len(inputs) >= 2:
            cursor = _find_input(inputs, rules.cursor_param_patterns)
            if cursor is not None:
                limit = _find_input(inputs, rules.cursor_limit_param_patterns, exclude=cursor)
                if limit is not None:
                    return {"type": "cursor", "cursor_param": cursor, "limit_param": limit}
        return None

    def _request_inputs(self, operation: TunedOperation) -> list[tuple[str, dict]]:
        """Non-path parameters, then JSON request body properties, as `(name, schema)`."""
        inputs = {param.name: param.param_schema for param in operation.parameters if param.location != "path"}
        resolver = self.ctx.resolver
        for content_type, ref in operation.request_content.items():
            if not is_json_content_type(content_type):
                continue
            for name, prop in (resolver.resolve(ref).get("properties") or {}).items():
                prop = resolver.follow(prop)
                # parameters and security fields are tagged with their location
                if isinstance(prop, dict) and "x-in" not in prop:
                    inputs.setdefault(name, prop)
            break
        return list(inputs.items())

    def _success_properties(self, tuned: dict) -> dict:
        resolver = self.ctx.resolver
        for status, response in (tuned.get("responses") or {}).items():
            if not is_success_status(status) or not isinstance(response, dict):
                continue
            for content_type, media_type in (response.get("content") or {}).items():
                if not is_json_content_type(content_type) or not isinstance(media_type, dict):
                    continue
                if not media_type.get("schema"):
                    continue
                schema = resolver.follow(media_type["schema"])
                if classify_schema(schema) == SchemaKind.ALL_OF:
                    schema = merge_all_of(self.ctx, schema)
                if isinstance(schema, dict) and isinstance(schema.get("properties"), dict):
                    return schema["properties"]
        return {}

    def _items_field(self, properties: dict) -> str | None:
        arrays = [
            name
            for name, prop in properties.items()
            if classify_schema(self.ctx.resolver.follow(prop)) == SchemaKind.ARRAY
            and _norm(name) not in self.rules.items_exclusions
        ]
        for keyword in self.rules.items_keywords:
            for name in arrays:
                if _norm(name) == keyword:
                    return name
        return arrays[0] if arrays else None

    def _cursor_field(self, properties: dict) -> str | None:
        for keyword in self.rules.cursor_keywords:
            for name in properties:
                if _norm(name) == keyword:
                    return name
        return None

    def has_more_field(self, properties: dict, _depth: int = 0) -> str | None:
        """Boolean sibling telling whether more pages exist; nested ones as `outer.inner`."""
        rules = self.rules
        best, best_rank = None, None
        for name, prop in properties.items():
            prop = self.ctx.resolver.follow(prop)
            if "boolean" not in _types(prop):
                continue
            normalized = _norm(name)
            if normalized in rules.has_more_keywords:
                rank = (0, rules.has_more_keywords.index(normalized))
            elif _matches(name, rules.has_more_patterns):
                rank = (1, 0)
            elif normalized in rules.has_more_inverted_keywords:
                rank = (2, rules.has_more_inverted_keywords.index(normalized))
            elif _matches(name, rules.has_more_inverted_patterns):
                rank = (3, 0)
            else:
                continue
            if best_rank is None or rank < best_rank:
                best, best_rank = name, rank
        if best is not None or _depth >= 2:
            return best

        for name, prop in properties.items():
            prop = self.ctx.resolver.follow(prop)
            if classify_schema(prop) == SchemaKind.OBJECT and isinstance(prop.get("properties"), dict):
                nested = self.has_more_field(prop["properties"], _depth + 1)
                if nested is not None:
                    return f"{name}.{nested}"
        return None
