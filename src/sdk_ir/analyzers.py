"""Pluggable response analyzers, selected by name.

An analyzer inspects a server handler's source and reports the responses
it can produce. The core never looks inside an analyzer: it looks one up
by the configured name and turns its items into OpenAPI responses.
"""

from typing import Callable, Protocol

import yaml

from sdk_ir.ir.errors import UnknownAnalyzerError
from sdk_ir.ir.models import ResponseItem


class ResponseAnalyzer(Protocol):
    def analyze(self, source: str) -> list[ResponseItem]: ...


_ANALYZERS: dict[str, ResponseAnalyzer] = {}


def register_analyzer(name: str) -> Callable[[type], type]:
    """Class decorator registering an analyzer instance under `name`."""

    def decorator(cls: type) -> type:
        _ANALYZERS[name] = cls()
        return cls

    return decorator


def get_analyzer(name: str) -> ResponseAnalyzer:
    try:
        return _ANALYZERS[name]
    except KeyError:
        known = ", ".join(sorted(_ANALYZERS)) or "none"
        raise UnknownAnalyzerError(f"No response analyzer named {name!r} (known: {known})") from None


def analyzer_names() -> list[str]:
    return sorted(_ANALYZERS)


@register_analyzer("declared")
class DeclaredResponseAnalyzer:
    """Reads responses listed as YAML in the handler source.

    The source is a YAML list of mappings with the `ResponseItem` fields, e.g.
    `[{status_code: "201", body_schema: {type: object}}]`.
    """

    def analyze(self, source: str) -> list[ResponseItem]:
        items = yaml.safe_load(source) or []
        if isinstance(items, dict):
            items = [items]
        return [ResponseItem(**item) for item in items]


def responses_from_items(items: list[ResponseItem]) -> dict:
    """Group analyzer items into an OpenAPI `responses` map, keeping their order."""
    responses: dict = {}
    for item in items:
        response = responses.setdefault(item.status_code, {"description": "", "content": {}})
        if item.headers:
            headers = response.setdefault("headers", {})
            for header in item.headers:
                headers.setdefault(header, {"schema": {"type": "string"}})
        if item.content_type == "empty":
            continue
        response["content"][item.content_type] = (
            {"schema": item.body_schema} if item.body_schema is not None else {}
        )
    return responses
