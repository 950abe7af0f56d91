"""Parse raw document text and detect its format."""

import json

import yaml


class SpecLoadError(Exception):
    """The document could not be read, parsed or recognised."""


def parse_text(text: str, extension: str = "") -> object:
    """Parse JSON or YAML text; the extension only decides which parser goes first."""
    if extension == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise SpecLoadError(f"Invalid JSON: {e}") from e

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SpecLoadError(f"Invalid YAML: {e}") from e


def detect_format(data: object) -> str:
    """Detect the kind of a parsed document.

    Returns: 'openapi', 'swagger' or 'unknown'.
    """
    if not isinstance(data, dict):
        return "unknown"
    if "openapi" in data:
        return "openapi"
    if "swagger" in data:
        return "swagger"
    if "paths" in data:
        return "openapi"
    return "unknown"


def ensure_openapi(data: object, location: str) -> dict:
    fmt = detect_format(data)
    if fmt == "swagger":
        raise SpecLoadError(f"{location}: Swagger 2.0 documents must be converted to OpenAPI 3 first")
    if fmt != "openapi":
        raise SpecLoadError(f"{location}: not an OpenAPI document")
    return data
