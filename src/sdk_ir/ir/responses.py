"""Response resolution: every success body ends up behind a named schema."""

import copy
import logging
import re

from sdk_ir.ir.context import BuildContext
from sdk_ir.ir.models import ResponseRecord
from sdk_ir.ir.ref import is_ref, ref_name

logger = logging.getLogger(__name__)

OUTPUT_SUFFIXES = ("Output", "Payload", "Result")
_JSON_CONTENT_TYPE = re.compile(r"^application/(?:[\w.+-]+\+)?json(?:;.*)?$|^text/json", re.IGNORECASE)


def is_success_status(status: str) -> bool:
    return str(status).startswith("2") or str(status).upper() == "2XX"


def is_json_content_type(content_type: str) -> bool:
    return bool(_JSON_CONTENT_TYPE.match(content_type.strip()))


def is_sse_content_type(content_type: str) -> bool:
    return content_type.lower().startswith("text/event-stream")


def is_text_content_type(content_type: str) -> bool:
    return content_type.lower().startswith("text/")


def output_candidates(operation_name: str, status: str) -> list[str]:
    if str(status) == "200":
        return [f"{operation_name}{suffix}" for suffix in OUTPUT_SUFFIXES]
    return [f"{operation_name}{status}"]


def resolve_responses(ctx: BuildContext, operation_name: str, operation: dict) -> tuple[dict, dict[str, ResponseRecord]]:
    """Return the rewritten `responses` map and a record per status code."""
    responses = {}
    for status, response in (operation.get("responses") or {}).items():
        if str(status) == "default":
            continue
        # copied because a shared response may be referenced by several operations
        responses[str(status)] = copy.deepcopy(ctx.resolver.follow(response or {}))

    if not any(is_success_status(status) for status in responses):
        responses["200"] = {
            "description": "OK",
            "content": {"application/json": {"schema": {}}},
        }

    records = {}
    for status, response in responses.items():
        record = ResponseRecord(status=status, description=response.get("description", ""))
        records[status] = record
        if not is_success_status(status) and not ctx.config.flatten_error_responses:
            continue
        if not response.get("content"):
            response["content"] = {"application/octet-stream": {}}
        _tune_content(ctx, operation_name, status, response, record)
    return responses, records


def _tune_content(ctx: BuildContext, operation_name: str, status: str, response: dict, record: ResponseRecord) -> None:
    for content_type, media_type in response["content"].items():
        media_type = media_type if isinstance(media_type, dict) else {}
        response["content"][content_type] = media_type
        schema = media_type.get("schema")

        if is_ref(schema):
            record.response_name = ref_name(schema["$ref"])
            record.content[content_type] = schema["$ref"]
            continue
        if is_sse_content_type(content_type):
            record.content[content_type] = None
            continue

        if is_json_content_type(content_type):
            body = dict(schema) if schema else {"type": "object", "additionalProperties": True}
        else:
            body = {**(schema or {}), "x-stream": not is_text_content_type(content_type)}
        body["x-responsebody"] = True
        body["x-response-group"] = operation_name

        name, ref = ctx.synthesize(output_candidates(operation_name, status), body)
        media_type["schema"] = {"$ref": ref}
        record.response_name = name
        record.content[content_type] = ref
        logger.debug("Synthesized response schema %s (%s %s)", name, status, content_type)
