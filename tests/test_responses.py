import pytest

from sdk_ir.config import BuildConfig
from sdk_ir.ir.context import BuildContext
from sdk_ir.ir.responses import is_json_content_type, resolve_responses


def _ctx(config=None):
    return BuildContext(
        {
            "paths": {},
            "components": {
                "schemas": {"Pet": {"type": "object"}},
                "responses": {
                    "NotFound": {
                        "description": "Not found",
                        "content": {"application/json": {"schema": {"type": "object"}}},
                    },
                },
            },
        },
        config,
    )


class TestContentTypes:
    @pytest.mark.parametrize("content_type", [
        "application/json",
        "application/problem+json",
        "application/json; charset=utf-8",
        "application/vnd.api+json",
    ])
    def test_json(self, content_type):
        assert is_json_content_type(content_type)

    @pytest.mark.parametrize("content_type", ["text/plain", "application/octet-stream", "application/xml"])
    def test_not_json(self, content_type):
        assert not is_json_content_type(content_type)


class TestResolveResponses:
    def test_ref_schema_names_the_response(self):
        ctx = _ctx()
        operation = {"responses": {"200": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}}}}}
        responses, records = resolve_responses(ctx, "getPet", operation)
        assert records["200"].response_name == "Pet"
        assert responses["200"]["content"]["application/json"]["schema"] == {"$ref": "#/components/schemas/Pet"}
        assert ctx.registry.synthesized == []

    def test_inline_schema_is_synthesized(self):
        ctx = _ctx()
        operation = {"responses": {"200": {"content": {"application/json": {"schema": {"type": "object", "properties": {"id": {}}}}}}}}
        responses, records = resolve_responses(ctx, "getPet", operation)
        assert records["200"].response_name == "GetPetOutput"
        schema = ctx.registry["GetPetOutput"]
        assert schema["x-responsebody"] is True
        assert schema["x-response-group"] == "getPet"
        assert responses["200"]["content"]["application/json"]["schema"] == {"$ref": "#/components/schemas/GetPetOutput"}

    def test_non_200_success_named_by_status(self):
        ctx = _ctx()
        operation = {"responses": {"201": {"content": {"application/json": {"schema": {"type": "object"}}}}}}
        _, records = resolve_responses(ctx, "createPet", operation)
        assert records["201"].response_name == "CreatePet201"

    def test_missing_success_response_defaults_to_empty_json(self):
        ctx = _ctx()
        responses, records = resolve_responses(ctx, "ping", {"responses": {"default": {"description": "err"}}})
        assert "default" not in responses
        assert list(responses) == ["200"]
        assert ctx.registry["PingOutput"]["additionalProperties"] is True

    def test_response_without_content_is_a_stream(self):
        ctx = _ctx()
        _, records = resolve_responses(ctx, "download", {"responses": {"200": {"description": "file"}}})
        assert ctx.registry[records["200"].response_name]["x-stream"] is True
        assert "application/octet-stream" in records["200"].content

    def test_text_body_is_not_a_stream(self):
        ctx = _ctx()
        operation = {"responses": {"200": {"content": {"text/plain": {"schema": {"type": "string"}}}}}}
        _, records = resolve_responses(ctx, "hello", operation)
        assert ctx.registry["HelloOutput"]["x-stream"] is False

    def test_event_stream_is_left_alone(self):
        ctx = _ctx()
        operation = {"responses": {"200": {"content": {"text/event-stream": {"schema": {"type": "string"}}}}}}
        responses, records = resolve_responses(ctx, "events", operation)
        assert records["200"].content == {"text/event-stream": None}
        assert responses["200"]["content"]["text/event-stream"]["schema"] == {"type": "string"}

    def test_error_responses_are_not_synthesized_by_default(self):
        ctx = _ctx()
        operation = {"responses": {"200": {"description": "ok"}, "404": {"$ref": "#/components/responses/NotFound"}}}
        responses, records = resolve_responses(ctx, "getPet", operation)
        assert records["404"].description == "Not found"
        assert responses["404"]["content"]["application/json"]["schema"] == {"type": "object"}
        assert "GetPet404" not in ctx.registry

    def test_error_responses_flattened_when_configured(self):
        ctx = _ctx(BuildConfig(flatten_error_responses=True))
        operation = {"responses": {"200": {"description": "ok"}, "404": {"$ref": "#/components/responses/NotFound"}}}
        resolve_responses(ctx, "getPet", operation)
        assert "GetPet404" in ctx.registry
        shared = ctx.document["components"]["responses"]["NotFound"]
        assert shared["content"]["application/json"]["schema"] == {"type": "object"}
