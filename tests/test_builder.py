import copy
import json
from pathlib import Path

import pytest

from sdk_ir.config import BuildConfig
from sdk_ir.ir.builder import build_ir, verify_refs
from sdk_ir.ir.context import BuildContext
from sdk_ir.ir.errors import MissingSchemeFieldError, RegistryFrozenError, UnresolvedRefError
from sdk_ir.loader.load import load_spec

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def petstore():
    return load_spec(str(FIXTURES / "petstore.yaml"))


@pytest.fixture
def ir(petstore):
    return build_ir(petstore)


class TestPetstore:
    def test_canonical_names(self, ir):
        assert [op.canonical_name for op in ir.operations] == [
            "listPets",
            "createPet",
            "getPetsPetId",
            "getUsersIdOrders",
        ]

    def test_tags(self, ir):
        assert [op.tag for op in ir.operations] == ["pets", "pets", "pets", "users"]

    def test_synthesized_schemas(self, ir):
        assert ir.registry.synthesized == [
            "ListPetsInput",
            "CreatePetInput",
            "CreatePet201",
            "GetPetsPetIdInput",
            "GetUsersIdOrdersInput",
            "GetUsersIdOrdersOutput",
        ]

    def test_input_schema_unites_body_parameters_and_security(self, ir):
        schema = ir.schemas["GetPetsPetIdInput"]
        assert set(schema["properties"]) == {"petId", "authorization", "X-API-Key"}
        assert schema["required"] == ["petId"]
        assert schema["properties"]["X-API-Key"]["x-security"] is True
        assert ir.schemas["CreatePetInput"]["required"] == ["name"]

    def test_operation_is_rewritten_in_place(self, petstore, ir):
        operation = petstore["paths"]["/pets/{petId}"]["get"]
        assert operation["operationId"] == "getPetsPetId"
        assert operation["tags"] == ["pets"]
        assert operation["requestBody"]["content"] == {
            "application/empty": {"schema": {"$ref": "#/components/schemas/GetPetsPetIdInput"}}
        }
        assert ir.document is petstore

    def test_default_response_is_dropped(self, petstore, ir):
        assert "default" not in petstore["paths"]["/pets"]["get"]["responses"]

    def test_response_records(self, ir):
        op = ir.operation("getPetsPetId")
        assert op.responses["200"].response_name == "Pet"
        assert op.responses["404"].content == {}
        assert ir.operation("getUsersIdOrders").responses["200"].response_name == "GetUsersIdOrdersOutput"

    def test_pagination(self, petstore, ir):
        hint = ir.pagination["listPets"]
        assert hint.confidence is True
        assert (hint.items_field, hint.cursor_field) == ("data", "next_cursor")
        assert (hint.type, hint.cursor_param, hint.limit_param) == ("cursor", "cursor", "limit")
        assert petstore["paths"]["/pets"]["get"]["x-pagination"]["items_field"] == "data"
        assert ir.pagination["getPetsPetId"].confidence is False
        assert "x-pagination" not in petstore["paths"]["/pets"]["post"]

    def test_variants(self, ir):
        assert [v.tag for v in ir.variants["Animal"].variants] == ["cat", "doggo"]

    def test_security_options(self, ir):
        assert [(p.name, p.location) for p in ir.security_options] == [
            ("authorization", "header"),
            ("X-API-Key", "input"),
        ]

    def test_registry_is_frozen(self, ir):
        with pytest.raises(RegistryFrozenError):
            ir.registry.register("Late", {})

    def test_ir_serializes(self, ir):
        data = json.loads(ir.model_dump_json())
        assert "registry" not in data
        assert data["operations"][0]["canonical_name"] == "listPets"


class TestInvariants:
    def test_deterministic(self, petstore):
        first, second = copy.deepcopy(petstore), copy.deepcopy(petstore)
        build_ir(first)
        build_ir(second)
        assert first == second

    def test_every_operation_covered(self, petstore, ir):
        for path_item in petstore["paths"].values():
            for method in ("get", "post"):
                if method in path_item:
                    schema_ref = path_item[method]["requestBody"]["content"]
                    assert all("$ref" in media["schema"] for media in schema_ref.values())

    def test_names_are_unique(self, ir):
        names = [op.canonical_name for op in ir.operations]
        assert len(names) == len(set(names))

    def test_no_dangling_refs(self, petstore, ir):
        verify_refs(BuildContext(petstore))

    def test_original_schemas_untouched(self, petstore, ir):
        assert petstore["components"]["schemas"]["NewPet"] == {
            "type": "object",
            "required": ["name"],
            "properties": {"name": {"type": "string"}, "tag": {"type": "string"}},
        }


class TestFailures:
    def test_fatal_error_leaves_document_unchanged(self):
        document = {
            "openapi": "3.0.0",
            "paths": {
                "/a": {"get": {"responses": {"200": {"description": "ok"}}}},
                "/b": {"get": {"security": [{"missing": []}]}},
            },
        }
        original = copy.deepcopy(document)
        with pytest.raises(UnresolvedRefError):
            build_ir(document)
        assert document == original

    def test_dangling_ref_is_fatal(self):
        document = {
            "paths": {
                "/a": {"get": {"responses": {"200": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/Nope"}}}}}}},
            },
        }
        with pytest.raises(UnresolvedRefError):
            build_ir(document)

    def test_incomplete_api_key_scheme_is_fatal(self):
        document = {
            "security": [{"key": []}],
            "paths": {"/a": {"get": {}}},
            "components": {"securitySchemes": {"key": {"type": "apiKey", "in": "header"}}},
        }
        with pytest.raises(MissingSchemeFieldError):
            build_ir(document)


class TestOptions:
    def test_empty_document(self):
        ir = build_ir({"openapi": "3.1.0", "paths": None, "components": None})
        assert ir.operations == []
        assert ir.schemas == {}

    def test_express_paths_are_normalized(self):
        document = {"paths": {"/users/:id": {"get": {}}}}
        build_ir(document)
        assert list(document["paths"]) == ["/users/{id}"]

    def test_pagination_can_be_disabled(self, petstore):
        ir = build_ir(petstore, BuildConfig(pagination=False))
        assert ir.pagination == {}
        assert "x-pagination" not in petstore["paths"]["/pets"]["get"]

    def test_reserved_names_are_avoided(self):
        ir = build_ir(
            {"paths": {"/a": {"get": {"operationId": "thing"}}}},
            BuildConfig(reserved_names=frozenset({"ThingInput"})),
        )
        assert "ThingPayload" in ir.schemas

    def test_warnings_are_collected(self):
        document = {"paths": {"/a": {"post": {"requestBody": {"content": {"text/plain": {}}}}}}}
        ir = build_ir(document)
        assert len(ir.warnings) == 1
        assert "text/plain" in ir.warnings[0]

    def test_responses_from_declared_analyzer(self):
        document = {
            "paths": {
                "/a": {
                    "post": {
                        "x-handler-source": "- status_code: '201'\n  body_schema: {type: object}\n",
                    }
                }
            }
        }
        ir = build_ir(document, BuildConfig(response_analyzer="declared"))
        assert list(document["paths"]["/a"]["post"]["responses"]) == ["201"]
        assert ir.operation("postA").responses["201"].response_name == "PostA201"

    def test_duplicate_normalized_operation_keeps_first(self):
        document = {
            "paths": {
                "/a/:id": {"get": {"operationId": "first"}},
                "/a/{id}": {"get": {"operationId": "second"}, "post": {}},
            }
        }
        ir = build_ir(document)
        assert [(op.method, op.canonical_name) for op in ir.operations] == [("get", "first"), ("post", "postAId")]
        assert document["paths"]["/a/{id}"]["get"]["operationId"] == "first"
        assert len(ir.warnings) == 1
        assert "/a/{id}" in ir.warnings[0]
        refs = json.dumps(document["paths"])
        assert all(f"#/components/schemas/{name}\"" in refs for name in ir.registry.synthesized)
        assert not any(name.startswith("Second") for name in ir.schemas)


class TestPaginationInDocument:
    def test_boolean_property_schema_does_not_abort(self):
        document = {
            "paths": {
                "/pets": {
                    "get": {
                        "parameters": [
                            {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                            {"name": "cursor", "in": "query", "schema": {"type": "string"}},
                        ],
                        "responses": {
                            "200": {
                                "content": {
                                    "application/json": {
                                        "schema": {
                                            "type": "object",
                                            "properties": {
                                                "data": {"type": "array", "items": {}},
                                                "next_cursor": {"type": "string"},
                                                "extra": True,
                                            },
                                        }
                                    }
                                }
                            }
                        },
                    }
                }
            }
        }
        ir = build_ir(document)
        assert len(ir.operations) == 1
        assert ir.pagination["getPets"].confidence is True

    def test_offset_limit_with_has_more(self):
        document = {
            "paths": {
                "/pets": {
                    "get": {
                        "operationId": "listPets",
                        "parameters": [
                            {"name": "offset", "in": "query", "schema": {"type": "integer"}},
                            {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                        ],
                        "responses": {
                            "200": {
                                "content": {
                                    "application/json": {
                                        "schema": {
                                            "type": "object",
                                            "properties": {
                                                "data": {"type": "array", "items": {}},
                                                "hasMore": {"type": "boolean"},
                                            },
                                        }
                                    }
                                }
                            }
                        },
                    }
                }
            }
        }
        ir = build_ir(document)
        assert ir.pagination["listPets"].type == "offset"
        assert document["paths"]["/pets"]["get"]["x-pagination"] == {
            "confidence": True,
            "type": "offset",
            "source": "guessed",
            "items_field": "data",
            "has_more_field": "hasMore",
            "offset_param": "offset",
            "limit_param": "limit",
        }

    def test_declared_pagination_is_kept_unchanged(self):
        document = {"paths": {"/pets": {"get": {"operationId": "listPets", "x-pagination": {"type": "page"}}}}}
        ir = build_ir(document)
        hint = ir.pagination["listPets"]
        assert (hint.confidence, hint.type, hint.source) == (True, "page", "declared")
        assert document["paths"]["/pets"]["get"]["x-pagination"] == {"type": "page"}
