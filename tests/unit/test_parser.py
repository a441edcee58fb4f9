"""Tests for the loader, source map and document builder."""

from __future__ import annotations

from pathlib import Path

import pytest

from oasdiag.models.document import EnumKind, ParameterLocation
from oasdiag.models.issues import SourceSpan
from oasdiag.parser.builder import (
    DocumentBuilder,
    escape_pointer,
    schema_ref_target,
    unescape_pointer,
)
from oasdiag.parser.loader import SourceMap, TrackedLoader
from tests.conftest import PETSTORE_YAML, build_document


class TestTrackedLoader:
    def test_load_string(self, loader: TrackedLoader) -> None:
        raw, source_map = loader.load_string(PETSTORE_YAML)
        assert raw["openapi"] == "3.0.3"
        assert list(raw["paths"]) == ["/pets", "/pets/{petId}"]
        assert len(source_map.paths) > 0

    def test_positions_are_one_based(self, loader: TrackedLoader) -> None:
        _, source_map = loader.load_string("openapi: 3.0.3\ninfo:\n  title: X\n")
        span = source_map.get("info.title")
        assert span is not None
        assert (span.line, span.column) == (3, 3)

    def test_sequence_positions(self, loader: TrackedLoader) -> None:
        _, source_map = loader.load_string("servers:\n  - url: a\n  - url: b\n")
        span = source_map.get("servers[1]")
        assert span is not None
        assert span.line == 3

    def test_json_input(self, loader: TrackedLoader) -> None:
        raw, _ = loader.load_string('{"openapi": "3.1.0", "info": {"title": "J"}}')
        assert raw == {"openapi": "3.1.0", "info": {"title": "J"}}

    def test_integer_keys_become_strings(self, loader: TrackedLoader) -> None:
        raw, _ = loader.load_string("responses:\n  200:\n    description: OK\n")
        assert list(raw["responses"]) == ["200"]

    def test_root_must_be_mapping(self, loader: TrackedLoader) -> None:
        with pytest.raises(ValueError, match="must be a mapping"):
            loader.load_string("- a\n- b\n")

    def test_load_file(self, loader: TrackedLoader, tmp_path: Path) -> None:
        path = tmp_path / "api.yaml"
        path.write_text(PETSTORE_YAML, encoding="utf-8")
        raw, source_map = loader.load(path)
        assert "components" in raw
        span = source_map.get("components")
        assert span is not None
        assert span.file == str(path)


class TestSourceMap:
    def test_nearest_falls_back_to_ancestor(self) -> None:
        source_map = SourceMap()
        span = SourceSpan(file="f", line=4, column=1)
        source_map.add("paths./v1.0/pets", span)
        assert source_map.nearest("paths./v1.0/pets.get.responses") == span

    def test_nearest_trims_index_suffix(self) -> None:
        source_map = SourceMap()
        span = SourceSpan(file="f", line=2, column=3)
        source_map.add("servers", span)
        assert source_map.nearest("servers[0].url") == span

    def test_nearest_unknown(self) -> None:
        assert SourceMap().nearest("components.schemas.Pet") is None

    def test_merge(self) -> None:
        first, second = SourceMap(), SourceMap()
        second.add("info", SourceSpan(file="f", line=1, column=1))
        first.merge(second)
        assert first.paths == ["info"]


class TestPointers:
    def test_escape_roundtrip(self) -> None:
        assert escape_pointer("/pets/{id}") == "~1pets~1{id}"
        assert unescape_pointer("a~1b~0c") == "a/b~c"

    def test_schema_ref_target(self) -> None:
        assert schema_ref_target("#/components/schemas/Pet") == "Pet"
        assert schema_ref_target("#/components/schemas/a~1b") == "a/b"
        assert schema_ref_target("#/components/parameters/Pet") is None
        assert schema_ref_target("#/components/schemas/Pet/properties/id") is None


class TestDocumentBuilder:
    def test_build_petstore(self) -> None:
        document = build_document(PETSTORE_YAML)
        assert document.info is not None
        assert document.info.title == "Pet Store"
        assert list(document.paths["/pets"].operations) == ["get", "post"]
        assert document.components is not None
        assert list(document.components.schemas) == ["Pet", "Owner"]

    def test_schema_reference_node(self) -> None:
        document = build_document(PETSTORE_YAML)
        pet = document.schema_named("Pet")
        assert pet is not None
        assert pet.properties is not None
        owner = pet.properties["owner"]
        assert owner.ref == "Owner"
        assert owner.is_reference
        assert owner.type is None

    def test_external_reference_kept_verbatim(self, builder: DocumentBuilder) -> None:
        raw = {
            "openapi": "3.0.3",
            "components": {"schemas": {"A": {"$ref": "common.yaml#/Thing"}}},
        }
        document, errors = builder.build(raw)
        assert errors == []
        schema = document.schema_named("A")
        assert schema is not None
        assert schema.external_ref == "common.yaml#/Thing"
        assert schema.ref is None

    def test_parameter_reference_is_followed(self) -> None:
        document = build_document(PETSTORE_YAML)
        parameter = document.paths["/pets/{petId}"].parameters[0]
        assert parameter.reference == "PetId"
        assert parameter.name == "petId"
        assert parameter.location == ParameterLocation.PATH
        assert parameter.required

    def test_unresolved_parameter_reference(self, builder: DocumentBuilder) -> None:
        raw = {
            "openapi": "3.0.3",
            "paths": {
                "/a": {
                    "get": {
                        "parameters": [{"$ref": "#/components/parameters/Missing"}],
                        "responses": {"200": {"description": "OK"}},
                    }
                }
            },
        }
        _, errors = builder.build(raw)
        assert len(errors) == 1
        assert "Unresolved reference" in errors[0].message
        assert errors[0].pointer == "#/paths/~1a/get/parameters/0"

    def test_reference_into_wrong_section(self, builder: DocumentBuilder) -> None:
        raw = {
            "openapi": "3.0.3",
            "paths": {
                "/a": {
                    "get": {
                        "requestBody": {"$ref": "#/components/schemas/Body"},
                        "responses": {"200": {"description": "OK"}},
                    }
                }
            },
        }
        _, errors = builder.build(raw)
        assert len(errors) == 1
        assert "must point into" in errors[0].message

    def test_swagger_rejected(self, builder: DocumentBuilder) -> None:
        _, errors = builder.build({"swagger": "2.0", "info": {"title": "Old"}})
        assert len(errors) == 1
        assert errors[0].pointer == "#/swagger"
        assert "not supported" in errors[0].message

    def test_missing_openapi_field(self, builder: DocumentBuilder) -> None:
        _, errors = builder.build({"info": {"title": "No version"}})
        assert [e.pointer for e in errors] == ["#/openapi"]

    def test_wrong_container_type(self, builder: DocumentBuilder) -> None:
        _, errors = builder.build({"openapi": "3.0.3", "paths": ["/a"]})
        assert len(errors) == 1
        assert errors[0].pointer == "#/paths"
        assert "Expected a mapping" in errors[0].message

    def test_extension_keys_skipped(self) -> None:
        document = build_document(
            "openapi: 3.0.3\n"
            "paths:\n"
            "  x-internal: true\n"
            "  /a:\n"
            "    get:\n"
            "      responses:\n"
            "        '200':\n"
            "          description: OK\n"
            "        x-extra: {}\n"
        )
        assert list(document.paths) == ["/a"]
        responses = document.paths["/a"].operations["get"].responses
        assert responses is not None
        assert list(responses) == ["200"]

    def test_type_list_sets_nullable(self) -> None:
        document = build_document(
            "openapi: 3.1.0\n"
            "components:\n"
            "  schemas:\n"
            "    Name:\n"
            "      type: [string, 'null']\n"
        )
        schema = document.schema_named("Name")
        assert schema is not None
        assert schema.type == "string"
        assert schema.nullable

    def test_enum_kinds(self) -> None:
        document = build_document(
            "openapi: 3.0.3\n"
            "components:\n"
            "  schemas:\n"
            "    Mixed:\n"
            "      enum: [a, 1, 2.5, true, null, [x], {k: v}]\n"
        )
        schema = document.schema_named("Mixed")
        assert schema is not None
        assert schema.enum is not None
        assert [v.kind for v in schema.enum] == [
            EnumKind.STRING,
            EnumKind.NUMBER,
            EnumKind.NUMBER,
            EnumKind.BOOLEAN,
            EnumKind.NULL,
            EnumKind.ARRAY,
            EnumKind.OBJECT,
        ]

    def test_properties_absent_vs_empty(self) -> None:
        document = build_document(
            "openapi: 3.0.3\n"
            "components:\n"
            "  schemas:\n"
            "    Absent:\n"
            "      type: object\n"
            "    Empty:\n"
            "      type: object\n"
            "      properties: {}\n"
        )
        absent = document.schema_named("Absent")
        empty = document.schema_named("Empty")
        assert absent is not None and absent.properties is None
        assert empty is not None and empty.properties == {}

    def test_invalid_parameter_location_kept_raw(self) -> None:
        document = build_document(
            "openapi: 3.0.3\n"
            "paths:\n"
            "  /a:\n"
            "    get:\n"
            "      parameters:\n"
            "        - name: q\n"
            "          in: body\n"
            "      responses:\n"
            "        '200':\n"
            "          description: OK\n"
        )
        parameter = document.paths["/a"].operations["get"].parameters[0]
        assert parameter.location is None
        assert parameter.raw_location == "body"

    def test_components_do_not_leak_between_builds(self, builder: DocumentBuilder) -> None:
        with_component = {
            "openapi": "3.0.3",
            "components": {"parameters": {"Id": {"name": "id", "in": "query"}}},
        }
        _, errors = builder.build(with_component)
        assert errors == []

        without_component = {
            "openapi": "3.0.3",
            "paths": {
                "/a": {
                    "get": {
                        "parameters": [{"$ref": "#/components/parameters/Id"}],
                        "responses": {"200": {"description": "OK"}},
                    }
                }
            },
        }
        _, errors = builder.build(without_component)
        assert len(errors) == 1
        assert "Unresolved reference" in errors[0].message
