"""Typed OpenAPI document graph consumed (read-only) by the analyzers."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ParameterLocation(StrEnum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class EnumKind(StrEnum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    ARRAY = "array"
    OBJECT = "object"


class EnumValue(BaseModel):
    """One enum member, tagged with its JSON kind when the document is built."""

    kind: EnumKind
    value: Any = None

    @classmethod
    def of(cls, value: Any) -> EnumValue:
        # bool is checked before numbers: True is an int in Python
        if value is None:
            kind = EnumKind.NULL
        elif isinstance(value, bool):
            kind = EnumKind.BOOLEAN
        elif isinstance(value, int | float):
            kind = EnumKind.NUMBER
        elif isinstance(value, str):
            kind = EnumKind.STRING
        elif isinstance(value, list):
            kind = EnumKind.ARRAY
        elif isinstance(value, dict):
            kind = EnumKind.OBJECT
        else:
            kind = EnumKind.STRING
            value = str(value)
        return cls(kind=kind, value=value)


class Discriminator(BaseModel):
    property_name: str | None = Field(None, alias="propertyName")
    mapping: dict[str, str] | None = None

    model_config = {"populate_by_name": True}


class Schema(BaseModel):
    """A schema node: either an inline definition or a named reference.

    ``ref`` holds the target component name for ``#/components/schemas/<Name>``
    references; any other ``$ref`` is kept verbatim in ``external_ref``.
    """

    ref: str | None = None
    external_ref: str | None = None
    type: str | None = None
    format: str | None = None
    nullable: bool = False
    properties: dict[str, Schema] | None = None
    items: Schema | None = None
    all_of: list[Schema] = Field(default_factory=list, alias="allOf")
    one_of: list[Schema] = Field(default_factory=list, alias="oneOf")
    any_of: list[Schema] = Field(default_factory=list, alias="anyOf")
    enum: list[EnumValue] | None = None
    discriminator: Discriminator | None = None
    required: list[str] = []
    minimum: float | None = None
    maximum: float | None = None
    min_length: int | None = Field(None, alias="minLength")
    max_length: int | None = Field(None, alias="maxLength")
    min_items: int | None = Field(None, alias="minItems")
    max_items: int | None = Field(None, alias="maxItems")
    pattern: str | None = None
    additional_properties: bool | Schema | None = Field(None, alias="additionalProperties")

    model_config = {"populate_by_name": True}

    @property
    def is_reference(self) -> bool:
        return self.ref is not None or self.external_ref is not None

    @property
    def is_empty(self) -> bool:
        """True for an inline schema that carries no shape information at all."""
        return not self.is_reference and (
            self.type is None
            and self.properties is None
            and self.items is None
            and not self.all_of
            and not self.one_of
            and not self.any_of
            and self.enum is None
            and self.additional_properties is None
            and self.format is None
        )

    @property
    def is_inline_complex(self) -> bool:
        """An inline object schema with declared properties."""
        return not self.is_reference and self.type == "object" and bool(self.properties)


class MediaType(BaseModel):
    schema_: Schema | None = Field(None, alias="schema")

    model_config = {"populate_by_name": True}


class Parameter(BaseModel):
    """An operation or path-item parameter.

    ``reference`` is set when the parameter came from ``#/components/parameters``
    (or from a ``$ref`` that could not be followed, in which case ``name`` is None).
    """

    name: str | None = None
    location: ParameterLocation | None = Field(None, alias="in")
    raw_location: str | None = None
    required: bool = False
    schema_: Schema | None = Field(None, alias="schema")
    has_content: bool = False
    reference: str | None = None

    model_config = {"populate_by_name": True}


class RequestBody(BaseModel):
    content: dict[str, MediaType] = {}
    required: bool = False
    reference: str | None = None


class Response(BaseModel):
    description: str | None = None
    content: dict[str, MediaType] = {}
    reference: str | None = None


class Operation(BaseModel):
    operation_id: str | None = Field(None, alias="operationId")
    parameters: list[Parameter] = []
    request_body: RequestBody | None = Field(None, alias="requestBody")
    responses: dict[str, Response] | None = None
    tags: list[str] = []
    security: list[dict[str, list[str]]] | None = None

    model_config = {"populate_by_name": True}


class PathItem(BaseModel):
    """Parameters shared by all operations plus operations keyed by HTTP method."""

    parameters: list[Parameter] = []
    operations: dict[str, Operation] = {}


class SecurityScheme(BaseModel):
    type: str | None = None
    scheme: str | None = None
    name: str | None = None
    location: str | None = Field(None, alias="in")
    flows: dict[str, Any] | None = None

    model_config = {"populate_by_name": True}


class Components(BaseModel):
    schemas: dict[str, Schema] = {}
    parameters: dict[str, Parameter] = {}
    responses: dict[str, Response] = {}
    request_bodies: dict[str, RequestBody] = Field(default_factory=dict, alias="requestBodies")
    security_schemes: dict[str, SecurityScheme] = Field(
        default_factory=dict, alias="securitySchemes"
    )

    model_config = {"populate_by_name": True}


class Info(BaseModel):
    title: str | None = None
    version: str | None = None
    description: str | None = None


class Server(BaseModel):
    url: str = ""
    description: str | None = None


class Tag(BaseModel):
    name: str
    description: str | None = None


class OpenApiDocument(BaseModel):
    """Root of the document graph.  Paths keep their declaration order."""

    openapi: str = "3.0.3"
    info: Info | None = None
    servers: list[Server] = []
    paths: dict[str, PathItem] = {}
    components: Components | None = None
    tags: list[Tag] | None = None
    security: list[dict[str, list[str]]] | None = None

    def schema_named(self, name: str) -> Schema | None:
        if self.components is None:
            return None
        return self.components.schemas.get(name)


Schema.model_rebuild()
