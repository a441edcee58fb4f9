"""Document building: turns a raw OpenAPI mapping into the typed document graph."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from oasdiag.models.document import (
    Components,
    Discriminator,
    EnumValue,
    Info,
    MediaType,
    OpenApiDocument,
    Operation,
    Parameter,
    ParameterLocation,
    PathItem,
    RequestBody,
    Response,
    Schema,
    SecurityScheme,
    Server,
    Tag,
)
from oasdiag.models.issues import ParseError

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

_SCHEMA_REF_PREFIX = "#/components/schemas/"
_MAX_REF_HOPS = 16


class _BuildError(ValueError):
    """A structural problem at a specific JSON pointer."""

    def __init__(self, message: str, pointer: str) -> None:
        super().__init__(message)
        self.pointer = pointer


def escape_pointer(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def unescape_pointer(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def schema_ref_target(ref: str) -> str | None:
    """Return the component name of a ``#/components/schemas/<Name>`` reference."""
    if not ref.startswith(_SCHEMA_REF_PREFIX):
        return None
    name = ref[len(_SCHEMA_REF_PREFIX) :]
    if not name or "/" in name:
        return None
    return unescape_pointer(name)


class DocumentBuilder:
    """Builds an :class:`OpenApiDocument` from the loader's plain mapping.

    Returns ``(document, errors)``.  The document is returned even when
    errors were found but callers should not analyze it in that case.
    Each call works on its own :class:`_Build`, so one builder can serve
    several threads.
    """

    def build(self, raw: dict[str, Any]) -> tuple[OpenApiDocument, list[ParseError]]:
        return _Build().run(raw)


class _Build:
    """State for building one document."""

    def __init__(self) -> None:
        self._raw_components: dict[str, Any] = {}

    def run(self, raw: dict[str, Any]) -> tuple[OpenApiDocument, list[ParseError]]:
        errors: list[ParseError] = []

        version = raw.get("openapi")
        if version is None:
            if "swagger" in raw:
                errors.append(
                    ParseError(
                        message=(
                            f"Swagger {raw['swagger']} documents are not supported; "
                            f"convert the document to OpenAPI 3.x"
                        ),
                        pointer="#/swagger",
                    )
                )
            else:
                errors.append(
                    ParseError(
                        message="Document has no 'openapi' version field",
                        pointer="#/openapi",
                    )
                )
            return OpenApiDocument(), errors

        raw_components = raw.get("components")
        if raw_components is not None and not isinstance(raw_components, dict):
            errors.append(
                ParseError(message="'components' must be a mapping", pointer="#/components")
            )
            raw_components = None
        self._raw_components = raw_components or {}

        document = OpenApiDocument(openapi=str(version))

        for section, build in (
            ("info", self._info),
            ("servers", self._servers),
            ("components", self._components),
            ("paths", self._paths),
            ("tags", self._tags),
            ("security", self._security_section),
        ):
            if section not in raw or (section == "components" and raw_components is None):
                continue
            try:
                setattr(document, section, build(raw[section], errors))
            except _BuildError as exc:
                errors.append(ParseError(message=str(exc), pointer=exc.pointer))
            except ValidationError as exc:
                errors.append(
                    ParseError(
                        message=f"Failed to parse '{section}': {exc}", pointer=f"#/{section}"
                    )
                )

        return document, errors

    # -- top-level sections --------------------------------------------------

    def _info(self, raw: Any, errors: list[ParseError]) -> Info:
        data = _mapping(raw, "#/info")
        return Info(
            title=_text(data.get("title")),
            version=_text(data.get("version")),
            description=_text(data.get("description")),
        )

    def _servers(self, raw: Any, errors: list[ParseError]) -> list[Server]:
        servers: list[Server] = []
        for i, item in enumerate(_sequence(raw, "#/servers")):
            data = _mapping(item, f"#/servers/{i}")
            servers.append(
                Server(url=_text(data.get("url")) or "", description=_text(data.get("description")))
            )
        return servers

    def _tags(self, raw: Any, errors: list[ParseError]) -> list[Tag]:
        tags: list[Tag] = []
        for i, item in enumerate(_sequence(raw, "#/tags")):
            data = _mapping(item, f"#/tags/{i}")
            name = _text(data.get("name"))
            if name is None:
                errors.append(ParseError(message="Tag is missing a 'name'", pointer=f"#/tags/{i}"))
                continue
            tags.append(Tag(name=name, description=_text(data.get("description"))))
        return tags

    def _security_section(
        self, raw: Any, errors: list[ParseError]
    ) -> list[dict[str, list[str]]]:
        return _security(raw, "#/security")

    def _components(self, raw: Any, errors: list[ParseError]) -> Components:
        components = Components()
        sections = {
            "schemas": self._schema_component,
            "parameters": self._parameter_component,
            "responses": self._response_component,
            "requestBodies": self._request_body_component,
            "securitySchemes": self._security_scheme,
        }
        for section, build in sections.items():
            raw_section = raw.get(section)
            if raw_section is None:
                continue
            pointer = f"#/components/{section}"
            if not isinstance(raw_section, dict):
                errors.append(ParseError(message=f"'{section}' must be a mapping", pointer=pointer))
                continue
            built: dict[str, Any] = {}
            for name, item in raw_section.items():
                item_pointer = f"{pointer}/{escape_pointer(name)}"
                try:
                    built[name] = build(name, item, item_pointer)
                except _BuildError as exc:
                    errors.append(ParseError(message=str(exc), pointer=exc.pointer))
            setattr(components, _COMPONENT_FIELDS[section], built)
        return components

    def _schema_component(self, name: str, raw: Any, pointer: str) -> Schema:
        return self._schema(raw, pointer)

    def _parameter_component(self, name: str, raw: Any, pointer: str) -> Parameter:
        return self._parameter(raw, pointer)

    def _response_component(self, name: str, raw: Any, pointer: str) -> Response:
        return self._response(raw, pointer)

    def _request_body_component(self, name: str, raw: Any, pointer: str) -> RequestBody:
        return self._request_body(raw, pointer)

    def _security_scheme(self, name: str, raw: Any, pointer: str) -> SecurityScheme:
        data = _mapping(raw, pointer)
        flows = data.get("flows")
        if flows is not None and not isinstance(flows, dict):
            raise _BuildError("'flows' must be a mapping", f"{pointer}/flows")
        return SecurityScheme(
            type=_text(data.get("type")),
            scheme=_text(data.get("scheme")),
            name=_text(data.get("name")),
            location=_text(data.get("in")),
            flows=flows,
        )

    # -- paths ---------------------------------------------------------------

    def _paths(self, raw: Any, errors: list[ParseError]) -> dict[str, PathItem]:
        paths: dict[str, PathItem] = {}
        for path, raw_item in _mapping(raw, "#/paths").items():
            if path.startswith("x-"):
                continue
            pointer = f"#/paths/{escape_pointer(path)}"
            try:
                paths[path] = self._path_item(raw_item, pointer)
            except _BuildError as exc:
                errors.append(ParseError(message=str(exc), pointer=exc.pointer))
        return paths

    def _path_item(self, raw: Any, pointer: str) -> PathItem:
        data = _mapping(raw, pointer)
        item = PathItem(
            parameters=self._parameters(data.get("parameters"), f"{pointer}/parameters")
        )
        for key, raw_op in data.items():
            method = key.lower()
            if method in HTTP_METHODS:
                item.operations[method] = self._operation(raw_op, f"{pointer}/{key}")
        return item

    def _operation(self, raw: Any, pointer: str) -> Operation:
        data = _mapping(raw, pointer)

        responses: dict[str, Response] | None = None
        if data.get("responses") is not None:
            responses = {
                str(code): self._response(raw_resp, f"{pointer}/responses/{code}")
                for code, raw_resp in _mapping(data["responses"], f"{pointer}/responses").items()
                if not str(code).startswith("x-")
            }

        request_body = None
        if data.get("requestBody") is not None:
            request_body = self._request_body(data["requestBody"], f"{pointer}/requestBody")

        tags = [_text(t) or "" for t in _sequence(data.get("tags") or [], f"{pointer}/tags")]

        return Operation(
            operation_id=_text(data.get("operationId")),
            parameters=self._parameters(data.get("parameters"), f"{pointer}/parameters"),
            request_body=request_body,
            responses=responses,
            tags=tags,
            security=_security(data["security"], f"{pointer}/security")
            if data.get("security") is not None
            else None,
        )

    def _parameters(self, raw: Any, pointer: str) -> list[Parameter]:
        if raw is None:
            return []
        return [
            self._parameter(item, f"{pointer}/{i}")
            for i, item in enumerate(_sequence(raw, pointer))
        ]

    def _parameter(self, raw: Any, pointer: str) -> Parameter:
        data, reference = self._follow(raw, "parameters", pointer)
        if data is None:
            return Parameter(reference=reference)

        raw_location = _text(data.get("in"))
        try:
            location = ParameterLocation(raw_location) if raw_location else None
        except ValueError:
            location = None

        schema = None
        if data.get("schema") is not None:
            schema = self._schema(data["schema"], f"{pointer}/schema")

        return Parameter(
            name=_text(data.get("name")),
            location=location,
            raw_location=raw_location,
            required=data.get("required") is True,
            schema_=schema,
            has_content=bool(data.get("content")),
            reference=reference,
        )

    def _request_body(self, raw: Any, pointer: str) -> RequestBody:
        data, reference = self._follow(raw, "requestBodies", pointer)
        if data is None:
            return RequestBody(reference=reference)
        return RequestBody(
            content=self._content(data.get("content"), f"{pointer}/content"),
            required=data.get("required") is True,
            reference=reference,
        )

    def _response(self, raw: Any, pointer: str) -> Response:
        data, reference = self._follow(raw, "responses", pointer)
        if data is None:
            return Response(reference=reference)
        return Response(
            description=_text(data.get("description")),
            content=self._content(data.get("content"), f"{pointer}/content"),
            reference=reference,
        )

    def _content(self, raw: Any, pointer: str) -> dict[str, MediaType]:
        if raw is None:
            return {}
        content: dict[str, MediaType] = {}
        for media_type, raw_media in _mapping(raw, pointer).items():
            media_pointer = f"{pointer}/{escape_pointer(media_type)}"
            data = _mapping(raw_media or {}, media_pointer)
            schema = None
            if data.get("schema") is not None:
                schema = self._schema(data["schema"], f"{media_pointer}/schema")
            content[media_type] = MediaType(schema_=schema)
        return content

    def _follow(
        self, raw: Any, section: str, pointer: str
    ) -> tuple[dict[str, Any] | None, str | None]:
        """Resolve a local ``$ref`` into ``#/components/<section>``.

        Returns ``(data, reference)``: the mapping to build from and the
        component name it came from.  External references yield ``(None, ref)``.
        """
        data = _mapping(raw, pointer)
        reference: str | None = None
        prefix = f"#/components/{section}/"
        hops = 0
        while "$ref" in data:
            ref = _text(data["$ref"]) or ""
            if not ref.startswith("#"):
                return None, ref
            if not ref.startswith(prefix):
                raise _BuildError(f"Reference '{ref}' must point into '{prefix}'", pointer)
            name = unescape_pointer(ref[len(prefix) :])
            target = (self._raw_components.get(section) or {}).get(name)
            if target is None:
                raise _BuildError(f"Unresolved reference '{ref}'", pointer)
            hops += 1
            if hops > _MAX_REF_HOPS:
                raise _BuildError(f"Reference chain starting at '{ref}' is too long", pointer)
            reference = reference or name
            data = _mapping(target, ref)
        return data, reference

    # -- schemas -------------------------------------------------------------

    def _schema(self, raw: Any, pointer: str) -> Schema:
        if isinstance(raw, bool):
            return Schema()
        data = _mapping(raw, pointer)

        if "$ref" in data:
            ref = _text(data["$ref"]) or ""
            target = schema_ref_target(ref)
            if target is not None:
                return Schema(ref=target)
            return Schema(external_ref=ref)

        schema_type, nullable = _schema_type(data.get("type"), pointer)

        properties = None
        if data.get("properties") is not None:
            properties = {
                str(name): self._schema(value, f"{pointer}/properties/{escape_pointer(str(name))}")
                for name, value in _mapping(data["properties"], f"{pointer}/properties").items()
            }

        items = None
        if data.get("items") is not None:
            items = self._schema(data["items"], f"{pointer}/items")

        composition: dict[str, list[Schema]] = {}
        for keyword in ("allOf", "oneOf", "anyOf"):
            composition[keyword] = [
                self._schema(member, f"{pointer}/{keyword}/{i}")
                for i, member in enumerate(
                    _sequence(data.get(keyword) or [], f"{pointer}/{keyword}")
                )
            ]

        enum = None
        if data.get("enum") is not None:
            enum = [EnumValue.of(v) for v in _sequence(data["enum"], f"{pointer}/enum")]

        discriminator = None
        if data.get("discriminator") is not None:
            raw_disc = _mapping(data["discriminator"], f"{pointer}/discriminator")
            mapping = None
            if raw_disc.get("mapping") is not None:
                mapping = {
                    str(k): str(v)
                    for k, v in _mapping(
                        raw_disc["mapping"], f"{pointer}/discriminator/mapping"
                    ).items()
                }
            discriminator = Discriminator(
                property_name=_text(raw_disc.get("propertyName")), mapping=mapping
            )

        additional: bool | Schema | None = None
        raw_additional = data.get("additionalProperties")
        if isinstance(raw_additional, bool):
            additional = raw_additional
        elif raw_additional is not None:
            additional = self._schema(raw_additional, f"{pointer}/additionalProperties")

        required = data.get("required")
        return Schema(
            type=schema_type,
            format=_text(data.get("format")),
            nullable=nullable or data.get("nullable") is True,
            properties=properties,
            items=items,
            all_of=composition["allOf"],
            one_of=composition["oneOf"],
            any_of=composition["anyOf"],
            enum=enum,
            discriminator=discriminator,
            required=[str(r) for r in required] if isinstance(required, list) else [],
            minimum=_number(data.get("minimum")),
            maximum=_number(data.get("maximum")),
            min_length=_integer(data.get("minLength")),
            max_length=_integer(data.get("maxLength")),
            min_items=_integer(data.get("minItems")),
            max_items=_integer(data.get("maxItems")),
            pattern=_text(data.get("pattern")),
            additional_properties=additional,
        )


_COMPONENT_FIELDS = {
    "schemas": "schemas",
    "parameters": "parameters",
    "responses": "responses",
    "requestBodies": "request_bodies",
    "securitySchemes": "security_schemes",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mapping(raw: Any, pointer: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise _BuildError(f"Expected a mapping, found {_kind(raw)}", pointer)
    return raw


def _sequence(raw: Any, pointer: str) -> list[Any]:
    if not isinstance(raw, list):
        raise _BuildError(f"Expected a list, found {_kind(raw)}", pointer)
    return raw


def _kind(raw: Any) -> str:
    if raw is None:
        return "null"
    if isinstance(raw, dict):
        return "mapping"
    if isinstance(raw, list):
        return "list"
    return type(raw).__name__


def _text(raw: Any) -> str | None:
    """Scalars become strings (``version: 1.0`` is a float in YAML)."""
    if raw is None or isinstance(raw, dict | list):
        return None
    return str(raw)


def _number(raw: Any) -> float | None:
    if isinstance(raw, bool) or not isinstance(raw, int | float):
        return None
    return float(raw)


def _integer(raw: Any) -> int | None:
    if isinstance(raw, bool) or not isinstance(raw, int | float):
        return None
    return int(raw)


def _schema_type(raw: Any, pointer: str) -> tuple[str | None, bool]:
    """Return ``(type, nullable)``; OpenAPI 3.1 allows a list including ``null``."""
    if raw is None:
        return None, False
    if isinstance(raw, list):
        names = [str(t) for t in raw]
        non_null = [t for t in names if t != "null"]
        return (non_null[0] if non_null else None), "null" in names
    if isinstance(raw, str):
        return raw, False
    raise _BuildError(
        f"Schema 'type' must be a string or list, found {_kind(raw)}", f"{pointer}/type"
    )


def _security(raw: Any, pointer: str) -> list[dict[str, list[str]]]:
    requirements: list[dict[str, list[str]]] = []
    for i, item in enumerate(_sequence(raw, pointer)):
        data = _mapping(item, f"{pointer}/{i}")
        requirements.append(
            {
                str(name): [str(s) for s in _sequence(scopes or [], f"{pointer}/{i}/{name}")]
                for name, scopes in data.items()
            }
        )
    return requirements
