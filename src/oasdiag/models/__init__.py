"""Pydantic models for OpenAPI documents and diagnostic issues."""

from oasdiag.models.document import (
    Components,
    Discriminator,
    EnumKind,
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
from oasdiag.models.issues import Category, DiagnosticIssue, ParseError, Severity, SourceSpan

__all__ = [
    "Category",
    "Components",
    "DiagnosticIssue",
    "Discriminator",
    "EnumKind",
    "EnumValue",
    "Info",
    "MediaType",
    "OpenApiDocument",
    "Operation",
    "Parameter",
    "ParameterLocation",
    "ParseError",
    "PathItem",
    "RequestBody",
    "Response",
    "Schema",
    "SecurityScheme",
    "Server",
    "Severity",
    "SourceSpan",
    "Tag",
]
