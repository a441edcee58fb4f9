"""Diagnostic issue models with source position tracking."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Category(StrEnum):
    STRUCTURE = "structure"
    SCHEMA = "schema"
    PATH = "path"
    OPERATION = "operation"
    PARAMETER = "parameter"
    RESPONSE = "response"
    SECURITY = "security"
    NAMING = "naming"
    KIOTA = "kiota"
    OTHER = "other"


class SourceSpan(BaseModel):
    """Points to exact location in the YAML/JSON source for error reporting."""

    file: str
    line: int
    column: int
    end_line: int | None = None
    end_column: int | None = None


class DiagnosticIssue(BaseModel):
    """A single finding about the analyzed document.

    ``location`` is a dotted path into the document (``paths./pets.get``,
    ``components.schemas.Pet.owner``).  Issues are immutable once created.
    """

    severity: Severity
    category: Category
    code: str
    message: str
    location: str = ""
    component_name: str | None = None
    component_path: str | None = None
    component_type: str | None = None
    details: str | None = None
    span: SourceSpan | None = None

    model_config = {"frozen": True}


class ParseError(BaseModel):
    """A structural problem found while turning raw input into a document."""

    message: str
    pointer: str = ""
