"""OpenAPI diagnostics: finds document problems that break code generation."""

from __future__ import annotations

from pathlib import Path

from oasdiag.models.document import OpenApiDocument
from oasdiag.models.issues import Category, DiagnosticIssue, Severity
from oasdiag.service.diagnostics import OpenApiDiagnostics
from oasdiag.settings import Settings

__version__ = "0.1.0"

__all__ = [
    "Category",
    "DiagnosticIssue",
    "OpenApiDiagnostics",
    "Settings",
    "Severity",
    "__version__",
    "analyze",
    "analyze_document",
    "analyze_file",
]


def analyze(raw_text: str, settings: Settings | None = None) -> list[DiagnosticIssue]:
    return OpenApiDiagnostics(settings).analyze(raw_text)


def analyze_file(path: str | Path, settings: Settings | None = None) -> list[DiagnosticIssue]:
    return OpenApiDiagnostics(settings).analyze_file(path)


def analyze_document(
    document: OpenApiDocument, settings: Settings | None = None
) -> list[DiagnosticIssue]:
    return OpenApiDiagnostics(settings).analyze_document(document)
