"""Service layer: the diagnostics facade."""

from oasdiag.service.diagnostics import OpenApiDiagnostics

__all__ = [
    "OpenApiDiagnostics",
]
