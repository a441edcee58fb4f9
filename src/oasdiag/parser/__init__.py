"""YAML/JSON parsing with line fidelity for OpenAPI documents."""

from oasdiag.parser.builder import DocumentBuilder
from oasdiag.parser.loader import SourceMap, TrackedLoader, YAMLSafetyError

__all__ = [
    "DocumentBuilder",
    "SourceMap",
    "TrackedLoader",
    "YAMLSafetyError",
]
