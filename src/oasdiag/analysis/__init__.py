"""Analysis engine for OpenAPI diagnostics."""

from oasdiag.analysis.base import Analyzer
from oasdiag.analysis.context import AnalysisContext, AnalysisOptions
from oasdiag.analysis.graph import DependencyGraph
from oasdiag.analysis.pipeline import AnalysisPipeline, default_analyzers
from oasdiag.analysis.walker import SchemaVisit, SchemaWalker

__all__ = [
    "AnalysisContext",
    "AnalysisOptions",
    "AnalysisPipeline",
    "Analyzer",
    "DependencyGraph",
    "SchemaVisit",
    "SchemaWalker",
    "default_analyzers",
]
