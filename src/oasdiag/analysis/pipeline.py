"""Orchestrates the analysis passes in dependency order."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from oasdiag.analysis.base import Analyzer
from oasdiag.analysis.context import AnalysisContext, AnalysisOptions
from oasdiag.analysis.cycles import CycleAnalyzer
from oasdiag.analysis.naming import NamingAnalyzer
from oasdiag.analysis.parameters import ComponentParameterAnalyzer
from oasdiag.analysis.paths import PathAnalyzer
from oasdiag.analysis.schemas import SchemaAnalyzer
from oasdiag.analysis.security import SecurityAnalyzer
from oasdiag.analysis.structure import StructureAnalyzer
from oasdiag.analysis.tags import TagAnalyzer
from oasdiag.models.document import OpenApiDocument
from oasdiag.models.issues import DiagnosticIssue

logger = logging.getLogger("oasdiag.analysis")


def default_analyzers() -> list[Analyzer]:
    """All passes in run order; cycle detection needs the schema pass first."""
    return [
        StructureAnalyzer(),
        PathAnalyzer(),
        NamingAnalyzer(),
        SchemaAnalyzer(),
        ComponentParameterAnalyzer(),
        SecurityAnalyzer(),
        TagAnalyzer(),
        CycleAnalyzer(),
    ]


class AnalysisPipeline:
    """Runs every analyzer against one fresh context per document.

    The pipeline holds no per-run state and can be shared between threads.
    """

    def __init__(
        self,
        options: AnalysisOptions | None = None,
        analyzers: Sequence[Analyzer] | None = None,
    ) -> None:
        self._options = options or AnalysisOptions()
        self._analyzers = list(analyzers) if analyzers is not None else default_analyzers()

    @property
    def analyzers(self) -> list[Analyzer]:
        return list(self._analyzers)

    def run(self, document: OpenApiDocument) -> list[DiagnosticIssue]:
        context = AnalysisContext(document=document, options=self._options)
        for analyzer in self._analyzers:
            before = len(context.issues)
            analyzer.analyze(context)
            logger.debug(
                "Pass '%s' added %d issues", analyzer.name, len(context.issues) - before
            )
        return context.issues
