"""Document-level checks: info block, servers, presence of paths."""

from __future__ import annotations

from oasdiag.analysis.base import Analyzer
from oasdiag.analysis.context import AnalysisContext
from oasdiag.models.issues import Category, Severity


class StructureAnalyzer(Analyzer):
    name = "structure"

    def analyze(self, context: AnalysisContext) -> None:
        self._check_info(context)
        self._check_servers(context)
        self._check_paths(context)

    def _check_info(self, context: AnalysisContext) -> None:
        info = context.document.info
        if info is None:
            context.add_issue(
                Severity.ERROR,
                Category.STRUCTURE,
                "MISSING_INFO",
                "The 'info' object is required.",
                "info",
            )
            return

        if not (info.title or "").strip():
            context.add_issue(
                Severity.ERROR,
                Category.STRUCTURE,
                "MISSING_TITLE",
                "Info object must have a 'title'.",
                "info.title",
            )
        if not (info.version or "").strip():
            context.add_issue(
                Severity.ERROR,
                Category.STRUCTURE,
                "MISSING_VERSION",
                "Info object must have a 'version'.",
                "info.version",
            )

    def _check_servers(self, context: AnalysisContext) -> None:
        if not context.document.servers:
            context.add_issue(
                Severity.WARNING,
                Category.STRUCTURE,
                "MISSING_SERVERS",
                "No 'servers' are defined. Clients may not know how to connect.",
                "servers",
            )

    def _check_paths(self, context: AnalysisContext) -> None:
        if not context.document.paths:
            context.add_issue(
                Severity.ERROR,
                Category.STRUCTURE,
                "MISSING_PATHS",
                "The document must contain at least one path.",
                "paths",
            )
