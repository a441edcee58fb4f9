"""Reports each distinct schema reference cycle once per run."""

from __future__ import annotations

import logging

from oasdiag.analysis.base import Analyzer
from oasdiag.analysis.context import AnalysisContext
from oasdiag.analysis.graph import cycle_key
from oasdiag.models.issues import Category, Severity

logger = logging.getLogger("oasdiag.analysis")


class CycleAnalyzer(Analyzer):
    """Must run after the schema pass has filled the dependency graph."""

    name = "cycles"

    def analyze(self, context: AnalysisContext) -> None:
        for cycle in context.dependencies.iter_cycles():
            key = cycle_key(cycle)
            if key in context.reported_cycles:
                continue
            context.reported_cycles.add(key)

            dependency = cycle[-1]
            context.add_issue(
                Severity.ERROR,
                Category.SCHEMA,
                "CIRCULAR_DEPENDENCY",
                f"Circular dependency detected: {' -> '.join(cycle)}. This can cause stack "
                f"overflows or un-generatable code.",
                f"components.schemas.{dependency}",
                component_name=dependency,
                component_type="schema",
            )

        logger.debug("Found %d distinct schema cycles", len(context.reported_cycles))
