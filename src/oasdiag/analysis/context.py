"""Per-run analysis state."""

from __future__ import annotations

from dataclasses import dataclass, field

from oasdiag.analysis.graph import DependencyGraph
from oasdiag.models.document import OpenApiDocument
from oasdiag.models.issues import Category, DiagnosticIssue, Severity


@dataclass
class AnalysisOptions:
    """Toggles for optional rules."""

    check_nullable_parameters: bool = False


@dataclass
class AnalysisContext:
    """Holds everything one analysis run accumulates.

    Created fresh for every document; analyzers themselves stay stateless.
    """

    document: OpenApiDocument
    options: AnalysisOptions = field(default_factory=AnalysisOptions)
    issues: list[DiagnosticIssue] = field(default_factory=list)
    operation_ids: set[str] = field(default_factory=set)  # casefolded
    dependencies: DependencyGraph = field(default_factory=DependencyGraph)
    reported_cycles: set[str] = field(default_factory=set)

    def add_issue(
        self,
        severity: Severity,
        category: Category,
        code: str,
        message: str,
        location: str,
        component_name: str | None = None,
        component_path: str | None = None,
        component_type: str | None = None,
        details: str | None = None,
    ) -> None:
        self.issues.append(
            DiagnosticIssue(
                severity=severity,
                category=category,
                code=code,
                message=message,
                location=location,
                component_name=component_name,
                component_path=component_path,
                component_type=component_type,
                details=details,
            )
        )

    def register_operation_id(self, operation_id: str) -> bool:
        """Record an operationId; False if it was already seen (case-insensitive)."""
        key = operation_id.casefold()
        if key in self.operation_ids:
            return False
        self.operation_ids.add(key)
        return True
