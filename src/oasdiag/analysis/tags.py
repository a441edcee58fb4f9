"""Operation tagging checks."""

from __future__ import annotations

from oasdiag.analysis.base import Analyzer, iter_operations
from oasdiag.analysis.context import AnalysisContext
from oasdiag.models.issues import Category, Severity


class TagAnalyzer(Analyzer):
    """Untagged operations are always reported; undeclared tags only when
    the document has a global ``tags`` list to check against.
    """

    name = "tags"

    def analyze(self, context: AnalysisContext) -> None:
        document = context.document
        declared = {tag.name for tag in document.tags} if document.tags is not None else None

        for ref in iter_operations(document):
            operation = ref.operation
            label = operation.operation_id or f"{ref.method.upper()} {ref.path}"
            if not operation.tags:
                context.add_issue(
                    Severity.WARNING,
                    Category.OTHER,
                    "OPERATION_UNTAGGED",
                    f"Operation '{label}' is not associated with any tags.",
                    ref.location,
                    component_name=operation.operation_id,
                )
                continue

            if not declared:
                continue
            for tag in operation.tags:
                if tag not in declared:
                    context.add_issue(
                        Severity.WARNING,
                        Category.OTHER,
                        "UNDEFINED_TAG",
                        f"Operation '{label}' uses tag '{tag}' which is not defined in the "
                        f"global tags list.",
                        f"{ref.location}.tags",
                        component_name=operation.operation_id,
                    )
