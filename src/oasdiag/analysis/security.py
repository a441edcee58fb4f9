"""Security scheme declarations and the requirements that use them."""

from __future__ import annotations

from oasdiag.analysis.base import Analyzer, iter_operations
from oasdiag.analysis.context import AnalysisContext
from oasdiag.models.issues import Category, Severity


class SecurityAnalyzer(Analyzer):
    name = "security"

    def analyze(self, context: AnalysisContext) -> None:
        self._check_schemes(context)
        self._check_requirements(context)

    def _check_schemes(self, context: AnalysisContext) -> None:
        components = context.document.components
        if components is None:
            return
        for name, scheme in components.security_schemes.items():
            if (scheme.type or "").lower() == "oauth2" and not scheme.flows:
                context.add_issue(
                    Severity.ERROR,
                    Category.SECURITY,
                    "MISSING_OAUTH_FLOWS",
                    f"OAuth2 security scheme '{name}' must define 'flows'.",
                    f"components.securitySchemes.{name}",
                    component_name=name,
                    component_type="securityScheme",
                )

    def _check_requirements(self, context: AnalysisContext) -> None:
        document = context.document
        declared = set(document.components.security_schemes) if document.components else set()

        def _check(
            requirements: list[dict[str, list[str]]],
            location: str,
            operation_id: str | None = None,
        ) -> None:
            for i, requirement in enumerate(requirements):
                for scheme in requirement:
                    if scheme in declared:
                        continue
                    context.add_issue(
                        Severity.ERROR,
                        Category.SECURITY,
                        "UNDEFINED_SECURITY_SCHEME",
                        f"Security requirement references scheme '{scheme}', which is not "
                        f"declared in 'components.securitySchemes'.",
                        f"{location}[{i}]",
                        component_name=operation_id,
                    )

        if document.security:
            _check(document.security, "security")
        for ref in iter_operations(document):
            if ref.operation.security:
                _check(
                    ref.operation.security,
                    f"{ref.location}.security",
                    ref.operation.operation_id,
                )
