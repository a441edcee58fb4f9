"""Parameter checks for operations, path items and component parameters."""

from __future__ import annotations

from oasdiag.analysis.base import Analyzer
from oasdiag.analysis.context import AnalysisContext
from oasdiag.models.document import Parameter, ParameterLocation
from oasdiag.models.issues import Category, Severity


class ParameterRules:
    """Checks one parameter list; used by the path pass and the component pass."""

    def check_list(
        self,
        context: AnalysisContext,
        parameters: list[Parameter],
        location: str,
        operation_id: str | None = None,
    ) -> None:
        seen: set[tuple[str, str | None]] = set()
        for i, parameter in enumerate(parameters):
            # Parameters pulled in through $ref are checked once, as components.
            if parameter.reference is not None:
                continue
            param_location = f"{location}.parameters[{i}]"
            if not (parameter.name or "").strip():
                context.add_issue(
                    Severity.ERROR,
                    Category.PARAMETER,
                    "MISSING_PARAMETER_NAME",
                    "Parameter is missing a 'name'.",
                    param_location,
                    component_name=operation_id,
                )
                continue

            key = (parameter.name or "", parameter.raw_location)
            if key in seen:
                context.add_issue(
                    Severity.ERROR,
                    Category.PARAMETER,
                    "DUPLICATE_PARAMETER",
                    f"Duplicate parameter found with name '{parameter.name}' "
                    f"and location '{parameter.raw_location}'.",
                    param_location,
                    component_name=operation_id,
                )
            seen.add(key)
            self.check(context, parameter, param_location, owner=operation_id)

    def check(
        self,
        context: AnalysisContext,
        parameter: Parameter,
        location: str,
        owner: str | None = None,
    ) -> None:
        """Checks that apply to a single named parameter."""
        name = parameter.name

        if parameter.location is None:
            context.add_issue(
                Severity.ERROR,
                Category.PARAMETER,
                "INVALID_PARAMETER_LOCATION",
                f"Parameter '{name}' has location '{parameter.raw_location}'; "
                f"expected one of: {', '.join(loc.value for loc in ParameterLocation)}.",
                location,
                component_name=owner,
            )

        if parameter.location == ParameterLocation.PATH and not parameter.required:
            context.add_issue(
                Severity.ERROR,
                Category.PARAMETER,
                "PATH_PARAM_NOT_REQUIRED",
                f"Path parameter '{name}' must be marked as required.",
                location,
                component_name=owner,
            )

        schema = parameter.schema_
        if schema is None:
            if not parameter.has_content:
                context.add_issue(
                    Severity.ERROR,
                    Category.PARAMETER,
                    "MISSING_PARAMETER_SCHEMA",
                    f"Parameter '{name}' is missing a 'schema'.",
                    location,
                    component_name=owner,
                )
            return

        if schema.is_inline_complex:
            context.add_issue(
                Severity.WARNING,
                Category.KIOTA,
                "INLINE_COMPLEX_PARAMETER_SCHEMA",
                f"Parameter '{name}' uses a complex inline schema. For best code generation "
                f"results, define this as a reusable component in '#/components/schemas'.",
                location,
                component_name=owner,
            )

        if context.options.check_nullable_parameters and parameter.required and schema.nullable:
            context.add_issue(
                Severity.WARNING,
                Category.PARAMETER,
                "NULLABLE_REQUIRED_PARAMETER",
                f"Parameter '{name}' is required but its schema is nullable.",
                location,
                component_name=owner,
            )


class ComponentParameterAnalyzer(Analyzer):
    """Runs the parameter checks over ``components.parameters``."""

    name = "component-parameters"

    def __init__(self, rules: ParameterRules | None = None) -> None:
        self._rules = rules or ParameterRules()

    def analyze(self, context: AnalysisContext) -> None:
        components = context.document.components
        if components is None:
            return
        for name, parameter in components.parameters.items():
            location = f"components.parameters.{name}"
            if parameter.reference is not None:
                continue
            if not (parameter.name or "").strip():
                context.add_issue(
                    Severity.ERROR,
                    Category.PARAMETER,
                    "MISSING_PARAMETER_NAME",
                    "Parameter is missing a 'name'.",
                    location,
                    component_name=name,
                    component_type="parameter",
                )
                continue
            self._rules.check(context, parameter, location, owner=name)
