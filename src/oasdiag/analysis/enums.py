"""Enum value checks, switching on the kind tag fixed at build time."""

from __future__ import annotations

from oasdiag.analysis.context import AnalysisContext
from oasdiag.analysis.walker import SchemaVisit
from oasdiag.models.document import EnumKind
from oasdiag.models.issues import Category, Severity


class EnumRules:
    def check(self, context: AnalysisContext, visit: SchemaVisit) -> None:
        schema = visit.schema
        values = schema.enum
        if not values:
            return

        path = visit.path
        location = f"components.schemas.{path}.enum"

        def _add(severity: Severity, code: str, message: str) -> None:
            context.add_issue(
                severity,
                Category.SCHEMA,
                code,
                message,
                location,
                component_name=visit.component,
                component_path=path,
                component_type="schema",
            )

        if any(v.kind == EnumKind.ARRAY and not v.value for v in values):
            _add(
                Severity.ERROR,
                "EMPTY_ENUM_ARRAY",
                f"Schema '{path}' contains an empty enum array value",
            )

        if len(values) == 1:
            only = values[0]
            _add(
                Severity.WARNING,
                "SINGLE_VALUE_ENUM",
                f"Schema '{path}' has an enum with only one value ({only.kind}: {only.value})",
            )

        if all(v.kind == EnumKind.BOOLEAN for v in values):
            _add(
                Severity.WARNING,
                "BOOLEAN_ENUM",
                f"Schema '{path}' uses an enum for boolean values; "
                f"consider using type: boolean instead",
            )

        if any(v.kind == EnumKind.ARRAY for v in values):
            _add(
                Severity.ERROR,
                "NESTED_ARRAY_ENUM",
                f"Schema '{path}' contains nested arrays in enum values",
            )

        kinds = list(dict.fromkeys(v.kind for v in values))
        if schema.nullable and EnumKind.NULL in kinds:
            kinds.remove(EnumKind.NULL)
        if len(kinds) > 1:
            _add(
                Severity.ERROR,
                "MIXED_TYPE_ENUM",
                f"Schema '{path}' has enum values of mixed types: {', '.join(kinds)}",
            )
