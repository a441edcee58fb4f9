"""Component schema checks and dependency extraction.

One walker pass over ``components.schemas`` evaluates the structural and
enum rules on every node and records a dependency edge for every named
reference, so the cycle pass can run afterwards on the complete graph.
"""

from __future__ import annotations

import logging
import re

from oasdiag.analysis.base import Analyzer
from oasdiag.analysis.context import AnalysisContext
from oasdiag.analysis.enums import EnumRules
from oasdiag.analysis.walker import SchemaVisit, SchemaWalker
from oasdiag.models.document import EnumKind, Schema
from oasdiag.models.issues import Category, Severity
from oasdiag.parser.builder import schema_ref_target

logger = logging.getLogger("oasdiag.analysis")

_NUMBER_FORMATS = frozenset({"float", "double", "int32", "int64"})


def discriminator_target(value: str) -> str | None:
    """Schema name a discriminator mapping value points at.

    Values are either ``#/components/schemas/<Name>`` or a bare schema name;
    anything else (external or non-schema references) yields None.
    """
    if value.startswith("#"):
        return schema_ref_target(value)
    if not value or "/" in value:
        return None
    return value


class SchemaRules:
    """Structural checks on a single schema node."""

    def check(self, context: AnalysisContext, visit: SchemaVisit) -> None:
        schema = visit.schema
        if schema.is_reference:
            self._check_reference(context, visit)
            return
        self._check_properties(context, visit)
        self._check_items(context, visit)
        self._check_discriminator(context, visit)
        self._check_all_of(context, visit)
        self._check_ranges(context, visit)
        self._check_pattern(context, visit)
        self._check_untyped_object(context, visit)
        self._check_enum_values(context, visit)
        self._check_number_format(context, visit)

    @staticmethod
    def _add(
        context: AnalysisContext,
        visit: SchemaVisit,
        severity: Severity,
        category: Category,
        code: str,
        message: str,
        suffix: str = "",
    ) -> None:
        context.add_issue(
            severity,
            category,
            code,
            message,
            f"components.schemas.{visit.path}{suffix}",
            component_name=visit.component,
            component_path=visit.path,
            component_type="schema",
        )

    def _check_reference(self, context: AnalysisContext, visit: SchemaVisit) -> None:
        ref = visit.schema.ref
        if ref is None:
            return
        if ref == visit.component:
            self._add(
                context,
                visit,
                Severity.ERROR,
                Category.SCHEMA,
                "CIRCULAR_REFERENCE",
                f"Schema '{visit.path}' has a circular reference to itself",
            )
        elif context.document.schema_named(ref) is None:
            self._add(
                context,
                visit,
                Severity.ERROR,
                Category.SCHEMA,
                "UNRESOLVED_REFERENCE",
                f"Schema '{visit.path}' references '#/components/schemas/{ref}', "
                f"which is not defined",
            )

    def _check_properties(self, context: AnalysisContext, visit: SchemaVisit) -> None:
        properties = visit.schema.properties
        if not properties:
            return
        for name, child in properties.items():
            if not name.strip():
                self._add(
                    context,
                    visit,
                    Severity.ERROR,
                    Category.KIOTA,
                    "EMPTY_PROPERTY_NAME",
                    f"Schema '{visit.path}' contains a property with an empty name. "
                    f"This will cause code generators to crash.",
                    ".properties",
                )
            elif child.is_empty:
                self._add(
                    context,
                    visit,
                    Severity.ERROR,
                    Category.SCHEMA,
                    "EMPTY_INLINE_SCHEMA",
                    f"Property '{name}' in schema '{visit.path}' has an empty inline schema",
                    f".{name}",
                )

    def _check_items(self, context: AnalysisContext, visit: SchemaVisit) -> None:
        schema = visit.schema
        if schema.type != "array":
            return
        if schema.items is None or schema.items.is_empty:
            self._add(
                context,
                visit,
                Severity.ERROR,
                Category.SCHEMA,
                "EMPTY_ARRAY_ITEMS",
                f"Array schema '{visit.path}' has empty items definition",
                ".items",
            )

    def _check_discriminator(self, context: AnalysisContext, visit: SchemaVisit) -> None:
        schema = visit.schema
        path = visit.path
        discriminator = schema.discriminator

        if discriminator is None:
            if any(_is_complex_member(member) for member in schema.one_of):
                self._add(
                    context,
                    visit,
                    Severity.ERROR,
                    Category.KIOTA,
                    "MISSING_DISCRIMINATOR",
                    f"Schema '{path}' uses 'oneOf' for polymorphism but is missing a "
                    f"'discriminator' object, which is required by Kiota for code generation.",
                )
            return

        property_name = (discriminator.property_name or "").strip()
        if not property_name:
            self._add(
                context,
                visit,
                Severity.ERROR,
                Category.SCHEMA,
                "DISCRIMINATOR_MISSING_PROPERTY_NAME",
                f"Schema '{path}' has a discriminator but it's missing a 'propertyName'",
                ".discriminator",
            )
        elif property_name not in schema.required:
            self._add(
                context,
                visit,
                Severity.ERROR,
                Category.KIOTA,
                "DISCRIMINATOR_PROPERTY_NOT_REQUIRED",
                f"The discriminator property '{property_name}' must be in the 'required' "
                f"list for the schema '{path}'. Code generators like Kiota will fail "
                f"without this.",
            )

        if not discriminator.mapping:
            self._add(
                context,
                visit,
                Severity.ERROR,
                Category.SCHEMA,
                "MISSING_DISCRIMINATOR_MAPPING",
                f"Schema '{path}' has a discriminator but no mapping defined",
                ".discriminator",
            )
            return

        for key, value in discriminator.mapping.items():
            target = discriminator_target(value)
            if target is None:
                reason = f"has invalid reference path: {value}"
            elif context.document.schema_named(target) is None:
                reason = f"points at undefined schema '{target}'"
            else:
                continue
            self._add(
                context,
                visit,
                Severity.ERROR,
                Category.SCHEMA,
                "INVALID_DISCRIMINATOR_MAPPING",
                f"Discriminator mapping '{key}' in schema '{path}' {reason}",
                f".discriminator.mapping.{key}",
            )

    def _check_all_of(self, context: AnalysisContext, visit: SchemaVisit) -> None:
        for i, fragment in enumerate(visit.schema.all_of):
            if fragment.external_ref is not None:
                continue
            if fragment.ref is not None:
                target = context.document.schema_named(fragment.ref)
                if target is None:
                    continue
                fragment_type = target.type
            else:
                fragment_type = fragment.type

            if fragment_type is None:
                self._add(
                    context,
                    visit,
                    Severity.ERROR,
                    Category.SCHEMA,
                    "MISSING_ALL_OF_TYPE",
                    f"allOf fragment at index {i} in schema '{visit.path}' is missing "
                    f"type definition",
                    f".allOf[{i}]",
                )
            elif fragment_type != "object":
                self._add(
                    context,
                    visit,
                    Severity.WARNING,
                    Category.SCHEMA,
                    "NON_OBJECT_ALL_OF_TYPE",
                    f"allOf fragment at index {i} in schema '{visit.path}' has type "
                    f"'{fragment_type}' instead of 'object'",
                    f".allOf[{i}]",
                )

    def _check_ranges(self, context: AnalysisContext, visit: SchemaVisit) -> None:
        schema = visit.schema
        path = visit.path
        for code, low_name, low, high_name, high in (
            ("INVALID_RANGE", "minimum", schema.minimum, "maximum", schema.maximum),
            (
                "INVALID_LENGTH_RANGE",
                "minLength",
                schema.min_length,
                "maxLength",
                schema.max_length,
            ),
            ("INVALID_ITEMS_RANGE", "minItems", schema.min_items, "maxItems", schema.max_items),
        ):
            if low is None or high is None or low <= high:
                continue
            self._add(
                context,
                visit,
                Severity.ERROR,
                Category.SCHEMA,
                code,
                f"Schema '{path}' has {low_name} ({_format_number(low)}) greater than "
                f"{high_name} ({_format_number(high)})",
            )

    def _check_pattern(self, context: AnalysisContext, visit: SchemaVisit) -> None:
        pattern = visit.schema.pattern
        if not pattern:
            return
        try:
            re.compile(pattern)
        except re.error as exc:
            self._add(
                context,
                visit,
                Severity.ERROR,
                Category.SCHEMA,
                "INVALID_PATTERN",
                f"Schema '{visit.path}' has an invalid regex pattern: {exc}",
            )

    def _check_untyped_object(self, context: AnalysisContext, visit: SchemaVisit) -> None:
        schema = visit.schema
        additional = schema.additional_properties
        if schema.type != "object" or schema.properties:
            return
        if additional is True or isinstance(additional, Schema):
            self._add(
                context,
                visit,
                Severity.WARNING,
                Category.KIOTA,
                "UNTYPED_OBJECT_SCHEMA",
                f"Schema '{visit.path}' defines an untyped object (dictionary). This will "
                f"generate a weakly-typed dictionary instead of a strong class.",
            )

    def _check_enum_values(self, context: AnalysisContext, visit: SchemaVisit) -> None:
        schema = visit.schema
        if schema.type != "string" or not schema.enum:
            return
        if any(v.kind == EnumKind.STRING and not str(v.value).strip() for v in schema.enum):
            self._add(
                context,
                visit,
                Severity.ERROR,
                Category.KIOTA,
                "EMPTY_ENUM_VALUE",
                f"Enum in schema '{visit.path}' contains an empty or whitespace-only string "
                f"value. This will cause code generators to crash.",
                ".enum",
            )

    def _check_number_format(self, context: AnalysisContext, visit: SchemaVisit) -> None:
        schema = visit.schema
        if schema.type == "number" and schema.format and schema.format not in _NUMBER_FORMATS:
            self._add(
                context,
                visit,
                Severity.WARNING,
                Category.SCHEMA,
                "INVALID_NUMBER_FORMAT",
                f"Schema '{visit.path}' has an invalid number format: {schema.format}",
            )


def _is_complex_member(member: Schema) -> bool:
    return member.is_reference or member.type == "object" or bool(member.properties)


def _format_number(value: float | int) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class SchemaAnalyzer(Analyzer):
    """Walks every component schema once, sharing one visited set."""

    name = "schemas"

    def __init__(
        self, rules: SchemaRules | None = None, enum_rules: EnumRules | None = None
    ) -> None:
        self._rules = rules or SchemaRules()
        self._enum_rules = enum_rules or EnumRules()

    def analyze(self, context: AnalysisContext) -> None:
        components = context.document.components
        if components is None or not components.schemas:
            return

        graph = context.dependencies
        for name in components.schemas:
            graph.add_schema(name)

        def _rule(visit: SchemaVisit) -> None:
            if visit.schema.ref is not None:
                graph.add_dependency(visit.component, visit.schema.ref)
            self._rules.check(context, visit)
            self._enum_rules.check(context, visit)

        walker = SchemaWalker(context.document.schema_named)
        visited: set[str] = set()
        for name, schema in components.schemas.items():
            if name in visited:
                continue
            walker.walk(name, schema, _rule, visited)

        logger.debug("Walked %d component schemas", len(visited))
