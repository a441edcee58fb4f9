"""Component schema naming: identifier shape, reserved words, normalized collisions."""

from __future__ import annotations

import re

from oasdiag.analysis.base import Analyzer, is_identifier
from oasdiag.analysis.context import AnalysisContext
from oasdiag.models.issues import Category, Severity

# C# keywords; generated type names that equal one of these need escaping.
# fmt: off
RESERVED_KEYWORDS = frozenset(
    {
        "abstract", "as", "base", "bool", "break", "byte", "case", "catch", "char",
        "checked", "class", "const", "continue", "decimal", "default", "delegate", "do",
        "double", "else", "enum", "event", "explicit", "extern", "false", "finally",
        "fixed", "float", "for", "foreach", "goto", "if", "implicit", "in", "int",
        "interface", "internal", "is", "lock", "long", "namespace", "new", "null",
        "object", "operator", "out", "override", "params", "private", "protected",
        "public", "readonly", "ref", "return", "sbyte", "sealed", "short", "sizeof",
        "stackalloc", "static", "string", "struct", "switch", "this", "throw", "true",
        "try", "typeof", "uint", "ulong", "unchecked", "unsafe", "ushort", "using",
        "virtual", "void", "volatile", "while",
    }
)
# fmt: on

_SEPARATORS = re.compile(r"[^\w]")


def normalize_name(name: str) -> str:
    """PascalCase form a generator derives from *name*.

    ``pet-store`` and ``pet store`` both become ``PetStore``; the rest of each
    segment is left as is, so ``pet_store`` stays ``Pet_store``.
    """
    parts = [part for part in _SEPARATORS.split(name) if part]
    return "".join(part[0].upper() + part[1:] for part in parts)


class NamingAnalyzer(Analyzer):
    name = "naming"

    def analyze(self, context: AnalysisContext) -> None:
        components = context.document.components
        if components is None:
            return

        claimed: dict[str, str] = {}  # casefolded normalized form -> first name
        for name in components.schemas:
            location = f"components.schemas.{name}"

            if not is_identifier(name):
                context.add_issue(
                    Severity.ERROR,
                    Category.NAMING,
                    "INVALID_SCHEMA_NAME",
                    f"Schema name '{name}' is not a valid identifier (should be letters, "
                    f"numbers, underscores, not starting with a number).",
                    location,
                    component_name=name,
                    component_type="schema",
                )

            if name.lower() in RESERVED_KEYWORDS:
                context.add_issue(
                    Severity.WARNING,
                    Category.KIOTA,
                    "CSHARP_KEYWORD_SCHEMA_NAME",
                    f"Schema name '{name}' is a C# reserved keyword, which may cause issues "
                    f"during code generation.",
                    location,
                    component_name=name,
                    component_type="schema",
                )

            normalized = normalize_name(name)
            key = normalized.casefold()
            first = claimed.get(key)
            if first is None:
                claimed[key] = name
                continue
            context.add_issue(
                Severity.ERROR,
                Category.KIOTA,
                "NORMALIZED_NAME_COLLISION",
                f"Schema name '{name}' results in the name '{normalized}' after "
                f"normalization, which conflicts with schema '{first}'. This will cause a "
                f"type name collision in generated code.",
                location,
                component_name=name,
                component_type="schema",
                details=first,
            )
