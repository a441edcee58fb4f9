"""Path, operation and path-parameter checks."""

from __future__ import annotations

import logging
import re

from oasdiag.analysis.base import Analyzer, OperationRef, is_identifier
from oasdiag.analysis.content import ContentRules
from oasdiag.analysis.context import AnalysisContext
from oasdiag.analysis.parameters import ParameterRules
from oasdiag.models.document import Parameter, ParameterLocation, PathItem
from oasdiag.models.issues import Category, Severity

logger = logging.getLogger("oasdiag.analysis")

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


def path_placeholders(path: str) -> list[str]:
    """Placeholder names in template order, without duplicates."""
    return list(dict.fromkeys(_PLACEHOLDER.findall(path)))


def placeholder_syntax_error(path: str) -> str | None:
    """Describe the first malformed ``{...}`` in *path*, or None."""
    depth = 0
    start = 0
    for i, char in enumerate(path):
        if char == "{":
            if depth:
                return f"nested '{{' at position {i}"
            depth, start = 1, i
        elif char == "}":
            if not depth:
                return f"unmatched '}}' at position {i}"
            if i == start + 1:
                return f"empty placeholder at position {start}"
            depth = 0
    if depth:
        return f"unclosed '{{' at position {start}"
    return None


def merged_parameters(operation_params: list[Parameter], item: PathItem) -> list[Parameter]:
    """Operation parameters plus path-item parameters they do not override."""
    merged: dict[tuple[str | None, str | None], Parameter] = {}
    for parameter in operation_params:
        merged.setdefault((parameter.name, parameter.raw_location), parameter)
    for parameter in item.parameters:
        merged.setdefault((parameter.name, parameter.raw_location), parameter)
    return list(merged.values())


class PathAnalyzer(Analyzer):
    """Walks every path item and operation.

    Skipped entirely when the document has no paths; the structure pass
    reports that case.
    """

    name = "paths"

    def __init__(
        self,
        parameter_rules: ParameterRules | None = None,
        content_rules: ContentRules | None = None,
    ) -> None:
        self._parameters = parameter_rules or ParameterRules()
        self._content = content_rules or ContentRules()

    def analyze(self, context: AnalysisContext) -> None:
        document = context.document
        if not document.paths:
            return

        for path, item in document.paths.items():
            self._check_path(context, path, item)
            for method, operation in item.operations.items():
                ref = OperationRef(path=path, method=method, item=item, operation=operation)
                self._check_operation(context, ref)
                self._check_path_parameters(context, ref)

        logger.debug(
            "Checked %d paths, %d operation ids registered",
            len(document.paths),
            len(context.operation_ids),
        )

    # -- path items ------------------------------------------------------------

    def _check_path(self, context: AnalysisContext, path: str, item: PathItem) -> None:
        location = f"paths.{path}"
        if not path.startswith("/"):
            context.add_issue(
                Severity.ERROR,
                Category.PATH,
                "INVALID_PATH_START",
                "Path must start with a '/' character.",
                location,
            )

        problem = placeholder_syntax_error(path)
        if problem is not None:
            context.add_issue(
                Severity.ERROR,
                Category.PATH,
                "INVALID_PATH_FORMAT",
                f"Path '{path}' has a malformed placeholder: {problem}.",
                location,
            )

        if not item.operations:
            context.add_issue(
                Severity.WARNING,
                Category.PATH,
                "NO_OPERATIONS",
                f"Path '{path}' does not define any operations.",
                location,
            )

        self._parameters.check_list(context, item.parameters, location)

    def _check_path_parameters(self, context: AnalysisContext, ref: OperationRef) -> None:
        operation = ref.operation
        placeholders = path_placeholders(ref.path)
        declared = list(
            dict.fromkeys(
                p.name
                for p in merged_parameters(operation.parameters, ref.item)
                if p.location == ParameterLocation.PATH and p.name
            )
        )

        for name in placeholders:
            if name not in declared:
                context.add_issue(
                    Severity.ERROR,
                    Category.PATH,
                    "MISSING_PATH_PARAMETER",
                    f"Path '{ref.path}' specifies placeholder '{{{name}}}' but it is not "
                    f"defined as a path parameter for the operation.",
                    ref.location,
                    component_name=operation.operation_id,
                )

        for name in declared:
            if name not in placeholders:
                context.add_issue(
                    Severity.ERROR,
                    Category.PATH,
                    "UNDEFINED_PATH_PARAMETER",
                    f"Operation defines path parameter '{name}' but it is not present as a "
                    f"placeholder in the path '{ref.path}'.",
                    f"{ref.location}.parameters",
                    component_name=operation.operation_id,
                )

    # -- operations ------------------------------------------------------------

    def _check_operation(self, context: AnalysisContext, ref: OperationRef) -> None:
        operation = ref.operation
        location = ref.location
        operation_id = operation.operation_id

        if operation_id is None or not operation_id.strip():
            context.add_issue(
                Severity.ERROR,
                Category.KIOTA,
                "MISSING_OPERATION_ID",
                "OperationId is missing. This is required for most code generators.",
                location,
            )
        else:
            if not is_identifier(operation_id):
                context.add_issue(
                    Severity.ERROR,
                    Category.KIOTA,
                    "INVALID_OPERATION_ID",
                    f"OperationId '{operation_id}' contains invalid characters. It must be a "
                    f"valid method name (letters, numbers, underscores, not starting with a "
                    f"number).",
                    location,
                    component_name=operation_id,
                )
            if not context.register_operation_id(operation_id):
                context.add_issue(
                    Severity.ERROR,
                    Category.KIOTA,
                    "DUPLICATE_OPERATION_ID",
                    f"Duplicate OperationId '{operation_id}'. All operationIds must be unique.",
                    location,
                    component_name=operation_id,
                )

        self._parameters.check_list(context, operation.parameters, location, operation_id)
        self._content.check_request_body(context, operation, location)
        self._content.check_responses(context, operation, location)
