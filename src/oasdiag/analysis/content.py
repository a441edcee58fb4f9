"""Request body, response and media-type checks."""

from __future__ import annotations

from oasdiag.analysis.context import AnalysisContext
from oasdiag.models.document import MediaType, Operation
from oasdiag.models.issues import Category, Severity

_BINARY_FORMATS = frozenset({"binary", "byte"})


class ContentRules:
    def check_request_body(
        self, context: AnalysisContext, operation: Operation, location: str
    ) -> None:
        body = operation.request_body
        if body is None or (body.reference is not None and not body.content):
            return
        self.check_content(
            context,
            body.content,
            f"{location}.requestBody.content",
            operation.operation_id,
            is_request=True,
        )

    def check_responses(
        self, context: AnalysisContext, operation: Operation, location: str
    ) -> None:
        operation_id = operation.operation_id
        responses = operation.responses
        if not responses:
            context.add_issue(
                Severity.ERROR,
                Category.RESPONSE,
                "MISSING_RESPONSES",
                "Operation must define at least one response.",
                location,
                component_name=operation_id,
            )
            return

        success_codes = [code for code in responses if code.startswith("2")]
        if not success_codes:
            context.add_issue(
                Severity.WARNING,
                Category.RESPONSE,
                "NO_SUCCESS_RESPONSE",
                "Operation does not define any 2xx success responses.",
                location,
                component_name=operation_id,
            )
        elif len(success_codes) > 1:
            context.add_issue(
                Severity.WARNING,
                Category.KIOTA,
                "MULTIPLE_SUCCESS_RESPONSES",
                f"Operation defines multiple 2xx success responses ({', '.join(success_codes)}). "
                f"This can lead to ambiguous, weakly-typed return types in generated code.",
                location,
                component_name=operation_id,
            )

        for code, response in responses.items():
            self.check_content(
                context,
                response.content,
                f"{location}.responses.{code}.content",
                operation_id,
                is_request=False,
            )

    def check_content(
        self,
        context: AnalysisContext,
        content: dict[str, MediaType],
        location: str,
        operation_id: str | None,
        is_request: bool,
    ) -> None:
        if not content:
            if is_request:
                context.add_issue(
                    Severity.WARNING,
                    Category.STRUCTURE,
                    "EMPTY_REQUEST_BODY_CONTENT",
                    "Request body is defined but has no content types specified.",
                    location,
                    component_name=operation_id,
                )
            return

        for media_type, media in content.items():
            media_location = f"{location}.{media_type}"
            schema = media.schema_
            if schema is None:
                context.add_issue(
                    Severity.ERROR,
                    Category.SCHEMA,
                    "MISSING_SCHEMA_IN_CONTENT",
                    f"Content type '{media_type}' is missing a schema.",
                    media_location,
                    component_name=operation_id,
                )
                continue

            if schema.is_inline_complex:
                context.add_issue(
                    Severity.WARNING,
                    Category.KIOTA,
                    "INLINE_COMPLEX_SCHEMA",
                    "A complex schema is defined inline. For better, reusable generated code, "
                    "define this in '#/components/schemas' and use a $ref.",
                    media_location,
                    component_name=operation_id,
                )

            if (
                schema.type == "string"
                and schema.format in _BINARY_FORMATS
                and "json" in media_type.lower()
            ):
                context.add_issue(
                    Severity.WARNING,
                    Category.KIOTA,
                    "BINARY_IN_JSON",
                    f"The schema indicates binary content ('{schema.format}'), but the content "
                    f"type is '{media_type}'. Consider 'application/octet-stream' or another "
                    f"binary-friendly media type.",
                    media_location,
                    component_name=operation_id,
                )
