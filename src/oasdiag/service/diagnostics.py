"""Diagnostics facade: parse, build and analyze, turning every failure into issues."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO

from ruamel.yaml.error import YAMLError

from oasdiag.analysis.context import AnalysisOptions
from oasdiag.analysis.pipeline import AnalysisPipeline
from oasdiag.models.document import OpenApiDocument
from oasdiag.models.issues import Category, DiagnosticIssue, ParseError, Severity
from oasdiag.parser.builder import DocumentBuilder, unescape_pointer
from oasdiag.parser.loader import SourceMap, TrackedLoader, YAMLSafetyError
from oasdiag.settings import Settings

logger = logging.getLogger("oasdiag.service")


def _issue(code: str, message: str, location: str = "") -> DiagnosticIssue:
    return DiagnosticIssue(
        severity=Severity.ERROR,
        category=Category.STRUCTURE,
        code=code,
        message=message,
        location=location,
    )


def _parse_issue(error: ParseError) -> DiagnosticIssue:
    return _issue("PARSE_ERROR", error.message, error.pointer)


def pointer_to_path(pointer: str, source_map: SourceMap | None = None) -> str:
    """``#/paths/~1pets/get`` -> ``paths./pets.get`` (the source map's key form).

    Numeric tokens become ``[i]`` when *source_map* has an entry for that
    sequence item; otherwise they are kept as mapping keys (``responses.200``).
    """
    body = pointer.removeprefix("#").removeprefix("/")
    if not body:
        return ""
    path = ""
    for token in (unescape_pointer(t) for t in body.split("/")):
        indexed = f"{path}[{token}]"
        if token.isdigit() and source_map is not None and source_map.get(indexed):
            path = indexed
        else:
            path = f"{path}.{token}" if path else token
    return path


class OpenApiDiagnostics:
    """Entry points for analyzing OpenAPI documents.

    No method raises: parse failures become ``PARSE_ERROR`` issues and any
    unexpected fault becomes a single ``UNEXPECTED_ERROR`` (or
    ``UNEXPECTED_ANALYSIS_ERROR`` for already-built documents).  Instances
    hold only stateless collaborators and can be shared between threads.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()
        self._loader = TrackedLoader()
        self._builder = DocumentBuilder()
        self._pipeline = AnalysisPipeline(
            AnalysisOptions(check_nullable_parameters=self._settings.check_nullable_parameters)
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    # -- public API ----------------------------------------------------------

    def analyze(self, raw_text: str, filename: str = "<string>") -> list[DiagnosticIssue]:
        """Parse JSON or YAML text and analyze the resulting document."""
        logger.info("analyze called (source=%s, length=%d)", filename, len(raw_text))
        try:
            try:
                raw, source_map = self._loader.load_string(raw_text, filename=filename)
            except YAMLSafetyError as exc:
                logger.warning("Rejected unsafe input from %s: %s", filename, exc)
                return [_parse_issue(ParseError(message=str(exc)))]
            except (YAMLError, ValueError) as exc:
                logger.warning("Failed to parse %s: %s", filename, exc)
                return [_parse_issue(ParseError(message=str(exc)))]

            document, errors = self._builder.build(raw)
            if errors:
                logger.warning("%s has %d structural parse errors", filename, len(errors))
                issues = [_parse_issue(e) for e in errors]
                return self._with_spans(issues, source_map, pointers=True)

            issues = self.analyze_document(document)
            return self._with_spans(issues, source_map)
        except Exception as exc:
            logger.exception("Unexpected error while analyzing %s", filename)
            return [_issue("UNEXPECTED_ERROR", f"Unexpected error: {exc}")]

    def analyze_file(self, path: str | Path) -> list[DiagnosticIssue]:
        """Read a document from disk; a missing file yields ``FILE_NOT_FOUND``."""
        file_path = Path(path)
        if not file_path.is_file():
            logger.warning("File not found: %s", file_path)
            return [_issue("FILE_NOT_FOUND", f"File not found: {file_path.absolute()}")]
        try:
            content = file_path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as exc:
            return [_parse_issue(ParseError(message=f"File is not valid UTF-8: {exc}"))]
        except OSError as exc:
            logger.warning("Could not read %s: %s", file_path, exc)
            return [_issue("FILE_NOT_FOUND", f"Could not read file {file_path}: {exc}")]
        return self.analyze(content, filename=str(file_path))

    def analyze_stream(self, stream: IO[str] | IO[bytes]) -> list[DiagnosticIssue]:
        """Read a text or binary file-like object to the end and analyze it."""
        name = str(getattr(stream, "name", "<stream>"))
        try:
            data = stream.read()
        except OSError as exc:
            logger.warning("Could not read %s: %s", name, exc)
            return [_issue("FILE_NOT_FOUND", f"Could not read stream {name}: {exc}")]
        if isinstance(data, bytes):
            try:
                data = data.decode("utf-8-sig")
            except UnicodeDecodeError as exc:
                return [_parse_issue(ParseError(message=f"Stream is not valid UTF-8: {exc}"))]
        return self.analyze(data, filename=name)

    def analyze_document(self, document: OpenApiDocument) -> list[DiagnosticIssue]:
        """Analyze an already-built document graph."""
        try:
            issues = self._pipeline.run(document)
        except Exception as exc:
            logger.exception("Unexpected error during analysis")
            return [
                _issue(
                    "UNEXPECTED_ANALYSIS_ERROR",
                    f"An unexpected error occurred during analysis: {exc}",
                )
            ]
        logger.info(
            "Analysis finished: %d issues (%d errors)",
            len(issues),
            sum(1 for i in issues if i.severity == Severity.ERROR),
        )
        return issues

    # -- helpers -------------------------------------------------------------

    def _with_spans(
        self,
        issues: list[DiagnosticIssue],
        source_map: SourceMap,
        pointers: bool = False,
    ) -> list[DiagnosticIssue]:
        if not self._settings.attach_source_spans:
            return issues
        enriched: list[DiagnosticIssue] = []
        for issue in issues:
            path = pointer_to_path(issue.location, source_map) if pointers else issue.location
            span = source_map.nearest(path) if path else None
            enriched.append(issue.model_copy(update={"span": span}) if span else issue)
        return enriched
