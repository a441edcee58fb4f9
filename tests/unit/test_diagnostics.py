"""End-to-end tests for the OpenApiDiagnostics facade."""

from __future__ import annotations

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

import oasdiag
from oasdiag.analysis.pipeline import AnalysisPipeline
from oasdiag.analysis.schemas import SchemaAnalyzer
from oasdiag.models.document import OpenApiDocument
from oasdiag.models.issues import Category, Severity, SourceSpan
from oasdiag.parser.builder import DocumentBuilder
from oasdiag.parser.loader import SourceMap
from oasdiag.service.diagnostics import OpenApiDiagnostics, pointer_to_path
from oasdiag.settings import Settings, configure_logging
from tests.conftest import PETSTORE_YAML, PING_YAML, POLYMORPHIC_YAML, build_document, codes


class TestAnalyze:
    def test_clean_document(self, diagnostics: OpenApiDiagnostics) -> None:
        assert diagnostics.analyze(PETSTORE_YAML) == []

    def test_ping_document(self, diagnostics: OpenApiDiagnostics) -> None:
        issues = diagnostics.analyze(PING_YAML)
        assert codes(issues) == [
            "MISSING_VERSION",
            "MISSING_SERVERS",
            "MISSING_OPERATION_ID",
            "NO_SUCCESS_RESPONSE",
            "OPERATION_UNTAGGED",
        ]

    def test_polymorphic_without_discriminator(self, diagnostics: OpenApiDiagnostics) -> None:
        issues = diagnostics.analyze(POLYMORPHIC_YAML)
        assert codes(issues) == ["MISSING_DISCRIMINATOR"]
        assert issues[0].component_name == "Pet"
        assert issues[0].category == Category.KIOTA

    def test_repeated_runs_are_identical(self, diagnostics: OpenApiDiagnostics) -> None:
        first = diagnostics.analyze(PING_YAML)
        second = diagnostics.analyze(PING_YAML)
        assert first == second

    def test_json_input(self, diagnostics: OpenApiDiagnostics) -> None:
        issues = diagnostics.analyze('{"openapi": "3.0.3", "info": {"title": "J", "version": "1"}}')
        assert codes(issues) == ["MISSING_SERVERS", "MISSING_PATHS"]

    def test_module_level_functions(self) -> None:
        assert oasdiag.analyze(PETSTORE_YAML) == []
        document = build_document(POLYMORPHIC_YAML)
        assert codes(oasdiag.analyze_document(document)) == ["MISSING_DISCRIMINATOR"]

    def test_nullable_parameter_setting(self) -> None:
        text = PETSTORE_YAML.replace(
            "      required: true\n      schema:\n        type: string\n",
            "      required: true\n      schema:\n        type: string\n        nullable: true\n",
        )
        assert oasdiag.analyze(text) == []
        enabled = Settings(check_nullable_parameters=True)
        assert codes(oasdiag.analyze(text, enabled)) == ["NULLABLE_REQUIRED_PARAMETER"]


class TestParseFailures:
    def test_invalid_yaml(self, diagnostics: OpenApiDiagnostics) -> None:
        issues = diagnostics.analyze("openapi: 3.0.3\ninfo: [unclosed\n")
        assert codes(issues) == ["PARSE_ERROR"]
        assert issues[0].severity == Severity.ERROR
        assert issues[0].category == Category.STRUCTURE

    def test_non_mapping_root(self, diagnostics: OpenApiDiagnostics) -> None:
        assert codes(diagnostics.analyze("- just\n- a list\n")) == ["PARSE_ERROR"]

    def test_swagger_document(self, diagnostics: OpenApiDiagnostics) -> None:
        issues = diagnostics.analyze("swagger: '2.0'\ninfo:\n  title: Old\n")
        assert codes(issues) == ["PARSE_ERROR"]
        assert issues[0].location == "#/swagger"
        assert issues[0].span is not None
        assert issues[0].span.line == 1

    def test_unresolved_reference_has_span(self, diagnostics: OpenApiDiagnostics) -> None:
        text = (
            "openapi: 3.0.3\n"
            "paths:\n"
            "  /a:\n"
            "    get:\n"
            "      parameters:\n"
            "        - $ref: '#/components/parameters/Nope'\n"
            "      responses:\n"
            "        '200':\n"
            "          description: OK\n"
        )
        issues = diagnostics.analyze(text)
        assert codes(issues) == ["PARSE_ERROR"]
        assert issues[0].span is not None
        assert issues[0].span.line == 6


class TestSpans:
    def test_spans_fall_back_to_ancestor(self, diagnostics: OpenApiDiagnostics) -> None:
        issues = diagnostics.analyze(PING_YAML)
        version = issues[0]
        assert version.location == "info.version"
        assert version.span is not None
        assert version.span.line == 2
        assert version.span.file == "<string>"

    def test_operation_span(self, diagnostics: OpenApiDiagnostics) -> None:
        issues = diagnostics.analyze(PING_YAML)
        missing_id = issues[2]
        assert missing_id.span is not None
        assert missing_id.span.line == 6

    def test_spans_disabled(self) -> None:
        diagnostics = OpenApiDiagnostics(Settings(attach_source_spans=False))
        issues = diagnostics.analyze(PING_YAML)
        assert issues
        assert all(issue.span is None for issue in issues)

    def test_document_input_has_no_spans(self, diagnostics: OpenApiDiagnostics) -> None:
        issues = diagnostics.analyze_document(build_document(PING_YAML))
        assert all(issue.span is None for issue in issues)

    def test_pointer_to_path(self) -> None:
        assert pointer_to_path("#/paths/~1pets~1{id}/get") == "paths./pets/{id}.get"
        assert pointer_to_path("#") == ""
        assert pointer_to_path("#/") == ""

    def test_pointer_to_path_sequence_items(self) -> None:
        source_map = SourceMap()
        source_map.add("servers[0]", SourceSpan(file="f", line=2, column=3))
        assert pointer_to_path("#/servers/0/url", source_map) == "servers[0].url"
        assert pointer_to_path("#/responses/200", source_map) == "responses.200"


class TestInputSources:
    def test_missing_file(self, diagnostics: OpenApiDiagnostics, tmp_path: Path) -> None:
        issues = diagnostics.analyze_file(tmp_path / "absent.yaml")
        assert codes(issues) == ["FILE_NOT_FOUND"]
        assert "absent.yaml" in issues[0].message

    def test_file(self, diagnostics: OpenApiDiagnostics, tmp_path: Path) -> None:
        path = tmp_path / "ping.yaml"
        path.write_text(PING_YAML, encoding="utf-8")
        issues = diagnostics.analyze_file(path)
        assert len(issues) == 5
        assert issues[0].span is not None
        assert issues[0].span.file == str(path)

    def test_file_with_bom(self, tmp_path: Path) -> None:
        path = tmp_path / "petstore.yaml"
        path.write_bytes(b"\xef\xbb\xbf" + PETSTORE_YAML.encode("utf-8"))
        assert oasdiag.analyze_file(path) == []

    def test_file_not_utf8(self, diagnostics: OpenApiDiagnostics, tmp_path: Path) -> None:
        path = tmp_path / "latin1.yaml"
        path.write_bytes("openapi: 3.0.3\ninfo:\n  title: Caf\xe9\n".encode("latin-1"))
        assert codes(diagnostics.analyze_file(path)) == ["PARSE_ERROR"]

    def test_binary_stream(self, diagnostics: OpenApiDiagnostics) -> None:
        stream = io.BytesIO(PETSTORE_YAML.encode("utf-8"))
        assert diagnostics.analyze_stream(stream) == []

    def test_text_stream(self, diagnostics: OpenApiDiagnostics) -> None:
        issues = diagnostics.analyze_stream(io.StringIO(PING_YAML))
        assert "MISSING_OPERATION_ID" in codes(issues)

    def test_unreadable_stream(self, diagnostics: OpenApiDiagnostics) -> None:
        class _BrokenStream(io.StringIO):
            def read(self, size: int | None = -1) -> str:
                raise OSError("device gone")

        issues = diagnostics.analyze_stream(_BrokenStream())
        assert codes(issues) == ["FILE_NOT_FOUND"]
        assert "device gone" in issues[0].message


class TestUnexpectedFaults:
    def test_analysis_fault(
        self, diagnostics: OpenApiDiagnostics, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def explode(self: SchemaAnalyzer, context: object) -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr(SchemaAnalyzer, "analyze", explode)
        issues = diagnostics.analyze_document(build_document(PETSTORE_YAML))
        assert codes(issues) == ["UNEXPECTED_ANALYSIS_ERROR"]
        assert "boom" in issues[0].message

    def test_build_fault(
        self, diagnostics: OpenApiDiagnostics, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def explode(self: DocumentBuilder, raw: object) -> None:
            raise RuntimeError("kaput")

        monkeypatch.setattr(DocumentBuilder, "build", explode)
        issues = diagnostics.analyze(PETSTORE_YAML)
        assert codes(issues) == ["UNEXPECTED_ERROR"]
        assert "kaput" in issues[0].message

    def test_fault_is_logged(
        self,
        diagnostics: OpenApiDiagnostics,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        def explode(self: SchemaAnalyzer, context: object) -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr(SchemaAnalyzer, "analyze", explode)
        with caplog.at_level(logging.ERROR, logger="oasdiag.service"):
            diagnostics.analyze_document(OpenApiDocument())
        assert "Unexpected error during analysis" in caplog.text


class TestPipeline:
    def test_pass_order(self) -> None:
        names = [analyzer.name for analyzer in AnalysisPipeline().analyzers]
        assert names == [
            "structure",
            "paths",
            "naming",
            "schemas",
            "component-parameters",
            "security",
            "tags",
            "cycles",
        ]

    def test_custom_analyzers(self) -> None:
        pipeline = AnalysisPipeline(analyzers=[SchemaAnalyzer()])
        assert codes(pipeline.run(build_document(POLYMORPHIC_YAML))) == ["MISSING_DISCRIMINATOR"]


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("CHECK_NULLABLE_PARAMETERS", raising=False)
        settings = Settings(_env_file=None)
        assert settings.log_level == "INFO"
        assert not settings.check_nullable_parameters
        assert settings.attach_source_spans

    def test_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHECK_NULLABLE_PARAMETERS", "true")
        assert Settings(_env_file=None).check_nullable_parameters

    def test_configure_logging(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[dict[str, object]] = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        configure_logging(Settings(log_level="debug"))
        assert calls == [{"level": "DEBUG"}]

    def test_facade_defaults(self) -> None:
        assert isinstance(OpenApiDiagnostics().settings, Settings)


def _many_paths_yaml(title: str, count: int) -> str:
    lines = [
        "openapi: 3.0.3",
        "info:",
        f"  title: {title}",
        '  version: "1"',
        "servers:",
        "  - url: https://example.com",
        "tags:",
        "  - name: items",
        "paths:",
    ]
    for i in range(count):
        lines += [
            f"  /{title.lower()}{i}:",
            "    get:",
            f"      operationId: get{title}{i}",
            "      tags: [items]",
            "      responses:",
            '        "200":',
            "          description: OK",
        ]
    return "\n".join(lines) + "\n"


class TestSharedFacade:
    def test_concurrent_analyze_on_one_instance(self, diagnostics: OpenApiDiagnostics) -> None:
        documents = {name: _many_paths_yaml(name, 60) for name in ("Alpha", "Beta")}
        assert all(diagnostics.analyze(text) == [] for text in documents.values())

        jobs = [name for name in documents for _ in range(15)]
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda name: diagnostics.analyze(documents[name]), jobs))

        assert all(issues == [] for issues in results)
