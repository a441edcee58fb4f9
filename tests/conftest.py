"""Shared test fixtures for oasdiag."""

from __future__ import annotations

import pytest

from oasdiag.analysis.base import Analyzer
from oasdiag.analysis.context import AnalysisContext, AnalysisOptions
from oasdiag.models.document import OpenApiDocument
from oasdiag.models.issues import DiagnosticIssue
from oasdiag.parser.builder import DocumentBuilder
from oasdiag.parser.loader import TrackedLoader
from oasdiag.service.diagnostics import OpenApiDiagnostics
from oasdiag.settings import Settings


@pytest.fixture
def loader() -> TrackedLoader:
    return TrackedLoader()


@pytest.fixture
def builder() -> DocumentBuilder:
    return DocumentBuilder()


@pytest.fixture
def settings() -> Settings:
    return Settings(log_level="DEBUG", check_nullable_parameters=False, attach_source_spans=True)


@pytest.fixture
def diagnostics(settings: Settings) -> OpenApiDiagnostics:
    return OpenApiDiagnostics(settings)


def build_document(text: str) -> OpenApiDocument:
    """Load and build a document, failing the test on parse errors."""
    raw, _ = TrackedLoader().load_string(text)
    document, errors = DocumentBuilder().build(raw)
    assert not errors, f"Unexpected parse errors: {errors}"
    return document


def run_analyzer(
    analyzer: Analyzer,
    document: OpenApiDocument,
    options: AnalysisOptions | None = None,
) -> list[DiagnosticIssue]:
    context = AnalysisContext(document=document, options=options or AnalysisOptions())
    analyzer.analyze(context)
    return context.issues


def codes(issues: list[DiagnosticIssue]) -> list[str]:
    return [issue.code for issue in issues]


# A document with no findings at all.
PETSTORE_YAML = """\
openapi: 3.0.3
info:
  title: Pet Store
  version: 1.0.0
servers:
  - url: https://api.example.com/v1
tags:
  - name: pets
paths:
  /pets:
    get:
      operationId: listPets
      tags: [pets]
      parameters:
        - name: limit
          in: query
          schema:
            type: integer
            format: int32
      responses:
        "200":
          description: A list of pets
          content:
            application/json:
              schema:
                type: array
                items:
                  $ref: "#/components/schemas/Pet"
    post:
      operationId: createPet
      tags: [pets]
      requestBody:
        required: true
        content:
          application/json:
            schema:
              $ref: "#/components/schemas/Pet"
      responses:
        "201":
          description: Created
  /pets/{petId}:
    parameters:
      - $ref: "#/components/parameters/PetId"
    get:
      operationId: getPet
      tags: [pets]
      responses:
        "200":
          description: A pet
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/Pet"
        "404":
          description: Not found
components:
  parameters:
    PetId:
      name: petId
      in: path
      required: true
      schema:
        type: string
  schemas:
    Pet:
      type: object
      required: [id, name]
      properties:
        id:
          type: integer
          format: int64
        name:
          type: string
        status:
          type: string
          enum: [available, pending, sold]
        owner:
          $ref: "#/components/schemas/Owner"
    Owner:
      type: object
      properties:
        name:
          type: string
"""

# info.version missing, no servers, operation without an operationId and
# only an error response.
PING_YAML = """\
openapi: 3.0.3
info:
  title: Ping
paths:
  /ping:
    get:
      responses:
        "500":
          description: Server error
"""

POLYMORPHIC_YAML = """\
openapi: 3.0.3
info:
  title: Zoo
  version: "2"
servers:
  - url: https://zoo.example.com
paths:
  /pets:
    get:
      operationId: listPets
      tags: [pets]
      responses:
        "200":
          description: OK
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/Pet"
components:
  schemas:
    Pet:
      oneOf:
        - $ref: "#/components/schemas/Dog"
        - $ref: "#/components/schemas/Cat"
    Dog:
      type: object
      properties:
        bark:
          type: boolean
    Cat:
      type: object
      properties:
        meow:
          type: boolean
"""
