"""Analyzer base class and shared document traversal helpers."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass

from oasdiag.analysis.context import AnalysisContext
from oasdiag.models.document import OpenApiDocument, Operation, PathItem

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def is_identifier(name: str) -> bool:
    """Letters, digits and underscores, not starting with a digit."""
    return _IDENTIFIER.fullmatch(name) is not None


@dataclass(frozen=True)
class OperationRef:
    path: str
    method: str
    item: PathItem
    operation: Operation

    @property
    def location(self) -> str:
        return f"paths.{self.path}.{self.method}"


def iter_operations(document: OpenApiDocument) -> Iterator[OperationRef]:
    """Every operation in declaration order (paths, then methods)."""
    for path, item in document.paths.items():
        for method, operation in item.operations.items():
            yield OperationRef(path=path, method=method, item=item, operation=operation)


class Analyzer(ABC):
    """One pass over the document that appends issues to the context."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def analyze(self, context: AnalysisContext) -> None: ...
