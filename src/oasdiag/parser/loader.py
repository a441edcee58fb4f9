"""YAML/JSON loader with position tracking for rich issue reporting."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.composer import MaxDepthExceededError
from ruamel.yaml.error import YAMLError

from oasdiag.models.issues import SourceSpan

# ---------------------------------------------------------------------------
# Safety limits
# ---------------------------------------------------------------------------

_MAX_DOCUMENT_SIZE = 20_000_000  # 20M characters
_MAX_NODE_COUNT = 2_000_000
_MAX_DEPTH = 64


class YAMLSafetyError(Exception):
    """Raised when input violates safety constraints.

    Distinct from parse errors: these indicate potentially malicious input
    (e.g., billion-laughs aliases, excessive nesting, oversized documents).
    """


@dataclass
class SourceMap:
    """Maps dotted key paths to their source positions for issue reporting."""

    _positions: dict[str, SourceSpan] = field(default_factory=dict)

    def add(self, path: str, span: SourceSpan) -> None:
        self._positions[path] = span

    def get(self, path: str) -> SourceSpan | None:
        return self._positions.get(path)

    def nearest(self, path: str) -> SourceSpan | None:
        """Return the span for *path* or for its closest recorded ancestor.

        Path keys may themselves contain dots (``paths./v1.0/pets``), so
        ancestors are found by trimming one trailing segment at a time.
        """
        candidate = path
        while candidate:
            span = self._positions.get(candidate)
            if span is not None:
                return span
            cut = max(candidate.rfind("."), candidate.rfind("["))
            if cut <= 0:
                return None
            candidate = candidate[:cut]
        return None

    def merge(self, other: SourceMap) -> None:
        self._positions.update(other._positions)

    @property
    def paths(self) -> list[str]:
        return list(self._positions.keys())


class TrackedLoader:
    """Loader for OpenAPI documents that tracks source positions.

    Uses ruamel.yaml, which preserves line/column info on every parsed node
    and reads JSON as well as YAML.
    """

    @staticmethod
    def _new_yaml() -> YAML:
        # ruamel parser state is per instance, so every load gets its own.
        yaml = YAML()
        yaml.preserve_quotes = True
        yaml.max_depth = _MAX_DEPTH
        return yaml

    # -- safety checks -------------------------------------------------------

    @staticmethod
    def _check_document_size(content: str) -> None:
        if len(content) > _MAX_DOCUMENT_SIZE:
            raise YAMLSafetyError(
                f"Document exceeds maximum size "
                f"({len(content):,} chars > {_MAX_DOCUMENT_SIZE:,} limit)"
            )

    @staticmethod
    def _check_structure(
        data: Any, limit: int = _MAX_NODE_COUNT, max_depth: int = _MAX_DEPTH
    ) -> None:
        """Post-parse defense-in-depth: node count, nesting depth and aliasing.

        An alias makes two places in the tree point at the same container;
        following them is how billion-laughs payloads explode, so any shared
        container is rejected.
        """
        count = 0
        seen: set[int] = set()
        stack: list[tuple[Any, int]] = [(data, 1)]
        while stack:
            node, depth = stack.pop()
            count += 1
            if count > limit:
                raise YAMLSafetyError(f"Document exceeds maximum node count ({limit:,})")
            if not isinstance(node, dict | list):
                continue
            if depth > max_depth:
                raise YAMLSafetyError(f"Document exceeds maximum nesting depth ({max_depth})")
            if id(node) in seen:
                raise YAMLSafetyError("YAML anchors/aliases are not supported")
            seen.add(id(node))
            children = node.values() if isinstance(node, dict) else node
            stack.extend((child, depth + 1) for child in children)

    # -- public loading API --------------------------------------------------

    def load(self, path: Path) -> tuple[dict[str, Any], SourceMap]:
        """Load a YAML or JSON file and return parsed dict + source position map."""
        with path.open("r", encoding="utf-8") as handle:
            content = handle.read()
        return self.load_string(content, filename=str(path))

    def load_string(
        self, content: str, filename: str = "<string>"
    ) -> tuple[dict[str, Any], SourceMap]:
        """Load YAML or JSON from a string."""
        self._check_document_size(content)
        try:
            data = self._new_yaml().load(content)
        except MaxDepthExceededError as exc:
            raise YAMLSafetyError(
                f"Document exceeds maximum nesting depth ({_MAX_DEPTH})"
            ) from exc
        except YAMLError:
            # JSON that YAML rejects (tab indentation, for one) still parses here,
            # only without positions.
            if not content.lstrip().startswith(("{", "[")):
                raise
            data = json.loads(content)
        if data is None:
            return {}, SourceMap()
        self._check_structure(data)
        source_map = SourceMap()
        self._extract_positions(data, filename, "", source_map)
        return self._to_plain_dict(data), source_map

    def _extract_positions(
        self,
        data: Any,
        filename: str,
        prefix: str,
        source_map: SourceMap,
    ) -> None:
        """Recursively extract source positions from ruamel.yaml nodes."""
        if isinstance(data, CommentedMap):
            for key in data:
                key_path = f"{prefix}.{key}" if prefix else str(key)
                try:
                    key_positions = data.lc.key(key)
                    if key_positions:
                        line, col = key_positions
                        source_map.add(
                            key_path,
                            SourceSpan(file=filename, line=line + 1, column=col + 1),
                        )
                except (AttributeError, KeyError, TypeError):
                    # Fallback: use the map's own position
                    try:
                        lc = data.lc
                        source_map.add(
                            key_path,
                            SourceSpan(file=filename, line=lc.line + 1, column=lc.col + 1),
                        )
                    except (AttributeError, TypeError):
                        pass
                self._extract_positions(data[key], filename, key_path, source_map)
        elif isinstance(data, CommentedSeq):
            for i, item in enumerate(data):
                item_path = f"{prefix}[{i}]"
                try:
                    item_pos = data.lc.item(i)
                    if item_pos:
                        line, col = item_pos
                        source_map.add(
                            item_path,
                            SourceSpan(file=filename, line=line + 1, column=col + 1),
                        )
                except (AttributeError, KeyError, TypeError):
                    pass
                self._extract_positions(item, filename, item_path, source_map)

    def _to_plain_dict(self, data: Any) -> dict[str, Any]:
        """Convert ruamel.yaml CommentedMap/Seq to plain Python dict/list."""
        if isinstance(data, dict):
            return {str(k): self._to_plain_value(v) for k, v in data.items()}
        raise ValueError(f"Document root must be a mapping, not {type(data).__name__}")

    def _to_plain_value(self, data: Any) -> Any:
        if isinstance(data, dict):
            return {str(k): self._to_plain_value(v) for k, v in data.items()}
        if isinstance(data, list):
            return [self._to_plain_value(item) for item in data]
        return data
