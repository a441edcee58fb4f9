"""Schema dependency graph: component schemas as nodes, references as edges."""

from __future__ import annotations

from collections.abc import Iterator

import networkx as nx


class DependencyGraph:
    """Directed graph of which component schema references which.

    Only named reference targets become edges; inline nested schemas never do.
    Successor order follows insertion order, so traversal is deterministic.
    """

    def __init__(self) -> None:
        self._graph: nx.DiGraph[str] = nx.DiGraph()

    def add_schema(self, name: str) -> None:
        self._graph.add_node(name, declared=True)

    def add_dependency(self, source: str, target: str) -> None:
        if source not in self._graph:
            self.add_schema(source)
        self._graph.add_edge(source, target)

    def dependencies(self, name: str) -> list[str]:
        """Direct dependencies of *name*; empty for unknown or dangling names."""
        if name not in self._graph:
            return []
        return list(self._graph.successors(name))

    @property
    def schemas(self) -> list[str]:
        """Declared schema names, in insertion order."""
        return [n for n, declared in self._graph.nodes(data="declared") if declared]

    def __contains__(self, name: object) -> bool:
        return name in self._graph and bool(self._graph.nodes[name].get("declared"))

    def iter_cycles(self) -> Iterator[list[str]]:
        """Yield closed reference loops, e.g. ``["A", "B", "A"]``.

        A depth-first search starts from every declared schema and keeps the
        current path; a dependency already on the path closes a cycle.  Within
        one start no node is expanded twice, which bounds the work by
        nodes x edges.  The same loop may be yielded from several starts;
        callers de-duplicate with :func:`cycle_key`.  A self loop yields
        ``["A", "A"]``.
        """
        for start in self.schemas:
            path: list[str] = []
            expanded: set[str] = set()
            yield from self._walk(start, path, expanded)

    def _walk(self, node: str, path: list[str], expanded: set[str]) -> Iterator[list[str]]:
        path.append(node)
        expanded.add(node)
        for dependency in self.dependencies(node):
            if dependency in path:
                yield path[path.index(dependency) :] + [dependency]
            elif dependency in self and dependency not in expanded:
                yield from self._walk(dependency, path, expanded)
        path.pop()


def cycle_key(cycle: list[str]) -> str:
    """Canonical key for a cycle: its distinct names sorted and joined."""
    return "->".join(sorted(set(cycle)))
