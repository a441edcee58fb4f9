"""Cycle-safe traversal of schema graphs."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from oasdiag.models.document import Schema


@dataclass(frozen=True)
class SchemaVisit:
    """One node handed to a schema rule.

    ``component`` is the component schema whose definition contains the node;
    ``path`` is the walk path (``Pet.owner``, ``Pet.allOf[1].items``).
    """

    component: str
    path: str
    schema: Schema

    @property
    def is_root(self) -> bool:
        return self.path == self.component


SchemaRule = Callable[[SchemaVisit], None]
SchemaResolver = Callable[[str], Schema | None]


def child_schemas(schema: Schema) -> Iterator[tuple[str, Schema]]:
    """Yield ``(key, child)`` for properties, items and composition members."""
    if schema.properties:
        yield from schema.properties.items()
    if schema.items is not None:
        yield "items", schema.items
    for keyword, members in (
        ("allOf", schema.all_of),
        ("oneOf", schema.one_of),
        ("anyOf", schema.any_of),
    ):
        for i, member in enumerate(members):
            yield f"{keyword}[{i}]", member


class SchemaWalker:
    """Applies a rule to every node of a schema graph.

    Reference nodes are given to the rule like any other node and then
    followed: a target already in ``visited`` is not expanded again, so self
    and mutual references terminate.  A followed target is walked as its own
    component, with the walk path restarting at its name.
    """

    def __init__(self, resolve: SchemaResolver) -> None:
        self._resolve = resolve

    def walk(
        self,
        name: str,
        schema: Schema,
        rule: SchemaRule,
        visited: set[str] | None = None,
    ) -> None:
        visited = set() if visited is None else visited
        visited.add(name)
        pending: deque[tuple[str, Schema]] = deque([(name, schema)])
        while pending:
            component, body = pending.popleft()
            self._descend(body, component, component, rule, visited, pending)

    def _descend(
        self,
        node: Schema,
        path: str,
        component: str,
        rule: SchemaRule,
        visited: set[str],
        pending: deque[tuple[str, Schema]],
    ) -> None:
        rule(SchemaVisit(component=component, path=path, schema=node))

        if node.ref is not None:
            if node.ref in visited:
                return
            target = self._resolve(node.ref)
            if target is None:
                return
            visited.add(node.ref)
            pending.append((node.ref, target))
            return

        for key, child in child_schemas(node):
            self._descend(child, f"{path}.{key}", component, rule, visited, pending)
