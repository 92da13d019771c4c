"""
Evaluation order for derived fields.

Derived fields form a dependency graph (child -> derived parents). Plain
input fields are leaves and never appear as nodes. A depth-first walk in
declaration order appends each field after its parents, which yields a
parents-before-children order whenever the graph is acyclic.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from formsmith.core.ir import FormField

logger = logging.getLogger(__name__)

_ON_STACK = 1
_DONE = 2


@dataclass(frozen=True)
class DependencyResolution:
    """
    Result of ordering derived fields.

    Attributes:
        cycle: True if any dependency cycle exists
        order: Fields safe to compute, parents before children
        cycles: Each detected cycle as a closed path, e.g. ["x", "y", "x"]
        blocked: Ids of fields that must not be computed, declaration order
    """

    cycle: bool
    order: list[FormField] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    blocked: list[str] = field(default_factory=list)


def build_dependency_graph(derived_fields: Sequence[FormField]) -> dict[str, list[str]]:
    """Map each derived field id to the ids of its parents that are also derived."""
    derived_ids = {f.id for f in derived_fields if f.derived_from is not None}
    graph: dict[str, list[str]] = {}
    for fld in derived_fields:
        if fld.derived_from is None or fld.id in graph:
            continue
        parents: list[str] = []
        for parent_id in fld.derived_from.parent_fields:
            if parent_id in derived_ids and parent_id not in parents:
                parents.append(parent_id)
        graph[fld.id] = parents
    return graph


def _walk(graph: dict[str, list[str]]) -> tuple[list[str], list[list[str]]]:
    """Depth-first post-order over the graph plus every back edge found, as a cycle path."""
    state: dict[str, int] = {}
    post_order: list[str] = []
    cycles: list[list[str]] = []

    for root in graph:
        if root in state:
            continue
        path = [root]
        stack: list[tuple[str, Iterator[str]]] = [(root, iter(graph[root]))]
        state[root] = _ON_STACK
        while stack:
            node, parents = stack[-1]
            parent = next(parents, None)
            if parent is None:
                stack.pop()
                path.pop()
                state[node] = _DONE
                post_order.append(node)
                continue
            seen = state.get(parent)
            if seen == _ON_STACK:
                cycles.append(path[path.index(parent) :] + [parent])
            elif seen is None:
                state[parent] = _ON_STACK
                path.append(parent)
                stack.append((parent, iter(graph[parent])))

    return post_order, cycles


def _dependents_of(graph: dict[str, list[str]], roots: set[str]) -> set[str]:
    """``roots`` plus every field that transitively depends on one of them."""
    affected = set(roots)
    changed = True
    while changed:
        changed = False
        for node, parents in graph.items():
            if node not in affected and any(p in affected for p in parents):
                affected.add(node)
                changed = True
    return affected


def detect_cycles(derived_fields: Sequence[FormField]) -> list[list[str]]:
    """Every dependency cycle among the derived fields (empty if none)."""
    _, cycles = _walk(build_dependency_graph(derived_fields))
    return cycles


def resolve_evaluation_order(
    derived_fields: Sequence[FormField],
    *,
    isolate_cycles: bool = False,
) -> DependencyResolution:
    """
    Order derived fields so every derived parent is computed before its children.

    Args:
        derived_fields: Derived fields in schema declaration order.
        isolate_cycles: When False (default) any cycle blocks every derived
            field and no order is produced. When True only the fields in a
            cycle, and those depending on them, are blocked.

    Returns:
        DependencyResolution describing the order and any cycles.
    """
    graph = build_dependency_graph(derived_fields)
    post_order, cycles = _walk(graph)
    by_id = {f.id: f for f in derived_fields if f.id in graph}

    if not cycles:
        order = [by_id[fid] for fid in post_order]
        logger.debug("Derived field order: %s", " -> ".join(post_order) or "(none)")
        return DependencyResolution(cycle=False, order=order)

    for cycle in cycles:
        logger.warning("Circular dependency in derived fields: %s", " -> ".join(cycle))

    if not isolate_cycles:
        return DependencyResolution(cycle=True, cycles=cycles, blocked=list(graph))

    blocked = _dependents_of(graph, {fid for cycle in cycles for fid in cycle})
    order = [by_id[fid] for fid in post_order if fid not in blocked]
    return DependencyResolution(
        cycle=True,
        order=order,
        cycles=cycles,
        blocked=[fid for fid in graph if fid in blocked],
    )
