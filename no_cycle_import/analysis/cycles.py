"""Cycle detection over the module graph.

Two modes share one detector:

* incremental: ``check_cycle`` runs after every new edge. A breadth-first
  search from the edge's target looks for its source, so the cycle found is
  the shortest one that runs through the new edge. Cost is O(V+E) per edge.
* batch: ``find_cycles`` runs Tarjan's strongly-connected-components
  algorithm once over the finished graph, O(V+E) in total, and reports one
  shortest cycle per component.
"""

from __future__ import annotations

import logging
from collections import deque

from no_cycle_import.errors import GraphInvariantError
from no_cycle_import.models import CyclePath, ImportEdge, ModuleId
from no_cycle_import.analysis.graph_models import DependencyGraph

logger = logging.getLogger(__name__)


class CycleDetector:
    """Find import cycles and remember which ones were already reported."""

    def __init__(self):
        self._reported: set[tuple[str, ...]] = set()

    # ── Incremental ────────────────────────────────────────

    def check_cycle(self, graph: DependencyGraph, edge: ImportEdge) -> CyclePath | None:
        """Return the cycle closed by ``edge``, or None if it closes none."""
        if edge.is_self_import:
            return CyclePath(modules=(edge.source, edge.source), edges=(edge,))

        hops = _shortest_path(graph, edge.target, edge.source)
        if hops is None:
            return None
        # Start at the import target so the new edge is the closing hop
        modules = tuple(hops) + (edge.target,)
        edges = tuple(
            graph.first_edge(a, b) for a, b in zip(hops, hops[1:])
        ) + (edge,)
        return CyclePath(modules=modules, edges=edges)

    # ── Batch ──────────────────────────────────────────────

    def find_cycles(self, graph: DependencyGraph) -> list[CyclePath]:
        """Shortest cycles covering every module of each cyclic component, plus every self-import.

        Within a component, the earliest-registered module not yet on a
        reported cycle starts the next search, until every member is covered.
        Results are ordered by the registration order of each cycle's first module.
        """
        cycles: list[CyclePath] = []
        for component in strongly_connected_components(graph):
            for member in component:
                if graph.has_edge(member, member):
                    cycles.append(CyclePath(
                        modules=(member, member),
                        edges=(graph.first_edge(member, member),),
                    ))
            if len(component) < 2:
                continue
            members = set(component)
            covered: set[ModuleId] = set()
            for start in sorted(component, key=lambda m: graph.nodes[m].order):
                if start in covered:
                    continue
                path = self._shortest_cycle_through(graph, start, members)
                covered.update(path.members)
                cycles.append(path)
        cycles.sort(key=lambda c: (graph.nodes[c.modules[0]].order, c.length))
        logger.debug("Batch sweep found %d cyclic component(s)", len(cycles))
        return cycles

    def _shortest_cycle_through(
        self, graph: DependencyGraph, start: ModuleId, members: set[ModuleId],
    ) -> CyclePath:
        best: list[ModuleId] | None = None
        for successor in graph.forward.get(start, []):
            if successor not in members or successor == start:
                continue
            hops = _shortest_path(graph, successor, start, within=members)
            if hops is not None and (best is None or len(hops) < len(best)):
                best = hops
        if best is None:
            raise GraphInvariantError(f"Component containing {start} has no cycle through it")
        modules = (start,) + tuple(best)
        edges = tuple(graph.first_edge(a, b) for a, b in zip(modules, modules[1:]))
        return CyclePath(modules=modules, edges=edges)

    # ── Reporting ──────────────────────────────────────────

    def is_new(self, path: CyclePath) -> bool:
        """True the first time a given cycle is seen in this run."""
        key = path.key
        if key in self._reported:
            return False
        self._reported.add(key)
        return True


def _shortest_path(
    graph: DependencyGraph,
    start: ModuleId,
    goal: ModuleId,
    within: set[ModuleId] | None = None,
) -> list[ModuleId] | None:
    """BFS from ``start`` to ``goal``; returns the node list including both ends."""
    if start == goal:
        return [start]
    parents: dict[ModuleId, ModuleId | None] = {start: None}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for neighbor in graph.forward.get(current, []):
            if neighbor in parents:
                continue
            if within is not None and neighbor not in within:
                continue
            parents[neighbor] = current
            if neighbor == goal:
                path = [neighbor]
                step = current
                while step is not None:
                    path.append(step)
                    step = parents[step]
                path.reverse()
                return path
            queue.append(neighbor)
    return None


def strongly_connected_components(graph: DependencyGraph) -> list[list[ModuleId]]:
    """Tarjan's algorithm, iterative so deep import chains do not hit the recursion limit."""
    index_of: dict[ModuleId, int] = {}
    low_link: dict[ModuleId, int] = {}
    on_stack: set[ModuleId] = set()
    stack: list[ModuleId] = []
    components: list[list[ModuleId]] = []
    counter = 0

    for root in graph.nodes:
        if root in index_of:
            continue
        work: list[tuple[ModuleId, int]] = [(root, 0)]
        while work:
            node, child_idx = work.pop()
            if child_idx == 0:
                index_of[node] = low_link[node] = counter
                counter += 1
                stack.append(node)
                on_stack.add(node)

            children = graph.forward.get(node, [])
            recursed = False
            while child_idx < len(children):
                child = children[child_idx]
                child_idx += 1
                if child not in index_of:
                    work.append((node, child_idx))
                    work.append((child, 0))
                    recursed = True
                    break
                if child in on_stack:
                    low_link[node] = min(low_link[node], index_of[child])
            if recursed:
                continue

            if low_link[node] == index_of[node]:
                component: list[ModuleId] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(component)

            if work:
                parent = work[-1][0]
                low_link[parent] = min(low_link[parent], low_link[node])

    return components
