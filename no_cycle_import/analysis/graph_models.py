"""Data models for the module dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field

from no_cycle_import.errors import GraphInvariantError
from no_cycle_import.models import ImportEdge, ModuleId


@dataclass
class ModuleNode:
    module: ModuleId
    analyzed: bool = False  # True once the module was visited as an importer
    order: int = 0          # registration order, used for deterministic iteration


@dataclass
class DependencyGraph:
    """Append-only module graph for one analysis run."""
    nodes: dict[ModuleId, ModuleNode] = field(default_factory=dict)
    edges: list[ImportEdge] = field(default_factory=list)  # every import statement
    forward: dict[ModuleId, list[ModuleId]] = field(default_factory=dict)  # source -> [targets]
    reverse: dict[ModuleId, list[ModuleId]] = field(default_factory=dict)  # target -> [sources]
    occurrences: dict[tuple[ModuleId, ModuleId], list[ImportEdge]] = field(default_factory=dict)

    def add_node(self, module: ModuleId, analyzed: bool = False) -> ModuleNode:
        node = self.nodes.get(module)
        if node is None:
            node = ModuleNode(module=module, order=len(self.nodes))
            self.nodes[module] = node
            self.forward[module] = []
            self.reverse[module] = []
        if analyzed:
            node.analyzed = True
        return node

    def add_edge(self, edge: ImportEdge) -> bool:
        """Record an import; returns True when the (source, target) pair is new."""
        for endpoint in edge.pair:
            if endpoint not in self.nodes:
                raise GraphInvariantError(f"Edge endpoint {endpoint} is not a registered node")
        self.edges.append(edge)
        seen = self.occurrences.get(edge.pair)
        if seen is not None:
            seen.append(edge)
            return False
        self.occurrences[edge.pair] = [edge]
        self.forward[edge.source].append(edge.target)
        self.reverse[edge.target].append(edge.source)
        return True

    def first_edge(self, source: ModuleId, target: ModuleId) -> ImportEdge:
        """Provenance of the pair: the first import statement that created it."""
        seen = self.occurrences.get((source, target))
        if not seen:
            raise GraphInvariantError(f"No edge {source} -> {target} in graph")
        return seen[0]

    def has_edge(self, source: ModuleId, target: ModuleId) -> bool:
        return (source, target) in self.occurrences

    @property
    def edge_count(self) -> int:
        """Number of distinct (source, target) pairs."""
        return len(self.occurrences)
