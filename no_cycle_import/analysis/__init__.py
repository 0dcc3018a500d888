"""Graph building and cycle detection."""

from no_cycle_import.analysis.cycles import CycleDetector, strongly_connected_components
from no_cycle_import.analysis.dependency_graph import DependencyGraphBuilder
from no_cycle_import.analysis.graph_models import DependencyGraph, ModuleNode
from no_cycle_import.analysis.session import CheckSession

__all__ = [
    "CheckSession",
    "CycleDetector",
    "DependencyGraph",
    "DependencyGraphBuilder",
    "ModuleNode",
    "strongly_connected_components",
]
