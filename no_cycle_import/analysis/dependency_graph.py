"""Dependency graph builder: resolves import specifiers and records edges."""

from __future__ import annotations

import logging

from no_cycle_import.errors import AmbiguousModule, ResolutionError
from no_cycle_import.models import (
    Diagnostic,
    ImportEdge,
    ImportKind,
    ModuleId,
    Severity,
    SourceLocation,
)
from no_cycle_import.resolver import ModuleResolver
from no_cycle_import.analysis.graph_models import DependencyGraph

logger = logging.getLogger(__name__)

_DEFAULT_KINDS = frozenset({ImportKind.STATIC, ImportKind.REEXPORT})


class DependencyGraphBuilder:
    """Build a module graph one import statement at a time."""

    def __init__(
        self,
        resolver: ModuleResolver,
        edge_kinds: frozenset[ImportKind] = _DEFAULT_KINDS,
        graph: DependencyGraph | None = None,
    ):
        self.resolver = resolver
        self.edge_kinds = frozenset(edge_kinds)
        self.graph = graph if graph is not None else DependencyGraph()
        self.diagnostics: list[Diagnostic] = []
        self.last_added_new = False

    def add_module(self, module: ModuleId) -> None:
        """Register a visited file, even one without imports."""
        self.graph.add_node(module, analyzed=True)

    def add_import(
        self,
        source: ModuleId,
        specifier: str,
        location: SourceLocation | None = None,
        kind: ImportKind = ImportKind.STATIC,
    ) -> ImportEdge | None:
        """Resolve ``specifier`` and record the edge ``source -> target``.

        Returns None when the import kind is not tracked or the specifier does
        not resolve; resolution problems are kept in ``diagnostics``.
        """
        self.last_added_new = False
        location = location or SourceLocation(file=str(source))

        if kind not in self.edge_kinds:
            logger.debug("Skipping %s import %r in %s", kind.value, specifier, location)
            return None

        try:
            resolution = self.resolver.resolve(specifier, source)
        except ResolutionError as e:
            logger.warning("%s: %s", location, e)
            self.diagnostics.append(Diagnostic(Severity.WARNING, e.code, str(e), location))
            return None

        if resolution.ambiguous:
            note = AmbiguousModule(
                specifier,
                str(source),
                "matches " + ", ".join(map(str, resolution.candidates))
                + f"; using {resolution.module}",
            )
            logger.warning("%s: %s", location, note)
            self.diagnostics.append(Diagnostic(Severity.WARNING, note.code, str(note), location))

        edge = ImportEdge(
            source=source,
            target=resolution.module,
            specifier=specifier,
            location=location,
            kind=kind,
        )
        self.graph.add_node(source, analyzed=True)
        self.graph.add_node(resolution.module)
        self.last_added_new = self.graph.add_edge(edge)
        logger.debug("Edge %s -> %s (%s)", source, resolution.module, "new" if self.last_added_new else "duplicate")
        return edge

    def neighbors(self, module: ModuleId) -> list[ModuleId]:
        """Modules imported by ``module``, in first-import order."""
        return list(self.graph.forward.get(module, []))
