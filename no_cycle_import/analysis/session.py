"""One cycle-check run: owns the graph, serializes mutation and search."""

from __future__ import annotations

import logging
import threading
from typing import Iterable

from no_cycle_import.config import AnalysisConfig
from no_cycle_import.models import (
    CyclePath,
    CycleReport,
    DetectionMode,
    Diagnostic,
    ImportEdge,
    ImportKind,
    ImportStatement,
    ModuleId,
    Severity,
    SourceLocation,
)
from no_cycle_import.resolver import ModuleResolver
from no_cycle_import.analysis.cycles import CycleDetector
from no_cycle_import.analysis.dependency_graph import DependencyGraphBuilder
from no_cycle_import.analysis.graph_models import DependencyGraph

logger = logging.getLogger(__name__)


class CheckSession:
    """Single owner of one run's dependency graph.

    ``add_import`` inserts an edge and, in incremental mode, searches for the
    cycle it closes while holding one lock, so callers on several threads
    never see a half-built graph.
    """

    def __init__(self, config: AnalysisConfig, resolver: ModuleResolver | None = None):
        self.config = config
        self.resolver = resolver or ModuleResolver(
            config.source_dir,
            extensions=config.extensions,
            aliases=config.aliases,
            include_external=config.include_external,
            case_sensitive=config.case_sensitive,
        )
        self.builder = DependencyGraphBuilder(self.resolver, edge_kinds=config.edge_kinds)
        self.detector = CycleDetector()
        self._lock = threading.Lock()
        self._reports: list[CycleReport] = []
        self._diagnostics: list[Diagnostic] = []
        self._finished = False

    @property
    def mode(self) -> DetectionMode:
        return self.config.mode

    @property
    def graph(self) -> DependencyGraph:
        return self.builder.graph

    @property
    def reports(self) -> list[CycleReport]:
        with self._lock:
            return list(self._reports)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        with self._lock:
            return list(self.builder.diagnostics) + list(self._diagnostics)

    def module_for_path(self, path) -> ModuleId:
        return self.resolver.module_for_path(path)

    # ── Feeding ────────────────────────────────────────────

    def add_import(
        self,
        source: ModuleId,
        specifier: str,
        location: SourceLocation | None = None,
        kind: ImportKind = ImportKind.STATIC,
    ) -> CycleReport | None:
        """Record one import; returns a report if it closes a not-yet-reported cycle."""
        with self._lock:
            edge = self.builder.add_import(source, specifier, location, kind)
            if edge is None or self.mode is DetectionMode.BATCH:
                return None
            if not self.builder.last_added_new:
                return None
            path = self.detector.check_cycle(self.graph, edge)
            if path is None:
                return None
            return self._record(path, edge)

    def add_file(self, path, statements: Iterable[ImportStatement]) -> list[CycleReport]:
        """Record every import of one file, in source order."""
        source = self.module_for_path(path)
        with self._lock:
            self.builder.add_module(source)
        reports = []
        for statement in statements:
            report = self.add_import(source, statement.specifier, statement.location, statement.kind)
            if report is not None:
                reports.append(report)
        return reports

    def add_diagnostic(self, diagnostic: Diagnostic) -> None:
        with self._lock:
            self._diagnostics.append(diagnostic)

    def finish(self) -> list[CycleReport]:
        """Complete the run and return every cycle report, in discovery order."""
        with self._lock:
            if self.mode is DetectionMode.BATCH and not self._finished:
                for path in self.detector.find_cycles(self.graph):
                    self._record(path, path.edges[-1])
            self._finished = True
            logger.info(
                "Checked %d module(s), %d import(s): %d cycle(s)",
                len(self.graph.nodes), len(self.graph.edges), len(self._reports),
            )
            return list(self._reports)

    # ── Internals ──────────────────────────────────────────

    def _record(self, path: CyclePath, trigger: ImportEdge) -> CycleReport | None:
        if not self.detector.is_new(path):
            logger.debug("Cycle %s already reported", path.render())
            return None
        root = self.resolver.root
        message = f"Cyclic import: {path.render(root)}"
        report = CycleReport(path=path, trigger=trigger, message=message)
        self._reports.append(report)
        self._diagnostics.append(
            Diagnostic(Severity.ERROR, "import-cycle", message, trigger.location)
        )
        logger.warning("%s: %s", trigger.location, message)
        return report
