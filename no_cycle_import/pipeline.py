"""Check pipeline: list files -> scan imports -> build graph -> detect cycles."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from no_cycle_import.config import AnalysisConfig
from no_cycle_import.models import CycleReport, Diagnostic, ImportStatement, Severity, SourceLocation
from no_cycle_import.scanner import BaseImportScanner, get_scanner
from no_cycle_import.analysis.graph_models import DependencyGraph
from no_cycle_import.analysis.session import CheckSession

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


@dataclass
class CheckResult:
    """Outcome of one run over a source directory."""
    root: str
    reports: list[CycleReport] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    graph: DependencyGraph = field(default_factory=DependencyGraph)
    files_scanned: int = 0

    @property
    def has_cycles(self) -> bool:
        return bool(self.reports)

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]


def run_check(config: AnalysisConfig, progress: ProgressCallback | None = None) -> CheckResult:
    """Run a full cycle check over ``config.source_dir``."""
    source_dir = Path(config.source_dir).resolve()
    if not source_dir.is_dir():
        raise ValueError(f"Source directory not found: {source_dir}")

    scanner = get_scanner(config.parser, skip_dirs=config.skip_dirs, extensions=config.extensions)
    session = CheckSession(config)

    # Stage 1: List files
    if progress:
        progress("Listing", 0, 1)
    files = scanner.iter_files(source_dir)
    if progress:
        progress("Listing", 1, 1)
    logger.info("Scanning %d file(s) under %s", len(files), source_dir)

    # Stage 2: Scan and feed, always in sorted file order
    _feed(session, scanner, files, config.jobs, progress, "Scanning")
    scanned = len(files)

    # Stage 3: Follow imports into node_modules
    if config.include_external:
        seen: set[str] = set()
        while True:
            pending = _unvisited_dependencies(session.graph, scanner, seen)
            if not pending:
                break
            seen.update(str(p) for p in pending)
            _feed(session, scanner, pending, config.jobs, progress, "Scanning dependencies")
            scanned += len(pending)

    # Stage 4: Detect
    if progress:
        progress("Detecting", 0, 1)
    reports = session.finish()
    if progress:
        progress("Detecting", 1, 1)

    return CheckResult(
        root=session.resolver.root,
        reports=reports,
        diagnostics=session.diagnostics,
        graph=session.graph,
        files_scanned=scanned,
    )


def build_graph(config: AnalysisConfig, progress: ProgressCallback | None = None) -> DependencyGraph:
    """Build the module graph for ``config.source_dir`` without caring about reports."""
    return run_check(config, progress=progress).graph


def _feed(
    session: CheckSession,
    scanner: BaseImportScanner,
    files: list[Path],
    jobs: int,
    progress: ProgressCallback | None,
    stage: str,
) -> None:
    def parse(path: Path) -> tuple[Path, list[ImportStatement] | None, Exception | None]:
        try:
            return path, scanner.scan_file(path), None
        except (OSError, UnicodeError, ValueError) as e:
            return path, None, e

    if jobs > 1:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            # map() yields in submission order, so feeding stays deterministic
            results = list(pool.map(parse, files))
    else:
        results = [parse(p) for p in files]

    for i, (path, statements, error) in enumerate(results):
        if progress:
            progress(stage, i, len(results))
        if error is not None:
            logger.warning("Could not parse %s: %s", path, error)
            session.add_diagnostic(Diagnostic(
                Severity.WARNING, "parse-error", f"Could not parse {path}: {error}",
                SourceLocation(file=str(path)),
            ))
            continue
        session.add_file(path, statements)
    if progress:
        progress(stage, len(results), len(results))


def _unvisited_dependencies(
    graph: DependencyGraph, scanner: BaseImportScanner, seen: set[str],
) -> list[Path]:
    pending = []
    for module, node in graph.nodes.items():
        if node.analyzed or module.is_external or module.key in seen:
            continue
        path = Path(module.key)
        if "node_modules" in path.parts and scanner.accepts(path):
            pending.append(path)
    return sorted(pending)
