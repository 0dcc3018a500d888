"""Render check results as text, JSON or Graphviz DOT."""

from __future__ import annotations

import json
from typing import Any

from no_cycle_import.models import CycleReport, Diagnostic, ImportEdge, ModuleId
from no_cycle_import.analysis.graph_models import DependencyGraph


def _relative(path: str, root: str | None) -> str:
    if root and path.startswith(root.rstrip("/") + "/"):
        return path[len(root.rstrip("/")) + 1:]
    return path


def _location(edge: ImportEdge, root: str | None) -> str:
    loc = edge.location
    return f"{_relative(loc.file, root)}:{loc.line}:{loc.column}"


def report_to_dict(report: CycleReport, root: str | None = None) -> dict[str, Any]:
    path = report.path
    return {
        "message": report.message,
        "length": path.length,
        "modules": [m.display(root) for m in path.modules],
        "location": {
            "file": _relative(report.location.file, root),
            "line": report.location.line,
            "column": report.location.column,
        },
        "hops": [
            {
                "from": edge.source.display(root),
                "to": edge.target.display(root),
                "specifier": edge.specifier,
                "kind": edge.kind.value,
                "location": _location(edge, root),
            }
            for edge in path.edges
        ],
    }


def diagnostic_to_dict(diagnostic: Diagnostic, root: str | None = None) -> dict[str, Any]:
    loc = diagnostic.location
    return {
        "severity": diagnostic.severity.value,
        "code": diagnostic.code,
        "message": diagnostic.message,
        "location": None if loc is None else {
            "file": _relative(loc.file, root),
            "line": loc.line,
            "column": loc.column,
        },
    }


def format_text(
    reports: list[CycleReport],
    diagnostics: list[Diagnostic] = (),
    root: str | None = None,
) -> str:
    """Human-readable listing, one block per cycle, warnings last."""
    lines: list[str] = []
    for report in reports:
        lines.append(f"{_location(report.trigger, root)}: error: {report.message}")
        for edge in report.path.edges:
            lines.append(
                f"    {edge.source.display(root)} imports {edge.specifier!r}"
                f"  ({_location(edge, root)})"
            )
    warnings = [d for d in diagnostics if d.code != "import-cycle"]
    for diag in warnings:
        where = ""
        if diag.location is not None:
            loc = diag.location
            where = f"{_relative(loc.file, root)}:{loc.line}:{loc.column}: "
        lines.append(f"{where}{diag.severity.value}: {diag.message} [{diag.code}]")
    if not reports:
        lines.append("No import cycles found.")
    else:
        lines.append(f"Found {len(reports)} import cycle(s).")
    return "\n".join(lines)


def format_json(
    reports: list[CycleReport],
    diagnostics: list[Diagnostic] = (),
    root: str | None = None,
) -> str:
    data = {
        "cycles": [report_to_dict(r, root) for r in reports],
        "diagnostics": [
            diagnostic_to_dict(d, root) for d in diagnostics if d.code != "import-cycle"
        ],
    }
    return json.dumps(data, indent=2)


def graph_to_dict(graph: DependencyGraph, root: str | None = None) -> dict[str, Any]:
    return {
        "nodes": [
            {
                "id": module.display(root),
                "external": module.is_external,
                "analyzed": node.analyzed,
            }
            for module, node in graph.nodes.items()
        ],
        "edges": [
            {
                "from": source.display(root),
                "to": target.display(root),
                "imports": len(edges),
                "specifier": edges[0].specifier,
                "kind": edges[0].kind.value,
            }
            for (source, target), edges in graph.occurrences.items()
        ],
    }


def format_dot(
    graph: DependencyGraph,
    reports: list[CycleReport] = (),
    root: str | None = None,
) -> str:
    """Graphviz digraph of the module graph; edges on reported cycles are red."""
    cyclic: set[tuple[ModuleId, ModuleId]] = set()
    for report in reports:
        for edge in report.path.edges:
            cyclic.add(edge.pair)

    def quote(module: ModuleId) -> str:
        return json.dumps(module.display(root))

    lines = ["digraph imports {", "  rankdir=LR;", "  node [shape=box];"]
    for module in graph.nodes:
        attrs = ' [style=dashed]' if module.is_external else ""
        lines.append(f"  {quote(module)}{attrs};")
    for source, target in graph.occurrences:
        attrs = ' [color=red]' if (source, target) in cyclic else ""
        lines.append(f"  {quote(source)} -> {quote(target)}{attrs};")
    lines.append("}")
    return "\n".join(lines)
