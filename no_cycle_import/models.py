"""Data models for the import-cycle checker."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field


class ModuleKind(enum.Enum):
    FILE = "file"
    EXTERNAL = "external"


class ImportKind(enum.Enum):
    STATIC = "static"      # import x from "y" / import "y"
    REEXPORT = "reexport"  # export { x } from "y" / export * from "y"
    DYNAMIC = "dynamic"    # import("y")
    REQUIRE = "require"    # require("y")
    TYPE = "type"          # import type { X } from "y"


class DetectionMode(enum.Enum):
    INCREMENTAL = "incremental"
    BATCH = "batch"


class Severity(enum.Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, order=True)
class ModuleId:
    """Canonical identity of a module, independent of how it was spelled."""
    kind: ModuleKind = field(compare=False)
    key: str

    def __post_init__(self):
        if not self.key:
            raise ValueError("ModuleId key must not be empty")

    @classmethod
    def file(cls, path: str | os.PathLike) -> ModuleId:
        normalized = os.path.normpath(os.fspath(path)).replace("\\", "/")
        if not normalized.startswith("/") and not _has_drive(normalized):
            raise ValueError(f"File module ids need an absolute path: {normalized!r}")
        return cls(ModuleKind.FILE, normalized)

    @classmethod
    def external(cls, name: str) -> ModuleId:
        return cls(ModuleKind.EXTERNAL, f"external:{name}")

    @property
    def is_external(self) -> bool:
        return self.kind == ModuleKind.EXTERNAL

    @property
    def name(self) -> str:
        """Package name for externals, file path for local modules."""
        if self.is_external:
            return self.key[len("external:"):]
        return self.key

    def display(self, root: str | None = None) -> str:
        if root and not self.is_external:
            prefix = root.rstrip("/") + "/"
            if self.key.startswith(prefix):
                return self.key[len(prefix):]
        return self.key

    def __str__(self) -> str:
        return self.key


def _has_drive(path: str) -> bool:
    return len(path) > 2 and path[1] == ":" and path[2] == "/"


@dataclass(frozen=True)
class SourceLocation:
    file: str
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class ImportStatement:
    """One import-like statement found by a scanner."""
    specifier: str
    location: SourceLocation
    kind: ImportKind = ImportKind.STATIC


@dataclass(frozen=True)
class ImportEdge:
    source: ModuleId
    target: ModuleId
    specifier: str
    location: SourceLocation
    kind: ImportKind = ImportKind.STATIC

    @property
    def pair(self) -> tuple[ModuleId, ModuleId]:
        return (self.source, self.target)

    @property
    def is_self_import(self) -> bool:
        return self.source == self.target


@dataclass(frozen=True)
class CyclePath:
    """A closed import chain; ``modules[0] == modules[-1]``.

    ``edges[i]`` is the import statement that takes ``modules[i]`` to
    ``modules[i + 1]``.
    """
    modules: tuple[ModuleId, ...]
    edges: tuple[ImportEdge, ...]

    def __post_init__(self):
        if len(self.modules) < 2 or self.modules[0] != self.modules[-1]:
            raise ValueError("A cycle path must start and end at the same module")
        if len(self.edges) != len(self.modules) - 1:
            raise ValueError("A cycle path needs exactly one edge per hop")

    @property
    def length(self) -> int:
        """Number of distinct modules in the cycle."""
        return len(self.modules) - 1

    @property
    def members(self) -> tuple[ModuleId, ...]:
        return self.modules[:-1]

    @property
    def key(self) -> tuple[str, ...]:
        """Sorted member keys: equal for every rotation and direction of one node set."""
        return tuple(sorted(m.key for m in self.members))

    def render(self, root: str | None = None, arrow: str = " -> ") -> str:
        return arrow.join(m.display(root) for m in self.modules)


@dataclass(frozen=True)
class CycleReport:
    path: CyclePath
    trigger: ImportEdge
    message: str

    @property
    def location(self) -> SourceLocation:
        return self.trigger.location


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    code: str  # "unresolved-import" | "ambiguous-import" | "invalid-import" | "parse-error" | "import-cycle"
    message: str
    location: SourceLocation | None = None

    def __str__(self) -> str:
        where = f"{self.location}: " if self.location else ""
        return f"{where}{self.severity.value}: {self.message} [{self.code}]"
