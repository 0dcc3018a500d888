"""Abstract base import scanner."""

from __future__ import annotations

import abc
import fnmatch
from pathlib import Path

from no_cycle_import.config import DEFAULT_EXTENSIONS
from no_cycle_import.models import ImportStatement


class BaseImportScanner(abc.ABC):
    """Base class for scanners that list the import statements of a file."""

    name: str

    def __init__(
        self,
        skip_dirs: list[str] | None = None,
        extensions: tuple[str, ...] = DEFAULT_EXTENSIONS,
    ):
        self.skip_dirs = skip_dirs or [
            "node_modules", ".git", "dist", "build", "coverage", ".next",
        ]
        self.extensions = tuple(extensions)

    @abc.abstractmethod
    def scan_source(self, source: str, file_path: Path) -> list[ImportStatement]:
        """Return the imports found in ``source``, in source order."""

    def scan_file(self, file_path: Path) -> list[ImportStatement]:
        source = file_path.read_text(encoding="utf-8", errors="replace")
        return self.scan_source(source, file_path)

    def iter_files(self, directory: Path) -> list[Path]:
        """Source files under ``directory`` in a stable, sorted order."""
        files: list[Path] = []
        for path in sorted(directory.rglob("*")):
            if path.is_dir():
                continue
            if self._should_skip(path.relative_to(directory)):
                continue
            if self.accepts(path):
                files.append(path)
        return files

    def accepts(self, path: Path) -> bool:
        name = path.name
        if name.endswith(".d.ts") or name.endswith(".d.mts") or name.endswith(".d.cts"):
            return False
        return path.suffix in self.extensions

    def _should_skip(self, path: Path) -> bool:
        for part in path.parts:
            for pattern in self.skip_dirs:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return False
