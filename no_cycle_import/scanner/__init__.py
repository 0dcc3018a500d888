"""Scanner registry: pick the import scanner a run uses."""

from __future__ import annotations

from no_cycle_import.config import DEFAULT_EXTENSIONS
from no_cycle_import.scanner.base import BaseImportScanner
from no_cycle_import.scanner.js_scanner import JsImportScanner
from no_cycle_import.scanner.treesitter_scanner import TreeSitterImportScanner

_SCANNERS: dict[str, type[BaseImportScanner]] = {
    "treesitter": TreeSitterImportScanner,
    "regex": JsImportScanner,
}


def get_scanner(
    name: str = "treesitter",
    skip_dirs: list[str] | None = None,
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS,
) -> BaseImportScanner:
    try:
        scanner_cls = _SCANNERS[name]
    except KeyError:
        raise ValueError(f"Unknown scanner {name!r}; choose from {', '.join(_SCANNERS)}") from None
    return scanner_cls(skip_dirs=skip_dirs, extensions=extensions)


__all__ = [
    "BaseImportScanner",
    "JsImportScanner",
    "TreeSitterImportScanner",
    "get_scanner",
]
