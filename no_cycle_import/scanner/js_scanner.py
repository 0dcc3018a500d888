"""JavaScript/TypeScript import scanner using regex patterns."""

from __future__ import annotations

import re
from pathlib import Path

from no_cycle_import.models import ImportKind, ImportStatement, SourceLocation
from no_cycle_import.scanner.base import BaseImportScanner

_SPEC = r"""(?P<q>['"])(?P<spec>[^'"\n]*)(?P=q)"""

# import x from "y" / import { a, b as c } from "y" / import "y" / import type { T } from "y"
_IMPORT_RE = re.compile(
    r"(?<![\w$.])import\s+(?P<type>type\s+(?!from\b)(?=[\w$*{]))?"
    r"(?:[\w$*{}\s,]+?\s*from\s*)?" + _SPEC,
)
# export * from "y" / export * as ns from "y" / export { a } from "y" / export type { T } from "y"
_REEXPORT_RE = re.compile(
    r"(?<![\w$.])export\s+(?P<type>type\s+)?"
    r"(?:\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s*from\s*" + _SPEC,
)
# import("y") and import(`y`) without interpolation
_DYNAMIC_RE = re.compile(
    r"(?<![\w$.])import\s*\(\s*(?:" + _SPEC + r"|`(?P<tpl>[^`\n]*)`)\s*[,)]",
)
_REQUIRE_RE = re.compile(
    r"(?<![\w$.])require\s*\(\s*" + _SPEC + r"\s*\)",
)


class JsImportScanner(BaseImportScanner):
    """Matches import statements on a masked copy of the source.

    Comments and string contents are blanked before matching, so text inside
    them never looks like an import. Specifiers are then read back from the
    original source at the same offsets.
    """

    name = "regex"

    def scan_source(self, source: str, file_path: Path) -> list[ImportStatement]:
        code = strip_comments(source, blank_strings=True)
        found: dict[int, ImportStatement] = {}

        for m in _IMPORT_RE.finditer(code):
            kind = ImportKind.TYPE if m.group("type") else ImportKind.STATIC
            found.setdefault(m.start(), self._statement(code, m, source, "spec", kind, file_path))

        for m in _REEXPORT_RE.finditer(code):
            kind = ImportKind.TYPE if m.group("type") else ImportKind.REEXPORT
            found.setdefault(m.start(), self._statement(code, m, source, "spec", kind, file_path))

        for m in _DYNAMIC_RE.finditer(code):
            group = "spec" if m.group("spec") is not None else "tpl"
            if group == "tpl" and "${" in source[m.start("tpl"):m.end("tpl")]:
                continue
            found.setdefault(m.start(), self._statement(code, m, source, group, ImportKind.DYNAMIC, file_path))

        for m in _REQUIRE_RE.finditer(code):
            found.setdefault(m.start(), self._statement(code, m, source, "spec", ImportKind.REQUIRE, file_path))

        return [found[offset] for offset in sorted(found)]

    @staticmethod
    def _statement(
        code: str, m: re.Match, source: str, group: str, kind: ImportKind, file_path: Path,
    ) -> ImportStatement:
        offset = m.start()
        line_no = code.count("\n", 0, offset) + 1
        column = offset - (code.rfind("\n", 0, offset) + 1)
        return ImportStatement(
            specifier=source[m.start(group):m.end(group)],
            location=SourceLocation(file=str(file_path), line=line_no, column=column),
            kind=kind,
        )


def strip_comments(source: str, blank_strings: bool = False) -> str:
    """Blank out ``//`` and ``/* */`` comments, keeping every offset and newline.

    String and template literals are skipped so that "http://x" survives.
    With ``blank_strings`` their contents are blanked too, quotes kept.
    """
    out = list(source)
    i = 0
    n = len(source)
    while i < n:
        ch = source[i]
        nxt = source[i + 1] if i + 1 < n else ""
        if ch in ("'", '"', "`"):
            i += 1
            while i < n and source[i] != ch:
                if source[i] == "\n" and ch != "`":
                    break
                step = 2 if source[i] == "\\" else 1
                if blank_strings:
                    for j in range(i, min(i + step, n)):
                        if source[j] != "\n":
                            out[j] = " "
                i += step
            i += 1
        elif ch == "/" and nxt == "/":
            while i < n and source[i] != "\n":
                out[i] = " "
                i += 1
        elif ch == "/" and nxt == "*":
            end = source.find("*/", i + 2)
            end = n if end == -1 else end + 2
            for j in range(i, end):
                if source[j] != "\n":
                    out[j] = " "
            i = end
        else:
            i += 1
    return "".join(out)
