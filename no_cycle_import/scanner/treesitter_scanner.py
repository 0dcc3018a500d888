"""Tree-sitter import scanner for JavaScript and TypeScript."""

from __future__ import annotations

from pathlib import Path

from tree_sitter_language_pack import get_parser

from no_cycle_import.models import ImportKind, ImportStatement, SourceLocation
from no_cycle_import.scanner.base import BaseImportScanner
from no_cycle_import.scanner.language_map import EXT_TO_GRAMMAR


class TreeSitterImportScanner(BaseImportScanner):
    """Walks the syntax tree and keeps only import-shaped nodes."""

    name = "treesitter"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._parser_cache: dict[str, object] = {}

    def scan_source(self, source: str, file_path: Path) -> list[ImportStatement]:
        grammar = EXT_TO_GRAMMAR.get(file_path.suffix, "javascript")
        source_bytes = source.encode("utf-8")
        tree = self._get_parser(grammar).parse(source_bytes)

        statements: list[ImportStatement] = []
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            found = self._match(node, file_path)
            if found is not None:
                statements.append(found)
            # Children reversed so the pop order follows source order
            stack.extend(reversed(node.children))

        statements.sort(key=lambda s: (s.location.line, s.location.column))
        return statements

    def _get_parser(self, grammar_name: str):
        if grammar_name not in self._parser_cache:
            self._parser_cache[grammar_name] = get_parser(grammar_name)
        return self._parser_cache[grammar_name]

    def _match(self, node, file_path: Path) -> ImportStatement | None:
        if node.type == "import_statement":
            source = node.child_by_field_name("source")
            if source is not None:
                kind = ImportKind.TYPE if _has_type_keyword(node) else ImportKind.STATIC
                return _statement(node, _string_value(source), kind, file_path)
            # TypeScript: import x = require("y")
            for child in node.named_children:
                if child.type == "import_require_clause":
                    required = child.child_by_field_name("source")
                    if required is not None:
                        return _statement(node, _string_value(required), ImportKind.REQUIRE, file_path)
            return None

        if node.type == "export_statement":
            source = node.child_by_field_name("source")
            if source is None:
                return None
            kind = ImportKind.TYPE if _has_type_keyword(node) else ImportKind.REEXPORT
            return _statement(node, _string_value(source), kind, file_path)

        if node.type == "call_expression":
            function = node.child_by_field_name("function")
            arguments = node.child_by_field_name("arguments")
            if function is None or arguments is None:
                return None
            if function.type == "import":
                kind = ImportKind.DYNAMIC
            elif function.type == "identifier" and function.text == b"require":
                kind = ImportKind.REQUIRE
            else:
                return None
            args = arguments.named_children
            if not args or args[0].type not in ("string", "template_string"):
                return None
            if args[0].type == "template_string" and any(
                c.type == "template_substitution" for c in args[0].named_children
            ):
                return None
            return _statement(node, _string_value(args[0]), kind, file_path)

        return None


def _has_type_keyword(node) -> bool:
    """``import type`` / ``export type``: an anonymous ``type`` token right after the keyword."""
    children = node.children
    return len(children) > 1 and not children[1].is_named and children[1].type == "type"


def _string_value(node) -> str:
    text = node.text.decode("utf-8", errors="replace")
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text


def _statement(node, specifier: str, kind: ImportKind, file_path: Path) -> ImportStatement:
    row, column = node.start_point
    return ImportStatement(
        specifier=specifier,
        location=SourceLocation(file=str(file_path), line=row + 1, column=column),
        kind=kind,
    )
