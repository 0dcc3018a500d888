"""Module resolution: import specifier + importing module -> canonical ModuleId."""

from __future__ import annotations

import json
import logging
import os
import posixpath
from dataclasses import dataclass
from pathlib import Path

from no_cycle_import.config import DEFAULT_EXTENSIONS
from no_cycle_import.errors import InvalidSpecifier, ModuleNotFound
from no_cycle_import.models import ModuleId

logger = logging.getLogger(__name__)

# Node.js core modules never resolve to project files
NODE_BUILTINS = frozenset({
    "assert", "async_hooks", "buffer", "child_process", "cluster", "console",
    "constants", "crypto", "dgram", "diagnostics_channel", "dns", "domain",
    "events", "fs", "http", "http2", "https", "inspector", "module", "net",
    "os", "path", "perf_hooks", "process", "punycode", "querystring",
    "readline", "repl", "stream", "string_decoder", "sys", "timers", "tls",
    "trace_events", "tty", "url", "util", "v8", "vm", "wasi", "worker_threads",
    "zlib",
})

_PACKAGE_ENTRY_FIELDS = ("module", "main")


@dataclass(frozen=True)
class Resolution:
    module: ModuleId
    candidates: tuple[ModuleId, ...] = ()

    @property
    def ambiguous(self) -> bool:
        return len(self.candidates) > 1


class ModuleResolver:
    """Resolves ES module specifiers against a project root.

    The root is explicit so that resolution never depends on the process
    working directory. File existence checks and whole resolutions are
    cached, so one resolver answers the same way for the whole run.
    """

    def __init__(
        self,
        root: str | os.PathLike,
        extensions: tuple[str, ...] = DEFAULT_EXTENSIONS,
        aliases: dict[str, str] | None = None,
        include_external: bool = False,
        case_sensitive: bool = True,
    ):
        self.root = _posix(str(Path(root).resolve()))
        self.extensions = tuple(extensions)
        # Longest prefix first so "@/components/" beats "@/"
        self.aliases = sorted((aliases or {}).items(), key=lambda kv: -len(kv[0]))
        self.include_external = include_external
        self.case_sensitive = case_sensitive
        self._file_cache: dict[str, bool] = {}
        self._dir_cache: dict[str, bool] = {}
        self._cache: dict[tuple[str, ModuleId], Resolution] = {}

    # ── Public API ──────────────────────────────────────────

    def module_for_path(self, path: str | os.PathLike) -> ModuleId:
        """Canonical id of a file on disk; relative paths are taken from the root."""
        p = _posix(os.fspath(path))
        if not posixpath.isabs(p) and not _is_windows_abs(p):
            p = posixpath.join(self.root, p)
        return self._canonical(p)

    def resolve(self, specifier: str, from_module: ModuleId) -> Resolution:
        """Resolve ``specifier`` as imported from ``from_module``.

        Raises InvalidSpecifier for malformed input and ModuleNotFound when no
        candidate file exists.
        """
        cache_key = (specifier, from_module)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        self._validate(specifier, from_module)
        spec = specifier.strip()
        importer_dir = posixpath.dirname(from_module.key)

        if spec.startswith("./") or spec.startswith("../") or spec in (".", ".."):
            resolution = self._resolve_path(posixpath.join(importer_dir, spec), spec, from_module)
        elif spec.startswith("/"):
            resolution = self._resolve_path(spec, spec, from_module)
        else:
            aliased = self._apply_alias(spec)
            if aliased is not None:
                resolution = self._resolve_path(aliased, spec, from_module)
            else:
                resolution = self._resolve_bare(spec, importer_dir, from_module)

        self._cache[cache_key] = resolution
        return resolution

    # ── Validation ──────────────────────────────────────────

    def _validate(self, specifier: str, from_module: ModuleId) -> None:
        if not isinstance(specifier, str) or not specifier.strip():
            raise InvalidSpecifier(str(specifier), str(from_module), "empty module specifier")
        if "\x00" in specifier:
            raise InvalidSpecifier(specifier, str(from_module), "specifier contains a NUL byte")
        if from_module.is_external:
            raise InvalidSpecifier(
                specifier, str(from_module), "external modules are not analyzed as importers"
            )

    # ── Path resolution ─────────────────────────────────────

    def _resolve_path(self, target: str, specifier: str, from_module: ModuleId) -> Resolution:
        base = posixpath.normpath(target)
        candidates = self._lookup(base)
        if not candidates:
            raise ModuleNotFound(specifier, str(from_module), f"no file matches {base}")
        return self._pick(candidates, specifier)

    def _lookup(self, base: str) -> list[ModuleId]:
        """All files ``base`` may refer to, in resolution order."""
        found: list[ModuleId] = []

        def add(path: str) -> None:
            module = self._canonical(path)
            if module not in found:
                found.append(module)

        if self._is_file(base):
            add(base)
            # An exact hit with an extension is never ambiguous
            return found

        for ext in self.extensions:
            if self._is_file(base + ext):
                add(base + ext)

        if self._is_dir(base):
            entry = self._package_entry(base)
            if entry is not None:
                add(entry)
            for ext in self.extensions:
                index = posixpath.join(base, "index" + ext)
                if self._is_file(index):
                    add(index)
        return found

    def _package_entry(self, directory: str) -> str | None:
        manifest = posixpath.join(directory, "package.json")
        if not self._is_file(manifest):
            return None
        try:
            data = json.loads(Path(manifest).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable %s: %s", manifest, e)
            return None
        if not isinstance(data, dict):
            return None
        for field_name in _PACKAGE_ENTRY_FIELDS:
            entry = data.get(field_name)
            if not isinstance(entry, str) or not entry:
                continue
            target = posixpath.normpath(posixpath.join(directory, entry))
            if self._is_file(target):
                return target
            for ext in self.extensions:
                if self._is_file(target + ext):
                    return target + ext
            for ext in self.extensions:
                index = posixpath.join(target, "index" + ext)
                if self._is_file(index):
                    return index
        return None

    def _pick(self, candidates: list[ModuleId], specifier: str) -> Resolution:
        if len(candidates) > 1:
            logger.debug(
                "Ambiguous specifier %r: %s (using %s)",
                specifier, ", ".join(map(str, candidates)), candidates[0],
            )
        return Resolution(module=candidates[0], candidates=tuple(candidates))

    # ── Aliases and packages ────────────────────────────────

    def _apply_alias(self, specifier: str) -> str | None:
        for prefix, target in self.aliases:
            if specifier == prefix.rstrip("/") or specifier.startswith(prefix):
                rest = specifier[len(prefix):] if specifier.startswith(prefix) else ""
                return posixpath.join(self.root, target, rest)
        return None

    def _resolve_bare(self, specifier: str, importer_dir: str, from_module: ModuleId) -> Resolution:
        name = specifier[len("node:"):] if specifier.startswith("node:") else specifier
        package = _package_name(name)
        if specifier.startswith("node:") or package in NODE_BUILTINS:
            return Resolution(module=ModuleId.external(specifier))
        if not self.include_external:
            return Resolution(module=ModuleId.external(specifier))

        directory = importer_dir
        while True:
            candidate = posixpath.join(directory, "node_modules", specifier)
            candidates = self._lookup(candidate)
            if candidates:
                return self._pick(candidates, specifier)
            parent = posixpath.dirname(directory)
            if parent == directory:
                break
            directory = parent
        raise ModuleNotFound(specifier, str(from_module), "package not found in any node_modules")

    # ── Filesystem helpers ──────────────────────────────────

    def _canonical(self, path: str) -> ModuleId:
        path = posixpath.normpath(path)
        if not self.case_sensitive:
            path = path.lower()
        return ModuleId.file(path)

    def _is_file(self, path: str) -> bool:
        cached = self._file_cache.get(path)
        if cached is None:
            cached = self._file_cache[path] = os.path.isfile(path)
        return cached

    def _is_dir(self, path: str) -> bool:
        cached = self._dir_cache.get(path)
        if cached is None:
            cached = self._dir_cache[path] = os.path.isdir(path)
        return cached


def _package_name(specifier: str) -> str:
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) > 1:
        return "/".join(parts[:2])
    return parts[0]


def _posix(path: str) -> str:
    return path.replace("\\", "/")


def _is_windows_abs(path: str) -> bool:
    return len(path) > 2 and path[1] == ":" and path[2] == "/"
