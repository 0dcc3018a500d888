"""Exception types raised by the resolver, graph and config layers."""

from __future__ import annotations

import enum


class NoCycleImportError(Exception):
    """Base class for all errors raised by no-cycle-import."""


class ResolutionErrorKind(enum.Enum):
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    INVALID = "invalid"


class ResolutionError(NoCycleImportError):
    """A module specifier could not be turned into a module id.

    Always recoverable: the import is skipped and reported as a warning.
    """

    kind: ResolutionErrorKind = ResolutionErrorKind.NOT_FOUND
    code = "unresolved-import"

    def __init__(self, specifier: str, importer: str, detail: str = ""):
        self.specifier = specifier
        self.importer = importer
        self.detail = detail
        message = f"Cannot resolve {specifier!r} from {importer}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ModuleNotFound(ResolutionError):
    kind = ResolutionErrorKind.NOT_FOUND


class AmbiguousModule(ResolutionError):
    kind = ResolutionErrorKind.AMBIGUOUS
    code = "ambiguous-import"


class InvalidSpecifier(ResolutionError):
    kind = ResolutionErrorKind.INVALID
    code = "invalid-import"


class GraphInvariantError(NoCycleImportError, RuntimeError):
    """The dependency graph is internally inconsistent. This is a bug, not user error."""


class ConfigError(NoCycleImportError, ValueError):
    """A configuration file could not be read or holds invalid values."""
