"""Analysis configuration, loadable from a YAML file."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from no_cycle_import.errors import ConfigError
from no_cycle_import.models import DetectionMode, ImportKind

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (".no-cycle-import.yml", ".no-cycle-import.yaml")

DEFAULT_EXTENSIONS = (".js", ".mjs", ".cjs", ".jsx", ".ts", ".tsx", ".mts", ".cts")


@dataclass
class AnalysisConfig:
    """Configuration for one cycle-check run."""

    source_dir: Path = field(default_factory=lambda: Path("."))

    # Detection
    mode: DetectionMode = DetectionMode.INCREMENTAL
    include_external: bool = False
    edge_kinds: frozenset[ImportKind] = field(
        default_factory=lambda: frozenset({ImportKind.STATIC, ImportKind.REEXPORT})
    )

    # Resolution
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    aliases: dict[str, str] = field(default_factory=dict)  # "@/" -> "src/"
    case_sensitive: bool = True

    # Scanning
    parser: str = "treesitter"  # "treesitter" | "regex"
    jobs: int = 1
    skip_dirs: list[str] = field(default_factory=lambda: [
        "node_modules", ".git", "dist", "build", "coverage",
        ".next", ".nuxt", ".cache", "out", "*.min.js",
    ])

    def __post_init__(self):
        self.source_dir = Path(self.source_dir)
        if isinstance(self.mode, str):
            self.mode = _enum_value(DetectionMode, self.mode, "mode")
        self.edge_kinds = frozenset(
            _enum_value(ImportKind, k, "edge_kinds") if isinstance(k, str) else k
            for k in self.edge_kinds
        )
        self.extensions = tuple(
            ext if ext.startswith(".") else f".{ext}" for ext in self.extensions
        )
        if self.parser not in ("treesitter", "regex"):
            raise ConfigError(f"Unknown parser {self.parser!r}; expected 'treesitter' or 'regex'")
        if self.jobs < 1:
            raise ConfigError("jobs must be at least 1")

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["source_dir"] = str(self.source_dir)
        data["mode"] = self.mode.value
        data["edge_kinds"] = sorted(k.value for k in self.edge_kinds)
        data["extensions"] = list(self.extensions)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisConfig:
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        unknown = set(data) - valid_fields
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        try:
            return cls(**filtered)
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @classmethod
    def load(cls, filepath: Path, **overrides: Any) -> AnalysisConfig:
        """Load config from a YAML file; keyword overrides win over file values."""
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"Cannot read config file {filepath}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {filepath}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {filepath} must contain a mapping")
        data.update({k: v for k, v in overrides.items() if v is not None})
        logger.debug("Loaded config from %s", filepath)
        return cls.from_dict(data)

    def save(self, filepath: Path) -> None:
        data = self.to_dict()
        data.pop("source_dir", None)
        with open(filepath, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=True)


def find_config_file(source_dir: Path) -> Path | None:
    """Return the config file in ``source_dir``, if there is one."""
    for name in CONFIG_FILENAMES:
        candidate = Path(source_dir) / name
        if candidate.is_file():
            return candidate
    return None


def load_config(source_dir: Path, config_file: Path | None = None, **overrides: Any) -> AnalysisConfig:
    """Build the config for ``source_dir``: explicit file, else discovered file, else defaults."""
    overrides["source_dir"] = source_dir
    path = config_file or find_config_file(source_dir)
    if path is None:
        return AnalysisConfig.from_dict({k: v for k, v in overrides.items() if v is not None})
    return AnalysisConfig.load(path, **overrides)


def _enum_value(enum_cls, value: str, name: str):
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(e.value for e in enum_cls)
        raise ConfigError(f"Invalid {name} value {value!r}; expected one of: {choices}") from None
