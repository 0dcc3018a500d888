"""Tests for configuration loading."""

import logging

import pytest
from pathlib import Path

from no_cycle_import.config import (
    AnalysisConfig, find_config_file, load_config,
)
from no_cycle_import.errors import ConfigError
from no_cycle_import.models import DetectionMode, ImportKind


class TestAnalysisConfig:
    def test_defaults(self):
        config = AnalysisConfig()
        assert config.mode is DetectionMode.INCREMENTAL
        assert config.edge_kinds == {ImportKind.STATIC, ImportKind.REEXPORT}
        assert config.include_external is False
        assert ".ts" in config.extensions
        assert "node_modules" in config.skip_dirs

    def test_string_values_are_coerced(self):
        config = AnalysisConfig(source_dir="src", mode="batch", edge_kinds=["static", "dynamic"],
                                extensions=["js", ".ts"])
        assert config.source_dir == Path("src")
        assert config.mode is DetectionMode.BATCH
        assert config.edge_kinds == {ImportKind.STATIC, ImportKind.DYNAMIC}
        assert config.extensions == (".js", ".ts")

    @pytest.mark.parametrize("kwargs", [
        {"mode": "eventually"},
        {"edge_kinds": ["static", "weird"]},
        {"parser": "babel"},
        {"jobs": 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigError):
            AnalysisConfig(**kwargs)

    def test_to_dict(self):
        data = AnalysisConfig(mode="batch").to_dict()
        assert data["mode"] == "batch"
        assert data["edge_kinds"] == ["reexport", "static"]
        assert isinstance(data["extensions"], list)

    def test_from_dict_ignores_unknown_keys(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = AnalysisConfig.from_dict({"mode": "batch", "colour": "red"})
        assert config.mode is DetectionMode.BATCH
        assert "colour" in caplog.text

    def test_from_dict_bad_type(self):
        with pytest.raises(ConfigError):
            AnalysisConfig.from_dict({"jobs": "many"})


class TestLoading:
    def test_load_yaml(self, tmp_path):
        path = tmp_path / "cfg.yml"
        path.write_text(
            "mode: batch\n"
            "include_external: true\n"
            "edge_kinds: [static, reexport, require]\n"
            "aliases:\n"
            "  '@/': src/\n"
        )
        config = AnalysisConfig.load(path)
        assert config.mode is DetectionMode.BATCH
        assert config.include_external is True
        assert ImportKind.REQUIRE in config.edge_kinds
        assert config.aliases == {"@/": "src/"}

    def test_overrides_win(self, tmp_path):
        path = tmp_path / "cfg.yml"
        path.write_text("mode: batch\njobs: 2\n")
        config = AnalysisConfig.load(path, mode="incremental", jobs=None)
        assert config.mode is DetectionMode.INCREMENTAL
        assert config.jobs == 2

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "cfg.yml"
        path.write_text("")
        assert AnalysisConfig.load(path).mode is DetectionMode.INCREMENTAL

    @pytest.mark.parametrize("content", ["mode: [unclosed\n", "- just\n- a list\n"])
    def test_bad_file(self, tmp_path, content):
        path = tmp_path / "cfg.yml"
        path.write_text(content)
        with pytest.raises(ConfigError):
            AnalysisConfig.load(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            AnalysisConfig.load(tmp_path / "absent.yml")

    def test_save_then_load(self, tmp_path):
        original = AnalysisConfig(mode="batch", aliases={"~/": "app/"}, jobs=3)
        path = tmp_path / "saved.yml"
        original.save(path)
        loaded = AnalysisConfig.load(path)
        assert loaded.mode is DetectionMode.BATCH
        assert loaded.aliases == {"~/": "app/"}
        assert loaded.jobs == 3


class TestDiscovery:
    def test_find_config_file(self, tmp_path):
        assert find_config_file(tmp_path) is None
        (tmp_path / ".no-cycle-import.yaml").write_text("mode: batch\n")
        assert find_config_file(tmp_path).name == ".no-cycle-import.yaml"

    def test_yml_preferred(self, tmp_path):
        (tmp_path / ".no-cycle-import.yaml").write_text("mode: batch\n")
        (tmp_path / ".no-cycle-import.yml").write_text("mode: incremental\n")
        assert find_config_file(tmp_path).name == ".no-cycle-import.yml"

    def test_load_config_uses_discovered_file(self, tmp_path):
        (tmp_path / ".no-cycle-import.yml").write_text("mode: batch\nparser: regex\n")
        config = load_config(tmp_path)
        assert config.mode is DetectionMode.BATCH
        assert config.parser == "regex"
        assert config.source_dir == tmp_path

    def test_load_config_without_file(self, tmp_path):
        config = load_config(tmp_path, jobs=4, mode=None)
        assert config.jobs == 4
        assert config.mode is DetectionMode.INCREMENTAL
