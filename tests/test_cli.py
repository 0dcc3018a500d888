"""Tests for the click command line."""

import json

import pytest
from pathlib import Path
from click.testing import CliRunner

from no_cycle_import import __version__
from no_cycle_import.cli import cli

# Only run tree-sitter cases if the grammar pack is installed
try:
    from no_cycle_import.scanner.treesitter_scanner import TreeSitterImportScanner
    TreeSitterImportScanner().scan_source("", Path("empty.js"))
    HAS_TREESITTER = True
except Exception:
    HAS_TREESITTER = False

FIXTURES = Path(__file__).parent / "fixtures"
PROJECT = FIXTURES / "project"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def acyclic(tmp_path):
    (tmp_path / "a.js").write_text('import "./b";\n')
    (tmp_path / "b.js").write_text("export const b = 1;\n")
    return tmp_path


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_check_reports_cycles(runner):
    result = runner.invoke(cli, ["check", str(PROJECT), "--parser", "regex"])
    assert result.exit_code == 1
    assert "Cyclic import: src/a.js -> src/b.js -> src/c.js -> src/a.js" in result.output
    assert "Found 2 import cycle(s)." in result.output
    assert "11 file(s)" in result.output


@pytest.mark.skipif(not HAS_TREESITTER, reason="tree-sitter grammars not available")
def test_check_default_parser(runner):
    result = runner.invoke(cli, ["check", str(PROJECT)])
    assert result.exit_code == 1
    assert "Cyclic import: src/lib/index.js -> src/lib/x.js -> src/lib/index.js" in result.output
    assert "Found 2 import cycle(s)." in result.output


def test_check_clean_project(runner, acyclic):
    result = runner.invoke(cli, ["check", str(acyclic), "--parser", "regex"])
    assert result.exit_code == 0
    assert "No import cycles found." in result.output


def test_check_json(runner):
    result = runner.invoke(cli, ["check", str(PROJECT), "--parser", "regex", "--format", "json"])
    assert result.exit_code == 1
    data = json.loads(result.output)
    assert len(data["cycles"]) == 2
    assert any(d["code"] == "unresolved-import" for d in data["diagnostics"])


def test_check_kind_option(runner):
    result = runner.invoke(cli, [
        "check", str(PROJECT), "--parser", "regex", "-f", "json",
        "-k", "static", "-k", "reexport", "-k", "dynamic",
    ])
    data = json.loads(result.output)
    assert len(data["cycles"]) == 3


def test_check_batch_mode(runner):
    result = runner.invoke(cli, ["check", str(PROJECT), "--parser", "regex", "--mode", "batch"])
    assert result.exit_code == 1
    assert "Found 2 import cycle(s)." in result.output


def test_check_reads_config_file(runner, tmp_path):
    (tmp_path / "a.js").write_text('import "./b";\n')
    (tmp_path / "b.js").write_text('const a = require("./a");\n')
    config = tmp_path / "cfg.yml"
    config.write_text("parser: regex\nedge_kinds: [static, require]\n")

    assert runner.invoke(cli, ["check", str(tmp_path), "--parser", "regex"]).exit_code == 0
    result = runner.invoke(cli, ["check", str(tmp_path), "-c", str(config)])
    assert result.exit_code == 1
    assert "Cyclic import: a.js -> b.js -> a.js" in result.output


def test_bad_config_is_usage_error(runner, tmp_path):
    config = tmp_path / "cfg.yml"
    config.write_text("mode: sometimes\n")
    result = runner.invoke(cli, ["check", str(tmp_path), "-c", str(config)])
    assert result.exit_code == 1
    assert "Invalid mode value" in result.output


def test_graph_json(runner):
    result = runner.invoke(cli, ["graph", str(PROJECT), "--parser", "regex"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    ids = {n["id"] for n in data["nodes"]}
    assert "src/a.js" in ids
    assert "external:lodash" in ids
    assert {"from": "src/a.js", "to": "src/b.js", "imports": 1, "specifier": "./b",
            "kind": "static"} in data["edges"]


def test_graph_dot(runner):
    result = runner.invoke(cli, ["graph", str(PROJECT), "--parser", "regex", "-f", "dot"])
    assert result.exit_code == 0
    assert result.output.startswith("digraph imports {")
    assert "[color=red]" in result.output
