"""Tests for the web API."""

import pytest
from pathlib import Path

# Only run if fastapi/httpx are installed
try:
    from fastapi.testclient import TestClient
    from no_cycle_import.web import create_app
    from no_cycle_import.web.state import AppState, StreamSession, state
    from no_cycle_import.analysis.session import CheckSession
    from no_cycle_import.config import AnalysisConfig
    HAS_WEB = True
except ImportError:
    HAS_WEB = False

pytestmark = pytest.mark.skipif(not HAS_WEB, reason="web dependencies not installed")

try:
    from no_cycle_import.scanner.treesitter_scanner import TreeSitterImportScanner
    TreeSitterImportScanner().scan_source("", Path("empty.js"))
    HAS_TREESITTER = True
except Exception:
    HAS_TREESITTER = False

FIXTURES = Path(__file__).parent / "fixtures"
PROJECT = FIXTURES / "project"


@pytest.fixture
def client():
    state.clear()
    app = create_app(allowed_root=FIXTURES)
    yield TestClient(app)
    state.clear()


def _open(client, **options) -> str:
    res = client.post("/api/sessions", json={"root": str(PROJECT), **options})
    assert res.status_code == 200
    return res.json()["session_id"]


def _import(client, session_id, file, specifier, **extra):
    res = client.post(f"/api/sessions/{session_id}/imports",
                      json={"file": file, "specifier": specifier, **extra})
    assert res.status_code == 200
    return res.json()["cycle"]


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


class TestCheck:
    def test_check_fixture_project(self, client):
        res = client.post("/api/check", json={"path": str(PROJECT), "parser": "regex"})
        assert res.status_code == 200
        data = res.json()
        assert data["files_scanned"] == 11
        assert [c["modules"] for c in data["cycles"]] == [
            ["src/a.js", "src/b.js", "src/c.js", "src/a.js"],
            ["src/lib/index.js", "src/lib/x.js", "src/lib/index.js"],
        ]
        assert [d["code"] for d in data["diagnostics"]] == ["unresolved-import"]
        assert "graph" not in data

    @pytest.mark.skipif(not HAS_TREESITTER, reason="tree-sitter grammars not available")
    def test_check_with_default_parser(self, client):
        res = client.post("/api/check", json={"path": str(PROJECT)})
        assert res.status_code == 200
        assert [c["modules"][0] for c in res.json()["cycles"]] == ["src/a.js", "src/lib/index.js"]

    def test_check_with_graph(self, client):
        res = client.post("/api/check", json={
            "path": str(PROJECT), "parser": "regex", "include_graph": True, "mode": "batch",
        })
        data = res.json()
        assert len(data["cycles"]) == 2
        assert data["graph"]["nodes"]

    def test_check_nonexistent_path(self, client):
        res = client.post("/api/check", json={"path": "/nonexistent/path"})
        assert res.status_code == 404

    def test_check_file_path(self, client):
        res = client.post("/api/check", json={"path": str(PROJECT / "src" / "a.js")})
        assert res.status_code == 400

    def test_check_bad_parser(self, client):
        res = client.post("/api/check", json={"path": str(PROJECT), "parser": "babel"})
        assert res.status_code == 400

    def test_check_bad_kind(self, client):
        res = client.post("/api/check", json={"path": str(PROJECT), "edge_kinds": ["weird"]})
        assert res.status_code == 422


class TestSessions:
    def test_cycle_reported_on_closing_edge(self, client):
        sid = _open(client)
        assert _import(client, sid, "src/a.js", "./b") is None
        assert _import(client, sid, "src/b.js", "./c.js") is None
        cycle = _import(client, sid, "src/c.js", "./a", line=2)
        assert cycle["modules"] == ["src/a.js", "src/b.js", "src/c.js", "src/a.js"]
        assert cycle["location"] == {"file": "src/c.js", "line": 2, "column": 0}

    def test_duplicate_import_not_reported_twice(self, client):
        sid = _open(client)
        _import(client, sid, "src/a.js", "./b")
        _import(client, sid, "src/b.js", "./c")
        assert _import(client, sid, "src/c.js", "./a") is not None
        assert _import(client, sid, "src/c.js", "./a.js") is None
        summary = client.get(f"/api/sessions/{sid}").json()
        assert len(summary["cycles"]) == 1
        assert summary["edges"] == 3

    def test_self_import(self, client):
        sid = _open(client)
        cycle = _import(client, sid, "src/d.js", "./d")
        assert cycle["length"] == 1
        assert cycle["modules"] == ["src/d.js", "src/d.js"]

    def test_unresolved_import_is_warning(self, client):
        sid = _open(client)
        assert _import(client, sid, "src/a.js", "./nope") is None
        summary = client.get(f"/api/sessions/{sid}").json()
        assert summary["cycles"] == []
        assert summary["diagnostics"][0]["code"] == "unresolved-import"
        assert summary["diagnostics"][0]["severity"] == "warning"

    def test_untracked_kind_is_ignored(self, client):
        sid = _open(client)
        _import(client, sid, "src/g.js", "./h", kind="dynamic")
        assert _import(client, sid, "src/h.js", "./g") is None

    def test_batch_session_reports_on_finish(self, client):
        sid = _open(client, mode="batch")
        _import(client, sid, "src/a.js", "./b")
        _import(client, sid, "src/b.js", "./c")
        assert _import(client, sid, "src/c.js", "./a") is None

        res = client.post(f"/api/sessions/{sid}/finish")
        assert res.status_code == 200
        data = res.json()
        assert data["finished"] is True
        assert len(data["cycles"]) == 1
        assert data["mode"] == "batch"

    def test_import_after_finish_conflicts(self, client):
        sid = _open(client)
        client.post(f"/api/sessions/{sid}/finish")
        res = client.post(f"/api/sessions/{sid}/imports", json={"file": "src/a.js", "specifier": "./b"})
        assert res.status_code == 409

    def test_list_and_delete(self, client):
        sid = _open(client)
        listed = client.get("/api/sessions").json()["sessions"]
        assert [s["session_id"] for s in listed] == [sid]

        assert client.delete(f"/api/sessions/{sid}").status_code == 200
        assert client.get(f"/api/sessions/{sid}").status_code == 404
        assert client.delete(f"/api/sessions/{sid}").status_code == 404

    def test_unknown_session(self, client):
        res = client.post("/api/sessions/missing/imports", json={"file": "a.js", "specifier": "./b"})
        assert res.status_code == 404

    def test_session_root_must_exist(self, client):
        res = client.post("/api/sessions", json={"root": "/nonexistent/root"})
        assert res.status_code == 404


class TestPathSafety:
    def test_path_traversal_blocked(self, client):
        res = client.post("/api/check", json={"path": str(PROJECT / ".." / "..")})
        assert res.status_code == 403

    def test_session_outside_allowed_root(self, client):
        res = client.post("/api/sessions", json={"root": str(FIXTURES.parent)})
        assert res.status_code == 403

    def test_allowed_root_itself_is_accepted(self, client):
        res = client.post("/api/check", json={"path": str(FIXTURES), "parser": "regex"})
        assert res.status_code == 200

    def test_default_allowed_root_is_home(self):
        create_app()
        assert state.allowed_root == Path.home().resolve()


class TestSessionEviction:
    def _stream(self) -> "StreamSession":
        return StreamSession(session=CheckSession(AnalysisConfig(source_dir=PROJECT)))

    def test_expired_finished_sessions_are_evicted(self):
        app_state = AppState(finished_ttl=60)
        old, open_ = self._stream(), self._stream()
        app_state.add_session(old)
        app_state.add_session(open_)
        app_state.mark_finished(old)
        old.finished_at -= 120

        app_state.add_session(self._stream())
        assert app_state.get_session(old.id) is None
        assert app_state.get_session(open_.id) is open_

    def test_recently_finished_session_is_kept(self):
        app_state = AppState(finished_ttl=60)
        stream = self._stream()
        app_state.add_session(stream)
        app_state.mark_finished(stream)
        assert stream.finished is True
        assert [s.id for s in app_state.list_sessions()] == [stream.id]

    def test_finish_endpoint_marks_session(self, client):
        sid = _open(client)
        client.post(f"/api/sessions/{sid}/finish")
        assert state.get_session(sid).finished_at is not None
