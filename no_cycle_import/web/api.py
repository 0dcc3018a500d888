"""FastAPI routes: one-shot directory checks and streamed import sessions."""

from __future__ import annotations

import asyncio
from pathlib import Path

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from no_cycle_import.config import AnalysisConfig
from no_cycle_import.errors import ConfigError
from no_cycle_import.models import DetectionMode, ImportKind, SourceLocation
from no_cycle_import.pipeline import run_check
from no_cycle_import.reporter import diagnostic_to_dict, graph_to_dict, report_to_dict
from no_cycle_import.analysis.session import CheckSession
from no_cycle_import.web.state import StreamSession, state

router = APIRouter(prefix="/api")


# --- Request / Response models ---

class Options(BaseModel):
    mode: DetectionMode = DetectionMode.INCREMENTAL
    include_external: bool = False
    edge_kinds: list[ImportKind] = [ImportKind.STATIC, ImportKind.REEXPORT]
    aliases: dict[str, str] = {}
    parser: str = "treesitter"


class CheckRequest(Options):
    path: str
    include_graph: bool = False


class SessionRequest(Options):
    root: str


class ImportRequest(BaseModel):
    file: str
    specifier: str
    line: int = 0
    column: int = 0
    kind: ImportKind = ImportKind.STATIC


# --- Helpers ---

def _validate_dir(p: str) -> Path:
    """Ensure path exists, is a directory, and is under the allowed root."""
    resolved = Path(p).expanduser().resolve()
    if not resolved.exists():
        raise HTTPException(404, f"Path not found: {resolved}")
    allowed = state.allowed_root
    if not resolved.is_relative_to(allowed):
        raise HTTPException(403, f"Path must be under {allowed}")
    if not resolved.is_dir():
        raise HTTPException(400, "Path must be a directory")
    return resolved


def _config(source_dir: Path, options: Options) -> AnalysisConfig:
    try:
        return AnalysisConfig(
            source_dir=source_dir,
            mode=options.mode,
            include_external=options.include_external,
            edge_kinds=frozenset(options.edge_kinds),
            aliases=dict(options.aliases),
            parser=options.parser,
        )
    except ConfigError as e:
        raise HTTPException(400, str(e))


def _get_stream(session_id: str) -> StreamSession:
    stream = state.get_session(session_id)
    if not stream:
        raise HTTPException(404, "Session not found")
    return stream


def _session_summary(stream: StreamSession) -> dict:
    session = stream.session
    root = session.resolver.root
    return {
        "session_id": stream.id,
        "root": root,
        "mode": session.mode.value,
        "finished": stream.finished,
        "modules": len(session.graph.nodes),
        "edges": session.graph.edge_count,
        "cycles": [report_to_dict(r, root) for r in session.reports],
        "diagnostics": [
            diagnostic_to_dict(d, root) for d in session.diagnostics if d.code != "import-cycle"
        ],
    }


# --- One-shot check ---

@router.post("/check")
async def check_directory(req: CheckRequest):
    source = _validate_dir(req.path)
    config = _config(source, req)
    result = await asyncio.to_thread(run_check, config)
    response = {
        "root": result.root,
        "files_scanned": result.files_scanned,
        "modules": len(result.graph.nodes),
        "edges": result.graph.edge_count,
        "cycles": [report_to_dict(r, result.root) for r in result.reports],
        "diagnostics": [
            diagnostic_to_dict(d, result.root) for d in result.diagnostics if d.code != "import-cycle"
        ],
    }
    if req.include_graph:
        response["graph"] = graph_to_dict(result.graph, result.root)
    return response


# --- Streamed sessions ---

@router.post("/sessions")
async def create_session(req: SessionRequest):
    root = _validate_dir(req.root)
    stream = StreamSession(session=CheckSession(_config(root, req)))
    state.add_session(stream)
    return _session_summary(stream)


@router.get("/sessions")
async def list_sessions():
    return {
        "sessions": [
            {
                "session_id": s.id,
                "root": s.session.resolver.root,
                "mode": s.session.mode.value,
                "finished": s.finished,
                "timestamp": s.timestamp,
            }
            for s in state.list_sessions()
        ]
    }


@router.get("/sessions/{session_id}")
async def get_session(session_id: str):
    return _session_summary(_get_stream(session_id))


@router.post("/sessions/{session_id}/imports")
async def add_import(session_id: str, req: ImportRequest):
    stream = _get_stream(session_id)
    if stream.finished:
        raise HTTPException(409, "Session already finished")
    session = stream.session
    source = session.module_for_path(req.file)
    location = SourceLocation(file=source.key, line=req.line, column=req.column)
    # Resolution touches the filesystem and waits on the session lock
    report = await asyncio.to_thread(session.add_import, source, req.specifier, location, req.kind)
    root = session.resolver.root
    return {
        "session_id": stream.id,
        "cycle": report_to_dict(report, root) if report else None,
    }


@router.post("/sessions/{session_id}/finish")
async def finish_session(session_id: str):
    stream = _get_stream(session_id)
    await asyncio.to_thread(stream.session.finish)
    state.mark_finished(stream)
    return _session_summary(stream)


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    if not state.delete_session(session_id):
        raise HTTPException(404, "Session not found")
    return {"deleted": session_id}
