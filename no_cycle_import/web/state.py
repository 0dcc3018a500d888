"""In-memory state for the HTTP service. No database required."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from no_cycle_import.analysis.session import CheckSession

logger = logging.getLogger(__name__)

# Finished sessions are dropped this long after finishing
FINISHED_SESSION_TTL = 3600.0


@dataclass
class StreamSession:
    """A host-driven run: imports arrive one at a time over HTTP."""
    session: CheckSession
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    finished: bool = False
    finished_at: float | None = None  # time.monotonic() when finished


class AppState:
    """Singleton in-memory state shared by all API routes."""

    def __init__(self, finished_ttl: float = FINISHED_SESSION_TTL):
        self._sessions: dict[str, StreamSession] = {}
        self._lock = threading.Lock()
        self.finished_ttl = finished_ttl
        # Directories outside this root are refused by the API
        self.allowed_root: Path = Path.home().resolve()

    def add_session(self, stream: StreamSession) -> None:
        with self._lock:
            self._evict_expired()
            self._sessions[stream.id] = stream

    def get_session(self, session_id: str) -> StreamSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def list_sessions(self) -> list[StreamSession]:
        with self._lock:
            self._evict_expired()
            return list(self._sessions.values())

    def mark_finished(self, stream: StreamSession) -> None:
        with self._lock:
            if not stream.finished:
                stream.finished = True
                stream.finished_at = time.monotonic()

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def _evict_expired(self) -> None:
        now = time.monotonic()
        expired = [
            sid for sid, s in self._sessions.items()
            if s.finished_at is not None and now - s.finished_at > self.finished_ttl
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Evicted %d finished session(s)", len(expired))


# Module-level singleton shared by all routers
state = AppState()
