"""
Provenance log storage.

Each session gets an append-only JSONL history of log snapshots, so the
chain of custody can be replayed state by state. Default location is
~/.ledger/ (override with LEDGER_HOME):

    ~/.ledger/2026-10-18/ledger-xxxx-yyyyyyyy.jsonl

Thread-safe and process-safe. Uses threading.RLock for in-process
concurrency and O_APPEND + fcntl.flock for cross-process safety.
"""
from __future__ import annotations

import os
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from ledger.config import ledger_home
from ledger.provenance import (
    ProvenanceLog,
    mark_exported,
    provenance_from_json,
    provenance_to_json,
)
from ledger.session import check_session_id

# O_APPEND writes under this size are atomic on POSIX. Larger writes get flock.
_PIPE_BUF = 4096 if sys.platform != "win32" else 512

# Advisory file locking -- POSIX only, no-op on Windows
try:
    import fcntl
    _HAS_FCNTL = True
except ImportError:
    _HAS_FCNTL = False


class ProvenanceStore:
    """
    Persistent, append-only history of provenance logs.

    Snapshots are never rewritten. The latest line of a session file is the
    session's current state; earlier lines are its history.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        if base_dir is None:
            base_dir = ledger_home()
        self.base_dir = Path(base_dir)
        self._lock = threading.RLock()

    def _find_session_file(self, session_id: str) -> Optional[Path]:
        """Find an existing session file across all date directories."""
        if not self.base_dir.exists():
            return None
        for day_dir in self.base_dir.iterdir():
            if not day_dir.is_dir():
                continue
            session_file = day_dir / f"{session_id}.jsonl"
            if session_file.exists():
                return session_file
        return None

    def session_file(self, session_id: str) -> Path:
        """Path of the session's history file, creating today's directory if new."""
        check_session_id(session_id)
        with self._lock:
            existing = self._find_session_file(session_id)
            if existing is not None:
                return existing
            today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
            day_dir = self.base_dir / today
            day_dir.mkdir(parents=True, exist_ok=True)
            return day_dir / f"{session_id}.jsonl"

    @staticmethod
    def _write_all(fd: int, data: bytes) -> None:
        """Write all bytes, retrying on short writes."""
        mv = memoryview(data)
        while mv:
            n = os.write(fd, mv)
            mv = mv[n:]

    def _write_line(self, path: Path, line_bytes: bytes) -> None:
        """Append a single JSONL line. Thread-lock must be held by caller."""
        fd = os.open(str(path), os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
        try:
            if len(line_bytes) >= _PIPE_BUF and _HAS_FCNTL:
                fcntl.flock(fd, fcntl.LOCK_EX)
                try:
                    self._write_all(fd, line_bytes)
                finally:
                    fcntl.flock(fd, fcntl.LOCK_UN)
            else:
                self._write_all(fd, line_bytes)
        finally:
            os.close(fd)

    def append(self, log: ProvenanceLog) -> Path:
        """Append a snapshot of *log* to its session history."""
        with self._lock:
            path = self.session_file(log.session_id)
            line = provenance_to_json(log, indent=None) + "\n"
            self._write_line(path, line.encode("utf-8"))
            logger.debug("Stored snapshot of {} in {}", log.session_id, path)
            return path

    def history(self, session_id: str) -> List[ProvenanceLog]:
        """Replay every stored snapshot of a session, oldest first."""
        session_file = self._find_session_file(check_session_id(session_id))
        if session_file is None:
            return []
        snapshots = []
        with open(session_file, encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    snapshots.append(provenance_from_json(line))
        return snapshots

    def latest(self, session_id: str) -> Optional[ProvenanceLog]:
        snapshots = self.history(session_id)
        return snapshots[-1] if snapshots else None

    def export(self, log: ProvenanceLog, path: Path) -> ProvenanceLog:
        """Seal *log*, record the sealed snapshot, and write the artifact to *path*."""
        sealed = mark_exported(log)
        with self._lock:
            self.append(sealed)
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(provenance_to_json(sealed) + "\n", encoding="utf-8")
        logger.info("Exported provenance log {} to {}", sealed.session_id, path)
        return sealed

    def list_sessions(self, limit: int = 20) -> List[Dict[str, Any]]:
        """List recent sessions with metadata."""
        sessions: List[Dict[str, Any]] = []
        if not self.base_dir.exists():
            return sessions

        for day_dir in sorted(self.base_dir.iterdir(), reverse=True):
            if not day_dir.is_dir():
                continue
            for session_file in sorted(day_dir.glob("*.jsonl"), reverse=True):
                stat = session_file.stat()
                sessions.append({
                    "session_id": session_file.stem,
                    "date": day_dir.name,
                    "path": str(session_file),
                    "size_bytes": stat.st_size,
                    "modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
                })
                if len(sessions) >= limit:
                    return sessions
        return sessions


__all__ = ["ProvenanceStore"]
