"""
Session Store - JSON file persistence for interview sessions

Record shape:
    {
        "completed_sessions": [SessionData, ...],
        "current_session": SessionData | null
    }
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import SessionData

logger = logging.getLogger(__name__)


class SessionStore:
    """
    File-backed store of completed sessions plus at most one
    in-progress session.

    Usage:
        store = SessionStore("data/sessions.json")
        store.save_current(session)
        store.archive(session)
    """

    def __init__(self, path: str):
        """
        Initialize store.

        Args:
            path: JSON file location (parent directories are created on write)
        """
        self.path = Path(path)
        self._lock = threading.Lock()

    # ========================================================================
    # Reads
    # ========================================================================

    def get_current(self) -> Optional[SessionData]:
        """The in-progress session, if one was saved"""
        with self._lock:
            record = self._read()
        current = record.get("current_session")
        return SessionData.from_dict(current) if current else None

    def list_completed(self) -> List[SessionData]:
        """All archived sessions, oldest first"""
        with self._lock:
            record = self._read()
        return [SessionData.from_dict(s) for s in record.get("completed_sessions", [])]

    # ========================================================================
    # Writes
    # ========================================================================

    def save_current(self, session: SessionData) -> bool:
        """
        Save or replace the in-progress session.

        Returns:
            True if successful
        """
        with self._lock:
            record = self._read()
            record["current_session"] = session.to_dict()
            return self._write(record)

    def archive(self, session: SessionData) -> bool:
        """
        Append a stopped session to the completed list and clear the
        current session.

        Returns:
            True if successful
        """
        if session.end_time is None:
            logger.warning(f"[STORE] Refusing to archive session still recording: {session.candidate_name}")
            return False

        with self._lock:
            record = self._read()
            record.setdefault("completed_sessions", []).append(session.to_dict())
            record["current_session"] = None
            saved = self._write(record)

        if saved:
            logger.info(f"[STORE] Archived session for {session.candidate_name}")
        return saved

    def clear_current(self) -> bool:
        """Drop the in-progress session without archiving it"""
        with self._lock:
            record = self._read()
            record["current_session"] = None
            return self._write(record)

    # ========================================================================
    # File I/O
    # ========================================================================

    def _read(self) -> Dict[str, Any]:
        empty = {"completed_sessions": [], "current_session": None}

        if not self.path.exists():
            return empty

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                record = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"[STORE] Could not read {self.path}, starting empty: {e}")
            return empty

        if not isinstance(record, dict):
            logger.error(f"[STORE] Unexpected record in {self.path}, starting empty")
            return empty

        record.setdefault("completed_sessions", [])
        record.setdefault("current_session", None)
        return record

    def _write(self, record: Dict[str, Any]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            # Temp file + rename: readers see the old or the new record
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
            return True

        except OSError as e:
            logger.error(f"[STORE] Failed to write {self.path}: {e}")
            return False
