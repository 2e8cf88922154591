"""
core/logging/logic/logger.py
============================

Thread-safe audit logger with a SQLite backend.

One instance is created by the composition root (``AppContext``) and
shared; it reuses a single database connection guarded by a lock.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.common.db_interface import SQLiteRepository
from core.helpers.date_time_helper import utc_now_iso
from core.logging.models.log_entry import LogEntry


class AuditLogger:
    """Persists ``LogEntry`` rows and answers filtered queries."""

    def __init__(self, db_path: Path | str) -> None:
        self._lock = threading.Lock()
        self._repo = SQLiteRepository(db_path)
        self._ensure_db()

    @property
    def db_path(self) -> Path | str:
        return self._repo.db_path

    def close(self) -> None:
        """Close the database connection and release resources."""
        with self._lock:
            self._repo.close()

    # ------------------------------------------------------------------ #
    #  Public API: log                                                   #
    # ------------------------------------------------------------------ #
    def log(
        self,
        feature: str,
        event: str,
        *,
        actor: Optional[str] = None,
        level: str = "INFO",
        reference_id: Optional[str] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Persist one audit entry. ``actor`` defaults to "system"."""
        with self._lock:
            self._repo.conn.execute(
                """
                INSERT INTO audit_log
                    (timestamp, level, actor, feature, event,
                     reference_id, message, details)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    utc_now_iso(),
                    level.upper(),
                    actor or "system",
                    feature,
                    event,
                    reference_id,
                    message,
                    json.dumps(details or {}, default=str, sort_keys=True),
                ),
            )

    # ------------------------------------------------------------------ #
    #  Fetch / Query / Clear                                             #
    # ------------------------------------------------------------------ #
    def fetch_logs(self, limit: int = 100) -> List[LogEntry]:
        return self.query_logs(limit=limit)

    def query_logs(
        self,
        *,
        actor: Optional[str] = None,
        feature: Optional[str] = None,
        event: Optional[str] = None,
        reference_id: Optional[str] = None,
        level: Optional[str] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        limit: int = 1_000,
    ) -> List[LogEntry]:
        query = "SELECT * FROM audit_log WHERE 1=1"
        params: list[object] = []

        if actor is not None:
            query += " AND actor = ?"
            params.append(actor)
        if feature is not None:
            query += " AND feature = ?"
            params.append(feature)
        if event is not None:
            query += " AND event = ?"
            params.append(event)
        if reference_id is not None:
            query += " AND reference_id = ?"
            params.append(reference_id)
        if level is not None:
            query += " AND level = ?"
            params.append(level.upper())
        if start_time is not None:
            query += " AND timestamp >= ?"
            params.append(start_time)
        if end_time is not None:
            query += " AND timestamp <= ?"
            params.append(end_time)

        # id breaks ties between entries written within the same second
        query += " ORDER BY timestamp DESC, id DESC LIMIT ?"
        params.append(limit)

        with self._lock:
            rows = self._repo.conn.execute(query, params).fetchall()
        return [LogEntry.from_row(dict(row)) for row in rows]

    def clear_logs(self) -> None:
        with self._lock:
            self._repo.conn.execute("DELETE FROM audit_log")

    # ------------------------------------------------------------------ #
    #  Internal helpers                                                  #
    # ------------------------------------------------------------------ #
    def _ensure_db(self) -> None:
        with self._lock:
            self._repo.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS audit_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    level TEXT NOT NULL DEFAULT 'INFO',
                    actor TEXT,
                    feature TEXT NOT NULL,
                    event TEXT NOT NULL,
                    reference_id TEXT,
                    message TEXT,
                    details TEXT
                )
                """
            )
