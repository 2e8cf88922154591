"""
log_entry.py

Dataclass for one row of the audit trail.

- from_row()  builds the object from a DB row / JSON dict
- as_dict()   returns a dict with
              - timestamp_utc (ISO-UTC)
              - timestamp      (local time, for display)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

import core.helpers.date_time_helper as dt


@dataclass
class LogEntry:
    id: Optional[int]
    timestamp: datetime          # always UTC
    level: str
    actor: Optional[str]
    feature: str
    event: str
    reference_id: Optional[str]
    message: Optional[str]
    details: Dict[str, Any] = field(default_factory=dict)

    # -------------------- Factory ------------------------------------ #
    @classmethod
    def from_row(cls, data: dict) -> "LogEntry":
        ts = data["timestamp"]
        if isinstance(ts, str):
            ts = dt.parse_iso(ts)
        raw_details = data.get("details")
        if isinstance(raw_details, str) and raw_details:
            details = json.loads(raw_details)
        else:
            details = dict(raw_details or {})
        return cls(
            id=data.get("id"),
            timestamp=ts,
            level=data.get("level", "INFO"),
            actor=data.get("actor"),
            feature=data.get("feature", ""),
            event=data.get("event", ""),
            reference_id=data.get("reference_id"),
            message=data.get("message"),
            details=details,
        )

    # -------------------- Dict for export ---------------------------- #
    def as_dict(self) -> dict:
        utc_iso = self.timestamp.replace(microsecond=0).isoformat()
        return {
            "id": self.id,
            "timestamp_utc": utc_iso,
            "timestamp": dt.utc_to_local_str(utc_iso),
            "level": self.level,
            "actor": self.actor,
            "feature": self.feature,
            "event": self.event,
            "reference_id": self.reference_id,
            "message": self.message,
            "details": dict(self.details),
        }
