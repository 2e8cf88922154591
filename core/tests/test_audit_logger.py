from __future__ import annotations

from pathlib import Path

import pytest

from core.logging.logic.logger import AuditLogger


@pytest.fixture
def audit(tmp_path: Path):
    logger = AuditLogger(tmp_path / "audit.db")
    yield logger
    logger.close()


def test_log_and_query(audit: AuditLogger) -> None:
    audit.log("contracts", "created", actor="u1", reference_id="C1", message="created", details={"v": 1})
    audit.log("contracts", "signed", reference_id="C1", level="warning")
    audit.log("contracts", "created", actor="u2", reference_id="C2")

    entries = audit.fetch_logs()
    assert [e.event for e in entries] == ["created", "signed", "created"]
    assert entries[-1].details == {"v": 1}
    assert entries[1].actor == "system"
    assert entries[1].level == "WARNING"

    assert [e.reference_id for e in audit.query_logs(event="created")] == ["C2", "C1"]
    assert [e.actor for e in audit.query_logs(reference_id="C1", level="warning")] == ["system"]
    assert len(audit.query_logs(limit=1)) == 1
    assert audit.query_logs(start_time="2999-01-01T00:00:00+00:00") == []


def test_clear_and_reopen(tmp_path: Path) -> None:
    path = tmp_path / "audit.db"
    first = AuditLogger(path)
    first.log("contracts", "created")
    first.close()

    second = AuditLogger(path)
    assert len(second.fetch_logs()) == 1
    second.clear_logs()
    assert second.fetch_logs() == []
    assert second.db_path == path
    second.close()
