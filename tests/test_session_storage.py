"""
Session repository tests: append-only while open, frozen once complete,
JSON history persistence.
"""

import pytest

from models.session_models import ProcessingLogEntry, ProcessingLogType, SessionStats
from utils.exceptions import SessionClosedError, StorageError
from utils.file_storage import read_json_file
from utils.session_storage import InMemorySessionRepository, JsonFileSessionRepository


def entry(n: int) -> ProcessingLogEntry:
    return ProcessingLogEntry(id=f"log-{n}", type=ProcessingLogType.STATUS, timestamp=n, title=f"Step {n}")


def test_logs_keep_append_order():
    repo = InMemorySessionRepository()
    repo.create_session("p", session_id="s", started_at=10)
    for n in (3, 1, 2):
        repo.append_log("s", entry(n))
    assert [log.id for log in repo.get_session("s").logs] == ["log-3", "log-1", "log-2"]


def test_completed_session_rejects_changes():
    repo = InMemorySessionRepository()
    repo.create_session("p", session_id="s")
    repo.complete_session("s", research_report="report", completed_at=99)

    with pytest.raises(SessionClosedError):
        repo.append_log("s", entry(1))
    with pytest.raises(SessionClosedError):
        repo.set_stats("s", SessionStats())
    with pytest.raises(SessionClosedError):
        repo.complete_session("s")

    session = repo.get_session("s")
    assert session.completed_at == 99
    assert session.research_report == "report"


def test_failed_session_stays_open():
    repo = InMemorySessionRepository()
    repo.create_session("p", session_id="s")
    session = repo.fail_session("s", "boom")
    assert session.error == "boom"
    assert not session.is_complete


def test_unknown_and_duplicate_sessions():
    repo = InMemorySessionRepository()
    repo.create_session("p", session_id="s")

    with pytest.raises(StorageError) as exc:
        repo.create_session("p", session_id="s")
    assert exc.value.error_code == "SESSION_EXISTS"

    with pytest.raises(StorageError) as exc:
        repo.append_log("missing", entry(1))
    assert exc.value.error_code == "SESSION_NOT_FOUND"


def test_list_sessions_by_project():
    repo = InMemorySessionRepository()
    repo.create_session("a", session_id="s1")
    repo.create_session("b", session_id="s2")
    repo.create_session("a", session_id="s3")
    assert [s.id for s in repo.list_sessions("a")] == ["s1", "s3"]
    assert repo.list_sessions("none") == []


def test_json_repository_persists_completed_sessions(tmp_path):
    path = tmp_path / "sessions.json"
    repo = JsonFileSessionRepository(path)
    repo.create_session("proj", session_id="done", started_at=1)
    repo.append_log("done", entry(1))
    repo.complete_session("done", research_report="r", completed_at=2)
    repo.create_session("proj", session_id="running", started_at=3)

    stored = read_json_file(path)["projects"]["proj"]
    assert [s["id"] for s in stored] == ["done"]
    assert stored[0]["completedAt"] == 2
    assert stored[0]["logs"][0]["title"] == "Step 1"

    # A fresh repository reads the history back
    reloaded = JsonFileSessionRepository(path).list_sessions("proj")
    assert [s.id for s in reloaded] == ["done"]
    assert reloaded[0].logs[0].id == "log-1"

    assert [s.id for s in repo.list_sessions("proj")] == ["done", "running"]


def test_json_repository_persists_failed_sessions(tmp_path):
    path = tmp_path / "sessions.json"
    repo = JsonFileSessionRepository(path)
    repo.create_session("proj", session_id="bad")
    repo.fail_session("bad", "fetch failed")

    stored = read_json_file(path)["projects"]["proj"][0]
    assert stored["error"] == "fetch failed"
    assert stored["completedAt"] is None
