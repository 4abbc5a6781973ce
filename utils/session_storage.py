"""
Session repositories for processing history.

The stream consumer folds events through this interface instead of touching
any global store. Sessions are append-only while running and frozen once
completed.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from models.session_models import ProcessingSession, ProcessingLogEntry, SessionStats
from utils.exceptions import SessionClosedError, StorageError
from utils.file_storage import BASE_DIR, generate_uuid, now_ms, read_json_file, write_json_file

logger = logging.getLogger(__name__)

SESSION_STORE_PATH = Path(
    os.getenv("SESSION_STORE_PATH", str(BASE_DIR / "processing_sessions.json"))
)


class SessionRepository(ABC):
    """Create / append / complete operations over processing sessions"""

    @abstractmethod
    def create_session(
        self,
        project_id: str,
        session_id: Optional[str] = None,
        started_at: Optional[int] = None,
    ) -> ProcessingSession:
        ...

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[ProcessingSession]:
        ...

    @abstractmethod
    def append_log(self, session_id: str, entry: ProcessingLogEntry) -> None:
        ...

    @abstractmethod
    def set_stats(self, session_id: str, stats: SessionStats) -> None:
        ...

    @abstractmethod
    def complete_session(
        self,
        session_id: str,
        research_report: Optional[str] = None,
        completed_at: Optional[int] = None,
    ) -> ProcessingSession:
        ...

    @abstractmethod
    def fail_session(self, session_id: str, message: str) -> ProcessingSession:
        ...

    @abstractmethod
    def list_sessions(self, project_id: str) -> List[ProcessingSession]:
        ...


class InMemorySessionRepository(SessionRepository):
    """Process-local repository; history lives as long as the instance"""

    def __init__(self):
        self._sessions: Dict[str, ProcessingSession] = {}
        self._by_project: Dict[str, List[str]] = {}

    def create_session(self, project_id, session_id=None, started_at=None):
        session_id = session_id or generate_uuid()
        if session_id in self._sessions:
            raise StorageError(
                f"Session {session_id} already exists",
                error_code="SESSION_EXISTS",
                context={"session_id": session_id},
            )
        session = ProcessingSession(
            id=session_id,
            project_id=project_id,
            started_at=started_at or now_ms(),
        )
        self._sessions[session_id] = session
        self._by_project.setdefault(project_id, []).append(session_id)
        return session

    def get_session(self, session_id):
        return self._sessions.get(session_id)

    def _open_session(self, session_id: str) -> ProcessingSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise StorageError(
                f"Session {session_id} not found",
                error_code="SESSION_NOT_FOUND",
                context={"session_id": session_id},
            )
        if session.is_complete:
            raise SessionClosedError(session_id)
        return session

    def append_log(self, session_id, entry):
        self._open_session(session_id).logs.append(entry)

    def set_stats(self, session_id, stats):
        self._open_session(session_id).stats = stats

    def complete_session(self, session_id, research_report=None, completed_at=None):
        session = self._open_session(session_id)
        if research_report is not None:
            session.research_report = research_report
        session.completed_at = completed_at or now_ms()
        return session

    def fail_session(self, session_id, message):
        session = self._open_session(session_id)
        session.error = message
        return session

    def list_sessions(self, project_id):
        return [self._sessions[sid] for sid in self._by_project.get(project_id, [])]


class JsonFileSessionRepository(InMemorySessionRepository):
    """
    Keeps running sessions in memory and appends each one to a project's
    history file once it completes or fails.
    """

    def __init__(self, filepath: Optional[Path] = None):
        super().__init__()
        self.filepath = filepath or SESSION_STORE_PATH

    def complete_session(self, session_id, research_report=None, completed_at=None):
        session = super().complete_session(session_id, research_report, completed_at)
        self._persist(session)
        return session

    def fail_session(self, session_id, message):
        session = super().fail_session(session_id, message)
        self._persist(session)
        return session

    def list_sessions(self, project_id):
        stored = [
            ProcessingSession.model_validate(raw)
            for raw in self._load().get("projects", {}).get(project_id, [])
        ]
        stored_ids = {s.id for s in stored}
        live = [s for s in super().list_sessions(project_id) if s.id not in stored_ids]
        return stored + live

    def _load(self) -> Dict:
        return read_json_file(self.filepath) or {"projects": {}}

    def _persist(self, session: ProcessingSession) -> None:
        data = self._load()
        history = data.setdefault("projects", {}).setdefault(session.project_id, [])
        if any(raw.get("id") == session.id for raw in history):
            logger.warning(f"Session {session.id} already persisted, keeping stored copy")
            return
        history.append(session.model_dump(mode="json", by_alias=True))
        if not write_json_file(self.filepath, data):
            raise StorageError(
                f"Could not persist session {session.id}",
                context={"path": str(self.filepath)},
            )
        logger.info(f"Persisted session {session.id} for project {session.project_id}")
