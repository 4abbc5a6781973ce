"""
Processing session models.
A session is the consumer-side record of one pipeline run: an append-only
log of entries folded from stream events, plus the final report and stats.
"""

from pydantic import Field
from typing import List, Optional, Dict, Any
from enum import Enum

from models.syllabus_models import CamelModel


class ProcessingLogType(str, Enum):
    STATUS = "status"
    THOUGHT = "thought"
    TOOL_CALL = "tool_call"
    SEARCH = "search"
    READ = "read"
    CONTENT = "content"
    RESEARCH_OUTPUT = "research_output"
    STRUCTURING = "structuring"
    COMPLETE = "complete"
    ERROR = "error"


class SessionStats(CamelModel):
    """Completion statistics reported by the pipeline"""
    search_queries: int = 0
    documents_analyzed: int = 0
    processing_time_ms: int = 0
    total_tokens: Optional[int] = None


class ProcessingLogEntry(CamelModel):
    id: str
    type: ProcessingLogType
    timestamp: int  # epoch milliseconds
    phase: str = ""
    title: str = ""
    content: str = ""
    metadata: Optional[Dict[str, Any]] = None


class ProcessingSession(CamelModel):
    """
    One run's history. Logs keep arrival order and are never re-sorted;
    the session is frozen once completed_at is set.
    """
    id: str
    project_id: str
    started_at: int
    completed_at: Optional[int] = None
    logs: List[ProcessingLogEntry] = Field(default_factory=list)
    research_report: Optional[str] = None
    stats: Optional[SessionStats] = None
    error: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.completed_at is not None
