"""
Client-side consumer for the syllabus event stream.

StreamConsumer reads byte chunks, reassembles frames, decodes them and hands
each event to SessionReconstructor, which folds it into a ProcessingSession
through an injected SessionRepository. A bad frame is logged and skipped;
it never stops consumption. A repository failure is logged and reported on
the result instead of escaping the read loop.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterable, Callable, Dict, List, Optional

from models.session_models import ProcessingLogEntry, ProcessingLogType, ProcessingSession
from models.syllabus_models import Syllabus
from utils.exceptions import FrameError, StorageError
from utils.file_storage import generate_uuid, now_ms
from utils.session_storage import SessionRepository
from utils.sse_codec import FrameBuffer, decode_frame

logger = logging.getLogger(__name__)


class _ReadCancelled(Exception):
    """The cancel signal fired while a read was pending"""


@dataclass
class ConsumeResult:
    """What the caller gets back once the stream ends or is cancelled"""
    session: Optional[ProcessingSession]
    syllabus: Optional[Syllabus] = None
    error: Optional[str] = None
    cancelled: bool = False
    finished: bool = False
    events: List[Any] = field(default_factory=list)
    skipped_frames: int = 0
    storage_error: Optional[str] = None


class SessionReconstructor:
    """Applies one fold function per event type to the session aggregate"""

    def __init__(
        self,
        repository: SessionRepository,
        project_id: str,
        id_factory: Callable[[], str] = generate_uuid,
        clock: Callable[[], int] = now_ms,
    ):
        self.repository = repository
        self.project_id = project_id
        self.id_factory = id_factory
        self.clock = clock
        self.session_id: Optional[str] = None
        self.current_phase = ""
        self.syllabus: Optional[Syllabus] = None
        self.error: Optional[str] = None
        self.finished = False

        self._folds: Dict[str, Callable[[Any], None]] = {
            "session_start": self._fold_session_start,
            "status": self._fold_status,
            "thought": self._fold_thought,
            "tool_call": self._fold_tool_call,
            "content": self._fold_content,
            "search": self._fold_search,
            "read": self._fold_read,
            "research_output": self._fold_research_output,
            "structuring": self._fold_structuring,
            "stats": self._fold_stats,
            "complete": self._fold_complete,
            "error": self._fold_error,
        }

    @property
    def session(self) -> Optional[ProcessingSession]:
        if self.session_id is None:
            return None
        return self.repository.get_session(self.session_id)

    def apply(self, event) -> None:
        if self.finished:
            logger.warning(f"Ignoring '{event.type}' event after the terminal event")
            return
        if event.type != "session_start":
            self._ensure_session()
        self._folds[event.type](event)

    def _ensure_session(self, session_id: Optional[str] = None) -> None:
        if self.session_id is None:
            session = self.repository.create_session(
                self.project_id,
                session_id=session_id or self.id_factory(),
                started_at=self.clock(),
            )
            self.session_id = session.id

    def _log(
        self,
        log_type: ProcessingLogType,
        title: str,
        content: str,
        phase: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        entry = ProcessingLogEntry(
            id=self.id_factory(),
            type=log_type,
            timestamp=self.clock(),
            phase=self.current_phase if phase is None else phase,
            title=title,
            content=content,
            metadata=metadata,
        )
        self.repository.append_log(self.session_id, entry)

    # Fold functions

    def _fold_session_start(self, event) -> None:
        if self.session_id is not None:
            logger.warning(f"Duplicate session_start {event.session_id}; keeping {self.session_id}")
            return
        self._ensure_session(event.session_id)

    def _fold_status(self, event) -> None:
        self.current_phase = event.phase
        self._log(ProcessingLogType.STATUS, event.title, event.message)

    def _fold_thought(self, event) -> None:
        self._log(ProcessingLogType.THOUGHT, event.title, event.content)

    def _fold_tool_call(self, event) -> None:
        self._log(
            ProcessingLogType.TOOL_CALL,
            f"Tool: {event.tool_name}",
            event.description,
            metadata={"toolName": event.tool_name},
        )

    def _fold_content(self, event) -> None:
        self._log(ProcessingLogType.CONTENT, event.title, event.text)

    def _fold_search(self, event) -> None:
        self._log(
            ProcessingLogType.SEARCH,
            "Search Query",
            event.query,
            metadata={"results": event.results} if event.results is not None else None,
        )

    def _fold_read(self, event) -> None:
        self._log(
            ProcessingLogType.READ,
            f"Reading: {event.source}",
            event.preview,
            metadata={"source": event.source},
        )

    def _fold_research_output(self, event) -> None:
        self._log(
            ProcessingLogType.RESEARCH_OUTPUT,
            f"Research: {event.section}",
            event.content,
            phase="researching",
        )

    def _fold_structuring(self, event) -> None:
        self.current_phase = "structuring"
        self._log(ProcessingLogType.STRUCTURING, "Structuring Syllabus", event.message)

    def _fold_stats(self, event) -> None:
        self.repository.set_stats(self.session_id, event.stats)

    def _fold_complete(self, event) -> None:
        self.syllabus = event.syllabus
        self._log(
            ProcessingLogType.COMPLETE,
            "Processing Complete",
            f"Generated {len(event.syllabus.modules)} modules with "
            f"{event.syllabus.learning_objective_count} learning objectives",
            phase="complete",
        )
        # The stream has ended even if persisting the session fails below
        self.finished = True
        self.repository.complete_session(
            self.session_id,
            research_report=event.research_report,
            completed_at=self.clock(),
        )

    def _fold_error(self, event) -> None:
        self.error = event.message
        self._log(ProcessingLogType.ERROR, "Error", event.message, phase="error")
        self.finished = True
        self.repository.fail_session(self.session_id, event.message)


class StreamConsumer:
    """Reads one response stream to the end (or until cancelled)"""

    def __init__(
        self,
        repository: SessionRepository,
        project_id: str,
        id_factory: Callable[[], str] = generate_uuid,
        clock: Callable[[], int] = now_ms,
    ):
        self.reconstructor = SessionReconstructor(repository, project_id, id_factory, clock)
        self.frames = FrameBuffer()
        self.events: List[Any] = []
        self.skipped_frames = 0
        self.storage_error: Optional[str] = None

    async def consume(
        self,
        chunks: AsyncIterable,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ConsumeResult:
        """Fold every frame delivered by chunks; stop early when cancel_event is set"""
        iterator = chunks.__aiter__()
        cancelled = False

        while True:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break
            try:
                chunk = await self._next_chunk(iterator, cancel_event)
            except StopAsyncIteration:
                break
            except _ReadCancelled:
                cancelled = True
                break
            for frame in self.frames.feed(chunk):
                self._handle_frame(frame)

        if cancelled:
            logger.info("Stream consumption cancelled; session left incomplete")
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                try:
                    await aclose()
                except RuntimeError as e:
                    logger.debug(f"Could not close response stream: {e}")
        else:
            remainder = self.frames.flush()
            if remainder is not None:
                self._handle_frame(remainder)

        return self.result(cancelled)

    def feed_text(self, text: str) -> None:
        """Synchronous entry point for already-received text"""
        for frame in self.frames.feed(text):
            self._handle_frame(frame)

    def result(self, cancelled: bool = False) -> ConsumeResult:
        r = self.reconstructor
        return ConsumeResult(
            session=r.session,
            syllabus=r.syllabus,
            error=r.error,
            cancelled=cancelled,
            finished=r.finished,
            events=list(self.events),
            skipped_frames=self.skipped_frames,
            storage_error=self.storage_error,
        )

    @staticmethod
    async def _next_chunk(iterator, cancel_event: Optional[asyncio.Event]):
        if cancel_event is None:
            return await iterator.__anext__()

        async def _read():
            return await iterator.__anext__()

        read_task = asyncio.ensure_future(_read())
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        done, _ = await asyncio.wait(
            {read_task, cancel_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        if read_task in done:
            cancel_task.cancel()
            return read_task.result()

        read_task.cancel()
        await asyncio.wait({read_task})
        raise _ReadCancelled()

    def _handle_frame(self, frame: str) -> None:
        try:
            event = decode_frame(frame)
        except FrameError as e:
            self.skipped_frames += 1
            logger.warning(f"Skipping malformed frame: {e.message}")
            return
        self.events.append(event)
        try:
            self.reconstructor.apply(event)
        except StorageError as e:
            self.storage_error = e.message
            logger.error(f"Could not store '{event.type}' event: {e.message}")
