"""
Syllabus generation service.
Drives the fetch -> research -> structure -> finalize pipeline as a single
async generator of stream events. Every run ends with exactly one terminal
event: "complete" carrying the syllabus, or "error" carrying a message.
"""

import asyncio
import logging
from typing import Any, AsyncGenerator, Dict, List, Optional

from clients.document_client import DocumentClient
from models.events import (
    PHASE_DOCUMENTS_LOADED, PHASE_FALLBACK, PHASE_FETCHING,
    PHASE_RESEARCH_COMPLETE, PHASE_RESEARCHING,
    CompleteEvent, ErrorEvent, ReadEvent, SessionStartEvent, StatsEvent,
    StatusEvent, StructuringEvent, ToolCallEvent,
)
from models.reasoning_models import Attachment
from models.session_models import SessionStats
from prompts.syllabus_prompts import build_research_prompt, build_structuring_prompt
from services.analysis_interpreter import AnalysisInterpreter
from services.syllabus_transform import parse_structured_response, transform_syllabus
from utils.exceptions import DocumentFetchError, ResearchError, SyllabusError, ValidationError
from utils.file_storage import GenerationLogger, generate_uuid, now_ms

logger = logging.getLogger(__name__)

READ_PREVIEW_LOCATOR_LENGTH = 50


def validate_locators(document_locators: Optional[List[str]]) -> List[str]:
    """Reject empty or blank locator lists before any streaming starts"""
    if not document_locators:
        raise ValidationError("No document locators provided", error_code="NO_DOCUMENTS")
    cleaned = [loc.strip() for loc in document_locators if isinstance(loc, str)]
    if len(cleaned) != len(document_locators) or not all(cleaned):
        raise ValidationError(
            "Document locators must be non-empty strings",
            error_code="INVALID_LOCATOR",
        )
    return cleaned


def _error_message(exc: Exception) -> str:
    if isinstance(exc, SyllabusError):
        return exc.message
    return str(exc) or "Failed to process syllabus"


def _add_tokens(total: Optional[int], extra: Optional[int]) -> Optional[int]:
    if extra is None:
        return total
    return (total or 0) + extra


class SyllabusService:
    """Phased orchestrator; one instance may serve many runs, runs share no state"""

    def __init__(
        self,
        reasoning_client,
        document_client: Optional[DocumentClient] = None,
        generation_logger: Optional[GenerationLogger] = None,
        model_name: str = "",
    ):
        self.reasoning = reasoning_client
        self.documents = document_client or DocumentClient()
        self.generation_logger = generation_logger or GenerationLogger()
        self.model_name = model_name

    async def process_stream(
        self,
        document_locators: List[str],
        title_hint: Optional[str] = None,
    ) -> AsyncGenerator[Any, None]:
        """Run the whole pipeline, yielding events in emission order"""
        locators = validate_locators(document_locators)
        started_at = now_ms()
        session_id = generate_uuid()
        run: Dict[str, Any] = {
            "session_id": session_id,
            "documents": len(locators),
            "model": self.model_name,
            "search_queries": 0,
            "total_tokens": None,
            "used_fallback": False,
        }

        logger.info(f"Syllabus session {session_id}: processing {len(locators)} document(s)")

        try:
            yield SessionStartEvent(session_id=session_id)

            # Phase 1: fetch documents
            yield StatusEvent(
                phase=PHASE_FETCHING,
                title="Loading Documents",
                message="Fetching uploaded documents from storage...",
            )
            tasks: List[asyncio.Task] = []
            try:
                for index, locator in enumerate(locators):
                    tasks.append(asyncio.create_task(self.documents.fetch(locator)))
                    yield ReadEvent(
                        source=f"Document {index + 1}",
                        preview=f"Loading document from {locator[:READ_PREVIEW_LOCATOR_LENGTH]}...",
                    )
                results = await asyncio.gather(*tasks, return_exceptions=True)
            finally:
                for task in tasks:
                    if not task.done():
                        task.cancel()

            # Report the first failure in locator order
            for result in results:
                if isinstance(result, BaseException):
                    raise result
            attachments: List[Attachment] = list(results)

            yield StatusEvent(
                phase=PHASE_DOCUMENTS_LOADED,
                title="Documents Loaded",
                message=f"Successfully loaded {len(attachments)} document(s)",
            )

            # Phase 2: streamed research, one-shot fallback on failure
            yield ToolCallEvent(
                tool_name="deep_research",
                description="Initiating deep research analysis on uploaded documents",
            )
            research_prompt = build_research_prompt(title_hint, len(attachments))
            yield StatusEvent(
                phase=PHASE_RESEARCHING,
                title="Deep Research Started",
                message="AI agent is analyzing your documents. This involves multiple analysis passes...",
            )

            interpreter = AnalysisInterpreter()
            try:
                async for chunk in self.reasoning.generate_stream(research_prompt, attachments):
                    for event in interpreter.feed(chunk):
                        yield event
                for event in interpreter.finish():
                    yield event
                if not interpreter.report.strip():
                    raise ResearchError("Research stream produced no report text")

                research_report = interpreter.report
                run["total_tokens"] = _add_tokens(run["total_tokens"], interpreter.total_tokens)
                yield StatusEvent(
                    phase=PHASE_RESEARCH_COMPLETE,
                    title="Research Complete",
                    message=(
                        f"Analysis complete! Found {interpreter.insight_count} insights "
                        f"across {len(attachments)} documents."
                    ),
                )
            except Exception as stream_error:
                logger.warning(f"Research stream failed, switching to fallback: {stream_error}")
                run["used_fallback"] = True
                yield StatusEvent(
                    phase=PHASE_FALLBACK,
                    title="Switching Analysis Mode",
                    message="Using standard analysis as fallback...",
                )
                try:
                    fallback = await self.reasoning.generate(research_prompt, attachments)
                except Exception as fallback_error:
                    raise ResearchError(
                        f"Research analysis failed: {_error_message(fallback_error)}",
                        context={"stream_error": _error_message(stream_error)},
                    ) from fallback_error
                research_report = fallback.text or ""
                if not research_report.strip():
                    raise ResearchError("Research fallback returned an empty report")
                run["total_tokens"] = _add_tokens(run["total_tokens"], fallback.total_tokens)

            run["search_queries"] = interpreter.search_count

            # Phase 3: structure the report
            yield ToolCallEvent(
                tool_name="syllabus_generator",
                description="Converting research findings into structured syllabus format",
            )
            yield StructuringEvent(
                message="Generating modules, learning objectives, and assessment questions...",
            )
            structured = await self.reasoning.generate(
                build_structuring_prompt(research_report, title_hint),
                json_output=True,
            )
            run["total_tokens"] = _add_tokens(run["total_tokens"], structured.total_tokens)
            raw_syllabus = parse_structured_response(structured.text)

            # Phase 4: finalize
            syllabus = transform_syllabus(raw_syllabus, title_hint)
            processing_time_ms = now_ms() - started_at
            logger.info(
                f"Syllabus session {session_id} generated: {len(syllabus.modules)} modules, "
                f"{syllabus.learning_objective_count} LOs, {syllabus.question_count} questions "
                f"in {processing_time_ms}ms"
            )
            await self._log_run(
                run,
                status="success",
                modules=len(syllabus.modules),
                learning_objectives=syllabus.learning_objective_count,
                questions=syllabus.question_count,
                processing_time_ms=processing_time_ms,
            )

            yield StatsEvent(
                stats=SessionStats(
                    search_queries=run["search_queries"],
                    documents_analyzed=len(attachments),
                    processing_time_ms=processing_time_ms,
                    total_tokens=run["total_tokens"],
                )
            )
            yield CompleteEvent(syllabus=syllabus, research_report=research_report)

        except Exception as e:
            if isinstance(e, DocumentFetchError):
                logger.error(f"Syllabus session {session_id} aborted while fetching: {e}")
            else:
                logger.error(f"Syllabus session {session_id} failed: {e}")
            await self._log_run(
                run,
                status="error",
                error=_error_message(e),
                processing_time_ms=now_ms() - started_at,
            )
            yield ErrorEvent(message=_error_message(e))

    async def _log_run(self, run: Dict[str, Any], **fields) -> None:
        entry = {"type": "syllabus_generation", **run, **fields}
        # The run log is rewritten whole; keep file IO off the event loop
        written = await asyncio.to_thread(self.generation_logger.log_generation, entry)
        if not written:
            logger.warning(f"Could not write generation log for session {run['session_id']}")
