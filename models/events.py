"""
Stream event models.
The closed set of events the syllabus pipeline emits, discriminated by "type".
Producer (services.syllabus_service) and consumer (services.stream_consumer)
share these models through utils.sse_codec.
"""

from pydantic import Field, TypeAdapter
from typing import Annotated, Literal, Optional, Union

from models.syllabus_models import CamelModel, Syllabus
from models.session_models import SessionStats


# Phase labels carried by StatusEvent.phase
PHASE_FETCHING = "fetching"
PHASE_DOCUMENTS_LOADED = "documents_loaded"
PHASE_RESEARCHING = "researching"
PHASE_RESEARCH_COMPLETE = "research_complete"
PHASE_FALLBACK = "fallback"
PHASE_STRUCTURING = "structuring"


class SessionStartEvent(CamelModel):
    type: Literal["session_start"] = "session_start"
    session_id: str


class StatusEvent(CamelModel):
    type: Literal["status"] = "status"
    phase: str
    title: str
    message: str


class ThoughtEvent(CamelModel):
    type: Literal["thought"] = "thought"
    title: str
    content: str


class ToolCallEvent(CamelModel):
    type: Literal["tool_call"] = "tool_call"
    tool_name: str
    description: str


class ContentEvent(CamelModel):
    type: Literal["content"] = "content"
    title: str
    text: str


class SearchEvent(CamelModel):
    type: Literal["search"] = "search"
    query: str
    results: Optional[int] = None


class ReadEvent(CamelModel):
    type: Literal["read"] = "read"
    source: str
    preview: str


class ResearchOutputEvent(CamelModel):
    type: Literal["research_output"] = "research_output"
    section: str
    content: str


class StructuringEvent(CamelModel):
    type: Literal["structuring"] = "structuring"
    message: str


class StatsEvent(CamelModel):
    type: Literal["stats"] = "stats"
    stats: SessionStats


class CompleteEvent(CamelModel):
    type: Literal["complete"] = "complete"
    syllabus: Syllabus
    research_report: str


class ErrorEvent(CamelModel):
    type: Literal["error"] = "error"
    message: str


StreamEvent = Annotated[
    Union[
        SessionStartEvent,
        StatusEvent,
        ThoughtEvent,
        ToolCallEvent,
        ContentEvent,
        SearchEvent,
        ReadEvent,
        ResearchOutputEvent,
        StructuringEvent,
        StatsEvent,
        CompleteEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

TERMINAL_EVENT_TYPES = frozenset({"complete", "error"})

stream_event_adapter: TypeAdapter = TypeAdapter(StreamEvent)


def is_terminal(event) -> bool:
    return event.type in TERMINAL_EVENT_TYPES
