"""
Frame codec tests: encoding, decoding, and reassembly across split reads.
"""

import pytest

from models.events import (
    CompleteEvent, ContentEvent, ErrorEvent, ReadEvent, ResearchOutputEvent,
    SearchEvent, SessionStartEvent, StatsEvent, StatusEvent, StructuringEvent,
    ThoughtEvent, ToolCallEvent, is_terminal,
)
from models.session_models import SessionStats
from services.syllabus_transform import transform_syllabus
from utils.exceptions import FrameError
from utils.sse_codec import FrameBuffer, decode_frame, encode_event
from tests.fakes import counter_ids, make_raw_syllabus


def sample_events():
    syllabus = transform_syllabus(make_raw_syllabus(2, 1), id_factory=counter_ids())
    return [
        SessionStartEvent(session_id="s-1"),
        StatusEvent(phase="fetching", title="Loading Documents", message="Fetching..."),
        ThoughtEvent(title="Analysis Step 1", content="line one\nline two\n\nafter a blank line"),
        ToolCallEvent(tool_name="deep_research", description="Initiating deep research"),
        ContentEvent(title="Draft", text="Résumé – café ✓"),
        SearchEvent(query="searching for hazard controls"),
        SearchEvent(query="looking for PPE rules", results=4),
        ReadEvent(source="Document 1", preview="Loading document from https://x/a.pdf..."),
        ResearchOutputEvent(section="Overview", content="## not a heading\n" + "x" * 80 + "..."),
        StructuringEvent(message="Generating modules..."),
        StatsEvent(stats=SessionStats(search_queries=2, documents_analyzed=1, processing_time_ms=10)),
        CompleteEvent(syllabus=syllabus, research_report="# Report\n\nbody"),
        ErrorEvent(message="Failed: bad \"quote\"\nnext line"),
    ]


@pytest.mark.parametrize("event", sample_events(), ids=lambda e: e.type)
def test_encode_decode_preserves_event(event):
    frame = encode_event(event)

    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    # Payload newlines are escaped, so the terminator appears exactly once
    assert frame.count("\n\n") == 1

    decoded = decode_frame(frame)
    assert type(decoded) is type(event)
    assert decoded.model_dump() == event.model_dump()


def test_encoded_payload_uses_camel_case_keys():
    frame = encode_event(ToolCallEvent(tool_name="deep_research", description="d"))
    assert '"toolName": "deep_research"' in frame
    assert "tool_name" not in frame


def test_optional_fields_are_omitted():
    frame = encode_event(SearchEvent(query="search docs"))
    assert "results" not in frame


def test_terminal_events():
    assert is_terminal(ErrorEvent(message="x"))
    assert not is_terminal(StatusEvent(phase="p", title="t", message="m"))


@pytest.mark.parametrize("frame", [
    "event: status\n\n",
    "data: {not json}\n\n",
    "data: [1, 2]\n\n",
    'data: {"message": "no type"}\n\n',
    'data: {"type": "unknown_kind"}\n\n',
    'data: {"type": "status", "phase": "fetching"}\n\n',
])
def test_decode_rejects_malformed_frames(frame):
    with pytest.raises(FrameError):
        decode_frame(frame)


def test_frame_error_is_a_value_error():
    with pytest.raises(ValueError):
        decode_frame("garbage")


def _split_every(data: bytes, size: int):
    return [data[i:i + size] for i in range(0, len(data), size)]


@pytest.mark.parametrize("size", [1, 2, 3, 7, 64, 10_000])
def test_frame_buffer_reassembles_any_split(size):
    events = sample_events()
    stream = "".join(encode_event(e) for e in events).encode("utf-8")

    buffer = FrameBuffer()
    frames = []
    for chunk in _split_every(stream, size):
        frames.extend(buffer.feed(chunk))

    assert buffer.flush() is None
    assert [decode_frame(f).model_dump() for f in frames] == [e.model_dump() for e in events]


def test_frame_buffer_keeps_multibyte_character_split_across_reads():
    frame = encode_event(ContentEvent(title="t", text="✓"))
    data = frame.encode("utf-8")
    cut = data.index("✓".encode("utf-8")) + 1

    buffer = FrameBuffer()
    assert buffer.feed(data[:cut]) == []
    frames = buffer.feed(data[cut:])

    assert decode_frame(frames[0]).text == "✓"


def test_frame_buffer_holds_incomplete_tail_until_flush():
    buffer = FrameBuffer()
    complete = encode_event(StructuringEvent(message="a"))
    partial = encode_event(StructuringEvent(message="b"))[:-2]

    assert buffer.feed(complete + partial) == [complete[:-2]]
    assert buffer.pending == partial
    assert decode_frame(buffer.flush()).message == "b"
    assert buffer.pending == ""


def test_frame_buffer_ignores_blank_frames():
    buffer = FrameBuffer()
    assert buffer.feed("\n\n\n\n") == []
    assert buffer.flush() is None
