"""
Server-sent event framing for the syllabus stream.

Each event travels as one frame:

    data: <json object with a "type" field>\\n\\n

JSON escapes raw newlines, so the blank-line terminator can never appear
inside a payload and no length prefix is needed.
"""

import codecs
import json
import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from models.events import stream_event_adapter
from utils.exceptions import FrameError

logger = logging.getLogger(__name__)

FRAME_PREFIX = "data: "
FRAME_TERMINATOR = "\n\n"


def encode_event(event) -> str:
    """Format an event model as an SSE data frame."""
    payload = event.model_dump(mode="json", by_alias=True, exclude_none=True)
    return f"{FRAME_PREFIX}{json.dumps(payload, ensure_ascii=False)}{FRAME_TERMINATOR}"


def decode_frame(frame: str):
    """
    Parse a single frame (with or without its terminator) back into an event.

    Raises:
        FrameError: missing prefix, invalid JSON, or an unknown/ill-shaped event
    """
    text = frame
    if text.endswith(FRAME_TERMINATOR):
        text = text[: -len(FRAME_TERMINATOR)]
    text = text.lstrip("\n")

    if not text.startswith(FRAME_PREFIX):
        raise FrameError("Frame does not start with the data prefix", frame=frame)

    try:
        payload = json.loads(text[len(FRAME_PREFIX):])
    except json.JSONDecodeError as e:
        raise FrameError(f"Frame payload is not valid JSON: {e}", frame=frame)

    if not isinstance(payload, dict) or "type" not in payload:
        raise FrameError("Frame payload is not a typed event object", frame=frame)

    try:
        return stream_event_adapter.validate_python(payload)
    except PydanticValidationError as e:
        raise FrameError(
            f"Frame payload does not match event '{payload.get('type')}': {e.error_count()} error(s)",
            frame=frame,
        )


class FrameBuffer:
    """
    Reassembles frames from arbitrarily split byte chunks.

    Bytes are decoded incrementally, so a multi-byte UTF-8 character split
    across two reads is not corrupted. Only frames whose terminator has
    arrived are released; the tail stays buffered until the next feed.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk) -> List[str]:
        """Add a chunk (bytes or str) and return every complete frame, in order."""
        if isinstance(chunk, (bytes, bytearray)):
            self._buffer += self._decoder.decode(bytes(chunk))
        else:
            self._buffer += chunk

        frames = self._buffer.split(FRAME_TERMINATOR)
        self._buffer = frames.pop()
        return [f for f in frames if f.strip()]

    def flush(self) -> Optional[str]:
        """Return whatever partial frame remains at end of input, then reset."""
        self._buffer += self._decoder.decode(b"", final=True)
        remainder = self._buffer
        self._buffer = ""
        if remainder.strip():
            return remainder
        return None

    @property
    def pending(self) -> str:
        return self._buffer
