"""
Data passed to and from the reasoning service.
Kept provider-neutral so the pipeline can be driven by fakes in tests.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Attachment:
    """Raw document bytes sent alongside a prompt"""
    data: bytes
    mime_type: str = "application/pdf"
    source: str = ""


@dataclass
class Fragment:
    """One piece of an incremental response: reasoning text or output text"""
    text: str
    is_thought: bool = False


@dataclass
class StreamChunk:
    """
    One delivery from a streamed response.

    fragments holds the per-part deltas; text is the provider's own
    snapshot of the chunk's output text, which may repeat a fragment.
    """
    fragments: List[Fragment] = field(default_factory=list)
    text: Optional[str] = None
    total_tokens: Optional[int] = None


@dataclass
class ReasoningResponse:
    text: str
    total_tokens: Optional[int] = None
