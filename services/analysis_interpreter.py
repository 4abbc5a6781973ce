"""
Turns the streamed research response into progress events.

Reasoning fragments become search or thought events. Thoughts are capped per
session and the ones past the cap go straight into the report. Output
fragments build the research report and, at markdown "## " headings,
section previews. Classification is keyword and regex based:
an approximation tuned for progress display, not a parser.
"""

import re
import logging
from typing import List, Optional

from models.events import ResearchOutputEvent, SearchEvent, ThoughtEvent
from models.reasoning_models import StreamChunk

logger = logging.getLogger(__name__)

SEARCH_LEXICON = ("search", "looking for")
MAX_THOUGHT_EVENTS = 15
MIN_SECTION_LENGTH = 50
SECTION_PREVIEW_LENGTH = 300
THOUGHT_PREVIEW_LENGTH = 200
SEARCH_QUERY_LENGTH = 100

HEADING_PATTERN = re.compile(r"^## (.+)$", re.MULTILINE)


class AnalysisInterpreter:
    """Stateful classifier for one research stream"""

    def __init__(self, max_thought_events: int = MAX_THOUGHT_EVENTS):
        self.max_thought_events = max_thought_events
        self.report = ""
        self.insight_count = 0  # every reasoning fragment, emitted or not
        self.thought_count = 0
        self.search_count = 0
        self.total_tokens: Optional[int] = None
        self.current_section: Optional[str] = None
        self.section_buffer = ""

    def feed(self, chunk: StreamChunk) -> List:
        """Consume one stream chunk and return the events it produced, in order"""
        events = []
        for fragment in chunk.fragments:
            if not fragment.text:
                continue
            if fragment.is_thought:
                events.extend(self._classify_reasoning(fragment.text))
            else:
                events.extend(self._consume_output(fragment.text))

        # The snapshot usually repeats the output fragments above
        if chunk.text and chunk.text not in self.report:
            events.extend(self._consume_output(chunk.text))

        if chunk.total_tokens:
            self.total_tokens = chunk.total_tokens
        return events

    def finish(self) -> List:
        """Flush the last section once the stream has ended"""
        return self._close_section()

    def _classify_reasoning(self, text: str) -> List:
        self.insight_count += 1
        lowered = text.lower()

        if any(term in lowered for term in SEARCH_LEXICON):
            self.search_count += 1
            return [SearchEvent(query=text[:SEARCH_QUERY_LENGTH])]

        self.thought_count += 1
        if self.thought_count > self.max_thought_events:
            # Absorbed into the report only; section previews stay output-only
            self.report += text
            return []
        return [
            ThoughtEvent(
                title=f"Analysis Step {self.thought_count}",
                content=text[:THOUGHT_PREVIEW_LENGTH],
            )
        ]

    def _consume_output(self, text: str) -> List:
        self.report += text
        events = []
        position = 0

        for match in HEADING_PATTERN.finditer(text):
            self.section_buffer += text[position:match.start()]
            events.extend(self._close_section())
            self.current_section = match.group(1).strip()
            position = match.end()
            if text.startswith("\n", position):
                position += 1

        self.section_buffer += text[position:]
        return events

    def _close_section(self) -> List:
        events = []
        if self.current_section and len(self.section_buffer) > MIN_SECTION_LENGTH:
            events.append(
                ResearchOutputEvent(
                    section=self.current_section,
                    content=self.section_buffer[:SECTION_PREVIEW_LENGTH] + "...",
                )
            )
        elif self.current_section:
            logger.debug(
                f"Section '{self.current_section}' too short to preview ({len(self.section_buffer)} chars)"
            )
        self.section_buffer = ""
        return events
