"""
Gemini client for syllabus research and structuring.
Supports one-shot and streamed generation with PDF attachments; streamed
calls request thought summaries when the model supports them.
"""

import os
import logging
from typing import AsyncIterator, List, Optional

from dotenv import load_dotenv
from google import genai
from google.genai import types

from models.reasoning_models import Attachment, Fragment, ReasoningResponse, StreamChunk
from utils.exceptions import GenerationError
from utils.model_config import ModelConfig

load_dotenv()

logger = logging.getLogger(__name__)

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")


class GeminiClient:
    """Thin async wrapper over google-genai for the two call shapes the pipeline needs"""

    def __init__(self, model_key: Optional[str] = None, api_key: Optional[str] = None):
        self.model_key = model_key
        self.model_config = ModelConfig.get_config(model_key)
        self.model = self.model_config["model"]
        api_key = api_key or GEMINI_API_KEY or os.getenv("GEMINI_API_KEY")
        if not api_key:
            logger.warning("GEMINI_API_KEY not set. Reasoning calls will fail.")
        self.client = genai.Client(api_key=api_key)

    @staticmethod
    def _build_contents(prompt: str, attachments: Optional[List[Attachment]]) -> List[types.Content]:
        parts = [types.Part.from_text(text=prompt)]
        for attachment in attachments or []:
            parts.append(types.Part.from_bytes(data=attachment.data, mime_type=attachment.mime_type))
        return [types.Content(role="user", parts=parts)]

    @staticmethod
    def _total_tokens(response) -> Optional[int]:
        usage = getattr(response, "usage_metadata", None)
        if usage is None:
            return None
        return getattr(usage, "total_token_count", None)

    async def generate(
        self,
        prompt: str,
        attachments: Optional[List[Attachment]] = None,
        json_output: bool = False,
    ) -> ReasoningResponse:
        """Single non-incremental request; returns the full response text"""
        config = types.GenerateContentConfig(
            temperature=self.model_config.get("temperature", 0.7),
            max_output_tokens=self.model_config["max_tokens"],
            response_mime_type="application/json" if json_output else None,
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=self._build_contents(prompt, attachments),
                config=config,
            )
        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise GenerationError(f"Gemini API error: {e}", context={"model": self.model}) from e

        text = response.text or ""
        logger.info(f"Gemini {self.model} returned {len(text)} chars")
        return ReasoningResponse(text=text, total_tokens=self._total_tokens(response))

    async def generate_stream(
        self,
        prompt: str,
        attachments: Optional[List[Attachment]] = None,
    ) -> AsyncIterator[StreamChunk]:
        """Incremental request; yields one StreamChunk per delivered chunk"""
        thinking = None
        if ModelConfig.supports_thoughts(self.model_key):
            thinking = types.ThinkingConfig(include_thoughts=True)

        config = types.GenerateContentConfig(
            temperature=self.model_config.get("temperature", 0.7),
            max_output_tokens=self.model_config["max_tokens"],
            thinking_config=thinking,
        )

        try:
            stream = await self.client.aio.models.generate_content_stream(
                model=self.model,
                contents=self._build_contents(prompt, attachments),
                config=config,
            )
            async for chunk in stream:
                yield self._to_stream_chunk(chunk)
        except Exception as e:
            logger.error(f"Gemini streaming error: {e}")
            raise GenerationError(
                f"Gemini streaming error: {e}",
                error_code="STREAM_FAILED",
                context={"model": self.model},
            ) from e

    def _to_stream_chunk(self, chunk) -> StreamChunk:
        fragments = []
        candidates = chunk.candidates or []
        if candidates and candidates[0].content and candidates[0].content.parts:
            for part in candidates[0].content.parts:
                if part.text:
                    fragments.append(Fragment(text=part.text, is_thought=bool(part.thought)))

        # chunk.text joins only non-thought text parts
        snapshot = None
        if fragments and any(not f.is_thought for f in fragments):
            snapshot = chunk.text

        return StreamChunk(
            fragments=fragments,
            text=snapshot,
            total_tokens=self._total_tokens(chunk),
        )
