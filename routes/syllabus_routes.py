"""
FastAPI routes for syllabus generation.
A single streaming endpoint plus model discovery.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from typing import Callable, Optional
import logging

from clients.gemini_client import GeminiClient
from models.syllabus_models import ProcessSyllabusRequest
from services.syllabus_service import SyllabusService, validate_locators
from utils.exceptions import ValidationError
from utils.model_config import DEFAULT_MODEL, ModelConfig
from utils.sse_codec import encode_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["syllabus"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def build_syllabus_service(model: Optional[str] = None) -> SyllabusService:
    """Wire the orchestrator to the live Gemini and document clients"""
    model_key = model or DEFAULT_MODEL
    return SyllabusService(
        reasoning_client=GeminiClient(model_key=model_key),
        model_name=model_key,
    )


def get_service_factory() -> Callable[[Optional[str]], SyllabusService]:
    return build_syllabus_service


@router.post("/syllabus/process")
async def process_syllabus_stream(
    request: ProcessSyllabusRequest,
    service_factory: Callable[[Optional[str]], SyllabusService] = Depends(get_service_factory),
):
    """
    Generate a syllabus from documents as a text/event-stream.
    Emits session_start, progress events, stats, then complete or error.
    """
    # Pre-stream validation (raises before stream starts → global handler returns JSON)
    locators = validate_locators(request.document_locators)

    if request.model and request.model not in ModelConfig.get_available_models():
        raise ValidationError(
            f"Invalid model. Available: {ModelConfig.get_available_models()}",
            error_code="INVALID_MODEL",
            context={"model": request.model},
        )

    service = service_factory(request.model)
    logger.info(f"Starting syllabus stream for {len(locators)} document(s)")

    async def event_generator():
        async for event in service.process_stream(locators, request.title_hint):
            yield encode_event(event)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/syllabus/models")
async def get_available_models():
    """List models that can drive syllabus generation"""
    return {
        "models": ModelConfig.get_available_models(),
        "default": DEFAULT_MODEL,
    }
