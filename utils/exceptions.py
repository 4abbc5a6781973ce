"""
Unified exception hierarchy for the syllabus pipeline.

All domain exceptions inherit from SyllabusError and carry:
- error_code: machine-readable string (e.g. "DOCUMENT_FETCH_FAILED")
- status_code: HTTP status code
- message: human-readable description
- context: optional structured metadata dict
"""

from typing import Optional, Dict, Any


class SyllabusError(Exception):
    """Base exception for all syllabus domain errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.context = context or {}
        super().__init__(message)


class ValidationError(SyllabusError):
    """400-level validation / bad-request errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INVALID_REQUEST",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=400, context=context)


class DocumentFetchError(SyllabusError):
    """A source document could not be retrieved."""

    def __init__(self, locator: str, message: str, context: Optional[Dict[str, Any]] = None):
        self.locator = locator
        ctx = {"locator": locator}
        if context:
            ctx.update(context)
        super().__init__(
            f"Failed to fetch document {locator}: {message}",
            error_code="DOCUMENT_FETCH_FAILED",
            status_code=502,
            context=ctx,
        )


class GenerationError(SyllabusError):
    """500-level generation failures."""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERATION_FAILED",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=500, context=context)


class ResearchError(GenerationError):
    """Both the streamed analysis and its fallback failed."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="RESEARCH_FAILED", context=context)


class StructuringError(GenerationError):
    """The structuring response held no usable structured payload."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="STRUCTURING_FAILED", context=context)


class FrameError(SyllabusError, ValueError):
    """A wire frame could not be decoded into an event."""

    def __init__(self, message: str, frame: str = ""):
        self.frame = frame
        super().__init__(
            message,
            error_code="FRAME_DECODE_FAILED",
            status_code=400,
            context={"frame_preview": frame[:200]},
        )


class StorageError(SyllabusError):
    """500-level session storage failures."""

    def __init__(
        self,
        message: str,
        error_code: str = "STORAGE_ERROR",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=500, context=context)


class SessionClosedError(StorageError):
    """A completed session was asked to change."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Session {session_id} is already complete",
            error_code="SESSION_CLOSED",
            context={"session_id": session_id},
        )
