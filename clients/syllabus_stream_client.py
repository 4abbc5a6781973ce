"""
HTTP client for the syllabus streaming endpoint.
Posts a processing request and folds the event stream into a session.
"""

import os
import asyncio
import logging
from typing import List, Optional

import httpx

from services.stream_consumer import ConsumeResult, StreamConsumer
from utils.exceptions import SyllabusError
from utils.session_storage import SessionRepository

logger = logging.getLogger(__name__)

SYLLABUS_API_URL = os.getenv("SYLLABUS_API_URL", "http://localhost:8000")
PROCESS_PATH = "/api/v1/syllabus/process"


async def stream_syllabus(
    document_locators: List[str],
    project_id: str,
    repository: SessionRepository,
    title_hint: Optional[str] = None,
    model: Optional[str] = None,
    base_url: str = SYLLABUS_API_URL,
    cancel_event: Optional[asyncio.Event] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ConsumeResult:
    """
    Start a processing run and consume its stream to completion.

    Raises:
        SyllabusError: if the server rejects the request before streaming
    """
    payload = {"documentLocators": document_locators}
    if title_hint:
        payload["titleHint"] = title_hint
    if model:
        payload["model"] = model

    # No read timeout: research phases can stay silent for minutes
    timeout = httpx.Timeout(30.0, read=None)

    async with httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport) as client:
        async with client.stream("POST", PROCESS_PATH, json=payload) as response:
            if response.status_code != 200:
                body = await response.aread()
                try:
                    detail = response.json()
                except ValueError:
                    detail = {"error": body.decode("utf-8", errors="replace")}
                if not isinstance(detail, dict):
                    detail = {"error": str(detail)}
                logger.error(f"Syllabus request rejected ({response.status_code}): {detail}")
                raise SyllabusError(
                    detail.get("error") or "Failed to process syllabus",
                    error_code=detail.get("error_code", "REQUEST_REJECTED"),
                    status_code=response.status_code,
                    context=detail.get("context"),
                )

            consumer = StreamConsumer(repository, project_id)
            result = await consumer.consume(response.aiter_bytes(), cancel_event=cancel_event)

    if result.error:
        logger.warning(f"Syllabus session ended with error: {result.error}")
    elif result.syllabus is not None:
        logger.info(f"Syllabus received with {len(result.syllabus.modules)} modules")
    return result
