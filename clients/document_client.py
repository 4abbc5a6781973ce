"""
Document storage client.
Retrieves raw document bytes by URL for use as reasoning-service attachments.
"""

import os
import logging
from typing import Optional

import httpx

from models.reasoning_models import Attachment
from utils.exceptions import DocumentFetchError

logger = logging.getLogger(__name__)

DOCUMENT_FETCH_TIMEOUT = float(os.getenv("DOCUMENT_FETCH_TIMEOUT", "60"))
DOCUMENT_MAX_BYTES = int(os.getenv("DOCUMENT_MAX_BYTES", str(50 * 1024 * 1024)))
DEFAULT_MIME_TYPE = "application/pdf"


class DocumentClient:
    """Fetch documents over HTTP(S)"""

    def __init__(
        self,
        timeout: float = DOCUMENT_FETCH_TIMEOUT,
        max_bytes: int = DOCUMENT_MAX_BYTES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.transport = transport

    async def fetch(self, locator: str) -> Attachment:
        """
        Download one document, streaming the body so oversize documents are
        rejected without being buffered.

        Raises:
            DocumentFetchError: on any network, HTTP status or size failure
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                async with client.stream("GET", locator) as response:
                    response.raise_for_status()
                    self._check_declared_size(locator, response)
                    content_type = response.headers.get("content-type", "")
                    data = await self._read_body(locator, response)
        except httpx.TimeoutException:
            logger.warning(f"Document fetch timeout for {locator}")
            raise DocumentFetchError(locator, f"timeout after {self.timeout}s")
        except httpx.HTTPStatusError as e:
            logger.warning(f"Document fetch HTTP error for {locator}: {e}")
            raise DocumentFetchError(
                locator,
                f"HTTP error {e.response.status_code}",
                context={"status_code": e.response.status_code},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Document fetch error for {locator}: {e}")
            raise DocumentFetchError(locator, str(e))

        if not data:
            raise DocumentFetchError(locator, "empty document")

        mime_type = content_type.split(";")[0].strip() or DEFAULT_MIME_TYPE
        if mime_type in ("application/octet-stream", "binary/octet-stream"):
            mime_type = DEFAULT_MIME_TYPE

        logger.info(f"Fetched {len(data)} bytes ({mime_type}) from {locator}")
        return Attachment(data=data, mime_type=mime_type, source=locator)

    def _check_declared_size(self, locator: str, response: httpx.Response) -> None:
        declared = response.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_bytes:
            logger.warning(f"Document {locator} declares {declared} bytes, over the limit")
            raise DocumentFetchError(
                locator,
                f"document is {declared} bytes, limit is {self.max_bytes}",
            )

    async def _read_body(self, locator: str, response: httpx.Response) -> bytes:
        body = bytearray()
        async for chunk in response.aiter_bytes():
            body.extend(chunk)
            if len(body) > self.max_bytes:
                logger.warning(f"Document {locator} exceeded {self.max_bytes} bytes, aborting download")
                raise DocumentFetchError(
                    locator,
                    f"document exceeds the {self.max_bytes} byte limit",
                )
        return bytes(body)
