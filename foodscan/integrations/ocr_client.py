"""
OCR Service HTTP Client

Sends a label image to the OCR microservice and returns the raw text.
The recognition engine itself (EasyOCR, PaddleOCR, a vision LLM...) lives
behind the service; this client only knows the HTTP contract:

    POST {OCR_SERVICE_URL}/process   multipart "file"
    200 -> {"raw_text": "...", ...}
"""

import logging
import mimetypes
from typing import Optional, Protocol

import httpx

from foodscan.core.cancellation import CancellationToken, check_cancelled
from foodscan.core.config import Settings, settings as default_settings
from foodscan.core.exceptions import OcrEngineError

logger = logging.getLogger(__name__)


class OcrEngine(Protocol):
    """Anything that turns an image into raw text (may be empty)."""

    async def recognize(
        self,
        image: bytes,
        filename: str = "label.png",
        cancel_token: Optional[CancellationToken] = None
    ) -> str:
        ...


class OcrServiceClient:
    """HTTP client for the OCR microservice."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config or default_settings
        self._transport = transport

    async def recognize(
        self,
        image: bytes,
        filename: str = "label.png",
        cancel_token: Optional[CancellationToken] = None
    ) -> str:
        """
        Recognize text in an image.

        Raises OcrEngineError when the service is unreachable or fails,
        ScanAborted if the token was cancelled while waiting.
        """
        if not image:
            raise OcrEngineError("Empty image")

        mime_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        url = self.config.OCR_SERVICE_URL.rstrip("/") + "/process"

        try:
            async with httpx.AsyncClient(
                timeout=self.config.OCR_TIMEOUT,
                headers={"User-Agent": self.config.USER_AGENT},
                transport=self._transport,
            ) as client:
                logger.info(f"[OCR] Sending {len(image)} bytes to {url}")
                response = await client.post(url, files={"file": (filename, image, mime_type)})
        except httpx.TimeoutException:
            raise OcrEngineError("Timeout during OCR")
        except httpx.HTTPError as e:
            raise OcrEngineError(f"OCR service unreachable: {e}")

        check_cancelled(cancel_token)

        if response.status_code != 200:
            logger.error(f"[OCR] Failed: HTTP {response.status_code} - {response.text}")
            raise OcrEngineError(f"OCR failed: HTTP {response.status_code}")

        try:
            raw_text = response.json().get("raw_text") or ""
        except ValueError:
            raise OcrEngineError("OCR service returned invalid JSON")

        logger.info(f"[OCR] Extracted {len(raw_text)} characters")
        return raw_text
