"""HTTP client for the extraction gateway.

The gateway holds the model credential, so the client only ships the page
images, their dimensions and the render scale, then turns the gateway's JSON
answer (or error body) back into typed results and exceptions.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx
from pydantic import ValidationError

from .config import settings
from .errors import ConfigError, ExtractionError, ResponseFormatError, UpstreamError
from .models import ExtractionResult, PageDimensions, RenderedDocument

logger = logging.getLogger(__name__)

EXTRACT_PATH = "/api/extract"


def _error_from_response(response: httpx.Response) -> ExtractionError:
    """Rebuild the gateway's typed error from a non-2xx response."""
    try:
        body: Any = response.json()
    except ValueError:
        body = None

    if not isinstance(body, dict) or "error" not in body:
        return UpstreamError(response.status_code, response.text)

    message = str(body["error"])
    details = body.get("details")
    error_type = body.get("type")

    if error_type == "ConfigError":
        return ConfigError(message)
    if error_type == "ResponseFormatError":
        return ResponseFormatError(message, raw_text=str(details or ""))
    return UpstreamError(
        response.status_code,
        details if isinstance(details, str) else response.text,
        message=message,
    )


class ExtractionClient:
    """Sends rendered pages to the gateway's extraction endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        max_images: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.gateway_url).rstrip("/")
        self.max_images = max_images or settings.max_images
        self.timeout = timeout or settings.request_timeout
        self._transport = transport

    def build_payload(
        self,
        images: Sequence[str],
        dimensions: Sequence[PageDimensions],
        scale: float,
    ) -> dict:
        return {
            "pdfImages": list(images[: self.max_images]),
            "dimensions": [dims.to_wire() for dims in dimensions],
            "scale": scale,
        }

    async def extract(
        self,
        images: Sequence[str],
        dimensions: Sequence[PageDimensions],
        scale: float,
    ) -> ExtractionResult:
        """Request field extraction for the given page images.

        Raises:
            ConfigError: The gateway has no model credential configured
            UpstreamError: The gateway or the model endpoint failed
            ResponseFormatError: The model output held no usable JSON
        """
        payload = self.build_payload(images, dimensions, scale)
        url = f"{self.base_url}{EXTRACT_PATH}"
        logger.info(
            "Requesting extraction for %d of %d pages from %s",
            len(payload["pdfImages"]),
            len(images),
            url,
        )

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, json=payload)
            except httpx.HTTPError as exc:
                raise UpstreamError(502, str(exc), message=f"Extraction gateway unreachable: {exc}") from exc

        if response.status_code >= 400:
            error = _error_from_response(response)
            logger.error("Extraction failed (%s): %s", response.status_code, error)
            raise error

        try:
            data = response.json()
        except ValueError as exc:
            raise ResponseFormatError("Gateway returned a non-JSON body", raw_text=response.text) from exc
        if not isinstance(data, dict):
            raise ResponseFormatError("Gateway returned an unexpected body", raw_text=response.text)

        try:
            result = ExtractionResult.model_validate(data.get("parsed") or {})
        except ValidationError as exc:
            raise ResponseFormatError(
                f"Gateway returned an invalid extraction result: {exc}",
                raw_text=response.text,
            ) from exc

        result.cached = bool(data.get("cached", False))
        logger.info("Extracted %d fields (cached=%s)", len(result.fields), result.cached)
        return result

    async def extract_document(self, document: RenderedDocument) -> ExtractionResult:
        return await self.extract(document.data_urls(), document.dimensions, document.render_scale)
