"""
OpenAIProvider for vision extraction through the OpenAI Responses API.

Page images travel as ``input_image`` parts with PNG data URLs after the
instruction text, all in one user message.
"""
from __future__ import annotations

import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from formlens.errors import ResponseFormatError, UpstreamError

from ..openai_client import get_async_openai_client
from .base import Provider, VisionRequest

logger = logging.getLogger(__name__)


class OpenAIProvider(Provider):
    """Provider wrapper for OpenAI's *Responses* endpoint."""

    def __init__(self, api_key: str, client: AsyncOpenAI | None = None) -> None:
        self.client: AsyncOpenAI = client or get_async_openai_client(api_key)
        logger.debug("Using OpenAI SDK version %s", openai.__version__)

    # ------------------------------------------------------------------
    # Public  Provider interface
    # ------------------------------------------------------------------

    async def complete(self, request: VisionRequest) -> str:
        payload = self._build_api_request(request)
        try:
            rsp = await self.client.responses.create(**payload)
        except Exception as exc:  # re-raised after mapping
            self._handle_openai_error(exc, request.model)

        text = rsp.output_text
        if not text:
            raise ResponseFormatError(
                "No text content in model response",
                raw_text=rsp.model_dump_json(),
            )
        return text

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_api_request(request: VisionRequest) -> dict[str, Any]:
        """Transform a `VisionRequest` into kwargs for the SDK call."""
        content: list[dict[str, Any]] = [{"type": "input_text", "text": request.prompt}]
        for image in request.images:
            content.append(
                {
                    "type": "input_image",
                    "image_url": f"data:image/png;base64,{image}",
                }
            )
        return {
            "model": request.model,
            "input": [{"role": "user", "content": content}],
        }

    @staticmethod
    def _handle_openai_error(exc: Exception, requested_model: str) -> None:
        if isinstance(exc, openai.APIStatusError):
            logger.error("OpenAI API error %s for model %s", exc.status_code, requested_model)
            raise UpstreamError(
                exc.status_code,
                exc.response.text,
                message="Extraction model returned an error",
            ) from exc
        if isinstance(exc, openai.APITimeoutError):
            raise UpstreamError(504, str(exc), message="Extraction model timed out") from exc
        if isinstance(exc, openai.APIConnectionError):
            raise UpstreamError(502, str(exc), message="Extraction model unreachable") from exc
        logger.error("OpenAI API error: %s", exc)
        raise exc
