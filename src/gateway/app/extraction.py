"""Field extraction: cache lookup, model call, JSON scraping and validation."""

from __future__ import annotations

import logging
from typing import Any, Tuple

from pydantic import ValidationError

from formlens.errors import ResponseFormatError
from formlens.models import ExtractionResult
from formlens.utils.json_parser import parse_json_response

from .cache import Cache
from .prompts import build_extraction_prompt
from .providers import Provider, VisionRequest
from .schemas import ExtractRequest, strip_data_url

logger = logging.getLogger(__name__)


def forwarded_images(request: ExtractRequest, max_images: int) -> list[str]:
    """Bare base64 payloads of the images that will be sent upstream."""
    return [strip_data_url(image) for image in request.pdfImages[:max_images]]


def cache_key_for(cache: Cache, images: list[str], request: ExtractRequest) -> str:
    return cache.generate_key(
        {
            "pdfImages": images,
            "dimensions": [dims.model_dump() for dims in request.dimensions],
            "scale": request.scale,
        }
    )


def parse_extraction_text(text: str) -> dict[str, Any]:
    """Turn model output into the validated wire form of an ExtractionResult.

    Raises:
        ResponseFormatError: No JSON could be recovered, or it does not match
            the extraction schema
    """
    data = parse_json_response(text)
    if not isinstance(data, dict):
        raise ResponseFormatError("Model response JSON is not an object", raw_text=text)
    try:
        result = ExtractionResult.model_validate(data)
    except ValidationError as exc:
        raise ResponseFormatError(
            f"Model response does not match the extraction schema: {exc.error_count()} errors",
            raw_text=text,
        ) from exc
    return result.to_wire()


async def extract_fields(
    request: ExtractRequest,
    provider: Provider,
    cache: Cache,
    *,
    model: str,
    max_images: int,
) -> Tuple[dict[str, Any], bool]:
    """Run one extraction, serving repeated identical requests from the cache.

    Returns:
        ``(parsed, cached)`` where ``parsed`` is the wire-form result
    """
    images = forwarded_images(request, max_images)
    key = cache_key_for(cache, images, request)

    hit = cache.get(key)
    if hit is not None:
        logger.info("Cache hit for key %s", key[:16])
        return hit, True

    if len(images) < len(request.pdfImages):
        logger.info("Forwarding %d of %d page images", len(images), len(request.pdfImages))

    vision_request = VisionRequest(
        model=model,
        prompt=build_extraction_prompt(request.dimensions, request.scale),
        images=images,
    )
    text = await provider.complete(vision_request)
    parsed = parse_extraction_text(text)

    # Only successful parses reach the cache.
    cache.set(key, parsed)
    return parsed, False
