"""Request / response logging utilities for the formlens gateway.

The middleware assigns a short *request_id* to every incoming HTTP request so
that individual log lines can be correlated when the service handles
concurrent uploads.
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger("gateway")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Attach a short *request_id* and log basic request / response metadata."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:  # noqa: D401  (simple dispatch signature)
        request_id = uuid.uuid4().hex[:8]
        request.state.request_id = request_id

        started = time.time()
        status: int | str = "error"
        try:
            response = await call_next(request)
            status = response.status_code
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            duration_ms = (time.time() - started) * 1_000
            logger.info(
                "[request %s] %s %s → %s (%.1f ms)",
                request_id,
                request.method,
                request.url.path,
                status,
                duration_ms,
            )


# ---------------------------------------------------------------------------
# Helper functions used by the main application module
# ---------------------------------------------------------------------------


def log_extraction_request(
    request_id: str,
    model: str,
    image_count: int,
    page_count: int,
) -> None:
    """Log the extraction request that is about to be served."""

    logger.debug(
        "[request %s] → extraction | model=%s | images=%d | pages=%d",
        request_id,
        model,
        image_count,
        page_count,
    )


def log_extraction_response(
    request_id: str,
    model: str,
    parsed: dict,
    cached: bool,
    duration: float,
) -> None:
    """Log the outcome of an extraction request."""

    logger.debug(
        "[request %s] ← extraction | model=%s | %.0f ms | cached=%s | fields=%d",
        request_id,
        model,
        duration * 1_000,
        cached,
        len(parsed.get("fields", [])),
    )
