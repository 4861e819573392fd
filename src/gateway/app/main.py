import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from formlens.errors import FormlensError

from .cache import cache
from .config import settings
from .extraction import extract_fields
from .middleware.logging import LoggingMiddleware, log_extraction_request, log_extraction_response
from .openai_client import get_openai_api_key, has_api_key
from .providers import OpenAIProvider, Provider
from .schemas import ErrorResponse, ExtractRequest, ExtractResponse

# Provider instances injected by tests or embedding applications.  When empty
# an OpenAIProvider is built per request from the current credential.
providers: dict[str, Provider] = {}

# Set up logger
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    # The credential is checked per request, so a missing key only warns here.
    if not has_api_key():
        logger.warning(
            "OPENAI_API_KEY is not set; extraction requests will fail until it is configured"
        )
    logger.info(
        "Extraction model %s, cache ttl=%ss max_entries=%s",
        settings.extraction_model,
        cache.ttl_seconds,
        cache.max_entries,
    )
    yield
    cache.clear()


app = FastAPI(
    title="formlens Extraction Gateway",
    description="Same-origin proxy that extracts form fields from PDF page images",
    version="1.0.0",
    lifespan=lifespan,
)

# Add logging middleware
app.add_middleware(LoggingMiddleware)


@app.exception_handler(FormlensError)
async def formlens_error_handler(request: Request, exc: FormlensError):
    logger.error("Extraction error (%s): %s", type(exc).__name__, exc)
    body = ErrorResponse(**exc.to_payload())
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


def resolve_provider(api_key: str) -> Provider:
    provider = providers.get("openai")
    if provider is None:
        provider = OpenAIProvider(api_key)
    return provider


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "model": settings.extraction_model,
        "credential_configured": has_api_key(),
        "cache": cache.stats(),
    }


def invalid_request(details: str) -> JSONResponse:
    body = ErrorResponse(error="Invalid extraction request", type="ValidationError", details=details)
    return JSONResponse(status_code=400, content=body.model_dump())


@app.post(
    "/api/extract",
    response_model=ExtractResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def extract(request: Request):
    """Extract form fields from rendered page images."""
    request_id = request.state.request_id

    # Parse request
    try:
        body = await request.json()
    except ValueError as e:
        return invalid_request(f"Request body is not valid JSON: {e}")
    try:
        extract_request = ExtractRequest.model_validate(body)
    except ValidationError as e:
        return invalid_request(str(e))

    # Missing credential is fatal for this request; nothing is sent upstream.
    api_key = get_openai_api_key()
    provider = resolve_provider(api_key)

    log_extraction_request(
        request_id,
        settings.extraction_model,
        len(extract_request.pdfImages),
        len(extract_request.dimensions),
    )

    start_time = time.time()
    try:
        parsed, cached = await extract_fields(
            extract_request,
            provider,
            cache,
            model=settings.extraction_model,
            max_images=settings.max_forwarded_images,
        )
    except FormlensError:
        raise
    except Exception as e:
        logger.exception("[request %s] unexpected extraction failure", request_id)
        body = ErrorResponse(error=f"Extraction failed: {e!s}", type=type(e).__name__)
        return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))

    log_extraction_response(
        request_id,
        settings.extraction_model,
        parsed,
        cached,
        time.time() - start_time,
    )
    return ExtractResponse(parsed=parsed, cached=cached)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=settings.log_level.upper())
    host = settings.formlens_gateway_host
    port = settings.formlens_gateway_port
    print(f"Starting formlens gateway on {host}:{port}")
    uvicorn.run(app, host=host, port=port)
