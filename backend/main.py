import asyncio
import contextlib
import json
import threading

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.config import config
from app.schemas import ErrorResponse, ExtractColorsRequest, ExtractColorsResponse, HealthResponse
from app.services.colors.errors import InvalidRequestError, PaletteError
from app.services.colors.extract_api import handle_extract, reject
from app.utils.logging import configure_logging
from app.utils.metrics import get_metrics

configure_logging()
config.validate_settings()

app = FastAPI(
    title="Palette Extractor",
    description="Dominant color palette extraction for post images",
    version=config.VERSION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


async def _watch_disconnect(request: Request, cancel: threading.Event, interval: float = 0.1):
    """Set ``cancel`` once the client goes away."""
    while not cancel.is_set():
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling extraction")
            cancel.set()
            return
        await asyncio.sleep(interval)


@app.get("/healthz", response_model=HealthResponse)
def health_check():
    """Palette extraction service health check."""
    return HealthResponse(
        ok=True,
        version=config.VERSION,
        service=config.SERVICE_NAME
    )


@app.get("/metrics")
def palette_metrics():
    """Get palette extraction metrics."""
    try:
        return get_metrics().get_summary()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to get metrics: {str(e)}")


@app.post(
    "/extractColors",
    response_model=ExtractColorsResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}},
)
async def extract_colors(request: Request):
    """
    Extract the dominant color palette of an image.

    - **image_url**: absolute URL of the image (required)
    - **num_colors**: maximum palette size (optional, default 10)
    - **color_format**: `rgb` (default) or `hex`
    - **include_swatch**: add a base64 PNG strip of the palette

    Returns `{"colors": [...]}` ordered most to least frequent, or
    HTTP 400 `{"error": "..."}` on any failure.
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        response = reject(InvalidRequestError("Request body must be valid JSON."))
        return JSONResponse(status_code=response.status_code, content=response.body)

    try:
        body = ExtractColorsRequest.parse_payload(payload)
    except PaletteError as e:
        response = reject(e)
        return JSONResponse(status_code=response.status_code, content=response.body)

    cancel = threading.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel))
    try:
        response = await run_in_threadpool(handle_extract, body.to_palette_request(cancel))
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher

    return JSONResponse(status_code=response.status_code, content=response.body)
