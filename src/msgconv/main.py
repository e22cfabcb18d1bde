"""
msgconv Main Application
========================

FastAPI entry point for the conversion service.

Envelopes are posted as JSON (opaque buffers base64-encoded) and come
back as wire payloads of the requested format.

Endpoints:
    GET  /                             - Service information
    GET  /health                       - Liveness probe
    GET  /formats                      - Bound payload formats
    GET  /formats/2/schema             - DEEPSTREAM_PROTOBUF schema descriptor
    POST /convert/{format_id}          - Convert one envelope
    POST /convert/{format_id}/batch    - Convert a list of envelopes

Error Mapping:
    UnknownFormat          -> 404
    BatchConversionError   -> 422 (with the failing index)
    ConversionError        -> 422
    Invalid envelope JSON  -> 422
"""

import base64
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, List

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from google.protobuf import json_format
from pydantic import TypeAdapter, ValidationError

from msgconv import __version__
from msgconv.config import settings, setup_logging
from msgconv.converters.protobuf import build_file_descriptor
from msgconv.errors import BatchConversionError, ConversionError, UnknownFormat
from msgconv.models.envelope import Envelope
from msgconv.registry import get_default_registry, reset_default_registry


setup_logging(settings)

logger = logging.getLogger(__name__)


_envelope_list = TypeAdapter(List[Envelope])
_startup_time: float = 0.0


# =============================================================================
# Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the registry (and load plugins) before serving traffic."""
    global _startup_time

    _startup_time = time.time()
    logger.info(f"Starting {settings.service.name} {settings.service.version}")

    registry = get_default_registry()
    logger.info(f"Serving formats: {[f'{f:#x}' for f in registry.formats]}")

    yield

    logger.info("Shutting down gracefully...")
    reset_default_registry()
    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="msgconv",
    description="Event metadata to wire payload conversion service",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(UnknownFormat)
async def unknown_format_handler(request: Request, exc: UnknownFormat) -> JSONResponse:
    return JSONResponse(
        {"error": "unknown_format", "detail": str(exc), "format_id": exc.format_id},
        status_code=404,
    )


@app.exception_handler(BatchConversionError)
async def batch_error_handler(request: Request, exc: BatchConversionError) -> JSONResponse:
    logger.warning(f"Batch rejected: {exc}")
    return JSONResponse(
        {"error": "batch_conversion_failed", "detail": str(exc), "index": exc.index},
        status_code=422,
    )


@app.exception_handler(ConversionError)
async def conversion_error_handler(request: Request, exc: ConversionError) -> JSONResponse:
    logger.warning(f"Conversion rejected: {exc}")
    return JSONResponse(
        {"error": "conversion_failed", "detail": str(exc)},
        status_code=422,
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        {
            "error": "invalid_envelope",
            "detail": exc.errors(include_url=False, include_context=False, include_input=False),
        },
        status_code=422,
    )


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": settings.service.name,
        "version": settings.service.version,
        "status": "running",
        "formats": list(get_default_registry().formats),
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "formats": len(get_default_registry()),
    })


@app.get("/formats")
async def formats() -> JSONResponse:
    """List bound payload formats."""
    registry = get_default_registry()
    return JSONResponse([
        {
            "id": format_id,
            "name": converter.name,
            "contentType": converter.content_type,
            "framed": converter.framed,
        }
        for format_id, converter in sorted(registry.converters().items())
    ])


@app.get("/formats/2/schema")
async def protobuf_schema() -> JSONResponse:
    """DEEPSTREAM_PROTOBUF schema as a JSON-encoded FileDescriptorProto."""
    return JSONResponse(json_format.MessageToDict(build_file_descriptor()))


@app.post("/convert/{format_id}")
async def convert(format_id: int, request: Request) -> Response:
    """Convert one envelope and return the raw payload."""
    converter = get_default_registry().get(format_id)
    envelope = Envelope.model_validate_json(await request.body())

    payload = converter.convert(envelope)
    return Response(
        content=payload.data,
        media_type=converter.content_type,
        headers={
            "X-Component-Id": str(payload.component_id),
            "X-Payload-Size": str(payload.size),
        },
    )


@app.post("/convert/{format_id}/batch")
async def convert_batch(format_id: int, request: Request) -> Response:
    """
    Convert a list of envelopes.

    Framed formats answer with the single framed payload. Per-event
    formats answer with a JSON summary: payloads base64-encoded at their
    input index (null where the event failed) and the errors by index.
    """
    converter = get_default_registry().get(format_id)
    envelopes = _envelope_list.validate_json(await request.body())

    result = converter.convert_batch(envelopes)
    if result.framed:
        payload = result.payloads[0]
        return Response(
            content=payload.data,
            media_type=converter.content_type,
            headers={
                "X-Component-Id": str(payload.component_id),
                "X-Payload-Size": str(payload.size),
                "X-Event-Count": str(len(envelopes)),
            },
        )

    return JSONResponse({
        "format": format_id,
        "converter": converter.name,
        "count": len(envelopes),
        "succeeded": len(result.succeeded),
        "payloads": [
            None if payload is None else {
                "componentId": payload.component_id,
                "size": payload.size,
                "data": base64.b64encode(payload.data).decode("ascii"),
            }
            for payload in result.payloads
        ],
        "errors": {str(index): str(error) for index, error in result.errors.items()},
    })


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "msgconv.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
    )
