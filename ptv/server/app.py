"""FastAPI application exposing the conversion hub over HTTP.

WHY: Other tools (scripts, pipelines, n8n-style automations) need to
convert credential data without shelling out to the CLI. A small JSON API
with base64 payloads lets any HTTP client do that.

HOW: Three endpoints. POST /convert/{from}/{to} decodes the base64 body,
runs ``convert_with_dataset`` and returns the rendered bytes base64-encoded
along with a short summary. GET /formats lists the registry and GET
/health reports liveness.

RULES:
- Every response body carries ``ok``; errors use ErrorResponse
- Error messages for lookup/parse/render failures are the generic
  "conversion failed"; the cause is logged, never returned
- Input larger than MAX_INPUT_BYTES is refused with 413 before parsing
- No authentication, rate limiting or CORS
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import base64
import binascii
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ptv import __version__, codecs
from ptv.config import API_HOST, API_PORT, MAX_INPUT_BYTES
from ptv.conversion import convert_with_dataset
from ptv.core.document import format_timestamp
from ptv.core.errors import ParseError, RenderError, UnknownFormatError
from ptv.server.models import (
    ConvertMeta,
    ConvertRequest,
    ConvertResponse,
    ErrorDetail,
    ErrorResponse,
    FormatsResponse,
    HealthResponse,
)

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "conversion failed"

app = FastAPI(
    title="PTV Conversion API",
    description=(
        "Convert credential and identity data between formats (combo lists, "
        "hash lists, pot files, Kerberos keytabs, Thrift and Protobuf blobs, "
        "rainbow-table chains) through one canonical intermediate representation."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(RequestValidationError)
async def _bad_request_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request body for %s: %s", request.url.path, exc.errors())
    return _error(400, "bad_data", "request body must be a JSON object with a base64 'data' field")


# ---------------------------------------------------------------------------
# Endpoints: Conversion
# ---------------------------------------------------------------------------


@app.post(
    "/convert/{from_format}/{to_format}",
    response_model=ConvertResponse,
    tags=["convert"],
    summary="Convert a payload between two formats",
    description=(
        "Decode the base64 payload as `from_format`, render it as `to_format` "
        "and return the result base64-encoded. GET /formats lists valid names."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Bad payload or unknown format"},
        413: {"model": ErrorResponse, "description": "Payload too large"},
        422: {"model": ErrorResponse, "description": "Input could not be parsed or rendered"},
    },
)
def convert_payload(from_format: str, to_format: str, body: ConvertRequest):
    # Reject before decoding: base64 inflates by 4/3.
    if len(body.data) > (MAX_INPUT_BYTES // 3 + 1) * 4:
        return _error(413, "too_large", "payload exceeds {} bytes".format(MAX_INPUT_BYTES))

    try:
        raw = base64.b64decode(body.data, validate=True)
    except (binascii.Error, ValueError):
        return _error(400, "bad_data", "data is not valid base64")

    if not raw:
        return _error(400, "empty_data", "data is empty")
    if len(raw) > MAX_INPUT_BYTES:
        return _error(413, "too_large", "payload exceeds {} bytes".format(MAX_INPUT_BYTES))

    try:
        result = convert_with_dataset(from_format, to_format, raw)
    except UnknownFormatError:
        logger.info("Conversion requested with unregistered format")
        return _error(400, "invalid_format", GENERIC_FAILURE)
    except ParseError as exc:
        logger.info("Parse failed (%s): %s", from_format, exc)
        return _error(422, "parse_error", GENERIC_FAILURE)
    except RenderError as exc:
        logger.info("Render failed (%s -> %s): %s", from_format, to_format, exc)
        return _error(422, "render_error", GENERIC_FAILURE)

    meta = result.dataset.meta
    return ConvertResponse(
        data=base64.b64encode(result.data).decode("ascii"),
        meta=ConvertMeta(
            source_format=from_format,
            target_format=to_format,
            record_count=meta.record_count,
            parsed_at=format_timestamp(meta.parsed_at),
        ),
    )


# ---------------------------------------------------------------------------
# Endpoints: Formats and health
# ---------------------------------------------------------------------------


@app.get(
    "/formats",
    response_model=FormatsResponse,
    tags=["formats"],
    summary="List registered formats",
)
async def list_formats() -> FormatsResponse:
    names = codecs.list_codecs()
    return FormatsResponse(formats=names, count=len(names))


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(version=__version__)


def run_api():
    """Entry point for the ptv-api console script."""
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
