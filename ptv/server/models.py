"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation.

HOW: One request model for conversions, one response model per endpoint,
and a shared error envelope. Every response carries ``ok`` so clients can
branch on a single field.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Error messages never name the format that failed to resolve
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ConvertRequest(BaseModel):
    """Body of POST /convert/{from}/{to}."""

    data: str = Field(description="Source payload, base64-encoded.")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class ConvertMeta(BaseModel):
    """Summary of a successful conversion."""

    source_format: str = Field(description="Format the input was parsed as.")
    target_format: str = Field(description="Format the output was rendered as.")
    record_count: int = Field(description="Number of records recovered from the input.")
    parsed_at: str = Field(description="RFC 3339 UTC timestamp of the parse.")


class ConvertResponse(BaseModel):
    """Successful conversion result."""

    ok: bool = Field(default=True, description="Always true for a successful conversion.")
    data: str = Field(description="Rendered output, base64-encoded.")
    meta: ConvertMeta = Field(description="Conversion summary.")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "ok": True,
                "data": "YWxpY2VAZXhhbXBsZS5jb206aHVudGVyMgo=",
                "meta": {
                    "source_format": "combolist_user_pass",
                    "target_format": "combolist_email_pass",
                    "record_count": 1,
                    "parsed_at": "2026-01-01T00:00:00Z",
                },
            }
        ]
    }}


class ErrorDetail(BaseModel):
    code: str = Field(description="Machine-readable error code.")
    message: str = Field(description="Human-readable error description.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - ok is always false
    - error.code is one of bad_data, empty_data, too_large,
      invalid_format, parse_error, render_error
    """

    ok: bool = Field(default=False, description="Always false for errors.")
    error: ErrorDetail = Field(description="What went wrong.")


class FormatsResponse(BaseModel):
    """List of registered format names."""

    ok: bool = Field(default=True)
    formats: List[str] = Field(description="Registered format names, sorted.")
    count: int = Field(description="Number of registered formats.")


class HealthResponse(BaseModel):
    """Health check response."""

    ok: bool = Field(default=True, description="Service is alive.")
    version: str = Field(description="Package version string.", json_schema_extra={"example": "0.1.0"})
