"""Configuration constants and .env loading.

WHY: Centralizes the values an operator may want to tune (document
version, input size ceiling, nesting depth for the binary decoder, log
level, HTTP bind address) so they are easy to find and override
without touching codec logic.

HOW: python-dotenv loads the .env file on import. Constants are plain
module-level values read from the environment with sensible defaults.

RULES:
- All defaults can be overridden via environment variables
- Numeric settings that fail to parse fall back to their default
- Nothing here imports from the rest of the package
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the working directory (where the tool is run from)
load_dotenv()


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# IR document
# ---------------------------------------------------------------------------

PTV_VERSION = os.getenv("PTV_VERSION", "1.0")
"""Value written to ``ptv_version`` in every Dataset."""

# ---------------------------------------------------------------------------
# Decoder limits
# ---------------------------------------------------------------------------

MAX_INPUT_BYTES = _env_int("PTV_MAX_INPUT_BYTES", 10 * 1024 * 1024)
"""Largest payload the calling layer accepts for one conversion."""

MAX_NESTING_DEPTH = _env_int("PTV_MAX_NESTING_DEPTH", 32)
"""Deepest nested structure the schema-less decoders will recurse into."""

# ---------------------------------------------------------------------------
# Logging and HTTP API
# ---------------------------------------------------------------------------

LOG_LEVEL = os.getenv("PTV_LOG_LEVEL", "WARNING").upper()
API_HOST = os.getenv("PTV_API_HOST", "127.0.0.1")
API_PORT = _env_int("PTV_API_PORT", 474)

# ---------------------------------------------------------------------------
# Confidence defaults per codec family
# ---------------------------------------------------------------------------

CONFIDENCE_STRUCTURED = 1.0
"""The format itself labels every value (keytab principals, hash lists)."""

CONFIDENCE_SCHEMALESS = 0.3
"""Values recovered from schema-less binary blobs by sniffing."""
