"""Dataset <-> JSON document mapping.

WHY: The IR has one canonical serialized form, used by the ``ptv_json``
codec and by anything that wants to inspect a parse result. Keeping the
mapping in one place means the document shape, the JSON Schema and the
dataclasses cannot drift apart silently.

HOW: ``to_document`` walks the dataclasses and emits plain dicts, omitting
empty fields. ``from_document`` does the reverse and expects input that has
already passed ``validate_document``.

RULES:
- ``parsed_at`` is RFC 3339 in UTC with a ``Z`` suffix
- Empty strings, port 0, missing or empty hash/salt and empty
  unknowns/extra are omitted from records
- A hash type outside HashAlgorithm is read as UNKNOWN with its original
  label kept, and written back under that label
- ``ptv_id`` is always written
- ``record_count`` on the way in is recomputed from the records
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema

from ptv.core.ir import (
    CANONICAL_FIELDS,
    Dataset,
    Hash,
    HashAlgorithm,
    Meta,
    PotentialField,
    Record,
    Salt,
    SaltEncoding,
    UnknownField,
)

_SCHEMA_PATH = Path(__file__).resolve().parent / "ptv_dataset_schema.json"

_CACHED_SCHEMA: Optional[Dict[str, Any]] = None


def get_schema() -> Dict[str, Any]:
    """Load the document JSON Schema, cached after the first call."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


def validate_document(document: Any) -> None:
    """Validate a document against the schema.

    Raises:
        jsonschema.ValidationError: The document does not conform.
    """
    jsonschema.validate(instance=document, schema=get_schema())


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware UTC datetime.

    Raises:
        ValueError: The string is not a recognizable timestamp.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Dataset -> document
# ---------------------------------------------------------------------------


def record_to_dict(record: Record) -> Dict[str, Any]:
    out: Dict[str, Any] = {"ptv_id": record.ptv_id}
    for name in ("email", "username", "phone", "name", "password"):
        value = getattr(record, name)
        if value:
            out[name] = value
    if record.hash is not None and record.hash.value:
        out["hash"] = {"type": record.hash.type_label, "value": record.hash.value}
    if record.salt is not None and record.salt.value:
        out["salt"] = {"value": record.salt.value, "encoding": record.salt.encoding.value}
    for name in ("url", "domain", "ip"):
        value = getattr(record, name)
        if value:
            out[name] = value
    if record.port:
        out["port"] = record.port
    if record.unknowns:
        out["unknowns"] = [_unknown_to_dict(unknown) for unknown in record.unknowns]
    if record.extra:
        out["extra"] = dict(record.extra)
    return out


def _unknown_to_dict(unknown: UnknownField) -> Dict[str, Any]:
    out: Dict[str, Any] = {"value": unknown.value}
    if unknown.potential_fields:
        out["potential_fields"] = [
            {"field": guess.field_name, "confidence": guess.confidence}
            for guess in unknown.potential_fields
        ]
    return out


def to_document(dataset: Dataset) -> Dict[str, Any]:
    """Convert a Dataset into its JSON-ready document."""
    meta = dataset.meta
    return {
        "ptv_version": dataset.version,
        "meta": {
            "source_format": meta.source_format,
            "parsed_at": format_timestamp(meta.parsed_at),
            "record_count": meta.record_count,
            "columns": list(meta.columns),
            "field_confidence": dict(meta.field_confidence),
        },
        "records": [record_to_dict(record) for record in dataset.records],
    }


# ---------------------------------------------------------------------------
# document -> Dataset
# ---------------------------------------------------------------------------


def record_from_dict(data: Dict[str, Any]) -> Record:
    record = Record(ptv_id=data["ptv_id"])
    for name in CANONICAL_FIELDS:
        value = data.get(name)
        if value:
            setattr(record, name, value)
    hash_data = data.get("hash")
    if hash_data is not None and hash_data["value"]:
        label = hash_data["type"]
        algorithm = HashAlgorithm.from_label(label)
        record.hash = Hash(
            algorithm=algorithm,
            value=hash_data["value"],
            label="" if algorithm.value == label else label,
        )
    salt_data = data.get("salt")
    if salt_data is not None and salt_data["value"]:
        record.salt = Salt(value=salt_data["value"], encoding=SaltEncoding(salt_data["encoding"]))
    record.port = data.get("port", 0)
    for unknown in data.get("unknowns", []):
        guesses: List[PotentialField] = [
            PotentialField(field_name=guess["field"], confidence=float(guess["confidence"]))
            for guess in unknown.get("potential_fields", [])
        ]
        record.unknowns.append(UnknownField(value=unknown["value"], potential_fields=guesses))
    record.extra = dict(data.get("extra", {}))
    return record


def from_document(document: Dict[str, Any]) -> Dataset:
    """Build a Dataset from a validated document.

    Raises:
        ValueError: ``parsed_at`` is not a valid timestamp.
    """
    meta_data = document["meta"]
    records = tuple(record_from_dict(item) for item in document["records"])
    meta = Meta(
        source_format=meta_data["source_format"],
        parsed_at=parse_timestamp(meta_data["parsed_at"]),
        record_count=len(records),
        columns=list(meta_data["columns"]),
        field_confidence={key: float(value) for key, value in meta_data["field_confidence"].items()},
    )
    return Dataset(version=document["ptv_version"], meta=meta, records=records)
