"""Schema-less Thrift binary-protocol codec.

WHY: Services built on Thrift persist and exchange credentials as
TBinaryProtocol structs. Without the IDL the field names are gone, but the
protocol still says what type each field is, which is enough to recover
strings, numbers and nested structs.

HOW: A struct is a run of ``type:u8 id:i16 value`` fields ended by a STOP
byte. Strings pass through the shared absorption rules; binary strings and
nested structs are decoded recursively and merged upward first-write-wins.
Scalars and containers (list, set, map) are kept under ``extra``. The input
is read as consecutive top-level structs, one record each.

RULES:
- Container counts and string lengths are validated against the remaining
  bytes before anything is read
- A failing top-level struct ends the scan; earlier structs are kept
- Structs with no fields at all are dropped (there is nothing to lose)
- No struct decoded ⇒ ZeroRecoverableError
- Recovered columns carry confidence 0.3
- Render writes one struct per record using the same field ids as the
  protobuf codec (email=1 ... hash=9 as strings, port=10 as i32), each
  followed by STOP; records with none of these are skipped
"""

from __future__ import annotations

import logging
import math
import struct
from typing import Any, Dict, List, Optional

from ptv.codecs.base import Codec, render_each
from ptv.codecs.protobuf import PORT_FIELD, RENDER_FIELDS
from ptv.config import CONFIDENCE_SCHEMALESS, MAX_NESTING_DEPTH
from ptv.core.binary import (
    ByteReader,
    absorb_payload,
    decode_text,
    field_key,
    merge_nested,
    put_extra,
)
from ptv.core.errors import RenderIncompleteError, UnitUnparseable, ZeroRecoverableError
from ptv.core.ir import Dataset, Record, build_dataset

logger = logging.getLogger(__name__)

T_STOP = 0
T_BOOL = 2
T_BYTE = 3
T_DOUBLE = 4
T_I16 = 6
T_I32 = 8
T_I64 = 10
T_STRING = 11
T_STRUCT = 12
T_MAP = 13
T_SET = 14
T_LIST = 15


def _count(reader: ByteReader) -> int:
    count = reader.i32be()
    if count < 0 or count > reader.remaining:
        raise UnitUnparseable("container size {} inconsistent at offset {}".format(count, reader.pos))
    return count


def _record_mapping(record: Record) -> Dict[str, Any]:
    """Flatten a nested Record into a plain mapping for container storage."""
    mapping: Dict[str, Any] = dict(record.canonical_values())
    if record.port:
        mapping["port"] = record.port
    if record.salt is not None:
        mapping["salt"] = record.salt.value
    for key, value in record.extra.items():
        put_extra(mapping, key, value)
    if record.unknowns:
        mapping["unknowns"] = [unknown.value for unknown in record.unknowns]
    return mapping


def _read_value(reader: ByteReader, ttype: int, depth: int) -> Any:
    """Read one value of ``ttype`` as a JSON-friendly Python value."""
    if ttype == T_BOOL:
        return reader.u8() != 0
    if ttype == T_BYTE:
        return reader.i8()
    if ttype == T_DOUBLE:
        value = reader.f64be()
        return value if math.isfinite(value) else repr(value)
    if ttype == T_I16:
        return reader.i16be()
    if ttype == T_I32:
        return reader.i32be()
    if ttype == T_I64:
        return reader.i64be()
    if ttype == T_STRING:
        payload = reader.prefixed(reader.i32be())
        text = decode_text(payload)
        return text if text is not None else payload.hex()

    if depth >= MAX_NESTING_DEPTH:
        raise UnitUnparseable("nesting deeper than {}".format(MAX_NESTING_DEPTH))
    if ttype == T_STRUCT:
        return _record_mapping(decode_struct(reader, depth + 1))
    if ttype in (T_LIST, T_SET):
        element_type = reader.u8()
        return [_read_value(reader, element_type, depth + 1) for _ in range(_count(reader))]
    if ttype == T_MAP:
        key_type = reader.u8()
        value_type = reader.u8()
        mapping: Dict[str, Any] = {}
        for _ in range(_count(reader)):
            key = _read_value(reader, key_type, depth + 1)
            value = _read_value(reader, value_type, depth + 1)
            put_extra(mapping, key if isinstance(key, str) else str(key), value)
        return mapping
    raise UnitUnparseable("unsupported field type {} at offset {}".format(ttype, reader.pos))


def decode_struct(reader: ByteReader, depth: int = 0) -> Record:
    """Decode fields up to and including STOP. Raises UnitUnparseable."""
    record = Record()
    while True:
        ttype = reader.u8()
        if ttype == T_STOP:
            return record
        field_id = reader.i16be()
        if ttype == T_STRING:
            payload = reader.prefixed(reader.i32be())
            absorb_payload(record, field_id, payload, _nested, depth)
        elif ttype == T_STRUCT:
            if depth >= MAX_NESTING_DEPTH:
                raise UnitUnparseable("nesting deeper than {}".format(MAX_NESTING_DEPTH))
            merge_nested(record, field_key(field_id), decode_struct(reader, depth + 1))
        else:
            put_extra(record.extra, field_key(field_id), _read_value(reader, ttype, depth))


def _nested(payload: bytes, depth: int) -> Optional[Record]:
    reader = ByteReader(payload)
    try:
        record = decode_struct(reader, depth)
    except UnitUnparseable:
        return None
    if not reader.at_end() or record.is_empty():
        return None
    return record


def _string_field(field_id: int, value: str) -> bytes:
    encoded = value.encode("utf-8")
    return struct.pack(">bhi", T_STRING, field_id, len(encoded)) + encoded


class ThriftCodec(Codec):
    """Codec for schema-less Thrift TBinaryProtocol structs."""

    @property
    def name(self) -> str:
        return "thrift"

    def parse(self, raw: bytes) -> Dataset:
        reader = ByteReader(raw)
        records: List[Record] = []
        while not reader.at_end():
            start = reader.pos
            try:
                record = decode_struct(reader)
            except UnitUnparseable as exc:
                logger.debug("thrift: stopping at offset %d: %s", start, exc)
                break
            if not record.is_empty():
                records.append(record)

        if not records:
            raise ZeroRecoverableError("thrift: no parseable records found")
        return build_dataset(self.name, records, confidence=CONFIDENCE_SCHEMALESS)

    def render(self, dataset: Dataset) -> bytes:
        return b"".join(render_each(self.name, dataset.records, self._encode_record))

    @staticmethod
    def _encode_record(record: Record) -> bytes:
        values = record.canonical_values()
        body = b""
        for field_id, key in enumerate(RENDER_FIELDS, start=1):
            value = values.get(key)
            if value:
                body += _string_field(field_id, value)
        if 0 < record.port <= 0x7FFFFFFF:
            body += struct.pack(">bhi", T_I32, PORT_FIELD, record.port)
        if not body:
            raise RenderIncompleteError("no canonical fields to encode")
        return body + bytes([T_STOP])
