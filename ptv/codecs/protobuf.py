"""Schema-less Protobuf codec.

WHY: Credential dumps from mobile apps and internal services often arrive
as serialized Protobuf with no .proto file. The wire format is
self-describing enough (tag, wire type, value) to recover strings,
integers and nested messages without a schema.

HOW: The input is first read as a wrapper: a sequence of field-1,
length-delimited sub-messages, one per record. If that shape does not hold,
the whole input is read as a single message. Inside a message, strings go
through the shared absorption rules (classifier with a synthesized
``field_<n>`` name, then URL/email sniffing, then ``extra``); binary
payloads are decoded recursively as nested messages and merged upward.

RULES:
- Wire types 0 (varint), 1 (fixed64), 2 (length-delimited) and 5 (fixed32)
  are decoded; groups, unknown wire types and field number 0 end the scan
- Truncation keeps everything decoded before the bad unit
- A single message with no decodable field ⇒ ZeroRecoverableError
- Recovered columns carry confidence 0.3
- Render writes a wrapper of field-1 messages with fixed inner numbering:
  email=1 username=2 password=3 url=4 domain=5 ip=6 phone=7 name=8 hash=9
  (strings) and port=10 (varint, omitted when it does not fit in 64 bits);
  records with none of these are skipped
"""

from __future__ import annotations

import logging
import struct
from typing import List, Optional, Tuple

from ptv.codecs.base import Codec, render_each
from ptv.config import CONFIDENCE_SCHEMALESS
from ptv.core.binary import ByteReader, absorb_payload, encode_varint, field_key, put_extra
from ptv.core.errors import RenderIncompleteError, UnitUnparseable, ZeroRecoverableError
from ptv.core.ir import Dataset, Record, build_dataset

logger = logging.getLogger(__name__)

WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_BYTES = 2
WIRE_FIXED32 = 5

# Inner field numbering used by render.
RENDER_FIELDS: Tuple[str, ...] = (
    "email",
    "username",
    "password",
    "url",
    "domain",
    "ip",
    "phone",
    "name",
    "hash",
)
PORT_FIELD = 10
_U64_MAX = 0xFFFFFFFFFFFFFFFF


def _read_tag(reader: ByteReader) -> Tuple[int, int]:
    key = reader.varint()
    number, wire_type = key >> 3, key & 0x07
    if number == 0:
        raise UnitUnparseable("field number 0 at offset {}".format(reader.pos))
    return number, wire_type


def decode_message(data: bytes, depth: int = 0) -> Tuple[Optional[Record], bool]:
    """Decode one message.

    Returns ``(record, complete)``: ``record`` is None when not a single
    field could be decoded; ``complete`` is True when every byte of
    ``data`` was consumed cleanly.
    """
    record = Record()
    reader = ByteReader(data)
    fields = 0
    complete = True

    while not reader.at_end():
        start = reader.pos
        try:
            number, wire_type = _read_tag(reader)
            if wire_type == WIRE_BYTES:
                payload = reader.prefixed(reader.varint())
                absorb_payload(record, number, payload, _nested, depth)
            elif wire_type == WIRE_VARINT:
                put_extra(record.extra, field_key(number), reader.varint())
            elif wire_type == WIRE_FIXED64:
                put_extra(record.extra, field_key(number), struct.unpack("<Q", reader.read(8))[0])
            elif wire_type == WIRE_FIXED32:
                put_extra(record.extra, field_key(number), reader.u32le())
            else:
                raise UnitUnparseable("unsupported wire type {} at offset {}".format(wire_type, start))
        except UnitUnparseable as exc:
            logger.debug("protobuf: stopping at offset %d: %s", start, exc)
            complete = False
            break
        fields += 1

    if fields == 0:
        return None, complete
    return record, complete


def _nested(payload: bytes, depth: int) -> Optional[Record]:
    record, complete = decode_message(payload, depth)
    if not complete:
        return None
    return record


def _decode_wrapper(raw: bytes) -> List[Record]:
    """Read ``raw`` as repeated field-1 sub-messages.

    Returns [] unless every top-level unit is a field-1 length-delimited
    payload that decodes completely and at least one record carries a
    canonical value.
    """
    reader = ByteReader(raw)
    records: List[Record] = []
    try:
        while not reader.at_end():
            number, wire_type = _read_tag(reader)
            if number != 1 or wire_type != WIRE_BYTES:
                return []
            record, complete = decode_message(reader.prefixed(reader.varint()), 1)
            if record is None or not complete:
                return []
            records.append(record)
    except UnitUnparseable:
        return []
    if not any(record.canonical_values() for record in records):
        return []
    return records


class ProtobufCodec(Codec):
    """Codec for schema-less Protobuf wire-format blobs."""

    @property
    def name(self) -> str:
        return "protobuf"

    def parse(self, raw: bytes) -> Dataset:
        records = _decode_wrapper(raw)
        if not records:
            record, _ = decode_message(raw)
            if record is not None:
                records = [record]
        if not records:
            raise ZeroRecoverableError("protobuf: no parseable records found")
        return build_dataset(self.name, records, confidence=CONFIDENCE_SCHEMALESS)

    def render(self, dataset: Dataset) -> bytes:
        return b"".join(render_each(self.name, dataset.records, self._encode_record))

    @staticmethod
    def _encode_record(record: Record) -> bytes:
        values = record.canonical_values()
        message = b""
        for number, key in enumerate(RENDER_FIELDS, start=1):
            value = values.get(key)
            if value:
                encoded = value.encode("utf-8")
                message += encode_varint((number << 3) | WIRE_BYTES)
                message += encode_varint(len(encoded)) + encoded
        if 0 < record.port <= _U64_MAX:
            message += encode_varint((PORT_FIELD << 3) | WIRE_VARINT) + encode_varint(record.port)
        if not message:
            raise RenderIncompleteError("no canonical fields to encode")
        return encode_varint((1 << 3) | WIRE_BYTES) + encode_varint(len(message)) + message
