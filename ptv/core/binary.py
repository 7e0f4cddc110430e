"""Bounds-checked byte cursor and schema-less field absorption.

WHY: Keytabs, Thrift and Protobuf blobs and rainbow tables are binary
streams with a self-describing tag/length/value shape but no schema we can
compile against. Their decoders share two needs: reading integers and
length-prefixed slices without ever running off the end of a malformed
buffer, and deciding where each recovered value belongs in a Record.

HOW: ``ByteReader`` wraps a bytes object and a position. Every read checks
the remaining length first and raises ``TruncatedInput`` instead of
slicing past the end, so decoders stop cleanly at the last complete unit.
``absorb_payload`` implements the shared placement rules: text goes through
the classifier, then content sniffing, then ``extra``; non-text is handed
back to the codec's own nested decoder, whose discoveries are merged upward
first-write-wins; anything left is kept hex-encoded.

RULES:
- No read ever slices beyond the buffer; length prefixes are validated
  against the remaining bytes before the slice is taken
- Every loop over a buffer consumes at least one byte per iteration
- Nested recursion stops at MAX_NESTING_DEPTH; deeper payloads are kept as hex
- A value already set at the outer level is never overwritten by a nested one
- Nothing recovered is dropped: merge conflicts and nested leftovers are
  kept under ``extra[field_<tag>]``
"""

from __future__ import annotations

import struct
from typing import Any, Callable, Dict, Optional

from ptv.config import MAX_NESTING_DEPTH
from ptv.core.classifier import classify, sniff_value
from ptv.core.errors import TruncatedInput, UnitUnparseable
from ptv.core.ir import CANONICAL_FIELDS, Record

# A codec's nested decoder: (payload, depth) -> Record, or None if the
# payload does not decode as a nested structure.
NestedDecoder = Callable[[bytes, int], Optional[Record]]

_MAX_VARINT_BYTES = 10
_ALLOWED_CONTROL = frozenset("\t\n\r")


class ByteReader:
    """Sequential reader over an immutable byte buffer.

    All integer helpers are named by width, signedness and byte order
    (``u16be``, ``i32be``, ``u64le`` ...). Each raises TruncatedInput when
    fewer bytes remain than the read needs; the position is left unchanged
    in that case.
    """

    def __init__(self, data: bytes, start: int = 0, end: Optional[int] = None) -> None:
        self._data = data
        self._end = len(data) if end is None else min(end, len(data))
        self.pos = max(0, min(start, self._end))

    @property
    def remaining(self) -> int:
        return self._end - self.pos

    def at_end(self) -> bool:
        return self.pos >= self._end

    def _need(self, count: int) -> None:
        if count < 0 or count > self.remaining:
            raise TruncatedInput(
                "need {} bytes at offset {}, {} remain".format(count, self.pos, self.remaining)
            )

    def read(self, count: int) -> bytes:
        self._need(count)
        chunk = self._data[self.pos:self.pos + count]
        self.pos += count
        return chunk

    def skip(self, count: int) -> None:
        self._need(count)
        self.pos += count

    def _unpack(self, fmt: str) -> Any:
        size = struct.calcsize(fmt)
        self._need(size)
        (value,) = struct.unpack_from(fmt, self._data, self.pos)
        self.pos += size
        return value

    def u8(self) -> int:
        return self._unpack(">B")

    def i8(self) -> int:
        return self._unpack(">b")

    def u16be(self) -> int:
        return self._unpack(">H")

    def i16be(self) -> int:
        return self._unpack(">h")

    def u32be(self) -> int:
        return self._unpack(">I")

    def i32be(self) -> int:
        return self._unpack(">i")

    def i64be(self) -> int:
        return self._unpack(">q")

    def f64be(self) -> float:
        return self._unpack(">d")

    def u32le(self) -> int:
        return self._unpack("<I")

    def u64le(self) -> int:
        return self._unpack("<Q")

    def varint(self) -> int:
        """Read a base-128 little-endian varint of at most 10 bytes."""
        result = 0
        for index in range(_MAX_VARINT_BYTES):
            if index >= self.remaining:
                raise TruncatedInput("varint runs past end at offset {}".format(self.pos))
            byte = self._data[self.pos + index]
            result |= (byte & 0x7F) << (7 * index)
            if not byte & 0x80:
                self.pos += index + 1
                return result & 0xFFFFFFFFFFFFFFFF
        raise UnitUnparseable("varint longer than {} bytes at offset {}".format(_MAX_VARINT_BYTES, self.pos))

    def prefixed(self, length: int) -> bytes:
        """Take a ``length``-byte slice announced by a preceding prefix."""
        if length < 0:
            raise UnitUnparseable("negative length prefix {} at offset {}".format(length, self.pos))
        return self.read(length)


def encode_varint(value: int) -> bytes:
    value &= 0xFFFFFFFFFFFFFFFF
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def field_key(tag: int) -> str:
    """Synthesized field name for a numeric tag, e.g. ``field_3``."""
    return "field_{}".format(tag)


def decode_text(payload: bytes) -> Optional[str]:
    """Return ``payload`` as text if it is valid UTF-8 without control bytes.

    Tab, CR and LF are allowed. Anything else below 0x20 (and DEL) marks
    the payload as binary, which is what nested Protobuf/Thrift structures
    look like: their tag and length bytes are almost always small.
    """
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError:
        return None
    for ch in text:
        if (ch < " " and ch not in _ALLOWED_CONTROL) or ch == "\x7f":
            return None
    return text


def put_extra(target: Dict[str, Any], key: str, value: Any) -> str:
    """Store ``value`` under ``key`` without overwriting an existing entry.

    Repeated tags get ``key_2``, ``key_3`` ... Returns the key used.
    """
    if key not in target:
        target[key] = value
        return key
    index = 2
    while "{}_{}".format(key, index) in target:
        index += 1
    used = "{}_{}".format(key, index)
    target[used] = value
    return used


def absorb_text(record: Record, key: str, text: str) -> None:
    """Place a text value: classifier, then sniffing, then ``extra``."""
    if classify(record, key, text):
        return
    if sniff_value(record, text):
        return
    put_extra(record.extra, key, text)


def merge_nested(record: Record, key: str, nested: Record) -> None:
    """Merge a nested structure's discoveries into ``record``.

    Canonical fields, hash, salt and port move up only where the outer
    record is still empty. Everything that cannot move up (conflicts and
    the nested record's own ``extra``) is kept as a mapping under
    ``extra[key]``. Nested unknowns are appended to the outer list.
    """
    leftovers: Dict[str, Any] = {}

    for name in CANONICAL_FIELDS:
        value = getattr(nested, name)
        if not value:
            continue
        if getattr(record, name):
            leftovers[name] = value
        else:
            setattr(record, name, value)

    if nested.hash is not None:
        if record.hash is None:
            record.hash = nested.hash
        else:
            leftovers["hash"] = nested.hash.value
    if nested.salt is not None:
        if record.salt is None:
            record.salt = nested.salt
        else:
            leftovers["salt"] = nested.salt.value
    if nested.port:
        if record.port:
            leftovers["port"] = nested.port
        else:
            record.port = nested.port

    for nested_key, value in nested.extra.items():
        put_extra(leftovers, nested_key, value)
    record.unknowns.extend(nested.unknowns)

    if leftovers:
        put_extra(record.extra, key, leftovers)


def absorb_payload(
    record: Record,
    tag: int,
    payload: bytes,
    decode_nested: NestedDecoder,
    depth: int,
) -> None:
    """Apply the schema-less placement rules to one byte payload.

    Args:
        record: The Record under construction.
        tag: Field number / id the payload was found under.
        payload: The raw bytes.
        decode_nested: The codec's decoder for a nested structure.
        depth: Current nesting depth (0 at the top level).
    """
    key = field_key(tag)
    text = decode_text(payload)
    if text is not None:
        absorb_text(record, key, text)
        return

    nested: Optional[Record] = None
    if payload and depth < MAX_NESTING_DEPTH:
        nested = decode_nested(payload, depth + 1)
    if nested is None:
        put_extra(record.extra, key, payload.hex())
        return
    merge_nested(record, key, nested)
