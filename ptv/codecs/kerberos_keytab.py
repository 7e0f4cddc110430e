"""Kerberos keytab codec (MIT file format, versions 0x0501 and 0x0502).

WHY: Keytabs hold long-term service and user keys. Converting them into
the IR exposes principal, realm and key material to every other format
(hash lists, JSON documents) without a Kerberos toolchain.

HOW: A 2-byte big-endian version header is followed by length-prefixed
entries. Each entry is read through its own bounded ByteReader, so a bad
field can only abort that entry; scanning resumes at the entry's declared
end offset.

Entry layout (all integers big-endian):

    i32   entry length (negative = hole left by a deleted entry)
    u16   component count (0x0501 stores count-1)
    u16+  realm
    u16+  component * count
    u32   name type (0x0502 only)
    u32   timestamp
    u8    key version number
    u16   key type
    u16+  key contents
    [u32] key version number, supersedes the u8 one when present and nonzero

RULES:
- Unknown version ⇒ ContainerInvalidError; no entries ⇒ ZeroRecoverableError
- Negative length: skip |length| bytes and keep scanning
- An entry longer than the remaining file ends the scan
- username = components joined with "/", domain = realm (confidence 1.0)
- extra carries key_type, kvno, timestamp, name_type and key_data (hex)
- Render always writes 0x0502; records without a username are skipped;
  an empty realm and missing numeric extras are written as "" / 0 because
  the entry layout has no way to omit them
"""

from __future__ import annotations

import logging
import struct
from typing import List, Optional

from ptv.codecs.base import Codec, render_each
from ptv.config import CONFIDENCE_STRUCTURED
from ptv.core.errors import (
    ContainerInvalidError,
    RenderIncompleteError,
    UnitUnparseable,
    ZeroRecoverableError,
)
from ptv.core.binary import ByteReader
from ptv.core.ir import Dataset, Record, build_dataset

logger = logging.getLogger(__name__)

KEYTAB_V1 = 0x0501
KEYTAB_V2 = 0x0502


def _decode_str(raw: bytes) -> str:
    return raw.decode("utf-8", errors="backslashreplace")


def _read_entry(reader: ByteReader, version: int) -> Record:
    """Decode one entry body. Raises UnitUnparseable on any overrun."""
    count = reader.u16be()
    if version == KEYTAB_V1:
        count += 1

    realm = _decode_str(reader.prefixed(reader.u16be()))
    components = []
    for _ in range(count):
        components.append(_decode_str(reader.prefixed(reader.u16be())))

    name_type = reader.u32be() if version == KEYTAB_V2 else 0
    timestamp = reader.u32be()
    kvno = reader.u8()
    key_type = reader.u16be()
    key_data = reader.prefixed(reader.u16be())

    if reader.remaining >= 4:
        kvno32 = reader.u32be()
        if kvno32 != 0:
            kvno = kvno32

    record = Record(username="/".join(components), domain=realm)
    record.extra = {
        "key_type": str(key_type),
        "kvno": str(kvno),
        "timestamp": str(timestamp),
        "name_type": str(name_type),
    }
    if key_data:
        record.extra["key_data"] = key_data.hex()
    return record


def _extra_uint(record: Record, key: str, bits: int) -> int:
    raw = record.extra_str(key)
    if not raw:
        return 0
    try:
        value = int(raw, 10)
    except ValueError:
        return 0
    if value < 0 or value >= (1 << bits):
        return 0
    return value


def _prefixed(data: bytes, what: str) -> bytes:
    if len(data) > 0xFFFF:
        raise RenderIncompleteError("{} longer than 65535 bytes".format(what))
    return struct.pack(">H", len(data)) + data


class KerberosKeytabCodec(Codec):
    """Codec for binary MIT keytab files."""

    @property
    def name(self) -> str:
        return "kerberos_keytab"

    def parse(self, raw: bytes) -> Dataset:
        reader = ByteReader(raw)
        if reader.remaining < 2:
            raise ContainerInvalidError("keytab too short")
        version = reader.u16be()
        if version not in (KEYTAB_V1, KEYTAB_V2):
            raise ContainerInvalidError("unsupported keytab version: 0x{:04x}".format(version))

        records: List[Record] = []
        while reader.remaining >= 4:
            size = reader.i32be()
            if size <= 0:
                hole = -size
                if hole > reader.remaining:
                    logger.debug("keytab: hole of %d bytes runs past end, stopping", hole)
                    break
                reader.skip(hole)
                continue

            if size > reader.remaining:
                logger.debug("keytab: entry of %d bytes truncated at offset %d", size, reader.pos)
                break

            entry_end = reader.pos + size
            try:
                records.append(_read_entry(ByteReader(raw, reader.pos, entry_end), version))
            except UnitUnparseable as exc:
                logger.debug("keytab: skipping malformed entry at offset %d: %s", reader.pos, exc)
            reader.pos = entry_end

        if not records:
            raise ZeroRecoverableError("keytab: no parseable entries found")
        return build_dataset(self.name, records, confidence=CONFIDENCE_STRUCTURED)

    def render(self, dataset: Dataset) -> bytes:
        entries = render_each(self.name, dataset.records, self._encode_entry)
        return struct.pack(">H", KEYTAB_V2) + b"".join(entries)

    def _encode_entry(self, record: Record) -> Optional[bytes]:
        if not record.username:
            raise RenderIncompleteError("no principal (username)")

        components = record.username.split("/")
        if len(components) > 0xFFFF:
            raise RenderIncompleteError("too many principal components")

        key_data = b""
        key_hex = record.extra_str("key_data")
        if key_hex:
            try:
                key_data = bytes.fromhex(key_hex)
            except ValueError:
                raise RenderIncompleteError("key_data is not hex")

        kvno = _extra_uint(record, "kvno", 32)

        body = struct.pack(">H", len(components))
        body += _prefixed(record.domain.encode("utf-8"), "realm")
        for component in components:
            body += _prefixed(component.encode("utf-8"), "principal component")
        body += struct.pack(
            ">IIBH",
            _extra_uint(record, "name_type", 32),
            _extra_uint(record, "timestamp", 32),
            kvno & 0xFF,
            _extra_uint(record, "key_type", 16),
        )
        body += _prefixed(key_data, "key data")
        if kvno > 0xFF:
            body += struct.pack(">I", kvno)

        return struct.pack(">i", len(body)) + body
