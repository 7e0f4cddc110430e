"""Shared test fixtures for the ptv test suite.

WHY: The binary codecs need well-formed (and deliberately broken) inputs.
Hand-assembling bytes in every test hides the intent, so the builders live
here and are handed to tests as fixtures.

HOW: Each fixture returns a small builder function. Builders produce raw
bytes in exactly the on-disk layout the codec expects; tests then slice,
truncate or corrupt them as needed.

RULES:
- Builders never call the codecs under test
- All integers are packed explicitly with struct so layouts are visible
"""

import struct
from typing import List, Sequence

import pytest

from ptv.core.binary import encode_varint


# ---------------------------------------------------------------------------
# Kerberos keytab
# ---------------------------------------------------------------------------


def _counted(data: bytes) -> bytes:
    return struct.pack(">H", len(data)) + data


def build_keytab_entry(
    components: Sequence[str] = ("alice",),
    realm: str = "EXAMPLE.COM",
    version: int = 0x0502,
    name_type: int = 1,
    timestamp: int = 1700000000,
    kvno: int = 3,
    key_type: int = 18,
    key: bytes = b"\x01\x02\x03\x04",
    kvno32: int = -1,
) -> bytes:
    """One keytab entry including its i32 length prefix."""
    count = len(components) - 1 if version == 0x0501 else len(components)
    body = struct.pack(">H", count)
    body += _counted(realm.encode("utf-8"))
    for component in components:
        body += _counted(component.encode("utf-8"))
    if version == 0x0502:
        body += struct.pack(">I", name_type)
    body += struct.pack(">IBH", timestamp, kvno, key_type)
    body += _counted(key)
    if kvno32 >= 0:
        body += struct.pack(">I", kvno32)
    return struct.pack(">i", len(body)) + body


def build_keytab(entries: List[bytes], version: int = 0x0502) -> bytes:
    return struct.pack(">H", version) + b"".join(entries)


@pytest.fixture
def keytab_entry():
    return build_keytab_entry


@pytest.fixture
def keytab():
    return build_keytab


# ---------------------------------------------------------------------------
# Protobuf wire format
# ---------------------------------------------------------------------------


def pb_bytes(number: int, payload: bytes) -> bytes:
    return encode_varint((number << 3) | 2) + encode_varint(len(payload)) + payload


def pb_string(number: int, value: str) -> bytes:
    return pb_bytes(number, value.encode("utf-8"))


def pb_varint(number: int, value: int) -> bytes:
    return encode_varint(number << 3) + encode_varint(value)


@pytest.fixture
def pb():
    """Namespace of protobuf builders: pb.string, pb.bytes, pb.varint."""

    class _Builders:
        string = staticmethod(pb_string)
        bytes = staticmethod(pb_bytes)
        varint = staticmethod(pb_varint)

    return _Builders


# ---------------------------------------------------------------------------
# Thrift binary protocol
# ---------------------------------------------------------------------------


def thrift_string(field_id: int, value: str) -> bytes:
    encoded = value.encode("utf-8")
    return struct.pack(">bhi", 11, field_id, len(encoded)) + encoded


def thrift_binary(field_id: int, payload: bytes) -> bytes:
    return struct.pack(">bhi", 11, field_id, len(payload)) + payload


def thrift_i32(field_id: int, value: int) -> bytes:
    return struct.pack(">bhi", 8, field_id, value)


def thrift_struct(field_id: int, body: bytes) -> bytes:
    """Nested struct field; ``body`` must already end with STOP."""
    return struct.pack(">bh", 12, field_id) + body


def thrift_list_i32(field_id: int, values: Sequence[int]) -> bytes:
    out = struct.pack(">bhbi", 15, field_id, 8, len(values))
    for value in values:
        out += struct.pack(">i", value)
    return out


STOP = b"\x00"


@pytest.fixture
def thrift():
    """Namespace of thrift builders."""

    class _Builders:
        string = staticmethod(thrift_string)
        binary = staticmethod(thrift_binary)
        i32 = staticmethod(thrift_i32)
        struct = staticmethod(thrift_struct)
        list_i32 = staticmethod(thrift_list_i32)
        stop = STOP

    return _Builders
