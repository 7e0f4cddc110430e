"""Unit tests for the bounds-checked reader and schema-less absorption."""

from typing import Optional

import pytest

from ptv.config import MAX_NESTING_DEPTH
from ptv.core.binary import (
    ByteReader,
    absorb_payload,
    decode_text,
    encode_varint,
    merge_nested,
    put_extra,
)
from ptv.core.errors import TruncatedInput, UnitUnparseable
from ptv.core.ir import Record


class TestByteReader:

    def test_integers(self):
        reader = ByteReader(b"\x01\x02\xff\xff\xff\xfe\x2a")
        assert reader.u16be() == 0x0102
        assert reader.i32be() == -2
        assert reader.u8() == 42
        assert reader.at_end()

    def test_truncated_read_raises_and_keeps_position(self):
        reader = ByteReader(b"\x00\x01\x02")
        reader.u8()
        with pytest.raises(TruncatedInput):
            reader.u32be()
        assert reader.pos == 1
        assert reader.remaining == 2

    def test_bounded_window(self):
        reader = ByteReader(b"abcdef", 2, 4)
        assert reader.read(2) == b"cd"
        assert reader.remaining == 0
        with pytest.raises(TruncatedInput):
            reader.read(1)

    def test_negative_prefix(self):
        with pytest.raises(UnitUnparseable):
            ByteReader(b"abc").prefixed(-1)

    def test_prefix_longer_than_buffer(self):
        with pytest.raises(TruncatedInput):
            ByteReader(b"abc").prefixed(4)

    def test_little_endian(self):
        reader = ByteReader(b"\x01\x00\x00\x00\x00\x00\x00\x00")
        assert reader.u64le() == 1


class TestVarint:

    def test_decode(self):
        assert ByteReader(b"\xac\x02").varint() == 300

    def test_encode(self):
        assert encode_varint(0) == b"\x00"
        assert encode_varint(300) == b"\xac\x02"

    def test_truncated(self):
        with pytest.raises(TruncatedInput):
            ByteReader(b"\xff\xff").varint()

    def test_too_long(self):
        with pytest.raises(UnitUnparseable):
            ByteReader(b"\xff" * 11).varint()


class TestDecodeText:

    def test_plain_text(self):
        assert decode_text(b"hello\tworld\n") == "hello\tworld\n"

    def test_control_bytes_mean_binary(self):
        assert decode_text(b"\x0a\x03abc") is None
        assert decode_text(b"abc\x7f") is None

    def test_invalid_utf8(self):
        assert decode_text(b"\xff\xfe") is None


class TestPutExtra:

    def test_repeated_keys(self):
        target = {}
        assert put_extra(target, "field_1", "a") == "field_1"
        assert put_extra(target, "field_1", "b") == "field_1_2"
        assert put_extra(target, "field_1", "c") == "field_1_3"
        assert target == {"field_1": "a", "field_1_2": "b", "field_1_3": "c"}


def _no_nested(payload: bytes, depth: int) -> Optional[Record]:
    return None


class TestAbsorbPayload:

    def test_text_is_sniffed(self):
        record = Record()
        absorb_payload(record, 1, b"carol@example.com", _no_nested, 0)
        assert record.email == "carol@example.com"

    def test_unplaceable_text_goes_to_extra(self):
        record = Record()
        absorb_payload(record, 4, b"hunter2", _no_nested, 0)
        assert record.extra == {"field_4": "hunter2"}

    def test_binary_falls_back_to_hex(self):
        record = Record()
        absorb_payload(record, 2, b"\x00\x01\xff", _no_nested, 0)
        assert record.extra == {"field_2": "0001ff"}

    def test_nested_decoder_result_is_merged(self):
        def decoder(payload, depth):
            return Record(username="dave")

        record = Record()
        absorb_payload(record, 3, b"\x00\x01", decoder, 0)
        assert record.username == "dave"

    def test_depth_cap_keeps_hex(self):
        calls = []

        def decoder(payload, depth):
            calls.append(depth)
            return Record(username="deep")

        record = Record()
        absorb_payload(record, 3, b"\x00\x01", decoder, MAX_NESTING_DEPTH)
        assert calls == []
        assert record.extra == {"field_3": "0001"}


class TestMergeNested:

    def test_outer_value_wins(self):
        record = Record(email="outer@example.com")
        merge_nested(record, "field_2", Record(email="inner@example.com", password="pw"))
        assert record.email == "outer@example.com"
        assert record.password == "pw"
        assert record.extra == {"field_2": {"email": "inner@example.com"}}

    def test_nested_extra_is_kept(self):
        record = Record()
        merge_nested(record, "field_5", Record(extra={"field_1": 7}))
        assert record.extra == {"field_5": {"field_1": 7}}
