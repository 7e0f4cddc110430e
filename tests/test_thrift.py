"""Tests for the schema-less Thrift binary-protocol codec."""

import struct

import pytest

from ptv.codecs.thrift import ThriftCodec
from ptv.core.errors import ZeroRecoverableError
from ptv.core.ir import Record, build_dataset


@pytest.fixture
def codec():
    return ThriftCodec()


class TestParse:

    def test_flat_struct(self, codec, thrift):
        raw = thrift.string(1, "a@b.com") + thrift.string(2, "hunter2") + thrift.i32(10, 443) + thrift.stop
        dataset = codec.parse(raw)

        record = dataset.records[0]
        assert record.email == "a@b.com"
        assert record.extra == {"field_2": "hunter2", "field_10": 443}
        assert dataset.meta.field_confidence == {"email": 0.3}

    def test_consecutive_structs(self, codec, thrift):
        raw = (
            thrift.string(1, "a@b.com") + thrift.stop
            + thrift.string(1, "c@d.com") + thrift.stop
        )
        assert [r.email for r in codec.parse(raw).records] == ["a@b.com", "c@d.com"]

    def test_nested_struct(self, codec, thrift):
        inner = thrift.string(1, "https://example.com") + thrift.stop
        raw = thrift.struct(3, inner) + thrift.stop
        assert codec.parse(raw).records[0].url == "https://example.com"

    def test_binary_string_holding_a_struct(self, codec, thrift):
        inner = thrift.string(1, "z@example.io") + thrift.stop
        raw = thrift.binary(4, inner) + thrift.stop
        assert codec.parse(raw).records[0].email == "z@example.io"

    def test_binary_garbage_kept_as_hex(self, codec, thrift):
        raw = thrift.string(1, "a@b.com") + thrift.binary(5, b"\xff\xfe") + thrift.stop
        assert codec.parse(raw).records[0].extra["field_5"] == "fffe"

    def test_list_goes_to_extra(self, codec, thrift):
        raw = thrift.string(1, "a@b.com") + thrift.list_i32(6, [1, 2, 3]) + thrift.stop
        assert codec.parse(raw).records[0].extra["field_6"] == [1, 2, 3]

    def test_truncated_second_struct(self, codec, thrift):
        raw = thrift.string(1, "a@b.com") + thrift.stop + thrift.string(1, "c@d.com")[:-2]
        assert [r.email for r in codec.parse(raw).records] == ["a@b.com"]


class TestParseErrors:

    def test_empty(self, codec):
        with pytest.raises(ZeroRecoverableError):
            codec.parse(b"")

    def test_only_empty_structs(self, codec):
        with pytest.raises(ZeroRecoverableError):
            codec.parse(b"\x00\x00")

    def test_container_count_larger_than_input(self, codec):
        raw = struct.pack(">bhbi", 15, 7, 8, 1000000) + b"\x00"
        with pytest.raises(ZeroRecoverableError):
            codec.parse(raw)

    def test_nesting_is_bounded(self, codec, thrift):
        body = thrift.string(1, "a@b.com") + thrift.stop
        for _ in range(64):
            body = thrift.struct(1, body) + thrift.stop
        with pytest.raises(ZeroRecoverableError):
            codec.parse(body)


class TestRender:

    def test_round_trip_recovers_values(self, codec):
        record = Record(email="a@b.com", username="bob", port=22)
        reparsed = codec.parse(codec.render(build_dataset("x", [record])))

        out = reparsed.records[0]
        assert out.email == "a@b.com"
        assert out.extra["field_2"] == "bob"
        assert out.extra["field_10"] == 22

    def test_port_beyond_i32_is_omitted(self, codec):
        record = Record(email="a@b.com", port=2 ** 31)
        reparsed = codec.parse(codec.render(build_dataset("x", [record])))
        assert "field_10" not in reparsed.records[0].extra

    def test_empty_records_are_skipped(self, codec):
        assert codec.render(build_dataset("x", [Record()])) == b""
