"""Tests for the JSON document mapping and the ptv_json codec."""

import json
from datetime import datetime, timezone

import jsonschema
import pytest

from ptv.codecs.hashlist import HashlistUserHashCodec
from ptv.codecs.ptv_json import PTVJsonCodec
from ptv.core.document import (
    from_document,
    parse_timestamp,
    to_document,
    validate_document,
)
from ptv.core.errors import ContainerInvalidError, RenderError, ZeroRecoverableError
from ptv.core.ir import (
    Hash,
    HashAlgorithm,
    PotentialField,
    Record,
    Salt,
    SaltEncoding,
    UnknownField,
    build_dataset,
)


def _sample_dataset():
    records = [
        Record(
            email="a@b.com",
            phone="+15550100000",
            hash=Hash(HashAlgorithm.MD5, "5f4dcc3b5aa765d61d8327deb882cf99"),
            salt=Salt("deadbeef", SaltEncoding.HEX),
            port=443,
            unknowns=[UnknownField("maybe", [PotentialField("password", 0.2)])],
            extra={"field_3": "x", "nested": {"k": 1}},
        ),
        Record(username="bob"),
    ]
    return build_dataset("combolist_extended", records)


@pytest.fixture
def codec():
    return PTVJsonCodec()


class TestToDocument:

    def test_shape(self):
        document = to_document(_sample_dataset())

        assert document["ptv_version"] == "1.0"
        assert set(document["meta"]) == {
            "source_format", "parsed_at", "record_count", "columns", "field_confidence",
        }
        assert document["meta"]["parsed_at"].endswith("Z")
        first = document["records"][0]
        assert first["hash"] == {"type": "md5", "value": "5f4dcc3b5aa765d61d8327deb882cf99"}
        assert first["salt"] == {"value": "deadbeef", "encoding": "hex"}
        assert first["unknowns"] == [
            {"value": "maybe", "potential_fields": [{"field": "password", "confidence": 0.2}]}
        ]

    def test_empty_fields_are_omitted(self):
        second = to_document(_sample_dataset())["records"][1]
        assert set(second) == {"ptv_id", "username"}

    def test_empty_hash_and_salt_are_omitted(self):
        record = Record(username="alice", hash=Hash(HashAlgorithm.UNKNOWN, ""), salt=Salt(""))
        out = to_document(build_dataset("x", [record]))["records"][0]
        assert "hash" not in out
        assert "salt" not in out

    def test_validates(self):
        validate_document(to_document(_sample_dataset()))


class TestFromDocument:

    def test_round_trip(self):
        original = _sample_dataset()
        restored = from_document(json.loads(json.dumps(to_document(original))))

        assert restored.records == original.records
        assert restored.meta.columns == original.meta.columns
        assert restored.meta.parsed_at == original.meta.parsed_at

    def test_timestamp_forms(self):
        expected = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert parse_timestamp("2026-01-02T03:04:05Z") == expected
        assert parse_timestamp("2026-01-02T04:04:05+01:00") == expected

    def test_unrecognized_hash_label_is_kept(self):
        document = to_document(build_dataset("x", [Record(username="alice")]))
        document["records"][0]["hash"] = {"type": "whirlpool", "value": "abc"}

        record = from_document(document).records[0]
        assert record.hash.algorithm is HashAlgorithm.UNKNOWN
        assert to_document(build_dataset("x", [record]))["records"][0]["hash"] == {
            "type": "whirlpool", "value": "abc",
        }

    def test_known_hash_label_has_no_override(self):
        document = to_document(_sample_dataset())
        assert from_document(document).records[0].hash.label == ""

    def test_schema_rejects_bad_phone(self):
        document = to_document(_sample_dataset())
        document["records"][0]["phone"] = "555-0100"
        with pytest.raises(jsonschema.ValidationError):
            validate_document(document)


class TestPTVJsonCodec:

    def test_round_trip(self, codec):
        original = _sample_dataset()
        restored = codec.parse(codec.render(original))
        assert restored.records == original.records
        assert restored.meta.source_format == "combolist_extended"

    def test_not_json(self, codec):
        with pytest.raises(ContainerInvalidError):
            codec.parse(b"not json")

    def test_not_utf8(self, codec):
        with pytest.raises(ContainerInvalidError):
            codec.parse(b"\xff\xfe{}")

    def test_schema_violation(self, codec):
        with pytest.raises(ContainerInvalidError):
            codec.parse(b'{"ptv_version": "1.0", "records": []}')

    def test_bad_timestamp(self, codec):
        document = to_document(_sample_dataset())
        document["meta"]["parsed_at"] = "yesterday"
        with pytest.raises(ContainerInvalidError):
            codec.parse(json.dumps(document).encode())

    def test_no_records(self, codec):
        document = to_document(_sample_dataset())
        document["records"] = []
        with pytest.raises(ZeroRecoverableError):
            codec.parse(json.dumps(document).encode())

    def test_invalid_record_fails_whole_render(self, codec):
        dataset = build_dataset("x", [Record(email="a@b.com"), Record(phone="not-a-phone")])
        with pytest.raises(RenderError):
            codec.render(dataset)

    def test_hash_list_without_hash_renders_no_hash(self, codec):
        dataset = HashlistUserHashCodec().parse(b"alice:\n")
        record = json.loads(codec.render(dataset))["records"][0]
        assert record["username"] == "alice"
        assert "hash" not in record

    def test_unrecognized_hash_label_round_trip(self, codec):
        document = to_document(build_dataset("x", [Record(username="alice")]))
        document["records"][0]["hash"] = {"type": "whirlpool", "value": "abc"}

        rendered = json.loads(codec.render(codec.parse(json.dumps(document).encode())))
        assert rendered["records"][0]["hash"] == {"type": "whirlpool", "value": "abc"}
