"""Unit tests for the field classifier and value sniffing."""

import pytest

from ptv.core.classifier import (
    canonical_field_for,
    classify,
    classify_identity,
    guess_salt_encoding,
    sniff_value,
    suggest_fields,
)
from ptv.core.ir import Record, SaltEncoding


class TestClassify:

    def test_email_synonym_is_case_insensitive(self):
        record = Record()
        assert classify(record, "E-Mail", "a@b.com") is True
        assert record.email == "a@b.com"

    def test_unrecognized_name_leaves_record_untouched(self):
        record = Record()
        assert classify(record, "foo", "bar") is False
        assert record == Record(ptv_id=record.ptv_id)

    @pytest.mark.parametrize("name,attribute", [
        ("LOGIN", "username"),
        ("passwd", "password"),
        ("Website", "url"),
        ("hostname", "domain"),
        ("ip_addr", "ip"),
        ("display_name", "name"),
    ])
    def test_synonyms(self, name, attribute):
        record = Record()
        assert classify(record, name, "value")
        assert getattr(record, attribute) == "value"

    def test_phone_is_normalized(self):
        record = Record()
        assert classify(record, "Tel", "+44 20 7946 0000")
        assert record.phone == "+442079460000"

    def test_phone_without_digits_is_not_a_match(self):
        record = Record()
        assert classify(record, "phone", "n/a") is False
        assert record.phone == ""

    def test_empty_value(self):
        record = Record()
        assert classify(record, "email", "") is False

    def test_non_string_inputs(self):
        record = Record()
        assert classify(record, "email", 42) is False
        assert classify(record, None, "a@b.com") is False
        assert record.email == ""

    def test_no_partial_matches(self):
        assert canonical_field_for("email2") == ""
        assert canonical_field_for("user") == "username"


class TestSniffing:

    def test_url(self):
        record = Record()
        assert sniff_value(record, "https://example.com/login")
        assert record.url == "https://example.com/login"

    def test_email(self):
        record = Record()
        assert sniff_value(record, "bob@example.com")
        assert record.email == "bob@example.com"

    def test_does_not_overwrite(self):
        record = Record(email="first@example.com")
        assert sniff_value(record, "second@example.com") is False
        assert record.email == "first@example.com"

    def test_plain_text(self):
        assert sniff_value(Record(), "hunter2") is False

    def test_identity_rule(self):
        record = Record()
        classify_identity(record, "alice")
        assert record.username == "alice"
        classify_identity(record, "alice@example.com")
        assert record.email == "alice@example.com"


class TestGuesses:

    def test_salt_encoding(self):
        assert guess_salt_encoding("deadbeef") is SaltEncoding.HEX
        assert guess_salt_encoding("s4lt!") is SaltEncoding.UTF8

    def test_url_guess(self):
        guesses = suggest_fields("http://example.com")
        assert guesses[0].field_name == "url"

    def test_hash_guess(self):
        names = [guess.field_name for guess in suggest_fields("d41d8cd98f00b204e9800998ecf8427e")]
        assert "hash" in names

    def test_no_guess_for_sentence(self):
        assert suggest_fields("two words") == []

    def test_empty(self):
        assert suggest_fields("") == []
