"""Combo list codecs (colon-delimited credential dumps).

WHY: Combo lists (``user:pass``, ``email:pass``, ``user:pass:url`` and
longer variants) are the lingua franca of credential dumps. They carry no
header, so the codec decides what each column means from its position and,
for the identity column, from its content.

HOW: Four codecs share the identity rule (``@`` means email, anything else
username). The extended variant splits with ``split_combo_fields`` so URL
schemes survive, and parks columns beyond the fourth in ``unknowns`` with
scored guesses.

RULES:
- Identity columns detected by content carry confidence 0.8 (0.7 in the
  extended variant); explicitly positioned columns carry 1.0
- combolist_email_pass keeps an identity without "@" as an unknown
  instead of forcing it into ``email``
- Render writes the identity (email, else username) and password; records
  with neither are skipped
"""

from __future__ import annotations

from typing import List

from ptv.codecs.base import Codec, render_each
from ptv.codecs.text import decode_lines, line_encoder, require_records, split_combo_fields
from ptv.core.classifier import classify_identity, suggest_fields
from ptv.core.errors import RenderIncompleteError
from ptv.core.ir import Dataset, PotentialField, Record, UnknownField, build_dataset


def _identity(record: Record) -> str:
    ident = record.email or record.username
    if not ident and not record.password:
        raise RenderIncompleteError("no identity or password")
    return ident


class ComboUserPassCodec(Codec):
    """``user:pass`` or ``email:pass``, identity auto-detected."""

    @property
    def name(self) -> str:
        return "combolist_user_pass"

    def parse(self, raw: bytes) -> Dataset:
        records: List[Record] = []
        for line in decode_lines(raw):
            if not line:
                continue
            ident, _, password = line.partition(":")
            record = Record(password=password)
            if ident:
                classify_identity(record, ident)
            records.append(record)
        require_records(self.name, records)
        return build_dataset(
            self.name,
            records,
            field_confidence={"email": 0.8, "username": 0.8, "password": 1.0},
        )

    def render(self, dataset: Dataset) -> bytes:
        def format_line(record: Record) -> str:
            return "{}:{}".format(_identity(record), record.password)

        return b"".join(render_each(self.name, dataset.records, line_encoder(format_line)))


class ComboEmailPassCodec(Codec):
    """``email:pass``."""

    @property
    def name(self) -> str:
        return "combolist_email_pass"

    def parse(self, raw: bytes) -> Dataset:
        records: List[Record] = []
        for line in decode_lines(raw):
            if not line:
                continue
            ident, _, password = line.partition(":")
            record = Record(password=password)
            if "@" in ident:
                record.email = ident
            elif ident:
                record.unknowns.append(
                    UnknownField(
                        value=ident,
                        potential_fields=[PotentialField("email", 0.5), PotentialField("username", 0.5)],
                    )
                )
            records.append(record)
        require_records(self.name, records)
        return build_dataset(self.name, records)

    def render(self, dataset: Dataset) -> bytes:
        def format_line(record: Record) -> str:
            return "{}:{}".format(_identity(record), record.password)

        return b"".join(render_each(self.name, dataset.records, line_encoder(format_line)))


class ComboUserPassUrlCodec(Codec):
    """``user:pass:url``; the url column may itself contain colons."""

    @property
    def name(self) -> str:
        return "combolist_user_pass_url"

    def parse(self, raw: bytes) -> Dataset:
        records: List[Record] = []
        for line in decode_lines(raw):
            if not line:
                continue
            parts = line.split(":", 2)
            record = Record()
            if parts[0]:
                classify_identity(record, parts[0])
            if len(parts) >= 2:
                record.password = parts[1]
            if len(parts) >= 3:
                record.url = parts[2]
            records.append(record)
        require_records(self.name, records)
        return build_dataset(
            self.name,
            records,
            field_confidence={"email": 0.8, "username": 0.8, "password": 1.0, "url": 1.0},
        )

    def render(self, dataset: Dataset) -> bytes:
        def format_line(record: Record) -> str:
            return "{}:{}:{}".format(_identity(record), record.password, record.url)

        return b"".join(render_each(self.name, dataset.records, line_encoder(format_line)))


class ComboExtendedCodec(Codec):
    """``user:pass:url:ip:...`` with a variable number of trailing columns."""

    @property
    def name(self) -> str:
        return "combolist_extended"

    def parse(self, raw: bytes) -> Dataset:
        records: List[Record] = []
        for line in decode_lines(raw):
            if not line:
                continue
            parts = split_combo_fields(line)
            record = Record()
            if parts[0]:
                classify_identity(record, parts[0])
            if len(parts) >= 2:
                record.password = parts[1]
            if len(parts) >= 3:
                record.url = parts[2]
            if len(parts) >= 4:
                record.ip = parts[3]
            for value in parts[4:]:
                record.unknowns.append(UnknownField(value=value, potential_fields=suggest_fields(value)))
            records.append(record)
        require_records(self.name, records)
        return build_dataset(
            self.name,
            records,
            field_confidence={"email": 0.7, "username": 0.7, "password": 1.0, "url": 0.8, "ip": 0.6},
        )

    def render(self, dataset: Dataset) -> bytes:
        def format_line(record: Record) -> str:
            fields = [_identity(record), record.password]
            if record.url or record.ip or record.unknowns:
                fields.append(record.url)
            if record.ip or record.unknowns:
                fields.append(record.ip)
            fields.extend(unknown.value for unknown in record.unknowns)
            return ":".join(fields)

        return b"".join(render_each(self.name, dataset.records, line_encoder(format_line)))
