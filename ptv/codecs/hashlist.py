"""Hash list and cracker pot-file codecs.

WHY: Hash lists are the most common way credential material moves between
tools: bare hashes for a cracker, ``user:hash`` exports, ``hash:salt``
pairs, and the ``hash:plaintext`` pot files John the Ripper and hashcat
write once a hash is cracked.

HOW: Each format is a small line-oriented codec. Every hash value goes
through ``detect_hash_type`` so the IR carries an algorithm label even
though the file never states one.

RULES:
- One record per non-blank line; hash columns carry confidence 1.0
- hashlist_user_hash splits before ":$" when present, otherwise at the
  first colon
- Pot files split at the LAST colon
- A pot line without any colon is kept as an unknown guessed to be a hash
- An empty hash column leaves ``hash`` unset; a line with nothing in any
  column is skipped
- Records without a hash are skipped on render
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from ptv.codecs.base import Codec, render_each
from ptv.codecs.text import decode_lines, line_encoder, require_records
from ptv.core.classifier import guess_salt_encoding
from ptv.core.errors import RenderIncompleteError
from ptv.core.hashes import detect_hash_type
from ptv.core.ir import Dataset, Hash, PotentialField, Record, Salt, UnknownField, build_dataset


def make_hash(value: str) -> Optional[Hash]:
    """Label ``value`` with its detected algorithm; None for an empty column."""
    if not value:
        return None
    return Hash(algorithm=detect_hash_type(value), value=value)


def split_user_hash(line: str) -> Tuple[str, str]:
    """Split ``user:hash``; returns ("", line) when there is no colon."""
    index = line.find(":$")
    if index >= 0:
        return line[:index], line[index + 1:]
    if ":" in line:
        user, hash_value = line.split(":", 1)
        return user, hash_value
    return "", line


def _require_hash(record: Record) -> str:
    if record.hash is None or not record.hash.value:
        raise RenderIncompleteError("no hash")
    return record.hash.value


class HashlistPlainCodec(Codec):
    """One bare hash per line."""

    @property
    def name(self) -> str:
        return "hashlist_plain"

    def parse(self, raw: bytes) -> Dataset:
        records = [Record(hash=make_hash(line)) for line in decode_lines(raw) if line.strip()]
        require_records(self.name, records)
        return build_dataset(self.name, records)

    def render(self, dataset: Dataset) -> bytes:
        return b"".join(render_each(self.name, dataset.records, line_encoder(_require_hash)))


class HashlistUserHashCodec(Codec):
    """``user:hash`` per line."""

    @property
    def name(self) -> str:
        return "hashlist_user_hash"

    def parse(self, raw: bytes) -> Dataset:
        records: List[Record] = []
        for line in decode_lines(raw):
            if not line.strip():
                continue
            user, hash_value = split_user_hash(line)
            record = Record(username=user, hash=make_hash(hash_value))
            if not record.is_empty():
                records.append(record)
        require_records(self.name, records)
        return build_dataset(self.name, records)

    def render(self, dataset: Dataset) -> bytes:
        def format_line(record: Record) -> str:
            hash_value = _require_hash(record)
            return "{}:{}".format(record.username or record.email, hash_value)

        return b"".join(render_each(self.name, dataset.records, line_encoder(format_line)))


class HashlistHashSaltCodec(Codec):
    """``hash:salt`` per line."""

    @property
    def name(self) -> str:
        return "hashlist_hash_salt"

    def parse(self, raw: bytes) -> Dataset:
        records: List[Record] = []
        for line in decode_lines(raw):
            if not line.strip():
                continue
            hash_value, _, salt_value = line.partition(":")
            record = Record(hash=make_hash(hash_value))
            if salt_value:
                record.salt = Salt(value=salt_value, encoding=guess_salt_encoding(salt_value))
            if not record.is_empty():
                records.append(record)
        require_records(self.name, records)
        return build_dataset(self.name, records)

    def render(self, dataset: Dataset) -> bytes:
        def format_line(record: Record) -> str:
            hash_value = _require_hash(record)
            if record.salt is not None and record.salt.value:
                return "{}:{}".format(hash_value, record.salt.value)
            return hash_value

        return b"".join(render_each(self.name, dataset.records, line_encoder(format_line)))


class PotFileCodec(Codec):
    """``hash:plaintext`` per line, split at the last colon.

    John the Ripper and hashcat write the same shape; one instance is
    registered under each name.
    """

    def __init__(self, format_name: str) -> None:
        self._name = format_name

    @property
    def name(self) -> str:
        return self._name

    def parse(self, raw: bytes) -> Dataset:
        records: List[Record] = []
        for line in decode_lines(raw):
            if not line.strip():
                continue
            hash_value, colon, plain = line.rpartition(":")
            if not colon:
                unknown = UnknownField(value=line, potential_fields=[PotentialField("hash", 0.5)])
                records.append(Record(unknowns=[unknown]))
                continue
            record = Record(hash=make_hash(hash_value), password=plain)
            if not record.is_empty():
                records.append(record)
        require_records(self.name, records)
        return build_dataset(self.name, records)

    def render(self, dataset: Dataset) -> bytes:
        def format_line(record: Record) -> str:
            return "{}:{}".format(_require_hash(record), record.password)

        return b"".join(render_each(self.name, dataset.records, line_encoder(format_line)))
