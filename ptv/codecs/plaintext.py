"""One bare value per line.

A line with "@" is taken as an email. Anything else cannot be placed
without context, so it is kept as an unknown guessed to be a password (0.5)
or a username (0.4). Render writes the first populated of email, username,
password, hash value and first unknown; records with none are skipped.
"""

from __future__ import annotations

from typing import List

from ptv.codecs.base import Codec, render_each
from ptv.codecs.text import decode_lines, line_encoder, require_records
from ptv.core.errors import RenderIncompleteError
from ptv.core.ir import Dataset, PotentialField, Record, UnknownField, build_dataset


def _first_populated(record: Record) -> str:
    for value in (record.email, record.username, record.password):
        if value:
            return value
    if record.hash is not None and record.hash.value:
        return record.hash.value
    if record.unknowns:
        return record.unknowns[0].value
    raise RenderIncompleteError("nothing to write")


class PlaintextCodec(Codec):
    """Codec for newline-separated bare values."""

    @property
    def name(self) -> str:
        return "plaintext"

    def parse(self, raw: bytes) -> Dataset:
        records: List[Record] = []
        for line in decode_lines(raw):
            if not line.strip():
                continue
            if "@" in line:
                records.append(Record(email=line))
                continue
            guesses = [PotentialField("password", 0.5), PotentialField("username", 0.4)]
            records.append(Record(unknowns=[UnknownField(value=line, potential_fields=guesses)]))
        require_records(self.name, records)
        return build_dataset(self.name, records, confidence=0.7)

    def render(self, dataset: Dataset) -> bytes:
        return b"".join(render_each(self.name, dataset.records, line_encoder(_first_populated)))
