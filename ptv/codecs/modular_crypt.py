"""Modular crypt format list codec.

WHY: Password files from Unix systems, web frameworks and htpasswd-style
stores often reduce to ``[user:]$algo$params$salt$digest`` lines. The salt
and cost parameters are embedded in the hash string; pulling them out lets
salt-aware targets (``hash:salt`` lists, JSON documents) carry them
explicitly.

HOW: Each non-comment line is split into an optional user and the hash
string, the hash is labelled with ``detect_hash_type`` and split with
``decompose_mcf``.

RULES:
- Blank lines and lines starting with "#" are skipped
- ``user:$...`` splits at the ":$"; a line starting with "$" is a bare hash;
  any other line with a colon splits at the first colon
- The extracted salt is stored as utf8 (MCF salts are crypt-base64 text)
- Non-empty params go to ``extra["params"]``
- Render writes ``[user:]hash``; records without a hash are skipped
"""

from __future__ import annotations

from typing import List, Tuple

from ptv.codecs.base import Codec, render_each
from ptv.codecs.hashlist import make_hash
from ptv.codecs.text import decode_lines, line_encoder, require_records
from ptv.core.errors import RenderIncompleteError
from ptv.core.hashes import decompose_mcf
from ptv.core.ir import Dataset, Record, Salt, SaltEncoding, build_dataset


def _split_line(line: str) -> Tuple[str, str]:
    index = line.find(":$")
    if index >= 0:
        return line[:index], line[index + 1:]
    if line.startswith("$"):
        return "", line
    if ":" in line:
        user, hash_value = line.split(":", 1)
        return user, hash_value
    return "", line


class ModularCryptCodec(Codec):
    """Codec for ``[user:]$algo$...`` hash lists."""

    @property
    def name(self) -> str:
        return "modular_crypt"

    def parse(self, raw: bytes) -> Dataset:
        records: List[Record] = []
        for line in decode_lines(raw):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            user, hash_value = _split_line(line)
            record = Record(username=user, hash=make_hash(hash_value))
            salt, params = decompose_mcf(hash_value)
            if salt:
                record.salt = Salt(value=salt, encoding=SaltEncoding.UTF8)
            if params:
                record.extra["params"] = params
            if not record.is_empty():
                records.append(record)

        require_records(self.name, records)
        return build_dataset(self.name, records)

    def render(self, dataset: Dataset) -> bytes:
        return b"".join(render_each(self.name, dataset.records, line_encoder(self._format_line)))

    @staticmethod
    def _format_line(record: Record) -> str:
        if record.hash is None or not record.hash.value:
            raise RenderIncompleteError("no hash")
        if record.username:
            return "{}:{}".format(record.username, record.hash.value)
        return record.hash.value
