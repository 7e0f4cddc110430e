"""Unix account file codecs: htpasswd, shadow and passwd.

WHY: Web server password files and the two halves of a Unix account
database are among the most common things pulled off a compromised host.
They are colon-delimited like combo lists, but every column has a fixed
meaning, so nothing has to be guessed from content except the hash type.

HOW: All three share the line helpers in ``text.py`` and label hashes
through ``make_hash``. Shadow hashes in modular crypt form are also split
with ``decompose_mcf`` so the salt and cost parameters surface in the IR.

RULES:
- Blank lines and lines starting with "#" are skipped
- htpasswd: ``user:hash``; a line without a colon is skipped; ``{SHA}`` and
  ``{SSHA}`` hashes are labelled sha1
- shadow: a password field of "*", "!", "!!" or "" is not a hash; the record
  gets ``extra["account_status"] = "locked"`` instead. Non-empty aging
  columns go to ``extra`` by name
- passwd: lines with fewer than seven fields are skipped; uid, gid, gecos,
  home and shell go to ``extra``; the first GECOS subfield is the name; a
  password field other than "x", "*", "!" or "" is kept as a hash
- Render skips records without a username. htpasswd also skips records
  without a hash. Shadow writes "!" for a locked record and "*" for one with
  no hash, passwd writes "x" when there is no hash; missing columns are
  written empty
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from ptv.codecs.base import Codec, render_each
from ptv.codecs.hashlist import make_hash
from ptv.codecs.text import decode_lines, line_encoder, require_records
from ptv.core.errors import RenderIncompleteError
from ptv.core.hashes import decompose_mcf
from ptv.core.ir import Dataset, Hash, HashAlgorithm, Record, Salt, SaltEncoding, build_dataset

logger = logging.getLogger(__name__)

LOCKED_MARKERS = frozenset(("*", "!", "!!", ""))

# Shadow columns after the password field, in file order.
SHADOW_AGING_FIELDS: Tuple[str, ...] = (
    "last_changed",
    "min_days",
    "max_days",
    "warn_days",
    "inactive_days",
    "expire_date",
    "reserved",
)

PASSWD_EXTRA_FIELDS: Tuple[str, ...] = ("uid", "gid", "gecos", "home", "shell")


def _content_lines(raw: bytes) -> List[str]:
    return [line for line in decode_lines(raw) if line.strip() and not line.startswith("#")]


def _require_username(record: Record) -> str:
    if not record.username:
        raise RenderIncompleteError("no username")
    return record.username


class HtpasswdCodec(Codec):
    """Apache/nginx ``user:hash`` password files."""

    @property
    def name(self) -> str:
        return "htpasswd"

    def parse(self, raw: bytes) -> Dataset:
        records: List[Record] = []
        for number, line in enumerate(_content_lines(raw), start=1):
            user, colon, hash_value = line.partition(":")
            if not colon:
                logger.debug("htpasswd: skipping line %d without a colon", number)
                continue
            record = Record(username=user)
            if hash_value.startswith("{SHA}") or hash_value.startswith("{SSHA}"):
                record.hash = Hash(algorithm=HashAlgorithm.SHA1, value=hash_value)
            else:
                record.hash = make_hash(hash_value)
            if not record.is_empty():
                records.append(record)
        require_records(self.name, records)
        return build_dataset(self.name, records)

    def render(self, dataset: Dataset) -> bytes:
        def format_line(record: Record) -> str:
            user = _require_username(record)
            if record.hash is None or not record.hash.value:
                raise RenderIncompleteError("no hash")
            return "{}:{}".format(user, record.hash.value)

        return b"".join(render_each(self.name, dataset.records, line_encoder(format_line)))


class ShadowCodec(Codec):
    """``/etc/shadow`` style files."""

    @property
    def name(self) -> str:
        return "shadow"

    def parse(self, raw: bytes) -> Dataset:
        records: List[Record] = []
        for number, line in enumerate(_content_lines(raw), start=1):
            fields = line.split(":")
            if len(fields) < 2:
                logger.debug("shadow: skipping line %d without a password field", number)
                continue
            record = Record(username=fields[0])
            password_field = fields[1]
            if password_field in LOCKED_MARKERS:
                record.extra["account_status"] = "locked"
            else:
                record.hash = make_hash(password_field)
                salt, params = decompose_mcf(password_field)
                if salt:
                    record.salt = Salt(value=salt, encoding=SaltEncoding.UTF8)
                if params:
                    record.extra["params"] = params
            for key, value in zip(SHADOW_AGING_FIELDS, fields[2:]):
                if value:
                    record.extra[key] = value
            records.append(record)
        require_records(self.name, records)
        return build_dataset(self.name, records)

    def render(self, dataset: Dataset) -> bytes:
        def format_line(record: Record) -> str:
            user = _require_username(record)
            if record.hash is not None and record.hash.value:
                password_field = record.hash.value
            elif record.extra_str("account_status") == "locked":
                password_field = "!"
            else:
                password_field = "*"
            aging = [record.extra_str(key) for key in SHADOW_AGING_FIELDS]
            return ":".join([user, password_field] + aging)

        return b"".join(render_each(self.name, dataset.records, line_encoder(format_line)))


class PasswdCodec(Codec):
    """``/etc/passwd`` style files."""

    @property
    def name(self) -> str:
        return "passwd"

    def parse(self, raw: bytes) -> Dataset:
        records: List[Record] = []
        for number, line in enumerate(_content_lines(raw), start=1):
            fields = line.split(":")
            if len(fields) < 7:
                logger.debug("passwd: skipping line %d with %d fields", number, len(fields))
                continue
            record = Record(username=fields[0])
            if fields[1] not in ("x", "*", "!", ""):
                record.hash = make_hash(fields[1])
            for key, value in zip(PASSWD_EXTRA_FIELDS, fields[2:7]):
                record.extra[key] = value
            full_name = fields[4].split(",")[0].strip()
            if full_name:
                record.name = full_name
            records.append(record)
        require_records(self.name, records)
        return build_dataset(self.name, records, field_confidence={"name": 0.8})

    def render(self, dataset: Dataset) -> bytes:
        def format_line(record: Record) -> str:
            user = _require_username(record)
            password_field = record.hash.value if record.hash is not None and record.hash.value else "x"
            gecos = record.extra_str("gecos") or record.name
            return ":".join([
                user,
                password_field,
                record.extra_str("uid"),
                record.extra_str("gid"),
                gecos,
                record.extra_str("home"),
                record.extra_str("shell"),
            ])

        return b"".join(render_each(self.name, dataset.records, line_encoder(format_line)))
