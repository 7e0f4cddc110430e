"""Intermediate representation dataclasses for parsed credential data.

WHY: Every supported format carries the same kinds of facts: who (email,
username, phone, name), what secret (password, hash, salt), and where (url,
domain, ip, port), but in wildly different layouts. The IR gives all codecs
one well-typed form to parse into and render from, so N formats need N
codecs instead of N*N converters.

HOW: A small hierarchy of dataclasses:
  Hash / Salt      typed credential material
  UnknownField     a value the parser could not confidently place, with
                   confidence-scored guesses (PotentialField)
  Record           one entity: a credential, account, key, chain
  Meta             provenance and per-column confidence
  Dataset          the top-level conversion unit

RULES:
- A canonical field is set only when the codec is confident; guesses go
  into ``unknowns``, format-specific leftovers go into ``extra``
- Empty string means "not set" for every string field, 0 for ``port``
- Phone values always match ``^\\+[0-9]+$`` (see normalize_phone)
- A Dataset is built wholesale by one parse and never mutated afterwards;
  its records are held as a tuple
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ptv.config import PTV_VERSION


class HashAlgorithm(str, Enum):
    """Hash algorithms the heuristics can name.

    Inherits from str so values serialize cleanly to JSON.
    """

    MD5 = "md5"
    SHA1 = "sha1"
    SHA224 = "sha224"
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"
    BCRYPT = "bcrypt"
    SCRYPT = "scrypt"
    ARGON2I = "argon2i"
    ARGON2ID = "argon2id"
    PBKDF2 = "pbkdf2"
    NTLM = "ntlm"
    MYSQL = "mysql"
    MYSQL_OLD = "mysql_old"
    SHA512CRYPT = "sha512crypt"
    SHA256CRYPT = "sha256crypt"
    MD5CRYPT = "md5crypt"
    DES_CRYPT = "des_crypt"
    APR1 = "apr1"
    SHA1CRYPT = "sha1crypt"
    UNKNOWN = "unknown"

    @classmethod
    def from_label(cls, label: str) -> "HashAlgorithm":
        """Look up a label, falling back to UNKNOWN for anything unrecognized."""
        try:
            return cls(label)
        except ValueError:
            return cls.UNKNOWN


class SaltEncoding(str, Enum):
    """How a salt value is represented."""

    HEX = "hex"
    BASE64 = "base64"
    UTF8 = "utf8"
    RAW = "raw"


@dataclass
class Hash:
    """A hash value together with its identified algorithm.

    ``label`` is only set for a type name HashAlgorithm does not know (the
    algorithm is then UNKNOWN); it is written back unchanged.
    """

    algorithm: HashAlgorithm
    value: str
    label: str = ""

    @property
    def type_label(self) -> str:
        return self.label or self.algorithm.value


@dataclass
class Salt:
    value: str
    encoding: SaltEncoding = SaltEncoding.UTF8


@dataclass
class PotentialField:
    """One guess about what an unknown value might be.

    field_name is the Record attribute the value might belong to
    ("email", "username", "hash", ...); confidence is 0.0–1.0.
    """

    field_name: str
    confidence: float


@dataclass
class UnknownField:
    """A value the parser could not definitively map to a Record field.

    WHY: Forcing a best guess into a typed field hides uncertainty from
    downstream consumers. Keeping the raw value with scored guesses lets
    them tell "this is X" apart from "this might be X".

    RULES:
    - value is preserved exactly as found in the source
    - potential_fields may be empty when the parser has no guess at all
    """

    value: str
    potential_fields: List[PotentialField] = field(default_factory=list)


# Order in which canonical values are reported, rendered and detected as columns.
CANONICAL_FIELDS: Tuple[str, ...] = (
    "email",
    "username",
    "password",
    "url",
    "domain",
    "ip",
    "phone",
    "name",
)

COLUMN_ORDER: Tuple[str, ...] = CANONICAL_FIELDS + ("hash", "salt", "port")


def new_ptv_id() -> str:
    """Generate a new ``ptv_<uuid4>`` identifier."""
    return "ptv_" + str(uuid.uuid4())


@dataclass
class Record:
    """One entity parsed from a source unit.

    WHY: A line in a combo list, an entry in a keytab and a message in a
    Protobuf blob all describe "one account" (or one key, one chain). The
    Record is that unit, with typed slots for the facts every format shares
    and two overflow buckets for everything else.

    HOW: Codecs construct a Record per source unit, fill canonical fields
    through the classifier (or directly, when the format itself says what a
    value is), and drop leftovers into ``extra`` or ``unknowns``.

    RULES:
    - ptv_id: ``ptv_<uuid4>``, generated at construction
    - String fields use "" for "not set"; ``port`` uses 0
    - ``hash`` and ``salt`` are None when absent
    - ``extra`` holds confidently-labelled but non-canonical data
    - ``unknowns`` holds ambiguous values with scored guesses
    - Mutable while a codec fills it; once wrapped in a Dataset it is
      treated as read-only. Nothing enforces this: renderers and the
      calling layer simply never write to a record they were handed
    """

    ptv_id: str = field(default_factory=new_ptv_id)
    email: str = ""
    username: str = ""
    phone: str = ""
    name: str = ""
    password: str = ""
    hash: Optional[Hash] = None
    salt: Optional[Salt] = None
    url: str = ""
    domain: str = ""
    ip: str = ""
    port: int = 0
    unknowns: List[UnknownField] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    def canonical_values(self) -> Dict[str, str]:
        """Return the populated canonical string fields, plus the hash value."""
        values: Dict[str, str] = {}
        for name in CANONICAL_FIELDS:
            value = getattr(self, name)
            if value:
                values[name] = value
        if self.hash is not None and self.hash.value:
            values["hash"] = self.hash.value
        return values

    def populated_columns(self) -> List[str]:
        columns = []
        for name in COLUMN_ORDER:
            if name == "hash":
                populated = self.hash is not None and bool(self.hash.value)
            elif name == "salt":
                populated = self.salt is not None and bool(self.salt.value)
            else:
                populated = bool(getattr(self, name))
            if populated:
                columns.append(name)
        return columns

    def is_empty(self) -> bool:
        """True when the record carries no data at all, not even leftovers."""
        return not self.populated_columns() and not self.unknowns and not self.extra

    def extra_str(self, key: str) -> str:
        """Return ``extra[key]`` as a string, or "" when absent."""
        value = self.extra.get(key)
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return str(value)


@dataclass
class Meta:
    """Provenance and confidence for a parsed dataset.

    RULES:
    - parsed_at is a timezone-aware UTC datetime (serialized as RFC 3339)
    - columns lists populated canonical fields in first-seen order
    - field_confidence maps each column to the codec's certainty, 0.0–1.0
    """

    source_format: str
    parsed_at: datetime
    record_count: int
    columns: List[str] = field(default_factory=list)
    field_confidence: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class Dataset:
    """The top-level conversion unit.

    Created wholesale by one ``parse`` call and consumed wholesale by one
    ``render`` call. Frozen: codecs never mutate a Dataset they receive.
    """

    version: str
    meta: Meta
    records: Tuple[Record, ...]


_PHONE_RE = re.compile(r"^\+[0-9]+$")


def normalize_phone(raw: str) -> str:
    """Reduce a phone number to ``+<digits>``.

    Strips every non-digit character; a leading ``+`` is always present in
    the result. Returns "" when the input has no ASCII digits at all.
    """
    digits = "".join(ch for ch in raw.strip() if "0" <= ch <= "9")
    if not digits:
        return ""
    return "+" + digits


def is_valid_phone(phone: str) -> bool:
    """True for "" (not set) or a value matching ``^\\+[0-9]+$``."""
    return phone == "" or bool(_PHONE_RE.match(phone))


def detect_columns(records: Iterable[Record]) -> List[str]:
    """List populated canonical columns across records, in first-seen order."""
    seen: List[str] = []
    for record in records:
        for column in record.populated_columns():
            if column not in seen:
                seen.append(column)
    return seen


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def build_dataset(
    source_format: str,
    records: Sequence[Record],
    confidence: float = 1.0,
    field_confidence: Optional[Mapping[str, float]] = None,
) -> Dataset:
    """Wrap parsed records into a Dataset with computed metadata.

    WHY: Every codec ends its parse the same way: count the records,
    work out which columns were populated, and attach a confidence per
    column. Centralizing it keeps Meta consistent across codecs.

    HOW: Columns are detected from the records. Each column gets its
    confidence from ``field_confidence`` when listed there, otherwise the
    codec-wide ``confidence`` default.
    """
    columns = detect_columns(records)
    overrides = dict(field_confidence or {})
    conf = {column: overrides.get(column, confidence) for column in columns}
    return Dataset(
        version=PTV_VERSION,
        meta=Meta(
            source_format=source_format,
            parsed_at=utc_now(),
            record_count=len(records),
            columns=columns,
            field_confidence=conf,
        ),
        records=tuple(records),
    )
