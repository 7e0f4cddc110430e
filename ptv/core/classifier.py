"""Field classification and value sniffing shared by every codec.

WHY: Source formats name the same fact a dozen ways ("e-mail", "mail",
"email_address"; "login", "account", "userid"). Each codec must decide, for
every value it finds, whether it is confident enough to place it in a
canonical Record field or must fall back to ``extra``/``unknowns``. Doing
that in one place keeps the decision identical across formats.

HOW: ``classify`` is a case-insensitive exact lookup in a fixed synonym
table. ``sniff_value`` is the content-based fallback used by schema-less
decoders (URL scheme prefix, "@" plus "."). ``suggest_fields`` scores
guesses for values that end up in ``unknowns``.

RULES:
- classify never raises and never partially matches
- classify returns True only after it has set a field
- Unrecognized names return False and leave the record untouched
- Phone values pass through normalize_phone; a value with no digits is
  not a match
"""

from __future__ import annotations

from typing import Any, Dict, List

from ptv.core.hashes import detect_hash_type
from ptv.core.ir import HashAlgorithm, PotentialField, Record, SaltEncoding, normalize_phone

# Synonym → canonical Record attribute. Keys are lowercase.
FIELD_SYNONYMS: Dict[str, str] = {}

_SYNONYM_GROUPS = {
    "email": ("email", "e-mail", "mail", "email_address"),
    "username": ("username", "user", "login", "account", "user_name", "userid"),
    "password": ("password", "pass", "passwd", "pwd", "secret"),
    "url": ("url", "uri", "link", "website", "site"),
    "domain": ("domain", "host", "hostname"),
    "ip": ("ip", "ip_address", "ipaddress", "ip_addr"),
    "phone": ("phone", "telephone", "tel", "mobile", "phone_number"),
    "name": ("name", "full_name", "fullname", "display_name", "displayname"),
}

for _canonical, _synonyms in _SYNONYM_GROUPS.items():
    for _synonym in _synonyms:
        FIELD_SYNONYMS[_synonym] = _canonical

_HEX_CHARS = frozenset("0123456789abcdefABCDEF")


def canonical_field_for(field_name: Any) -> str:
    """Return the canonical attribute a source field name maps to, or ""."""
    if not isinstance(field_name, str):
        return ""
    return FIELD_SYNONYMS.get(field_name.lower(), "")


def classify(record: Record, field_name: Any, value: Any) -> bool:
    """Place ``value`` into the canonical field named by ``field_name``.

    WHY: This is the single dispatch point every codec uses to decide
    whether a value becomes a canonical field or falls through to
    ``extra``/``unknowns``.

    HOW: Lowercase the name, look it up in FIELD_SYNONYMS, and set the
    attribute. Phone numbers are normalized first.

    Args:
        record: The Record under construction.
        field_name: Source field name (any casing).
        value: The source value; only non-empty strings can match.

    Returns:
        True if a canonical field was set, False otherwise (record untouched).
    """
    canonical = canonical_field_for(field_name)
    if not canonical or not isinstance(value, str) or value == "":
        return False
    if canonical == "phone":
        value = normalize_phone(value)
        if not value:
            return False
    setattr(record, canonical, value)
    return True


def is_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


def looks_like_email(value: str) -> bool:
    return "@" in value and "." in value


def sniff_value(record: Record, value: str) -> bool:
    """Content-based fallback for values whose field name told us nothing.

    Sets ``url`` for an http(s) URL and ``email`` for anything with "@" and
    "." but only when that field is still empty. Returns True when a
    field was set.
    """
    if is_url(value):
        if not record.url:
            record.url = value
            return True
        return False
    if looks_like_email(value):
        if not record.email:
            record.email = value
            return True
    return False


def classify_identity(record: Record, value: str) -> None:
    """Combo-list identity rule: "@" means email, anything else username."""
    if "@" in value:
        record.email = value
    else:
        record.username = value


def is_hex(value: str) -> bool:
    return bool(value) and all(ch in _HEX_CHARS for ch in value)


def guess_salt_encoding(value: str) -> SaltEncoding:
    """All-hex salts are hex, everything else is treated as UTF-8 text."""
    if is_hex(value):
        return SaltEncoding.HEX
    return SaltEncoding.UTF8


def suggest_fields(value: str) -> List[PotentialField]:
    """Score what an unplaceable value might be.

    Used when a codec has to park a value in ``unknowns``. The guesses are
    deliberately modest; an empty list means "no idea".
    """
    guesses: List[PotentialField] = []
    if not value:
        return guesses
    if is_url(value):
        guesses.append(PotentialField("url", 0.6))
    elif looks_like_email(value):
        guesses.append(PotentialField("email", 0.6))
    if detect_hash_type(value) != HashAlgorithm.UNKNOWN:
        guesses.append(PotentialField("hash", 0.5))
    stripped = value.strip()
    if stripped.lstrip("+").replace(" ", "").replace("-", "").isdigit() and len(stripped) >= 7:
        guesses.append(PotentialField("phone", 0.3))
    if not guesses and " " not in value:
        guesses.append(PotentialField("password", 0.2))
    return guesses
