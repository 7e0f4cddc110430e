"""Hash algorithm detection and modular crypt format decomposition.

WHY: Hash lists, pot files, shadow-style dumps and directory exports all
carry hash strings with no label. Consumers need to know whether a value is
bcrypt or an unsalted MD5, and where the embedded salt and cost parameters
sit inside a ``$algo$params$salt$digest`` string.

HOW: ``detect_hash_type`` is an ordered decision procedure over literal
prefixes, the MySQL ``*`` form, and exact-length pure-hex strings.
``decompose_mcf`` is a fixed lookup from algorithm tag to segment layout.

RULES:
- First match wins; prefix order matters ("$argon2id$" before "$argon2i$")
- No match is a normal outcome (UNKNOWN / empty strings), never an error
- The MCF table is fixed; unknown tags and short shapes yield ("", "")
"""

from __future__ import annotations

from typing import Any, Tuple

from ptv.core.ir import HashAlgorithm

# (prefix, algorithm) in evaluation order.
_MCF_PREFIXES: Tuple[Tuple[str, HashAlgorithm], ...] = (
    ("$2a$", HashAlgorithm.BCRYPT),
    ("$2b$", HashAlgorithm.BCRYPT),
    ("$2y$", HashAlgorithm.BCRYPT),
    ("$argon2id$", HashAlgorithm.ARGON2ID),
    ("$argon2i$", HashAlgorithm.ARGON2I),
    ("$scrypt$", HashAlgorithm.SCRYPT),
    ("$pbkdf2", HashAlgorithm.PBKDF2),
    ("$6$", HashAlgorithm.SHA512CRYPT),
    ("$5$", HashAlgorithm.SHA256CRYPT),
    ("$1$", HashAlgorithm.MD5CRYPT),
    ("$apr1$", HashAlgorithm.APR1),
    ("$sha1$", HashAlgorithm.SHA1CRYPT),
)

_HEX_LENGTHS = {
    32: HashAlgorithm.MD5,
    40: HashAlgorithm.SHA1,
    56: HashAlgorithm.SHA224,
    64: HashAlgorithm.SHA256,
    96: HashAlgorithm.SHA384,
    128: HashAlgorithm.SHA512,
}

_HEX_CHARS = frozenset("0123456789abcdefABCDEF")


def _is_hex(value: str) -> bool:
    return bool(value) and all(ch in _HEX_CHARS for ch in value)


def detect_hash_type(value: Any) -> HashAlgorithm:
    """Identify the hash algorithm from the shape of a hash string.

    Args:
        value: The candidate hash string. Non-strings are UNKNOWN.

    Returns:
        The detected HashAlgorithm, or HashAlgorithm.UNKNOWN.
    """
    if not isinstance(value, str):
        return HashAlgorithm.UNKNOWN

    for prefix, algorithm in _MCF_PREFIXES:
        if value.startswith(prefix):
            return algorithm

    # MySQL native password: "*" + 40 hex
    if value.startswith("*") and len(value) == 41 and _is_hex(value[1:]):
        return HashAlgorithm.MYSQL

    algorithm = _HEX_LENGTHS.get(len(value))
    if algorithm is not None and _is_hex(value):
        return algorithm

    return HashAlgorithm.UNKNOWN


def decompose_mcf(value: Any) -> Tuple[str, str]:
    """Split a modular crypt string into (salt, params).

    WHY: The salt and cost parameters are embedded in the hash string
    itself. Surfacing them lets renderers for salt-aware formats
    (``hash:salt`` lists) emit them without re-parsing.

    HOW: Strip the leading "$", split on "$", and dispatch on segment 0
    (the algorithm tag). Each tag has a fixed layout:

        2a/2b/2y     $2b$<cost>$<salt22><digest>
        6/5/1        $6$[rounds=N$]<salt>$<digest>
        argon2id/i   $argon2id$v=19$m=..,t=..,p=..$<salt>$<digest>
        scrypt       $scrypt$<params>$<salt>$<digest>
        pbkdf2*      $pbkdf2-sha256$<rounds>$<salt>$<digest>
        sha1         $sha1$<rounds>$<salt>$<digest>
        apr1         $apr1$<salt>$<digest>

    RULES:
    - Either element may be ""; both are "" for anything unrecognized
    - pbkdf2 and sha1 require exactly the four-segment shape above
    """
    if not isinstance(value, str) or not value.startswith("$"):
        return "", ""

    parts = value[1:].split("$")
    if len(parts) < 2:
        return "", ""

    tag = parts[0]

    if tag in ("2a", "2b", "2y"):
        if len(parts) >= 3 and len(parts[2]) >= 22:
            return parts[2][:22], "rounds=" + parts[1]
    elif tag in ("6", "5", "1"):
        if len(parts) >= 3:
            if parts[1].startswith("rounds="):
                if len(parts) >= 4:
                    return parts[2], parts[1]
            else:
                return parts[1], ""
    elif tag in ("argon2id", "argon2i"):
        if len(parts) >= 5:
            return parts[3], parts[1] + "," + parts[2]
    elif tag == "scrypt":
        if len(parts) >= 4:
            return parts[2], parts[1]
    elif tag.startswith("pbkdf2"):
        if len(parts) >= 4:
            return parts[2], "rounds=" + parts[1]
    elif tag == "sha1":
        if len(parts) >= 4:
            return parts[2], "rounds=" + parts[1]
    elif tag == "apr1":
        if len(parts) >= 3:
            return parts[1], ""

    return "", ""
