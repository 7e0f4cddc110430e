"""Unit tests for hash type detection and MCF decomposition."""

import pytest

from ptv.core.hashes import decompose_mcf, detect_hash_type
from ptv.core.ir import HashAlgorithm

SALT22 = "abcdefghijklmnopqrstuv"
DIGEST31 = "ABCDEFGHIJKLMNOPQRSTUVWXYZ01234"


class TestDetectHashType:

    @pytest.mark.parametrize("value,expected", [
        ("$2a$10$" + SALT22 + DIGEST31, HashAlgorithm.BCRYPT),
        ("$2b$12$" + SALT22 + DIGEST31, HashAlgorithm.BCRYPT),
        ("$2y$12$" + SALT22 + DIGEST31, HashAlgorithm.BCRYPT),
        ("$argon2id$v=19$m=65536,t=3,p=4$c2FsdA$aGFzaA", HashAlgorithm.ARGON2ID),
        ("$argon2i$v=19$m=4096,t=3,p=1$c2FsdA$aGFzaA", HashAlgorithm.ARGON2I),
        ("$scrypt$ln=16,r=8,p=1$c2FsdA$aGFzaA", HashAlgorithm.SCRYPT),
        ("$pbkdf2-sha256$29000$N2ZP$digest", HashAlgorithm.PBKDF2),
        ("$6$saltsalt$digest", HashAlgorithm.SHA512CRYPT),
        ("$5$saltsalt$digest", HashAlgorithm.SHA256CRYPT),
        ("$1$saltsalt$digest", HashAlgorithm.MD5CRYPT),
        ("$apr1$saltsalt$digest", HashAlgorithm.APR1),
        ("$sha1$40000$jtNX$digest", HashAlgorithm.SHA1CRYPT),
        ("*" + "A" * 40, HashAlgorithm.MYSQL),
        ("d41d8cd98f00b204e9800998ecf8427e", HashAlgorithm.MD5),
        ("da39a3ee5e6b4b0d3255bfef95601890afd80709", HashAlgorithm.SHA1),
        ("a" * 56, HashAlgorithm.SHA224),
        ("B" * 64, HashAlgorithm.SHA256),
        ("c" * 96, HashAlgorithm.SHA384),
        ("d" * 128, HashAlgorithm.SHA512),
    ])
    def test_exemplars(self, value, expected):
        assert detect_hash_type(value) is expected

    @pytest.mark.parametrize("value", [
        "",
        "hunter2",
        "g" * 32,
        "a" * 33,
        "*" + "a" * 39,
        "$unknown$abc",
    ])
    def test_anything_else_is_unknown(self, value):
        assert detect_hash_type(value) is HashAlgorithm.UNKNOWN

    def test_non_string(self):
        assert detect_hash_type(None) is HashAlgorithm.UNKNOWN
        assert detect_hash_type(b"d41d8cd98f00b204e9800998ecf8427e") is HashAlgorithm.UNKNOWN


class TestDecomposeMcf:

    def test_bcrypt(self):
        assert decompose_mcf("$2b$12$" + SALT22 + DIGEST31) == (SALT22, "rounds=12")

    def test_bcrypt_short_salt(self):
        assert decompose_mcf("$2b$12$short") == ("", "")

    def test_sha512crypt(self):
        assert decompose_mcf("$6$saltsalt$digest") == ("saltsalt", "")

    def test_sha512crypt_with_rounds(self):
        assert decompose_mcf("$6$rounds=5000$saltsalt$digest") == ("saltsalt", "rounds=5000")

    def test_argon2(self):
        value = "$argon2id$v=19$m=65536,t=3,p=4$c2FsdA$aGFzaA"
        assert decompose_mcf(value) == ("c2FsdA", "v=19,m=65536,t=3,p=4")

    def test_scrypt(self):
        assert decompose_mcf("$scrypt$ln=16,r=8,p=1$salt$digest") == ("salt", "ln=16,r=8,p=1")

    def test_pbkdf2(self):
        assert decompose_mcf("$pbkdf2-sha256$29000$N2ZP$digest") == ("N2ZP", "rounds=29000")

    def test_pbkdf2_requires_four_segments(self):
        assert decompose_mcf("$pbkdf2-sha256$29000$N2ZP") == ("", "")

    def test_sha1crypt(self):
        assert decompose_mcf("$sha1$40000$jtNX$digest") == ("jtNX", "rounds=40000")

    def test_apr1(self):
        assert decompose_mcf("$apr1$saltsalt$digest") == ("saltsalt", "")

    @pytest.mark.parametrize("value", ["", "d41d8cd98f00b204e9800998ecf8427e", "$", "$xyz$a$b$c", None])
    def test_unrecognized(self, value):
        assert decompose_mcf(value) == ("", "")
