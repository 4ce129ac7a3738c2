import hashlib

from grammarhub.utils.passwords import (
    SALT_ALPHABET,
    generate_salt,
    generate_session_token,
    hash_password,
    verify_password,
)


def test_hash_matches_salted_sha256_layout():
    expected = hashlib.sha256(b"abc123:hunter2").hexdigest()
    assert hash_password("hunter2", "abc123") == expected


def test_generate_salt_is_sixteen_alphanumerics():
    salt = generate_salt()
    assert len(salt) == 16
    assert all(ch in SALT_ALPHABET for ch in salt)


def test_verify_password_accepts_only_matching_password():
    salt = generate_salt()
    stored = hash_password("correct horse", salt)
    assert verify_password("correct horse", salt, stored) is True
    assert verify_password("wrong horse", salt, stored) is False


def test_verify_password_rejects_empty_hash():
    assert verify_password("anything", "salt", "") is False


def test_session_tokens_are_hex_and_unique():
    first = generate_session_token()
    second = generate_session_token()
    assert len(first) == 64
    int(first, 16)
    assert first != second
