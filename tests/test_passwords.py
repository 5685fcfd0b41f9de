import pytest

from traktdash.auth import passwords
from traktdash.auth.passwords import (
    KEY_BYTES,
    SALT_BYTES,
    hash_password,
    is_password_hashed,
    verify_password,
)


def test_hash_then_verify_accepts_same_password():
    record = hash_password("correct horse")
    assert verify_password("correct horse", record) is True


def test_verify_rejects_other_password():
    record = hash_password("correct horse")
    assert verify_password("battery staple", record) is False


def test_record_layout_is_hex_salt_and_hex_key():
    salt, key = hash_password("pw").split(":")
    assert len(salt) == SALT_BYTES * 2
    assert len(key) == KEY_BYTES * 2
    int(salt, 16)
    int(key, 16)


def test_same_password_gets_a_fresh_salt_each_time():
    a = hash_password("pw")
    b = hash_password("pw")
    assert a != b
    assert verify_password("pw", a)
    assert verify_password("pw", b)


def test_password_containing_separator_round_trips():
    record = hash_password("a:b:c")
    assert verify_password("a:b:c", record)


@pytest.mark.parametrize(
    "record",
    ["", None, "no-separator", ":deadbeef", 42, ["a:b"], "\ud800" * 16 + ":abcd", "00" * 16 + ":caf\u00e9"],
)
def test_malformed_records_fail_closed(record):
    assert verify_password("anything", record) is False


def test_tampered_key_is_rejected():
    salt, key = hash_password("pw").split(":")
    flipped = ("0" if key[0] != "0" else "1") + key[1:]
    assert verify_password("pw", f"{salt}:{flipped}") is False


def test_non_string_or_unencodable_plaintext_is_rejected():
    record = hash_password("pw")
    assert verify_password(None, record) is False
    assert verify_password("\udc80", record) is False


@pytest.mark.parametrize("plain", ["", " ", "p\u00e4ss", "\u5bc6\u7801", "x" * 1024])
def test_any_plaintext_round_trips(plain):
    record = hash_password(plain)
    assert verify_password(plain, record) is True
    assert verify_password(plain + "!", record) is False


@pytest.mark.real_kdf
def test_round_trip_with_production_cost():
    assert (passwords.TIME_COST, passwords.MEMORY_COST_KIB, passwords.PARALLELISM) == (3, 65536, 4)
    record = hash_password("correct horse")
    assert verify_password("correct horse", record) is True
    assert verify_password("battery staple", record) is False


def test_is_password_hashed():
    assert is_password_hashed("abc:def") is True
    assert is_password_hashed("plaintext") is False
    assert is_password_hashed(123) is False
    assert is_password_hashed(None) is False
