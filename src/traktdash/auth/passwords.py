# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Salted argon2id records in the ``salt:hash`` text form.

Records are meant to be pasted into hand-edited YAML, so both halves are hex
and the separator is a single ``:``.
"""

from __future__ import annotations

import hmac
import secrets
from typing import Any

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw

SEPARATOR = ":"
SALT_BYTES = 16
KEY_BYTES = 64

# Changing any of these invalidates every stored record.
TIME_COST = 3
MEMORY_COST_KIB = 64 * 1024
PARALLELISM = 4


def _derive(plain: str, salt: str) -> str:
    key = hash_secret_raw(
        secret=plain.encode("utf-8"),
        salt=salt.encode("utf-8"),
        time_cost=TIME_COST,
        memory_cost=MEMORY_COST_KIB,
        parallelism=PARALLELISM,
        hash_len=KEY_BYTES,
        type=Type.ID,
    )
    return key.hex()


def hash_password(plain: str) -> str:
    salt = secrets.token_hex(SALT_BYTES)
    return f"{salt}{SEPARATOR}{_derive(plain, salt)}"


def verify_password(plain: Any, record: Any) -> bool:
    """Check ``plain`` against a stored record.

    Malformed records answer False exactly like a wrong password does.
    """
    if not is_password_hashed(record) or not isinstance(plain, str):
        return False
    salt, expected = record.split(SEPARATOR, 1)
    try:
        actual = _derive(plain, salt)
        return hmac.compare_digest(actual.encode("ascii"), expected.encode("utf-8"))
    except (HashingError, UnicodeEncodeError):
        # salt too short for argon2 (":abc") or text that is not encodable
        return False


def is_password_hashed(value: Any) -> bool:
    return isinstance(value, str) and SEPARATOR in value
