# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from traktdash import config
from traktdash.auth.passwords import hash_password, is_password_hashed, verify_password

logger = logging.getLogger(__name__)

# plaintext input field -> stored record field
RECORD_FIELDS = {
    "password": "password_hash",
    "full_rebuild_password": "full_rebuild_password_hash",
}


@dataclass(frozen=True)
class AuthSettings:
    auth_enabled: bool
    username: str
    password_hash: str
    full_rebuild_password_hash: str

    @property
    def login_configured(self) -> bool:
        return bool(self.username and self.password_hash)


_CACHE: Dict[Path, Tuple[float, AuthSettings]] = {}


def _normalise(raw: Dict[str, Any]) -> bool:
    """Turn plaintext inputs into records in place. Returns True if ``raw`` changed."""
    changed = False
    for input_field, record_field in RECORD_FIELDS.items():
        plain = raw.pop(input_field, None)
        if plain is not None:
            changed = True
            plain = str(plain)
            if plain:
                raw[record_field] = plain if is_password_hashed(plain) else hash_password(plain)
                logger.info("Stored %s as a hashed record", record_field)
            continue

        current = raw.get(record_field)
        if current and not is_password_hashed(current):
            raw[record_field] = hash_password(str(current))
            changed = True
            logger.warning("%s was not a hashed record; re-hashed it", record_field)
    return changed


def _write(path: Path, raw: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(raw, sort_keys=False, allow_unicode=True), encoding="utf-8")


def _read(path: Path) -> Optional[Dict[str, Any]]:
    if not path.exists():
        return None
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid credential file: {path}")
    return raw


def _to_settings(raw: Dict[str, Any]) -> AuthSettings:
    return AuthSettings(
        auth_enabled=bool(raw.get("auth_enabled", False)),
        username=str(raw.get("username") or "").strip(),
        password_hash=str(raw.get("password_hash") or "").strip(),
        full_rebuild_password_hash=str(raw.get("full_rebuild_password_hash") or "").strip(),
    )


def load_auth_settings(path: Optional[Path] = None) -> Optional[AuthSettings]:
    """Load the credential store, or None when setup has not been completed."""
    p = path or config.auth_path()
    raw = _read(p)
    if raw is None:
        _CACHE.pop(p, None)
        return None

    mtime = p.stat().st_mtime
    cached = _CACHE.get(p)
    if cached and cached[0] == mtime:
        return cached[1]

    if _normalise(raw):
        _write(p, raw)
        mtime = p.stat().st_mtime

    settings = _to_settings(raw)
    _CACHE[p] = (mtime, settings)
    return settings


def save_auth_settings(
    *,
    auth_enabled: bool,
    username: str = "",
    password: str = "",
    full_rebuild_password: str = "",
    path: Optional[Path] = None,
) -> AuthSettings:
    """Write the credential store from plaintext inputs. Only records reach disk."""
    p = path or config.auth_path()
    raw: Dict[str, Any] = {"version": 1, "auth_enabled": bool(auth_enabled), "username": username.strip()}
    # form inputs are always plaintext, even when they contain ":"
    if password:
        raw["password_hash"] = hash_password(password)
    if full_rebuild_password:
        raw["full_rebuild_password_hash"] = hash_password(full_rebuild_password)
    _write(p, raw)
    _CACHE.pop(p, None)
    logger.info("Credential store written to %s (login gate %s)", p, "on" if auth_enabled else "off")
    return _to_settings(raw)


def set_record(field: str, plain: str, *, path: Optional[Path] = None) -> None:
    """Replace one record (``password`` or ``full_rebuild_password``) in the store."""
    if field not in RECORD_FIELDS:
        raise ValueError(f"Unknown credential field: {field}")
    p = path or config.auth_path()
    raw = _read(p) or {"version": 1, "auth_enabled": False}
    raw.pop(field, None)
    raw[RECORD_FIELDS[field]] = hash_password(plain)
    _write(p, raw)
    _CACHE.pop(p, None)


def authenticate(username: str, password: str, *, path: Optional[Path] = None) -> bool:
    s = load_auth_settings(path)
    if not s or not s.login_configured:
        return False
    # KDF runs before the username comparison
    ok = verify_password(password, s.password_hash)
    return ok and (username or "").strip() == s.username


def verify_full_rebuild(password: str, *, path: Optional[Path] = None) -> bool:
    s = load_auth_settings(path)
    if not s or not s.full_rebuild_password_hash:
        return False
    return verify_password(password, s.full_rebuild_password_hash)
