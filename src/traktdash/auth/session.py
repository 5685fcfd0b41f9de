# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

from traktdash import config

logger = logging.getLogger(__name__)

COOKIE_NAME = os.getenv("TDASH_COOKIE_NAME", "tdash_session")
OAUTH_STATE_COOKIE = "tdash_oauth_state"
OAUTH_STATE_MAX_AGE = 600
CSRF_COOKIE = "tdash_csrf"

_EPHEMERAL_SECRET: Optional[str] = None


def _secret() -> str:
    global _EPHEMERAL_SECRET
    secret = os.getenv("TDASH_SECRET_KEY") or os.getenv("SECRET_KEY")
    if secret:
        return secret
    if _EPHEMERAL_SECRET is None:
        logger.warning("TDASH_SECRET_KEY is not set; sessions will not survive a restart")
        _EPHEMERAL_SECRET = secrets.token_hex(32)
    return _EPHEMERAL_SECRET


def _serializer(salt: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key=_secret(), salt=salt)


@dataclass(frozen=True)
class SessionData:
    username: str


def sign_session(username: str) -> str:
    return _serializer("tdash.session.v1").dumps({"u": username})


def verify_session(token: str, *, max_age: Optional[int] = None) -> Optional[SessionData]:
    if not token:
        return None
    try:
        data = _serializer("tdash.session.v1").loads(token, max_age=max_age or config.session_max_age())
    except (BadSignature, BadTimeSignature):
        return None
    u = str((data or {}).get("u") or "").strip()
    if not u:
        return None
    return SessionData(username=u)


def sign_oauth_state(state: str) -> str:
    return _serializer("tdash.oauth.v1").dumps(state)


def verify_oauth_state(token: str, state: str) -> bool:
    if not token or not state:
        return False
    try:
        expected = _serializer("tdash.oauth.v1").loads(token, max_age=OAUTH_STATE_MAX_AGE)
    except (BadSignature, BadTimeSignature):
        return False
    return secrets.compare_digest(str(expected).encode("utf-8"), state.encode("utf-8"))


def new_csrf_nonce() -> str:
    return secrets.token_hex(16)


def sign_csrf(nonce: str) -> str:
    return _serializer("tdash.csrf.v1").dumps(nonce)


def verify_csrf(nonce: str, token: str) -> bool:
    """``token`` must be a signature of the nonce held in the browser's cookie."""
    if not nonce or not token:
        return False
    try:
        signed = _serializer("tdash.csrf.v1").loads(token, max_age=config.session_max_age())
    except (BadSignature, BadTimeSignature):
        return False
    return secrets.compare_digest(str(signed).encode("utf-8"), nonce.encode("utf-8"))
