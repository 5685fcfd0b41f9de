# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Trakt API settings, OAuth token storage and the authorization code exchange."""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
import yaml

from traktdash import config

logger = logging.getLogger(__name__)

TRAKT_API_URL = "https://api.trakt.tv"
TRAKT_AUTHORIZE_URL = "https://trakt.tv/oauth/authorize"
DEFAULT_REDIRECT_URI = "http://localhost:8000/auth/callback"
DEFAULT_TOKEN_LIFETIME = 90 * 24 * 3600


class TraktError(Exception):
    """Raised when Trakt answers an OAuth request with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class TraktSettings:
    client_id: str
    client_secret: str
    redirect_uri: str
    language: str


def load_trakt_settings(path: Optional[Path] = None) -> TraktSettings:
    """Settings file values, overridden by TRAKT_* environment variables."""
    p = path or config.trakt_settings_path()
    raw: Dict[str, Any] = {}
    if p.exists():
        loaded = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        if isinstance(loaded, dict):
            raw = loaded
    return TraktSettings(
        client_id=os.getenv("TRAKT_CLIENT_ID") or str(raw.get("client_id") or ""),
        client_secret=os.getenv("TRAKT_CLIENT_SECRET") or str(raw.get("client_secret") or ""),
        redirect_uri=os.getenv("OAUTH_REDIRECT_URI") or str(raw.get("redirect_uri") or DEFAULT_REDIRECT_URI),
        language=os.getenv("TDASH_LANGUAGE") or str(raw.get("language") or "en-US"),
    )


def save_trakt_settings(settings: TraktSettings, path: Optional[Path] = None) -> None:
    p = path or config.trakt_settings_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "client_id": settings.client_id,
        "client_secret": settings.client_secret,
        "redirect_uri": settings.redirect_uri,
        "language": settings.language,
    }
    p.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")


def has_valid_credentials() -> bool:
    s = load_trakt_settings()
    return bool(s.client_id and s.client_secret)


def authorize_url(state: str) -> str:
    s = load_trakt_settings()
    query = urlencode(
        {
            "response_type": "code",
            "client_id": s.client_id,
            "redirect_uri": s.redirect_uri,
            "state": state,
        }
    )
    return f"{TRAKT_AUTHORIZE_URL}?{query}"


async def exchange_code(code: str, *, client: Optional[httpx.AsyncClient] = None) -> Dict[str, Any]:
    """Trade an authorization code for a token payload."""
    s = load_trakt_settings()
    payload = {
        "code": code,
        "client_id": s.client_id,
        "client_secret": s.client_secret,
        "redirect_uri": s.redirect_uri,
        "grant_type": "authorization_code",
    }
    owned = client is None
    http = client or httpx.AsyncClient(base_url=TRAKT_API_URL, timeout=15.0)
    try:
        response = await http.post("/oauth/token", json=payload)
    except httpx.HTTPError as exc:
        logger.warning("Trakt token exchange failed: %s", exc)
        raise TraktError(f"Token exchange failed: {exc}") from exc
    finally:
        if owned:
            await http.aclose()

    if response.status_code != 200:
        logger.warning("Trakt token exchange failed with HTTP %s", response.status_code)
        raise TraktError("Token exchange failed", status_code=response.status_code)
    try:
        token = response.json()
    except ValueError as exc:
        raise TraktError("Token response is not JSON", status_code=response.status_code) from exc
    if not isinstance(token, dict) or not token.get("access_token"):
        raise TraktError("Token response has no access_token", status_code=response.status_code)
    return token


def load_token() -> Optional[Dict[str, Any]]:
    p = config.token_path()
    if not p.exists():
        return None
    try:
        token = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.error("Unreadable token file %s; treating as signed out", p)
        return None
    if not isinstance(token, dict) or not token.get("access_token"):
        return None
    return token


def save_token(token: Optional[Dict[str, Any]]) -> None:
    """Persist a token, or remove it when ``token`` is None."""
    p = config.token_path()
    if token is None:
        if p.exists():
            p.unlink()
            logger.info("Trakt token removed")
        return
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(token), encoding="utf-8")
    os.chmod(p, 0o600)
    logger.info("Trakt token saved")


def token_status(token: Optional[Dict[str, Any]], *, now: Optional[float] = None) -> Dict[str, Any]:
    if not token or not token.get("access_token"):
        return {"ok": True, "hasToken": False, "needsAuth": True}

    now_ts = int(time.time() if now is None else now)
    created_at = int(token.get("created_at") or now_ts)
    expires_in = int(token.get("expires_in") or DEFAULT_TOKEN_LIFETIME)
    remaining = created_at + expires_in - now_ts
    return {
        "ok": True,
        "hasToken": True,
        "hasRefreshToken": bool(token.get("refresh_token")),
        "expiresIn": remaining,
        "expiresInHours": remaining // 3600,
        "expiresInDays": remaining // 86400,
        "needsRefresh": remaining < 86400,
        "expired": remaining <= 0,
    }
