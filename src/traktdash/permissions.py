# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from traktdash import config
from traktdash.auth.credentials import load_auth_settings
from traktdash.auth.session import COOKIE_NAME, verify_session
from traktdash.trakt import has_valid_credentials, load_token

logger = logging.getLogger(__name__)

# Reachable without a login session: these establish auth in the first place.
PUBLIC_PREFIXES = ("/login", "/setup", "/auth", "/oauth", "/health", "/static", "/favicon.ico")


def is_public_path(path: str) -> bool:
    return any(path == p or path.startswith(p + "/") for p in PUBLIC_PREFIXES)


def is_api_path(path: str) -> bool:
    return path.startswith("/api/")


@dataclass(frozen=True)
class CurrentUser:
    username: str


def load_user_from_request(request: Request) -> Optional[CurrentUser]:
    token = request.cookies.get(COOKIE_NAME, "")
    sess = verify_session(token)
    if not sess:
        return None
    settings = load_auth_settings()
    if not settings or sess.username != settings.username:
        return None
    return CurrentUser(username=sess.username)


def current_user_optional(request: Request) -> Optional[CurrentUser]:
    u = getattr(request.state, "user", None)
    if u is not None:
        return u
    return load_user_from_request(request)


def _login_redirect(request: Request) -> RedirectResponse:
    next_url = str(request.url.path)
    if request.url.query:
        next_url += "?" + request.url.query
    return RedirectResponse(url=f"/login?next={quote(next_url, safe='/')}", status_code=303)


def gate_response(request: Request) -> Optional[Response]:
    """Login gate for one request. None lets the request through."""
    path = request.url.path
    if is_public_path(path):
        return None

    settings = load_auth_settings()
    if settings is None:
        if is_api_path(path):
            # the API gate answers 412 with the setup hint
            return None
        return RedirectResponse(url="/setup", status_code=303)

    if not settings.auth_enabled:
        return None
    if not settings.login_configured:
        return RedirectResponse(url="/setup", status_code=303)
    if current_user_optional(request):
        return None

    if is_api_path(path):
        logger.info("Rejected unauthenticated API call to %s", path)
        return JSONResponse(
            {"ok": False, "error": "Login required", "needsAuth": True},
            status_code=401,
        )
    return _login_redirect(request)


def setup_required_body() -> Dict[str, Any]:
    return {"ok": False, "error": "Missing configuration", "needsSetup": True, "redirectTo": "/setup"}


def require_trakt_token() -> Dict[str, Any]:
    """Dependency for data endpoints: 412 before setup, 401 without a Trakt token."""
    if not has_valid_credentials():
        logger.warning("Trakt credentials missing")
        raise HTTPException(status_code=412, detail=setup_required_body())
    token = load_token()
    if not token:
        raise HTTPException(
            status_code=401,
            detail={"ok": False, "error": "Authentication required", "needsAuth": True},
        )
    return token


def cookie_settings() -> dict:
    return {"httponly": True, "samesite": "lax", "secure": config.cookie_secure()}
