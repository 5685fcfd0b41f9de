# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import json
import logging
import secrets
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Form, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from traktdash import config
from traktdash.auth.credentials import authenticate, load_auth_settings, verify_full_rebuild
from traktdash.auth.session import (
    COOKIE_NAME,
    CSRF_COOKIE,
    OAUTH_STATE_COOKIE,
    OAUTH_STATE_MAX_AGE,
    new_csrf_nonce,
    sign_csrf,
    sign_oauth_state,
    sign_session,
    verify_csrf,
    verify_oauth_state,
)
from traktdash.permissions import (
    cookie_settings,
    current_user_optional,
    gate_response,
    require_trakt_token,
    setup_required_body,
)
from traktdash.setup_wizard import apply_setup, is_setup_complete, parse_setup_payload
from traktdash.trakt import (
    TraktError,
    authorize_url,
    exchange_code,
    has_valid_credentials,
    load_token,
    save_token,
    token_status,
)

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

EXPIRED_FLASH = "Your authentication has expired. Please reconnect to Trakt."

app = FastAPI()


@app.middleware("http")
async def _auth_middleware(request: Request, call_next):
    request.state.user = current_user_optional(request)
    blocked = gate_response(request)
    if blocked is not None:
        return blocked
    return await call_next(request)


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException):
    # dict details are API payloads; send them as the body itself
    if isinstance(exc.detail, dict):
        return JSONResponse(exc.detail, status_code=exc.status_code, headers=getattr(exc, "headers", None))
    return await http_exception_handler(request, exc)


def _render(request: Request, template_name: str, ctx: dict):
    nonce = request.cookies.get(CSRF_COOKIE) or new_csrf_nonce()
    base_ctx = {
        "title": config.title(),
        "current_user": getattr(request.state, "user", None),
        "csrf_token": sign_csrf(nonce),
    }
    resp = templates.TemplateResponse(request, template_name, {**base_ctx, **(ctx or {})})
    if request.cookies.get(CSRF_COOKIE) != nonce:
        resp.set_cookie(CSRF_COOKIE, nonce, **cookie_settings())
    return resp


def _csrf_error(request: Request, submitted: str = "") -> Optional[JSONResponse]:
    token = submitted or request.headers.get("X-CSRF-Token", "")
    nonce = request.cookies.get(CSRF_COOKIE, "")
    if not token or not nonce:
        code, error = "CSRF_MISSING", "CSRF token missing"
    elif not verify_csrf(nonce, token):
        code, error = "CSRF_INVALID", "CSRF token invalid"
    else:
        return None
    logger.warning("CSRF check failed on %s: %s", request.url.path, code)
    return JSONResponse({"success": False, "error": error, "code": code}, status_code=403)


def _safe_next(value: str) -> str:
    # same-origin paths only; "//host" is protocol-relative
    if value and value.startswith("/") and not value.startswith(("//", "/\\")):
        return value
    return "/"


# ------------------ Routes ------------------


@app.get("/health")
def health():
    checks = {"data_dir": config.data_dir().exists()}
    healthy = all(checks.values())
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": config.APP_VERSION,
        "checks": checks,
    }
    if not healthy:
        logger.warning("Health check failed: %s", checks)
    return JSONResponse(body, status_code=200 if healthy else 503)


@app.get("/setup", response_class=HTMLResponse)
def setup_get(request: Request):
    if is_setup_complete():
        return RedirectResponse(url="/", status_code=303)
    return _render(request, "setup.html", {})


@app.post("/setup")
async def setup_post(request: Request):
    if is_setup_complete():
        logger.warning("Setup submission refused: setup is already complete")
        return JSONResponse({"success": False, "error": "Setup has already been completed"}, status_code=403)

    try:
        payload = await request.json()
    except ValueError:
        return JSONResponse({"success": False, "error": "Expected a JSON body"}, status_code=400)
    if not isinstance(payload, dict):
        return JSONResponse({"success": False, "error": "Expected a JSON object"}, status_code=400)

    submitted = payload.get("csrf")
    blocked = _csrf_error(request, submitted if isinstance(submitted, str) else "")
    if blocked is not None:
        return blocked

    try:
        req = parse_setup_payload(payload)
    except ValueError as exc:
        return JSONResponse({"success": False, "error": str(exc)}, status_code=400)

    apply_setup(req)
    return {"success": True, "message": "Configuration saved"}


@app.get("/login", response_class=HTMLResponse)
def login_get(request: Request, next: str = "/"):
    if getattr(request.state, "user", None):
        return RedirectResponse(url=_safe_next(next), status_code=303)
    return _render(request, "login.html", {"next": _safe_next(next), "error": ""})


@app.post("/login")
def login_post(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    next: str = Form("/"),
    csrf: str = Form(""),
):
    blocked = _csrf_error(request, csrf)
    if blocked is not None:
        return blocked

    if not authenticate(username=username, password=password):
        logger.warning("Failed login attempt for username %r", username)
        return JSONResponse({"success": False, "error": "Invalid credentials"}, status_code=401)

    logger.info("User logged in: %s", username)
    resp = JSONResponse({"success": True, "next": _safe_next(next)})
    resp.set_cookie(
        COOKIE_NAME,
        sign_session(username.strip()),
        max_age=config.session_max_age(),
        **cookie_settings(),
    )
    return resp


@app.post("/logout")
def logout_post(request: Request):
    user = getattr(request.state, "user", None)
    if user:
        logger.info("User logged out: %s", user.username)
    resp = RedirectResponse(url="/login", status_code=303)
    resp.delete_cookie(COOKIE_NAME)
    return resp


@app.get("/auth")
def auth_start():
    state = secrets.token_hex(16)
    resp = RedirectResponse(url=authorize_url(state), status_code=303)
    resp.set_cookie(OAUTH_STATE_COOKIE, sign_oauth_state(state), max_age=OAUTH_STATE_MAX_AGE, **cookie_settings())
    return resp


@app.get("/auth/callback")
async def auth_callback(request: Request, code: str = "", state: str = ""):
    if not verify_oauth_state(request.cookies.get(OAUTH_STATE_COOKIE, ""), state):
        logger.warning("OAuth callback: invalid state parameter")
        return PlainTextResponse("Invalid state parameter", status_code=400)
    if not code:
        logger.warning("OAuth callback: no authorization code received")
        return PlainTextResponse("No authorization code received", status_code=400)

    try:
        token = await exchange_code(code)
    except TraktError as exc:
        logger.error("OAuth callback failed: %s", exc)
        return PlainTextResponse("Authentication failed. Please try again.", status_code=502)

    save_token(token)
    logger.info("OAuth: Trakt account connected")
    resp = RedirectResponse(url="/", status_code=303)
    resp.delete_cookie(OAUTH_STATE_COOKIE)
    return resp


@app.get("/", response_class=HTMLResponse)
def home(request: Request):
    settings = load_auth_settings()
    return _render(request, "index.html", {"auth_enabled": bool(settings and settings.auth_enabled)})


@app.get("/api/data")
def api_data():
    """Status probe used by the client guard."""
    if not has_valid_credentials():
        return JSONResponse(setup_required_body(), status_code=412)

    headers = {"Cache-Control": "no-store"}
    token = load_token()
    if not token:
        return JSONResponse({"title": config.title(), "flash": None, "needsAuth": True}, headers=headers)
    if token_status(token)["expired"]:
        save_token(None)
        return JSONResponse({"title": config.title(), "flash": EXPIRED_FLASH, "needsAuth": True}, headers=headers)
    return JSONResponse({"title": config.title(), "flash": None, "needsAuth": False}, headers=headers)


@app.get("/api/token-status")
def api_token_status():
    if not has_valid_credentials():
        return JSONResponse(setup_required_body(), status_code=412)
    return token_status(load_token())


@app.get("/api/stats")
def api_stats(token=Depends(require_trakt_token)):
    status = token_status(token)
    if status["expired"]:
        save_token(None)
        return JSONResponse({"ok": False, "error": "Authentication expired", "needsAuth": True}, status_code=401)
    stats_file = config.trakt_cache_dir() / "stats.json"
    stats = json.loads(stats_file.read_text(encoding="utf-8")) if stats_file.exists() else {}
    return JSONResponse({"ok": True, "stats": stats})


@app.post("/full_rebuild")
def full_rebuild(request: Request, pwd: str = Form(""), csrf: str = Form("")):
    blocked = _csrf_error(request, csrf)
    if blocked is not None:
        return blocked

    settings = load_auth_settings()
    if not settings or not settings.full_rebuild_password_hash:
        return JSONResponse({"success": False, "error": "Full rebuild password is not configured"}, status_code=403)
    if not verify_full_rebuild(pwd):
        logger.warning("Full rebuild refused: wrong password")
        return JSONResponse({"success": False, "error": "Wrong password"}, status_code=403)

    cache_dir = config.trakt_cache_dir()
    if cache_dir.exists():
        shutil.rmtree(cache_dir)
    cache_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Full rebuild: Trakt cache cleared")
    return {"success": True, "redirectTo": "/"}
