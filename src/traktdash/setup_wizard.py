# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from traktdash import config
from traktdash.auth.credentials import load_auth_settings, save_auth_settings
from traktdash.trakt import DEFAULT_REDIRECT_URI, TraktSettings, has_valid_credentials, save_trakt_settings

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("traktClientId", "traktClientSecret", "fullRebuildPassword")


@dataclass(frozen=True)
class SetupRequest:
    trakt_client_id: str
    trakt_client_secret: str
    full_rebuild_password: str
    language: str
    redirect_uri: str
    enable_auth: bool
    auth_username: str
    auth_password: str


def _truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "on", "yes"}


def parse_setup_payload(payload: Dict[str, Any]) -> SetupRequest:
    """Validate the wizard form. Raises ValueError naming the first problem."""
    missing = [f for f in REQUIRED_FIELDS if not str(payload.get(f) or "").strip()]
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}")

    enable_auth = _truthy(payload.get("enableAuth"))
    username = str(payload.get("authUsername") or "").strip()
    password = str(payload.get("authPassword") or "")
    if enable_auth and (not username or not password):
        raise ValueError("authUsername and authPassword are required when enableAuth is set")

    return SetupRequest(
        trakt_client_id=str(payload["traktClientId"]).strip(),
        trakt_client_secret=str(payload["traktClientSecret"]).strip(),
        full_rebuild_password=str(payload["fullRebuildPassword"]),
        language=str(payload.get("language") or "en-US").strip(),
        redirect_uri=str(payload.get("oauthRedirectUri") or DEFAULT_REDIRECT_URI).strip(),
        enable_auth=enable_auth,
        auth_username=username,
        auth_password=password,
    )


def apply_setup(req: SetupRequest) -> None:
    save_trakt_settings(
        TraktSettings(
            client_id=req.trakt_client_id,
            client_secret=req.trakt_client_secret,
            redirect_uri=req.redirect_uri,
            language=req.language,
        )
    )
    save_auth_settings(
        auth_enabled=req.enable_auth,
        username=req.auth_username if req.enable_auth else "",
        password=req.auth_password if req.enable_auth else "",
        full_rebuild_password=req.full_rebuild_password,
    )
    config.data_dir().mkdir(parents=True, exist_ok=True)
    logger.info("Setup completed")


def is_setup_complete() -> bool:
    if not has_valid_credentials():
        return False
    settings = load_auth_settings()
    if settings is None:
        return False
    return settings.login_configured or not settings.auth_enabled
