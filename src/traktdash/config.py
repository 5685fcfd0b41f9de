# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Environment driven settings.

Values are read on every call so tests (and the setup wizard) can change the
environment without reloading modules.
"""

from __future__ import annotations

import os
from pathlib import Path

APP_VERSION = "1.0.0"

_TRUE = {"1", "true", "yes", "y", "on"}


def env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUE


def title() -> str:
    return os.getenv("TDASH_TITLE", "Trakt Dashboard")


def data_dir() -> Path:
    return Path(os.getenv("TDASH_DATA_DIR", "data")).resolve()


def config_dir() -> Path:
    return Path(os.getenv("TDASH_CONFIG_DIR", "config")).resolve()


def auth_path() -> Path:
    return Path(os.getenv("TDASH_AUTH_PATH", str(config_dir() / "auth.yml"))).resolve()


def trakt_settings_path() -> Path:
    return Path(os.getenv("TDASH_TRAKT_PATH", str(config_dir() / "trakt.yml"))).resolve()


def secrets_dir() -> Path:
    return data_dir() / ".secrets"


def token_path() -> Path:
    return Path(os.getenv("TDASH_TOKEN_FILE", str(secrets_dir() / "trakt_token.json"))).resolve()


def trakt_cache_dir() -> Path:
    return data_dir() / ".cache_trakt"


def session_max_age() -> int:
    return int(os.getenv("TDASH_SESSION_MAX_AGE", str(24 * 3600)))


def cookie_secure() -> bool:
    return env_flag("TDASH_COOKIE_SECURE")
