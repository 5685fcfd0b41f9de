# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dashboard API client guarded by a single shared authentication check."""

from traktdash.client.errors import AuthenticationExpired, AuthenticationRequired, GuardError
from traktdash.client.guard import AuthGuard, GuardState
from traktdash.client.view import AuthView, NullView, VisibilityView

__all__ = [
    "AuthGuard",
    "AuthView",
    "AuthenticationExpired",
    "AuthenticationRequired",
    "GuardError",
    "GuardState",
    "NullView",
    "VisibilityView",
]
