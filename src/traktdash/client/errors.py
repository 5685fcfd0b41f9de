# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations


class GuardError(Exception):
    """Base class for calls refused by the authentication guard."""

    def __init__(self, message: str, target: str):
        super().__init__(message)
        self.target = target


class AuthenticationRequired(GuardError):
    """The pre-flight status check failed; no request was sent."""

    def __init__(self, target: str):
        super().__init__("Authentication required", target)


class AuthenticationExpired(GuardError):
    """The call was sent and answered 401."""

    def __init__(self, target: str):
        super().__init__("Authentication expired", target)
