# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Client side authentication guard.

Every dashboard API call goes through :meth:`AuthGuard.guarded_call`. The
guard keeps one best-known auth state per instance and refreshes it with a
status probe; concurrent callers share a single in-flight probe.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional

import httpx

from traktdash.client.errors import AuthenticationExpired, AuthenticationRequired
from traktdash.client.view import AuthView, NullView

logger = logging.getLogger(__name__)

DEFAULT_STATUS_PATH = "/api/data"
DEFAULT_SETUP_PATH = "/setup"
DEFAULT_ALLOW_LIST = ("/health", "/setup", "/auth", "/oauth")


class GuardState(Enum):
    UNKNOWN = "unknown"
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class ProbeOutcome:
    authenticated: bool
    setup_required: bool = False
    show_prompt: bool = False
    flash: Optional[str] = None


def _log_navigation(path: str) -> None:
    logger.info("Navigation to %s requested", path)


class AuthGuard:
    """Deduplicated authentication check in front of an ``httpx.AsyncClient``.

    Args:
        base_url: Used only when the guard creates its own client.
        client: Client to send requests with. The guard never closes a client
            it did not create.
        view: Receives show/hide calls when the state changes.
        navigate: Called with the setup path when the server answers 412.
        status_path: Endpoint probed to learn the current auth state.
        allow_list: Paths that bypass the guard; the status path is added.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        client: Optional[httpx.AsyncClient] = None,
        view: Optional[AuthView] = None,
        navigate: Optional[Callable[[str], Any]] = None,
        status_path: str = DEFAULT_STATUS_PATH,
        setup_path: str = DEFAULT_SETUP_PATH,
        allow_list: Iterable[str] = DEFAULT_ALLOW_LIST,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url)
        self._view = view or NullView()
        self._navigate = navigate or _log_navigation
        self.status_path = status_path
        self.setup_path = setup_path
        self.allow_list = tuple(allow_list) + (status_path,)

        self._state = GuardState.UNKNOWN
        self._pending: Optional[asyncio.Task] = None

    async def __aenter__(self) -> "AuthGuard":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def state(self) -> GuardState:
        return self._state

    def is_authenticated(self) -> bool:
        """Last known state. May be stale between probes."""
        return self._state is GuardState.AUTHENTICATED

    def is_exempt(self, target: str) -> bool:
        path = httpx.URL(target).path
        return any(path == p or path.startswith(p + "/") for p in self.allow_list)

    async def check_status(self) -> bool:
        pending = self._pending
        if pending is None:
            # handle is stored before the first await so late callers attach to it
            pending = asyncio.ensure_future(self._run_probe())
            self._pending = pending
            self._state = GuardState.CHECKING
        # shield: a cancelled caller must not cancel the probe other callers share
        return await asyncio.shield(pending)

    async def force_check(self) -> bool:
        """Drop cached state and any shared probe, then probe again."""
        self._pending = None
        self._state = GuardState.UNKNOWN
        return await self.check_status()

    async def guarded_call(self, target: str, method: str = "GET", **options: Any) -> httpx.Response:
        if not self.is_exempt(target) and self._state is not GuardState.AUTHENTICATED:
            if not await self.check_status():
                raise AuthenticationRequired(target)

        response = await self._client.request(method, target, **options)

        if response.status_code == 401:
            logger.info("401 from %s; re-checking authentication", target)
            # a probe already in flight may predate this 401, so start a fresh one
            await self.force_check()
            raise AuthenticationExpired(target)
        return response

    async def _run_probe(self) -> bool:
        task = asyncio.current_task()
        try:
            outcome = await self._probe()
        finally:
            superseded = self._pending is not task
            if not superseded:
                self._pending = None

        if superseded:
            # force_check replaced this probe; its result no longer drives state
            return outcome.authenticated
        self._apply(outcome)
        return outcome.authenticated

    async def _probe(self) -> ProbeOutcome:
        try:
            response = await self._client.get(
                self.status_path,
                headers={"Accept": "application/json", "Cache-Control": "no-store"},
            )
        except httpx.HTTPError as exc:
            logger.warning("Auth check failed: %s", exc)
            return ProbeOutcome(authenticated=False)

        if response.status_code == 412:
            return ProbeOutcome(authenticated=False, setup_required=True)

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Auth check returned an unreadable body (HTTP %s): %s", response.status_code, exc)
            return ProbeOutcome(authenticated=False)
        if not isinstance(payload, dict):
            payload = {}

        flash = payload.get("flash") or None
        if payload.get("needsAuth") is True or response.status_code == 401:
            return ProbeOutcome(authenticated=False, show_prompt=True, flash=flash)
        if response.is_error:
            logger.warning("Auth check answered HTTP %s", response.status_code)
            return ProbeOutcome(authenticated=False)
        return ProbeOutcome(authenticated=True)

    def _apply(self, outcome: ProbeOutcome) -> None:
        if outcome.authenticated:
            self._state = GuardState.AUTHENTICATED
            self._view.hide_login_prompt()
            return

        self._state = GuardState.UNAUTHENTICATED
        if outcome.setup_required:
            self._navigate(self.setup_path)
        elif outcome.show_prompt:
            self._view.show_login_prompt(outcome.flash)
