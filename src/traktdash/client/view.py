# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""What the guard shows or hides when the auth state changes."""

from __future__ import annotations

from typing import Dict, Optional, Protocol

LOGIN_PROMPT = "login_prompt"
MAIN_CONTENT = "main_content"
TABS = "tabs"
FILTERS_TOGGLE = "filters_toggle"
FILTERS = "filters"


class AuthView(Protocol):
    def show_login_prompt(self, flash: Optional[str] = None) -> None: ...

    def hide_login_prompt(self) -> None: ...


class NullView:
    def show_login_prompt(self, flash: Optional[str] = None) -> None:
        pass

    def hide_login_prompt(self) -> None:
        pass


class VisibilityView:
    """Visibility flags for the dashboard regions.

    Both operations only set flags, so repeating one is a no-op. The filter
    controls are hidden with the login prompt but not restored by
    ``hide_login_prompt``; the page brings them back on its own.
    """

    def __init__(self) -> None:
        self.visible: Dict[str, bool] = {
            LOGIN_PROMPT: False,
            MAIN_CONTENT: True,
            TABS: True,
            FILTERS_TOGGLE: True,
            FILTERS: True,
        }
        self.flash: Optional[str] = None

    def is_visible(self, region: str) -> bool:
        return self.visible.get(region, False)

    def show_login_prompt(self, flash: Optional[str] = None) -> None:
        for region in (MAIN_CONTENT, TABS, FILTERS_TOGGLE, FILTERS):
            self.visible[region] = False
        self.visible[LOGIN_PROMPT] = True
        if flash:
            self.flash = flash

    def hide_login_prompt(self) -> None:
        self.visible[LOGIN_PROMPT] = False
        self.visible[MAIN_CONTENT] = True
        self.visible[TABS] = True
        self.flash = None
