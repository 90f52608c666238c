"""
Light/dark theme handling.

The stored preference always wins over the OS signal; the OS signal only
matters until the user picks a theme explicitly.
"""

import json
import logging
import os
from typing import Callable, Optional

LIGHT = 'light'
DARK = 'dark'
THEMES = (LIGHT, DARK)
DEFAULT_THEME = LIGHT
DEFAULT_STORAGE_KEY = 'theme'

# Toggle glyph shows the theme you would switch to.
THEME_ICONS = {
    DARK: '\u2600\ufe0f',
    LIGHT: '\U0001f319',
}


class PreferenceStore:
    """
    Small persistent key-value store backed by a JSON file.

    Plays the part of the browser's local storage. With ``path=None`` the
    values live only in memory. Read problems are never fatal: a missing,
    unreadable or corrupt file reads as empty.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self.logger = logging.getLogger('PreferenceStore')
        self._memory = {}

    def _load(self) -> dict:
        if self.path is None:
            return dict(self._memory)
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (IOError, OSError, PermissionError) as e:
            self.logger.debug(f"Could not read preferences {self.path}: {e}")
            return {}
        except json.JSONDecodeError as e:
            self.logger.debug(f"Ignoring corrupt preferences file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict) -> None:
        if self.path is None:
            self._memory = dict(data)
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class ThemeController:
    """Resolves, persists and applies the active theme."""

    def __init__(
        self,
        store: Optional[PreferenceStore] = None,
        view=None,
        system_prefers_dark: Optional[Callable[[], Optional[bool]]] = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ):
        self.store = store if store is not None else PreferenceStore()
        self.view = view
        self.system_prefers_dark = system_prefers_dark
        self.storage_key = storage_key
        self.theme = DEFAULT_THEME
        self.logger = logging.getLogger('ThemeController')

    def saved_theme(self) -> Optional[str]:
        """The explicit user choice, or None if there is no usable one."""
        try:
            value = self.store.get(self.storage_key)
        except Exception as e:
            self.logger.debug(f"Theme preference unreadable, ignoring it: {e}")
            return None
        if value in THEMES:
            return value
        if value is not None:
            self.logger.debug(f"Ignoring unknown stored theme {value!r}")
        return None

    def _system_theme(self) -> str:
        if self.system_prefers_dark is None:
            return DEFAULT_THEME
        try:
            prefers_dark = self.system_prefers_dark()
        except Exception as e:
            self.logger.debug(f"System color scheme unavailable: {e}")
            return DEFAULT_THEME
        return DARK if prefers_dark else LIGHT

    def initialize(self) -> str:
        """Apply the stored theme, falling back to the OS, then to light."""
        theme = self.saved_theme() or self._system_theme()
        self._apply(theme)
        return theme

    def set_theme(self, theme: str) -> str:
        """Explicit user choice; persisted, so it outranks the OS from now on."""
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme!r} (expected one of {', '.join(THEMES)})")
        self.store.set(self.storage_key, theme)
        self._apply(theme)
        return theme

    def toggle(self) -> str:
        return self.set_theme(LIGHT if self.theme == DARK else DARK)

    def on_system_change(self, prefers_dark: bool) -> str:
        """OS color-scheme notification; ignored once the user has chosen."""
        if self.saved_theme() is not None:
            self.logger.debug("Explicit theme stored, ignoring system change")
            return self.theme
        self._apply(DARK if prefers_dark else LIGHT)
        return self.theme

    def clear(self) -> None:
        """Forget the explicit choice so the OS preference applies again."""
        self.store.remove(self.storage_key)

    def _apply(self, theme: str) -> None:
        self.theme = theme
        if self.view is not None:
            self.view.apply_theme(theme)
        self.logger.debug(f"Applied {theme} theme")
