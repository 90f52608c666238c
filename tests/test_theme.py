"""Tests for the theme controller and preference store."""

import json
import os
import pytest
from unittest.mock import Mock

from postdeck_pkg.theme import DARK, LIGHT, PreferenceStore, ThemeController


@pytest.fixture
def prefs_path(temp_dir):
    return os.path.join(temp_dir, 'state', 'preferences.json')


class TestPreferenceStore:
    """Test cases for PreferenceStore."""

    def test_memory_store(self):
        store = PreferenceStore()
        assert store.get('theme') is None
        store.set('theme', DARK)
        assert store.get('theme') == DARK
        store.remove('theme')
        assert store.get('theme') is None

    def test_file_store_persists(self, prefs_path):
        PreferenceStore(prefs_path).set('theme', DARK)

        with open(prefs_path, encoding='utf-8') as f:
            assert json.load(f) == {'theme': DARK}
        assert PreferenceStore(prefs_path).get('theme') == DARK

    def test_corrupt_file_reads_empty(self, prefs_path):
        os.makedirs(os.path.dirname(prefs_path))
        with open(prefs_path, 'w', encoding='utf-8') as f:
            f.write('{not json')
        assert PreferenceStore(prefs_path).get('theme') is None

    def test_non_mapping_file_reads_empty(self, prefs_path):
        os.makedirs(os.path.dirname(prefs_path))
        with open(prefs_path, 'w', encoding='utf-8') as f:
            json.dump(['dark'], f)
        assert PreferenceStore(prefs_path).get('theme') is None

    def test_remove_missing_key_is_noop(self, prefs_path):
        store = PreferenceStore(prefs_path)
        store.remove('theme')
        assert not os.path.exists(prefs_path)


class TestThemeController:
    """Test cases for ThemeController."""

    def test_initialize_defaults_to_light(self):
        controller = ThemeController()
        assert controller.initialize() == LIGHT

    def test_initialize_follows_system_without_persisting(self):
        store = PreferenceStore()
        controller = ThemeController(store=store, system_prefers_dark=lambda: True)

        assert controller.initialize() == DARK
        assert store.get('theme') is None

    def test_unavailable_system_preference_falls_back_to_light(self):
        def broken():
            raise RuntimeError("no media queries here")

        controller = ThemeController(system_prefers_dark=broken)
        assert controller.initialize() == LIGHT

    def test_persistence_round_trip(self, prefs_path):
        ThemeController(store=PreferenceStore(prefs_path)).set_theme(DARK)

        reloaded = ThemeController(store=PreferenceStore(prefs_path), system_prefers_dark=lambda: False)
        assert reloaded.initialize() == DARK

    def test_system_change_honored_without_explicit_choice(self):
        controller = ThemeController(system_prefers_dark=lambda: False)
        controller.initialize()

        assert controller.on_system_change(True) == DARK
        assert controller.theme == DARK
        assert controller.on_system_change(True) == DARK

    def test_system_change_ignored_after_explicit_choice(self):
        controller = ThemeController(system_prefers_dark=lambda: False)
        controller.initialize()
        controller.set_theme(LIGHT)

        assert controller.on_system_change(True) == LIGHT
        assert controller.theme == LIGHT

    def test_clear_restores_system_following(self):
        controller = ThemeController(system_prefers_dark=lambda: True)
        controller.set_theme(LIGHT)
        controller.clear()

        assert controller.saved_theme() is None
        assert controller.initialize() == DARK
        assert controller.on_system_change(False) == LIGHT

    def test_set_theme_rejects_unknown_value(self):
        controller = ThemeController()
        with pytest.raises(ValueError, match="Unknown theme"):
            controller.set_theme('sepia')
        assert controller.saved_theme() is None

    def test_invalid_stored_value_is_ignored(self):
        store = PreferenceStore()
        store.set('theme', 'sepia')
        controller = ThemeController(store=store, system_prefers_dark=lambda: True)
        assert controller.initialize() == DARK

    def test_unreadable_store_falls_back(self):
        store = Mock()
        store.get.side_effect = OSError("storage disabled")
        controller = ThemeController(store=store, system_prefers_dark=lambda: True)
        assert controller.initialize() == DARK

    def test_toggle_flips_and_persists(self):
        store = PreferenceStore()
        controller = ThemeController(store=store)
        controller.initialize()

        assert controller.toggle() == DARK
        assert store.get('theme') == DARK
        assert controller.toggle() == LIGHT
        assert store.get('theme') == LIGHT

    def test_custom_storage_key(self):
        store = PreferenceStore()
        ThemeController(store=store, storage_key='site-theme').set_theme(DARK)
        assert store.get('site-theme') == DARK
        assert store.get('theme') is None

    def test_view_receives_every_applied_theme(self):
        view = Mock()
        controller = ThemeController(view=view, system_prefers_dark=lambda: True)
        controller.initialize()
        controller.set_theme(LIGHT)

        assert [c.args for c in view.apply_theme.call_args_list] == [(DARK,), (LIGHT,)]
