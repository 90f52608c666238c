"""
Postdeck - a blog builder with client-side post filtering and themes.

Postdeck renders markdown posts with YAML front matter into post cards, and
ships a headless engine for the two interactive pieces of the site: category
filtering with debounced search, and the light/dark theme preference.
"""

__version__ = "1.0.0"
__author__ = "Robert DeVore"
__email__ = "me@robertdevore.com"

from .core import Postdeck, FileProcessor
from .filtering import FilterResult, FilterState, PostCard, PostFilter, recompute
from .page import StaticPage
from .theme import PreferenceStore, ThemeController

__all__ = [
    'Postdeck', 'FileProcessor',
    'PostCard', 'FilterState', 'FilterResult', 'PostFilter', 'recompute',
    'StaticPage', 'PreferenceStore', 'ThemeController',
]
